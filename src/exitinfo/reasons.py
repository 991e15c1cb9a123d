"""Exit reason codes and their human-readable labels."""

from enum import IntEnum


class ExitReason(IntEnum):
    """Process exit reasons as reported by Android's ApplicationExitInfo."""

    UNKNOWN = 0
    EXIT_SELF = 1
    SIGNALED = 2
    LOW_MEMORY = 3
    CRASH = 4
    CRASH_NATIVE = 5
    ANR = 6
    INITIALIZATION_FAILURE = 7
    PERMISSION_CHANGE = 8
    EXCESSIVE_RESOURCE_USAGE = 9
    USER_REQUESTED = 10
    USER_STOPPED = 11
    DEPENDENCY_DIED = 12
    OTHER = 13


REASON_LABELS: dict[int, str] = {
    ExitReason.UNKNOWN: "Unknown",
    ExitReason.EXIT_SELF: "Exit Self",
    ExitReason.SIGNALED: "Signaled",
    ExitReason.LOW_MEMORY: "Low Memory",
    ExitReason.CRASH: "Crash (Java)",
    ExitReason.CRASH_NATIVE: "Crash (Native)",
    ExitReason.ANR: "ANR",
    ExitReason.INITIALIZATION_FAILURE: "Initialization Failure",
    ExitReason.PERMISSION_CHANGE: "Permission Change",
    ExitReason.EXCESSIVE_RESOURCE_USAGE: "Excessive Resource Usage",
    ExitReason.USER_REQUESTED: "User Requested",
    ExitReason.USER_STOPPED: "User Stopped",
    ExitReason.DEPENDENCY_DIED: "Dependency Died",
    ExitReason.OTHER: "Other",
}

CRASH_REASONS = frozenset({ExitReason.CRASH, ExitReason.CRASH_NATIVE})


def reason_label(code: int) -> str:
    """Return the label for a reason code, synthesizing one for unknown codes."""
    label = REASON_LABELS.get(code)
    if label is None:
        return f"Unknown ({code})"
    return label
