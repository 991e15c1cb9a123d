"""Data models for exitinfo."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import IO, Protocol

from exitinfo.reasons import CRASH_REASONS, reason_label


@dataclass(slots=True, frozen=True)
class TerminationRecord:
    """Immutable, normalized record of one historical process exit."""

    timestamp: int  # Epoch milliseconds
    pid: int
    real_uid: int
    package_uid: int
    process_name: str
    reason: int  # ExitReason value, or an unmapped host code
    importance: int
    pss: int
    rss: int
    description: str | None
    status: int  # Raw exit status or signal number
    defining_uid: int
    trace_log: str | None = None  # At most 100 lines

    @property
    def reason_label(self) -> str:
        """Human-readable label for the exit reason."""
        return reason_label(self.reason)

    @property
    def is_crash(self) -> bool:
        """Whether this exit was a Java or native crash."""
        return self.reason in CRASH_REASONS


class RawExitRecord(Protocol):
    """One termination record as supplied by the host."""

    timestamp: int
    pid: int
    real_uid: int
    package_uid: int
    process_name: str | None
    reason: int
    importance: int
    pss: int
    rss: int
    description: str | None
    status: int
    defining_uid: int

    def open_trace(self) -> IO | None:
        """Open the trace stream for this exit, or return None if there is none."""
        ...


class ExitInfoHost(Protocol):
    """Host facility that retains the process exit history."""

    def get_historical_process_exit_reasons(
        self,
        package_name: str | None,
        pid: int,
        max_num: int,
    ) -> Sequence[RawExitRecord]:
        """Return exit records, most recent first."""
        ...
