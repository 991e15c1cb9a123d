"""Query, reporting and JSON serialization of process exit history."""

import json
import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from exitinfo.models import ExitInfoHost, TerminationRecord
from exitinfo.normalizer import normalize
from exitinfo.reasons import ExitReason
from exitinfo.reasons import reason_label as _classify

logger = logging.getLogger(__name__)

MAX_COUNT = 2**31 - 1  # Host treats this as "no limit"
RECENT_EXITS = 5
NO_EXIT_INFO = "No exit information available"

_JSON_SEPARATORS = (",", ":")


def get_all(
    context: ExitInfoHost | None,
    package_name: str | None = None,
    pid: int = 0,
    max_count: int = MAX_COUNT,
) -> list[TerminationRecord]:
    """
    Fetch and normalize the exit history known to the host.

    Records are returned in host order (most recent first on Android). Any
    failure to reach the host yields an empty list.

    Args:
        context: Host facility to query. None means no host is available.
        package_name: Package to scope the query to, or None for the host default.
        pid: Only return exits of this process id; 0 matches every process.
        max_count: Maximum number of records to request.
    """
    if context is None:
        logger.error("Exit info host not available")
        return []

    try:
        raw_records = context.get_historical_process_exit_reasons(package_name, pid, max_count)
        return [normalize(raw) for raw in raw_records]
    except Exception:
        logger.error("Error getting exit info", exc_info=True)
        return []


def get_latest(
    context: ExitInfoHost | None,
    package_name: str | None = None,
) -> TerminationRecord | None:
    """Return the most recent exit, or None if there is no history."""
    records = get_all(context, package_name, 0, 1)
    return records[0] if records else None


def get_by_reason(
    context: ExitInfoHost | None,
    reason: int,
    package_name: str | None = None,
) -> list[TerminationRecord]:
    """Return the exits whose reason code equals ``reason``, in host order."""
    return [record for record in get_all(context, package_name) if record.reason == reason]


def get_crashes(
    context: ExitInfoHost | None,
    package_name: str | None = None,
) -> list[TerminationRecord]:
    """Return Java and native crashes, in host order."""
    return [record for record in get_all(context, package_name) if record.is_crash]


def get_anrs(
    context: ExitInfoHost | None,
    package_name: str | None = None,
) -> list[TerminationRecord]:
    """Return ANR exits, in host order."""
    return get_by_reason(context, ExitReason.ANR, package_name)


def reason_label(reason: int) -> str:
    """Return the human-readable label for a reason code."""
    return _classify(reason)


def format_timestamp(timestamp: int) -> str:
    """
    Format epoch milliseconds as a local calendar date and time.

    Timestamps the platform cannot represent are rendered as raw milliseconds.
    """
    try:
        moment = datetime.fromtimestamp(timestamp / 1000).astimezone()
    except (ValueError, OverflowError, OSError):
        logger.debug("Timestamp %r out of range", timestamp)
        return f"{timestamp} ms"
    return moment.strftime("%Y-%m-%d %H:%M:%S %Z").rstrip()


def reason_counts(records: Iterable[TerminationRecord]) -> Counter[int]:
    """Count records per reason code."""
    return Counter(record.reason for record in records)


def render_summary(records: Sequence[TerminationRecord]) -> str:
    """Render the plain-text summary report for a sequence of records."""
    if not records:
        return NO_EXIT_INFO

    lines = [
        "=== APPLICATION EXIT INFORMATION SUMMARY ===",
        f"Total exits recorded: {len(records)}",
        "",
        "Exit reasons breakdown:",
    ]
    for reason, count in reason_counts(records).items():
        lines.append(f"- {_classify(reason)}: {count}")

    lines.append("")
    lines.append(f"=== RECENT EXITS (Last {RECENT_EXITS}) ===")
    for index, record in enumerate(records[:RECENT_EXITS], start=1):
        lines.append(f"Exit #{index}:")
        lines.append(f"  Timestamp: {format_timestamp(record.timestamp)}")
        lines.append(f"  Reason: {record.reason_label}")
        lines.append(f"  Process: {record.process_name} (PID: {record.pid})")
        if record.description:
            lines.append(f"  Description: {record.description}")
        lines.append("")

    return "\n".join(lines) + "\n"


def summary_report(context: ExitInfoHost | None, package_name: str | None = None) -> str:
    """Build the summary report from the host's current exit history."""
    return render_summary(get_all(context, package_name))


def escape_json(text: str | None) -> str:
    """
    Escape text for embedding inside a JSON string literal.

    Helper for callers that assemble JSON by hand; ``to_json`` serializes
    through ``json.dumps`` and does not need it.
    """
    if not text:
        return ""
    return json.dumps(text, ensure_ascii=False)[1:-1]


def to_dict(record: TerminationRecord) -> dict[str, Any]:
    """Map a record onto the wire field names, in wire order."""
    data: dict[str, Any] = {
        "timestamp": record.timestamp,
        "pid": record.pid,
        "realUid": record.real_uid,
        # Historical wire name; the value is the package uid, not a package name
        "packageName": str(record.package_uid),
        "processName": record.process_name or "",
        "reason": int(record.reason),
        "reasonString": record.reason_label,
        "importance": record.importance,
        "pss": record.pss,
        "rss": record.rss,
        "description": record.description or "",
        "status": record.status,
        "definingUid": record.defining_uid,
    }
    if record.trace_log:
        data["traceData"] = record.trace_log
    return data


def to_json(record: TerminationRecord) -> str:
    """Serialize one record as a JSON object."""
    return json.dumps(to_dict(record), ensure_ascii=False, separators=_JSON_SEPARATORS)


def to_json_array(records: Iterable[TerminationRecord]) -> str:
    """Serialize records as a JSON array, preserving order."""
    return "[" + ",".join(to_json(record) for record in records) + "]"
