"""Conversion of raw host exit records into TerminationRecord instances."""

import io
import logging
from collections.abc import Callable
from itertools import islice
from typing import Any

from exitinfo.models import RawExitRecord, TerminationRecord

logger = logging.getLogger(__name__)

MAX_TRACE_LINES = 100


def _field(
    raw: RawExitRecord,
    name: str,
    default: Any,
    convert: Callable[[Any], Any] | None = None,
) -> Any:
    """Read one attribute from a raw record, falling back to a default."""
    try:
        value = getattr(raw, name)
        if value is None:
            return default
        return convert(value) if convert is not None else value
    except Exception:
        logger.debug("Exit record field %r unavailable", name, exc_info=True)
        return default


def read_trace(raw: RawExitRecord, max_lines: int = MAX_TRACE_LINES) -> str | None:
    """
    Read the first lines of the trace stream attached to an exit record.

    The stream is always closed, including when reading stops at the line cap
    or fails part-way.

    Args:
        raw: Host record exposing ``open_trace()``.
        max_lines: Hard cap on the number of lines returned.

    Returns:
        Newline-joined trace lines, or None if the host has no trace for this
        exit, the trace is empty, or it could not be read.
    """
    try:
        stream = raw.open_trace()
        if stream is None:
            return None

        with stream:
            if isinstance(stream, io.TextIOBase):
                lines = [line.rstrip("\r\n") for line in islice(stream, max_lines)]
            else:
                reader = io.TextIOWrapper(stream, encoding="utf-8", errors="replace")
                try:
                    lines = [line.rstrip("\r\n") for line in islice(reader, max_lines)]
                finally:
                    # Leave closing to the outer `with`
                    reader.detach()
    except Exception:
        logger.warning("Failed to read trace data", exc_info=True)
        return None

    return "\n".join(lines) or None


def normalize(raw: RawExitRecord) -> TerminationRecord:
    """Build a TerminationRecord from one raw host record."""
    return TerminationRecord(
        timestamp=_field(raw, "timestamp", 0, int),
        pid=_field(raw, "pid", 0, int),
        real_uid=_field(raw, "real_uid", 0, int),
        package_uid=_field(raw, "package_uid", 0, int),
        process_name=_field(raw, "process_name", "", str),
        reason=_field(raw, "reason", 0, int),
        importance=_field(raw, "importance", 0, int),
        pss=_field(raw, "pss", 0, int),
        rss=_field(raw, "rss", 0, int),
        description=_field(raw, "description", None, str),
        status=_field(raw, "status", 0, int),
        defining_uid=_field(raw, "defining_uid", 0, int),
        trace_log=read_trace(raw),
    )
