"""Android host collaborator backed by ``adb shell dumpsys activity exit-info``."""

import gzip
import io
import logging
import re
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import IO

from exitinfo.config import ExitInfoConfig

logger = logging.getLogger(__name__)

PACKAGE_NAME_RE = re.compile(r"^[A-Za-z0-9_.]+$")

_BLOCK_RE = re.compile(r"^\s*ApplicationExitInfo #\d+:\s*$", re.MULTILINE)
_TIMESTAMP_RE = re.compile(r"\btimestamp=(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3})")
_PROCESS_RE = re.compile(r"\bprocess=(\S+)")
_DESCRIPTION_RE = re.compile(r"\bdescription=(.*?)(?=\s+state=|\s+trace=|$)", re.MULTILINE)
_TRACE_RE = re.compile(r"\btrace=(\S+)")
_SIZE_RE = {
    "pss": re.compile(r"\bpss=(\d+(?:\.\d+)?)([KMGTP]?B)?"),
    "rss": re.compile(r"\brss=(\d+(?:\.\d+)?)([KMGTP]?B)?"),
}
# Record attribute -> dumpsys key
_INT_FIELDS = {
    "pid": "pid",
    "real_uid": "realUid",
    "package_uid": "packageUid",
    "defining_uid": "definingUid",
    "reason": "reason",
    "status": "status",
    "importance": "importance",
}
_INT_RE = {attr: re.compile(rf"\b{key}=(-?\d+)") for attr, key in _INT_FIELDS.items()}
_SIZE_UNITS = {"B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3, "TB": 1024**4, "PB": 1024**5}


class HostUnavailableError(RuntimeError):
    """The device's exit history could not be queried."""


@dataclass(slots=True, frozen=True)
class DumpsysExitRecord:
    """One ``ApplicationExitInfo`` entry parsed from dumpsys output."""

    timestamp: int
    pid: int
    real_uid: int
    package_uid: int
    process_name: str
    reason: int
    importance: int
    pss: int  # Bytes
    rss: int  # Bytes
    description: str | None
    status: int
    defining_uid: int
    trace_path: str | None = None
    trace_loader: Callable[[str], bytes] | None = field(default=None, repr=False, compare=False)

    def open_trace(self) -> IO[bytes] | None:
        """Fetch the trace file from the device, decompressing ``.gz`` traces."""
        if self.trace_path is None or self.trace_loader is None:
            return None
        stream = io.BytesIO(self.trace_loader(self.trace_path))
        if self.trace_path.endswith(".gz"):
            return gzip.GzipFile(fileobj=stream)
        return stream


def parse_size(value: str, unit: str | None) -> int:
    """Convert a dumpsys size value such as ``45MB`` into bytes."""
    return int(float(value) * _SIZE_UNITS.get(unit or "B", 1))


def parse_timestamp(text: str) -> int:
    """Convert a dumpsys ``yyyy-MM-dd HH:mm:ss.SSS`` local time into epoch milliseconds."""
    moment = datetime.strptime(text, "%Y-%m-%d %H:%M:%S.%f")
    return round(moment.timestamp() * 1000)


def _search_int(block: str, attr: str) -> int:
    match = _INT_RE[attr].search(block)
    return int(match.group(1)) if match else 0


def _nullable(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return None if value in ("", "null") else value


def _parse_block(
    block: str,
    trace_loader: Callable[[str], bytes] | None,
) -> DumpsysExitRecord | None:
    timestamp_match = _TIMESTAMP_RE.search(block)
    if timestamp_match is None:
        return None

    sizes = {}
    for name, pattern in _SIZE_RE.items():
        match = pattern.search(block)
        sizes[name] = parse_size(match.group(1), match.group(2)) if match else 0

    process_match = _PROCESS_RE.search(block)
    description_match = _DESCRIPTION_RE.search(block)
    trace_match = _TRACE_RE.search(block)

    return DumpsysExitRecord(
        timestamp=parse_timestamp(timestamp_match.group(1)),
        pid=_search_int(block, "pid"),
        real_uid=_search_int(block, "real_uid"),
        package_uid=_search_int(block, "package_uid"),
        process_name=process_match.group(1) if process_match else "",
        reason=_search_int(block, "reason"),
        importance=_search_int(block, "importance"),
        pss=sizes["pss"],
        rss=sizes["rss"],
        description=_nullable(description_match.group(1) if description_match else None),
        status=_search_int(block, "status"),
        defining_uid=_search_int(block, "defining_uid"),
        trace_path=_nullable(trace_match.group(1) if trace_match else None),
        trace_loader=trace_loader,
    )


def parse_exit_info_dump(
    text: str,
    trace_loader: Callable[[str], bytes] | None = None,
) -> list[DumpsysExitRecord]:
    """
    Parse the output of ``dumpsys activity exit-info``.

    Entries are returned in dump order. Blocks without a timestamp are skipped.

    Args:
        text: Raw dumpsys output.
        trace_loader: Callable fetching a device file's bytes, attached to each
            record so its trace can be opened lazily.
    """
    records: list[DumpsysExitRecord] = []
    for block in _BLOCK_RE.split(text)[1:]:
        record = _parse_block(block, trace_loader)
        if record is None:
            logger.debug("Skipping exit info block without timestamp")
            continue
        records.append(record)
    return records


class AdbExitInfoHost:
    """
    Exit history of an Android device reached over adb.

    Implements the host side of the query: each call runs dumpsys on the
    device and parses the result. Nothing is cached between calls.
    """

    def __init__(
        self,
        adb_path: str = "adb",
        serial: str | None = None,
        timeout: float = 20.0,
    ) -> None:
        self._adb_path = adb_path
        self._serial = serial
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: ExitInfoConfig) -> "AdbExitInfoHost":
        return cls(adb_path=config.adb_path, serial=config.serial, timeout=config.adb_timeout)

    def build_argv(self, args: Sequence[str]) -> list[str]:
        argv = [self._adb_path]
        if self._serial:
            argv += ["-s", self._serial]
        return argv + [str(arg) for arg in args]

    def _run(self, args: Sequence[str], text: bool = True) -> subprocess.CompletedProcess:
        argv = self.build_argv(args)
        try:
            result = subprocess.run(argv, capture_output=True, text=text, timeout=self._timeout)
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise HostUnavailableError(f"{' '.join(argv)}: {exc}") from exc

        if result.returncode != 0:
            stderr = result.stderr if text else result.stderr.decode("utf-8", "replace")
            raise HostUnavailableError(
                f"{' '.join(argv)} exited with {result.returncode}: {stderr.strip()}"
            )
        return result

    def read_file(self, path: str) -> bytes:
        """Read a device file, raising OSError if it cannot be fetched."""
        try:
            return self._run(["exec-out", "cat", path], text=False).stdout
        except HostUnavailableError as exc:
            raise OSError(str(exc)) from exc

    def get_historical_process_exit_reasons(
        self,
        package_name: str | None,
        pid: int,
        max_num: int,
    ) -> list[DumpsysExitRecord]:
        """Query the device, optionally scoped to a package and process id."""
        args = ["shell", "dumpsys", "activity", "exit-info"]
        if package_name:
            if not PACKAGE_NAME_RE.fullmatch(package_name):
                raise ValueError(f"Invalid package name: {package_name!r}")
            args.append(package_name)

        output = self._run(args).stdout
        records = parse_exit_info_dump(output, trace_loader=self.read_file)
        if pid:
            records = [record for record in records if record.pid == pid]
        if max_num > 0:
            records = records[:max_num]
        logger.debug("Parsed %d exit records from %s", len(records), self._serial or "default device")
        return records
