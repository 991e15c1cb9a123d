"""Shared fakes for exitinfo tests."""

import io
from dataclasses import dataclass, field

import pytest

from exitinfo.reasons import ExitReason


class TrackingStream(io.BytesIO):
    """BytesIO that remembers whether it was closed."""

    def __init__(self, data: bytes = b"") -> None:
        super().__init__(data)
        self.was_closed = False

    def close(self) -> None:
        self.was_closed = True
        super().close()


class FailingStream(TrackingStream):
    """Stream that raises on read."""

    def readable(self) -> bool:
        return True

    def read(self, *args):
        raise OSError("device went away")

    def read1(self, *args):
        raise OSError("device went away")

    def readinto(self, *args):
        raise OSError("device went away")


@dataclass
class FakeRawRecord:
    """Raw host record with the same shape the Android host exposes."""

    timestamp: int = 1_700_000_000_000
    pid: int = 1234
    real_uid: int = 10100
    package_uid: int = 10100
    process_name: str | None = "com.example.game"
    reason: int = ExitReason.CRASH
    importance: int = 100
    pss: int = 4096
    rss: int = 8192
    description: str | None = "crash"
    status: int = 0
    defining_uid: int = 10100
    trace: object = None
    opened: list = field(default_factory=list)

    def open_trace(self):
        if isinstance(self.trace, Exception):
            raise self.trace
        if callable(self.trace):
            stream = self.trace()
            self.opened.append(stream)
            return stream
        return self.trace


class FakeHost:
    """In-memory exit history; returns records in the given order."""

    def __init__(self, records=None, error: Exception | None = None) -> None:
        self.records = list(records or [])
        self.error = error
        self.calls: list[tuple] = []

    def get_historical_process_exit_reasons(self, package_name, pid, max_num):
        self.calls.append((package_name, pid, max_num))
        if self.error is not None:
            raise self.error
        records = [r for r in self.records if not pid or r.pid == pid]
        return records[:max_num] if max_num > 0 else records


@pytest.fixture
def mixed_host() -> FakeHost:
    """Host holding a crash, an ANR and a native crash, in that order."""
    return FakeHost(
        [
            FakeRawRecord(pid=1, reason=ExitReason.CRASH, timestamp=3_000),
            FakeRawRecord(pid=2, reason=ExitReason.ANR, timestamp=2_000, description=None),
            FakeRawRecord(pid=3, reason=ExitReason.CRASH_NATIVE, timestamp=1_000),
        ]
    )
