"""Configuration for exitinfo."""

import os
from dataclasses import dataclass


@dataclass(slots=True)
class ExitInfoConfig:
    """Settings shared by every query made through one bridge."""

    package_name: str | None = None  # None lets the host pick the default scope
    adb_path: str = "adb"
    serial: str | None = None  # adb device serial; None uses the only attached device
    adb_timeout: float = 20.0

    @classmethod
    def from_env(cls) -> "ExitInfoConfig":
        """Build a config from EXITINFO_* and ANDROID_SERIAL environment variables."""
        return cls(
            package_name=os.getenv("EXITINFO_PACKAGE") or None,
            adb_path=os.getenv("EXITINFO_ADB", "adb"),
            serial=os.getenv("ANDROID_SERIAL") or None,
            adb_timeout=float(os.getenv("EXITINFO_ADB_TIMEOUT", "20")),
        )
