"""Tests for exitinfo configuration."""

from exitinfo.config import ExitInfoConfig


def test_defaults():
    """Test default configuration values."""
    config = ExitInfoConfig()
    assert config.package_name is None
    assert config.adb_path == "adb"
    assert config.serial is None
    assert config.adb_timeout == 20.0


def test_from_env(monkeypatch):
    """Test configuration is read from the environment."""
    monkeypatch.setenv("EXITINFO_PACKAGE", "com.example.game")
    monkeypatch.setenv("EXITINFO_ADB", "/opt/platform-tools/adb")
    monkeypatch.setenv("ANDROID_SERIAL", "emulator-5554")
    monkeypatch.setenv("EXITINFO_ADB_TIMEOUT", "5")

    config = ExitInfoConfig.from_env()

    assert config.package_name == "com.example.game"
    assert config.adb_path == "/opt/platform-tools/adb"
    assert config.serial == "emulator-5554"
    assert config.adb_timeout == 5.0


def test_from_env_unset(monkeypatch):
    """Test unset or empty variables fall back to defaults."""
    for name in ("EXITINFO_PACKAGE", "EXITINFO_ADB", "ANDROID_SERIAL", "EXITINFO_ADB_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("EXITINFO_PACKAGE", "")

    assert ExitInfoConfig.from_env() == ExitInfoConfig()
