"""Caller-facing facade over the exit info engine."""

import logging

from exitinfo import engine
from exitinfo.config import ExitInfoConfig
from exitinfo.models import ExitInfoHost, TerminationRecord

logger = logging.getLogger(__name__)


class ExitInfoBridge:
    """
    Stateful entry point for embedding callers.

    Holds the bound host context and the configured package name so callers
    set them once and then issue argument-free queries. Every method returns
    None instead of raising while no context is bound.
    """

    def __init__(
        self,
        context: ExitInfoHost | None = None,
        config: ExitInfoConfig | None = None,
    ) -> None:
        """
        Initialize the bridge.

        Args:
            context: Host facility to query; may be bound later.
            config: Query settings. Defaults to an empty ExitInfoConfig.
        """
        self._context = context
        self._config = config if config is not None else ExitInfoConfig()

    @property
    def config(self) -> ExitInfoConfig:
        """Get the bridge configuration."""
        return self._config

    @property
    def package_name(self) -> str | None:
        """Get the package name used to scope queries."""
        return self._config.package_name

    @property
    def is_bound(self) -> bool:
        """Check whether a host context is bound."""
        return self._context is not None

    def bind_context(self, context: ExitInfoHost | None) -> None:
        """Bind (or with None, unbind) the host context."""
        self._context = context

    def set_package_name(self, package_name: str | None) -> None:
        """Set the package name used to scope subsequent queries."""
        self._config.package_name = package_name

    def _unbound(self, operation: str) -> bool:
        if self._context is None:
            logger.warning("%s called before a context was bound", operation)
            return True
        return False

    def get_all(self) -> list[TerminationRecord] | None:
        if self._unbound("get_all"):
            return None
        return engine.get_all(self._context, self.package_name)

    def get_latest(self) -> TerminationRecord | None:
        if self._unbound("get_latest"):
            return None
        return engine.get_latest(self._context, self.package_name)

    def get_crashes(self) -> list[TerminationRecord] | None:
        if self._unbound("get_crashes"):
            return None
        return engine.get_crashes(self._context, self.package_name)

    def get_anrs(self) -> list[TerminationRecord] | None:
        if self._unbound("get_anrs"):
            return None
        return engine.get_anrs(self._context, self.package_name)

    def get_all_as_json(self) -> str | None:
        """Return every exit as a JSON array."""
        records = self.get_all()
        return None if records is None else engine.to_json_array(records)

    def get_latest_as_json(self) -> str | None:
        """Return the most recent exit as a JSON object, or None."""
        record = self.get_latest()
        return None if record is None else engine.to_json(record)

    def get_anrs_as_json(self) -> str | None:
        """Return ANR exits as a JSON array."""
        records = self.get_anrs()
        return None if records is None else engine.to_json_array(records)

    def get_crashes_as_json(self) -> str | None:
        """Return crash exits as a JSON array."""
        records = self.get_crashes()
        return None if records is None else engine.to_json_array(records)

    def get_summary_report(self) -> str | None:
        """Return the plain-text summary report."""
        if self._unbound("get_summary_report"):
            return None
        return engine.summary_report(self._context, self.package_name)
