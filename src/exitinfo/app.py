"""exitinfo - Textual viewer and command-line entry point."""

import argparse
import logging
import sys
from enum import Enum

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import DataTable, Footer, Static

from exitinfo import engine
from exitinfo.bridge import ExitInfoBridge
from exitinfo.config import ExitInfoConfig
from exitinfo.host import AdbExitInfoHost
from exitinfo.models import TerminationRecord
from exitinfo.reasons import ExitReason

logger = logging.getLogger(__name__)


class ExitFilter(Enum):
    """Record filters for the exit table."""

    ALL = "all"
    CRASHES = "crashes"
    ANRS = "anrs"

    def matches(self, record: TerminationRecord) -> bool:
        if self is ExitFilter.CRASHES:
            return record.is_crash
        if self is ExitFilter.ANRS:
            return record.reason == ExitReason.ANR
        return True


def format_bytes(size: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "B" else f"{size:5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


class SummaryPanel(Static):
    """Header widget showing exit totals per reason."""

    DEFAULT_CSS = """
    SummaryPanel {
        height: auto;
        min-height: 3;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize SummaryPanel."""
        super().__init__(*args, **kwargs)
        self._total: int = 0
        self._counts: dict[int, int] = {}

    def update_records(self, records: list[TerminationRecord]) -> None:
        """Recount the records and refresh the display."""
        self._total = len(records)
        self._counts = dict(engine.reason_counts(records))
        self.update(self._get_summary())

    def _get_summary(self) -> str:
        if not self._total:
            return engine.NO_EXIT_INFO
        breakdown = "  ".join(
            f"{engine.reason_label(reason)}: [bold]{count}[/bold]"
            for reason, count in sorted(self._counts.items(), key=lambda item: -item[1])
        )
        return f"Total exits recorded: [bold]{self._total}[/bold]\n{breakdown}"


class TraceView(Static):
    """Detail pane for the highlighted exit."""

    DEFAULT_CSS = """
    TraceView {
        height: 12;
        border: solid $secondary;
        padding: 0 1;
        overflow-y: auto;
    }
    """

    def show_record(self, record: TerminationRecord | None) -> None:
        if record is None:
            self.update("")
            return
        lines = [f"{record.reason_label} - {record.process_name} (PID: {record.pid})"]
        if record.description:
            lines.append(record.description)
        lines.append(record.trace_log or "(no trace data)")
        # Trace text is shown verbatim, not as markup
        self.update("\n".join(lines).replace("[", "\\["))


class ExitTable(Container):
    """Container for the exit record data table."""

    DEFAULT_CSS = """
    ExitTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ExitTable."""
        super().__init__(*args, **kwargs)
        self._exit_records: dict[str, TerminationRecord] = {}
        self._exit_filter: ExitFilter = ExitFilter.ALL

    @property
    def exit_filter(self) -> ExitFilter:
        """Get current record filter."""
        return self._exit_filter

    def cycle_filter(self) -> ExitFilter:
        """Cycle to the next filter and return it."""
        filters = list(ExitFilter)
        current_index = filters.index(self._exit_filter)
        self._exit_filter = filters[(current_index + 1) % len(filters)]
        return self._exit_filter

    def compose(self) -> ComposeResult:
        """Compose the exit table."""
        yield DataTable(id="exit-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        self._ensure_columns(self.query_one("#exit-table", DataTable))

    def _ensure_columns(self, table: DataTable) -> None:
        if table.columns:
            return
        table.cursor_type = "row"

        table.add_column("Time", key="time", width=26)
        table.add_column("PID", key="pid", width=8)
        table.add_column("Process", key="process", width=28)
        table.add_column("Reason", key="reason", width=24)
        table.add_column("IMP", key="importance", width=5)
        table.add_column("PSS", key="pss", width=8)
        table.add_column("RSS", key="rss", width=8)
        table.add_column("Description", key="description")

    def record_for(self, row_key: str) -> TerminationRecord | None:
        return self._exit_records.get(row_key)

    def update_records(self, records: list[TerminationRecord]) -> None:
        """
        Replace the table contents with the records passing the current filter.

        Host order is kept; rows are keyed by their position in that order.
        """
        table = self.query_one("#exit-table", DataTable)
        self._ensure_columns(table)
        table.clear()
        self._exit_records = {}

        for index, record in enumerate(records):
            if not self._exit_filter.matches(record):
                continue
            row_key = str(index)
            self._exit_records[row_key] = record
            table.add_row(
                engine.format_timestamp(record.timestamp),
                str(record.pid),
                record.process_name[:28],
                record.reason_label,
                str(record.importance),
                format_bytes(record.pss),
                format_bytes(record.rss),
                (record.description or "")[:60],
                key=row_key,
            )


class ExitInfoApp(App):
    """Main exitinfo application."""

    TITLE = "exitinfo"
    SUB_TITLE = "Process Exit History"

    CSS = """
    Screen {
        layout: vertical;
    }

    #summary {
        dock: top;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("f6", "filter", "Filter"),
        ("r", "reload", "Reload"),
    ]

    def __init__(self, bridge: ExitInfoBridge) -> None:
        """Initialize the ExitInfoApp."""
        super().__init__()
        self._bridge = bridge
        self._exit_records: list[TerminationRecord] = []

    @property
    def records(self) -> list[TerminationRecord]:
        return self._exit_records

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield SummaryPanel(id="summary")
        yield ExitTable()
        yield TraceView(id="trace")
        yield Footer()

    def on_mount(self) -> None:
        """Load the exit history when the app is mounted."""
        self.action_reload()

    def action_reload(self) -> None:
        """Re-query the host and refresh every widget."""
        records = self._bridge.get_all()
        if records is None:
            self.notify("No host bound", severity="error")
            records = []
        logger.debug("Loaded %d exit records", len(records))
        self._exit_records = records
        self.query_one("#summary", SummaryPanel).update_records(records)
        self.query_one(ExitTable).update_records(records)

    def action_filter(self) -> None:
        """Handle filter action - cycle through record filters."""
        exit_table = self.query_one(ExitTable)
        new_filter = exit_table.cycle_filter()
        exit_table.update_records(self._exit_records)
        self.notify(f"Filter: {new_filter.value.upper()}")

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        """Show the trace of the highlighted row."""
        record = None
        if event.row_key is not None and event.row_key.value is not None:
            record = self.query_one(ExitTable).record_for(event.row_key.value)
        self.query_one("#trace", TraceView).show_record(record)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="exitinfo",
        description="Inspect the process exit history of an Android device.",
    )
    parser.add_argument("--package", help="package to scope queries to (default: host default)")
    parser.add_argument("--serial", help="adb device serial")
    parser.add_argument("--adb", dest="adb_path", help="path to the adb executable")
    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "--json",
        choices=["all", "latest", "crashes", "anrs"],
        help="print exits as JSON instead of starting the viewer",
    )
    output.add_argument("--summary", action="store_true", help="print the summary report")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser


def build_config(args: argparse.Namespace) -> ExitInfoConfig:
    """Environment defaults overridden by command-line flags."""
    config = ExitInfoConfig.from_env()
    if args.package:
        config.package_name = args.package
    if args.serial:
        config.serial = args.serial
    if args.adb_path:
        config.adb_path = args.adb_path
    return config


def main(argv: list[str] | None = None) -> int:
    """Entry point for the exitinfo command."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    config = build_config(args)
    bridge = ExitInfoBridge(AdbExitInfoHost.from_config(config), config)

    if args.summary:
        print(bridge.get_summary_report())
        return 0

    if args.json:
        handlers = {
            "all": bridge.get_all_as_json,
            "latest": bridge.get_latest_as_json,
            "crashes": bridge.get_crashes_as_json,
            "anrs": bridge.get_anrs_as_json,
        }
        result = handlers[args.json]()
        print(result if result is not None else "null")
        return 0

    ExitInfoApp(bridge).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
