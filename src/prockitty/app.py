"""prockitty - Interactive Textual application."""

import logging
from typing import Any

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Footer, Input, Static

from prockitty.config import Config
from prockitty.errors import InvalidInputError, ProcessKittyError, UnboundedChainError
from prockitty.inspector import (
    compare_processes,
    filter_by_memory,
    list_processes,
    parse_pid,
    parse_threshold,
    walk_parentage,
)
from prockitty.metrics import collect_metrics, render_metrics
from prockitty.models import AttributeKind
from prockitty.prereqs import check_prerequisites, render_prerequisites
from prockitty.provider import ProcessProvider, PsutilProvider

logger = logging.getLogger(__name__)

MENU = """\
1. Check required data sources
2. View System-wide Metrics
3. Compare Two Processes by Attribute
4. Filter Processes by Memory
5. Track Process Parentage
6. List Processes
7. Exit"""


class ReportView(Static):
    """Plain-text output of the last action."""

    DEFAULT_CSS = """
    ReportView {
        height: auto;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, **kwargs) -> None:
        """Initialize ReportView without markup, process names may contain brackets."""
        super().__init__("", markup=False, **kwargs)
        self.last_report = ""

    def show(self, text: str) -> None:
        """Replace the displayed report."""
        self.last_report = text
        self.update(text)


class PromptScreen(ModalScreen[Any]):
    """
    Modal form collecting the inputs of one action.

    Invalid input keeps the form open with the error shown so the user can
    correct it; Escape or Cancel dismisses with None.
    """

    DEFAULT_CSS = """
    PromptScreen {
        align: center middle;
    }

    #prompt {
        width: 60;
        height: auto;
        padding: 1 2;
        border: thick $primary;
        background: $surface;
    }

    #prompt-error {
        color: $error;
        height: auto;
    }
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    heading = ""
    fields: tuple[tuple[str, str], ...] = ()  # (input id, placeholder)

    def __init__(self) -> None:
        super().__init__()
        self._error_text = ""

    def compose(self) -> ComposeResult:
        """Compose the form."""
        with Vertical(id="prompt"):
            yield Static(self.heading, id="prompt-title", markup=False)
            for field_id, placeholder in self.fields:
                yield Input(placeholder=placeholder, id=field_id)
            yield Static("", id="prompt-error", markup=False)
            with Horizontal():
                yield Button("OK", id="submit", variant="primary")
                yield Button("Cancel", id="cancel")

    @property
    def error_text(self) -> str:
        """Error from the last rejected submission."""
        return self._error_text

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Enter moves to the next field, or submits on the last one."""
        event.stop()
        if event.input.id != self.fields[-1][0]:
            self.focus_next()
            return
        self._submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle OK and Cancel."""
        event.stop()
        if event.button.id == "submit":
            self._submit()
        else:
            self.dismiss(None)

    def action_cancel(self) -> None:
        """Dismiss without a result."""
        self.dismiss(None)

    def _submit(self) -> None:
        values = {field_id: self.query_one(f"#{field_id}", Input).value for field_id, _ in self.fields}
        try:
            result = self.parse(values)
        except InvalidInputError as exc:
            self._error_text = str(exc)
            self.query_one("#prompt-error", Static).update(self._error_text)
            return
        self.dismiss(result)

    def parse(self, values: dict[str, str]) -> Any:
        """
        Turn raw field values into the action's arguments.

        Every prompt overrides this hook. ``values`` maps each input id in
        ``fields`` to its text; raise InvalidInputError to keep the form open.
        """
        raise NotImplementedError(f"{type(self).__name__} must override parse()")


class ComparePrompt(PromptScreen):
    """Asks for two PIDs and the attribute to compare."""

    heading = "Compare two processes. Attributes:\n" + "\n".join(
        f"{kind.choice}. {kind.label}" for kind in AttributeKind
    )
    fields = (
        ("pid-a", "PID of the first process"),
        ("pid-b", "PID of the second process"),
        ("attribute", "Attribute number (1-9)"),
    )

    def parse(self, values: dict[str, str]) -> tuple[int, int, AttributeKind]:
        return (
            parse_pid(values["pid-a"]),
            parse_pid(values["pid-b"]),
            AttributeKind.from_choice(values["attribute"]),
        )


class ThresholdPrompt(PromptScreen):
    """Asks for a virtual memory threshold."""

    heading = "Show processes using more virtual memory than:"
    fields = (("threshold", "Memory threshold in KB"),)

    def parse(self, values: dict[str, str]) -> int:
        return parse_threshold(values["threshold"])


class PidPrompt(PromptScreen):
    """Asks for the PID whose parentage is tracked."""

    heading = "Track the parentage of:"
    fields = (("pid", "PID"),)

    def parse(self, values: dict[str, str]) -> int:
        return parse_pid(values["pid"])


class ResultsTable(Container):
    """Container for the tabular results of an action."""

    DEFAULT_CSS = """
    ResultsTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def compose(self) -> ComposeResult:
        """Compose the results table."""
        yield DataTable(id="results")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#results", DataTable)
        table.cursor_type = "row"

    def fill(self, columns: list[str], rows: list[tuple]) -> None:
        """Replace the table's columns and rows."""
        table = self.query_one("#results", DataTable)
        table.clear(columns=True)
        if columns:
            table.add_columns(*columns)
            table.add_rows(rows)

    def reset(self) -> None:
        """Remove every column and row."""
        self.fill([], [])


class ProcessKittyApp(App):
    """Main prockitty application."""

    TITLE = "Process Kitty"
    SUB_TITLE = "Process inspection and comparison"

    CSS = """
    Screen {
        layout: vertical;
    }

    #menu {
        height: auto;
        padding: 1;
        border: solid $accent;
    }
    """

    BINDINGS = [
        ("1", "check_tools", "Sources"),
        ("2", "metrics", "Metrics"),
        ("3", "compare", "Compare"),
        ("4", "memory_filter", "Memory"),
        ("5", "parentage", "Parentage"),
        ("6", "list", "List"),
        ("7", "quit", "Exit"),
        ("q", "quit", "Quit"),
    ]

    def __init__(self, config: Config | None = None, provider: ProcessProvider | None = None) -> None:
        """Initialize the ProcessKittyApp."""
        super().__init__()
        self._config = config or Config()
        self._provider = provider or PsutilProvider()

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Static(MENU, id="menu")
        self._report_view = ReportView(id="report")
        self._results_table = ResultsTable()
        yield self._report_view
        yield self._results_table
        yield Footer()

    @property
    def report_view(self) -> ReportView:
        return self._report_view

    @property
    def results_table(self) -> ResultsTable:
        return self._results_table

    def _report_error(self, exc: ProcessKittyError) -> None:
        logger.warning("%s: %s", type(exc).__name__, exc)
        self.report_view.show(f"Error: {exc}")
        self.notify(str(exc), severity="error")

    def action_check_tools(self) -> None:
        """Check that every data source can be read."""
        self.results_table.reset()
        self.report_view.show(render_prerequisites(check_prerequisites()))

    def action_metrics(self) -> None:
        """Show system-wide memory, CPU and disk metrics."""
        self.results_table.reset()
        self.report_view.show("Collecting system metrics...")
        self.run_worker(self._collect_metrics, thread=True, exclusive=True, group="metrics")

    def _collect_metrics(self) -> None:
        """Sample metrics in a worker thread; the CPU sample blocks."""
        try:
            metrics = collect_metrics(sample_interval=self._config.sample_interval)
        except ProcessKittyError as exc:
            self.call_from_thread(self._report_error, exc)
            return
        self.call_from_thread(self.report_view.show, render_metrics(metrics))

    def action_list(self) -> None:
        """List the first processes with their command lines."""
        self.show_listing()

    def action_compare(self) -> None:
        """List processes, then ask which two to compare."""
        self.show_listing()
        self.push_screen(ComparePrompt(), self._on_compare_request)

    def action_memory_filter(self) -> None:
        """Ask for a threshold and list processes above it."""
        self.push_screen(ThresholdPrompt(), self._on_threshold)

    def action_parentage(self) -> None:
        """Ask for a PID and show its parent chain."""
        self.push_screen(PidPrompt(), self._on_parentage_pid)

    def action_quit(self) -> None:
        """Handle quit action."""
        self.exit()

    def _on_compare_request(self, request: tuple[int, int, AttributeKind] | None) -> None:
        if request is not None:
            self.show_comparison(*request)

    def _on_threshold(self, threshold: int | None) -> None:
        if threshold is not None:
            self.show_memory_filter(threshold)

    def _on_parentage_pid(self, pid: int | None) -> None:
        if pid is not None:
            self.show_parentage(pid)

    def show_listing(self) -> None:
        """Fill the results table with the process listing."""
        entries = list_processes(self._provider, limit=self._config.list_limit)
        self.results_table.fill(["PID", "CMD"], [(str(e.pid), e.command_line) for e in entries])
        self.report_view.show("Currently running processes and their PIDs:")

    def show_comparison(self, pid_a: int, pid_b: int, kind: AttributeKind) -> None:
        """Compare one attribute of two processes."""
        try:
            result = compare_processes(self._provider, pid_a, pid_b, kind)
        except ProcessKittyError as exc:
            self._report_error(exc)
            return
        self.report_view.show(result.describe())

    def show_memory_filter(self, threshold: int) -> None:
        """Fill the results table with processes above ``threshold`` KB of VSZ."""
        try:
            hits = filter_by_memory(self._provider, threshold)
        except ProcessKittyError as exc:
            self._report_error(exc)
            return
        self.results_table.fill(["PID", "VSZ", "COMMAND"], [(str(h.pid), str(h.vsz_kb), h.name) for h in hits])
        self.report_view.show(f"Processes using more than {threshold} KB of virtual memory: {len(hits)}")

    def show_parentage(self, pid: int) -> None:
        """Show the parent chain of ``pid``."""
        self.results_table.reset()
        try:
            chain = walk_parentage(self._provider, pid, max_depth=self._config.max_depth)
        except UnboundedChainError as exc:
            self._report_error(exc)
            self.report_view.show(f"Error: {exc}\nPartial chain: {exc.chain.describe()}")
            return
        except ProcessKittyError as exc:
            self._report_error(exc)
            return
        self.report_view.show(f"Parentage of {pid}:\n{chain.describe()}")
