"""Tests for the prockitty application."""

import pytest
from textual.widgets import DataTable, Input

from prockitty import app as app_module
from prockitty.app import (
    ComparePrompt,
    PidPrompt,
    ProcessKittyApp,
    ThresholdPrompt,
)
from prockitty.config import Config
from prockitty.errors import PrerequisiteMissingError
from prockitty.models import AttributeKind
from prockitty.provider import StaticProvider

from conftest import make_record


def _app(table: StaticProvider, **config) -> ProcessKittyApp:
    config.setdefault("sample_interval", 0.0)
    return ProcessKittyApp(Config(**config), table)


def _report(app: ProcessKittyApp) -> str:
    return app.report_view.last_report


def _rows(app: ProcessKittyApp) -> int:
    return app.results_table.query_one(DataTable).row_count


@pytest.mark.asyncio
async def test_app_creation(table):
    """Test ProcessKittyApp can be instantiated."""
    app = _app(table)
    assert app.title == "Process Kitty"
    assert app.sub_title == "Process inspection and comparison"


@pytest.mark.asyncio
async def test_app_compose(table):
    """Test ProcessKittyApp composes correctly."""
    app = _app(table)
    async with app.run_test() as pilot:
        assert pilot.app.query_one("#menu") is not None
        assert pilot.app.query_one("#report") is not None
        assert pilot.app.query_one("#results") is not None


@pytest.mark.asyncio
async def test_app_quit_binding(table):
    """Test that 'q' binding triggers quit."""
    app = _app(table)
    async with app.run_test() as pilot:
        await pilot.press("q")
        assert pilot.app._exit


@pytest.mark.asyncio
async def test_exit_menu_choice(table):
    """Test that menu choice 7 exits."""
    app = _app(table)
    async with app.run_test() as pilot:
        await pilot.press("7")
        assert pilot.app._exit


@pytest.mark.asyncio
async def test_list_processes(table):
    """Test menu choice 6 lists processes."""
    app = _app(table)
    async with app.run_test() as pilot:
        await pilot.press("6")
        await pilot.pause()

        assert _rows(pilot.app) == 6
        assert "Currently running processes" in _report(pilot.app)


@pytest.mark.asyncio
async def test_list_respects_limit(table):
    """Test the listing is capped by the configured limit."""
    app = _app(table, list_limit=2)
    async with app.run_test() as pilot:
        await pilot.press("6")
        await pilot.pause()

        assert _rows(pilot.app) == 2


@pytest.mark.asyncio
async def test_check_sources(table):
    """Test menu choice 1 reports the data sources."""
    app = _app(table)
    async with app.run_test() as pilot:
        await pilot.press("1")
        await pilot.pause()

        assert "process table" in _report(pilot.app)


@pytest.mark.asyncio
async def test_metrics(table):
    """Test menu choice 2 shows system metrics."""
    app = _app(table)
    async with app.run_test() as pilot:
        await pilot.press("2")
        await pilot.app.workers.wait_for_complete()
        await pilot.pause()

        report = _report(pilot.app)
        assert "Memory and Swap Usage:" in report
        assert "Top Processes (by CPU usage):" in report


@pytest.mark.asyncio
async def test_compare_flow(table):
    """Test the compare prompt collects PIDs and attribute, then reports."""
    app = _app(table)
    async with app.run_test() as pilot:
        await pilot.press("3")
        await pilot.pause()
        assert isinstance(pilot.app.screen, ComparePrompt)
        # The listing is shown before asking
        assert _rows(pilot.app) == 6

        await pilot.press("1", "0", "0", "enter", "2", "0", "0", "enter", "1", "enter")
        await pilot.pause()

        assert not isinstance(pilot.app.screen, ComparePrompt)
        assert "Both processes have equal cpu_usage values." in _report(pilot.app)


@pytest.mark.asyncio
async def test_compare_invalid_input_reprompts(table):
    """Test an invalid attribute keeps the prompt open with an error."""
    app = _app(table)
    async with app.run_test() as pilot:
        await pilot.press("3")
        await pilot.pause()

        await pilot.press("1", "0", "0", "enter", "2", "0", "0", "enter", "4", "2", "enter")
        await pilot.pause()

        screen = pilot.app.screen
        assert isinstance(screen, ComparePrompt)
        assert "Invalid selection" in screen.error_text


@pytest.mark.asyncio
async def test_prompt_escape_cancels(table):
    """Test Escape dismisses a prompt without running the action."""
    app = _app(table)
    async with app.run_test() as pilot:
        await pilot.press("5")
        await pilot.pause()
        assert isinstance(pilot.app.screen, PidPrompt)

        await pilot.press("escape")
        await pilot.pause()

        assert not isinstance(pilot.app.screen, PidPrompt)
        assert _report(pilot.app) == ""


@pytest.mark.asyncio
async def test_memory_filter_flow(table):
    """Test the threshold prompt fills the results table."""
    app = _app(table)
    async with app.run_test() as pilot:
        await pilot.press("4")
        await pilot.pause()
        assert isinstance(pilot.app.screen, ThresholdPrompt)

        await pilot.press("1", "0", "0", "0", "enter")
        await pilot.pause()

        assert _rows(pilot.app) == 2
        assert "more than 1000 KB" in _report(pilot.app)


@pytest.mark.asyncio
async def test_memory_filter_rejects_text(table):
    """Test a non-numeric threshold is a usage error, not zero."""
    app = _app(table)
    async with app.run_test() as pilot:
        await pilot.press("4")
        await pilot.pause()

        await pilot.press("a", "b", "c", "enter")
        await pilot.pause()

        screen = pilot.app.screen
        assert isinstance(screen, ThresholdPrompt)
        assert "threshold" in screen.error_text


@pytest.mark.asyncio
async def test_parentage_flow(table):
    """Test the PID prompt shows the parent chain."""
    app = _app(table)
    async with app.run_test() as pilot:
        await pilot.press("5")
        await pilot.pause()
        await pilot.press("3", "0", "0", "enter")
        await pilot.pause()

        assert "300 (python3) -> 200 (bash) -> 100 (sshd) -> 1 (init) -> 0" in _report(pilot.app)


@pytest.mark.asyncio
async def test_show_parentage_not_found(table):
    """Test a missing PID is reported and the app keeps running."""
    app = _app(table)
    async with app.run_test() as pilot:
        pilot.app.show_parentage(9999)
        await pilot.pause()

        assert _report(pilot.app) == "Error: Process 9999 not found."
        assert not pilot.app._exit


@pytest.mark.asyncio
async def test_show_parentage_cycle():
    """Test a cycle is reported with the partial chain."""
    provider = StaticProvider([make_record(10, ppid=11), make_record(11, ppid=10)])
    app = _app(provider)
    async with app.run_test() as pilot:
        pilot.app.show_parentage(10)
        await pilot.pause()

        report = _report(pilot.app)
        assert "Cycle detected" in report
        assert "Partial chain: 10 (proc10) -> 11 (proc11)" in report


@pytest.mark.asyncio
async def test_show_comparison_missing_pid(table):
    """Test comparing with a missing PID reports the retrieval failure."""
    app = _app(table)
    async with app.run_test() as pilot:
        pilot.app.show_comparison(100, 9999, AttributeKind.RSS)
        await pilot.pause()

        assert _report(pilot.app) == "Could not retrieve values for comparison."


@pytest.mark.asyncio
async def test_metrics_error_reported(table, monkeypatch):
    """Test a metrics failure in the worker is shown and the app keeps running."""

    def unavailable(**kwargs):
        raise PrerequisiteMissingError("CPU statistics unavailable")

    monkeypatch.setattr(app_module, "collect_metrics", unavailable)
    app = _app(table)
    async with app.run_test() as pilot:
        await pilot.press("2")
        await pilot.app.workers.wait_for_complete()
        await pilot.pause()

        assert _report(pilot.app) == "Error: CPU statistics unavailable"
        assert not pilot.app._exit


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["²", "١٢"])
async def test_pid_prompt_rejects_unicode_digits(table, text):
    """Test non-ASCII digits keep the PID prompt open with an error."""
    app = _app(table)
    async with app.run_test() as pilot:
        await pilot.press("5")
        await pilot.pause()

        pilot.app.screen.query_one("#pid", Input).value = text
        await pilot.press("enter")
        await pilot.pause()

        screen = pilot.app.screen
        assert isinstance(screen, PidPrompt)
        assert "Invalid PID" in screen.error_text


@pytest.mark.parametrize("prompt", [ComparePrompt, ThresholdPrompt, PidPrompt])
def test_prompt_fields_are_immutable(prompt):
    """Test each prompt declares its inputs as a tuple of (id, placeholder)."""
    assert isinstance(prompt.fields, tuple)
    assert all(len(field) == 2 for field in prompt.fields)
