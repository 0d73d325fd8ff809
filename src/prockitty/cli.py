"""Command line entry point for prockitty."""

import logging

from rich.console import Console
from rich.table import Table

from prockitty.app import ProcessKittyApp
from prockitty.config import Config, configure_logging, parse_args
from prockitty.errors import ProcessKittyError, UnboundedChainError
from prockitty.inspector import filter_by_memory, walk_parentage
from prockitty.prereqs import PROCESS_TABLE, require
from prockitty.provider import ProcessProvider, PsutilProvider

logger = logging.getLogger(__name__)


def run_headless(config: Config, provider: ProcessProvider, console: Console) -> int:
    """
    Run the actions requested on the command line and print their results.

    Returns:
        Exit status: 0 on success, 1 if an error was reported.
    """
    status = 0

    if config.memory_limit is not None:
        try:
            hits = filter_by_memory(provider, config.memory_limit)
        except ProcessKittyError as exc:
            console.print(f"Error: {exc}", markup=False)
            status = 1
        else:
            table = Table(title=f"Processes using more than {config.memory_limit} KB of virtual memory")
            table.add_column("PID", justify="right")
            table.add_column("VSZ", justify="right")
            table.add_column("COMMAND")
            for hit in hits:
                table.add_row(str(hit.pid), str(hit.vsz_kb), hit.name)
            console.print(table)

    if config.track_parentage:
        try:
            chain = walk_parentage(provider, config.pid, max_depth=config.max_depth)
        except UnboundedChainError as exc:
            console.print(f"Error: {exc}", markup=False)
            console.print(f"Partial chain: {exc.chain.describe()}", markup=False)
            status = 1
        except ProcessKittyError as exc:
            console.print(f"Error: {exc}", markup=False)
            status = 1
        else:
            console.print(f"Parentage of {config.pid}:", markup=False)
            console.print(chain.describe(), markup=False)

    return status


def main(argv: list[str] | None = None) -> int:
    """Entry point for the prockitty command."""
    config = parse_args(argv)
    configure_logging(config)
    logger.debug("starting with %s", config)

    if config.interactive:
        app = ProcessKittyApp(config, PsutilProvider())
        app.run()
        return 0

    console = Console()
    try:
        require(PROCESS_TABLE)
    except ProcessKittyError as exc:
        console.print(f"Error: {exc}", markup=False)
        return 1
    return run_headless(config, PsutilProvider(), console)


if __name__ == "__main__":
    raise SystemExit(main())
