"""Command line configuration for prockitty."""

import argparse
import logging
from dataclasses import dataclass

from textual.logging import TextualHandler

from prockitty import __version__
from prockitty.inspector import DEFAULT_LIST_LIMIT

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(slots=True, frozen=True)
class Config:
    """Settings parsed once at start-up and passed to the front ends."""

    memory_limit: int | None = None
    track_parentage: bool = False
    pid: int | None = None
    list_limit: int = DEFAULT_LIST_LIMIT
    sample_interval: float = 1.0
    max_depth: int | None = None
    log_level: str = "WARNING"
    log_file: str | None = None

    @property
    def interactive(self) -> bool:
        """True when no one-shot action was requested on the command line."""
        return self.memory_limit is None and not self.track_parentage


def _non_negative_int(text: str) -> int:
    text = text.strip()
    if not (text.isascii() and text.isdigit()):
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {text!r}")
    return int(text)


def _positive_int(text: str) -> int:
    value = _non_negative_int(text)
    if value == 0:
        raise argparse.ArgumentTypeError("expected a positive integer, got 0")
    return value


def _non_negative_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a number, got {text!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative number, got {text!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prockitty",
        description="Inspect, compare and filter running processes. "
        "Starts the interactive menu unless a one-shot action is given.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-m",
        "--memory-limit",
        type=_non_negative_int,
        metavar="KB",
        help="list processes whose virtual memory size exceeds KB",
    )
    parser.add_argument(
        "-t",
        "--track-parentage",
        action="store_true",
        help="print the parent chain of --pid up to PID 0",
    )
    parser.add_argument("-p", "--pid", type=_positive_int, help="target process for --track-parentage")
    parser.add_argument(
        "--list-limit",
        type=_positive_int,
        default=DEFAULT_LIST_LIMIT,
        metavar="N",
        help="number of processes shown by the process listing (default: %(default)s)",
    )
    parser.add_argument(
        "--sample-interval",
        type=_non_negative_float,
        default=1.0,
        metavar="SECONDS",
        help="CPU sampling window for system metrics (default: %(default)s)",
    )
    parser.add_argument(
        "--max-depth",
        type=_positive_int,
        metavar="N",
        help="bound on parentage chain length (default: number of processes)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging level (default: %(default)s)",
    )
    parser.add_argument("--log-file", metavar="PATH", help="write log records to PATH")
    return parser


def parse_args(argv: list[str] | None = None) -> Config:
    """Parse command line arguments into a Config; exits with status 2 on usage errors."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.track_parentage and args.pid is None:
        parser.error("--track-parentage requires --pid")
    return Config(
        memory_limit=args.memory_limit,
        track_parentage=args.track_parentage,
        pid=args.pid,
        list_limit=args.list_limit,
        sample_interval=args.sample_interval,
        max_depth=args.max_depth,
        log_level=args.log_level,
        log_file=args.log_file,
    )


def configure_logging(config: Config) -> None:
    """Install the root log handler for this run."""
    if config.log_file:
        handler: logging.Handler = logging.FileHandler(config.log_file)
    elif config.interactive:
        # Stderr output would corrupt the Textual screen
        handler = TextualHandler()
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=config.log_level, handlers=[handler], force=True)
