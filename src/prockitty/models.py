"""Data models for prockitty."""

from dataclasses import dataclass
from enum import Enum

from prockitty.errors import InvalidInputError


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable point-in-time snapshot of a process."""

    pid: int
    ppid: int
    name: str
    command_line: str
    status: str  # 'R', 'S', 'Z', 'D', etc.
    cpu_percent: float  # lifetime CPU time / elapsed time, like ps %cpu
    rss_kb: int
    vsz_kb: int
    threads: int
    start_time: float  # Epoch seconds
    cpu_time: float  # User + system seconds
    priority: int
    nice: int


@dataclass(slots=True, frozen=True)
class ProcessEntry:
    """A row of the process listing."""

    pid: int
    command_line: str


@dataclass(slots=True, frozen=True)
class MemoryHit:
    """A process whose virtual memory size exceeded the filter threshold."""

    pid: int
    vsz_kb: int
    name: str


class AttributeKind(Enum):
    """Process attributes that can be compared between two PIDs."""

    CPU_USAGE = "cpu_usage"
    RSS = "rss"
    VSZ = "vsz"
    STATE = "state"
    NLWP = "nlwp"
    START_TIME = "start_time"
    CPU_TIME = "cpu_time"
    PRIORITY = "priority"
    NICE = "nice"

    @property
    def label(self) -> str:
        """Human-readable menu label."""
        return _LABELS[self]

    @property
    def choice(self) -> int:
        """Menu number of the attribute (1-based)."""
        return list(AttributeKind).index(self) + 1

    @property
    def numeric(self) -> bool:
        """Whether values of this attribute are ordered numerically."""
        return self not in (AttributeKind.STATE, AttributeKind.START_TIME)

    @classmethod
    def from_choice(cls, text: str) -> "AttributeKind":
        """Resolve a menu number or attribute name typed by the user."""
        text = text.strip()
        if text.isascii() and text.isdigit():
            index = int(text)
            kinds = list(cls)
            if 1 <= index <= len(kinds):
                return kinds[index - 1]
        else:
            try:
                return cls(text.lower())
            except ValueError:
                pass
        raise InvalidInputError(f"Invalid selection or unsupported attribute: {text!r}")


_LABELS = {
    AttributeKind.CPU_USAGE: "CPU Usage",
    AttributeKind.RSS: "Memory Usage (RSS)",
    AttributeKind.VSZ: "Virtual Memory Size (VSZ)",
    AttributeKind.STATE: "Process State",
    AttributeKind.NLWP: "Number of Threads (NLWP)",
    AttributeKind.START_TIME: "Start Time",
    AttributeKind.CPU_TIME: "CPU Time",
    AttributeKind.PRIORITY: "Priority",
    AttributeKind.NICE: "Nice Value",
}


class Outcome(Enum):
    """Result of comparing one attribute between two processes."""

    FIRST_GREATER = "first_greater"
    SECOND_GREATER = "second_greater"
    EQUAL = "equal"
    NOT_NUMERIC = "not_numeric"
    UNAVAILABLE = "unavailable"


@dataclass(slots=True, frozen=True)
class ComparisonResult:
    """Values of one attribute for two PIDs and how they compare."""

    kind: AttributeKind
    pid_a: int
    pid_b: int
    value_a: str | None
    value_b: str | None
    outcome: Outcome

    def describe(self) -> str:
        """Render the comparison as the lines shown to the user."""
        if self.outcome is Outcome.UNAVAILABLE:
            return "Could not retrieve values for comparison."

        attribute = self.kind.value
        lines = [
            f"Process {self.pid_a} {attribute}: {self.value_a}",
            f"Process {self.pid_b} {attribute}: {self.value_b}",
        ]
        if self.outcome is Outcome.NOT_NUMERIC:
            lines.append(
                f"Comparison for attribute {attribute} is not numeric. "
                "Please review the values above."
            )
        elif self.outcome is Outcome.FIRST_GREATER:
            lines.append(f"Process {self.pid_a} has a higher {attribute} value.")
        elif self.outcome is Outcome.SECOND_GREATER:
            lines.append(f"Process {self.pid_b} has a higher {attribute} value.")
        else:
            lines.append(f"Both processes have equal {attribute} values.")
        return "\n".join(lines)


@dataclass(slots=True, frozen=True)
class ChainLink:
    """One process in a parentage chain."""

    pid: int
    name: str


@dataclass(slots=True, frozen=True)
class ParentageChain:
    """Ancestry of a process, from the process itself up to PID 0."""

    links: tuple[ChainLink, ...]
    complete: bool

    @property
    def pids(self) -> list[int]:
        """PIDs of the chain in walk order."""
        return [link.pid for link in self.links]

    def describe(self) -> str:
        """Render the chain as an arrow-separated line."""
        parts = [f"{link.pid} ({link.name})" if link.name else str(link.pid) for link in self.links]
        text = " -> ".join(parts)
        if not self.complete:
            text += "\n(incomplete: the walk stopped before reaching PID 0)"
        return text
