"""Data models for cpubar."""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

# Counters are unsigned 64-bit tick counts in the kernel.
MAX_COUNTER = 2**64 - 1


class CounterField(Enum):
    """CPU time columns of the aggregate ``/proc/stat`` line, in kernel order."""

    USER = "user"
    NICE = "nice"
    SYSTEM = "system"
    IDLE = "idle"
    IOWAIT = "iowait"
    IRQ = "irq"
    SOFTIRQ = "softirq"
    STEAL = "steal"
    GUEST = "guest"
    GUEST_NICE = "guest_nice"


NON_IDLE_FIELDS: tuple[CounterField, ...] = (
    CounterField.USER,
    CounterField.NICE,
    CounterField.SYSTEM,
    CounterField.IRQ,
    CounterField.SOFTIRQ,
    CounterField.STEAL,
)

# guest/guest_nice are already accounted in user/nice, so they belong to neither set.
IDLE_FIELDS: tuple[CounterField, ...] = (
    CounterField.IDLE,
    CounterField.IOWAIT,
)


@dataclass(slots=True, frozen=True)
class Snapshot:
    """Immutable set of cumulative CPU counters (clock ticks since boot)."""

    user: int
    nice: int
    system: int
    idle: int
    iowait: int
    irq: int
    softirq: int
    steal: int
    guest: int
    guest_nice: int

    def __post_init__(self) -> None:
        for value in self.counts():
            if not 0 <= value <= MAX_COUNTER:
                raise ValueError(f"counter out of range: {value}")

    def __getitem__(self, field: CounterField) -> int:
        return getattr(self, field.value)

    @classmethod
    def from_counts(cls, counts: Sequence[int]) -> "Snapshot":
        """Bind ten counts positionally to the counter fields."""
        if len(counts) != len(CounterField):
            raise ValueError(f"expected {len(CounterField)} counters, got {len(counts)}")
        return cls(**{field.value: count for field, count in zip(CounterField, counts)})

    def counts(self) -> tuple[int, ...]:
        """Return the counters in kernel column order."""
        return tuple(self[field] for field in CounterField)

    def sum_of(self, fields: Sequence[CounterField]) -> int:
        return sum(self[field] for field in fields)


@dataclass(slots=True, frozen=True)
class AggregatePair:
    """Busy and idle totals derived from one snapshot."""

    non_idle: int
    idle: int

    @property
    def total(self) -> int:
        return self.non_idle + self.idle

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "AggregatePair":
        return cls(
            non_idle=snapshot.sum_of(NON_IDLE_FIELDS),
            idle=snapshot.sum_of(IDLE_FIELDS),
        )


@dataclass(slots=True, frozen=True)
class EstimatorState:
    """Idle and grand totals seen at the last successful sample."""

    previous_idle_total: int = 0
    previous_grand_total: int = 0

    @classmethod
    def initial(cls) -> "EstimatorState":
        return cls(0, 0)

    @property
    def has_sample(self) -> bool:
        return self.previous_grand_total > 0
