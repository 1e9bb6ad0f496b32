"""CPU utilization from successive cumulative counter totals."""

import logging

from cpubar.models import AggregatePair, EstimatorState

logger = logging.getLogger(__name__)


def step(current: AggregatePair, prior: EstimatorState) -> tuple[float, EstimatorState]:
    """
    Compute the busy fraction since the prior sample.

    percent = (total_delta - idle_delta) / total_delta, where both deltas are
    taken against the idle and grand totals stored in ``prior``. The new state
    always records the current totals.

    Degenerate inputs yield 0.0 instead of a non-finite or huge value:
    no prior sample yet, no elapsed ticks, or counters that went backwards
    (reset after reboot or wraparound).

    Args:
        current: Busy/idle totals of the newest snapshot.
        prior: Totals remembered from the previous successful sample.

    Returns:
        The busy fraction (not clamped) and the replacement state.
    """
    idle = current.idle
    total = current.total
    new_state = EstimatorState(previous_idle_total=idle, previous_grand_total=total)

    if not prior.has_sample:
        return 0.0, new_state

    if idle < prior.previous_idle_total or total < prior.previous_grand_total:
        logger.info(
            "CPU counters went backwards (idle %d -> %d, total %d -> %d); resetting",
            prior.previous_idle_total,
            idle,
            prior.previous_grand_total,
            total,
        )
        return 0.0, new_state

    idle_delta = idle - prior.previous_idle_total
    total_delta = total - prior.previous_grand_total
    if total_delta == 0:
        return 0.0, new_state

    return (total_delta - idle_delta) / total_delta, new_state


class UtilizationEstimator:
    """Holds the estimator state and folds successive readings through ``step``."""

    def __init__(self, state: EstimatorState | None = None) -> None:
        self._state = state if state is not None else EstimatorState.initial()

    @property
    def state(self) -> EstimatorState:
        return self._state

    def update(self, current: AggregatePair) -> float:
        percent, self._state = step(current, self._state)
        return percent

    def reset(self) -> None:
        self._state = EstimatorState.initial()
