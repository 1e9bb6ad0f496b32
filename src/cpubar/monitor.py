"""Fixed-period CPU sampling engine for cpubar."""

import logging
import threading
import time
from queue import Queue

from cpubar.estimator import UtilizationEstimator
from cpubar.models import AggregatePair, EstimatorState
from cpubar.procstat import StatSnapshotReader

logger = logging.getLogger(__name__)

SAMPLE_INTERVAL = 0.25


class CpuSampler:
    """
    Samples aggregate CPU counters every SAMPLE_INTERVAL seconds.

    Runs in a separate daemon thread so the counter read never blocks the UI,
    and pushes each new utilization fraction to a thread-safe Queue.
    A tick whose read fails publishes nothing and leaves the state alone.
    """

    def __init__(
        self,
        update_queue: Queue[float],
        reader: StatSnapshotReader | None = None,
    ) -> None:
        """
        Initialize the CpuSampler.

        Args:
            update_queue: Thread-safe queue to push utilization fractions to.
            reader: Snapshot reader to sample. Defaults to one over /proc/stat.
        """
        self._queue = update_queue
        self._reader = reader if reader is not None else StatSnapshotReader()
        self._estimator = UtilizationEstimator()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._ticks = 0
        self._missed_ticks = 0

    @property
    def interval(self) -> float:
        """Sampling period in seconds."""
        return SAMPLE_INTERVAL

    @property
    def state(self) -> EstimatorState:
        """Totals remembered from the last successful sample."""
        return self._estimator.state

    @property
    def ticks(self) -> int:
        """Number of ticks performed, successful or not."""
        return self._ticks

    @property
    def missed_ticks(self) -> int:
        """Number of deadlines dropped because a tick overran."""
        return self._missed_ticks

    @property
    def is_running(self) -> bool:
        """Check if the sampler thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the sampling thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="CpuSampler",
        )
        self._thread.start()
        logger.info("CPU sampler started (every %.2fs)", SAMPLE_INTERVAL)

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the sampling thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            logger.info("CPU sampler stopped after %d ticks", self._ticks)

    def tick(self) -> float | None:
        """
        Take one sample and publish the resulting fraction.

        Returns:
            The published fraction, or None if no snapshot could be read.
        """
        self._ticks += 1
        snapshot = self._reader.read()
        if snapshot is None:
            logger.debug("No CPU counters on tick %d; keeping previous state", self._ticks)
            return None

        percent = self._estimator.update(AggregatePair.from_snapshot(snapshot))
        self._queue.put(percent)
        return percent

    def _poll_loop(self) -> None:
        """Main sampling loop running in the background thread."""
        deadline = time.monotonic()
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("CPU sample failed on tick %d", self._ticks)

            deadline += SAMPLE_INTERVAL
            now = time.monotonic()
            if deadline < now:
                # Overran one or more periods: drop them instead of catching up.
                missed = int((now - deadline) // SAMPLE_INTERVAL) + 1
                self._missed_ticks += missed
                deadline += missed * SAMPLE_INTERVAL
                logger.debug("Sampler fell behind; dropped %d tick(s)", missed)

            self._stop_event.wait(timeout=deadline - now)
