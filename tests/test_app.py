"""Tests for cpubar application."""

import math

import pytest

from cpubar.app import BAR_TITLE, FILL_CHAR, CpuBar, CpuBarApp, filled_rows
from cpubar.procstat import StatSnapshotReader


class SilentSource:
    """Counter source that never yields counters, so nothing is published."""

    def read(self) -> str:
        raise OSError("no counters")


class RisingSource:
    """Counter source whose busy time grows twice as fast as idle time."""

    def __init__(self, good_reads: int | None = None) -> None:
        self._reads = 0
        self._good_reads = good_reads

    def read(self) -> str:
        self._reads += 1
        if self._good_reads is not None and self._reads > self._good_reads:
            raise OSError("counter file vanished")
        busy = 200 * self._reads
        idle = 100 * self._reads
        return f"cpu  {busy} 0 0 {idle} 0 0 0 0 0 0\n"


def silent_app() -> CpuBarApp:
    return CpuBarApp(reader=StatSnapshotReader(SilentSource()))


def painted_rows(bar: CpuBar) -> int:
    return sum(1 for line in bar.render().split("\n") if line and set(line) == {FILL_CHAR})


class TestFilledRows:
    """Tests for filled_rows."""

    def test_reference_scenario(self):
        """Test 2/3 usage on ten rows paints seven."""
        assert filled_rows(10, 200 / 300) == 7

    def test_within_bounds(self):
        """Test the row count stays within [0, height] for fractions in [0, 1]."""
        for height in range(0, 40):
            for step in range(0, 101):
                rows = filled_rows(height, step / 100)
                assert 0 <= rows <= height

    def test_rounds_up(self):
        """Test any non-zero usage paints at least one row."""
        assert filled_rows(10, 0.0) == 0
        assert filled_rows(10, 0.001) == 1
        assert filled_rows(10, 0.5) == 5
        assert filled_rows(10, 1.0) == 10

    def test_out_of_range_fractions_are_clamped(self):
        """Test fractions outside [0, 1] never paint outside the panel."""
        assert filled_rows(10, -0.5) == 0
        assert filled_rows(10, 1.7) == 10

    def test_non_finite_fraction_paints_nothing(self):
        """Test NaN and infinities paint zero rows."""
        assert filled_rows(10, math.nan) == 0
        assert filled_rows(10, math.inf) == 0
        assert filled_rows(10, -math.inf) == 0

    def test_non_positive_height(self):
        """Test an empty or negative region paints nothing."""
        assert filled_rows(0, 0.9) == 0
        assert filled_rows(-3, 0.9) == 0


@pytest.mark.asyncio
async def test_app_creation():
    """Test CpuBarApp can be instantiated."""
    app = silent_app()
    assert app.title == "cpubar"
    assert app._sampler is not None
    assert app._update_queue is not None


@pytest.mark.asyncio
async def test_app_compose():
    """Test CpuBarApp composes the titled bar."""
    app = silent_app()
    async with app.run_test() as pilot:
        bar = pilot.app.query_one("#cpu-bar", CpuBar)
        assert bar is not None
        assert "CPU Usage" in str(bar.border_title)
        assert BAR_TITLE.strip() == "CPU Usage"


@pytest.mark.asyncio
async def test_app_starts_sampler():
    """Test the sampler runs while the app is mounted."""
    app = silent_app()
    async with app.run_test() as pilot:
        await pilot.pause()
        assert app._sampler.is_running


@pytest.mark.asyncio
async def test_app_quit_binding():
    """Test that 'q' binding triggers quit and stops the sampler."""
    app = silent_app()
    async with app.run_test() as pilot:
        await pilot.press("q")
        # App should be exiting
        assert pilot.app._exit
        assert not app._sampler.is_running


@pytest.mark.asyncio
async def test_bar_height_follows_content_height():
    """Test the bar tracks the rows available inside its border."""
    app = silent_app()
    async with app.run_test(size=(30, 13)) as pilot:
        await pilot.pause()
        bar = pilot.app.query_one(CpuBar)

        assert bar.bar_height == bar.size.height
        assert bar.bar_height > 0


@pytest.mark.asyncio
async def test_percent_change_repaints():
    """Test a new fraction repaints the matching number of bottom rows."""
    app = silent_app()
    async with app.run_test(size=(30, 13)) as pilot:
        await pilot.pause()
        bar = pilot.app.query_one(CpuBar)
        assert painted_rows(bar) == 0

        bar.percent = 0.5
        await pilot.pause()

        expected = math.ceil(bar.bar_height * 0.5)
        assert bar.filled_rows == expected
        assert painted_rows(bar) == expected

        lines = bar.render().split("\n")
        assert len(lines) == bar.bar_height
        # Filled rows sit at the bottom
        assert all(set(line) == {FILL_CHAR} for line in lines[-expected:])
        assert all(FILL_CHAR not in line for line in lines[:-expected])


@pytest.mark.asyncio
async def test_resize_recomputes_rows_without_tick():
    """Test growing the terminal repaints at the same fraction."""
    app = silent_app()
    async with app.run_test(size=(30, 13)) as pilot:
        await pilot.pause()
        bar = pilot.app.query_one(CpuBar)
        bar.percent = 0.5
        await pilot.pause()
        old_height = bar.bar_height
        old_rows = bar.filled_rows

        await pilot.resize_terminal(30, 23)
        await pilot.pause()

        assert bar.percent == 0.5
        assert bar.bar_height == old_height + 10
        assert bar.filled_rows == math.ceil(bar.bar_height * 0.5)
        assert bar.filled_rows > old_rows
        assert painted_rows(bar) == bar.filled_rows


@pytest.mark.asyncio
async def test_check_for_updates_keeps_latest():
    """Test the UI applies only the most recent queued fraction."""
    app = silent_app()
    async with app.run_test() as pilot:
        bar = pilot.app.query_one(CpuBar)
        for percent in (0.1, 0.2, 0.9):
            app._update_queue.put(percent)

        app._check_for_updates()

        assert bar.percent == 0.9
        assert app._update_queue.empty()


@pytest.mark.asyncio
async def test_check_for_updates_with_empty_queue():
    """Test an empty queue leaves the bar as it was."""
    app = silent_app()
    async with app.run_test() as pilot:
        bar = pilot.app.query_one(CpuBar)
        bar.percent = 0.3

        app._check_for_updates()

        assert bar.percent == 0.3


@pytest.mark.asyncio
async def test_app_receives_updates_from_sampler():
    """Test live samples reach the bar."""
    app = CpuBarApp(reader=StatSnapshotReader(RisingSource()))
    async with app.run_test(size=(30, 13)) as pilot:
        await pilot.pause(1.0)

        bar = pilot.app.query_one(CpuBar)
        assert bar.percent == pytest.approx(2 / 3)
        assert bar.filled_rows == math.ceil(bar.bar_height * 2 / 3)


@pytest.mark.asyncio
async def test_bar_keeps_last_value_when_source_fails():
    """Test failed reads leave the last rendered bar in place."""
    app = CpuBarApp(reader=StatSnapshotReader(RisingSource(good_reads=2)))
    async with app.run_test(size=(30, 13)) as pilot:
        await pilot.pause(0.6)
        bar = pilot.app.query_one(CpuBar)
        rows_before = bar.filled_rows
        assert bar.percent == pytest.approx(2 / 3)

        await pilot.pause(1.0)

        assert app._sampler.ticks > 2
        assert bar.percent == pytest.approx(2 / 3)
        assert bar.filled_rows == rows_before
