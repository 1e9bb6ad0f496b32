"""cpubar - Main Textual application."""

import logging
import math
from queue import Empty, Queue

from textual import events
from textual.app import App, ComposeResult
from textual.css.query import NoMatches
from textual.logging import TextualHandler
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Footer

from cpubar.monitor import SAMPLE_INTERVAL, CpuSampler
from cpubar.procstat import StatSnapshotReader

logger = logging.getLogger(__name__)

BAR_TITLE = " CPU Usage "
FILL_CHAR = "█"

# The UI drains the sampler queue faster than it is filled.
DRAIN_INTERVAL = SAMPLE_INTERVAL / 2


def filled_rows(height: int, percent: float) -> int:
    """Number of bottom rows to paint for a busy fraction, within [0, height]."""
    if height <= 0 or not math.isfinite(percent):
        return 0
    return min(max(math.ceil(height * percent), 0), height)


class CpuBar(Widget):
    """Vertical bar graph of CPU usage, filled from the bottom."""

    DEFAULT_CSS = """
    CpuBar {
        height: 1fr;
        width: 1fr;
        border: double $primary;
        border-title-align: center;
    }
    """

    percent: reactive[float] = reactive(0.0)
    bar_height: reactive[int] = reactive(0)

    def on_mount(self) -> None:
        """Pick up the title and the initial content height."""
        self.border_title = BAR_TITLE
        self.bar_height = self.size.height

    def on_resize(self, event: events.Resize) -> None:
        """Track the rows available to the bar."""
        self.bar_height = self.size.height

    @property
    def filled_rows(self) -> int:
        return filled_rows(self.bar_height, self.percent)

    def render(self) -> str:
        """Paint empty rows above filled rows."""
        width = self.size.width
        filled = self.filled_rows
        rows = [" " * width] * (self.bar_height - filled) + [FILL_CHAR * width] * filled
        return "\n".join(rows)


class CpuBarApp(App):
    """Main cpubar application."""

    TITLE = "cpubar"
    SUB_TITLE = "CPU usage bar"

    CSS = """
    Screen {
        layout: vertical;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(self, reader: StatSnapshotReader | None = None) -> None:
        """
        Initialize the CpuBarApp.

        Args:
            reader: Snapshot reader for the sampler. Defaults to /proc/stat.
        """
        super().__init__()
        self._update_queue: Queue[float] = Queue()
        self._sampler = CpuSampler(self._update_queue, reader=reader)

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield CpuBar(id="cpu-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Start the sampler when the app is mounted."""
        self._sampler.start()
        self.set_interval(DRAIN_INTERVAL, self._check_for_updates)

    def on_unmount(self) -> None:
        self._sampler.stop()

    def _check_for_updates(self) -> None:
        """Apply the most recent fraction published by the sampler."""
        percent = None
        while True:
            try:
                percent = self._update_queue.get_nowait()
            except Empty:
                break

        if percent is not None:
            self._update_bar(percent)

    def _update_bar(self, percent: float) -> None:
        try:
            bar = self.query_one("#cpu-bar", CpuBar)
        except NoMatches:
            logger.debug("CPU bar not mounted; dropping update %.3f", percent)
            return
        bar.percent = percent

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._sampler.stop()
        self.exit()


def main() -> None:
    """Entry point for the cpubar application."""
    logging.basicConfig(level=logging.INFO, handlers=[TextualHandler()])
    app = CpuBarApp()
    app.run()


if __name__ == "__main__":
    main()
