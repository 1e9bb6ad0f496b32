"""Reading and parsing of the kernel's aggregate CPU counter line."""

import logging
from typing import Protocol

from cpubar.models import MAX_COUNTER, CounterField, Snapshot

logger = logging.getLogger(__name__)

PROC_STAT_PATH = "/proc/stat"

# Width of the "cpu " label in front of the aggregate counters.
LABEL_WIDTH = 4


class StatFormatError(ValueError):
    """Raised when the statistics text does not hold a valid counter line."""


class CounterSource(Protocol):
    """Anything that can hand back the full text of the statistics file."""

    def read(self) -> str:
        """Return the current file contents; raise OSError if unavailable."""
        ...


class ProcStatSource:
    """Counter source backed by a file on disk, ``/proc/stat`` by default."""

    def __init__(self, path: str = PROC_STAT_PATH) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def read(self) -> str:
        # One read() call so a partially consumed file is never parsed.
        with open(self._path, encoding="ascii") as handle:
            return handle.read()


def _parse_counter(token: str) -> int:
    if not (token.isascii() and token.isdigit()):
        raise StatFormatError(f"not a non-negative integer: {token!r}")
    value = int(token)
    if value > MAX_COUNTER:
        raise StatFormatError(f"counter exceeds 64 bits: {token}")
    return value


def parse_stat_text(text: str) -> Snapshot:
    """
    Parse the first line of ``/proc/stat`` text into a Snapshot.

    The four-character label is dropped without inspection and the rest must
    be exactly ten whitespace-separated counters in kernel column order.

    Raises:
        StatFormatError: if there is no first line or the counters are malformed.
    """
    lines = text.splitlines()
    if not lines:
        raise StatFormatError("no counter line")

    tokens = lines[0][LABEL_WIDTH:].split()
    if len(tokens) != len(CounterField):
        raise StatFormatError(f"expected {len(CounterField)} counters, got {len(tokens)}")

    return Snapshot.from_counts([_parse_counter(token) for token in tokens])


def format_stat_line(snapshot: Snapshot) -> str:
    """Render a snapshot as an aggregate counter line."""
    return "cpu  " + " ".join(str(count) for count in snapshot.counts())


class StatSnapshotReader:
    """
    Reads one Snapshot per call from a counter source.

    Any failure to read or parse is reported as ``None`` so callers can
    simply skip the sample; nothing is retried here.
    """

    def __init__(self, source: CounterSource | None = None) -> None:
        self._source = source if source is not None else ProcStatSource()

    @property
    def source(self) -> CounterSource:
        return self._source

    def read(self) -> Snapshot | None:
        try:
            text = self._source.read()
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Counter source unreadable: %s", exc)
            return None

        try:
            return parse_stat_text(text)
        except StatFormatError as exc:
            logger.debug("Malformed counter line: %s", exc)
            return None
