"""File viewer state: loaded content and scroll offset."""

import logging
from enum import Enum
from pathlib import Path

from tcmwalker.config import TAB_WIDTH
from tcmwalker.exceptions import BinaryFileError, FileLoadError, FileMissingError

logger = logging.getLogger(__name__)

BINARY_SAMPLE_SIZE = 1024
# Rows taken by the viewer's border
BORDER_ROWS = 2


class ScrollDirection(Enum):
    """Scroll moves understood by the viewer."""

    UP = "up"
    DOWN = "down"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    TOP = "top"
    END = "end"


def tabs_to_spaces(text: str, width: int = TAB_WIDTH) -> str:
    """Replace each tab character with a fixed run of spaces."""
    return text.replace("\t", " " * width)


def is_binary(content: bytes) -> bool:
    """Check if byte content looks binary rather than text."""
    sample = content[:BINARY_SAMPLE_SIZE]
    if b"\x00" in sample:
        return True

    control_bytes = sum(1 for byte in sample if byte < 32 and byte not in (9, 10, 12, 13, 27))
    return control_bytes > len(sample) * 0.3


class Viewer:
    """
    Holds one file's lines and the current scroll offset.

    The presentation layer reports its visible height through ``resize``;
    all offsets are clamped to ``[0, max_offset]``.
    """

    def __init__(self, height: int = 0) -> None:
        self._path: Path | None = None
        self._lines: list[str] = []
        self._offset: int = 0
        self._height: int = height

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def lines(self) -> list[str]:
        return self._lines

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def height(self) -> int:
        return self._height

    @property
    def total_lines(self) -> int:
        return len(self._lines)

    @property
    def is_loaded(self) -> bool:
        return self._path is not None

    @property
    def page_size(self) -> int:
        """Lines moved by a page scroll."""
        return max(0, self._height - BORDER_ROWS)

    @property
    def max_offset(self) -> int:
        return max(0, self.total_lines - self.page_size)

    def load(self, path: Path) -> None:
        """
        Load a file, replacing any previous content.

        Raises:
            FileMissingError: The path does not exist.
            BinaryFileError: The content looks binary.
            FileLoadError: The path cannot be read.
        """
        path = Path(path)
        if not path.exists():
            raise FileMissingError(path)

        try:
            content = path.read_bytes()
        except OSError as e:
            raise FileLoadError(path, f"File -> [{path}] can't be read: {e}") from e
        if is_binary(content):
            raise BinaryFileError(path)

        text = tabs_to_spaces(content.decode("utf-8", errors="replace"))
        self._path = path
        self._lines = text.splitlines()
        self._offset = 0
        logger.debug("Loaded %s (%d lines)", path, len(self._lines))

    def clear(self) -> None:
        """Drop the loaded content and reset the offset."""
        self._path = None
        self._lines = []
        self._offset = 0

    def resize(self, height: int) -> None:
        """Set the visible height and re-clamp the offset."""
        self._height = max(0, height)
        self._offset = min(self._offset, self.max_offset)

    def scroll(self, direction: ScrollDirection) -> bool:
        """
        Move the offset.

        Returns:
            True if the offset changed, False for a clamped no-op.
        """
        target = {
            ScrollDirection.UP: self._offset - 1,
            ScrollDirection.DOWN: self._offset + 1,
            ScrollDirection.PAGE_UP: self._offset - self.page_size,
            ScrollDirection.PAGE_DOWN: self._offset + self.page_size,
            ScrollDirection.TOP: 0,
            ScrollDirection.END: self.max_offset,
        }[direction]
        return self.set_offset(target)

    def set_offset(self, offset: int) -> bool:
        """Set a clamped offset, returning whether it changed."""
        new_offset = min(max(0, offset), self.max_offset)
        if new_offset == self._offset:
            return False
        self._offset = new_offset
        return True

    def visible_lines(self) -> list[str]:
        """Lines currently inside the viewport."""
        if self.page_size == 0:
            return self._lines[self._offset :]
        return self._lines[self._offset : self._offset + self.page_size]
