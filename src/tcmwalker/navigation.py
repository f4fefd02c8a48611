"""Navigation and focus state machine for the tcmwalker session.

The controller owns everything the UI shows: the selected tab, which pane
has focus, the query line and its history, the three record lists and the
file viewer. Each key event is handled to completion by ``dispatch``; the
only suspension points are calls into the record store.
"""

import logging
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import Generic, Protocol, TypeVar

from tcmwalker.address import compile_address
from tcmwalker.config import ALL_ADDRESS, HOSTS_TABLE, PROCS_TABLE
from tcmwalker.models import HostRecord, JoinedRecord, ProcessRecord
from tcmwalker.search import search_records
from tcmwalker.viewer import ScrollDirection, Viewer

logger = logging.getLogger(__name__)

T = TypeVar("T")

TAB_SWITCH_KEY = "tab"
CONFIRM_KEY = "enter"
ESCAPE_KEY = "escape"

LIST_KEYS = {
    "j": 1,
    "down": 1,
    "k": -1,
    "up": -1,
}

SCROLL_KEYS = {
    "k": ScrollDirection.UP,
    "up": ScrollDirection.UP,
    "j": ScrollDirection.DOWN,
    "down": ScrollDirection.DOWN,
    "pageup": ScrollDirection.PAGE_UP,
    "ctrl+b": ScrollDirection.PAGE_UP,
    "pagedown": ScrollDirection.PAGE_DOWN,
    "ctrl+f": ScrollDirection.PAGE_DOWN,
    "home": ScrollDirection.TOP,
    "g": ScrollDirection.TOP,
    "end": ScrollDirection.END,
    "G": ScrollDirection.END,
    "shift+g": ScrollDirection.END,
}


class Tab(Enum):
    """Top-level view modes."""

    HOST_SEARCH = "1"
    PROCESS_SEARCH = "2"

    @property
    def default_focus(self) -> "Focus":
        return Focus.HOST if self is Tab.HOST_SEARCH else Focus.PROC


class Focus(Enum):
    """Which pane receives keyboard input."""

    HOST = "host"
    FILTER = "filter"
    PROC = "proc"
    TOTAL_PROC = "total_proc"
    FILE = "file"


class QueryMode(Enum):
    """How a submitted query line is interpreted."""

    ADDRESS = "address"
    TEXT = "text"

    def toggled(self) -> "QueryMode":
        return QueryMode.TEXT if self is QueryMode.ADDRESS else QueryMode.ADDRESS


class EventState(Enum):
    """Whether a key event was handled."""

    CONSUMED = "consumed"
    NOT_CONSUMED = "not_consumed"

    @property
    def is_consumed(self) -> bool:
        return self is EventState.CONSUMED

    @classmethod
    def from_bool(cls, consumed: bool) -> "EventState":
        return cls.CONSUMED if consumed else cls.NOT_CONSUMED


class RecordStore(Protocol):
    """The record store as seen by the controller."""

    async def fetch_all(self, table: str) -> list: ...

    async def execute(self, sql: str) -> list[JoinedRecord]: ...


class ListView(Generic[T]):
    """A record list with an optional wrapping row selection."""

    def __init__(self, items: Sequence[T] = ()) -> None:
        self._items: list[T] = list(items)
        self._selected_index: int | None = None

    @property
    def items(self) -> list[T]:
        return self._items

    @property
    def selected_index(self) -> int | None:
        return self._selected_index

    @property
    def selected(self) -> T | None:
        if self._selected_index is None:
            return None
        return self._items[self._selected_index]

    def set_items(self, items: Sequence[T]) -> None:
        """Replace all items; the selection is dropped."""
        self._items = list(items)
        self._selected_index = None

    def move(self, step: int) -> bool:
        """Move the selection by ``step`` rows, wrapping at both ends."""
        if not self._items:
            return False
        if self._selected_index is None:
            self._selected_index = 0
        else:
            self._selected_index = (self._selected_index + step) % len(self._items)
        return True


class QueryInput:
    """The single-line query editor with its submission history."""

    def __init__(self) -> None:
        self.text: str = ""
        self.cursor: int = 0
        self.history: list[str] = []
        self.mode: QueryMode = QueryMode.ADDRESS

    def handle(self, key: str, character: str | None) -> bool:
        """Apply an editing key, returning whether it was used."""
        if key == CONFIRM_KEY:
            self.submit()
        elif key in ("up", "down"):
            self.mode = self.mode.toggled()
        elif key == "backspace":
            self.delete_char()
        elif key == "left":
            self.cursor = max(0, self.cursor - 1)
        elif key == "right":
            self.cursor = min(len(self.text), self.cursor + 1)
        elif character is not None and len(character) == 1 and character.isprintable():
            self.enter_char(character)
        else:
            return False
        return True

    def enter_char(self, character: str) -> None:
        self.text = self.text[: self.cursor] + character + self.text[self.cursor :]
        self.cursor += 1

    def delete_char(self) -> None:
        if self.cursor == 0:
            return
        self.text = self.text[: self.cursor - 1] + self.text[self.cursor :]
        self.cursor -= 1

    def submit(self) -> None:
        """Push the pending line onto the history, even when it is empty."""
        self.history.insert(0, self.text)
        self.text = ""
        self.cursor = 0


class NavigationController:
    """
    Routes key events and owns the session state.

    Store and viewer failures propagate as TcmWalkerError subclasses; list
    items and focus are only changed after the store call has succeeded.
    """

    def __init__(
        self,
        store: RecordStore,
        viewer: Viewer | None = None,
        hosts: Sequence[HostRecord] = (),
        procs: Sequence[ProcessRecord] = (),
        total_procs: Sequence[JoinedRecord] = (),
    ) -> None:
        self._store = store
        self.viewer = viewer if viewer is not None else Viewer()
        self.hosts: ListView[HostRecord] = ListView(hosts)
        self.procs: ListView[ProcessRecord] = ListView(procs)
        self.total_procs: ListView[JoinedRecord] = ListView(total_procs)
        self.query = QueryInput()
        self._tab = Tab.HOST_SEARCH
        self._focus = Focus.HOST

    @classmethod
    async def create(
        cls, store: RecordStore, viewer: Viewer | None = None
    ) -> "NavigationController":
        """Build a controller with every list filled from the store."""
        return cls(
            store,
            viewer=viewer,
            hosts=await store.fetch_all(HOSTS_TABLE),
            procs=await store.fetch_all(PROCS_TABLE),
            total_procs=await store.execute(compile_address(ALL_ADDRESS)),
        )

    @property
    def tab(self) -> Tab:
        return self._tab

    @property
    def focus(self) -> Focus:
        return self._focus

    @property
    def history(self) -> list[str]:
        return self.query.history

    @property
    def query_mode(self) -> QueryMode:
        return self.query.mode

    @property
    def filter_active(self) -> bool:
        """The query line is highlighted while it has focus."""
        return self._focus is Focus.FILTER

    @property
    def active_list(self) -> ListView:
        """The list shown under the query line for the current tab."""
        if self._tab is Tab.HOST_SEARCH:
            return self.hosts
        return self.total_procs if self.history else self.procs

    @property
    def selected_record(self) -> HostRecord | ProcessRecord | JoinedRecord | None:
        """The selected row of the focused list, if any."""
        focused = {
            Focus.HOST: self.hosts,
            Focus.PROC: self.procs,
            Focus.TOTAL_PROC: self.total_procs,
        }.get(self._focus)
        return focused.selected if focused is not None else None

    async def dispatch(self, key: str, character: str | None = None) -> EventState:
        """
        Handle one key event.

        Args:
            key: Textual key name ("tab", "enter", "j", ...).
            character: The printable character for the key, if any.
        """
        if (await self._component_event(key, character)).is_consumed:
            return EventState.CONSUMED
        return self._move_focus(key)

    async def _component_event(self, key: str, character: str | None) -> EventState:
        if self._focus is Focus.HOST:
            return self._list_event(self.hosts, key)
        if self._focus is Focus.FILTER:
            return await self._filter_event(key, character)
        if self._focus is Focus.PROC:
            return self._drill_event(self.procs, key)
        if self._focus is Focus.TOTAL_PROC:
            return self._drill_event(self.total_procs, key)
        return self._file_event(key)

    def _list_event(self, view: ListView, key: str) -> EventState:
        step = LIST_KEYS.get(key)
        if step is None:
            return EventState.NOT_CONSUMED
        return EventState.from_bool(view.move(step))

    async def _filter_event(self, key: str, character: str | None) -> EventState:
        state = EventState.from_bool(self.query.handle(key, character))
        if key == CONFIRM_KEY:
            await self.run_query(self.history[0])
            return EventState.CONSUMED
        if key in ("up", "down"):
            # Toggling the query mode also discards the current results
            await self.reset_results()
        return state

    def _drill_event(self, view: ListView, key: str) -> EventState:
        record = view.selected
        if key == CONFIRM_KEY and record is not None:
            if isinstance(record, JoinedRecord):
                path = Path(record.work_path) / record.proc_name
            else:
                path = Path(record.work_path) / record.func_name
            self.viewer.load(path)
            self._focus = Focus.FILE
            return EventState.CONSUMED
        return self._list_event(view, key)

    def _file_event(self, key: str) -> EventState:
        if key == ESCAPE_KEY:
            self.viewer.clear()
            self._focus = Focus.TOTAL_PROC
            return EventState.CONSUMED
        direction = SCROLL_KEYS.get(key)
        if direction is None:
            return EventState.NOT_CONSUMED
        return EventState.from_bool(self.viewer.scroll(direction))

    def _move_focus(self, key: str) -> EventState:
        for tab in Tab:
            if key == tab.value:
                self.switch_tab(tab)
                return EventState.CONSUMED

        if key != TAB_SWITCH_KEY:
            return EventState.NOT_CONSUMED

        if self._tab is Tab.HOST_SEARCH:
            transitions = {
                Focus.HOST: Focus.FILTER,
                Focus.FILTER: Focus.HOST,
            }
        else:
            transitions = {
                Focus.FILTER: Focus.TOTAL_PROC if self.history else Focus.PROC,
                Focus.PROC: Focus.FILTER,
                Focus.TOTAL_PROC: Focus.FILTER,
            }
        target = transitions.get(self._focus)
        if target is None:
            return EventState.NOT_CONSUMED
        self._focus = target
        return EventState.CONSUMED

    def switch_tab(self, tab: Tab) -> None:
        """Select a tab, resetting focus to its default pane and clearing history."""
        if self._focus is Focus.FILE:
            self.viewer.clear()
        self._tab = tab
        self._focus = tab.default_focus
        self.query.history.clear()

    async def run_query(self, raw: str) -> None:
        """Resolve a submitted query and replace the destination list."""
        logger.debug("Query %r in %s mode on %s", raw, self.query_mode.value, self._tab.name)
        if self._tab is Tab.HOST_SEARCH:
            if self.query_mode is QueryMode.ADDRESS:
                rows = await self._store.execute(compile_address(raw))
                hosts = [row.to_host() for row in rows]
            else:
                hosts = search_records(await self._store.fetch_all(HOSTS_TABLE), raw)
            self.hosts.set_items(hosts)
        else:
            if self.query_mode is QueryMode.ADDRESS:
                rows = await self._store.execute(compile_address(raw))
            else:
                everything = await self._store.execute(compile_address(ALL_ADDRESS))
                rows = search_records(everything, raw)
            self.total_procs.set_items(rows)

    async def reset_results(self) -> None:
        """Restore the full host list, on either tab, and forget the history."""
        self.hosts.set_items(await self._store.fetch_all(HOSTS_TABLE))
        self.query.history.clear()
