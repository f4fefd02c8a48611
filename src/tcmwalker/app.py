"""tcmwalker - Main Textual application."""

import logging

from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.screen import ModalScreen
from textual.widgets import DataTable, Footer, Static

from tcmwalker.exceptions import TcmWalkerError
from tcmwalker.models import HostRecord, JoinedRecord, ProcessRecord
from tcmwalker.navigation import Focus, ListView, NavigationController, QueryMode, Tab
from tcmwalker.viewer import Viewer

logger = logging.getLogger(__name__)

TAB_TITLES = {
    Tab.HOST_SEARCH: "Host search [1]",
    Tab.PROCESS_SEARCH: "Process search [2]",
}

TAB_DESCRIPTIONS = {
    Tab.HOST_SEARCH: "Search host information. Tab moves between the query line and the host list.",
    Tab.PROCESS_SEARCH: (
        "Search deployed processes and open their files. "
        "Tab moves between the query line and the process list."
    ),
}

MODE_LABELS = {
    QueryMode.ADDRESS: "Address query",
    QueryMode.TEXT: "Keyword search",
}

INFO_TEXT = (
    "(Tab) change focus | (enter) search/open | (q) quit | (↑) move up | (↓) move down"
    " | (1) host search | (2) proc search | (?) help"
)

HELP_COMMANDS = [
    ("-- General --", ""),
    ("1 / 2", "Switch to host search / process search"),
    ("Tab", "Move focus between query line and list"),
    ("q", "Quit (outside the query line)"),
    ("?", "Toggle this help"),
    ("-- Query line --", ""),
    ("Enter", "Run the query"),
    ("↑ / ↓", "Switch address query / keyword search, resets results"),
    ("-- Lists --", ""),
    ("j / k, ↓ / ↑", "Select next / previous row"),
    ("Enter", "Open the selected process file"),
    ("-- File viewer --", ""),
    ("j / k, ↓ / ↑", "Scroll one line"),
    ("PgUp / PgDn, ctrl+b / ctrl+f", "Scroll one page"),
    ("Home / End, g / G", "Scroll to top / bottom"),
    ("Esc", "Close the file"),
]


class TabHeader(Static):
    """Header widget showing the tabs and what the selected one does."""

    DEFAULT_CSS = """
    TabHeader {
        height: 4;
        padding: 0 1;
        background: $surface;
    }
    """

    def update_tab(self, tab: Tab) -> None:
        """Render the tab strip for the selected tab."""
        text = Text()
        text.append("Tcm Baby Walker  ", style="bold")
        for candidate in Tab:
            style = "bold reverse" if candidate is tab else "dim"
            text.append(f"  {TAB_TITLES[candidate]}  ", style=style)
            text.append(" ")
        text.append("\n\n")
        text.append(TAB_DESCRIPTIONS[tab])
        self.update(text)


class QueryBar(Static):
    """The query line, the current query mode and the submission history."""

    DEFAULT_CSS = """
    QueryBar {
        height: 5;
        border: solid $primary;
        padding: 0 1;
    }

    QueryBar.-active {
        border: solid red;
    }
    """

    def update_query(self, controller: NavigationController) -> None:
        """Render the query line from the controller state."""
        query = controller.query
        self.set_class(controller.filter_active, "-active")

        text = Text()
        text.append("Mode: ", style="dim")
        text.append(f" {MODE_LABELS[query.mode]} ", style="bold reverse green")
        text.append("  ⬇️/⬆️: Select search mode\n", style="dim")

        text.append("Input: ", style="dim")
        before, after = query.text[: query.cursor], query.text[query.cursor :]
        text.append(before)
        if controller.filter_active:
            text.append(after[:1] or " ", style="reverse")
            text.append(after[1:])
        else:
            text.append(after)
        text.append("\n")

        text.append("History: ", style="dim")
        text.append("  ".join(controller.history[:5]))
        self.update(text)


class _Grid(DataTable, can_focus=False):
    """Row table driven by the controller rather than by its own cursor keys."""


class RecordTable(Container):
    """Container for one record data table."""

    DEFAULT_CSS = """
    RecordTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    COLUMNS: list[tuple[str, str]] = []

    def __init__(self, *args, **kwargs) -> None:
        """Initialize RecordTable."""
        super().__init__(*args, **kwargs)
        self._items: list | None = None

    def compose(self) -> ComposeResult:
        """Compose the record table."""
        yield _Grid(cursor_type="row", zebra_stripes=True)

    def _grid(self) -> DataTable:
        table = self.query_one(_Grid)
        if not table.columns:
            for label, key in self.COLUMNS:
                table.add_column(label, key=key)
        return table

    def row_for(self, record) -> list[str]:
        raise NotImplementedError

    def update_records(self, view: ListView) -> None:
        """
        Show the items and selection of a list view.

        Rows are rebuilt only when the list was replaced; selection moves
        just move the cursor.
        """
        table = self._grid()
        if view.items is not self._items:
            table.clear()
            for index, record in enumerate(view.items):
                table.add_row(*self.row_for(record), key=str(index))
            self._items = view.items

        table.show_cursor = view.selected_index is not None
        if view.selected_index is not None:
            table.move_cursor(row=view.selected_index)


class HostTable(RecordTable):
    """Hosts of the topology."""

    COLUMNS = [
        ("InnerIP", "inner_ip"),
        ("WorldID", "world_id"),
        ("ZoneID", "zone_id"),
        ("HostName", "host_name"),
    ]

    def row_for(self, record: HostRecord) -> list[str]:
        return [record.inner_ip, record.world_id, record.zone_id, record.host_name]


class ProcTable(RecordTable):
    """Process definitions."""

    COLUMNS = [
        ("FuncID", "func_id"),
        ("FuncName", "func_name"),
        ("ProcGroup", "group_name"),
        ("WorkPath", "work_path"),
    ]

    def row_for(self, record: ProcessRecord) -> list[str]:
        return [str(record.func_id), record.func_name, record.group_name, record.work_path]


class TotalProcTable(RecordTable):
    """Every process on every host it is deployed to."""

    COLUMNS = [
        ("FuncID", "func_id"),
        ("InstID", "inst_id"),
        ("ProcName", "proc_name"),
        ("ProcGroup", "group_name"),
        ("InnerIP", "inner_ip"),
        ("HostName", "host_name"),
        ("WorldID", "world_id"),
        ("ZoneID", "zone_id"),
        ("WorkPath", "work_path"),
        ("FuncName", "func_name"),
    ]

    def row_for(self, record: JoinedRecord) -> list[str]:
        return [
            str(record.func_id),
            str(record.inst_id),
            record.proc_name,
            record.group_name,
            record.inner_ip,
            record.host_name,
            record.world_id,
            record.zone_id,
            record.work_path,
            record.func_name,
        ]


class FileView(Static):
    """Syntax-highlighted view of the viewer's visible lines."""

    DEFAULT_CSS = """
    FileView {
        height: 1fr;
    }
    """

    def __init__(self, viewer: Viewer, *args, **kwargs) -> None:
        """Initialize FileView."""
        super().__init__(*args, **kwargs)
        self._viewer = viewer

    def on_resize(self, event: events.Resize) -> None:
        """Report the visible height to the viewer."""
        self._viewer.resize(event.size.height)
        self.update_file()

    def update_file(self) -> None:
        """Render the current viewport."""
        viewer = self._viewer
        if not viewer.is_loaded:
            self.update("")
            return

        code = "\n".join(viewer.visible_lines())
        lexer = Syntax.guess_lexer(str(viewer.path), code=code)
        syntax = Syntax(
            code,
            lexer,
            theme="monokai",
            line_numbers=True,
            start_line=viewer.offset + 1,
            word_wrap=False,
        )
        title = f"{viewer.path} [{viewer.offset + 1}/{max(1, viewer.total_lines)}]"
        self.update(Panel(syntax, title=title, border_style="green"))


class InfoBar(Static):
    """One-line key reference."""

    DEFAULT_CSS = """
    InfoBar {
        height: 3;
        border: double $primary;
        content-align: center middle;
    }
    """


class Explorer(Vertical, can_focus=True):
    """
    Receives every key and hands it to the navigation controller.

    Keys the controller consumes stop here; others bubble on to the app
    bindings (quit, help).
    """

    def __init__(self, controller: NavigationController, *args, **kwargs) -> None:
        """Initialize Explorer."""
        super().__init__(*args, **kwargs)
        self._controller = controller

    def compose(self) -> ComposeResult:
        """Compose the explorer layout."""
        yield TabHeader(id="tab-header")
        yield QueryBar(id="query-bar")
        yield HostTable(id="host-table")
        yield ProcTable(id="proc-table")
        yield TotalProcTable(id="total-proc-table")
        yield FileView(self._controller.viewer, id="file-view")
        yield InfoBar(INFO_TEXT, id="info-bar")

    def on_mount(self) -> None:
        """Draw the initial state once the panes are composed."""
        self.call_after_refresh(self.refresh_panes)

    async def on_key(self, event: events.Key) -> None:
        """Route a key press through the controller."""
        try:
            state = await self._controller.dispatch(event.key, event.character)
        except TcmWalkerError as e:
            logger.warning("Key %r failed: %s", event.key, e)
            self.app.notify(str(e), title="Error", severity="error")
            event.stop()
            self.refresh_panes()
            return

        if state.is_consumed:
            event.stop()
            event.prevent_default()
        self.refresh_panes()

    def refresh_panes(self) -> None:
        """Redraw every pane from a snapshot of the controller state."""
        controller = self._controller
        self.query_one(TabHeader).update_tab(controller.tab)
        self.query_one(QueryBar).update_query(controller)

        file_open = controller.focus is Focus.FILE
        host_tab = controller.tab is Tab.HOST_SEARCH
        showing_all = not host_tab and bool(controller.history)

        host_table = self.query_one(HostTable)
        proc_table = self.query_one(ProcTable)
        total_table = self.query_one(TotalProcTable)
        file_view = self.query_one(FileView)

        host_table.display = host_tab and not file_open
        proc_table.display = not host_tab and not showing_all and not file_open
        total_table.display = not host_tab and showing_all and not file_open
        file_view.display = file_open
        for widget_type in (TabHeader, QueryBar, InfoBar):
            self.query_one(widget_type).display = not file_open

        host_table.update_records(controller.hosts)
        proc_table.update_records(controller.procs)
        total_table.update_records(controller.total_procs)
        file_view.update_file()


class HelpScreen(ModalScreen):
    """Overlay listing the available keys."""

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }

    #help-body {
        width: 70;
        height: auto;
        max-height: 26;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }
    """

    BINDINGS = [
        Binding("escape,q,question_mark", "app.pop_screen", "Close"),
    ]

    def compose(self) -> ComposeResult:
        """Compose the help overlay."""
        text = Text()
        for keys, description in HELP_COMMANDS:
            if not description:
                text.append(f"{keys}\n", style="bold")
            else:
                text.append(f"  {keys:<30}", style="cyan")
                text.append(f"{description}\n")
        yield Static(text, id="help-body")


class TcmWalkerApp(App):
    """Main tcmwalker application."""

    TITLE = "tcmwalker"
    SUB_TITLE = "Tcm Baby Walker"

    CSS = """
    Screen {
        layout: vertical;
    }

    Explorer {
        height: 1fr;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("question_mark", "help", "Help"),
    ]

    def __init__(self, controller: NavigationController) -> None:
        """Initialize the TcmWalkerApp."""
        super().__init__()
        self._controller = controller

    @property
    def controller(self) -> NavigationController:
        return self._controller

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Explorer(self._controller, id="explorer")
        yield Footer()

    def on_mount(self) -> None:
        """Give the explorer keyboard focus."""
        self.query_one(Explorer).focus()

    def action_help(self) -> None:
        """Show the key reference."""
        self.push_screen(HelpScreen())

    def action_quit(self) -> None:
        """Handle quit action."""
        self.exit()
