from __future__ import annotations

from typing import Any, Callable

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import DataTable, Input, Static

from ..actions import Action, Intent, KeyPress, TextChanged, translate
from ..client import TransmissionController
from ..config import AppConfig
from ..logging import get_logger
from .main_window import MainWindow, RenderModel
from .overlays import OverlayPayload
from .torrents import TableModel


LOG = get_logger(__name__)


class OverlayScreen(ModalScreen[None]):
    """Paints the top overlay above the torrent table.

    Keys still go through the app; the only exception is the text input of
    wizard and filter overlays, whose edits and submits are turned into
    actions here.
    """

    AUTO_FOCUS = None
    BINDINGS = [Binding("escape", "cancel", "Cancel", priority=True)]
    DEFAULT_CSS = """
    OverlayScreen {
        align: center middle;
    }
    #overlay-box {
        width: 70%;
        max-width: 100;
        height: auto;
        border: round $accent;
        background: $panel;
        padding: 1 2;
    }
    #overlay-box.error {
        border: round $error;
    }
    """

    def __init__(self, payload: OverlayPayload, send_action: Callable[[Action], None]):
        super().__init__()
        self.payload = payload
        self.send_action = send_action
        self._field: str | None = None

    def compose(self) -> ComposeResult:
        with Container(id="overlay-box"):
            yield Static(id="overlay-body")
            yield Input(id="overlay-input")

    def on_mount(self) -> None:
        self.show(self.payload)

    def show(self, payload: OverlayPayload) -> None:
        self.payload = payload
        if not self.is_mounted:
            return
        box = self.query_one("#overlay-box", Container)
        box.border_title = f" {payload.title} "
        box.set_class(payload.kind == "error", "error")
        self.query_one("#overlay-body", Static).update(Text("\n".join(payload.lines)))

        field = self.query_one("#overlay-input", Input)
        if payload.field is None:
            field.display = False
            self.set_focus(None)
            return
        if payload.field != self._field:
            self._field = payload.field
            field.value = payload.value
            field.cursor_position = len(payload.value)
        field.display = True
        field.focus()

    def action_cancel(self) -> None:
        self.send_action(Intent.CANCEL)

    def on_input_changed(self, event: Input.Changed) -> None:
        event.stop()
        if self.payload.field is not None:
            self.send_action(TextChanged(event.value))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.send_action(Intent.CONFIRM)


class TordashApp(App):
    TITLE = "tordash"
    CSS = """
    #tabs {
        height: 1;
        content-align: center middle;
    }
    #table {
        height: 1fr;
    }
    #status, #stats {
        height: 1;
        padding: 0 1;
    }
    #stats {
        color: $text-muted;
    }
    """

    def __init__(self, config: AppConfig, client: Any | None = None):
        super().__init__()
        self.config = config
        self.window = MainWindow(config, client or TransmissionController(config))
        self.sub_title = f"{config.rpc.host}:{config.rpc.port}"
        self._columns: tuple[tuple[str, int | None], ...] = ()
        self._overlay_screen: OverlayScreen | None = None

    def compose(self) -> ComposeResult:
        yield Static(id="tabs")
        yield DataTable(id="table", cursor_type="row", zebra_stripes=True)
        yield Static(id="status")
        yield Static(id="stats")

    def on_mount(self) -> None:
        # base-screen widgets; query_one follows whichever screen is active
        self._tabs = self.query_one("#tabs", Static)
        self._table = self.query_one("#table", DataTable)
        self._status = self.query_one("#status", Static)
        self._stats = self.query_one("#stats", Static)
        self._table.can_focus = False
        for job in self.window.jobs():
            self.run_worker(job, group="sync")
        self.run_worker(self._render_loop(), group="render")
        self.window.render.request()

    async def _render_loop(self) -> None:
        while True:
            await self.window.render.wait()
            if self.window.process_pending():
                self.exit()
                return
            self.paint(self.window.render_model())

    def on_key(self, event: events.Key) -> None:
        action = translate(KeyPress(event.key, event.character), text_mode=self.window.wants_text())
        if action is None:
            return
        event.stop()
        event.prevent_default()
        self.dispatch_action(action)

    def dispatch_action(self, action: Action) -> None:
        if self.window.dispatch(action):
            LOG.info("Quit requested")
            self.exit()

    def paint(self, model: RenderModel) -> None:
        self._tabs.update(self._tabs_text(model))
        self._paint_table(model.table)
        self._status.update(Text(model.status_line))
        self._stats.update(Text(model.stats_line))
        self._paint_overlay(model.top_overlay)

    @staticmethod
    def _tabs_text(model: RenderModel) -> Text:
        text = Text()
        for index, label in enumerate(model.tabs):
            if index:
                text.append(" · ")
            text.append(label, style="bold magenta" if index == model.current_tab else "")
        return text

    def _paint_table(self, model: TableModel) -> None:
        table = self._table
        visible = [index for index, width in enumerate(model.widths) if width != 0]
        columns = tuple((model.header[index], model.widths[index]) for index in visible)
        if columns != self._columns:
            table.clear(columns=True)
            for label, width in columns:
                table.add_column(label, width=width)
            self._columns = columns
        else:
            table.clear()

        for row_index, row in enumerate(model.rows):
            cells: list[Text | str] = [row[index] for index in visible]
            if model.highlights and model.highlights[row_index]:
                name = Text(row[0])
                for position in model.highlights[row_index]:
                    name.stylize("bold underline", position, position + 1)
                cells[0] = name
            table.add_row(*cells)

        table.show_cursor = model.cursor is not None
        if model.cursor is not None:
            table.move_cursor(row=model.cursor)

    def _paint_overlay(self, payload: OverlayPayload | None) -> None:
        if payload is None:
            if self._overlay_screen is not None:
                self._overlay_screen = None
                self.pop_screen()
            return
        if self._overlay_screen is None:
            self._overlay_screen = OverlayScreen(payload, self.dispatch_action)
            self.push_screen(self._overlay_screen)
        else:
            self._overlay_screen.show(payload)
