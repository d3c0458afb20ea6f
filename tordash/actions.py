from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class Intent(Enum):
    UP = "up"
    DOWN = "down"
    CONFIRM = "confirm"
    CANCEL = "cancel"
    QUIT = "quit"
    SHOW_STATS = "show_stats"
    SHOW_HELP = "show_help"
    PAUSE = "pause"
    SEARCH = "search"
    ADD_MAGNET = "add_magnet"
    DELETE = "delete"
    DELETE_WITH_FILES = "delete_with_files"


@dataclass(frozen=True)
class KeyPress:
    """A raw key: its name (``"left"``, ``"backspace"``, ``"a"``) and printable character, if any."""

    key: str
    character: str | None = None

    @property
    def printable(self) -> bool:
        return self.character is not None and len(self.character) == 1 and self.character.isprintable()


@dataclass(frozen=True)
class ChangeTab:
    index: int


@dataclass(frozen=True)
class TextChanged:
    """The focused text field now holds ``text``."""

    text: str


@dataclass(frozen=True)
class ShowError:
    title: str
    message: str


Action = Union[Intent, ChangeTab, TextChanged, ShowError]


KEYMAP: dict[str, Action] = {
    "up": Intent.UP,
    "k": Intent.UP,
    "down": Intent.DOWN,
    "j": Intent.DOWN,
    "enter": Intent.CONFIRM,
    "escape": Intent.CANCEL,
    "q": Intent.QUIT,
    "t": Intent.SHOW_STATS,
    "?": Intent.SHOW_HELP,
    "p": Intent.PAUSE,
    " ": Intent.PAUSE,
    "/": Intent.SEARCH,
    "m": Intent.ADD_MAGNET,
    "d": Intent.DELETE,
    "D": Intent.DELETE_WITH_FILES,
    "1": ChangeTab(1),
    "2": ChangeTab(2),
}

HELP_LINES: tuple[tuple[str, str], ...] = (
    ("?", "show/hide help"),
    ("1 / 2", "switch to torrents / tasks tab"),
    ("/", "filter torrents"),
    ("q", "quit"),
    ("Enter", "confirm"),
    ("Esc", "cancel"),
    ("j / ↓", "move down"),
    ("k / ↑", "move up"),
    ("p / Space", "pause/unpause a torrent"),
    ("m", "add a magnet url/torrent path"),
    ("d", "delete a torrent without files"),
    ("D", "delete a torrent with files"),
    ("t", "show statistics"),
)


def translate(press: KeyPress, *, text_mode: bool = False) -> Action | None:
    """Map a raw key to an action.

    In text mode the focused input owns the keyboard: only Escape still
    cancels, and Enter arrives as the input's submit instead.
    """
    if text_mode:
        return Intent.CANCEL if press.key == "escape" else None
    if press.printable:
        return KEYMAP.get(press.character)
    return KEYMAP.get(press.key)
