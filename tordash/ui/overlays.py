"""Modal overlays and the stack that orders them.

The overlay set is closed: error, help, statistics, filter bar and command
wizards. Each one takes an action and answers with an ``Outcome``; only the
top of the stack ever sees input.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Union

import humanize

from ..actions import HELP_LINES, Action, Intent, TextChanged
from ..logging import get_logger
from ..models import SessionStats

if TYPE_CHECKING:
    from .torrents import TorrentTable
    from .wizard import CommandWizard


LOG = get_logger(__name__)


class Outcome(Enum):
    NOTHING = "nothing"
    RENDER = "render"
    QUIT = "quit"


@dataclass(frozen=True)
class OverlayPayload:
    """What the painter needs to draw one overlay.

    Input overlays name their text ``field``; the painter resets its input
    widget to ``value`` only when the field changes.
    """

    kind: str
    title: str
    lines: tuple[str, ...]
    field: str | None = None
    value: str = ""


class ErrorPopup:
    def __init__(self, title: str, message: str):
        self.title = title
        self.message = message

    def handle(self, action: Action) -> Outcome:
        if action in (Intent.CONFIRM, Intent.QUIT):
            return Outcome.QUIT
        return Outcome.NOTHING

    def render(self) -> OverlayPayload:
        return OverlayPayload("error", self.title, tuple(self.message.splitlines()) or ("",))


class HelpPopup:
    def handle(self, action: Action) -> Outcome:
        if action in (Intent.CONFIRM, Intent.QUIT, Intent.CANCEL, Intent.SHOW_HELP):
            return Outcome.QUIT
        return Outcome.NOTHING

    def render(self) -> OverlayPayload:
        width = max(len(key) for key, _ in HELP_LINES)
        lines = tuple(f"{key.ljust(width)} - {description}" for key, description in HELP_LINES)
        return OverlayPayload("help", "Help", lines)


class StatisticsPopup:
    def __init__(self, stats: SessionStats):
        self.stats = stats

    def handle(self, action: Action) -> Outcome:
        if action in (Intent.CONFIRM, Intent.QUIT, Intent.CANCEL, Intent.SHOW_STATS):
            return Outcome.QUIT
        return Outcome.NOTHING

    def render(self) -> OverlayPayload:
        stats = self.stats
        ratio = f"{stats.ratio:.2f}" if stats.ratio is not None else "∞"
        lines = (
            f"Uploaded:    {humanize.naturalsize(stats.uploaded_bytes, binary=True)}",
            f"Downloaded:  {humanize.naturalsize(stats.downloaded_bytes, binary=True)}",
            f"Ratio:       {ratio}",
            f"Files added: {stats.files_added}",
            f"Sessions:    {stats.session_count}",
            f"Active for:  {humanize.naturaldelta(stats.seconds_active)}",
            f"Torrents:    {stats.torrent_count} ({stats.active_torrent_count} active, {stats.paused_torrent_count} paused)",
        )
        return OverlayPayload("statistics", "Statistics", lines)


class FilterBar:
    """Live fuzzy filter input. Every edit re-filters the torrent table at once."""

    wants_text = True
    prompt = "Filter:"

    def __init__(self, table: TorrentTable):
        self.table = table
        self.text = table.filter.pattern or ""

    def handle(self, action: Action) -> Outcome:
        if action is Intent.CONFIRM:
            return Outcome.QUIT
        if action is Intent.CANCEL:
            self.table.set_filter(None)
            return Outcome.QUIT
        if isinstance(action, TextChanged) and action.text != self.text:
            self.text = action.text
            self.table.set_filter(self.text)
            return Outcome.RENDER
        return Outcome.NOTHING

    def render(self) -> OverlayPayload:
        return OverlayPayload("input", "Filter", (self.prompt,), field="filter", value=self.text)


Overlay = Union[ErrorPopup, HelpPopup, StatisticsPopup, FilterBar, "CommandWizard"]


class OverlayStack:
    def __init__(self) -> None:
        self._items: list[Overlay] = []

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def push(self, overlay: Overlay) -> None:
        LOG.debug("Overlay pushed: %s", type(overlay).__name__)
        self._items.append(overlay)

    def top(self) -> Overlay | None:
        return self._items[-1] if self._items else None

    def pop_top_if_quit(self, outcome: Outcome) -> Overlay | None:
        if outcome is not Outcome.QUIT or not self._items:
            return None
        overlay = self._items.pop()
        LOG.debug("Overlay popped: %s", type(overlay).__name__)
        return overlay

    def wants_text(self) -> bool:
        top = self.top()
        return bool(getattr(top, "wants_text", False))

    def payloads(self) -> tuple[OverlayPayload, ...]:
        """Render payloads bottom to top."""
        return tuple(overlay.render() for overlay in self._items)
