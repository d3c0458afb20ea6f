"""Multi-stage command wizards.

A wizard is a small state machine: its stages come in a fixed order, and the
transition table says where ``Confirm`` and ``Cancel`` lead from each one.
Adding a stage means adding a ``WizardStage``; dispatch stays untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Mapping, Sequence

from ..actions import Action, Intent, TextChanged
from ..errors import ValidationError
from ..logging import get_logger
from ..models import TorrentSnapshot
from ..tasks import TaskKind
from .overlays import OverlayPayload, Outcome

if TYPE_CHECKING:
    from .main_window import Context


LOG = get_logger(__name__)

COMPLETED = "completed"


class Trigger(Enum):
    CONFIRM = "confirm"
    CANCEL = "cancel"


@dataclass(frozen=True)
class WizardStage:
    key: str
    prompt: str
    default: str = ""
    required: bool = True


def build_transitions(stages: Sequence[WizardStage]) -> dict[tuple[str, Trigger], str]:
    table: dict[tuple[str, Trigger], str] = {}
    for index, stage in enumerate(stages):
        following = stages[index + 1].key if index + 1 < len(stages) else COMPLETED
        table[(stage.key, Trigger.CONFIRM)] = following
        table[(stage.key, Trigger.CANCEL)] = COMPLETED
    return table


class CommandWizard:
    """Collects one text field per stage, then hands them all to ``on_submit``.

    ``on_submit`` runs only when the last stage is confirmed. Cancelling at any
    stage discards everything captured so far.
    """

    wants_text = True

    def __init__(
        self,
        title: str,
        stages: Sequence[WizardStage],
        on_submit: Callable[[Mapping[str, str]], None],
    ):
        if not stages:
            raise ValueError("a wizard needs at least one stage")
        self.title = title
        self.stages = {stage.key: stage for stage in stages}
        self.transitions = build_transitions(stages)
        self.values = {stage.key: stage.default for stage in stages}
        self.captured: dict[str, str] = {}
        self.stage = stages[0].key
        self.on_submit = on_submit

    @property
    def completed(self) -> bool:
        return self.stage == COMPLETED

    @property
    def value(self) -> str:
        return self.values[self.stage]

    def handle(self, action: Action) -> Outcome:
        if self.completed:
            return Outcome.QUIT
        if action is Intent.CONFIRM:
            return self._confirm()
        if action is Intent.CANCEL:
            self.stage = self.transitions[(self.stage, Trigger.CANCEL)]
            self.captured.clear()
            return Outcome.QUIT
        if isinstance(action, TextChanged) and action.text != self.value:
            self.values[self.stage] = action.text
            return Outcome.RENDER
        return Outcome.NOTHING

    def _confirm(self) -> Outcome:
        try:
            self.captured[self.stage] = self._capture(self.stages[self.stage])
        except ValidationError as exc:
            LOG.debug("%s: %s", self.title, exc)
            return Outcome.NOTHING

        self.stage = self.transitions[(self.stage, Trigger.CONFIRM)]
        if not self.completed:
            return Outcome.RENDER
        self.on_submit(dict(self.captured))
        return Outcome.QUIT

    def _capture(self, stage: WizardStage) -> str:
        text = self.values[stage.key].strip()
        if stage.required and not text:
            raise ValidationError(stage.key)
        return text

    def render(self) -> OverlayPayload:
        stage = self.stages[self.stage]
        return OverlayPayload("input", self.title, (stage.prompt,), field=stage.key, value=self.value)


def add_torrent_wizard(ctx: Context) -> CommandWizard:
    def submit(fields: Mapping[str, str]) -> None:
        source = fields["source"]
        destination = fields.get("destination") or None
        ctx.commands.submit(TaskKind.ADD, source, lambda: ctx.client.add(source, destination))

    return CommandWizard(
        "Add torrent",
        [
            WizardStage("source", "Add (Magnet URL / Torrent path):"),
            WizardStage("destination", "Directory:", str(ctx.config.paths.download_dir), required=False),
        ],
        submit,
    )


def delete_torrent_wizard(ctx: Context, torrent: TorrentSnapshot, with_files: bool) -> CommandWizard:
    suffix = " with files" if with_files else ""

    def submit(fields: Mapping[str, str]) -> None:
        if fields["confirm"].lower() not in ("y", "yes"):
            LOG.info("Delete of %s declined", torrent.name)
            return
        ctx.commands.submit(
            TaskKind.DELETE,
            torrent.name + suffix,
            lambda: ctx.client.delete({torrent.id}, with_files),
        )

    return CommandWizard(
        "Delete torrent",
        [WizardStage("confirm", f"Really delete '{torrent.name}'{suffix}? (y/n)")],
        submit,
    )
