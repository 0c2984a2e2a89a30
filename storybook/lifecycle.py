from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Type

from storybook.errors import InvalidTransitionError
from storybook.narrative.graph import StoryGraph
from storybook.narrative.rich_text import plain_text
from storybook.narrative.types import ChosenView
from storybook.presentation import (
    EraseTransient,
    RenderCommand,
    ShowChosen,
    ShowNode,
    StartTransition,
    StoryEnded,
)

logger = logging.getLogger(__name__)


class Phase(Enum):
    SHOWING_NODE = "showing_node"       # Render pending; resolved by update()
    CHOOSING = "choosing"               # Fork on screen, waiting for a choice
    CHOSEN = "chosen"                   # Chosen answer highlighted, waiting for a page turn
    SHOWING_SIMPLE = "showing_simple"   # Linear beat on screen, waiting for a page turn
    TRANSITIONING = "transitioning"     # Page flip playing
    END = "end"                         # Terminal beat on screen, waiting for restart


# --- Input events ------------------------------------------------------------

@dataclass(frozen=True)
class ChoicePressed:
    index: int


@dataclass(frozen=True)
class AdvancePressed:
    pass


@dataclass(frozen=True)
class RestartPressed:
    pass


@dataclass(frozen=True)
class TransitionAnimationFinished:
    pass


Event = object
_Result = Tuple[Phase, List[RenderCommand]]


class LifecycleController:
    """
    Sequences one story beat at a time:

        SHOWING_NODE -> CHOOSING -> CHOSEN -> TRANSITIONING -> SHOWING_NODE
        SHOWING_NODE -> SHOWING_SIMPLE -> TRANSITIONING
        SHOWING_NODE -> END -> (restart) -> SHOWING_NODE

    `update()` performs the automatic step out of SHOWING_NODE; `dispatch()`
    handles one input event. Both return the render commands to apply.

    Events the current phase does not accept are ignored (strict=False) or
    raise InvalidTransitionError (strict=True). A late or repeated
    TransitionAnimationFinished is always ignored.
    """

    _TRANSITIONS: Dict[Tuple[Phase, Type], str] = {
        (Phase.CHOOSING, ChoicePressed): "_on_choice",
        (Phase.CHOSEN, AdvancePressed): "_on_page_turn",
        (Phase.SHOWING_SIMPLE, AdvancePressed): "_on_page_turn",
        (Phase.TRANSITIONING, TransitionAnimationFinished): "_on_flip_finished",
        (Phase.END, RestartPressed): "_on_restart",
    }

    def __init__(self, graph: StoryGraph, *, strict: bool = False,
                 on_phase: Optional[Callable[[Phase, Phase], None]] = None) -> None:
        self.graph = graph
        self.strict = bool(strict)
        self.phase = Phase.SHOWING_NODE
        self.chosen: Optional[ChosenView] = None
        self._on_phase = on_phase

    # ---------- automatic step ----------
    def update(self) -> List[RenderCommand]:
        if self.phase is not Phase.SHOWING_NODE:
            return []
        view = self.graph.view()
        logger.debug("Node %d: %s", view.index, plain_text(view.spans))
        commands: List[RenderCommand] = [ShowNode(view)]
        if view.is_fork:
            nxt = Phase.CHOOSING
        elif view.terminal:
            commands.append(StoryEnded(view))
            nxt = Phase.END
        else:
            # The cursor moves now; the page keeps showing this beat until the flip
            self.graph.advance()
            nxt = Phase.SHOWING_SIMPLE
        self._enter(nxt, "auto")
        return commands

    # ---------- events ----------
    def accepts(self, event: Event) -> bool:
        return (self.phase, type(event)) in self._TRANSITIONS

    def dispatch(self, event: Event) -> List[RenderCommand]:
        name = self._TRANSITIONS.get((self.phase, type(event)))
        if name is None:
            if self.strict and not isinstance(event, TransitionAnimationFinished):
                raise InvalidTransitionError(self.phase.name, event)
            logger.debug("Ignoring %s in phase %s", event, self.phase.name)
            return []
        nxt, commands = getattr(self, name)(event)
        self._enter(nxt, event)
        return commands

    # ---------- handlers ----------
    def _on_choice(self, event: ChoicePressed) -> _Result:
        origin = self.graph.current_index
        shown = self.graph.get_choices()
        choice = self.graph.choose(event.index)
        picked = shown[event.index]
        with self.graph.evaluating(node=origin):
            additional = choice.extra_text(self.graph.context)
        self.chosen = ChosenView(
            index=event.index,
            text=picked.text,
            illustration=picked.illustration,
            additional_text=additional,
        )
        return Phase.CHOSEN, [EraseTransient(), ShowChosen(self.chosen)]

    def _on_page_turn(self, event: AdvancePressed) -> _Result:
        return Phase.TRANSITIONING, [StartTransition(), EraseTransient()]

    def _on_flip_finished(self, event: TransitionAnimationFinished) -> _Result:
        self.chosen = None
        return Phase.SHOWING_NODE, []

    def _on_restart(self, event: RestartPressed) -> _Result:
        self.graph.reset()
        self.chosen = None
        return Phase.SHOWING_NODE, [EraseTransient()]

    # ---------- internals ----------
    def _enter(self, nxt: Phase, cause: object) -> None:
        prev = self.phase
        logger.info("Transition: (%s, %s) -> %s", prev.name, cause, nxt.name)
        self.phase = nxt
        if self._on_phase:
            self._on_phase(prev, nxt)
