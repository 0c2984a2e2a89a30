from __future__ import annotations
import logging
from collections import deque
from typing import Deque, Iterable, List

from storybook.lifecycle import LifecycleController, Phase, TransitionAnimationFinished
from storybook.narrative.graph import StoryGraph
from storybook.presentation import PresentationAdapter, RenderCommand

logger = logging.getLogger(__name__)


class GameSession:
    """
    Owns one playthrough: the story graph, its lifecycle controller, and the
    adapter that draws it. Call `post()` from input handling and `update()`
    once per frame; events are handled in the order they were posted.
    """
    def __init__(self, graph: StoryGraph, adapter: PresentationAdapter, *, strict: bool = False) -> None:
        self.graph = graph
        self.adapter = adapter
        self.controller = LifecycleController(graph, strict=strict)
        self._events: Deque[object] = deque()

    @property
    def phase(self) -> Phase:
        return self.controller.phase

    # --- input ---------------------------------------------------------------
    def post(self, event: object) -> None:
        self._events.append(event)

    def post_all(self, events: Iterable[object]) -> None:
        for e in events:
            self.post(e)

    def _transition_finished(self) -> None:
        self.post(TransitionAnimationFinished())

    # --- loop ----------------------------------------------------------------
    def update(self, dt: float) -> None:
        # Only what is queued now; events posted while applying wait for the next tick
        for _ in range(len(self._events)):
            event = self._events.popleft()
            logger.debug("Dispatching %s", event)
            self._apply(self.controller.dispatch(event))
        self._apply(self.controller.update())
        self.adapter.update(dt)

    def _apply(self, commands: List[RenderCommand]) -> None:
        for cmd in commands:
            cmd.apply(self.adapter, self._transition_finished)

    def pending_events(self) -> int:
        return len(self._events)
