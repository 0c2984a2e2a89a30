from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from storybook.narrative.types import ChosenView, NodeView

# Minimal protocols, no pygame import here


class PresentationAdapter(Protocol):
    """ What the lifecycle needs from whoever draws the book. """
    def show_node(self, view: NodeView) -> None: ...
    def show_chosen(self, view: ChosenView) -> None: ...
    def erase(self) -> None: ...
    def start_transition(self, on_finished: Callable[[], None]) -> None: ...
    def story_ended(self, view: NodeView) -> None: ...
    def update(self, dt: float) -> None: ...


class RenderCommand:
    """ A side effect the lifecycle asks the presentation layer to perform. """
    def apply(self, adapter: PresentationAdapter, on_transition_finished: Callable[[], None]) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class ShowNode(RenderCommand):
    view: NodeView

    def apply(self, adapter, on_transition_finished):
        adapter.show_node(self.view)


@dataclass(frozen=True)
class ShowChosen(RenderCommand):
    view: ChosenView

    def apply(self, adapter, on_transition_finished):
        adapter.show_chosen(self.view)


@dataclass(frozen=True)
class EraseTransient(RenderCommand):
    def apply(self, adapter, on_transition_finished):
        adapter.erase()


@dataclass(frozen=True)
class StartTransition(RenderCommand):
    def apply(self, adapter, on_transition_finished):
        adapter.start_transition(on_transition_finished)


@dataclass(frozen=True)
class StoryEnded(RenderCommand):
    view: Optional[NodeView] = None

    def apply(self, adapter, on_transition_finished):
        adapter.story_ended(self.view)
