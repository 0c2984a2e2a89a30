# story_fixtures.py
# Small graphs and a recording presentation adapter shared by the tests.
from dataclasses import dataclass
from typing import Callable, List, Optional

from storybook.narrative.context import NarrativeContext
from storybook.narrative.graph import StoryGraph
from storybook.narrative.types import Choice, ForkNode, SimpleExtra, SimpleNode


@dataclass
class ABContext(NarrativeContext):
    a: bool = False
    b: bool = False


def set_flag(name: str):
    def effect(ctx):
        setattr(ctx, name, True)
    return effect


def build_ab_graph() -> StoryGraph:
    """
    0: Fork -> 1 (sets a) | 2 (sets b)
    1, 2: Simple -> 3
    3: Fork with one choice -> 4 if a else 5
    4, 5: endings
    """
    g = StoryGraph(ABContext, title="AB")
    g.add_node(0, ForkNode("Start", [
        Choice("Go left", next=1, effect=set_flag("a")),
        Choice("Go right", next=2, effect=set_flag("b")),
    ]))
    g.add_node(1, SimpleNode("Left path", extra=SimpleExtra(illustration="left.png"), next=3))
    g.add_node(2, SimpleNode("Right path", next=3))
    g.add_node(3, ForkNode(
        lambda ctx: "You came from the *left*" if ctx.a else "You came from the *right*",
        [Choice("Continue", next=lambda ctx: 4 if ctx.a else 5,
                additional_text=lambda ctx: "a is set" if ctx.a else "")],
    ))
    g.add_node(4, SimpleNode("Ending A"))
    g.add_node(5, SimpleNode("Ending B"))
    return g


class RecordingAdapter:
    """ PresentationAdapter that records every call instead of drawing. """
    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.pending: Optional[Callable[[], None]] = None
        self.shown = None
        self.chosen = None
        self.ended = False
        self.views: List[object] = []

    def show_node(self, view) -> None:
        self.calls.append(("show_node", view.index))
        self.views.append(view)
        self.shown = view
        self.ended = False

    def show_chosen(self, view) -> None:
        self.calls.append(("show_chosen", view.index))
        self.views.append(view)
        self.chosen = view

    def erase(self) -> None:
        self.calls.append(("erase",))
        self.shown = None
        self.chosen = None

    def start_transition(self, on_finished) -> None:
        self.calls.append(("start_transition",))
        self.pending = on_finished

    def story_ended(self, view) -> None:
        self.calls.append(("story_ended", None if view is None else view.index))
        self.ended = True

    def update(self, dt: float) -> None:
        pass

    def finish_transition(self) -> None:
        cb, self.pending = self.pending, None
        if cb:
            cb()

    def names(self) -> List[str]:
        return [c[0] for c in self.calls]
