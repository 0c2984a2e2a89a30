from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple, Union

from storybook.narrative.context import NarrativeContext
from storybook.narrative.expr import as_expr
from storybook.narrative.rich_text import TextSpan


def _no_effect(ctx: NarrativeContext) -> None:
    return None


@dataclass(frozen=True)
class SimpleExtra:
    illustration: Optional[str] = None          # Asset-relative path, e.g. "illustrations/dragon-with-cow.png"
    secondary_text: str = ""
    decorations: Tuple[str, ...] = ()           # Extra images drawn around the page


@dataclass(eq=False)
class Choice:
    text: Any                                   # str | callable(ctx) -> str | NarrativeExpr
    next: Any                                   # int | callable(ctx) -> int | NarrativeExpr
    illustration: Optional[str] = None
    additional_text: Any = ""                   # Shown once the choice is committed
    effect: Callable[[NarrativeContext], None] = _no_effect

    def __post_init__(self) -> None:
        self.text = as_expr(self.text)
        self.next = as_expr(self.next)
        self.additional_text = as_expr(self.additional_text)
        if self.effect is None:
            self.effect = _no_effect

    def label(self, ctx: NarrativeContext) -> str:
        return str(self.text.evaluate(ctx))

    def extra_text(self, ctx: NarrativeContext) -> str:
        return str(self.additional_text.evaluate(ctx) or "")

    def next_node(self, ctx: NarrativeContext) -> Any:
        """ Destination for `ctx`. Call it with the post-effect context. """
        return self.next.evaluate(ctx)


@dataclass(eq=False)
class SimpleNode:
    content: Any                                # str | callable(ctx) -> str | NarrativeExpr
    extra: Any = None                           # SimpleExtra | callable(ctx) -> SimpleExtra | None
    next: Optional[int] = None                  # None = terminal

    def __post_init__(self) -> None:
        self.content = as_expr(self.content)
        self.extra = as_expr(self.extra if self.extra is not None else SimpleExtra())

    @property
    def is_terminal(self) -> bool:
        return self.next is None


@dataclass(eq=False)
class ForkNode:
    content: Any
    choices: List[Choice] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.content = as_expr(self.content)
        self.choices = list(self.choices)


StoryNode = Union[SimpleNode, ForkNode]


# --- Resolved views (what the presentation layer receives) -------------------

@dataclass(frozen=True)
class ChoiceView:
    index: int
    text: str
    illustration: Optional[str] = None


@dataclass(frozen=True)
class ChosenView:
    index: int
    text: str
    illustration: Optional[str]
    additional_text: str


@dataclass(frozen=True)
class NodeView:
    index: int
    kind: str                                   # "simple" | "fork"
    content: str
    spans: Tuple[TextSpan, ...]
    extra: Optional[SimpleExtra] = None         # Simple nodes only
    choices: Tuple[ChoiceView, ...] = ()        # Fork nodes only
    terminal: bool = False

    @property
    def is_fork(self) -> bool:
        return self.kind == "fork"
