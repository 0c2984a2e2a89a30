from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Generic, NoReturn, TypeVar, Union

from storybook.errors import UnreachableBranchError
from storybook.narrative.context import NarrativeContext

T = TypeVar("T")


class NarrativeExpr(Generic[T]):
    """ A value that may depend on the narrative context. """
    def evaluate(self, ctx: NarrativeContext) -> T:
        raise NotImplementedError

    @property
    def is_constant(self) -> bool:
        return False


@dataclass(frozen=True)
class Constant(NarrativeExpr[T]):
    value: T

    def evaluate(self, ctx: NarrativeContext) -> T:
        return self.value

    @property
    def is_constant(self) -> bool:
        return True


@dataclass(frozen=True)
class Computed(NarrativeExpr[T]):
    fn: Callable[[NarrativeContext], T]

    def evaluate(self, ctx: NarrativeContext) -> T:
        return self.fn(ctx)


ExprLike = Union[NarrativeExpr[T], Callable[[NarrativeContext], T], T]


def as_expr(value: Any) -> NarrativeExpr:
    """
    Coerce authoring shorthand into an expression:
      - NarrativeExpr      -> as-is
      - callable           -> Computed
      - anything else      -> Constant
    """
    if isinstance(value, NarrativeExpr):
        return value
    if callable(value):
        return Computed(value)
    return Constant(value)


def unreachable(ctx: NarrativeContext, message: str = "No expected flag is set") -> NoReturn:
    """ Fallback for flag combinations the story author considers impossible. """
    raise UnreachableBranchError(message, context=ctx.snapshot())
