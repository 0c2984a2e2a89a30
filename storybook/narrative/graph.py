from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Set

from storybook.errors import (
    ChoiceIndexError,
    EmptyForkError,
    InvalidOperationError,
    MissingNodeError,
    StoryConfigError,
    UnreachableBranchError,
)
from storybook.narrative.context import NarrativeContext
from storybook.narrative.rich_text import parse_emphasis
from storybook.narrative.types import (
    Choice,
    ChoiceView,
    ForkNode,
    NodeView,
    SimpleExtra,
    SimpleNode,
    StoryNode,
)
from storybook.narrative.validate import Issue, format_issue, validate_graph

logger = logging.getLogger(__name__)

START_NODE = 0


class StoryGraph:
    """
    Nodes keyed by index, a cursor, and the narrative context the nodes read.

    Nodes are added once while building the story; node 0 is the entry point.
    After `seal()` (done by `validate_or_raise()`) the topology is fixed and
    only the cursor and the context change.
    """

    def __init__(self, context_type: Callable[[], NarrativeContext] = NarrativeContext,
                 title: str = "") -> None:
        self.title = title
        self._context_type = context_type
        self._nodes: Dict[int, StoryNode] = {}
        self._current: int = START_NODE
        self._context: NarrativeContext = context_type()
        self._sealed = False

    # ---------- building ----------
    def add_node(self, index: int, node: StoryNode) -> None:
        if self._sealed:
            raise InvalidOperationError(f"Cannot add node {index}: graph is sealed")
        if not isinstance(node, (SimpleNode, ForkNode)):
            raise TypeError(f"Node {index} must be SimpleNode or ForkNode, got {type(node).__name__}")
        if isinstance(node, ForkNode) and not node.choices:
            raise EmptyForkError("Fork node has no choices", node=index)
        self._nodes[int(index)] = node

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    # ---------- queries ----------
    @property
    def nodes(self) -> Dict[int, StoryNode]:
        return dict(self._nodes)

    @property
    def current_index(self) -> int:
        return self._current

    @property
    def context(self) -> NarrativeContext:
        return self._context

    @property
    def context_type(self) -> Callable[[], NarrativeContext]:
        return self._context_type

    def new_context(self) -> NarrativeContext:
        return self._context_type()

    def __contains__(self, index: object) -> bool:
        return index in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def node(self, index: int) -> StoryNode:
        try:
            return self._nodes[index]
        except KeyError:
            raise MissingNodeError("No node registered at index",
                                   node=index, context=self._context.snapshot()) from None

    def get_current_node(self) -> StoryNode:
        return self.node(self._current)

    def is_fork(self) -> bool:
        return isinstance(self.get_current_node(), ForkNode)

    def is_terminal(self) -> bool:
        node = self.get_current_node()
        return isinstance(node, SimpleNode) and node.is_terminal

    @contextmanager
    def evaluating(self, node: Optional[int] = None) -> Iterator[None]:
        """ Attach the node index to unreachable-branch errors raised by story callables. """
        try:
            yield
        except UnreachableBranchError as ex:
            if ex.node is not None:
                raise
            where = self._current if node is None else node
            raise UnreachableBranchError(ex.message, node=where, context=ex.context) from ex

    def get_content(self) -> str:
        with self.evaluating():
            return str(self.get_current_node().content.evaluate(self._context))

    def get_extra(self) -> Optional[SimpleExtra]:
        node = self.get_current_node()
        if isinstance(node, ForkNode):
            return None
        with self.evaluating():
            return node.extra.evaluate(self._context)

    def get_choices(self) -> List[ChoiceView]:
        node = self.get_current_node()
        if not isinstance(node, ForkNode):
            return []
        with self.evaluating():
            return [
                ChoiceView(index=i, text=c.label(self._context), illustration=c.illustration)
                for i, c in enumerate(node.choices)
            ]

    def view(self) -> NodeView:
        """ The current node resolved against the current context. """
        node = self.get_current_node()
        content = self.get_content()
        if isinstance(node, ForkNode):
            return NodeView(
                index=self._current,
                kind="fork",
                content=content,
                spans=tuple(parse_emphasis(content)),
                choices=tuple(self.get_choices()),
            )
        return NodeView(
            index=self._current,
            kind="simple",
            content=content,
            spans=tuple(parse_emphasis(content)),
            extra=self.get_extra(),
            terminal=node.next is None,
        )

    # ---------- navigation ----------
    def advance(self) -> None:
        """ Current node must be simple and non-terminal. """
        node = self.get_current_node()
        if not isinstance(node, SimpleNode):
            raise InvalidOperationError("advance() called on a fork node",
                                        node=self._current, context=self._context.snapshot())
        if node.next is None:
            raise InvalidOperationError("advance() called on a terminal node",
                                        node=self._current, context=self._context.snapshot())
        self._current = self._checked_target(node.next)

    def choose(self, index: int) -> Choice:
        """
        Current node must be a fork. Applies the choice effect, then routes
        with the post-effect context so a choice may lead wherever the flag
        it just set points to.
        """
        node = self.get_current_node()
        if not isinstance(node, ForkNode):
            raise InvalidOperationError("choose() called on a simple node",
                                        node=self._current, context=self._context.snapshot())
        if not 0 <= index < len(node.choices):
            raise ChoiceIndexError(f"Choice {index} out of range (0..{len(node.choices) - 1})",
                                   node=self._current, context=self._context.snapshot())
        choice = node.choices[index]
        with self.evaluating():
            choice.effect(self._context)
            target = choice.next_node(self._context)
        self._current = self._checked_target(target)
        return choice

    def reset(self) -> None:
        self._current = START_NODE
        self._context = self._context_type()

    def _checked_target(self, target: object) -> int:
        if isinstance(target, bool) or not isinstance(target, int):
            raise StoryConfigError(f"Next node must be an int, got {target!r}",
                                   node=self._current, context=self._context.snapshot())
        if target not in self._nodes:
            raise MissingNodeError(f"Next node {target} does not exist",
                                   node=self._current, context=self._context.snapshot())
        return target

    # ---------- validation / debugging ----------
    def validate(self, *, exhaustive: bool = False, max_states: int = 10_000) -> List[Issue]:
        return validate_graph(self, exhaustive=exhaustive, max_states=max_states)

    def validate_or_raise(self, *, exhaustive: bool = False, max_states: int = 10_000) -> None:
        issues = self.validate(exhaustive=exhaustive, max_states=max_states)
        for issue in issues:
            if issue.severity != "ERROR":
                logger.warning("%s", format_issue(issue))
        errors = [i for i in issues if i.severity == "ERROR"]
        if errors:
            first = errors[0]
            lines = "\n".join(format_issue(i) for i in errors)
            raise StoryConfigError(
                f"Story graph '{self.title}' has {len(errors)} error(s):\n{lines}",
                node=first.node,
                issues=errors,
            )
        self.seal()

    def describe(self) -> str:
        """
        Depth-first dump from node 0, one node per line, indented by depth.
        Choice routes are resolved on a copy of the default context with the
        choice's effect applied; nodes already printed on the path show as "(seen)".
        """
        lines: List[str] = []

        def walk(index: int, ctx: NarrativeContext, depth: int, path: Set[int]) -> None:
            pad = "\t" * depth
            node = self._nodes.get(index)
            if node is None:
                lines.append(f"{pad}#{index} <missing>")
                return
            if index in path:
                lines.append(f"{pad}-> #{index} (seen)")
                return
            text = str(node.content.evaluate(ctx))
            if isinstance(node, SimpleNode):
                tail = " [end]" if node.next is None else ""
                lines.append(f"{pad}#{index} Simple: {text!r}{tail}")
                if node.next is not None:
                    walk(node.next, ctx, depth + 1, path | {index})
                return
            lines.append(f"{pad}#{index} Fork: {text!r}")
            for i, choice in enumerate(node.choices):
                branch = ctx.clone()
                label = choice.label(branch)
                choice.effect(branch)
                lines.append(f"{pad}  [{i}] {label!r}")
                walk(choice.next_node(branch), branch, depth + 1, path | {index})

        if START_NODE in self._nodes:
            walk(START_NODE, self.new_context(), 0, set())
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"StoryGraph(title={self.title!r}, nodes={len(self._nodes)}, current={self._current})"
