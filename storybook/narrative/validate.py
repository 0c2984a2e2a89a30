"""Static and walk-based validation of story graphs."""
from __future__ import annotations

import itertools
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List, Optional, Set, Tuple

from storybook.errors import UnreachableBranchError
from storybook.narrative.context import NarrativeContext
from storybook.narrative.types import ForkNode, SimpleNode, StoryNode

Severity = str

MAX_EXHAUSTIVE_FLAGS = 16


@dataclass(frozen=True)
class Issue:
    severity: Severity
    code: str
    message: str
    node: Optional[int] = None
    choice: Optional[int] = None
    context: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


def format_issue(issue: Issue) -> str:
    where = []
    if issue.node is not None:
        where.append(f"node={issue.node}")
    if issue.choice is not None:
        where.append(f"choice={issue.choice}")
    if issue.context:
        where.append("context={" + ", ".join(f"{k}={v!r}" for k, v in issue.context.items()) + "}")
    suffix = f" ({' '.join(where)})" if where else ""
    return f"[{issue.severity}] {issue.code}: {issue.message}{suffix}"


class _Collector:
    """ Issue list that drops repeats of the same problem seen from another context. """
    def __init__(self) -> None:
        self.issues: List[Issue] = []
        self._keys: Set[Tuple[str, str, Optional[int], Optional[int]]] = set()

    def add(self, issue: Issue) -> None:
        key = (issue.code, issue.message, issue.node, issue.choice)
        if key in self._keys:
            return
        self._keys.add(key)
        self.issues.append(issue)

    def has(self, code: str, node: Optional[int], choice: Optional[int]) -> bool:
        return any(i.code == code and i.node == node and i.choice == choice for i in self.issues)


def validate_graph(graph: Any, *, exhaustive: bool = False, max_states: int = 10_000) -> List[Issue]:
    """
    Check a StoryGraph-like object (`nodes`, `new_context()`).

    Walks every reachable (node, context state) pair from node 0 with a fresh
    context, evaluating content, extras, labels, effects and routes the way
    play would. With `exhaustive=True`, every fork choice is also routed
    under every combination of boolean flags; problems found only that way
    are warnings for content review.
    """
    out = _Collector()
    nodes: Dict[int, StoryNode] = graph.nodes

    if 0 not in nodes:
        out.add(Issue("ERROR", "MISSING_ENTRY", "Story has no entry node 0."))
        return out.issues

    _check_static(nodes, out)
    visited, truncated = _walk(nodes, graph.new_context(), out, max_states)

    if not truncated:
        for index in sorted(nodes):
            if index not in visited:
                out.add(Issue("WARNING", "ORPHAN_NODE", "Node is never reached from node 0.", node=index))

    if exhaustive:
        _check_all_flag_combinations(nodes, graph.new_context, out)
    return out.issues


def _check_static(nodes: Dict[int, StoryNode], out: _Collector) -> None:
    for index, node in nodes.items():
        if isinstance(node, ForkNode):
            if not node.choices:
                out.add(Issue("ERROR", "EMPTY_FORK", "Fork node has no choices.", node=index))
        elif isinstance(node, SimpleNode):
            if node.next is not None:
                _check_target(nodes, node.next, index, None, out, "ERROR", {})
        else:
            out.add(Issue("ERROR", "BAD_NODE", f"Unknown node type {type(node).__name__}.", node=index))


def _check_target(nodes: Dict[int, StoryNode], target: Any, index: int, choice: Optional[int],
                  out: _Collector, severity: Severity, ctx: Dict[str, Any]) -> bool:
    if isinstance(target, bool) or not isinstance(target, int):
        out.add(Issue(severity, "BAD_NEXT", f"Next node must be an int, got {target!r}.",
                      node=index, choice=choice, context=ctx))
        return False
    if target not in nodes:
        out.add(Issue(severity, "MISSING_NODE", f"Next node {target} does not exist.",
                      node=index, choice=choice, context=ctx))
        return False
    return True


def _attempt(fn: Callable[[], Any], index: int, choice: Optional[int], what: str,
             ctx: NarrativeContext, out: _Collector, severity: Severity = "ERROR") -> Tuple[bool, Any]:
    try:
        return True, fn()
    except UnreachableBranchError as ex:
        out.add(Issue(severity, "UNREACHABLE_BRANCH", f"{what}: {ex.message}",
                      node=index, choice=choice, context=ctx.snapshot()))
    except Exception as ex:
        out.add(Issue(severity, "EXPR_FAILED", f"{what} raised {type(ex).__name__}: {ex}",
                      node=index, choice=choice, context=ctx.snapshot()))
    return False, None


def _walk(nodes: Dict[int, StoryNode], start_ctx: NarrativeContext, out: _Collector,
          max_states: int) -> Tuple[Set[int], bool]:
    visited: Set[int] = set()
    seen: Set[Tuple[int, Any]] = set()
    queue: Deque[Tuple[int, NarrativeContext]] = deque([(0, start_ctx)])

    while queue:
        index, ctx = queue.popleft()
        key = (index, ctx.state_key())
        if key in seen:
            continue
        if len(seen) >= max_states:
            out.add(Issue("WARNING", "STATE_LIMIT",
                          f"Stopped after {max_states} (node, context) states; graph not fully checked."))
            return visited, True
        seen.add(key)
        visited.add(index)
        node = nodes[index]

        _attempt(lambda: node.content.evaluate(ctx), index, None, "content", ctx, out)

        if isinstance(node, SimpleNode):
            _attempt(lambda: node.extra.evaluate(ctx), index, None, "extra", ctx, out)
            if node.next is not None and _check_target(nodes, node.next, index, None, out, "ERROR", {}):
                queue.append((node.next, ctx))
            continue

        for i, choice in enumerate(node.choices):
            _attempt(lambda: choice.label(ctx), index, i, "choice text", ctx, out)
            branch = ctx.clone()
            ok, _ = _attempt(lambda: choice.effect(branch), index, i, "choice effect", ctx, out)
            if not ok:
                continue
            ok, target = _attempt(lambda: choice.next_node(branch), index, i, "choice next", branch, out)
            if not ok:
                continue
            _attempt(lambda: choice.extra_text(branch), index, i, "additional text", branch, out)
            if _check_target(nodes, target, index, i, out, "ERROR", branch.snapshot()):
                queue.append((target, branch))

    return visited, False


def _check_all_flag_combinations(nodes: Dict[int, StoryNode], new_context: Callable[[], NarrativeContext],
                                 out: _Collector) -> None:
    flags = type(new_context()).bool_flag_names()
    if len(flags) > MAX_EXHAUSTIVE_FLAGS:
        out.add(Issue("WARNING", "EXHAUSTIVE_SKIPPED",
                      f"{len(flags)} boolean flags; exhaustive check limited to {MAX_EXHAUSTIVE_FLAGS}."))
        return

    for values in itertools.product((False, True), repeat=len(flags)):
        assumed = new_context()
        for name, value in zip(flags, values):
            setattr(assumed, name, value)
        for index, node in nodes.items():
            if not isinstance(node, ForkNode):
                continue
            for i, choice in enumerate(node.choices):
                if out.has("UNREACHABLE_BRANCH", index, i) or out.has("MISSING_NODE", index, i):
                    continue
                branch = assumed.clone()
                ok, _ = _attempt(lambda: choice.effect(branch), index, i, "choice effect (assumed flags)",
                                 assumed, out, severity="WARNING")
                if not ok:
                    continue
                ok, target = _attempt(lambda: choice.next_node(branch), index, i, "choice next (assumed flags)",
                                      branch, out, severity="WARNING")
                if ok:
                    _check_target(nodes, target, index, i, out, "WARNING", branch.snapshot())
