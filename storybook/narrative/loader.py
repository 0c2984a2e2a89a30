from __future__ import annotations
from typing import Any, Callable, Dict, List, Sequence, Tuple, Type
import yaml

from storybook.errors import StoryConfigError
from storybook.narrative.context import NarrativeContext, make_context_type
from storybook.narrative.expr import unreachable
from storybook.narrative.graph import StoryGraph
from storybook.narrative.types import Choice, ForkNode, SimpleExtra, SimpleNode

Condition = Tuple[Tuple[str, bool], ...]    # ((flag, expected), ...) all must hold


def _say(raw: Any) -> str:
    """ say: allow str or list[str] (join lists into a single block) """
    if isinstance(raw, list):
        return "\n".join(str(s) for s in raw)
    if raw is None:
        return ""
    return str(raw)


def _flag_list(src: str, where: str, raw: Any, known: Sequence[str]) -> List[str]:
    if raw is None:
        return []
    items = [raw] if isinstance(raw, str) else list(raw)
    out = []
    for item in items:
        name = str(item).strip()
        if name not in known:
            raise StoryConfigError(f"{src}: {where} references undeclared flag '{name}'")
        out.append(name)
    return out


def _condition(src: str, where: str, raw: Any, known: Sequence[str]) -> Condition:
    """ 'flag', '!flag' or a list of those (all must hold). """
    items = [raw] if isinstance(raw, str) else list(raw or [])
    if not items:
        raise StoryConfigError(f"{src}: {where} has an empty 'if'")
    out = []
    for item in items:
        s = str(item).strip()
        expected = not s.startswith("!")
        name = s.lstrip("!").strip()
        if name not in known:
            raise StoryConfigError(f"{src}: {where} references undeclared flag '{name}'")
        out.append((name, expected))
    return tuple(out)


def _make_effect(to_set: List[str], to_clear: List[str]) -> Callable[[NarrativeContext], None]:
    def effect(ctx: NarrativeContext) -> None:
        for name in to_set:
            setattr(ctx, name, True)
        for name in to_clear:
            setattr(ctx, name, False)
    return effect


def _make_router(src: str, where: str, rules: List[Tuple[Condition, int]], fallback: Any):
    def route(ctx: NarrativeContext) -> int:
        for cond, target in rules:
            if all(bool(getattr(ctx, name)) is expected for name, expected in cond):
                return target
        if fallback is None:
            unreachable(ctx, f"{src}: {where} has no goto rule for this combination of flags")
        return fallback
    return route


def _goto(src: str, where: str, raw: Any, known: Sequence[str]) -> Any:
    """
    goto: int
       or: [{if: flag | [flags], goto: int}, ..., {else: int}]
    """
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if not isinstance(raw, list) or not raw:
        raise StoryConfigError(f"{src}: {where} needs 'goto' as an int or a list of rules")
    rules: List[Tuple[Condition, int]] = []
    fallback = None
    for i, rule in enumerate(raw):
        if not isinstance(rule, dict):
            raise StoryConfigError(f"{src}: {where} goto rule {i} must be a mapping")
        if "else" in rule:
            if "if" in rule or "goto" in rule:
                raise StoryConfigError(f"{src}: {where} goto rule {i} mixes 'else' with 'if'/'goto'")
            if i != len(raw) - 1:
                raise StoryConfigError(f"{src}: {where} goto 'else' must be the last rule")
            fallback = _int(src, f"{where} goto else", rule["else"])
            continue
        cond = _condition(src, f"{where} goto rule {i}", rule.get("if"), known)
        rules.append((cond, _int(src, f"{where} goto rule {i}", rule.get("goto"))))
    return _make_router(src, where, rules, fallback)


def _int(src: str, where: str, raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise StoryConfigError(f"{src}: {where} must be an int, got {raw!r}")
    return raw


def load_story_data(data: Dict[str, Any], source: str = "<memory>") -> StoryGraph:
    """
    Build a StoryGraph from parsed YAML:
        title: <str>
        flags: [<flag>, ...]
        nodes: { <int>: {say, illustration?, secondary_text?, next? | choices: [...]} }
    The graph is returned unsealed; call validate_or_raise() before playing.
    """
    if not isinstance(data, dict):
        raise StoryConfigError(f"{source}: top level must be a mapping")
    title = str(data.get("title", "")).strip()
    if not title:
        raise StoryConfigError(f"{source}: Missing 'title'")

    flags = [str(f) for f in (data.get("flags") or [])]
    try:
        context_type: Type[NarrativeContext] = make_context_type(title, flags)
    except ValueError as ex:
        raise StoryConfigError(f"{source}: {ex}") from ex

    raw_nodes = data.get("nodes", {})
    if not isinstance(raw_nodes, dict) or not raw_nodes:
        raise StoryConfigError(f"{source}: 'nodes' must be a non-empty mapping")

    graph = StoryGraph(context_type, title=title)
    for key, body in raw_nodes.items():
        index = _int(source, "node key", key)
        where = f"node {index}"
        if not isinstance(body, dict):
            raise StoryConfigError(f"{source}: {where} must be a mapping")
        say = _say(body.get("say"))

        raw_choices = body.get("choices")
        if raw_choices is None:
            nxt = body.get("next")
            extra = SimpleExtra(
                illustration=body.get("illustration"),
                secondary_text=_say(body.get("secondary_text")),
                decorations=tuple(str(d) for d in (body.get("decorations") or [])),
            )
            graph.add_node(index, SimpleNode(
                content=say,
                extra=extra,
                next=None if nxt is None else _int(source, f"{where} next", nxt),
            ))
            continue

        if "next" in body:
            raise StoryConfigError(f"{source}: {where} has both 'next' and 'choices'")
        if not isinstance(raw_choices, list) or not raw_choices:
            raise StoryConfigError(f"{source}: {where} 'choices' must be a non-empty list")
        choices = []
        for i, c in enumerate(raw_choices):
            cwhere = f"{where} choice {i}"
            if not isinstance(c, dict):
                raise StoryConfigError(f"{source}: {cwhere} must be a mapping")
            choices.append(Choice(
                text=str(c.get("text") or ""),
                next=_goto(source, cwhere, c.get("goto"), flags),
                illustration=c.get("illustration"),
                additional_text=_say(c.get("additional_text")),
                effect=_make_effect(
                    _flag_list(source, f"{cwhere} set", c.get("set"), flags),
                    _flag_list(source, f"{cwhere} clear", c.get("clear"), flags),
                ),
            ))
        graph.add_node(index, ForkNode(content=say, choices=choices))
    return graph


def load_story_text(text: str, source: str = "<string>") -> StoryGraph:
    return load_story_data(yaml.safe_load(text) or {}, source)


def load_story_file(path: str) -> StoryGraph:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return load_story_data(data, path)
