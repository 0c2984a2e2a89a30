from __future__ import annotations
import copy
import re
from dataclasses import MISSING, dataclass, fields, asdict, make_dataclass, field
from typing import Any, Dict, Iterable, Tuple, Type, TypeVar

C = TypeVar("C", bound="NarrativeContext")


@dataclass
class NarrativeContext:
    """
    Flat record of story flags. Stories subclass it and declare their flags
    as dataclass fields, all with defaults:

        @dataclass
        class DragonContext(NarrativeContext):
            normal_dragon: bool = False
            disguised_dragon: bool = False

    Only choice effects should mutate it. Equality is by field values.
    """

    def __setattr__(self, name: str, value: Any) -> None:
        # Unknown names are typos in an effect, never new flags
        if name not in self.flag_names():
            raise AttributeError(f"{type(self).__name__} has no flag '{name}'")
        object.__setattr__(self, name, value)

    @classmethod
    def flag_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def bool_flag_names(cls) -> Tuple[str, ...]:
        """ Flags whose default is a bool (used by exhaustive validation). """
        out = []
        for f in fields(cls):
            default = f.default_factory() if f.default_factory is not MISSING else f.default
            if isinstance(default, bool):
                out.append(f.name)
        return tuple(out)

    def clone(self: C) -> C:
        return copy.deepcopy(self)

    def snapshot(self) -> Dict[str, Any]:
        return asdict(self)

    def state_key(self) -> Tuple[Tuple[str, Any], ...]:
        """ Hashable identity of the current values. """
        return tuple((k, _freeze(v)) for k, v in self.snapshot().items())


def _freeze(v: Any) -> Any:
    if isinstance(v, dict):
        return tuple(sorted((k, _freeze(x)) for k, x in v.items()))
    if isinstance(v, (list, set, tuple)):
        return tuple(_freeze(x) for x in v)
    return v


def make_context_type(name: str, flags: Iterable[str]) -> Type[NarrativeContext]:
    """ Build a NarrativeContext subclass with one False-by-default bool per flag. """
    seen: list[str] = []
    for flag in flags:
        flag = str(flag).strip()
        if not flag.isidentifier():
            raise ValueError(f"Flag name '{flag}' is not a valid identifier")
        if flag.startswith("_") or hasattr(NarrativeContext, flag):
            raise ValueError(f"Flag name '{flag}' is reserved")
        if flag in seen:
            raise ValueError(f"Duplicate flag '{flag}'")
        seen.append(flag)
    words = [w for w in re.split(r"[^0-9A-Za-z]+", name) if w]
    cls_name = "".join(w.capitalize() for w in words)
    if not cls_name or not cls_name[0].isalpha():
        cls_name = f"Story{cls_name}"
    return make_dataclass(
        f"{cls_name}Context",
        [(flag, bool, field(default=False)) for flag in seen],
        bases=(NarrativeContext,),
    )
