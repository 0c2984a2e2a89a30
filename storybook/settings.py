from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Tuple
import yaml

DEFAULTS_PATH = Path(__file__).resolve().parents[1] / "dragonbook" / "config" / "defaults.yaml"


@dataclass
class WindowCfg:
    width: int = 1280
    height: int = 720
    title: str = "The Dragon of Montblanc"
    bg_rgb: tuple[int, int, int] = (28, 22, 18)


@dataclass
class BookCfg:
    page_flip_duration: float = 0.6         # Seconds for the page-turn sweep
    strict_transitions: bool = False        # Raise on events the current phase does not accept
    font_path: str | None = None            # None = pygame default font
    text_font_size: int = 30
    choice_font_size: int = 22
    page_rgb: tuple[int, int, int] = (238, 228, 206)
    ink_rgb: tuple[int, int, int] = (30, 24, 20)
    highlight_rgba: tuple[int, int, int, int] = (180, 30, 30, 90)


@dataclass
class InputCfg:
    advance_keys: Tuple[str, ...] = ("space", "return")
    restart_keys: Tuple[str, ...] = ("r", "space", "return")


@dataclass
class LoggingCfg:
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class StoryCfg:
    source: str = "builtin"                 # "builtin" or a path to a YAML story
    validate_exhaustive: bool = False


@dataclass
class AppCfg:
    fps: int = 60
    window: WindowCfg = field(default_factory=WindowCfg)
    book: BookCfg = field(default_factory=BookCfg)
    input: InputCfg = field(default_factory=InputCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)
    story: StoryCfg = field(default_factory=StoryCfg)


def _get(d: dict, path: str, default: Any):
    cur = d
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def _opt_str(v: Any) -> str | None:
    return None if v in (None, "") else str(v)


def load_settings(path: str | Path = DEFAULTS_PATH) -> AppCfg:
    data = {}
    p = Path(path)
    if p.exists():
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    return settings_from_dict(data)


def settings_from_dict(data: dict) -> AppCfg:
    d = AppCfg()
    return AppCfg(
        fps=int(_get(data, "fps", d.fps)),
        window=WindowCfg(
            width=int(_get(data, "window.width", d.window.width)),
            height=int(_get(data, "window.height", d.window.height)),
            title=str(_get(data, "window.title", d.window.title)),
            bg_rgb=tuple(_get(data, "window.bg_rgb", d.window.bg_rgb)),
        ),
        book=BookCfg(
            page_flip_duration=float(_get(data, "book.page_flip_duration", d.book.page_flip_duration)),
            strict_transitions=bool(_get(data, "book.strict_transitions", d.book.strict_transitions)),
            font_path=_opt_str(_get(data, "book.font_path", d.book.font_path)),
            text_font_size=int(_get(data, "book.text_font_size", d.book.text_font_size)),
            choice_font_size=int(_get(data, "book.choice_font_size", d.book.choice_font_size)),
            page_rgb=tuple(_get(data, "book.page_rgb", d.book.page_rgb)),
            ink_rgb=tuple(_get(data, "book.ink_rgb", d.book.ink_rgb)),
            highlight_rgba=tuple(_get(data, "book.highlight_rgba", d.book.highlight_rgba)),
        ),
        input=InputCfg(
            advance_keys=tuple(str(k) for k in _get(data, "input.advance_keys", d.input.advance_keys)),
            restart_keys=tuple(str(k) for k in _get(data, "input.restart_keys", d.input.restart_keys)),
        ),
        logging=LoggingCfg(
            level=str(_get(data, "logging.level", d.logging.level)).upper(),
            format=str(_get(data, "logging.format", d.logging.format)),
        ),
        story=StoryCfg(
            source=str(_get(data, "story.source", d.story.source)),
            validate_exhaustive=bool(_get(data, "story.validate_exhaustive", d.story.validate_exhaustive)),
        ),
    )
