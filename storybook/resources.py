from __future__ import annotations

import sys
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

import pygame

logger = logging.getLogger(__name__)

# --- Project / assets root ----------------------------------------------------

def _project_root() -> Path:
    """
    Works in dev and with PyInstaller-like bundles.
    """
    if getattr(sys, "_MEIPASS", None):  # PyInstaller temp dir
        return Path(sys._MEIPASS)  # type: ignore[attr-defined]
    return Path(__file__).resolve().parents[1]  # storybook/ -> [project root]

_ASSETS_ROOT = _project_root() / "dragonbook" / "assets"


def set_assets_root(path: str | Path) -> None:
    """ Point illustration lookups somewhere else (e.g. a YAML story's folder). """
    global _ASSETS_ROOT
    _ASSETS_ROOT = Path(path)
    clear_image_cache()


def asset_path(*parts: str) -> str:
    """
    Build an absolute path into the assets folder. Example:
        asset_path("illustrations", "normal-dragon.png")
    """
    return str(_ASSETS_ROOT.joinpath(*parts))


# --- Image cache + loading ----------------------------------------------------

# Cache key: (relpath, max_size)
_ImageKey = Tuple[str, Optional[Tuple[int, int]]]
_image_cache: Dict[_ImageKey, pygame.Surface] = {}


def _display_ready() -> bool:
    try:
        return pygame.display.get_init() and pygame.display.get_surface() is not None
    except pygame.error:
        return False


def _convert_for_display(surf: pygame.Surface) -> pygame.Surface:
    if not _display_ready():
        return surf
    # Keep per-pixel alpha if present
    if surf.get_alpha() is not None or surf.get_flags() & pygame.SRCALPHA:
        return surf.convert_alpha()
    return surf.convert()


def fit_size(src: Tuple[int, int], box: Tuple[int, int]) -> Tuple[int, int]:
    """ Largest size with src's aspect ratio that fits inside box ("contain"). """
    sw, sh = src
    bw, bh = box
    if sw <= 0 or sh <= 0:
        return (max(1, bw), max(1, bh))
    scale = min(bw / sw, bh / sh)
    return (max(1, int(sw * scale)), max(1, int(sh * scale)))


def _fallback_surface(size: Tuple[int, int] = (48, 48)) -> pygame.Surface:
    """
    A loud magenta/black checker so missing illustrations are obvious.
    """
    surf = pygame.Surface(size, pygame.SRCALPHA)
    surf.fill((255, 0, 255))
    pygame.draw.rect(surf, (0, 0, 0), surf.get_rect(), 2)
    pygame.draw.line(surf, (0, 0, 0), (0, 0), (size[0], size[1]), 2)
    pygame.draw.line(surf, (0, 0, 0), (0, size[1]), (size[0], 0), 2)
    return surf


def load_image(relpath: str, *, max_size: Optional[Tuple[int, int]] = None) -> pygame.Surface:
    """
    Load and cache an illustration by asset-relative path, e.g. "illustrations/bat.png".
    - Scaled down (aspect kept) to fit `max_size` when given.
    - Returns a visible fallback surface if the file is missing.
    """
    key: _ImageKey = (relpath, max_size)
    cached = _image_cache.get(key)
    if cached is not None:
        return cached

    abs_path = asset_path(*Path(relpath).parts)
    try:
        surf = pygame.image.load(abs_path)
    except (pygame.error, FileNotFoundError) as e:
        logger.warning("Could not load image '%s': %s", abs_path, e)
        surf = _fallback_surface(max_size or (48, 48))

    if max_size is not None:
        surf = pygame.transform.smoothscale(surf, fit_size(surf.get_size(), max_size))
    surf = _convert_for_display(surf)

    _image_cache[key] = surf
    return surf


def after_display_init() -> None:
    """
    Call this once right after pygame.display.set_mode(...).
    Re-converts cached surfaces loaded before the display existed.
    """
    if not _display_ready():
        return
    for key, surf in list(_image_cache.items()):
        _image_cache[key] = _convert_for_display(surf)


def clear_image_cache() -> None:
    _image_cache.clear()
