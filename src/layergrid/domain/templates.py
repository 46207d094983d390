"""Layer templates — purpose-based defaults and identity minting.

A purpose (``bg``, ``detail``, ``sketch`` ...) selects a display name and
flags for a new layer.  Unknown purposes fall back to ``main``.

INVARIANT: Layer IDs are permanent. Once minted, an ID never changes,
including across undo/redo of the command that created the layer.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass

LAYER_BG = "bg"
LAYER_MID = "mid"
LAYER_FG = "fg"

LAYER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(frozen=True)
class LayerTemplate:
    """Defaults applied to a layer created for a given purpose."""

    name: str
    visible: bool = True
    locked: bool = False


PURPOSE_TEMPLATES: dict[str, LayerTemplate] = {
    "bg": LayerTemplate("Background"),
    "mid": LayerTemplate("Middle"),
    "fg": LayerTemplate("Foreground"),
    "main": LayerTemplate("Main"),
    "detail": LayerTemplate("Detail"),
    "effect": LayerTemplate("Effect"),
    "overlay": LayerTemplate("Overlay"),
    "sketch": LayerTemplate("Sketch"),
}

DEFAULT_PURPOSE = "main"


def template_for(purpose: str) -> LayerTemplate:
    return PURPOSE_TEMPLATES.get(purpose, PURPOSE_TEMPLATES[DEFAULT_PURPOSE])


def mint_layer_id(purpose: str) -> str:
    """Generate a fresh layer ID: ``{purpose}_{8 hex chars}``."""
    prefix = re.sub(r"[^A-Za-z0-9_-]", "", purpose) or DEFAULT_PURPOSE
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


def validate_layer_id(layer_id: str) -> bool:
    return bool(layer_id) and LAYER_ID_PATTERN.match(layer_id) is not None


def suggest_layer_name(existing_names: list[str], purpose: str) -> str:
    """Return the template name, numbered when already taken.

    Examples:
        >>> suggest_layer_name(["Background"], "detail")
        'Detail'
        >>> suggest_layer_name(["Detail", "Detail 2"], "detail")
        'Detail 3'
    """
    base = template_for(purpose).name
    taken = {name.lower() for name in existing_names}
    if base.lower() not in taken:
        return base
    counter = 2
    while f"{base} {counter}".lower() in taken:
        counter += 1
    return f"{base} {counter}"
