"""Config file discovery and loading.

``layergrid.toml`` is found the way git finds ``.git/``: walk up from the
working directory until a file turns up or the filesystem root is hit.
``LAYERGRID_CONFIG`` pins the file instead; when it names a file that
does not exist, no config is used at all rather than falling back to the
walk-up.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from layergrid.config.models import LayergridConfig

CONFIG_FILENAME = "layergrid.toml"
CONFIG_ENV_VAR = "LAYERGRID_CONFIG"


def _search_dirs(start: Path) -> Iterator[Path]:
    """Yield *start* and each of its ancestors, nearest first."""
    current = start.resolve()
    yield current
    yield from current.parents


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file that applies to *start* (default: cwd), if any."""
    pinned = os.environ.get(CONFIG_ENV_VAR)
    if pinned:
        path = Path(pinned)
        return path if path.is_file() else None

    for directory in _search_dirs(start or Path.cwd()):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path*. Syntax errors become ``ValueError`` naming the file."""
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ValueError(msg) from exc


def load_config(path: Path | None = None, cwd: Path | None = None) -> LayergridConfig:
    """Load and validate a config file.

    Without *path* the file is discovered from *cwd*; with no file at all
    the code defaults apply.
    """
    if path is None:
        path = find_config(cwd)
    if path is None:
        return LayergridConfig()
    return LayergridConfig.model_validate(read_toml(path))
