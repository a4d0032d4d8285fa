"""Vault location and editor settings.

Environment variables (all optional; direct arguments take precedence):
    WEAVE_VAULT   – path to the notes vault (default: ``./notes``)
    WEAVE_EDITOR  – editor command used by ``weave new --edit`` / ``weave edit``
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from weave.errors import ConfigError

ENV_VAULT = "WEAVE_VAULT"
ENV_EDITOR = "WEAVE_EDITOR"
DEFAULT_VAULT = "notes"


@dataclass(frozen=True)
class Config:
    vault_dir: Path
    editor: str = ""


def validate_vault_path(path: Path | str) -> Path:
    """Return *path* made absolute, if it is a directory or could be created as one.

    A path that does not exist yet is accepted when its parent is an existing
    directory; the store creates it on the first write.
    """
    candidate = Path(os.path.abspath(Path(path).expanduser()))

    if candidate.exists():
        if not candidate.is_dir():
            raise ConfigError(f"vault path exists but is not a directory: {candidate}")
        return candidate

    parent = candidate.parent
    if not parent.exists():
        raise ConfigError(f"vault parent missing or not accessible: {parent}")
    if not parent.is_dir():
        raise ConfigError(f"vault parent is not a directory: {parent}")
    return candidate


def load_config(
    vault: Path | str | None = None,
    editor: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Config:
    env = os.environ if environ is None else environ
    vault_path = vault or env.get(ENV_VAULT) or DEFAULT_VAULT
    editor_cmd = editor or env.get(ENV_EDITOR, "")
    return Config(vault_dir=validate_vault_path(vault_path), editor=editor_cmd)
