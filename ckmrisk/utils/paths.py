from __future__ import annotations

from pathlib import Path


def resolve_configured_path(raw: str) -> Path:
    # Relative paths are taken from the working directory, not the install location.
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = Path.cwd() / path
    return path.resolve()
