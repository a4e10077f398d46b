from __future__ import annotations

"""
Keyed store of explanatory, formula and evidence content.

Design intent:
- Content is an opaque JSON document addressed by (kind, key).
- Dotted keys descend into nested objects (e.g. evidence "sglt2i.ckd").
- The engine forwards entries verbatim and never interprets them.
- The default document ships inside the package; a configured path replaces it.
"""

import json
from importlib import resources
from pathlib import Path
from typing import Any

PACKAGED_CONTENT = "explanations.json"


class ContentNotFoundError(KeyError):
    """Raised when a (kind, key) pair has no entry."""


class ContentStore:
    def __init__(self, document: dict[str, Any]) -> None:
        if not isinstance(document, dict):
            raise ValueError("Content document must be a JSON object.")
        self._document = document

    @classmethod
    def from_path(cls, path: Path) -> "ContentStore":
        if not path.exists():
            raise ValueError(f"Content file not found: {path}")
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Content file is not valid JSON: {path}") from exc
        return cls(document)

    @classmethod
    def packaged(cls) -> "ContentStore":
        source = resources.files("ckmrisk.content").joinpath(PACKAGED_CONTENT)
        try:
            document = json.loads(source.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ValueError(f"Packaged content missing: {PACKAGED_CONTENT}") from exc
        except json.JSONDecodeError as exc:
            raise ValueError(f"Packaged content is not valid JSON: {PACKAGED_CONTENT}") from exc
        return cls(document)

    def kinds(self) -> list[str]:
        return sorted(self._document.keys())

    def keys(self, kind: str) -> list[str]:
        section = self._document.get(kind)
        if not isinstance(section, dict):
            raise ContentNotFoundError(f"Unknown content kind: {kind}")
        return sorted(section.keys())

    def lookup(self, kind: str, key: str) -> Any:
        node: Any = self._document.get(kind)
        if node is None:
            raise ContentNotFoundError(f"Unknown content kind: {kind}")
        for part in [item for item in key.split(".") if item]:
            if not isinstance(node, dict) or part not in node:
                raise ContentNotFoundError(f"No content for kind={kind!r} key={key!r}")
            node = node[part]
        return node
