"""Small file helpers shared by the history log and the credential slots."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def write_json_atomic(path: Path, data: Any, *, indent: int | None = 2) -> None:
    """Serialize ``data`` next to ``path`` and rename it into place.

    Readers never observe a half-written file: the rename either lands the
    whole new document or leaves the previous one untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(path.suffix + ".tmp")
    with open(temp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent)
        f.write("\n")
    temp_path.replace(path)


def read_json(path: Path) -> Any:
    """Read a JSON document. Raises FileNotFoundError / ValueError as json does."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)
