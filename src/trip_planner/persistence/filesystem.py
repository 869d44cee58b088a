"""File-based persistence helpers for optimization run outputs."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from ..config import settings


class FileStorage:
    """Thin wrapper around the data root for storing JSON and CSV outputs."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.output_root = self.root / "outputs"
        self.output_root.mkdir(parents=True, exist_ok=True)

    def make_run_directory(
        self,
        prefix: str = "route",
        *,
        source: str | None = None,
        stops: int | None = None,
    ) -> Path:
        """Create ``outputs/<prefix>[_<source>][_<n>stops]_<timestamp>_<suffix>``."""
        label = [prefix]
        if source:
            label.append(source)
        if stops is not None:
            label.append(f"{stops}stops")
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        # several runs can land in the same second
        path = self.output_root / f"{'_'.join(label)}_{timestamp}_{uuid4().hex[:6]}"
        path.mkdir(parents=True, exist_ok=False)
        return path

    def write_json(self, path: Path, data: Any, *, indent: int = 2) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=indent)

    def write_csv(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(content)
