# flowcheck/utils/io.py
from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import yaml

PathLike = Union[str, Path]


def to_path(p: PathLike) -> Path:
    """Convert string-like to pathlib.Path."""
    return p if isinstance(p, Path) else Path(p)


def ensure_parent(path: PathLike) -> Path:
    """Ensure parent directory exists for a file path."""
    p = to_path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    return p


# -------- Text / JSON / YAML / CSV --------
def write_text(path: PathLike, text: str, encoding: str = "utf-8") -> Path:
    """Write text atomically (via temp file then replace)."""
    p = ensure_parent(path)
    tmp = p.with_suffix(p.suffix + ".tmp")
    tmp.write_text(text, encoding=encoding)
    tmp.replace(p)
    return p


def read_json(path: PathLike) -> Any:
    with to_path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def read_yaml(path: PathLike) -> Any:
    with to_path(path).open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def write_csv(path: PathLike, rows: Iterable[Iterable[Any]], header: Optional[Iterable[str]] = None) -> Path:
    """Write CSV with optional header."""
    p = ensure_parent(path)
    tmp = p.with_suffix(p.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        if header:
            w.writerow(list(header))
        for r in rows:
            w.writerow(list(r))
    tmp.replace(p)
    return p


# -------- Generic loader --------
def load_any(path: PathLike) -> Any:
    """
    Load structured data by extension:
      - .json -> JSON
      - .yaml/.yml -> YAML
    """
    p = to_path(path)
    suf = p.suffix.lower()
    if suf == ".json":
        return read_json(p)
    if suf in (".yaml", ".yml"):
        return read_yaml(p)
    raise ValueError(f"Unsupported extension: {suf} for {p}")
