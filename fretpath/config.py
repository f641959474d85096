"""Configuration loading for fretpath.

The engine is driven by a single YAML file of cost weights
(``fretpath/configs/tab_costs.yaml``). Callers may point any component
at their own copy to retune the fingering heuristics.

Parsed files are memoised per path; every caller receives its own deep
copy so a tweaked dict never leaks into another cost model.
"""

from __future__ import annotations

import copy
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml


DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent / "configs" / "tab_costs.yaml"


@lru_cache(maxsize=16)
def _read_yaml(resolved_path: str) -> dict[str, Any]:
    with open(resolved_path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)

    if not isinstance(data, dict):
        raise ValueError(
            f"Config file must contain a YAML mapping, got {type(data).__name__}: {resolved_path}"
        )
    return data


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """Load a YAML cost configuration.

    Args:
        config_path: Path to a YAML file. Defaults to the packaged
            ``configs/tab_costs.yaml``.

    Returns:
        A fresh dict with the file's top-level keys.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file does not hold a mapping.
    """
    path = DEFAULT_CONFIG_PATH if config_path is None else Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Cost config not found: {path}")

    return copy.deepcopy(_read_yaml(str(path.resolve())))


def require_keys(cfg: dict[str, Any], keys: list[str], source: str | Path) -> None:
    """Raise ``ValueError`` naming the first key of *keys* missing from *cfg*."""
    for key in keys:
        if key not in cfg:
            raise ValueError(f"Missing required key '{key}' in cost config: {source}")
