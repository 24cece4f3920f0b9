"""Prompt templates for the reasoners, one YAML mapping per profile."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, Tuple

import yaml

PROMPTS_DIR = Path(__file__).parent


@lru_cache(maxsize=None)
def _read_profile(path: Path) -> Tuple[Tuple[str, str], ...]:
    if not path.is_file():
        raise FileNotFoundError(f"Prompt file not found: {path}")
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise TypeError(f"Prompt file must hold a mapping of name to template: {path}")
    return tuple((str(k), v.strip()) for k, v in data.items() if isinstance(v, str))


def load_prompts(profile: str, required_keys: Iterable[str]) -> Dict[str, str]:
    """Templates of ``<profile>.yaml``, stripped. Every key in ``required_keys`` must be present and non-blank."""
    path = PROMPTS_DIR / f"{profile}.yaml"
    templates = dict(_read_profile(path))
    missing = [k for k in required_keys if not templates.get(k)]
    if missing:
        raise KeyError(f"Prompt file {path.name} lacks templates: {', '.join(missing)}")
    return templates
