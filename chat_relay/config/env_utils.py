"""Seed process environment from a local .env file."""

from __future__ import annotations

import os
import warnings
from pathlib import Path
from typing import Dict, MutableMapping, Optional

from dotenv import dotenv_values


ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


def load_env_file(
    path: Optional[Path] = None,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """Copy key/value pairs from the .env file into the environment.

    Keys that are already set are left untouched, so the real environment
    always wins over the file. Returns the pairs that were actually seeded.
    """

    env_path = Path(path) if path is not None else ENV_FILE
    target = os.environ if environ is None else environ
    seeded: Dict[str, str] = {}
    if not env_path.exists():
        return seeded
    try:
        values = dotenv_values(env_path, encoding="utf-8")
    except OSError as exc:
        warnings.warn(f"Could not read {env_path}: {exc}")
        return seeded
    for key, value in values.items():
        if not key or value is None or key in target:
            continue
        target[key] = value
        seeded[key] = value
    return seeded
