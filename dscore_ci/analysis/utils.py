"""
Output paths and table writers shared by analysis scripts.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pandas as pd

from ..preprocessing.constants import OUTPUT_STATS_DIR


def get_output_dir(name: str = "", base_dir: Optional[Path] = None) -> Path:
    """Return (and create) ``outputs/stats/<name>``."""
    out_dir = Path(base_dir) if base_dir is not None else OUTPUT_STATS_DIR
    if name:
        out_dir = out_dir / name
    out_dir.mkdir(parents=True, exist_ok=True)
    return out_dir


def save_table(df: pd.DataFrame, path: Path, verbose: bool = True) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False, encoding="utf-8-sig")
    if verbose:
        print(f"Saved: {path}")
    return path


def print_section_header(title: str) -> None:
    print()
    print("=" * 70)
    print(title)
    print("=" * 70)
