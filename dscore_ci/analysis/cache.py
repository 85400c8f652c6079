"""
Memoization of expensive result tables on disk.

A cached table is keyed by an md5 of the prefix, a hash of every input
table, the estimator version and the run parameters. Absent keys are
computed and stored; present keys are loaded. Whether to use the cache is
the caller's decision.
"""

from __future__ import annotations

import hashlib
import io
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import pandas as pd

from ..preprocessing.constants import ALGORITHM_VERSION, OUTPUT_CACHE_DIR


def hash_frame(df: pd.DataFrame) -> str:
    """Content hash of a table, including column names."""
    row_hashes = pd.util.hash_pandas_object(df, index=False).to_numpy()
    digest = hashlib.md5(row_hashes.tobytes())
    digest.update(",".join(map(str, df.columns)).encode("utf-8"))
    return digest.hexdigest()


def generate_cache_key(prefix: str, inputs: Mapping[str, pd.DataFrame], **params) -> str:
    parts = [f"{name}={hash_frame(df)}" for name, df in sorted(inputs.items())]
    parts.append(f"version={ALGORITHM_VERSION}")
    parts.extend(f"{k}={v}" for k, v in sorted(params.items()))
    param_hash = hashlib.md5("_".join(parts).encode("utf-8")).hexdigest()[:12]
    return f"{prefix}_{param_hash}.csv"


def _load_cached(path: Path) -> Optional[pd.DataFrame]:
    if not path.exists():
        return None
    return pd.read_csv(path, encoding="utf-8-sig")


def _stored_form(table: pd.DataFrame) -> pd.DataFrame:
    """The table as it reads back from its CSV copy."""
    buffer = io.StringIO()
    table.to_csv(buffer, index=False)
    buffer.seek(0)
    return pd.read_csv(buffer)


def cached_table(
    prefix: str,
    inputs: Mapping[str, pd.DataFrame],
    params: Dict[str, Any],
    compute: Callable[[], pd.DataFrame],
    cache_dir: Optional[Path] = None,
    use_cache: bool = True,
    force_rebuild: bool = False,
) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Return ``compute()`` or its stored copy.

    Returns
    -------
    (table, info)
        ``info`` has ``cached`` (loaded from disk) and ``path``. A fresh
        table is returned in its stored form, so both cases hash and
        compare alike.
    """
    cache_dir = Path(cache_dir) if cache_dir is not None else OUTPUT_CACHE_DIR
    path = cache_dir / generate_cache_key(prefix, inputs, **params)

    if use_cache and not force_rebuild:
        cached = _load_cached(path)
        if cached is not None:
            return cached, {"cached": True, "path": path}

    table = _stored_form(compute())
    if use_cache:
        cache_dir.mkdir(parents=True, exist_ok=True)
        table.to_csv(path, index=False, encoding="utf-8-sig")
    return table, {"cached": False, "path": path}
