"""
docforensics.utils: Shared utilities for the document analysis engine.

Provides:

* **FeatureScore dataclass**: The output of every feature extractor.
* **Scalar helpers**: ``clamp01``, ``spread_ratio``.
* **Block helpers**: ``tile_view``, ``sampled_tiles``.
* **Serialisation**: ``json_sanitize``, ``save_json``.
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import numpy as np


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FeatureScore:
    """A single normalised authenticity statistic.

    Attributes
    ----------
    name : str
        Feature identifier (e.g. ``"edge"``, ``"texture"``).
    score : float
        Value in ``[0, 1]``; higher means more consistent with a genuine
        document.
    raw : dict
        Diagnostic values used to compute the score (means, deviations,
        sample counts).  Never used by the scoring engine.
    """

    name: str
    score: float
    raw: Dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Scalar helpers
# ---------------------------------------------------------------------------

def clamp01(x: float) -> float:
    """Clip a scalar to the ``[0.0, 1.0]`` range and return a plain float.

    ``NaN`` maps to ``0.0`` so a score can never leave the unit interval.
    """
    x = float(x)
    if math.isnan(x):
        return 0.0
    return min(1.0, max(0.0, x))


def spread_ratio(values: np.ndarray, offset: float = 1.0) -> Tuple[float, float, float]:
    """Return ``(std / (mean + offset), mean, std)`` for a 1-D sample.

    This is the coefficient-of-variation form used by most extractors;
    the *offset* keeps the ratio finite for all-zero samples.
    """
    values = np.asarray(values, dtype=np.float64).ravel()
    mean = float(values.mean())
    std = float(values.std())
    return std / (mean + offset), mean, std


# ---------------------------------------------------------------------------
# Array manipulation
# ---------------------------------------------------------------------------

def tile_view(
    arr: np.ndarray, tile_h: int, tile_w: int,
) -> Tuple[np.ndarray, int, int]:
    """Reshape a 2-D (or 3-D) array into non-overlapping tiles.

    The array is cropped to the largest dimensions that are exact
    multiples of the tile size.  The returned array is a **view** of
    the original data when the input is contiguous.

    Parameters
    ----------
    arr : np.ndarray
        Input array of shape ``(H, W)`` or ``(H, W, C)``.
    tile_h, tile_w : int
        Tile height and width in pixels.

    Returns
    -------
    tiles : np.ndarray
        For a 2-D input the shape is ``(n_rows, n_cols, tile_h, tile_w)``;
        for 3-D it is ``(n_rows, n_cols, tile_h, tile_w, C)``.
    n_rows : int
        Number of tile rows.
    n_cols : int
        Number of tile columns.
    """
    H, W = arr.shape[:2]
    nh = H // tile_h
    nw = W // tile_w
    cropped = arr[: nh * tile_h, : nw * tile_w]
    if cropped.ndim == 2:
        tiles = cropped.reshape(nh, tile_h, nw, tile_w).swapaxes(1, 2)
    else:
        C = cropped.shape[2]
        tiles = cropped.reshape(nh, tile_h, nw, tile_w, C).swapaxes(1, 2)
    return tiles, nh, nw


def sampled_tiles(arr: np.ndarray, block: int) -> Tuple[np.ndarray, int, int]:
    """Tile *arr* on the block grid sampled by the block-level extractors.

    Blocks start at ``0, block, 2*block, ...`` strictly below
    ``extent - block``, so the trailing block along each axis is never
    sampled, even when it fits exactly.
    """
    H, W = arr.shape[:2]
    nh = max(0, (H - 1) // block)
    nw = max(0, (W - 1) // block)
    return tile_view(arr[: nh * block, : nw * block], block, block)


# ---------------------------------------------------------------------------
# JSON serialisation
# ---------------------------------------------------------------------------

def json_sanitize(obj: Any) -> Any:
    """Recursively convert an object tree into JSON-safe Python types.

    Handles: ``numpy`` scalars/arrays, ``Path`` objects, ``dataclass``
    instances, ``NaN``/``Inf`` floats (mapped to ``None``), and nested
    dicts/lists.
    """
    if obj is None:
        return None
    if isinstance(obj, Path):
        return str(obj)
    if hasattr(obj, "__dataclass_fields__"):
        return {k: json_sanitize(v) for k, v in asdict(obj).items()}
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating,)):
        return json_sanitize(float(obj))
    if isinstance(obj, (np.ndarray,)):
        return json_sanitize(obj.tolist())
    if isinstance(obj, (list, tuple)):
        return [json_sanitize(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): json_sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (int, float, str, bool)):
        if isinstance(obj, float) and (math.isnan(obj) or math.isinf(obj)):
            return None
        return obj
    return str(obj)


def save_json(data: Any, out_path: Union[str, Path]) -> str:
    """Serialise *data* to a pretty-printed JSON file.

    All values are passed through :func:`json_sanitize` before writing.

    Returns
    -------
    str
        The string representation of *out_path*.
    """
    out_path = str(out_path)
    safe = json_sanitize(data)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(safe, f, ensure_ascii=False, indent=2)
    return out_path
