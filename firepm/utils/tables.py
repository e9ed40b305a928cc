"""
Time-series table input for FirePM.

Simulation result tables have a units line, then a line of quoted column
names, then comma-separated numeric rows. ``read_time_series`` reads that
layout; ``as_time_series`` converts in-memory data (DataFrame, dict, 2D
array) into the same standardized ``pandas.DataFrame``.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd

__all__ = []

RESULT_FILE_PATTERNS = ("devc", "evac")

PathLike = Union[str, Path]


def _clean_name(name) -> str:
    return str(name).strip().strip('"').strip("'").strip()


def read_time_series(path: PathLike) -> pd.DataFrame:
    """Read one simulation result table.

    Args:
        path: CSV file whose first line holds units and second line the
            (quoted) column names.

    Returns:
        A DataFrame with cleaned column names and numeric values. The
        source path is kept in ``frame.attrs["source"]``.
    """
    frame = pd.read_csv(path, skiprows=1, skipinitialspace=True)
    frame.columns = [_clean_name(c) for c in frame.columns]
    frame = frame.apply(pd.to_numeric, errors="coerce")
    frame.attrs["source"] = str(path)
    return frame


def as_time_series(
    data,
    columns: Optional[List[str]] = None,
    source: Optional[str] = None,
) -> pd.DataFrame:
    """Convert user-supplied data into a time-series DataFrame.

    Accepted inputs:
        - pandas DataFrame: copied, column names cleaned
        - dict of {name: array}: keys become column names
        - 2D numpy array or nested list: requires *columns*
        - path (str or Path): read with ``read_time_series``

    Raises:
        TypeError: If *data* is an unsupported type.
        ValueError: If *columns* are missing or do not match the array width.
    """
    if isinstance(data, (str, Path)):
        return read_time_series(data)

    if isinstance(data, pd.DataFrame):
        frame = data.copy()
    elif isinstance(data, dict):
        frame = pd.DataFrame({name: np.asarray(values, dtype=float) for name, values in data.items()})
    elif isinstance(data, (list, np.ndarray)):
        arr = np.asarray(data, dtype=float)
        if arr.ndim != 2:
            raise ValueError(f"Table data must be 2-dimensional, got {arr.ndim} dimension(s)")
        if columns is None:
            raise ValueError("columns are required for array input")
        if len(columns) != arr.shape[1]:
            raise ValueError(f"columns length ({len(columns)}) must match data columns ({arr.shape[1]})")
        frame = pd.DataFrame(arr, columns=columns)
    else:
        raise TypeError("data must be a path, numpy array, list, pandas DataFrame, or dict")

    frame.columns = [_clean_name(c) for c in frame.columns]
    if source is not None and "source" not in frame.attrs:
        frame.attrs["source"] = source
    return frame


def list_result_files(directory: PathLike, patterns: Sequence[str] = RESULT_FILE_PATTERNS) -> List[Path]:
    """Sorted ``*.csv`` files in *directory* whose name contains one of *patterns*."""
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Result directory not found: {directory}")
    return sorted(p for p in directory.glob("*.csv") if any(tag in p.name for tag in patterns))


def table_source(frame: pd.DataFrame) -> Optional[str]:
    """Source reference recorded on *frame*, if any."""
    return frame.attrs.get("source")
