"""Row filtering and split-apply-combine shared by the stats.

Stats work on one group of rows at a time. After a group is summarised,
columns that were constant within the group (colour, PANEL, group id, ...)
are copied onto the summary rows so downstream layers keep them.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence

import pandas as pd

from nicescales.utils.logging import get_logger

logger = get_logger(__name__)


def remove_missing(
    data: pd.DataFrame,
    na_rm: bool = False,
    vars: Sequence[str] = ("x", "y"),
    name: str = "",
) -> pd.DataFrame:
    """Drop rows with a missing value in any of vars (columns that are absent are ignored).

    Logs a warning with the number of removed rows unless na_rm is True.
    """
    present = [v for v in vars if v in data.columns]
    if not present or data.empty:
        return data
    missing = data[present].isna().any(axis=1)
    n_missing = int(missing.sum())
    if n_missing == 0:
        return data
    if not na_rm:
        logger.warning(
            "Removed %d row%s containing missing values%s.",
            n_missing,
            "" if n_missing == 1 else "s",
            f" ({name})" if name else "",
        )
    return data.loc[~missing]


def attach_constant_columns(
    new: pd.DataFrame,
    old: pd.DataFrame,
    dropped: Iterable[str] = (),
) -> pd.DataFrame:
    """Copy columns of old that are constant and absent from new onto every row of new."""
    new = new.reset_index(drop=True)
    if new.empty or old.empty:
        return new
    dropped = set(dropped)
    for col in old.columns:
        if col in new.columns or col in dropped:
            continue
        if old[col].nunique(dropna=False) > 1:
            continue
        new[col] = old[col].iloc[[0] * len(new)].reset_index(drop=True)
    return new


def split_apply(
    data: pd.DataFrame,
    by: str,
    compute: Callable[[pd.DataFrame], Optional[pd.DataFrame]],
    dropped: Iterable[str] = (),
) -> pd.DataFrame:
    """Run compute on each level of column `by` (the whole frame when `by` is absent) and stack the results."""
    if data.empty:
        return pd.DataFrame()
    if by in data.columns:
        pieces_in = [chunk for _, chunk in data.groupby(by, sort=True, dropna=False)]
    else:
        pieces_in = [data]

    pieces_out = []
    for old in pieces_in:
        new = compute(old)
        if new is None or new.empty:
            continue
        pieces_out.append(attach_constant_columns(new, old, dropped))
    if not pieces_out:
        return pd.DataFrame()
    return pd.concat(pieces_out, ignore_index=True)
