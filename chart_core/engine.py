"""Chart data query engine.

``evaluate`` turns a dataset plus a :class:`ChartQuery` into the rows a chart renders:
filter -> group -> aggregate -> shape. It is a pure function over a read-only snapshot;
dirty data degrades to the coercion rules in ``chart_core.values`` instead of raising.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from chart_core.errors import DatasetNotFound
from chart_core.query import ChartQuery, FilterPredicate, normalize_query
from chart_core.values import cell, parse_number

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

_REDUCERS = {
    "count": "count",
    "sum": "sum",
    "avg": "mean",
    "min": "min",
    "max": "max",
}


def _rows_of(dataset: Any) -> Sequence[Row]:
    rows = getattr(dataset, "rows", dataset)
    return rows if rows is not None else []


def predicate_mask(rows: Sequence[Row], predicate: FilterPredicate) -> np.ndarray:
    """Boolean mask of rows satisfying a single predicate. Absent cells never match."""
    cells = [cell(r, predicate.column) for r in rows]
    present = np.array([not c.is_absent for c in cells], dtype=bool)
    op = predicate.operator

    if op == "contains":
        text = pd.Series([c.text() for c in cells], dtype=object)
        hits = text.str.contains(predicate.value, regex=False).to_numpy(dtype=bool)
        return present & hits

    numbers = pd.Series([c.number() for c in cells], dtype=float)
    target = parse_number(predicate.value)

    if op in ("eq", "neq"):
        text = pd.Series([c.text() for c in cells], dtype=object)
        same_text = (text == predicate.value).to_numpy(dtype=bool)
        if target is None:
            equal = same_text
        else:
            equal = np.where(numbers.notna().to_numpy(), (numbers == target).to_numpy(), same_text)
        return present & (equal if op == "eq" else ~equal)

    if target is None:
        return np.zeros(len(rows), dtype=bool)
    if op == "gt":
        hits = numbers > target
    elif op == "lt":
        hits = numbers < target
    elif op == "gte":
        hits = numbers >= target
    else:
        hits = numbers <= target
    return present & hits.to_numpy(dtype=bool)


def filter_rows(rows: Sequence[Row], filters: Sequence[FilterPredicate]) -> List[Row]:
    """AND of all predicates; surviving rows keep their original order."""
    if not filters or not rows:
        return list(rows)
    mask = np.ones(len(rows), dtype=bool)
    for predicate in filters:
        mask &= predicate_mask(rows, predicate)
    return [rows[i] for i in np.flatnonzero(mask)]


def _key_value(row: Row, column: str) -> Any:
    c = cell(row, column)
    return "" if c.is_absent else row[column]


def aggregate_rows(rows: Sequence[Row], query: ChartQuery) -> List[Row]:
    if not rows:
        return []
    keys = list(query.key_columns)
    key_cols = [f"k{i}" for i in range(len(keys))]

    frame = pd.DataFrame({kc: [cell(r, col).text() for r in rows] for kc, col in zip(key_cols, keys)})
    frame["__y"] = [cell(r, query.y_axis).coerce() for r in rows]
    frame["__row"] = np.arange(len(rows))

    grouped = (
        frame.groupby(key_cols, sort=False)
        .agg(value=("__y", _REDUCERS[query.aggregation]), first=("__row", "first"))
        .reset_index(drop=True)
    )

    out: List[Row] = []
    for value, first in zip(grouped["value"].tolist(), grouped["first"].tolist()):
        member = rows[int(first)]
        shaped: Row = {query.x_axis: _key_value(member, keys[0])}
        for col in query.group_by:
            shaped[col] = _key_value(member, col)
        shaped[query.y_axis] = int(value) if query.aggregation == "count" else float(value)
        out.append(shaped)
    return out


def shape_rows(rows: Sequence[Row], query: ChartQuery) -> List[Row]:
    """Raw-table output: copies of the rows, with axis coercion only when both axes are set."""
    if not (query.x_axis and query.y_axis):
        return [dict(r) for r in rows]
    out: List[Row] = []
    for r in rows:
        shaped = dict(r)
        if cell(r, query.x_axis).is_absent:
            shaped[query.x_axis] = ""
        shaped[query.y_axis] = cell(r, query.y_axis).coerce()
        out.append(shaped)
    return out


def evaluate(dataset: Any, query: dict | ChartQuery, *, dataset_id: Optional[int] = None) -> List[Row]:
    """Evaluate a chart query against a dataset (a ``Dataset`` or a sequence of rows)."""
    q = normalize_query(query)
    if dataset is None:
        raise DatasetNotFound(dataset_id if dataset_id is not None else q.dataset_id)

    rows = _rows_of(dataset)
    survivors = filter_rows(rows, q.filters)
    if q.is_raw:
        result = shape_rows(survivors, q)
    else:
        result = aggregate_rows(survivors, q)

    logger.debug(
        "evaluate dataset=%s aggregation=%s rows_in=%d rows_filtered=%d rows_out=%d",
        q.dataset_id,
        q.aggregation,
        len(rows),
        len(survivors),
        len(result),
    )
    return result
