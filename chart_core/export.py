from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from chart_core.datasets import infer_columns


def rows_to_frame(rows: Sequence[Mapping[str, Any]], columns: Optional[List[str]] = None) -> pd.DataFrame:
    cols = columns or infer_columns(rows)
    return pd.DataFrame([dict(r) for r in rows], columns=cols)


def rows_to_csv(rows: Sequence[Mapping[str, Any]], columns: Optional[List[str]] = None) -> bytes:
    """Chart rows as UTF-8 CSV; missing cells are written empty."""
    return rows_to_frame(rows, columns).to_csv(index=False).encode("utf-8")


def export_filename(query: Dict[str, Any]) -> str:
    x = query.get("xAxis") or "rows"
    y = query.get("yAxis")
    agg = query.get("aggregation") or "none"
    stem = f"{agg}_{y}_by_{x}" if y and agg != "none" else f"dataset_{query.get('datasetId')}"
    return "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in stem) + ".csv"
