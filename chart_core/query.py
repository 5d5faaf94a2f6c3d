from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from chart_core.errors import ConfigurationError

AGGREGATIONS = ("none", "count", "sum", "avg", "min", "max")
OPERATORS = ("eq", "neq", "gt", "lt", "gte", "lte", "contains")


@dataclass(frozen=True)
class FilterPredicate:
    column: str
    operator: str
    value: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"column": self.column, "operator": self.operator, "value": self.value}


@dataclass(frozen=True)
class ChartQuery:
    dataset_id: Optional[int] = None
    x_axis: Optional[str] = None
    y_axis: Optional[str] = None
    aggregation: str = "none"
    group_by: Tuple[str, ...] = field(default_factory=tuple)
    filters: Tuple[FilterPredicate, ...] = field(default_factory=tuple)

    @property
    def is_raw(self) -> bool:
        return self.aggregation == "none"

    @property
    def key_columns(self) -> Tuple[str, ...]:
        """Columns whose values partition rows into groups."""
        if self.group_by:
            return self.group_by
        return (self.x_axis,) if self.x_axis else ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "datasetId": self.dataset_id,
            "xAxis": self.x_axis,
            "yAxis": self.y_axis,
            "aggregation": self.aggregation,
            "groupBy": list(self.group_by),
            "filters": [f.to_dict() for f in self.filters],
        }


def _pick(raw: dict, *keys: str) -> Any:
    for k in keys:
        if k in raw and raw[k] is not None:
            return raw[k]
    return None


def _as_name(value: object) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _as_name_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values:
        return []
    if isinstance(values, str):
        values = [values]
    return [n for n in (_as_name(v) for v in values) if n]


def _as_dataset_id(value: object) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        raise ConfigurationError("datasetId", f"datasetId must be an integer, got {value!r}")


def normalize_filters(raw_filters: Optional[Iterable[object]]) -> Tuple[FilterPredicate, ...]:
    out: List[FilterPredicate] = []
    for i, f in enumerate(raw_filters or []):
        if isinstance(f, FilterPredicate):
            raw = f.to_dict()
        elif isinstance(f, dict):
            raw = f
        else:
            raise ConfigurationError(f"filters[{i}]", f"filter #{i} must be an object")
        column = _as_name(raw.get("column"))
        # Half-filled filter rows from the chart editor carry no column.
        if not column:
            continue
        operator = str(raw.get("operator") or "").strip().lower()
        if operator not in OPERATORS:
            raise ConfigurationError(
                f"filters[{i}].operator",
                f"Unknown filter operator '{raw.get('operator')}'; expected one of {', '.join(OPERATORS)}",
            )
        value = raw.get("value")
        out.append(FilterPredicate(column=column, operator=operator, value="" if value is None else str(value)))
    return tuple(out)


def normalize_query(raw: dict | ChartQuery) -> ChartQuery:
    if isinstance(raw, ChartQuery):
        raw = raw.to_dict()

    aggregation = str(_pick(raw, "aggregation") or "none").strip().lower() or "none"
    if aggregation not in AGGREGATIONS:
        raise ConfigurationError(
            "aggregation",
            f"Unknown aggregation '{raw.get('aggregation')}'; expected one of {', '.join(AGGREGATIONS)}",
        )

    x_axis = _as_name(_pick(raw, "xAxis", "x_axis"))
    y_axis = _as_name(_pick(raw, "yAxis", "y_axis"))
    group_by = tuple(_as_name_list(_pick(raw, "groupBy", "group_by")))
    filters = normalize_filters(_pick(raw, "filters"))

    if aggregation == "none" and group_by:
        raise ConfigurationError("groupBy", "groupBy requires an aggregation other than 'none'")
    if aggregation != "none":
        if not x_axis:
            raise ConfigurationError("xAxis", f"xAxis is required for aggregation '{aggregation}'")
        if not y_axis:
            raise ConfigurationError("yAxis", f"yAxis is required for aggregation '{aggregation}'")

    return ChartQuery(
        dataset_id=_as_dataset_id(_pick(raw, "datasetId", "dataset_id")),
        x_axis=x_axis,
        y_axis=y_axis,
        aggregation=aggregation,
        group_by=group_by,
        filters=filters,
    )
