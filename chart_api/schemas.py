from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class FilterModel(BaseModel):
    column: str = ""
    operator: str = ""
    value: Union[str, int, float, None] = ""


class ChartDataRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    dataset_id: int = Field(alias="datasetId")
    x_axis: Optional[str] = Field(default=None, alias="xAxis")
    y_axis: Optional[str] = Field(default=None, alias="yAxis")
    aggregation: Optional[str] = None
    group_by: List[str] = Field(default_factory=list, alias="groupBy")
    filters: List[FilterModel] = Field(default_factory=list)

    def to_query(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class CreateDatasetRequest(BaseModel):
    name: str
    data: List[Dict[str, Any]] = Field(default_factory=list)


class DatasetModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    columns: List[str]
    row_count: int = Field(alias="rowCount")
    owner: Optional[str] = None
    created_at: str = Field(alias="createdAt")
    data: Optional[List[Dict[str, Any]]] = None
