from __future__ import annotations

from typing import Optional


class ConfigurationError(ValueError):
    """The query names an aggregation, operator or shape the engine does not support."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class DatasetNotFound(LookupError):
    """The dataset does not exist or is not visible to the caller."""

    def __init__(self, dataset_id: object, owner: Optional[str] = None) -> None:
        super().__init__(f"Dataset {dataset_id} not found")
        self.dataset_id = dataset_id
        self.owner = owner


class DatasetConflict(ValueError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Dataset with name '{name}' already exists")
        self.name = name
