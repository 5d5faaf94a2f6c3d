"""Tagged scalar values for untyped dataset cells.

Dataset rows arrive as plain mappings whose values may be strings, numbers or missing.
Every cell the engine touches is lifted into a :class:`Scalar` first so that comparison
and arithmetic follow one explicit set of rules:

- ``text()`` is the string form used for equality, ``contains`` and group keys.
- ``number()`` is a strict parse; ``None`` when the cell is not numeric.
- ``coerce()`` is the permissive form used by aggregations; non-numeric -> ``0.0``.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import numpy as np
import pandas as pd

_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class ScalarKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    ABSENT = "absent"


def parse_number(text: str) -> Optional[float]:
    """Parse a decimal or scientific literal; surrounding whitespace is ignored."""
    s = text.strip()
    if not _NUMBER_RE.fullmatch(s):
        return None
    out = float(s)
    if math.isinf(out):
        return None
    return out


def _is_missing(raw: object) -> bool:
    if raw is None or raw is pd.NA:
        return True
    if isinstance(raw, (float, np.floating)):
        return math.isnan(raw)
    return False


@dataclass(frozen=True)
class Scalar:
    kind: ScalarKind
    value: Union[str, int, float, None] = None

    @classmethod
    def of(cls, raw: object) -> "Scalar":
        if _is_missing(raw):
            return ABSENT
        if isinstance(raw, (bool, np.bool_)):
            return cls(ScalarKind.STRING, "true" if raw else "false")
        if isinstance(raw, (int, np.integer)):
            return cls(ScalarKind.NUMBER, int(raw))
        if isinstance(raw, (float, np.floating)):
            if math.isinf(raw):
                return cls(ScalarKind.STRING, str(float(raw)))
            return cls(ScalarKind.NUMBER, float(raw))
        return cls(ScalarKind.STRING, str(raw))

    @property
    def is_absent(self) -> bool:
        return self.kind is ScalarKind.ABSENT

    def text(self) -> str:
        if self.kind is ScalarKind.ABSENT:
            return ""
        return str(self.value)

    def number(self) -> Optional[float]:
        if self.kind is ScalarKind.NUMBER:
            try:
                return float(self.value)  # type: ignore[arg-type]
            except OverflowError:
                return None
        if self.kind is ScalarKind.STRING:
            return parse_number(self.value)  # type: ignore[arg-type]
        return None

    def coerce(self) -> float:
        out = self.number()
        return 0.0 if out is None else out


ABSENT = Scalar(ScalarKind.ABSENT)


def cell(row: dict, column: Optional[str]) -> Scalar:
    """Lift ``row[column]`` into a Scalar; missing keys are absent."""
    if column is None:
        return ABSENT
    return Scalar.of(row.get(column))
