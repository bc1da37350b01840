# streamlearn/data/row_meta.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd


class FieldType(str, Enum):
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    STRING = "string"
    DATE = "date"


@dataclass(frozen=True)
class FieldMeta:
    """
    Type descriptor of one field of an external row.

    ``domain`` carries an enumerated value set when the upstream source
    already knows it (e.g. a pandas categorical column).
    """
    name: str
    type: FieldType
    domain: Optional[Tuple[str, ...]] = None

    @property
    def is_numeric(self) -> bool:
        return self.type in (FieldType.NUMBER, FieldType.INTEGER)

    @property
    def is_boolean(self) -> bool:
        return self.type == FieldType.BOOLEAN

    @property
    def is_string(self) -> bool:
        return self.type == FieldType.STRING

    @property
    def is_date(self) -> bool:
        return self.type == FieldType.DATE

    # --------------------------------------------------
    # value access
    # --------------------------------------------------
    def is_null(self, value: Any) -> bool:
        """
        None, NaN / NaT and empty strings all count as null.
        """
        if value is None:
            return True
        if isinstance(value, str):
            return value == ""
        if isinstance(value, (float, np.floating)):
            return math.isnan(value)
        try:
            return bool(pd.isna(value))
        except (TypeError, ValueError):
            return False

    def as_string(self, value: Any) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, (np.integer,)):
            return str(int(value))
        return str(value)

    def as_number(self, value: Any) -> float:
        """
        booleans -> 1.0 / 0.0, dates -> epoch milliseconds
        """
        if isinstance(value, (bool, np.bool_)):
            return 1.0 if value else 0.0
        if isinstance(value, (datetime, date, pd.Timestamp, np.datetime64)):
            return float(pd.Timestamp(value).value // 1_000_000)
        if self.is_date and isinstance(value, str):
            return float(pd.Timestamp(value).value // 1_000_000)
        if self.is_boolean and isinstance(value, str):
            return 1.0 if value.strip().lower() in ("true", "y", "yes", "1") else 0.0
        return float(value)


class RowMeta:
    """
    Ordered field descriptors of an external row stream.
    """

    def __init__(self, fields: Sequence[FieldMeta]):
        self.fields: List[FieldMeta] = list(fields)
        self._lookup: Dict[str, int] = {f.name: i for i, f in enumerate(self.fields)}

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[FieldMeta]:
        return iter(self.fields)

    def __getitem__(self, index: int) -> FieldMeta:
        return self.fields[index]

    @property
    def names(self) -> List[str]:
        return [f.name for f in self.fields]

    def index_of(self, name: str) -> Optional[int]:
        return self._lookup.get(name)

    def field(self, name: str) -> Optional[FieldMeta]:
        idx = self._lookup.get(name)
        return None if idx is None else self.fields[idx]

    def field_lookup(self) -> Dict[str, int]:
        """
        field name -> position in the raw row
        """
        return dict(self._lookup)

    # --------------------------------------------------
    # pandas bridge
    # --------------------------------------------------
    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "RowMeta":
        fields = []
        for name, dtype in df.dtypes.items():
            fields.append(_field_meta_for_dtype(str(name), dtype))
        return cls(fields)


def _field_meta_for_dtype(name: str, dtype) -> FieldMeta:
    if isinstance(dtype, pd.CategoricalDtype):
        domain = tuple(str(c).strip() for c in dtype.categories)
        return FieldMeta(name, FieldType.STRING, domain=domain)
    if pd.api.types.is_bool_dtype(dtype):
        return FieldMeta(name, FieldType.BOOLEAN)
    if pd.api.types.is_integer_dtype(dtype):
        return FieldMeta(name, FieldType.INTEGER)
    if pd.api.types.is_float_dtype(dtype):
        return FieldMeta(name, FieldType.NUMBER)
    if pd.api.types.is_datetime64_any_dtype(dtype):
        return FieldMeta(name, FieldType.DATE)
    return FieldMeta(name, FieldType.STRING)


def rows_from_frame(df: pd.DataFrame) -> Iterator[tuple]:
    """
    Stream a DataFrame as plain row tuples (no index).
    """
    return df.itertuples(index=False, name=None)
