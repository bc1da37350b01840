# streamlearn/data/converter.py
from __future__ import annotations

from typing import Dict, Optional, Sequence

import numpy as np

from streamlearn import logs
from streamlearn.data.dataset import Dataset
from streamlearn.data.row_meta import RowMeta
from streamlearn.data.schema import MISSING, Schema


def construct_record(
    schema: Schema,
    row_meta: RowMeta,
    row: Sequence,
    field_lookup: Dict[str, int],
) -> np.ndarray:
    """
    Convert one raw row into a record aligned with ``schema``.

    Contract:
    - field absent from the row        -> missing
    - null / empty value               -> missing (never 0)
    - categorical value not legal      -> missing (never an error)
    - string attribute                 -> interned dictionary index
    """
    vals = np.empty(schema.num_attributes, dtype=np.float64)

    for i, att in enumerate(schema):
        pos = field_lookup.get(att.name)
        if pos is None:
            vals[i] = MISSING
            continue

        field = row_meta[pos]
        raw = row[pos]
        if field.is_null(raw):
            vals[i] = MISSING
            continue

        if att.is_numeric:
            try:
                vals[i] = field.as_number(raw)
            except (TypeError, ValueError):
                logs.debug(
                    f"[RecordConverter] non-numeric value {raw!r} for '{att.name}' -> missing"
                )
                vals[i] = MISSING
        elif att.is_string:
            vals[i] = att.add_string_value(field.as_string(raw))
        else:
            idx = att.index_of_value(field.as_string(raw))
            vals[i] = MISSING if idx < 0 else idx

    return vals


def build_dataset(
    schema: Schema,
    row_meta: RowMeta,
    rows: Sequence[Sequence],
    field_lookup: Dict[str, int],
) -> Dataset:
    records = []
    for row in rows:
        if row is None:
            break
        records.append(construct_record(schema, row_meta, row, field_lookup))
    return Dataset.from_records(schema, records)


class RecordConverter:
    """
    Schema-bound converter with the name -> position lookup computed once.
    """

    def __init__(
        self,
        schema: Schema,
        row_meta: RowMeta,
        field_lookup: Optional[Dict[str, int]] = None,
    ):
        self.schema = schema
        self.row_meta = row_meta
        self.field_lookup = field_lookup if field_lookup is not None else row_meta.field_lookup()

    def convert(self, row: Sequence) -> np.ndarray:
        return construct_record(self.schema, self.row_meta, row, self.field_lookup)

    def convert_all(self, rows: Sequence[Sequence]) -> Dataset:
        return build_dataset(self.schema, self.row_meta, rows, self.field_lookup)
