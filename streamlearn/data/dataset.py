# streamlearn/data/dataset.py
from __future__ import annotations

from typing import Iterator, Optional, Sequence

import numpy as np

from streamlearn.data.schema import Schema


class Dataset:
    """
    Dataset

    Records (rows of ``values``) positionally aligned with ``schema``.
    Missing slots hold NaN.
    """

    def __init__(self, schema: Schema, values: Optional[np.ndarray] = None):
        self.schema = schema
        if values is None:
            values = np.empty((0, schema.num_attributes), dtype=np.float64)
        values = np.asarray(values, dtype=np.float64)
        if values.ndim != 2 or values.shape[1] != schema.num_attributes:
            raise ValueError(
                f"Dataset values shape {values.shape} does not match "
                f"{schema.num_attributes} attributes"
            )
        self.values = values

    @classmethod
    def from_records(cls, schema: Schema, records: Sequence[np.ndarray]) -> "Dataset":
        if not records:
            return cls(schema)
        return cls(schema, np.vstack(records))

    def __len__(self) -> int:
        return self.values.shape[0]

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self.values)

    def record(self, i: int) -> np.ndarray:
        return self.values[i]

    @property
    def class_values(self) -> np.ndarray:
        if self.schema.class_index is None:
            raise ValueError("Dataset has no class attribute")
        return self.values[:, self.schema.class_index]

    def subset(self, indices) -> "Dataset":
        return Dataset(self.schema, self.values[np.asarray(indices, dtype=int)])

    def labelled(self) -> "Dataset":
        """
        Rows whose class value is present.
        """
        mask = ~np.isnan(self.class_values)
        return Dataset(self.schema, self.values[mask])
