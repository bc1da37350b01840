# streamlearn/models/encoding.py
from __future__ import annotations

from typing import List

import numpy as np

from streamlearn.data.schema import Schema


class FeatureEncoder:
    """
    FeatureEncoder

    Record matrix -> estimator input matrix.

    Contract:
    - class attribute is never an input
    - numeric / date  -> one column, missing -> 0.0
    - categorical     -> one-hot over the legal values, missing -> all zeros
    - string          -> not encoded
    - column order is fixed at construction
    """

    def __init__(self, schema: Schema):
        self.schema = schema
        self._numeric: List[int] = []
        self._categorical: List[int] = []
        self.feature_names: List[str] = []

        for i, att in enumerate(schema):
            if i == schema.class_index:
                continue
            if att.is_numeric:
                self._numeric.append(i)
                self.feature_names.append(att.name)
            elif att.is_categorical:
                self._categorical.append(i)
                self.feature_names.extend(f"{att.name}={v}" for v in att.values)

    @property
    def width(self) -> int:
        return len(self.feature_names)

    def transform(self, values: np.ndarray) -> np.ndarray:
        values = np.atleast_2d(values)
        n = values.shape[0]
        blocks = []

        if self._numeric:
            num = values[:, self._numeric].copy()
            num[np.isnan(num)] = 0.0
            blocks.append(num)

        for i in self._categorical:
            k = self.schema.attribute(i).num_values
            onehot = np.zeros((n, k))
            col = values[:, i]
            present = ~np.isnan(col)
            onehot[np.nonzero(present)[0], col[present].astype(int)] = 1.0
            blocks.append(onehot)

        if not blocks:
            return np.zeros((n, 0))
        return np.hstack(blocks)
