# tests/conftest.py
from __future__ import annotations

from typing import List

import numpy as np
import pytest
from loguru import logger

from streamlearn.data.dataset import Dataset
from streamlearn.data.row_meta import FieldMeta, FieldType, RowMeta
from streamlearn.models.base import Scheme, TrainedModel


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)  # or sys.stderr
    yield


# ============================================================
# deterministic fake schemes (no learning maths)
# ============================================================
class MajorityModel(TrainedModel):
    """
    Predicts the most frequent class seen so far (first index on ties).
    All-zero distribution before any labelled row.
    """

    def __init__(self, schema, incremental: bool, resumable: bool = False):
        super().__init__(schema)
        self.counts = np.zeros(max(schema.num_classes, 1))
        self.incremental = incremental
        self._resumable = resumable
        self.seen: List[float] = []
        self.fit_sizes: List[int] = []

    @property
    def updateable(self) -> bool:
        return self.incremental

    @property
    def resumable(self) -> bool:
        return self._resumable

    def fit(self, dataset: Dataset) -> None:
        self.fit_sizes.append(len(dataset))
        for y in dataset.class_values:
            if not np.isnan(y):
                self.counts[int(y)] += 1

    def update(self, record) -> None:
        y = record[self.schema.class_index]
        self.seen.append(y)
        if not np.isnan(y):
            self.counts[int(y)] += 1

    def continue_training(self, dataset: Dataset) -> None:
        self.fit(dataset)

    def distribution(self, record) -> np.ndarray:
        out = np.zeros(len(self.counts))
        if self.counts.sum() > 0:
            out[int(np.argmax(self.counts))] = 1.0
        return out

    def describe(self) -> str:
        return f"Majority model: counts={self.counts.astype(int).tolist()}"


class MajorityScheme(Scheme):

    def __init__(self, incremental: bool = False, resumable: bool = False):
        super().__init__("majority", {"incremental": incremental})
        self.incremental = incremental
        self.resumable = resumable
        self.models: List[MajorityModel] = []

    @property
    def supports_incremental_training(self) -> bool:
        return self.incremental

    @property
    def supports_resumable_training(self) -> bool:
        return self.resumable

    def new_model(self, schema) -> MajorityModel:
        model = MajorityModel(schema, self.incremental, self.resumable)
        self.models.append(model)
        return model


@pytest.fixture
def batch_scheme() -> MajorityScheme:
    return MajorityScheme(incremental=False)


@pytest.fixture
def incremental_scheme() -> MajorityScheme:
    return MajorityScheme(incremental=True)


# ============================================================
# row fixtures
# ============================================================
@pytest.fixture
def weather_meta() -> RowMeta:
    return RowMeta(
        [
            FieldMeta("outlook", FieldType.STRING),
            FieldMeta("temperature", FieldType.NUMBER),
            FieldMeta("humidity", FieldType.NUMBER),
            FieldMeta("windy", FieldType.BOOLEAN),
            FieldMeta("play", FieldType.STRING),
        ]
    )


@pytest.fixture
def weather_rows() -> List[tuple]:
    return [
        ("sunny", 85.0, 85.0, False, "no"),
        ("sunny", 80.0, 90.0, True, "no"),
        ("overcast", 83.0, 86.0, False, "yes"),
        ("rainy", 70.0, 96.0, False, "yes"),
        ("rainy", 68.0, 80.0, False, "yes"),
        ("rainy", 65.0, 70.0, True, "no"),
        ("overcast", 64.0, 65.0, True, "yes"),
        ("sunny", 72.0, 95.0, False, "no"),
        ("sunny", 69.0, 70.0, False, "yes"),
        ("rainy", 75.0, 80.0, False, "yes"),
        ("sunny", 75.0, 70.0, True, "yes"),
        ("overcast", 72.0, 90.0, True, "yes"),
        ("overcast", 81.0, 75.0, False, "yes"),
        ("rainy", 71.0, 91.0, True, "no"),
    ]


@pytest.fixture
def keyed_meta() -> RowMeta:
    """
    x numeric, label categorical, store = stratification field
    """
    return RowMeta(
        [
            FieldMeta("store", FieldType.STRING),
            FieldMeta("x", FieldType.NUMBER),
            FieldMeta("label", FieldType.STRING),
        ]
    )


def keyed_rows(keys, label="a"):
    return [(k, float(i), label) for i, k in enumerate(keys)]


@pytest.fixture
def make_keyed_rows():
    return keyed_rows
