# streamlearn/models/base.py
"""
Model abstractions

A Scheme is a configured, untrained learning algorithm (the "template").
A TrainedModel is one model bound to exactly one Schema.

The orchestration layer never inspects concrete model types. It only
reads the declared capabilities:

- supervised         : predicts a class attribute
- updateable         : supports update(record) one record at a time
- batch_predictor    : distributions() is cheaper than per-record calls
- preferred_batch_size
- resumable          : can continue training from a saved state
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict

import numpy as np

from streamlearn.data.dataset import Dataset
from streamlearn.data.schema import Schema
from streamlearn.utils.errors import NotResumable


class TrainedModel(ABC):

    supervised: bool = True

    def __init__(self, schema: Schema):
        self.schema = schema

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def options(self) -> str:
        return ""

    # --------------------------------------------------
    # capabilities
    # --------------------------------------------------
    @property
    def updateable(self) -> bool:
        return False

    @property
    def batch_predictor(self) -> bool:
        return False

    @property
    def preferred_batch_size(self) -> int:
        """
        <= 0 means "all rows in one batch".
        """
        return 0

    @property
    def resumable(self) -> bool:
        return False

    # --------------------------------------------------
    # training
    # --------------------------------------------------
    @abstractmethod
    def fit(self, dataset: Dataset) -> None:
        raise NotImplementedError

    def update(self, record: np.ndarray) -> None:
        raise NotImplementedError(f"{type(self).__name__} is not updateable")

    def continue_training(self, dataset: Dataset) -> None:
        raise NotResumable(f"{type(self).__name__} can't continue training")

    # --------------------------------------------------
    # prediction
    # --------------------------------------------------
    @abstractmethod
    def distribution(self, record: np.ndarray) -> np.ndarray:
        """
        Class distribution (categorical target), [value] (numeric target)
        or cluster membership (unsupervised). All-zero means "no prediction".
        """
        raise NotImplementedError

    def distributions(self, records: np.ndarray) -> np.ndarray:
        return np.vstack([self.distribution(r) for r in records])

    @abstractmethod
    def describe(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.describe()


class Scheme(ABC):
    """
    Configured learning algorithm (model template).
    """

    supervised: bool = True

    def __init__(self, name: str, params: Dict[str, Any]):
        self.name = name
        self.params = dict(params)

    @property
    def supports_incremental_training(self) -> bool:
        return False

    @property
    def supports_resumable_training(self) -> bool:
        return False

    @property
    def options(self) -> str:
        return " ".join(f"{k}={v}" for k, v in sorted(self.params.items()))

    @abstractmethod
    def new_model(self, schema: Schema) -> TrainedModel:
        """
        Fresh, untrained model bound to ``schema``.
        """
        raise NotImplementedError

    def fit(self, dataset: Dataset) -> TrainedModel:
        model = self.new_model(dataset.schema)
        model.fit(dataset)
        return model
