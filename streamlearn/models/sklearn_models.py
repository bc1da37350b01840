# streamlearn/models/sklearn_models.py
from __future__ import annotations

from typing import Any, Callable, Dict, Optional

import numpy as np
from sklearn.base import BaseEstimator

from streamlearn import logs
from streamlearn.data.dataset import Dataset
from streamlearn.data.schema import Schema
from streamlearn.models.base import Scheme, TrainedModel
from streamlearn.models.encoding import FeatureEncoder
from streamlearn.utils.errors import NotResumable


class SklearnModel(TrainedModel):
    """
    SklearnModel

    One scikit-learn estimator bound to one Schema.

    Contract:
    - categorical target  -> distribution over ALL legal class values,
      in schema order (classes never seen in training get 0)
    - numeric target      -> [predicted value]
    - unsupervised        -> one-hot cluster membership
    - unfitted model      -> all-zero distribution (no prediction)
    """

    def __init__(
        self,
        schema: Schema,
        estimator: BaseEstimator,
        *,
        supervised: bool = True,
        batch_predictor: bool = False,
        preferred_batch_size: int = 0,
        resume_increment: int = 10,
    ):
        super().__init__(schema)
        self.estimator = estimator
        self.supervised = supervised
        self.encoder = FeatureEncoder(schema)

        self._batch_predictor = batch_predictor
        self._preferred_batch_size = preferred_batch_size
        self._resume_increment = resume_increment

        self.fitted = False
        self.trained_instances = 0
        # single class seen in training; estimators refuse to fit that
        self._constant_class: Optional[int] = None

    # --------------------------------------------------
    # capabilities
    # --------------------------------------------------
    @property
    def classification(self) -> bool:
        att = self.schema.class_attribute
        return self.supervised and att is not None and att.is_categorical

    @property
    def updateable(self) -> bool:
        return self.supervised and hasattr(self.estimator, "partial_fit")

    @property
    def batch_predictor(self) -> bool:
        return self._batch_predictor

    @property
    def preferred_batch_size(self) -> int:
        return self._preferred_batch_size

    @property
    def resumable(self) -> bool:
        params = self.estimator.get_params()
        return "warm_start" in params and "n_estimators" in params

    @property
    def name(self) -> str:
        return type(self.estimator).__name__

    @property
    def options(self) -> str:
        params = self.estimator.get_params()
        return " ".join(f"{k}={params[k]}" for k in sorted(params))

    @property
    def width(self) -> int:
        if not self.supervised:
            return int(self.estimator.get_params().get("n_clusters", 1))
        return self.schema.num_classes

    # --------------------------------------------------
    # training
    # --------------------------------------------------
    def fit(self, dataset: Dataset) -> None:
        X = self.encoder.transform(dataset.values)

        if not self.supervised:
            if len(dataset) < self.width:
                logs.warning(
                    f"[SklearnModel] {len(dataset)} rows < {self.width} clusters, model left unfitted"
                )
                return
            self.estimator.fit(X)
            self.fitted = True
            self.trained_instances = len(dataset)
            return

        y = dataset.class_values
        mask = ~np.isnan(y)
        if not mask.any():
            logs.warning("[SklearnModel] no labelled rows, model left unfitted")
            return

        X, y = X[mask], y[mask]
        if self.classification:
            y = y.astype(int)
            distinct = np.unique(y)
            if len(distinct) == 1:
                self._constant_class = int(distinct[0])
                self.fitted = True
                self.trained_instances = len(y)
                return
            self._constant_class = None

        self.estimator.fit(X, y)
        self.fitted = True
        self.trained_instances = len(y)

    def update(self, record: np.ndarray) -> None:
        if not self.updateable:
            raise NotImplementedError(
                f"{type(self.estimator).__name__} does not support partial_fit"
            )

        target = record[self.schema.class_index]
        if np.isnan(target):
            return

        if self.classification and self.schema.num_classes < 2:
            # one legal class value, partial_fit refuses a single class
            self._constant_class = int(target)
            self.fitted = True
            self.trained_instances += 1
            return

        X = self.encoder.transform(record)
        if self.classification:
            self.estimator.partial_fit(
                X,
                np.array([int(target)]),
                classes=np.arange(self.schema.num_classes),
            )
        else:
            self.estimator.partial_fit(X, np.array([target]))

        self._constant_class = None
        self.fitted = True
        self.trained_instances += 1

    def continue_training(self, dataset: Dataset) -> None:
        """
        Grow a warm-startable ensemble by ``resume_increment`` members,
        fitted on ``dataset``.
        """
        if not self.resumable:
            raise NotResumable(
                f"{type(self.estimator).__name__} can't continue training"
            )

        n = int(self.estimator.get_params()["n_estimators"])
        if self.fitted and self._constant_class is None:
            self.estimator.set_params(
                warm_start=True,
                n_estimators=n + self._resume_increment,
            )
        prior = self.trained_instances
        self.fit(dataset)
        self.trained_instances += prior

    # --------------------------------------------------
    # prediction
    # --------------------------------------------------
    def distribution(self, record: np.ndarray) -> np.ndarray:
        return self.distributions(np.atleast_2d(record))[0]

    def distributions(self, records: np.ndarray) -> np.ndarray:
        records = np.atleast_2d(records)
        n = records.shape[0]

        if not self.supervised:
            out = np.zeros((n, self.width))
            if self.fitted:
                pred = self.estimator.predict(self.encoder.transform(records)).astype(int)
                out[np.arange(n), pred] = 1.0
            return out

        if not self.classification:
            if not self.fitted:
                return np.full((n, 1), np.nan)
            return self.estimator.predict(self.encoder.transform(records)).reshape(n, 1)

        out = np.zeros((n, self.width))
        if not self.fitted:
            return out
        if self._constant_class is not None:
            out[:, self._constant_class] = 1.0
            return out

        X = self.encoder.transform(records)
        classes = self.estimator.classes_.astype(int)
        if hasattr(self.estimator, "predict_proba"):
            out[:, classes] = self.estimator.predict_proba(X)
        else:
            pred = self.estimator.predict(X).astype(int)
            out[np.arange(n), pred] = 1.0
        return out

    # --------------------------------------------------
    def describe(self) -> str:
        lines = [self.name, "=" * len(self.name), "Options: " + self.options]

        if not self.fitted:
            lines.append("Model not trained")
            return "\n".join(lines)

        lines.append(f"Trained on {self.trained_instances} instances")
        att = self.schema.class_attribute
        if self.supervised and att is not None:
            if att.is_categorical:
                lines.append(f"Class: {att.name} {{{', '.join(att.values)}}}")
            else:
                lines.append(f"Target: {att.name}")

        if self._constant_class is not None:
            lines.append(f"Constant prediction: {att.value(self._constant_class)}")
            return "\n".join(lines)

        coef = getattr(self.estimator, "coef_", None)
        if coef is not None:
            coef = np.atleast_2d(coef)
            labels = self._coef_labels(coef.shape[0])
            for label, row in zip(labels, coef):
                terms = ", ".join(
                    f"{f}={w:.4f}" for f, w in zip(self.encoder.feature_names, row)
                )
                lines.append(f"  {label}: {terms}")

        if hasattr(self.estimator, "estimators_"):
            lines.append(f"Ensemble members: {len(self.estimator.estimators_)}")
        if hasattr(self.estimator, "cluster_centers_"):
            for i, c in enumerate(self.estimator.cluster_centers_):
                lines.append(f"  cluster {i}: " + ", ".join(f"{v:.4f}" for v in c))

        return "\n".join(lines)

    def _coef_labels(self, rows: int):
        if rows == 1 or not self.classification:
            return ["weights"]
        att = self.schema.class_attribute
        return [att.value(int(c)) for c in self.estimator.classes_]


class SklearnScheme(Scheme):
    """
    Scheme backed by an estimator factory (``factory(**params)``).
    """

    def __init__(
        self,
        name: str,
        factory: Callable[..., BaseEstimator],
        params: Dict[str, Any],
        *,
        supervised: bool = True,
        batch_predictor: bool = False,
        preferred_batch_size: int = 0,
        resume_increment: int = 10,
    ):
        super().__init__(name, params)
        self.factory = factory
        self.supervised = supervised
        self.batch_predictor = batch_predictor
        self.preferred_batch_size = preferred_batch_size
        self.resume_increment = resume_increment

    @property
    def supports_incremental_training(self) -> bool:
        return self.supervised and hasattr(self.factory, "partial_fit")

    @property
    def supports_resumable_training(self) -> bool:
        params = self.factory().get_params()
        return "warm_start" in params and "n_estimators" in params

    def new_model(self, schema: Schema) -> SklearnModel:
        return SklearnModel(
            schema,
            self.factory(**self.params),
            supervised=self.supervised,
            batch_predictor=self.batch_predictor,
            preferred_batch_size=self.preferred_batch_size,
            resume_increment=self.resume_increment,
        )
