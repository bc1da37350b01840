# streamlearn/evaluation/evaluator.py
from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np
from sklearn.model_selection import KFold, StratifiedKFold

from streamlearn import logs
from streamlearn.config.training_config import EvalMode, TrainingConfig
from streamlearn.data.dataset import Dataset
from streamlearn.data.schema import Schema
from streamlearn.evaluation.output_fields import metric_row
from streamlearn.evaluation.statistics import EvaluationStatistics, class_priors
from streamlearn.models.base import Scheme, TrainedModel


class Evaluator:
    """
    Evaluator

    One evaluator == one schema + one (eventual) model.

    Lifecycle:
    - initialize(dataset)             : priors from training data
      initialize_without_priors(schema): prequential / scoring
    - perform_evaluation(dataset)     : cross-validation / percentage split
                                        (separate test set is deferred)
    - build_final_model(dataset)      : model trained on all the data
    - evaluate_incremental / evaluate_batch : test rows against the model
    - eval_row(key, batch_number)     : metric row, None if nothing evaluated
    """

    def __init__(self, cfg: TrainingConfig, scheme: Scheme):
        self.cfg = cfg
        self.scheme = scheme
        self.eval_mode = cfg.eval_mode

        self.schema: Optional[Schema] = None
        self.priors: Optional[Dict[str, Any]] = None
        self.stats: Optional[EvaluationStatistics] = None
        self.model: Optional[TrainedModel] = None

    # --------------------------------------------------
    # init
    # --------------------------------------------------
    def initialize(self, dataset: Dataset) -> None:
        self.schema = dataset.schema
        self.priors = class_priors(dataset) if dataset.schema.supervised else None
        self.stats = self._new_stats()

    def initialize_without_priors(self, schema: Schema) -> None:
        self.schema = schema
        self.priors = None
        self.stats = self._new_stats()

    def _new_stats(self) -> Optional[EvaluationStatistics]:
        if self.schema is None or not self.schema.supervised or not self.scheme.supervised:
            return None
        return EvaluationStatistics(self.schema, self.priors)

    @property
    def summary(self) -> Dict[str, Any]:
        """
        Persistable evaluation summary (training priors).
        """
        return dict(self.priors or {})

    # --------------------------------------------------
    # protocols
    # --------------------------------------------------
    def perform_evaluation(self, dataset: Dataset) -> None:
        if self.eval_mode == EvalMode.CROSS_VALIDATION:
            self._cross_validate(dataset)
        elif self.eval_mode == EvalMode.PERCENTAGE_SPLIT:
            self._percentage_split(dataset)
        # separate_test_set: test rows arrive later
        # none / prequential: nothing to do here

    def _cross_validate(self, dataset: Dataset) -> None:
        if self.stats is None:
            return
        data = dataset.labelled()
        n = len(data)
        folds = min(self.cfg.folds, n)
        if folds < 2:
            logs.warning(
                f"[Evaluator] {n} labelled rows, too few for cross-validation"
            )
            return

        y = data.class_values
        if self.schema.class_attribute.is_categorical and self._can_stratify(y, folds):
            splitter = StratifiedKFold(n_splits=folds, shuffle=True, random_state=self.cfg.seed)
            splits = splitter.split(data.values, y.astype(int))
        else:
            splitter = KFold(n_splits=folds, shuffle=True, random_state=self.cfg.seed)
            splits = splitter.split(data.values)

        for fold, (train_idx, test_idx) in enumerate(splits, start=1):
            model = self.scheme.fit(data.subset(train_idx))
            test = data.subset(test_idx)
            self.stats.update_batch(test.class_values, model.distributions(test.values))
            logs.debug(f"[Evaluator] fold {fold}/{folds} done ({len(test_idx)} test rows)")

    @staticmethod
    def _can_stratify(y: np.ndarray, folds: int) -> bool:
        _, counts = np.unique(y.astype(int), return_counts=True)
        return len(counts) > 1 and counts.max() >= folds

    def _percentage_split(self, dataset: Dataset) -> None:
        if self.stats is None:
            return
        data = dataset.labelled()
        n = len(data)
        n_train = int(round(n * self.cfg.percentage_split / 100.0))
        if n_train < 1 or n_train >= n:
            logs.warning(
                f"[Evaluator] {n} labelled rows, percentage split "
                f"{self.cfg.percentage_split}% leaves an empty side"
            )
            return

        order = np.random.default_rng(self.cfg.seed).permutation(n)
        model = self.scheme.fit(data.subset(order[:n_train]))
        test = data.subset(order[n_train:])
        self.stats.update_batch(test.class_values, model.distributions(test.values))

    # --------------------------------------------------
    # model
    # --------------------------------------------------
    def build_final_model(
        self,
        dataset: Dataset,
        resumed: Optional[TrainedModel] = None,
    ) -> TrainedModel:
        """
        Model on all of ``dataset``; continues ``resumed`` when given.
        """
        if resumed is not None:
            resumed.continue_training(dataset)
            self.model = resumed
        else:
            self.model = self.scheme.fit(dataset)
        return self.model

    def set_trained_model(self, model: TrainedModel) -> None:
        self.model = model

    # --------------------------------------------------
    # test rows
    # --------------------------------------------------
    def evaluate_incremental(self, record: np.ndarray) -> None:
        if self.stats is None or self.model is None:
            return
        actual = record[self.schema.class_index]
        if np.isnan(actual):
            return
        self.stats.update(actual, self.model.distribution(record))

    def evaluate_batch(self, records: np.ndarray) -> None:
        if self.stats is None or self.model is None or len(records) == 0:
            return
        records = np.atleast_2d(records)
        self.stats.update_batch(
            records[:, self.schema.class_index],
            self.model.distributions(records),
        )

    # --------------------------------------------------
    # output
    # --------------------------------------------------
    @property
    def evaluation_performed(self) -> bool:
        return self.stats is not None and self.stats.total > 0

    def eval_row(
        self,
        key: Optional[str] = None,
        batch_number: Optional[int] = None,
    ) -> Optional[Dict[str, Any]]:
        if not self.evaluation_performed:
            return None
        return metric_row(
            self.stats,
            scheme=self.scheme.name,
            scheme_options=self.scheme.options,
            eval_mode=self.eval_mode.value,
            key=key,
            batch_number=batch_number,
            output_ir_metrics=self.cfg.output_ir_metrics,
            output_auc_metrics=self.cfg.output_auc_metrics,
        )
