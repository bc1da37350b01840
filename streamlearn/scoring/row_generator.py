# streamlearn/scoring/row_generator.py
from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

import numpy as np

from streamlearn import logs
from streamlearn.config.scoring_config import ScoringConfig
from streamlearn.data.row_meta import RowMeta
from streamlearn.engines.base import BaseEngine
from streamlearn.evaluation.output_fields import metric_row
from streamlearn.evaluation.statistics import EvaluationStatistics
from streamlearn.scoring.scoring_model import ScoringModel
from streamlearn.utils.errors import ModelKindMismatch

UNABLE_TO_PREDICT = "Unable to predict"
UNABLE_TO_PREDICT_CLUSTER = "Unable to predict cluster"


class ScoringRowGenerator(BaseEngine[Sequence, Dict[str, Any]]):
    """
    ScoringRowGenerator

    Input row -> input fields + prediction fields.

    - categorical target : predicted label (first maximum wins),
                           "Unable to predict" on an all-zero distribution
    - numeric target     : predicted value
    - unsupervised       : cluster index or "Unable to predict cluster"
    - output_probabilities adds one column per class / cluster + max_prob

    With ``perform_evaluation`` no scored rows are emitted; one metric row
    is emitted at end-of-stream instead.
    """

    def __init__(self, scoring: ScoringModel, cfg: ScoringConfig):
        self.scoring = scoring
        self.cfg = cfg
        self.model = scoring.model
        self.schema = scoring.schema
        self.row_meta = scoring.row_meta
        self.class_index = self.schema.class_index if self.scoring.supervised else None

        self.stats: Optional[EvaluationStatistics] = None
        if cfg.perform_evaluation:
            if not self.scoring.supervised:
                raise ModelKindMismatch(
                    f"Evaluation needs a supervised model, {self.model.name} is a clusterer"
                )
            self.stats = EvaluationStatistics(self.schema, self.scoring.summary or None)

        self._with_probabilities = cfg.output_probabilities and (
            self.class_index is None or self.schema.class_attribute.is_categorical
        )
        self._field_names = self.output_field_names()

    @classmethod
    def from_config(cls, cfg: ScoringConfig, row_meta: RowMeta) -> "ScoringRowGenerator":
        scoring = ScoringModel.load(cfg.model_path, row_meta, cfg.update_incremental_model)
        return cls(scoring, cfg)

    # --------------------------------------------------
    # output layout
    # --------------------------------------------------
    def prediction_field_names(self) -> List[str]:
        if self.class_index is None:
            names = ["cluster"]
            if self._with_probabilities:
                names += [f"cluster_{i}_prob" for i in range(self._width())]
                names.append("max_prob")
            return names

        att = self.schema.class_attribute
        names = [f"predicted_{att.name}"]
        if self._with_probabilities:
            names += [f"{att.name}_{label}_prob" for label in att.values]
            names.append("max_prob")
        return names

    def output_field_names(self) -> List[str]:
        return self.row_meta.names + self.prediction_field_names()

    def _width(self) -> int:
        return int(self.model.distribution(np.full(self.schema.num_attributes, np.nan)).shape[0])

    # --------------------------------------------------
    # prediction
    # --------------------------------------------------
    def _records(self, rows: Sequence[Sequence]) -> np.ndarray:
        # fresh buffer per call
        return np.vstack([self.scoring.converter.convert(r) for r in rows])

    def _prediction_values(self, dist: np.ndarray) -> List[Any]:
        if self.class_index is None:
            label: Any = int(np.argmax(dist)) if dist.sum() > 0 else UNABLE_TO_PREDICT_CLUSTER
        else:
            att = self.schema.class_attribute
            if att.is_categorical:
                label = att.value(int(np.argmax(dist))) if dist.sum() > 0 else UNABLE_TO_PREDICT
            else:
                label = float(dist[0])

        values = [label]
        if self._with_probabilities:
            values += [float(p) for p in dist]
            values.append(float(dist.max()) if len(dist) else 0.0)
        return values

    def _output_row(self, row: Sequence, dist: np.ndarray) -> Dict[str, Any]:
        return dict(zip(self._field_names, list(row) + self._prediction_values(dist)))

    def _update(self, records: np.ndarray) -> None:
        if not self.scoring.update_incremental:
            return
        for record in records:
            if not np.isnan(record[self.class_index]):
                self.model.update(record)

    def generate_prediction(self, row: Sequence) -> Dict[str, Any]:
        return self.generate_predictions([row])[0]

    def generate_predictions(self, rows: Sequence[Sequence]) -> List[Dict[str, Any]]:
        if not rows:
            return []
        records = self._records(rows)
        test = records.copy()
        if self.class_index is not None:
            test[:, self.class_index] = np.nan

        dists = self.model.distributions(test)
        out = [self._output_row(r, d) for r, d in zip(rows, dists)]
        self._update(records)
        return out

    # --------------------------------------------------
    # evaluation
    # --------------------------------------------------
    def evaluate_for_row(self, row: Sequence) -> None:
        self.evaluate_for_rows([row])

    def evaluate_for_rows(self, rows: Sequence[Sequence]) -> None:
        if self.stats is None:
            raise ModelKindMismatch("Evaluation not enabled for this scoring run")
        if not rows:
            return
        records = self._records(rows)
        test = records.copy()
        test[:, self.class_index] = np.nan
        self.stats.update_batch(records[:, self.class_index], self.model.distributions(test))
        self._update(records)

    def evaluation_row(self) -> Optional[Dict[str, Any]]:
        if self.stats is None or self.stats.total == 0:
            return None
        return metric_row(
            self.stats,
            scheme=self.model.name,
            scheme_options=self.model.options,
            eval_mode="scoring",
        )

    # --------------------------------------------------
    # engine
    # --------------------------------------------------
    def process(self, row: Optional[Sequence]) -> List[Dict[str, Any]]:
        if row is None:
            if self.stats is None:
                return []
            result = self.evaluation_row()
            logs.info(f"[ScoringRowGenerator] evaluated {self.stats.total} rows")
            return [result] if result is not None else []

        if self.stats is not None:
            self.evaluate_for_row(row)
            return []
        return [self.generate_prediction(row)]

    def process_stream(self, events: Iterable[Sequence]) -> Iterator[Dict[str, Any]]:
        """
        Rows are scored in chunks of ``batch_size`` (or the model's preferred
        batch size for batch predictors); row-by-row otherwise.
        """
        size = self.cfg.batch_size
        if size <= 0 and self.model.batch_predictor:
            size = self.model.preferred_batch_size
        if size <= 0:
            yield from super().process_stream(events)
            return

        chunk: List[Sequence] = []
        for row in events:
            chunk.append(row)
            if len(chunk) >= size:
                yield from self._process_chunk(chunk)
                chunk = []
        if chunk:
            yield from self._process_chunk(chunk)
        yield from self.process(None)

    def _process_chunk(self, rows: List[Sequence]) -> List[Dict[str, Any]]:
        if self.stats is not None:
            self.evaluate_for_rows(rows)
            return []
        return self.generate_predictions(rows)
