# streamlearn/training/controller.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from streamlearn import logs
from streamlearn.config.training_config import EvalMode, TrainingConfig
from streamlearn.data.converter import RecordConverter
from streamlearn.data.reservoir import ReservoirSampler
from streamlearn.data.row_meta import RowMeta
from streamlearn.data.schema_builder import SchemaBuilder, field_specs_from_row_meta
from streamlearn.engines.base import BaseEngine
from streamlearn.evaluation.evaluator import Evaluator
from streamlearn.evaluation.output_fields import model_text_row
from streamlearn.models.base import Scheme
from streamlearn.models.registry import resolve_scheme
from streamlearn.training.incremental import IncrementalTrainer
from streamlearn.training.persistence import ModelStore
from streamlearn.training.state import KeyReader, RunCounters, StratumState
from streamlearn.utils.errors import (
    FlushError,
    RepeatedStratificationValue,
    StreamLearnError,
    UnsupportedModeCombination,
)

INCREMENTAL_EVAL_MODES = (
    EvalMode.NONE,
    EvalMode.SEPARATE_TEST_SET,
    EvalMode.PREQUENTIAL,
)


class TrainingController(BaseEngine[Sequence, Dict[str, Any]]):
    """
    TrainingController

    Row-by-row training state machine (Idle -> Buffering -> Flushing).

    Row handling (fixed per run):
    - all        : buffer (or reservoir sample) everything, flush at end
    - batch(n)   : flush every n rows, batch numbers 1, 2, ...
    - stratified : one stratum per key; input sorted by key; a closed key
                   re-appearing raises RepeatedStratificationValue

    Schemes that update in place (and an incremental-compatible eval mode)
    are handed to IncrementalTrainer.

    Output rows: model text (eval none) or one metric row per flush.
    """

    def __init__(
        self,
        cfg: TrainingConfig,
        row_meta: RowMeta,
        scheme: Optional[Scheme] = None,
        store: Optional[ModelStore] = None,
    ):
        cfg.check_modes()

        self.cfg = cfg
        self.row_meta = row_meta
        self.lookup = row_meta.field_lookup()
        self.scheme = scheme or resolve_scheme(cfg.scheme)
        self.store = store or ModelStore(cfg.model_output_path, cfg.model_file_name)

        specs = cfg.fields or field_specs_from_row_meta(row_meta)
        stratify_field = cfg.stratify_field if cfg.stratified else None
        self.builder = SchemaBuilder(
            specs, row_meta, cfg.class_field, stratify_field,
            supervised=self.scheme.supervised,
        )
        self.key_reader = KeyReader(row_meta, stratify_field) if stratify_field else None

        self.counters = RunCounters()
        self._stratum = self._new_stratum(None)

        # key -> state with a trained model, kept for separate test evaluation
        self.trained: Dict[Optional[str], StratumState] = {}

        self._incremental: Optional[IncrementalTrainer] = None
        if self.scheme.supports_incremental_training and cfg.eval_mode in INCREMENTAL_EVAL_MODES:
            self._incremental = IncrementalTrainer(
                cfg, self.scheme, self.builder, row_meta, self.store, self.key_reader
            )
            self.trained = self._incremental.trained
        elif cfg.eval_mode == EvalMode.PREQUENTIAL:
            raise UnsupportedModeCombination(
                f"Prequential evaluation needs an incrementally trainable scheme, "
                f"'{self.scheme.name}' is not"
            )

        logs.info(
            f"[TrainingController] scheme={self.scheme.name} "
            f"row_handling={cfg.row_handling.value} eval={cfg.eval_mode.value} "
            f"incremental={self.incremental}"
        )

    @property
    def incremental(self) -> bool:
        return self._incremental is not None

    # --------------------------------------------------
    # row events
    # --------------------------------------------------
    def process(self, row: Optional[Sequence]) -> List[Dict[str, Any]]:
        if row is None:
            return self.end_of_stream()
        if self._incremental is not None:
            return self._incremental.process(row)

        if self.key_reader is not None:
            return self._process_stratified(row)

        self.counters.row_count += 1
        self._stratum.add(row)

        if self.cfg.batched and len(self._stratum.rows) >= self.cfg.batch_size:
            out = self._flush(self._stratum, batch_number=self.counters.batch_number)
            self.counters.batch_number += 1
            self._stratum = self._new_stratum(None)
            return out
        return []

    def _process_stratified(self, row: Sequence) -> List[Dict[str, Any]]:
        outcome = self.key_reader.read(row)
        if not outcome.ok:
            logs.warning(f"[TrainingController] {outcome.warning}, row skipped")
            return []

        key = outcome.value
        self.counters.row_count += 1
        out: List[Dict[str, Any]] = []

        if key != self.counters.current_key:
            if key in self.counters.closed_keys:
                raise RepeatedStratificationValue(
                    f"Stratification value '{key}' seen again after its stratum was "
                    f"closed, input must be sorted by '{self.cfg.stratify_field}'"
                )
            previous = self.counters.current_key
            if previous is not None:
                if self._stratum.has_rows:
                    out = self._flush(self._stratum, key=previous)
                self.counters.closed_keys.add(previous)
            self._stratum = self._new_stratum(key)
            self.counters.current_key = key

        self._stratum.add(row)
        return out

    def end_of_stream(self) -> List[Dict[str, Any]]:
        if self._incremental is not None:
            return self._incremental.end_of_stream()

        out: List[Dict[str, Any]] = []
        if self._stratum.has_rows:
            out = self._flush(
                self._stratum,
                key=self.counters.current_key if self.key_reader is not None else None,
                batch_number=self.counters.batch_number if self.cfg.batched else None,
            )

        logs.info(f"[TrainingController] end of stream after {self.counters.row_count} rows")
        self._stratum = self._new_stratum(None)
        self.counters.reset()
        return out

    # --------------------------------------------------
    # flush
    # --------------------------------------------------
    def _new_stratum(self, key: Optional[str]) -> StratumState:
        sampler = None
        if self.cfg.reservoir_sampling and not self.cfg.batched:
            sampler = ReservoirSampler(self.cfg.reservoir_size, self.cfg.seed)
        return StratumState(key=key, sampler=sampler)

    def _flush(
        self,
        stratum: StratumState,
        key: Optional[str] = None,
        batch_number: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        rows = stratum.buffered_rows()
        if not rows:
            return []

        eval_mode = self.cfg.eval_mode
        build_model = (
            self.store.enabled
            or eval_mode in (EvalMode.NONE, EvalMode.SEPARATE_TEST_SET)
        )

        try:
            schema = self.builder.build(rows)
            converter = RecordConverter(schema, self.row_meta, self.lookup)
            dataset = converter.convert_all(rows)

            evaluator = Evaluator(self.cfg, self.scheme)
            evaluator.initialize(dataset)
            evaluator.perform_evaluation(dataset)

            model = None
            if build_model:
                resumed = None
                if self.cfg.resumable_model_path:
                    if self.scheme.supports_resumable_training:
                        resumed = ModelStore.load_resumable(self.cfg.resumable_model_path).model
                    else:
                        logs.warning(
                            f"[TrainingController] scheme '{self.scheme.name}' can't resume, "
                            f"training from scratch"
                        )
                model = evaluator.build_final_model(dataset, resumed)
        except StreamLearnError:
            raise
        except Exception as ex:
            raise FlushError(
                f"Training failed while flushing {len(rows)} rows "
                f"(key={key!r}, batch={batch_number})"
            ) from ex

        logs.info(
            f"[TrainingController] flushed {len(dataset)} rows "
            f"(key={key!r}, batch={batch_number})"
        )

        if model is not None:
            summary = evaluator.summary if len(dataset) else None
            self.store.save(model, schema, summary, key, batch_number)

        if eval_mode == EvalMode.SEPARATE_TEST_SET:
            evaluator.set_trained_model(model)
            self.trained[key] = StratumState(
                key=key, schema=schema, converter=converter, model=model, evaluator=evaluator
            )

        if eval_mode == EvalMode.NONE:
            return [model_text_row(model.describe(), key, batch_number)]

        row = evaluator.eval_row(key, batch_number)
        return [row] if row is not None else []
