# streamlearn/training/incremental.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from streamlearn import logs
from streamlearn.config.training_config import EvalMode, TrainingConfig
from streamlearn.data.converter import RecordConverter
from streamlearn.data.row_meta import RowMeta
from streamlearn.data.schema_builder import SchemaBuilder
from streamlearn.evaluation.evaluator import Evaluator
from streamlearn.evaluation.output_fields import model_text_row
from streamlearn.models.base import Scheme
from streamlearn.training.persistence import ModelStore
from streamlearn.training.state import KeyReader, RunCounters, StratumState
from streamlearn.utils.errors import FlushError, StreamLearnError


class IncrementalTrainer:
    """
    IncrementalTrainer

    Per key: AwaitingSchema -> Training.

    - AwaitingSchema: cache up to ``initial_row_cache`` rows
      (skipped when the schema is determinable without data)
    - header determined: build schema over the cache, fresh model,
      replay the cache through ``_train_on_row``, drop the cache
    - Training: convert, (prequential) evaluate, then update
    - Batch(n): emit + reset model every n rows
    - end-of-stream: finalize caching keys, emit one row per key
    """

    def __init__(
        self,
        cfg: TrainingConfig,
        scheme: Scheme,
        builder: SchemaBuilder,
        row_meta: RowMeta,
        store: ModelStore,
        key_reader: Optional[KeyReader] = None,
    ):
        self.cfg = cfg
        self.scheme = scheme
        self.builder = builder
        self.row_meta = row_meta
        self.lookup = row_meta.field_lookup()
        self.store = store
        self.key_reader = key_reader

        self.cache_size = max(1, cfg.initial_row_cache)
        self.states: Dict[Optional[str], StratumState] = {}
        self.counters = RunCounters()

        # key -> state with a trained model, kept for separate test evaluation
        self.trained: Dict[Optional[str], StratumState] = {}

    # --------------------------------------------------
    def process(self, row: Sequence) -> List[Dict[str, Any]]:
        key = None
        if self.key_reader is not None:
            outcome = self.key_reader.read(row)
            if not outcome.ok:
                logs.warning(f"[IncrementalTrainer] {outcome.warning}, row skipped")
                return []
            key = outcome.value

        self.counters.row_count += 1
        self.counters.current_key = key

        state = self.states.get(key)
        try:
            if state is None:
                state = self._new_state(key)
                self.states[key] = state
            self._process_row(state, row)
        except StreamLearnError:
            raise
        except Exception as ex:
            raise FlushError(
                f"Incremental training failed on row {self.counters.row_count} (key={key!r})"
            ) from ex
        state.batch_rows += 1

        if self.cfg.batched and state.batch_rows >= self.cfg.batch_size:
            out = self._finish(state, batch_number=self.counters.batch_number)
            self.counters.batch_number += 1
            # next row of this key opens a fresh state
            del self.states[key]
            return out
        return []

    def end_of_stream(self) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        for key, state in self.states.items():
            if state.batch_rows == 0:
                continue
            batch_number = self.counters.batch_number if self.cfg.batched else None
            out.extend(self._finish(state, batch_number=batch_number))

        self.states = {}
        self.counters.reset()
        return out

    # --------------------------------------------------
    # state machine
    # --------------------------------------------------
    def _new_state(self, key: Optional[str]) -> StratumState:
        state = StratumState(key=key)
        if self.builder.determinable:
            self._init_model(state, self.builder.build([]))
        return state

    def _init_model(self, state: StratumState, schema) -> None:
        state.schema = schema
        state.converter = RecordConverter(schema, self.row_meta, self.lookup)
        state.model = self.scheme.new_model(schema)
        state.evaluator = Evaluator(self.cfg, self.scheme)
        state.evaluator.initialize_without_priors(schema)
        state.evaluator.set_trained_model(state.model)

    def _process_row(self, state: StratumState, row: Sequence) -> None:
        if state.awaiting_schema:
            state.rows.append(row)
            if len(state.rows) >= self.cache_size:
                self._determine_header(state)
            return
        self._train_on_row(state, row)

    def _determine_header(self, state: StratumState) -> None:
        cached = state.rows
        schema = self.builder.build(cached)
        self._init_model(state, schema)
        state.rows = []

        logs.debug(
            f"[IncrementalTrainer] header determined for key={state.key!r} "
            f"over {len(cached)} cached rows"
        )
        for row in cached:
            self._train_on_row(state, row)

    def _train_on_row(self, state: StratumState, row: Sequence) -> None:
        """
        Test-then-train: the row is evaluated before the model sees it.
        """
        record = state.converter.convert(row)
        if self.cfg.eval_mode == EvalMode.PREQUENTIAL:
            state.evaluator.evaluate_incremental(record)
        state.model.update(record)

    # --------------------------------------------------
    def _finish(
        self,
        state: StratumState,
        batch_number: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        if state.awaiting_schema and not state.rows:
            return []

        key = state.key if self.key_reader is not None else None
        try:
            if state.awaiting_schema:
                self._determine_header(state)

            self.store.save(state.model, state.schema, None, key, batch_number)

            if self.cfg.eval_mode == EvalMode.PREQUENTIAL:
                row = state.evaluator.eval_row(key, batch_number)
                out = [row] if row is not None else []
            else:
                out = [model_text_row(state.model.describe(), key, batch_number)]
        except StreamLearnError:
            raise
        except Exception as ex:
            raise FlushError(
                f"Incremental training failed while finishing key={key!r} "
                f"(batch={batch_number})"
            ) from ex

        if self.cfg.eval_mode == EvalMode.SEPARATE_TEST_SET:
            self.trained[key] = state
        return out
