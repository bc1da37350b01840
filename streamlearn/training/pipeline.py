# streamlearn/training/pipeline.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from streamlearn import logs
from streamlearn.config.training_config import EvalMode, TrainingConfig
from streamlearn.data.row_meta import RowMeta, rows_from_frame
from streamlearn.models.base import Scheme
from streamlearn.training.controller import TrainingController
from streamlearn.training.persistence import ModelStore
from streamlearn.training.separate_test import SeparateTestSetEvaluator
from streamlearn.utils.errors import ConfigurationError


class StreamingTrainingPipeline:
    """
    StreamingTrainingPipeline

    Semantics:
    - training stream fully consumed first (end-of-stream included)
    - separate test stream, when configured, runs against the models
      kept by the controller
    - output rows are returned in emission order
    """

    def __init__(
        self,
        cfg: TrainingConfig,
        *,
        scheme: Optional[Scheme] = None,
        store: Optional[ModelStore] = None,
    ):
        cfg.check_modes()
        self.cfg = cfg
        self.scheme = scheme
        self.store = store
        self.controller: Optional[TrainingController] = None

    def run(
        self,
        row_meta: RowMeta,
        rows: Iterable[Sequence],
        test_rows: Optional[Iterable[Sequence]] = None,
        test_row_meta: Optional[RowMeta] = None,
    ) -> List[Dict[str, Any]]:
        separate = self.cfg.eval_mode == EvalMode.SEPARATE_TEST_SET
        if separate and test_rows is None:
            raise ConfigurationError("Separate test set evaluation needs a test stream")

        self.controller = TrainingController(
            self.cfg, row_meta, scheme=self.scheme, store=self.store
        )
        out = list(self.controller.process_stream(rows))
        logs.info(f"[StreamingTrainingPipeline] training emitted {len(out)} rows")

        if separate:
            driver = SeparateTestSetEvaluator(
                self.cfg, self.controller.trained, test_row_meta or row_meta
            )
            tested = list(driver.process_stream(test_rows))
            logs.info(f"[StreamingTrainingPipeline] test set emitted {len(tested)} rows")
            out.extend(tested)

        return out

    def run_frame(
        self,
        train: pd.DataFrame,
        test: Optional[pd.DataFrame] = None,
    ) -> pd.DataFrame:
        """
        DataFrame in, output rows as a DataFrame out.
        """
        rows = self.run(
            RowMeta.from_frame(train),
            rows_from_frame(train),
            test_rows=rows_from_frame(test) if test is not None else None,
            test_row_meta=RowMeta.from_frame(test) if test is not None else None,
        )
        return pd.DataFrame(rows)
