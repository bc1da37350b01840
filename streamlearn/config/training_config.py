# streamlearn/config/training_config.py
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from streamlearn.utils.errors import ConfigurationError, UnsupportedModeCombination
from streamlearn.utils.logger import logs

DEFAULT_INITIAL_ROW_CACHE = 100


class RowHandlingMode(str, Enum):
    ALL = "all"
    BATCH = "batch"
    STRATIFIED = "stratified"


class EvalMode(str, Enum):
    NONE = "none"
    CROSS_VALIDATION = "cross_validation"
    PERCENTAGE_SPLIT = "percentage_split"
    SEPARATE_TEST_SET = "separate_test_set"
    PREQUENTIAL = "prequential"


def split_legal_values(raw: str) -> List[str]:
    """
    "a, b,c" -> ["a", "b", "c"] (order kept, blanks dropped)
    """
    return [v.strip() for v in raw.split(",") if v.strip()]


class FieldSpec(BaseModel):
    """
    Declared field: name + kind (numeric | categorical | string | date).

    ``kind`` stays a plain string here; the schema builder rejects
    unknown kinds with UnsupportedAttributeKind.
    """

    name: str
    kind: str
    legal_values: Optional[List[str]] = None

    @field_validator("legal_values", mode="before")
    @classmethod
    def _parse_legal_values(cls, v):
        if v is None:
            return None
        if isinstance(v, str):
            return split_legal_values(v) or None
        return [str(x).strip() for x in v] or None


class SchemeConfig(BaseModel):
    name: str = "sgd_classifier"
    params: Dict[str, Any] = Field(default_factory=dict)


class TrainingConfig(BaseModel):
    """
    TrainingConfig

    One config == one streaming run. Row handling mode and evaluation
    mode are fixed for the life of the run.
    """

    # schema
    fields: Optional[List[FieldSpec]] = None
    class_field: Optional[str] = None

    # row handling
    row_handling: RowHandlingMode = RowHandlingMode.ALL
    batch_size: int = 0
    stratify_field: Optional[str] = None
    reservoir_sampling: bool = False
    reservoir_size: int = 100
    initial_row_cache: int = DEFAULT_INITIAL_ROW_CACHE

    # evaluation
    eval_mode: EvalMode = EvalMode.NONE
    folds: int = 10
    percentage_split: int = 66
    seed: int = 1
    output_ir_metrics: bool = False
    output_auc_metrics: bool = False
    update_incremental_on_test: bool = False

    # model
    scheme: SchemeConfig = Field(default_factory=SchemeConfig)
    model_output_path: Optional[str] = None
    model_file_name: Optional[str] = None
    resumable_model_path: Optional[str] = None

    @field_validator("initial_row_cache", mode="before")
    @classmethod
    def _lenient_row_cache(cls, v):
        try:
            return int(v)
        except (TypeError, ValueError):
            logs.warning(
                f"[TrainingConfig] unable to parse initial_row_cache={v!r}, "
                f"using {DEFAULT_INITIAL_ROW_CACHE}"
            )
            return DEFAULT_INITIAL_ROW_CACHE

    # --------------------------------------------------
    @property
    def stratified(self) -> bool:
        return self.row_handling == RowHandlingMode.STRATIFIED

    @property
    def batched(self) -> bool:
        return self.row_handling == RowHandlingMode.BATCH

    def check_modes(self) -> None:
        """
        Reject mode combinations that can never run.
        """
        if self.batched and self.eval_mode == EvalMode.SEPARATE_TEST_SET:
            raise UnsupportedModeCombination(
                "Separate test set evaluation can't be done with batch row handling"
            )
        if self.batched and self.batch_size < 1:
            raise ConfigurationError(
                f"Batch row handling needs batch_size >= 1, got {self.batch_size}"
            )
        if self.stratified and not self.stratify_field:
            raise ConfigurationError(
                "Stratified row handling needs a stratify_field"
            )
        if self.reservoir_sampling and self.reservoir_size < 1:
            raise ConfigurationError(
                f"reservoir_size must be >= 1, got {self.reservoir_size}"
            )
        if self.eval_mode == EvalMode.CROSS_VALIDATION and self.folds < 2:
            raise ConfigurationError(f"folds must be >= 2, got {self.folds}")
        if self.eval_mode == EvalMode.PERCENTAGE_SPLIT and not 0 < self.percentage_split < 100:
            raise ConfigurationError(
                f"percentage_split must be in (0, 100), got {self.percentage_split}"
            )
