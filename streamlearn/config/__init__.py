from .app_config import AppConfig
from .log_config import LogConfig
from .scoring_config import ScoringConfig
from .training_config import (
    EvalMode,
    FieldSpec,
    RowHandlingMode,
    SchemeConfig,
    TrainingConfig,
)

__all__ = [
    "AppConfig",
    "LogConfig",
    "ScoringConfig",
    "EvalMode",
    "FieldSpec",
    "RowHandlingMode",
    "SchemeConfig",
    "TrainingConfig",
]
