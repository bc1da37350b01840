from .mapping import FieldMapping, MappingStatus, find_mappings
from .row_generator import UNABLE_TO_PREDICT, UNABLE_TO_PREDICT_CLUSTER, ScoringRowGenerator
from .scoring_model import ScoringModel

__all__ = [
    "FieldMapping",
    "MappingStatus",
    "find_mappings",
    "UNABLE_TO_PREDICT",
    "UNABLE_TO_PREDICT_CLUSTER",
    "ScoringRowGenerator",
    "ScoringModel",
]
