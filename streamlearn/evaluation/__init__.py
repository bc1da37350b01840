from .evaluator import Evaluator
from .output_fields import metric_field_names, metric_row, model_text_row
from .statistics import EvaluationStatistics, class_priors

__all__ = [
    "Evaluator",
    "EvaluationStatistics",
    "class_priors",
    "metric_field_names",
    "metric_row",
    "model_text_row",
]
