"""
Learning schemes behind a capability interface.
"""
from .base import Scheme, TrainedModel
from .encoding import FeatureEncoder
from .registry import available_schemes, resolve_scheme
from .sklearn_models import SklearnModel, SklearnScheme

__all__ = [
    "Scheme",
    "TrainedModel",
    "FeatureEncoder",
    "available_schemes",
    "resolve_scheme",
    "SklearnModel",
    "SklearnScheme",
]
