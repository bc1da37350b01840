# streamlearn/models/registry.py
from __future__ import annotations

from typing import Any, Callable, Dict

from sklearn.cluster import KMeans
from sklearn.ensemble import (
    GradientBoostingClassifier,
    RandomForestClassifier,
    RandomForestRegressor,
)
from sklearn.linear_model import (
    LinearRegression,
    LogisticRegression,
    SGDClassifier,
    SGDRegressor,
)
from sklearn.naive_bayes import GaussianNB
from sklearn.tree import DecisionTreeClassifier

from streamlearn.config.training_config import SchemeConfig
from streamlearn.models.base import Scheme
from streamlearn.models.sklearn_models import SklearnScheme
from streamlearn.utils.errors import ConfigurationError

_SCHEME_REGISTRY: Dict[str, Callable[[Dict[str, Any]], Scheme]] = {
    # ---------------- classification ----------------
    "sgd_classifier": lambda p: SklearnScheme(
        "sgd_classifier", SGDClassifier, {"loss": "log_loss", "random_state": 1, **p}
    ),
    "gaussian_nb": lambda p: SklearnScheme("gaussian_nb", GaussianNB, dict(p)),
    "logistic_regression": lambda p: SklearnScheme(
        "logistic_regression", LogisticRegression, {"max_iter": 1000, **p}
    ),
    "decision_tree": lambda p: SklearnScheme(
        "decision_tree", DecisionTreeClassifier, {"random_state": 1, **p}
    ),
    "random_forest": lambda p: SklearnScheme(
        "random_forest",
        RandomForestClassifier,
        {"n_estimators": 100, "random_state": 1, **p},
        batch_predictor=True,
        preferred_batch_size=100,
    ),
    "gradient_boosting": lambda p: SklearnScheme(
        "gradient_boosting", GradientBoostingClassifier, {"random_state": 1, **p}
    ),
    # ---------------- regression ----------------
    "sgd_regressor": lambda p: SklearnScheme(
        "sgd_regressor", SGDRegressor, {"random_state": 1, **p}
    ),
    "linear_regression": lambda p: SklearnScheme("linear_regression", LinearRegression, dict(p)),
    "random_forest_regressor": lambda p: SklearnScheme(
        "random_forest_regressor",
        RandomForestRegressor,
        {"n_estimators": 100, "random_state": 1, **p},
        batch_predictor=True,
        preferred_batch_size=100,
    ),
    # ---------------- clustering ----------------
    "kmeans": lambda p: SklearnScheme(
        "kmeans",
        KMeans,
        {"n_clusters": 3, "n_init": 10, "random_state": 1, **p},
        supervised=False,
    ),
}


def available_schemes():
    return sorted(_SCHEME_REGISTRY)


def resolve_scheme(cfg: SchemeConfig) -> Scheme:
    key = cfg.name.strip().lower()

    if key not in _SCHEME_REGISTRY:
        available = ", ".join(available_schemes())
        raise ConfigurationError(
            f"No learning scheme '{cfg.name}'. Available: {available}"
        )

    return _SCHEME_REGISTRY[key](cfg.params)
