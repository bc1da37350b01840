# streamlearn/evaluation/statistics.py
from __future__ import annotations

import math
from typing import Dict, List, Optional

import numpy as np
from scipy.stats import pearsonr
from sklearn.metrics import average_precision_score, roc_auc_score

from streamlearn.data.dataset import Dataset
from streamlearn.data.schema import Schema


def class_priors(dataset: Dataset) -> Dict[str, object]:
    """
    Training-data priors used as the baseline for relative errors.

    categorical target -> Laplace-smoothed class counts
    numeric target     -> target mean over labelled rows
    """
    schema = dataset.schema
    att = schema.class_attribute
    if att is None:
        return {}

    y = dataset.class_values
    y = y[~np.isnan(y)]

    if att.is_categorical:
        counts = np.ones(att.num_values)
        for v in y.astype(int):
            counts[v] += 1
        return {"class_counts": counts.tolist()}

    return {
        "target_mean": float(y.mean()) if len(y) else 0.0,
        "target_count": int(len(y)),
    }


class EvaluationStatistics:
    """
    EvaluationStatistics

    Accumulates predicted vs. actual for one schema.

    Contract:
    - rows with a missing actual class are ignored
    - all-zero distribution (or NaN numeric prediction) -> unclassified
    - first maximum wins on arg-max ties
    - relative errors (RAE / RRSE) need priors; without priors they are absent
    """

    def __init__(self, schema: Schema, priors: Optional[Dict[str, object]] = None):
        att = schema.class_attribute
        if att is None:
            raise ValueError("Evaluation needs a class attribute")

        self.schema = schema
        self.classification = att.is_categorical
        self.num_classes = schema.num_classes
        self.priors = priors or None

        if self.classification:
            self._prior_dist = None
            if self.priors is not None:
                counts = np.asarray(self.priors["class_counts"], dtype=float)
                self._prior_dist = counts / counts.sum()
        else:
            self._prior_mean = None
            if self.priors is not None:
                self._prior_mean = float(self.priors["target_mean"])

        self.confusion = np.zeros((self.num_classes, self.num_classes))
        self.total = 0
        self.unclassified = 0

        self.sum_abs_err = 0.0
        self.sum_sq_err = 0.0
        self.sum_prior_abs_err = 0.0
        self.sum_prior_sq_err = 0.0

        # kept for correlation (numeric) and AUC / PRC (categorical)
        self._actuals: List[float] = []
        self._predictions: List = []

    # --------------------------------------------------
    # accumulate
    # --------------------------------------------------
    def update(self, actual: float, dist: np.ndarray) -> None:
        if math.isnan(actual):
            return
        self.total += 1
        if self.classification:
            self._update_nominal(int(actual), np.asarray(dist, dtype=float))
        else:
            self._update_numeric(float(actual), float(dist[0]))

    def update_batch(self, actuals: np.ndarray, dists: np.ndarray) -> None:
        for a, d in zip(actuals, dists):
            self.update(a, d)

    def _update_nominal(self, actual: int, dist: np.ndarray) -> None:
        target = np.zeros(self.num_classes)
        target[actual] = 1.0

        diff = dist - target
        self.sum_abs_err += float(np.abs(diff).sum()) / self.num_classes
        self.sum_sq_err += float((diff ** 2).sum()) / self.num_classes

        if self._prior_dist is not None:
            pdiff = self._prior_dist - target
            self.sum_prior_abs_err += float(np.abs(pdiff).sum()) / self.num_classes
            self.sum_prior_sq_err += float((pdiff ** 2).sum()) / self.num_classes

        self._actuals.append(actual)
        self._predictions.append(dist)

        if dist.sum() <= 0:
            self.unclassified += 1
            return
        self.confusion[actual, int(np.argmax(dist))] += 1

    def _update_numeric(self, actual: float, predicted: float) -> None:
        if math.isnan(predicted):
            self.unclassified += 1
            return

        err = predicted - actual
        self.sum_abs_err += abs(err)
        self.sum_sq_err += err * err

        if self._prior_mean is not None:
            perr = self._prior_mean - actual
            self.sum_prior_abs_err += abs(perr)
            self.sum_prior_sq_err += perr * perr

        self._actuals.append(actual)
        self._predictions.append(predicted)

    # --------------------------------------------------
    # summary values
    # --------------------------------------------------
    @property
    def classified(self) -> int:
        return self.total - self.unclassified

    @property
    def correct(self) -> float:
        return float(np.trace(self.confusion))

    @property
    def incorrect(self) -> float:
        return float(self.confusion.sum() - np.trace(self.confusion))

    @property
    def pct_correct(self) -> float:
        return 100.0 * self.correct / self.classified if self.classified else math.nan

    @property
    def pct_incorrect(self) -> float:
        return 100.0 * self.incorrect / self.classified if self.classified else math.nan

    def _error_count(self) -> int:
        # categorical errors include unclassified rows (zero distribution)
        return self.total if self.classification else self.classified

    @property
    def mae(self) -> float:
        n = self._error_count()
        return self.sum_abs_err / n if n else math.nan

    @property
    def rmse(self) -> float:
        n = self._error_count()
        return math.sqrt(self.sum_sq_err / n) if n else math.nan

    @property
    def rae(self) -> float:
        if self.priors is None or self.sum_prior_abs_err == 0:
            return math.nan
        return 100.0 * self.sum_abs_err / self.sum_prior_abs_err

    @property
    def rrse(self) -> float:
        if self.priors is None or self.sum_prior_sq_err == 0:
            return math.nan
        return 100.0 * math.sqrt(self.sum_sq_err / self.sum_prior_sq_err)

    @property
    def correlation(self) -> float:
        if self.classification or len(self._actuals) < 2:
            return math.nan
        a = np.asarray(self._actuals)
        p = np.asarray(self._predictions)
        if np.ptp(a) == 0 or np.ptp(p) == 0:
            return math.nan
        return float(pearsonr(a, p)[0])

    @property
    def kappa(self) -> float:
        n = self.confusion.sum()
        if n == 0:
            return math.nan
        po = np.trace(self.confusion) / n
        pe = float((self.confusion.sum(axis=1) * self.confusion.sum(axis=0)).sum()) / (n * n)
        if pe == 1.0:
            return 1.0 if po == 1.0 else 0.0
        return float((po - pe) / (1.0 - pe))

    # --------------------------------------------------
    # per-class IR metrics
    # --------------------------------------------------
    def _counts(self, c: int):
        tp = self.confusion[c, c]
        fn = self.confusion[c, :].sum() - tp
        fp = self.confusion[:, c].sum() - tp
        tn = self.confusion.sum() - tp - fn - fp
        return tp, fp, tn, fn

    def tp_rate(self, c: int) -> float:
        tp, _, _, fn = self._counts(c)
        return tp / (tp + fn) if tp + fn else 0.0

    def fp_rate(self, c: int) -> float:
        _, fp, tn, _ = self._counts(c)
        return fp / (fp + tn) if fp + tn else 0.0

    def precision(self, c: int) -> float:
        tp, fp, _, _ = self._counts(c)
        return tp / (tp + fp) if tp + fp else 0.0

    def recall(self, c: int) -> float:
        return self.tp_rate(c)

    def f_measure(self, c: int) -> float:
        p, r = self.precision(c), self.recall(c)
        return 2 * p * r / (p + r) if p + r else 0.0

    def mcc(self, c: int) -> float:
        tp, fp, tn, fn = self._counts(c)
        denom = math.sqrt((tp + fp) * (tp + fn) * (tn + fp) * (tn + fn))
        return (tp * tn - fp * fn) / denom if denom else 0.0

    def _scores(self, c: int):
        actual = np.asarray(self._actuals) == c
        scores = np.asarray([d[c] for d in self._predictions])
        return actual, scores

    def auc(self, c: int) -> float:
        actual, scores = self._scores(c)
        if actual.all() or not actual.any():
            return math.nan
        return float(roc_auc_score(actual, scores))

    def prc(self, c: int) -> float:
        actual, scores = self._scores(c)
        if not actual.any():
            return math.nan
        return float(average_precision_score(actual, scores))

    # --------------------------------------------------
    def confusion_matrix_string(self) -> str:
        """
        Text confusion matrix; rows are actual classes.
        """
        att = self.schema.class_attribute
        letters = [_label(i) for i in range(self.num_classes)]
        width = max(
            [len(str(int(v))) for v in self.confusion.flatten()] + [len(x) for x in letters] + [1]
        ) + 1

        lines = ["".join(x.rjust(width) for x in letters) + "   <-- classified as"]
        for i in range(self.num_classes):
            cells = "".join(str(int(v)).rjust(width) for v in self.confusion[i])
            lines.append(f"{cells} | {letters[i].rjust(width)} = {att.value(i)}")
        return "\n".join(lines)


def _label(i: int) -> str:
    """
    0 -> a, 25 -> z, 26 -> ba ...
    """
    out = ""
    while True:
        out = chr(ord("a") + i % 26) + out
        i //= 26
        if i == 0:
            return out
