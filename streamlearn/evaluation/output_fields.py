# streamlearn/evaluation/output_fields.py
"""
Output row layout

Metric row (one per flush / stratum / end-of-stream):

    scheme, scheme_options, eval_mode,
    [stratification_value], [batch_number],
    unclassified,
    correct, incorrect, pct_correct, pct_incorrect     (categorical target)
    mae, rmse,
    corr_coeff                                         (numeric target)
    rae, rrse                                          (priors available)
    total_instances,
    kappa                                              (categorical target)
    {label}_tp_rate ... {label}_mcc                    (IR metrics)
    {label}_auc, {label}_prc                           (AUC metrics)
    confusion_matrix                                   (categorical target)

Model text row:

    [stratification_value], [batch_number], model
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from streamlearn.data.schema import Schema
from streamlearn.evaluation.statistics import EvaluationStatistics

IR_METRICS = ("tp_rate", "fp_rate", "precision", "recall", "f_measure", "mcc")
AUC_METRICS = ("auc", "prc")


def _key_fields(
    row: Dict[str, Any],
    key: Optional[str],
    batch_number: Optional[int],
) -> None:
    if key is not None:
        row["stratification_value"] = key
    if batch_number is not None:
        row["batch_number"] = batch_number


def metric_row(
    stats: EvaluationStatistics,
    *,
    scheme: str,
    scheme_options: str,
    eval_mode: str,
    key: Optional[str] = None,
    batch_number: Optional[int] = None,
    output_ir_metrics: bool = False,
    output_auc_metrics: bool = False,
) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "scheme": scheme,
        "scheme_options": scheme_options,
        "eval_mode": eval_mode,
    }
    _key_fields(row, key, batch_number)

    row["unclassified"] = stats.unclassified

    if stats.classification:
        row["correct"] = stats.correct
        row["incorrect"] = stats.incorrect
        row["pct_correct"] = stats.pct_correct
        row["pct_incorrect"] = stats.pct_incorrect

    row["mae"] = stats.mae
    row["rmse"] = stats.rmse

    if not stats.classification:
        row["corr_coeff"] = stats.correlation

    if stats.priors is not None:
        row["rae"] = stats.rae
        row["rrse"] = stats.rrse

    row["total_instances"] = stats.total

    if stats.classification:
        row["kappa"] = stats.kappa
        att = stats.schema.class_attribute
        for c, label in enumerate(att.values):
            if output_ir_metrics:
                for m in IR_METRICS:
                    row[f"{label}_{m}"] = getattr(stats, m)(c)
            if output_auc_metrics:
                for m in AUC_METRICS:
                    row[f"{label}_{m}"] = getattr(stats, m)(c)
        row["confusion_matrix"] = stats.confusion_matrix_string()

    return row


def model_text_row(
    text: str,
    key: Optional[str] = None,
    batch_number: Optional[int] = None,
) -> Dict[str, Any]:
    row: Dict[str, Any] = {}
    _key_fields(row, key, batch_number)
    row["model"] = text
    return row


def metric_field_names(
    schema: Schema,
    *,
    stratified: bool = False,
    batched: bool = False,
    with_priors: bool = True,
    output_ir_metrics: bool = False,
    output_auc_metrics: bool = False,
) -> List[str]:
    """
    Column names of ``metric_row`` for ``schema`` (without computing anything).
    """
    names = ["scheme", "scheme_options", "eval_mode"]
    if stratified:
        names.append("stratification_value")
    if batched:
        names.append("batch_number")
    names.append("unclassified")

    categorical = schema.class_attribute.is_categorical
    if categorical:
        names += ["correct", "incorrect", "pct_correct", "pct_incorrect"]
    names += ["mae", "rmse"]
    if not categorical:
        names.append("corr_coeff")
    if with_priors:
        names += ["rae", "rrse"]
    names.append("total_instances")

    if categorical:
        names.append("kappa")
        for label in schema.class_attribute.values:
            if output_ir_metrics:
                names += [f"{label}_{m}" for m in IR_METRICS]
            if output_auc_metrics:
                names += [f"{label}_{m}" for m in AUC_METRICS]
        names.append("confusion_matrix")
    return names
