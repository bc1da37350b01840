import pytest

from streamlearn.config.training_config import (
    EvalMode,
    FieldSpec,
    RowHandlingMode,
    SchemeConfig,
    TrainingConfig,
)
from streamlearn.models.registry import resolve_scheme
from streamlearn.training.pipeline import StreamingTrainingPipeline
from streamlearn.utils.errors import ConfigurationError, RepeatedStratificationValue


def _cfg(stratified=False, **kw):
    extra = {}
    if stratified:
        extra = dict(row_handling=RowHandlingMode.STRATIFIED, stratify_field="store")
    return TrainingConfig(
        fields=[
            FieldSpec(name="x", kind="numeric"),
            FieldSpec(name="label", kind="categorical", legal_values="a,b"),
        ],
        class_field="label",
        eval_mode=EvalMode.SEPARATE_TEST_SET,
        **extra,
        **kw,
    )


def test_batch_model_evaluated_on_test_rows(keyed_meta, batch_scheme):
    train = [("s", float(i), "a") for i in range(5)]
    test = [("s", 0.0, "a"), ("s", 1.0, "b"), ("s", 2.0, "a")]

    out = StreamingTrainingPipeline(_cfg(), scheme=batch_scheme).run(keyed_meta, train, test)

    # training flush emits nothing in separate test mode; one metric row at the end
    assert len(out) == 1
    assert out[0]["eval_mode"] == "separate_test_set"
    assert out[0]["total_instances"] == 3
    assert out[0]["correct"] == 2


def test_incremental_model_updated_on_test_rows(keyed_meta, incremental_scheme):
    train = [("s", 0.0, "a")]
    test = [("s", 0.0, "b"), ("s", 1.0, "b"), ("s", 2.0, "b")]
    cfg = _cfg(update_incremental_on_test=True)

    out = StreamingTrainingPipeline(cfg, scheme=incremental_scheme).run(keyed_meta, train, test)

    # model text from training, then the test metric row
    assert list(out[0]) == ["model"]
    metrics = out[1]
    # a, then a (1-1 tie keeps first), then b
    assert metrics["correct"] == 1
    assert metrics["incorrect"] == 2


def test_stratified_test_rows_per_key(keyed_meta, batch_scheme):
    train = [("A", 0.0, "a"), ("A", 1.0, "a"), ("B", 2.0, "b")]
    test = [("A", 0.0, "a"), ("B", 1.0, "b"), ("B", 1.0, "a"), ("C", 5.0, "a")]

    out = StreamingTrainingPipeline(_cfg(stratified=True), scheme=batch_scheme).run(
        keyed_meta, train, test
    )

    assert [(r["stratification_value"], r["total_instances"]) for r in out] == [("A", 1), ("B", 2)]
    assert out[1]["correct"] == 1


def test_stratified_test_rows_must_be_sorted(keyed_meta, batch_scheme):
    train = [("A", 0.0, "a"), ("B", 2.0, "b")]
    test = [("A", 0.0, "a"), ("B", 1.0, "b"), ("A", 1.0, "a")]

    with pytest.raises(RepeatedStratificationValue):
        StreamingTrainingPipeline(_cfg(stratified=True), scheme=batch_scheme).run(
            keyed_meta, train, test
        )


def test_batch_predictor_evaluated_in_chunks(keyed_meta):
    scheme = resolve_scheme(SchemeConfig(name="random_forest", params={"n_estimators": 3}))
    train = [("s", float(i), "a" if i < 5 else "b") for i in range(10)]
    test = [("s", float(i % 10), "a" if i % 10 < 5 else "b") for i in range(250)]

    out = StreamingTrainingPipeline(_cfg(), scheme=scheme).run(keyed_meta, train, test)

    assert out[-1]["total_instances"] == 250


def test_missing_test_stream_rejected(keyed_meta, batch_scheme):
    with pytest.raises(ConfigurationError):
        StreamingTrainingPipeline(_cfg(), scheme=batch_scheme).run(keyed_meta, [("s", 0.0, "a")])
