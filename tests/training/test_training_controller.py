import pytest

from streamlearn.config.training_config import (
    EvalMode,
    FieldSpec,
    RowHandlingMode,
    SchemeConfig,
    TrainingConfig,
)
from streamlearn.data.row_meta import FieldMeta, FieldType, RowMeta
from streamlearn.training.controller import TrainingController
from streamlearn.utils.errors import (
    FlushError,
    RepeatedStratificationValue,
    UnsupportedModeCombination,
)


def _keyed_cfg(**kw):
    return TrainingConfig(
        fields=[
            FieldSpec(name="store", kind="categorical"),
            FieldSpec(name="x", kind="numeric"),
            FieldSpec(name="label", kind="categorical", legal_values="a,b"),
        ],
        class_field="label",
        row_handling=RowHandlingMode.STRATIFIED,
        stratify_field="store",
        **kw,
    )


def test_all_mode_flushes_once_at_end(weather_meta, weather_rows, batch_scheme):
    ctrl = TrainingController(TrainingConfig(), weather_meta, scheme=batch_scheme)

    out = []
    for row in weather_rows:
        out.extend(ctrl.process(row))
    assert out == []

    out = ctrl.process(None)

    assert len(out) == 1
    assert list(out[0]) == ["model"]
    assert batch_scheme.models[-1].fit_sizes == [14]


def test_batch_mode_k_full_batches_plus_remainder(weather_meta, weather_rows, batch_scheme):
    cfg = TrainingConfig(row_handling=RowHandlingMode.BATCH, batch_size=4)
    ctrl = TrainingController(cfg, weather_meta, scheme=batch_scheme)

    out = list(ctrl.process_stream(weather_rows))

    assert [r["batch_number"] for r in out] == [1, 2, 3, 4]
    assert [m.fit_sizes for m in batch_scheme.models] == [[4], [4], [4], [2]]


def test_batch_counter_reset_after_end_of_stream(weather_meta, weather_rows, batch_scheme):
    cfg = TrainingConfig(row_handling=RowHandlingMode.BATCH, batch_size=10)
    ctrl = TrainingController(cfg, weather_meta, scheme=batch_scheme)

    first = list(ctrl.process_stream(weather_rows))
    second = list(ctrl.process_stream(weather_rows))

    assert [r["batch_number"] for r in first] == [1, 2]
    assert [r["batch_number"] for r in second] == [1, 2]


def test_stratified_flushes_in_key_order(keyed_meta, make_keyed_rows, batch_scheme):
    ctrl = TrainingController(_keyed_cfg(), keyed_meta, scheme=batch_scheme)

    out = list(ctrl.process_stream(make_keyed_rows(["A", "A", "B", "B", "C"])))

    assert [r["stratification_value"] for r in out] == ["A", "B", "C"]
    assert [m.fit_sizes for m in batch_scheme.models] == [[2], [2], [1]]


def test_stratified_closed_key_reappearing_fails(keyed_meta, make_keyed_rows, batch_scheme):
    ctrl = TrainingController(_keyed_cfg(), keyed_meta, scheme=batch_scheme)

    with pytest.raises(RepeatedStratificationValue):
        list(ctrl.process_stream(make_keyed_rows(["A", "B", "A"])))


def test_null_stratification_value_skipped(keyed_meta, batch_scheme):
    ctrl = TrainingController(_keyed_cfg(), keyed_meta, scheme=batch_scheme)

    out = list(ctrl.process_stream([("A", 1.0, "a"), (None, 2.0, "b"), ("", 3.0, "b")]))

    assert len(out) == 1
    assert batch_scheme.models[-1].fit_sizes == [1]


def test_empty_stream_is_noop(weather_meta, batch_scheme):
    ctrl = TrainingController(TrainingConfig(), weather_meta, scheme=batch_scheme)

    assert list(ctrl.process_stream([])) == []
    assert batch_scheme.models == []


def test_reservoir_sampling_bounds_flushed_rows(weather_meta, weather_rows, batch_scheme):
    cfg = TrainingConfig(reservoir_sampling=True, reservoir_size=5)
    ctrl = TrainingController(cfg, weather_meta, scheme=batch_scheme)

    list(ctrl.process_stream(weather_rows))

    assert batch_scheme.models[-1].fit_sizes == [5]


def test_cross_validation_rows_tagged_with_key(keyed_meta, batch_scheme):
    rows = [("A", float(i), "a" if i % 2 else "b") for i in range(6)]
    rows += [("B", float(i), "a") for i in range(4)]
    cfg = _keyed_cfg(eval_mode=EvalMode.CROSS_VALIDATION, folds=2)
    ctrl = TrainingController(cfg, keyed_meta, scheme=batch_scheme)

    out = list(ctrl.process_stream(rows))

    assert [r["stratification_value"] for r in out] == ["A", "B"]
    assert [r["total_instances"] for r in out] == [6, 4]
    assert all(r["eval_mode"] == "cross_validation" for r in out)


def test_batch_with_separate_test_set_rejected(weather_meta, batch_scheme):
    cfg = TrainingConfig(
        row_handling=RowHandlingMode.BATCH,
        batch_size=2,
        eval_mode=EvalMode.SEPARATE_TEST_SET,
    )
    with pytest.raises(UnsupportedModeCombination):
        TrainingController(cfg, weather_meta, scheme=batch_scheme)


def test_prequential_needs_incremental_scheme(weather_meta, batch_scheme):
    cfg = TrainingConfig(eval_mode=EvalMode.PREQUENTIAL)
    with pytest.raises(UnsupportedModeCombination):
        TrainingController(cfg, weather_meta, scheme=batch_scheme)


def test_fit_failure_wrapped(weather_meta, weather_rows, batch_scheme, monkeypatch):
    def boom(dataset):
        raise RuntimeError("solver diverged")

    monkeypatch.setattr(batch_scheme, "fit", boom)
    ctrl = TrainingController(TrainingConfig(), weather_meta, scheme=batch_scheme)

    with pytest.raises(FlushError) as ei:
        list(ctrl.process_stream(weather_rows))

    assert isinstance(ei.value.__cause__, RuntimeError)


def test_incremental_scheme_selects_incremental_path(weather_meta, incremental_scheme, batch_scheme):
    assert TrainingController(TrainingConfig(), weather_meta, scheme=incremental_scheme).incremental
    cv = TrainingConfig(eval_mode=EvalMode.CROSS_VALIDATION)
    assert not TrainingController(cv, weather_meta, scheme=incremental_scheme).incremental
    assert not TrainingController(TrainingConfig(), weather_meta, scheme=batch_scheme).incremental


def test_kmeans_clusters_on_every_field():
    meta = RowMeta([FieldMeta("a", FieldType.NUMBER), FieldMeta("b", FieldType.NUMBER)])
    rows = [(0.1 * (i % 2), 0.0 if i < 5 else 100.0) for i in range(10)]
    cfg = TrainingConfig(scheme=SchemeConfig(name="kmeans", params={"n_clusters": 2}))
    ctrl = TrainingController(cfg, meta)

    out = list(ctrl.process_stream(rows))

    assert ctrl.builder.build([]).class_index is None
    assert len(out) == 1
    text = out[0]["model"]
    assert "Class:" not in text
    centres = sorted(
        line.split(":", 1)[1] for line in text.splitlines() if line.strip().startswith("cluster")
    )
    # two coordinates per centre, b separates the clusters
    assert [len(c.split(",")) for c in centres] == [2, 2]
    assert sorted(float(c.split(",")[1]) for c in centres) == [0.0, 100.0]


def test_batch_end_of_stream_after_full_batch_is_noop(weather_meta, weather_rows, batch_scheme):
    cfg = TrainingConfig(row_handling=RowHandlingMode.BATCH, batch_size=7)
    ctrl = TrainingController(cfg, weather_meta, scheme=batch_scheme)

    out = []
    for row in weather_rows:
        out.extend(ctrl.process(row))

    assert [r["batch_number"] for r in out] == [1, 2]
    assert ctrl.process(None) == []
    assert [m.fit_sizes for m in batch_scheme.models] == [[7], [7]]


def test_stratified_repeated_end_of_stream_is_noop(keyed_meta, make_keyed_rows, batch_scheme):
    ctrl = TrainingController(_keyed_cfg(), keyed_meta, scheme=batch_scheme)

    out = list(ctrl.process_stream(make_keyed_rows(["A", "A", "B", "B"])))

    assert [r["stratification_value"] for r in out] == ["A", "B"]
    assert ctrl.process(None) == []
    assert len(batch_scheme.models) == 2
