import numpy as np
import pytest

from streamlearn.config.training_config import FieldSpec, SchemeConfig
from streamlearn.data.converter import RecordConverter
from streamlearn.data.schema_builder import SchemaBuilder
from streamlearn.models.encoding import FeatureEncoder
from streamlearn.models.registry import available_schemes, resolve_scheme
from streamlearn.utils.errors import ConfigurationError, NotResumable


@pytest.fixture
def weather_dataset(weather_meta, weather_rows):
    specs = [
        FieldSpec(name="outlook", kind="categorical"),
        FieldSpec(name="temperature", kind="numeric"),
        FieldSpec(name="humidity", kind="numeric"),
        FieldSpec(name="windy", kind="numeric"),
        FieldSpec(name="play", kind="categorical", legal_values="yes,no"),
    ]
    schema = SchemaBuilder(specs, weather_meta, class_field="play").build(weather_rows)
    return RecordConverter(schema, weather_meta).convert_all(weather_rows)


def test_encoder_one_hot_and_missing(weather_dataset):
    enc = FeatureEncoder(weather_dataset.schema)
    rec = weather_dataset.record(0).copy()
    rec[1] = np.nan

    X = enc.transform(rec)

    # temperature, humidity, windy, outlook=overcast/rainy/sunny
    assert enc.width == 6
    assert X.tolist() == [[0.0, 85.0, 0.0, 0.0, 0.0, 1.0]]


def test_unknown_scheme_rejected():
    with pytest.raises(ConfigurationError):
        resolve_scheme(SchemeConfig(name="nope"))


def test_registry_lists_schemes():
    assert {"sgd_classifier", "random_forest", "kmeans"} <= set(available_schemes())


def test_batch_classifier_distribution_covers_all_classes(weather_dataset):
    scheme = resolve_scheme(SchemeConfig(name="decision_tree"))
    model = scheme.fit(weather_dataset)

    dist = model.distributions(weather_dataset.values)

    assert dist.shape == (14, 2)
    assert np.allclose(dist.sum(axis=1), 1.0)
    assert "DecisionTreeClassifier" in model.describe()


def test_unfitted_model_predicts_nothing(weather_dataset):
    model = resolve_scheme(SchemeConfig(name="sgd_classifier")).new_model(weather_dataset.schema)

    assert model.distribution(weather_dataset.record(0)).sum() == 0.0


def test_incremental_update(weather_dataset):
    scheme = resolve_scheme(SchemeConfig(name="sgd_classifier"))
    assert scheme.supports_incremental_training

    model = scheme.new_model(weather_dataset.schema)
    for rec in weather_dataset:
        model.update(rec)

    dist = model.distribution(weather_dataset.record(0))
    assert model.updateable
    assert dist.shape == (2,)
    assert dist.sum() == pytest.approx(1.0)


def test_single_class_training_predicts_that_class(weather_dataset):
    y = weather_dataset.class_values
    only_yes = weather_dataset.subset(np.nonzero(y == 0)[0])
    model = resolve_scheme(SchemeConfig(name="logistic_regression")).fit(only_yes)

    assert model.distribution(weather_dataset.record(0)).tolist() == [1.0, 0.0]


def test_resumable_forest_grows(weather_dataset):
    scheme = resolve_scheme(SchemeConfig(name="random_forest", params={"n_estimators": 5}))
    assert scheme.supports_resumable_training

    model = scheme.fit(weather_dataset)
    assert model.batch_predictor and model.preferred_batch_size == 100

    model.continue_training(weather_dataset)

    assert len(model.estimator.estimators_) == 15
    assert model.trained_instances == 28


def test_non_resumable_model_refuses(weather_dataset):
    model = resolve_scheme(SchemeConfig(name="gaussian_nb")).fit(weather_dataset)

    with pytest.raises(NotResumable):
        model.continue_training(weather_dataset)


def test_regressor_predicts_value(weather_meta, weather_rows):
    specs = [
        FieldSpec(name="humidity", kind="numeric"),
        FieldSpec(name="temperature", kind="numeric"),
    ]
    schema = SchemaBuilder(specs, weather_meta, class_field="temperature").build(weather_rows)
    ds = RecordConverter(schema, weather_meta).convert_all(weather_rows)

    model = resolve_scheme(SchemeConfig(name="linear_regression")).fit(ds)

    assert model.distribution(ds.record(0)).shape == (1,)


def test_kmeans_is_unsupervised(weather_dataset):
    scheme = resolve_scheme(SchemeConfig(name="kmeans", params={"n_clusters": 2}))
    model = scheme.fit(weather_dataset)

    dist = model.distributions(weather_dataset.values)

    assert not scheme.supports_incremental_training
    assert dist.shape == (14, 2)
    assert (dist.sum(axis=1) == 1.0).all()


def test_update_with_single_legal_class(weather_meta, weather_rows):
    specs = [
        FieldSpec(name="temperature", kind="numeric"),
        FieldSpec(name="play", kind="categorical", legal_values="yes"),
    ]
    schema = SchemaBuilder(specs, weather_meta, class_field="play").build(weather_rows)
    ds = RecordConverter(schema, weather_meta).convert_all(weather_rows)
    model = resolve_scheme(SchemeConfig(name="sgd_classifier")).new_model(schema)

    for rec in ds:
        model.update(rec)

    assert model.trained_instances == 9
    assert model.distribution(ds.record(0)).tolist() == [1.0]
