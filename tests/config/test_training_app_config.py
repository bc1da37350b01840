import pytest
import yaml

from streamlearn.config import AppConfig, EvalMode, RowHandlingMode, TrainingConfig
from streamlearn.config.training_config import DEFAULT_INITIAL_ROW_CACHE, FieldSpec
from streamlearn.utils.errors import ConfigurationError, UnsupportedModeCombination


@pytest.fixture
def sample_config_file(tmp_path):
    data = {
        "log": {"dir": None, "level": "DEBUG"},
        "training": {
            "fields": [
                {"name": "x", "kind": "numeric"},
                {"name": "label", "kind": "categorical", "legal_values": "a, b"},
            ],
            "class_field": "label",
            "row_handling": "batch",
            "batch_size": 50,
            "eval_mode": "cross_validation",
            "folds": 5,
            "scheme": {"name": "random_forest", "params": {"n_estimators": 20}},
            "model_output_path": "$MODEL_DIR/out",
        },
        "scoring": {"model_path": "file:///tmp/model.joblib", "output_probabilities": True},
    }
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.safe_dump(data), encoding="utf-8")
    (tmp_path / ".env").write_text("MODEL_DIR=/srv/models\n", encoding="utf-8")
    return config_file


def test_load_yaml(sample_config_file, monkeypatch):
    monkeypatch.delenv("MODEL_DIR", raising=False)
    cfg = AppConfig.load(str(sample_config_file))

    assert cfg.log.level == "DEBUG"
    assert cfg.training.row_handling == RowHandlingMode.BATCH
    assert cfg.training.eval_mode == EvalMode.CROSS_VALIDATION
    assert cfg.training.fields[1].legal_values == ["a", "b"]
    assert cfg.training.scheme.params == {"n_estimators": 20}
    assert cfg.scoring.output_probabilities


def test_env_file_loaded(sample_config_file, monkeypatch):
    import os

    monkeypatch.delenv("MODEL_DIR", raising=False)
    AppConfig.load(str(sample_config_file))

    assert os.environ["MODEL_DIR"] == "/srv/models"
    monkeypatch.delenv("MODEL_DIR")


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        AppConfig.load(str(tmp_path / "nope.yaml"))


def test_unparsable_row_cache_falls_back():
    cfg = TrainingConfig(initial_row_cache="lots")

    assert cfg.initial_row_cache == DEFAULT_INITIAL_ROW_CACHE
    assert TrainingConfig(initial_row_cache="25").initial_row_cache == 25


def test_legal_values_blank_means_none():
    assert FieldSpec(name="x", kind="categorical", legal_values=" , ").legal_values is None


@pytest.mark.parametrize(
    "kw, err",
    [
        (dict(row_handling="batch", batch_size=5, eval_mode="separate_test_set"), UnsupportedModeCombination),
        (dict(row_handling="batch", batch_size=0), ConfigurationError),
        (dict(row_handling="stratified"), ConfigurationError),
        (dict(eval_mode="cross_validation", folds=1), ConfigurationError),
        (dict(eval_mode="percentage_split", percentage_split=100), ConfigurationError),
        (dict(reservoir_sampling=True, reservoir_size=0), ConfigurationError),
    ],
)
def test_check_modes_rejects(kw, err):
    with pytest.raises(err):
        TrainingConfig(**kw).check_modes()


def test_check_modes_accepts_defaults():
    TrainingConfig().check_modes()
