# streamlearn/training/persistence.py
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import joblib

from streamlearn import logs
from streamlearn.data.schema import Schema
from streamlearn.models.base import TrainedModel
from streamlearn.utils.errors import NotResumable, PersistenceError
from streamlearn.utils.path import resolve_model_path

DEFAULT_MODEL_NAME = "model"
MODEL_SUFFIX = ".joblib"


@dataclass(frozen=True)
class StoredModel:
    """
    Loaded model artifact.

    ``summary`` holds the training priors; None when the model was saved
    from an empty dataset or without evaluation.
    """
    model: TrainedModel
    schema: Schema
    summary: Optional[Dict[str, Any]]
    path: Path


class ModelStore:
    """
    ModelStore

    Semantics:
    - one joblib file per saved model: {model, schema, summary}
    - ``<file>.artifact.json`` sidecar with human-readable metadata
    - file name prefixed with the stratification value / batch number
    - names ending in ``.gz`` are gzip-compressed
    - saved schema carries no accumulated string values
    """

    def __init__(
        self,
        output_dir: Optional[str] = None,
        file_name: Optional[str] = None,
    ):
        self.output_dir = output_dir
        self.file_name = file_name or DEFAULT_MODEL_NAME

    @property
    def enabled(self) -> bool:
        return bool(self.output_dir)

    # --------------------------------------------------
    # paths
    # --------------------------------------------------
    def _resolve_dir(self) -> Path:
        path = resolve_model_path(self.output_dir)
        if path.exists() and not path.is_dir():
            raise PersistenceError(f"Model output path {path} is a file")
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as ex:
            raise PersistenceError(f"Unable to create model directory {path}") from ex
        return path

    def file_name_for(
        self,
        key: Optional[str] = None,
        batch_number: Optional[int] = None,
    ) -> str:
        name = self.file_name
        if not name.endswith(".gz") and not Path(name).suffix:
            name += MODEL_SUFFIX
        if key is not None:
            name = f"{key}_{name}"
        if batch_number is not None:
            name = f"{batch_number}_{name}"
        return name

    # --------------------------------------------------
    # save
    # --------------------------------------------------
    def save(
        self,
        model: TrainedModel,
        schema: Schema,
        summary: Optional[Dict[str, Any]] = None,
        key: Optional[str] = None,
        batch_number: Optional[int] = None,
    ) -> Optional[Path]:
        if not self.enabled:
            return None

        target = self._resolve_dir() / self.file_name_for(key, batch_number)
        payload = {
            "model": model,
            "schema": schema.string_free(),
            "summary": summary,
        }

        meta = {
            "created_at": datetime.now().isoformat(),
            "model_type": type(model).__name__,
            "relation": schema.relation,
            "attributes": schema.names,
            "class_attribute": (
                schema.class_attribute.name if schema.class_attribute else None
            ),
            "stratification_value": key,
            "batch_number": batch_number,
            "summary": summary,
        }

        compress = ("gzip", 3) if target.name.endswith(".gz") else 0
        meta_path = target.with_name(target.name + ".artifact.json")
        try:
            joblib.dump(payload, target, compress=compress)
            meta_path.write_text(json.dumps(meta, indent=2, default=str))
        except OSError as ex:
            raise PersistenceError(f"Unable to write model to {target}") from ex

        logs.info(f"[ModelStore] saved model -> {target}")
        return target

    # --------------------------------------------------
    # load
    # --------------------------------------------------
    @staticmethod
    def load(raw_path: str) -> StoredModel:
        path = resolve_model_path(str(raw_path))
        if not path.is_file():
            raise PersistenceError(f"Model file not found: {path}")

        try:
            payload = joblib.load(path)
        except Exception as ex:
            raise PersistenceError(f"Unable to read model from {path}") from ex

        if not isinstance(payload, dict) or "model" not in payload:
            raise PersistenceError(f"{path} is not a saved model artifact")

        logs.info(f"[ModelStore] loaded model <- {path}")
        return StoredModel(
            model=payload["model"],
            schema=payload["schema"],
            summary=payload.get("summary"),
            path=path,
        )

    @staticmethod
    def load_resumable(raw_path: str) -> StoredModel:
        stored = ModelStore.load(raw_path)
        if not stored.model.resumable:
            raise NotResumable(
                f"Model {stored.path} ({type(stored.model).__name__}) "
                f"can't continue training"
            )
        return stored
