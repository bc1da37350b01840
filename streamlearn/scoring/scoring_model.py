# streamlearn/scoring/scoring_model.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from streamlearn import logs
from streamlearn.data.converter import RecordConverter
from streamlearn.data.row_meta import RowMeta
from streamlearn.data.schema import Schema
from streamlearn.models.base import TrainedModel
from streamlearn.scoring.mapping import FieldMapping, MappingStatus, find_mappings, mapped_lookup
from streamlearn.training.persistence import ModelStore, StoredModel
from streamlearn.utils.errors import Outcome


class ScoringModel:
    """
    ScoringModel

    A loaded model + the mapping of its schema onto the incoming rows.

    Contract:
    - mapping is computed once per row structure
    - unmapped / mismatched fields read as missing
    - in-place update only when requested, the model is updateable and
      the class attribute is mapped
    """

    def __init__(
        self,
        stored: StoredModel,
        row_meta: RowMeta,
        update_incremental: bool = False,
    ):
        self.model: TrainedModel = stored.model
        self.schema: Schema = stored.schema
        self.summary: Optional[Dict[str, Any]] = stored.summary
        self.row_meta = row_meta

        self.mappings: List[FieldMapping] = find_mappings(self.schema, row_meta)
        for m in self.mappings:
            if m.status == MappingStatus.NO_MATCH:
                logs.warning(f"[ScoringModel] model field '{m.attribute}' not in incoming rows")
            elif m.status == MappingStatus.TYPE_MISMATCH:
                logs.warning(f"[ScoringModel] model field '{m.attribute}' has an incompatible type")

        self.converter = RecordConverter(self.schema, row_meta, mapped_lookup(self.mappings))

        update = self._check_update(update_incremental)
        if not update.ok:
            logs.info(f"[ScoringModel] model will not be updated: {update.warning}")
        self.update_incremental = bool(update.value)

    @classmethod
    def load(
        cls,
        model_path: str,
        row_meta: RowMeta,
        update_incremental: bool = False,
    ) -> "ScoringModel":
        return cls(ModelStore.load(model_path), row_meta, update_incremental)

    # --------------------------------------------------
    @property
    def supervised(self) -> bool:
        return self.model.supervised and self.schema.supervised

    @property
    def class_mapping(self) -> Optional[FieldMapping]:
        if self.schema.class_index is None:
            return None
        return self.mappings[self.schema.class_index]

    def _check_update(self, requested: bool) -> Outcome:
        if not requested:
            return Outcome(value=False)
        if not self.model.updateable:
            return Outcome(value=False, warning=f"{self.model.name} is not updateable")
        cm = self.class_mapping
        if cm is None or cm.status == MappingStatus.NO_MATCH:
            return Outcome(value=False, warning="class attribute not in incoming rows")
        if cm.status == MappingStatus.TYPE_MISMATCH:
            return Outcome(value=False, warning="class attribute has an incompatible type")
        return Outcome(value=True)
