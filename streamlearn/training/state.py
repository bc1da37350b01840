# streamlearn/training/state.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from streamlearn.data.converter import RecordConverter
from streamlearn.data.reservoir import ReservoirSampler
from streamlearn.data.row_meta import RowMeta
from streamlearn.data.schema import Schema
from streamlearn.evaluation.evaluator import Evaluator
from streamlearn.models.base import TrainedModel
from streamlearn.utils.errors import ConfigurationError, Outcome


@dataclass
class StratumState:
    """
    Everything owned by one stratification key (or the single implicit
    stratum when not stratified).

    - rows     : batch buffer, or header cache while the schema is unknown
    - sampler  : replaces ``rows`` when reservoir sampling is on
    - schema / converter / model / evaluator : set once the header is known
    """
    key: Optional[str] = None
    rows: List[Sequence] = field(default_factory=list)
    sampler: Optional[ReservoirSampler] = None

    schema: Optional[Schema] = None
    converter: Optional[RecordConverter] = None
    model: Optional[TrainedModel] = None
    evaluator: Optional[Evaluator] = None

    # rows received in the current batch (incremental batch boundaries)
    batch_rows: int = 0

    @property
    def awaiting_schema(self) -> bool:
        return self.schema is None

    @property
    def has_rows(self) -> bool:
        if self.sampler is not None:
            return self.sampler.seen > 0
        return bool(self.rows)

    def add(self, row: Sequence) -> None:
        if self.sampler is not None:
            self.sampler.process_row(row)
        else:
            self.rows.append(row)

    def buffered_rows(self) -> List[Sequence]:
        if self.sampler is not None:
            return self.sampler.sample() or []
        return self.rows


@dataclass
class RunCounters:
    """
    Run-level counters. ``reset()`` is called at end-of-stream.
    """
    batch_number: int = 1
    row_count: int = 0
    current_key: Optional[str] = None
    closed_keys: Set[str] = field(default_factory=set)

    def reset(self) -> None:
        self.batch_number = 1
        self.row_count = 0
        self.current_key = None
        self.closed_keys = set()


class KeyReader:
    """
    Reads the stratification value of a raw row.
    """

    def __init__(self, row_meta: RowMeta, stratify_field: str):
        pos = row_meta.index_of(stratify_field)
        if pos is None:
            raise ConfigurationError(
                f"Stratification field '{stratify_field}' not in incoming rows"
            )
        self.pos = pos
        self.field = row_meta[pos]

    def read(self, row: Sequence) -> Outcome:
        raw = row[self.pos]
        if self.field.is_null(raw):
            return Outcome(warning=f"null value for stratification field '{self.field.name}'")
        return Outcome(value=self.field.as_string(raw))
