# streamlearn/scoring/mapping.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from streamlearn.data.row_meta import FieldMeta, RowMeta
from streamlearn.data.schema import Attribute, AttributeKind, Schema


class MappingStatus(str, Enum):
    OK = "ok"
    NO_MATCH = "no_match"
    TYPE_MISMATCH = "type_mismatch"


@dataclass(frozen=True)
class FieldMapping:
    attribute: str
    status: MappingStatus
    position: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status == MappingStatus.OK


def _compatible(att: Attribute, field: FieldMeta) -> bool:
    if att.kind == AttributeKind.DATE:
        return field.is_date or field.is_numeric
    if att.is_numeric:
        return field.is_numeric or field.is_boolean
    return field.is_string


def find_mappings(schema: Schema, row_meta: RowMeta) -> List[FieldMapping]:
    """
    Match every schema attribute to an incoming field by name.

    numeric target            <- number / integer / boolean source
    date target               <- date / number source
    categorical / string      <- string source
    anything else             -> TYPE_MISMATCH
    """
    mappings: List[FieldMapping] = []
    for att in schema:
        pos = row_meta.index_of(att.name)
        if pos is None:
            mappings.append(FieldMapping(att.name, MappingStatus.NO_MATCH))
        elif not _compatible(att, row_meta[pos]):
            mappings.append(FieldMapping(att.name, MappingStatus.TYPE_MISMATCH, pos))
        else:
            mappings.append(FieldMapping(att.name, MappingStatus.OK, pos))
    return mappings


def mapped_lookup(mappings: List[FieldMapping]) -> Dict[str, int]:
    """
    name -> row position for OK mappings only (everything else reads as missing)
    """
    return {m.attribute: m.position for m in mappings if m.ok}
