"""
Dataset layer: external row metadata, schemas, schema inference,
row -> record conversion and bounded-memory sampling.
"""
from .dataset import Dataset
from .row_meta import FieldMeta, FieldType, RowMeta, rows_from_frame
from .schema import MISSING, Attribute, AttributeKind, Schema, is_missing
from .schema_builder import (
    SchemaBuilder,
    field_specs_from_row_meta,
    schema_can_be_determined_immediately,
)
from .converter import RecordConverter, build_dataset, construct_record
from .reservoir import ReservoirSampler

__all__ = [
    "Dataset",
    "FieldMeta",
    "FieldType",
    "RowMeta",
    "rows_from_frame",
    "MISSING",
    "Attribute",
    "AttributeKind",
    "Schema",
    "is_missing",
    "SchemaBuilder",
    "field_specs_from_row_meta",
    "schema_can_be_determined_immediately",
    "RecordConverter",
    "build_dataset",
    "construct_record",
    "ReservoirSampler",
]
