import math

import numpy as np
import pandas as pd

from streamlearn.config.training_config import FieldSpec
from streamlearn.data.converter import RecordConverter, construct_record
from streamlearn.data.row_meta import FieldMeta, FieldType, RowMeta
from streamlearn.data.schema_builder import SchemaBuilder


def _schema(meta, rows):
    specs = [
        FieldSpec(name="outlook", kind="categorical", legal_values="sunny,overcast"),
        FieldSpec(name="temperature", kind="numeric"),
        FieldSpec(name="windy", kind="numeric"),
        FieldSpec(name="play", kind="categorical", legal_values="yes,no"),
    ]
    return SchemaBuilder(specs, meta, class_field="play").build(rows)


def test_values_converted(weather_meta, weather_rows):
    schema = _schema(weather_meta, weather_rows)
    rec = construct_record(schema, weather_meta, weather_rows[1], weather_meta.field_lookup())

    assert rec.tolist() == [0.0, 80.0, 1.0, 1.0]


def test_null_and_empty_are_missing_not_zero(weather_meta, weather_rows):
    schema = _schema(weather_meta, weather_rows)
    conv = RecordConverter(schema, weather_meta)

    rec = conv.convert(("", None, float("nan"), None, "yes"))

    assert all(math.isnan(v) for v in rec[:3])
    assert rec[3] == 0.0


def test_unknown_categorical_value_is_missing(weather_meta, weather_rows):
    schema = _schema(weather_meta, weather_rows)
    rec = RecordConverter(schema, weather_meta).convert(("rainy", 70.0, 96.0, False, "maybe"))

    assert math.isnan(rec[0])
    assert math.isnan(rec[3])


def test_absent_field_is_missing(weather_rows, weather_meta):
    schema = _schema(weather_meta, weather_rows)
    meta = RowMeta([FieldMeta("temperature", FieldType.NUMBER)])

    rec = RecordConverter(schema, meta).convert((70.0,))

    assert rec[1] == 70.0
    assert np.isnan(rec[[0, 2, 3]]).all()


def test_non_numeric_value_is_missing(weather_meta, weather_rows):
    schema = _schema(weather_meta, weather_rows)
    rec = RecordConverter(schema, weather_meta).convert(("sunny", "hot", 1.0, False, "no"))

    assert math.isnan(rec[1])


def test_dates_become_epoch_millis():
    meta = RowMeta([FieldMeta("when", FieldType.DATE), FieldMeta("y", FieldType.NUMBER)])
    specs = [FieldSpec(name="when", kind="date"), FieldSpec(name="y", kind="numeric")]
    schema = SchemaBuilder(specs, meta, class_field="y").build([])

    rec = RecordConverter(schema, meta).convert((pd.Timestamp("1970-01-01 00:00:01"), 2.0))

    assert rec[0] == 1000.0


def test_string_attribute_interned():
    meta = RowMeta([FieldMeta("note", FieldType.STRING), FieldMeta("y", FieldType.NUMBER)])
    specs = [FieldSpec(name="note", kind="string"), FieldSpec(name="y", kind="numeric")]
    schema = SchemaBuilder(specs, meta, class_field="y").build([])
    conv = RecordConverter(schema, meta)

    a = conv.convert(("hello", 1.0))
    b = conv.convert(("world", 1.0))
    c = conv.convert(("hello", 1.0))

    assert (a[0], b[0], c[0]) == (0.0, 1.0, 0.0)
    assert schema.string_free().attribute(0).num_values == 0


def test_convert_all_builds_dataset(weather_meta, weather_rows):
    schema = _schema(weather_meta, weather_rows)
    ds = RecordConverter(schema, weather_meta).convert_all(weather_rows)

    assert len(ds) == len(weather_rows)
    assert ds.values.shape == (14, 4)
