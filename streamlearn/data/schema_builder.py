# streamlearn/data/schema_builder.py
from __future__ import annotations

from typing import List, Optional, Sequence

from streamlearn import logs
from streamlearn.config.training_config import FieldSpec
from streamlearn.data.row_meta import FieldType, RowMeta
from streamlearn.data.schema import Attribute, AttributeKind, Schema
from streamlearn.utils.errors import ConfigurationError, UnsupportedAttributeKind


def field_specs_from_row_meta(row_meta: RowMeta) -> List[FieldSpec]:
    """
    Default field specs for an incoming row structure.

    number / integer / boolean -> numeric
    string                     -> categorical (enumerated domain kept as legal values)
    date                       -> date
    """
    specs: List[FieldSpec] = []
    for f in row_meta:
        if f.type in (FieldType.NUMBER, FieldType.INTEGER, FieldType.BOOLEAN):
            specs.append(FieldSpec(name=f.name, kind=AttributeKind.NUMERIC.value))
        elif f.type == FieldType.STRING:
            specs.append(
                FieldSpec(
                    name=f.name,
                    kind=AttributeKind.CATEGORICAL.value,
                    legal_values=list(f.domain) if f.domain else None,
                )
            )
        elif f.type == FieldType.DATE:
            specs.append(FieldSpec(name=f.name, kind=AttributeKind.DATE.value))
    return specs


def parse_kind(spec: FieldSpec) -> AttributeKind:
    try:
        return AttributeKind(spec.kind.strip().lower())
    except ValueError:
        raise UnsupportedAttributeKind(
            f"Unsupported attribute type '{spec.kind}' for field '{spec.name}'"
        ) from None


def schema_can_be_determined_immediately(
    specs: Sequence[FieldSpec],
    stratify_field: Optional[str] = None,
) -> bool:
    """
    True iff no data is needed: every categorical field (other than the
    stratification field) carries explicit legal values.
    """
    for spec in specs:
        if spec.name == stratify_field:
            continue
        if parse_kind(spec) == AttributeKind.CATEGORICAL and not spec.legal_values:
            return False
    return True


class SchemaBuilder:
    """
    SchemaBuilder

    Turns declared field specs (+ a buffered row sample when needed)
    into a fixed Schema.

    Contract:
    - class attribute is always last (none for unsupervised schemes,
      every non-stratification field is then an input)
    - stratification field never becomes an attribute
    - explicit legal values are used verbatim and in order
    - otherwise categorical values are the upstream domain or the
      distinct sampled values, sorted lexically
    """

    def __init__(
        self,
        specs: Sequence[FieldSpec],
        row_meta: RowMeta,
        class_field: Optional[str] = None,
        stratify_field: Optional[str] = None,
        supervised: bool = True,
    ):
        if not specs:
            raise ConfigurationError("No field specifications to build a schema from")

        self.specs = list(specs)
        self.row_meta = row_meta
        self.stratify_field = stratify_field
        self.supervised = supervised
        self.class_spec: Optional[FieldSpec] = (
            self._resolve_class_spec(class_field) if supervised else None
        )

        # fail fast on bad kinds
        for spec in self.specs:
            parse_kind(spec)

    def _resolve_class_spec(self, class_field: Optional[str]) -> FieldSpec:
        if not class_field:
            candidates = [s for s in self.specs if s.name != self.stratify_field]
            if not candidates:
                raise ConfigurationError("No class field candidate")
            return candidates[-1]
        for spec in self.specs:
            if spec.name == class_field:
                return spec
        raise ConfigurationError(f"Class field '{class_field}' not among field specs")

    @property
    def determinable(self) -> bool:
        return schema_can_be_determined_immediately(self.specs, self.stratify_field)

    # --------------------------------------------------
    def build(self, rows: Sequence[Sequence], relation: str = "training data") -> Schema:
        attributes = []
        for spec in self.specs:
            if spec is self.class_spec or spec.name == self.stratify_field:
                continue
            attributes.append(self._construct_attribute(spec, rows))

        if self.class_spec is None:
            return Schema(relation, attributes, class_index=None)

        attributes.append(self._construct_attribute(self.class_spec, rows))
        return Schema(relation, attributes, class_index=len(attributes) - 1)

    def _construct_attribute(self, spec: FieldSpec, rows: Sequence[Sequence]) -> Attribute:
        kind = parse_kind(spec)

        if kind in (AttributeKind.NUMERIC, AttributeKind.DATE, AttributeKind.STRING):
            return Attribute(spec.name, kind)

        # categorical
        if spec.legal_values:
            return Attribute(spec.name, kind, list(spec.legal_values))

        field = self.row_meta.field(spec.name)
        if field is None:
            logs.warning(
                f"[SchemaBuilder] categorical field '{spec.name}' not in incoming rows, "
                f"no legal values"
            )
            return Attribute(spec.name, kind, [])

        if field.domain:
            return Attribute(spec.name, kind, sorted(set(field.domain)))

        return Attribute(spec.name, kind, self._values_from_data(rows, spec.name))

    def _values_from_data(self, rows: Sequence[Sequence], name: str) -> List[str]:
        idx = self.row_meta.index_of(name)
        field = self.row_meta[idx]

        seen = set()
        for row in rows:
            if row is None:
                break
            value = row[idx]
            if not field.is_null(value):
                seen.add(field.as_string(value))

        return sorted(seen)
