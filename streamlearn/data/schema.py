# streamlearn/data/schema.py
from __future__ import annotations

import math
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence

from streamlearn.utils.errors import ConfigurationError

# Missing-value sentinel used in every record slot.
MISSING = float("nan")


def is_missing(value: float) -> bool:
    return math.isnan(value)


class AttributeKind(str, Enum):
    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    STRING = "string"
    DATE = "date"


class Attribute:
    """
    One schema column.

    - categorical: fixed, ordered legal values (immutable once built)
    - string: append-only dictionary of values seen so far
    - numeric / date: plain real values (dates as epoch milliseconds)
    """

    def __init__(
        self,
        name: str,
        kind: AttributeKind,
        values: Optional[Sequence[str]] = None,
    ):
        self.name = name
        self.kind = kind

        self._values: tuple = tuple(values) if kind == AttributeKind.CATEGORICAL and values else ()
        self._value_index: Dict[str, int] = {v: i for i, v in enumerate(self._values)}

        self._strings: List[str] = []
        self._string_index: Dict[str, int] = {}

    def __repr__(self) -> str:
        if self.is_categorical:
            return f"Attribute({self.name!r}, {self.kind.value}, {list(self._values)})"
        return f"Attribute({self.name!r}, {self.kind.value})"

    # --------------------------------------------------
    @property
    def is_numeric(self) -> bool:
        return self.kind in (AttributeKind.NUMERIC, AttributeKind.DATE)

    @property
    def is_categorical(self) -> bool:
        return self.kind == AttributeKind.CATEGORICAL

    @property
    def is_string(self) -> bool:
        return self.kind == AttributeKind.STRING

    @property
    def values(self) -> tuple:
        return self._values

    @property
    def num_values(self) -> int:
        if self.is_categorical:
            return len(self._values)
        if self.is_string:
            return len(self._strings)
        return 0

    def value(self, index: int) -> str:
        if self.is_string:
            return self._strings[index]
        return self._values[index]

    def index_of_value(self, value: str) -> int:
        """
        Position in the legal values (or string dictionary); -1 when unknown.
        """
        if self.is_string:
            return self._string_index.get(value, -1)
        return self._value_index.get(value, -1)

    def add_string_value(self, value: str) -> int:
        """
        Intern ``value`` into the string dictionary and return its index.
        """
        if not self.is_string:
            raise TypeError(f"Attribute {self.name} is not a string attribute")
        idx = self._string_index.get(value)
        if idx is None:
            idx = len(self._strings)
            self._strings.append(value)
            self._string_index[value] = idx
        return idx

    def copy_structure(self) -> "Attribute":
        """
        Same name / kind / legal values, empty string dictionary.
        """
        return Attribute(self.name, self.kind, self._values)


class Schema:
    """
    Ordered attribute list; ``class_index`` is None for unsupervised data.
    """

    def __init__(
        self,
        relation: str,
        attributes: Sequence[Attribute],
        class_index: Optional[int] = None,
    ):
        names = [a.name for a in attributes]
        if len(set(names)) != len(names):
            dupes = sorted({n for n in names if names.count(n) > 1})
            raise ConfigurationError(f"Duplicate attribute names in schema: {dupes}")
        if class_index is not None and not 0 <= class_index < len(attributes):
            raise ConfigurationError(f"Class index {class_index} out of range")

        self.relation = relation
        self._attributes: List[Attribute] = list(attributes)
        self._index: Dict[str, int] = {n: i for i, n in enumerate(names)}
        self.class_index = class_index

    def __len__(self) -> int:
        return len(self._attributes)

    def __iter__(self) -> Iterator[Attribute]:
        return iter(self._attributes)

    def __repr__(self) -> str:
        return f"Schema({self.relation!r}, {self._attributes}, class_index={self.class_index})"

    @property
    def num_attributes(self) -> int:
        return len(self._attributes)

    @property
    def names(self) -> List[str]:
        return [a.name for a in self._attributes]

    def attribute(self, index: int) -> Attribute:
        return self._attributes[index]

    def index_of(self, name: str) -> Optional[int]:
        return self._index.get(name)

    @property
    def supervised(self) -> bool:
        return self.class_index is not None

    @property
    def class_attribute(self) -> Optional[Attribute]:
        if self.class_index is None:
            return None
        return self._attributes[self.class_index]

    @property
    def num_classes(self) -> int:
        """
        Number of class values; 1 for a numeric target.
        """
        att = self.class_attribute
        if att is None:
            return 0
        return att.num_values if att.is_categorical else 1

    def string_free(self) -> "Schema":
        """
        Structural copy without accumulated string values (for persistence).
        """
        return Schema(
            self.relation,
            [a.copy_structure() for a in self._attributes],
            self.class_index,
        )
