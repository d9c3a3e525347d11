# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-03
# Description: SchemaDescriptor
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from errors.ConnectorErrors import SchemaError

# Joins the key values of a multi-key record into one document id
KEY_SEPARATOR = "::"


class ScalarType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATETIME = "datetime"


class DistanceFunction(str, Enum):
    COSINE = "cosine"
    DOT_PRODUCT = "dot_product"
    EUCLIDEAN = "euclidean"
    EUCLIDEAN_SQUARED = "euclidean_squared"
    HAMMING = "hamming"

    @property
    def is_similarity(self) -> bool:
        """Similarity metrics rank higher-is-closer; the rest are distances."""
        return self in (DistanceFunction.COSINE, DistanceFunction.DOT_PRODUCT)


@dataclass(frozen=True)
class KeyProperty:
    name: str
    storage_name: str
    scalar_type: ScalarType = ScalarType.STRING


@dataclass(frozen=True)
class DataProperty:
    name: str
    storage_name: str
    scalar_type: ScalarType
    filterable: bool = False
    full_text_searchable: bool = False


@dataclass(frozen=True)
class VectorProperty:
    name: str
    storage_name: str
    dimensions: int
    distance_function: DistanceFunction = DistanceFunction.COSINE


@dataclass(frozen=True)
class SchemaDescriptor:
    """
    Compiled, immutable description of a record type.

    Built once per record type by SchemaReader and shared read-only between
    compilations. `record_type` is the class decoded rows are built into
    (called with keyword arguments); None means plain dicts.
    """
    name: str
    keys: Tuple[KeyProperty, ...]
    data_properties: Tuple[DataProperty, ...] = ()
    vector_properties: Tuple[VectorProperty, ...] = ()
    record_type: Optional[type] = None
    _by_name: Dict[str, Any] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for prop in (*self.keys, *self.data_properties, *self.vector_properties):
            self._by_name[prop.name] = prop

    @property
    def key(self) -> KeyProperty:
        return self.keys[0]

    @property
    def has_composite_key(self) -> bool:
        return len(self.keys) > 1

    @property
    def full_text_properties(self) -> Tuple[DataProperty, ...]:
        return tuple(p for p in self.data_properties if p.full_text_searchable)

    @property
    def filterable_properties(self) -> Tuple[DataProperty, ...]:
        return tuple(p for p in self.data_properties if p.filterable)

    def get_property(self, name: str) -> Optional[Any]:
        return self._by_name.get(name)

    def vector_property(self, name: Optional[str] = None) -> Optional[VectorProperty]:
        """First vector property, or the one called `name`."""
        if name is None:
            return self.vector_properties[0] if self.vector_properties else None
        prop = self._by_name.get(name)
        return prop if isinstance(prop, VectorProperty) else None

    def document_id(self, key_values: Mapping[str, Any]) -> str:
        """Document id for a record, given its key values by property name."""
        parts = []
        for k in self.keys:
            value = key_values.get(k.name)
            if value is None or value == "":
                raise SchemaError(f"Record of '{self.name}' has no value for key '{k.name}'")
            parts.append(str(value))
        return KEY_SEPARATOR.join(parts)
