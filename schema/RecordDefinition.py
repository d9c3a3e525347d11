# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-03
# Description: RecordDefinition
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from schema.SchemaDescriptor import DistanceFunction, ScalarType


@dataclass(frozen=True)
class KeyField:
    name: str
    type: Any = str
    storage_name: Optional[str] = None


@dataclass(frozen=True)
class DataField:
    name: str
    type: Any = str
    filterable: bool = False
    full_text_searchable: bool = False
    storage_name: Optional[str] = None


@dataclass(frozen=True)
class VectorField:
    name: str
    dimensions: int
    distance_function: Union[DistanceFunction, str] = DistanceFunction.COSINE
    storage_name: Optional[str] = None


FieldDefinition = Union[KeyField, DataField, VectorField]


@dataclass
class RecordDefinition:
    """
    Hand-built description of a record type: what SchemaReader consumes.

    Example:
        RecordDefinition(
            name="glossary",
            record_type=Glossary,
            fields=[
                KeyField("id"),
                DataField("category", str, filterable=True),
                DataField("term", str, full_text_searchable=True),
                VectorField("embedding", dimensions=1536, distance_function="cosine"),
            ],
        )
    """
    name: str
    fields: List[FieldDefinition] = field(default_factory=list)
    record_type: Optional[type] = None

    def add(self, definition: FieldDefinition) -> "RecordDefinition":
        self.fields.append(definition)
        return self


# Python types accepted for KeyField/DataField.type, besides ScalarType values
PYTHON_SCALAR_TYPES = {
    "str": ScalarType.STRING,
    "int": ScalarType.INTEGER,
    "float": ScalarType.FLOAT,
    "bool": ScalarType.BOOLEAN,
    "datetime": ScalarType.DATETIME,
}
