# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-03
# Description: SchemaReader
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
from typing import Any, List

import settings
from errors.ConnectorErrors import DuplicateKeyError, MissingKeyError, NoVectorError, SchemaError
from schema.RecordDefinition import PYTHON_SCALAR_TYPES, DataField, KeyField, RecordDefinition, VectorField
from schema.SchemaDescriptor import (
    DataProperty,
    DistanceFunction,
    KeyProperty,
    ScalarType,
    SchemaDescriptor,
    VectorProperty,
)
from utility.logging_utils import get_class_logger

# Alternate spellings seen in index definitions and older configs
_DISTANCE_ALIASES = {
    "dot": DistanceFunction.DOT_PRODUCT,
    "dot_product_similarity": DistanceFunction.DOT_PRODUCT,
    "cosine_similarity": DistanceFunction.COSINE,
    "l2": DistanceFunction.EUCLIDEAN,
    "euclidean_distance": DistanceFunction.EUCLIDEAN,
    "l2_squared": DistanceFunction.EUCLIDEAN_SQUARED,
    "euclidean_squared_distance": DistanceFunction.EUCLIDEAN_SQUARED,
    "hamming_distance": DistanceFunction.HAMMING,
}


def parse_distance_function(value: Any) -> DistanceFunction:
    if isinstance(value, DistanceFunction):
        return value
    name = str(value).strip().lower()
    try:
        return DistanceFunction(name)
    except ValueError:
        pass
    if name in _DISTANCE_ALIASES:
        return _DISTANCE_ALIASES[name]
    raise SchemaError(f"Unsupported distance function {value!r}")


def parse_scalar_type(value: Any, field_name: str) -> ScalarType:
    if isinstance(value, ScalarType):
        return value
    if isinstance(value, type):
        value = value.__name__
    name = str(value).strip().lower()
    if name in PYTHON_SCALAR_TYPES:
        return PYTHON_SCALAR_TYPES[name]
    try:
        return ScalarType(name)
    except ValueError as e:
        raise SchemaError(f"Field '{field_name}' has unsupported type {value!r}") from e


class SchemaReader:
    """
    Classifies a record definition's fields into key / data / vector
    properties and produces an immutable SchemaDescriptor.

    Deterministic and side-effect free: the same definition always yields
    an equal descriptor.
    """

    def __init__(
        self,
        *,
        require_vector: bool = settings.REQUIRE_VECTOR_PROPERTY,
        allow_multiple_keys: bool = settings.ALLOW_MULTIPLE_KEYS,
        logger: logging.Logger | None = None,
    ) -> None:
        self.require_vector = require_vector
        self.allow_multiple_keys = allow_multiple_keys
        self.logger = logger or get_class_logger(self.__class__)

    def read(self, definition: RecordDefinition) -> SchemaDescriptor:
        keys: List[KeyProperty] = []
        data: List[DataProperty] = []
        vectors: List[VectorProperty] = []

        seen_names: set[str] = set()
        seen_storage: set[str] = set()

        for f in definition.fields:
            storage_name = f.storage_name or f.name
            if f.name in seen_names:
                raise SchemaError(f"Record definition '{definition.name}' declares '{f.name}' twice")
            if storage_name in seen_storage:
                raise SchemaError(
                    f"Record definition '{definition.name}' maps two fields onto storage name '{storage_name}'"
                )
            seen_names.add(f.name)
            seen_storage.add(storage_name)

            if isinstance(f, KeyField):
                key_type = parse_scalar_type(f.type, f.name)
                if key_type is not ScalarType.STRING:
                    # Couchbase document ids are strings
                    raise SchemaError(f"Key property '{f.name}' must be a string, got {key_type.value}")
                keys.append(KeyProperty(name=f.name, storage_name=storage_name, scalar_type=key_type))
            elif isinstance(f, DataField):
                data.append(DataProperty(
                    name=f.name,
                    storage_name=storage_name,
                    scalar_type=parse_scalar_type(f.type, f.name),
                    filterable=f.filterable,
                    full_text_searchable=f.full_text_searchable,
                ))
            elif isinstance(f, VectorField):
                if not isinstance(f.dimensions, int) or isinstance(f.dimensions, bool) or f.dimensions < 1:
                    raise SchemaError(f"Vector property '{f.name}' must declare a positive dimension count")
                vectors.append(VectorProperty(
                    name=f.name,
                    storage_name=storage_name,
                    dimensions=f.dimensions,
                    distance_function=parse_distance_function(f.distance_function),
                ))
            else:
                raise SchemaError(f"Unknown field definition {f!r}")

        if not keys:
            raise MissingKeyError(definition.name)
        if len(keys) > 1 and not self.allow_multiple_keys:
            raise DuplicateKeyError(definition.name, [k.name for k in keys])
        if not vectors and self.require_vector:
            raise NoVectorError(definition.name)

        descriptor = SchemaDescriptor(
            name=definition.name,
            keys=tuple(keys),
            data_properties=tuple(data),
            vector_properties=tuple(vectors),
            record_type=definition.record_type,
        )
        self.logger.debug(
            "Read schema '%s': keys=%s data=%s vectors=%s",
            definition.name,
            [k.name for k in keys],
            [d.name for d in data],
            [(v.name, v.dimensions, v.distance_function.value) for v in vectors],
        )
        return descriptor
