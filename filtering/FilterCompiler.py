# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-05
# Description: FilterCompiler
# -----------------------------------------------------------------------------
from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterator

from errors.ConnectorErrors import FilterError, NotFilterableError, TypeMismatchError, UnknownFieldError
from filtering.FilterPredicate import And, Compare, Equals, FilterPredicate, In, Not, Or
from query.Keyspace import DOC_ALIAS, field_ref
from schema.SchemaDescriptor import DataProperty, KeyProperty, ScalarType, SchemaDescriptor, VectorProperty
from utility.logging_utils import get_class_logger


@dataclass(frozen=True)
class NativeFragment:
    """
    A compiled WHERE-clause fragment. Literals never appear in `text`;
    they live in `parameters` under the `$name` placeholders the text uses.
    """
    text: str
    parameters: Dict[str, Any] = field(default_factory=dict)


class FilterCompiler:
    """
    Compiles a filter predicate tree into a parameterised SQL++ fragment.

    Every And / Or / Not is wrapped in its own parentheses so the output
    does not depend on the engine's operator precedence.
    """

    PARAM_PREFIX = "f"

    def __init__(self, alias: str = DOC_ALIAS, logger: logging.Logger | None = None) -> None:
        self.alias = alias
        self.logger = logger or get_class_logger(self.__class__)

    def compile(self, predicate: FilterPredicate, schema: SchemaDescriptor) -> NativeFragment:
        parameters: Dict[str, Any] = {}
        counter = itertools.count()
        text = self._render(predicate, schema, parameters, counter)
        self.logger.debug("Compiled filter for '%s': %s (%d params)", schema.name, text, len(parameters))
        return NativeFragment(text=text, parameters=parameters)

    # -------------------------------------------------------------------------
    def _render(
        self,
        node: FilterPredicate,
        schema: SchemaDescriptor,
        parameters: Dict[str, Any],
        counter: Iterator[int],
    ) -> str:
        if isinstance(node, And):
            left = self._render(node.left, schema, parameters, counter)
            right = self._render(node.right, schema, parameters, counter)
            return f"({left} AND {right})"
        if isinstance(node, Or):
            left = self._render(node.left, schema, parameters, counter)
            right = self._render(node.right, schema, parameters, counter)
            return f"({left} OR {right})"
        if isinstance(node, Not):
            return f"(NOT {self._render(node.operand, schema, parameters, counter)})"

        if isinstance(node, Equals):
            prop = self._resolve(node.field, schema)
            ref = field_ref(prop.storage_name, self.alias)
            if node.value is None:
                return f"{ref} IS NOT VALUED"
            name = self._bind(parameters, counter, self._literal(prop, node.value))
            return f"{ref} = ${name}"

        if isinstance(node, Compare):
            prop = self._resolve(node.field, schema)
            if prop.scalar_type is ScalarType.BOOLEAN:
                raise TypeMismatchError(prop.name, "an orderable type", node.value)
            if node.value is None:
                raise TypeMismatchError(prop.name, prop.scalar_type.value, node.value)
            name = self._bind(parameters, counter, self._literal(prop, node.value))
            return f"{field_ref(prop.storage_name, self.alias)} {node.op} ${name}"

        if isinstance(node, In):
            prop = self._resolve(node.field, schema)
            values = [self._literal(prop, v) for v in node.values]
            name = self._bind(parameters, counter, values)
            return f"{field_ref(prop.storage_name, self.alias)} IN ${name}"

        raise FilterError(f"Unsupported filter node {node!r}")

    def _bind(self, parameters: Dict[str, Any], counter: Iterator[int], value: Any) -> str:
        name = f"{self.PARAM_PREFIX}{next(counter)}"
        parameters[name] = value
        return name

    @staticmethod
    def _resolve(name: str, schema: SchemaDescriptor) -> DataProperty:
        prop = schema.get_property(name)
        if prop is None:
            raise UnknownFieldError(name)
        if isinstance(prop, KeyProperty):
            raise NotFilterableError(name, "it is the record key; fetch it with get()")
        if isinstance(prop, VectorProperty):
            raise NotFilterableError(name, "vector properties cannot be filtered")
        if not prop.filterable:
            raise NotFilterableError(name)
        return prop

    @staticmethod
    def _literal(prop: DataProperty, value: Any) -> Any:
        """Check `value` against the property's declared type; return the bound form."""
        t = prop.scalar_type
        if t is ScalarType.STRING:
            if isinstance(value, str):
                return value
        elif t is ScalarType.INTEGER:
            if isinstance(value, int) and not isinstance(value, bool):
                return value
        elif t is ScalarType.FLOAT:
            if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
                return float(value)
        elif t is ScalarType.BOOLEAN:
            if isinstance(value, bool):
                return value
        elif t is ScalarType.DATETIME:
            # stored as ISO-8601 strings, which sort chronologically
            if isinstance(value, (datetime, date)):
                return value.isoformat()
            if isinstance(value, str):
                try:
                    datetime.fromisoformat(value)
                    return value
                except ValueError:
                    pass
        raise TypeMismatchError(prop.name, t.value, value)
