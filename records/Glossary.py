# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-12
# Description: Glossary
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from typing import List, Optional

import settings
from schema.RecordDefinition import DataField, KeyField, RecordDefinition, VectorField


@dataclass
class Glossary:
    """Sample record type: one glossary entry and the embedding of its definition."""
    key: str
    category: str = ""
    term: str = ""
    definition: str = ""
    definition_embedding: Optional[List[float]] = field(default=None, repr=False)


def glossary_definition(
    dimensions: int = settings.VECTOR_DIMENSIONS,
    distance_function: str = settings.SIMILARITY_METRIC,
) -> RecordDefinition:
    return RecordDefinition(
        name="glossary",
        record_type=Glossary,
        fields=[
            KeyField("key"),
            DataField("category", str, filterable=True),
            DataField("term", str, filterable=True, full_text_searchable=True),
            DataField("definition", str, full_text_searchable=True),
            VectorField(
                "definition_embedding",
                dimensions=dimensions,
                distance_function=distance_function,
                storage_name="DefinitionEmbedding",
            ),
        ],
    )
