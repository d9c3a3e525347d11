# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-04
# Description: Keyspace
# -----------------------------------------------------------------------------
from dataclasses import dataclass

# Alias the compiled statements use for the target collection
DOC_ALIAS = "d"


def quote_identifier(name: str) -> str:
    """Backtick-quote an SQL++ identifier."""
    return "`" + name.replace("`", "``") + "`"


def field_ref(storage_name: str, alias: str = DOC_ALIAS) -> str:
    return f"{alias}.{quote_identifier(storage_name)}"


@dataclass(frozen=True)
class Keyspace:
    bucket: str
    scope: str = "_default"
    collection: str = "_default"

    def render(self) -> str:
        return ".".join(quote_identifier(p) for p in (self.bucket, self.scope, self.collection))

    def __str__(self) -> str:
        return f"{self.bucket}.{self.scope}.{self.collection}"
