# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-08
# Description: NativeClient
# -----------------------------------------------------------------------------

from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from query.Keyspace import Keyspace


@runtime_checkable
class NativeClient(Protocol):
    """
    Everything the connector needs from the database session.

    Timeouts are handed through untouched; None means the SDK default.
    Failures are raised as the SDK raises them.
    """

    def query(
            self,
            statement: str,
            parameters: Mapping[str, Any] | None = None,
            timeout: Optional[timedelta] = None,
    ) -> List[Dict[str, Any]]:
        ...

    def collection_exists(self, keyspace: Keyspace) -> bool:
        ...

    def create_collection(self, keyspace: Keyspace, timeout: Optional[timedelta] = None) -> None:
        ...

    def drop_collection(self, keyspace: Keyspace, timeout: Optional[timedelta] = None) -> None:
        ...

    def upsert_search_index(self, keyspace: Keyspace, definition: Dict[str, Any]) -> None:
        ...

    def drop_search_index(self, keyspace: Keyspace, name: str) -> None:
        ...

    def upsert_documents(
            self,
            keyspace: Keyspace,
            documents: Mapping[str, Dict[str, Any]],
            timeout: Optional[timedelta] = None,
    ) -> Dict[str, Exception]:
        """Write a batch; returns the per-id failures (empty when all succeeded)."""
        ...

    def get_document(
            self,
            keyspace: Keyspace,
            doc_id: str,
            timeout: Optional[timedelta] = None,
    ) -> Optional[Dict[str, Any]]:
        ...

    def remove_document(
            self,
            keyspace: Keyspace,
            doc_id: str,
            timeout: Optional[timedelta] = None,
    ) -> bool:
        ...
