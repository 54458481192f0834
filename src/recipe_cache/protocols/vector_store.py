"""Vector table protocol.

Defines the interface for one embedding-indexed table that supports
appending rows and k-nearest-neighbour search by cosine distance.

Implementations:
- PostgreSQL with pgvector (default)
- In-memory tables for unit tests
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class VectorTable(Protocol):
    """Protocol for a single append-only vector table.

    Rows are (content, vector, metadata). Normal operation only appends;
    `truncate` exists for explicit administrative re-indexing.
    """

    @property
    def table_name(self) -> str:
        """Return the physical table name."""
        ...

    def insert(self, content: str, vector: list[float], metadata: dict[str, Any]) -> str:
        """Append a row.

        Args:
            content: The text the vector was computed from
            vector: The embedding vector
            metadata: JSON-serializable metadata

        Returns:
            The identifier of the new row
        """
        ...

    def insert_many(self, rows: list[tuple[str, list[float], dict[str, Any]]]) -> int:
        """Append several rows in one transaction.

        Returns:
            Number of rows written
        """
        ...

    def find_by_vector(
        self,
        vector: list[float],
        limit: int = 1,
        metadata_filter: dict[str, Any] | None = None,
    ) -> list[tuple[str, dict[str, Any], float]]:
        """Find the nearest rows by cosine distance.

        Args:
            vector: The query embedding vector
            limit: Maximum number of rows to return
            metadata_filter: Only consider rows whose metadata contains these
                key/value pairs exactly

        Returns:
            List of tuples (content, metadata, distance), closest first
        """
        ...

    def find_vector(self, metadata_filter: dict[str, Any]) -> list[float] | None:
        """Return the stored vector of the first row matching the filter."""
        ...

    def truncate(self) -> None:
        """Remove every row (administrative re-index only)."""
        ...

    def count_all(self) -> int:
        """Count rows in the table."""
        ...

    def health_check(self) -> bool:
        """Check if the table is reachable.

        Returns:
            True if healthy, False otherwise
        """
        ...
