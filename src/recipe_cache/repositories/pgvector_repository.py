"""PostgreSQL + pgvector implementation of VectorTable.

One instance per physical table. Tables are created on first use with
"if not exists" semantics so concurrent cold starts can race safely.
"""

import logging
import re
import uuid
from typing import Any

from pgvector.sqlalchemy import Vector
from sqlalchemy import Column, Engine, Index, MetaData, Table, Text, func, select, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.schema import CreateIndex, CreateTable

from recipe_cache.config import settings

logger = logging.getLogger(__name__)

_TABLE_NAME_RE = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")


class PgVectorRepository:
    """pgvector table using an HNSW index with cosine distance.

    This class satisfies the VectorTable protocol through structural
    typing - no explicit inheritance needed.

    Columns:
    - id: UUID primary key
    - content: the embedded text
    - metadata: JSONB payload (filtered with containment, @>)
    - embedding: vector(dimension)
    """

    def __init__(
        self,
        engine: Engine,
        table_name: str,
        dimension: int,
        iterative_scan: bool | None = None,
    ) -> None:
        """Initialize the repository.

        Args:
            engine: Shared SQLAlchemy engine (connection pool).
            table_name: Physical table name (lowercase identifier).
            dimension: Embedding dimension of the table's vector column.
            iterative_scan: Keep scanning the HNSW index until a filtered
                query has enough rows (pgvector >= 0.8). Defaults to settings.
        """
        if not _TABLE_NAME_RE.match(table_name):
            raise ValueError(f"Invalid table name: {table_name!r}")

        self._engine = engine
        self._table_name = table_name
        self._dimension = dimension
        self._iterative_scan = settings.hnsw_iterative_scan if iterative_scan is None else iterative_scan
        self._metadata = MetaData()
        self._table = Table(
            table_name,
            self._metadata,
            Column("id", UUID(as_uuid=True), primary_key=True),
            Column("content", Text, nullable=False),
            Column("metadata", JSONB, nullable=False, server_default=text("'{}'::jsonb")),
            Column("embedding", Vector(dimension), nullable=False),
        )
        self._index = Index(
            f"{table_name}_embedding_hnsw",
            self._table.c.embedding,
            postgresql_using="hnsw",
            postgresql_ops={"embedding": "vector_cosine_ops"},
        )

    @classmethod
    def create(cls, engine: Engine, table_name: str, dimension: int) -> "PgVectorRepository":
        """Factory method that also provisions the table and its index.

        Args:
            engine: Shared SQLAlchemy engine.
            table_name: Physical table name.
            dimension: Embedding dimension.

        Returns:
            Ready-to-use PgVectorRepository
        """
        repository = cls(engine, table_name, dimension)
        repository.ensure_table()
        return repository

    def ensure_table(self) -> None:
        """Create the table and its vector index if they don't exist."""
        with self._engine.begin() as conn:
            conn.execute(CreateTable(self._table, if_not_exists=True))
            conn.execute(CreateIndex(self._index, if_not_exists=True))
        logger.info("Vector table ready: %s (dims=%d)", self._table_name, self._dimension)

    @property
    def table_name(self) -> str:
        """Get the physical table name."""
        return self._table_name

    def insert(self, content: str, vector: list[float], metadata: dict[str, Any]) -> str:
        """Append a row.

        Args:
            content: The embedded text
            vector: The embedding vector
            metadata: JSON-serializable metadata

        Returns:
            The new row id
        """
        row_id = uuid.uuid4()
        with self._engine.begin() as conn:
            conn.execute(
                self._table.insert().values(
                    id=row_id,
                    content=content,
                    metadata=metadata or {},
                    embedding=vector,
                )
            )
        return str(row_id)

    def insert_many(self, rows: list[tuple[str, list[float], dict[str, Any]]]) -> int:
        """Append several rows in one transaction.

        Returns:
            Number of rows written
        """
        if not rows:
            return 0
        values = [
            {"id": uuid.uuid4(), "content": content, "metadata": metadata or {}, "embedding": vector}
            for content, vector, metadata in rows
        ]
        with self._engine.begin() as conn:
            conn.execute(self._table.insert(), values)
        return len(values)

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
            metadata_filter: Exact key/value pairs the metadata must contain

        Returns:
            List of tuples (content, metadata, distance), closest first
        """
        distance = self._table.c.embedding.cosine_distance(vector).label("distance")
        stmt = select(self._table.c.content, self._table.c.metadata, distance)
        if metadata_filter:
            stmt = stmt.where(self._table.c.metadata.contains(metadata_filter))
        stmt = stmt.order_by(distance).limit(limit)

        with self._engine.connect() as conn:
            if metadata_filter and self._iterative_scan:
                # The index alone filters after its ef_search candidates
                conn.execute(text("SET LOCAL hnsw.iterative_scan = strict_order"))
            rows = conn.execute(stmt).all()

        return [(row.content, row.metadata or {}, float(row.distance)) for row in rows]

    def find_vector(self, metadata_filter: dict[str, Any]) -> list[float] | None:
        """Return the stored vector of the first row whose metadata matches."""
        stmt = (
            select(self._table.c.embedding)
            .where(self._table.c.metadata.contains(metadata_filter))
            .limit(1)
        )
        with self._engine.connect() as conn:
            value = conn.execute(stmt).scalar()

        if value is None:
            return None
        # pgvector returns numpy arrays
        return [float(x) for x in value]

    def truncate(self) -> None:
        """Remove every row from the table."""
        with self._engine.begin() as conn:
            conn.execute(text(f'TRUNCATE TABLE "{self._table_name}"'))
        logger.warning("Truncated vector table: %s", self._table_name)

    def count_all(self) -> int:
        """Count rows in the table."""
        with self._engine.connect() as conn:
            return int(conn.execute(select(func.count()).select_from(self._table)).scalar() or 0)

    def health_check(self) -> bool:
        """Check if the database is reachable.

        Returns:
            True if healthy, False otherwise
        """
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.warning("Health check failed for %s", self._table_name, exc_info=True)
            return False
