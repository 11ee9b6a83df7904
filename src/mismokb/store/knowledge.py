"""Knowledge store lifecycle.

The store is built once per schema source and is read-only afterwards.
Freshness is decided by the ingest_state completion marker, which is written
in the same transaction as the data:

1. No marker: nothing (or only a partial graph) was ever committed
2. Marker format version differs: table layout or ingest semantics changed
3. Source digest differs: the schema file changed
4. Live row counts differ from the marker: tables were modified externally

Any of these triggers a rebuild: wipe and re-ingest in one transaction.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy.exc import SQLAlchemyError

from mismokb.config.constants import STORE_FORMAT_VERSION
from mismokb.core.errors import IngestError, InternalError, MismoKBError
from mismokb.ingest.ingestor import SchemaIngestor
from mismokb.store.database import Database
from mismokb.store.indexes import create_additional_indexes
from mismokb.store.queries import SchemaQueries

if TYPE_CHECKING:
    from mismokb.config.models import DatabaseConfig, IngestConfig, MismoKBConfig
    from mismokb.ingest.models import IngestStats

logger = structlog.get_logger()


def file_sha256(path: Path) -> str:
    """Hex digest of a file's content."""
    if not path.is_file():
        raise IngestError.file_not_found(str(path))
    digest = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1 << 20), b""):
            digest.update(chunk)
    return digest.hexdigest()


@dataclass
class StoreCheck:
    """Result of comparing the store with a schema source."""

    fresh: bool
    reasons: list[str] = field(default_factory=list)

    def add_reason(self, reason: str) -> None:
        """Add a staleness reason and mark as not fresh."""
        self.reasons.append(reason)
        self.fresh = False

    def to_dict(self) -> dict[str, Any]:
        return {"fresh": self.fresh, "reasons": list(self.reasons)}


@dataclass
class IngestOutcome:
    """What ensure_ingested did."""

    rebuilt: bool
    reasons: list[str] = field(default_factory=list)
    stats: IngestStats | None = None
    counts: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rebuilt": self.rebuilt,
            "reasons": list(self.reasons),
            "stats": self.stats.to_dict() if self.stats else None,
            "counts": dict(self.counts),
        }


@dataclass
class StoreStatus:
    """Marker plus live counts."""

    db_path: str
    ingested: bool
    counts: dict[str, int]
    format_version: int | None = None
    source_path: str | None = None
    source_sha256: str | None = None
    completed_at: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "db_path": self.db_path,
            "ingested": self.ingested,
            "format_version": self.format_version,
            "source_path": self.source_path,
            "source_sha256": self.source_sha256,
            "completed_at": self.completed_at,
            "counts": dict(self.counts),
        }


class KnowledgeStore:
    """Handle on one SQLite knowledge store.

    Usage::

        store = KnowledgeStore(db_path)
        store.open()
        store.ensure_ingested(Path("mismo.xmi"))
        engine = QueryEngine(store)
    """

    def __init__(
        self,
        db_path: Path,
        *,
        ingest: IngestConfig | None = None,
        database: DatabaseConfig | None = None,
    ) -> None:
        self.db_path = db_path
        if database is not None:
            self.db = Database(
                db_path,
                busy_timeout_ms=database.busy_timeout_ms,
                max_retries=database.max_retries,
                retry_base_delay=database.retry_base_delay_sec,
            )
        else:
            self.db = Database(db_path)
        if ingest is not None:
            self._ingestor = SchemaIngestor(ingest.top_container, ingest.enum_suffix)
        else:
            self._ingestor = SchemaIngestor()
        self.queries = SchemaQueries(self.db)
        self._opened = False

    @classmethod
    def from_config(cls, config: MismoKBConfig, db_path: Path) -> KnowledgeStore:
        return cls(db_path, ingest=config.ingest, database=config.database)

    def open(self) -> KnowledgeStore:
        """Create tables and indexes if missing. Idempotent."""
        if not self._opened:
            self.db.create_all()
            create_additional_indexes(self.db.engine)
            self._opened = True
        return self

    def close(self) -> None:
        self.db.dispose()
        self._opened = False

    def check(self, source: Path) -> StoreCheck:
        """Compare the completion marker and live tables with source."""
        self.open()
        digest = file_sha256(source)
        result = StoreCheck(fresh=True)

        marker = self.queries.marker()
        if marker is None:
            result.add_reason("no completed ingestion")
            return result

        if marker.format_version != STORE_FORMAT_VERSION:
            result.add_reason(
                f"store format {marker.format_version} differs from {STORE_FORMAT_VERSION}"
            )
        if marker.source_sha256 != digest:
            result.add_reason(f"source content changed: {source}")

        live = self.queries.counts()
        for table, expected in marker.expected_counts().items():
            if live.get(table, 0) != expected:
                result.add_reason(f"{table} has {live.get(table, 0)} rows, expected {expected}")

        return result

    def ensure_ingested(self, source: Path, *, force: bool = False) -> IngestOutcome:
        """Rebuild only when the store is stale (or when forced)."""
        check = self.check(source)
        if check.fresh and not force:
            logger.debug("store_fresh", db_path=str(self.db_path))
            return IngestOutcome(rebuilt=False, counts=self.queries.counts())

        reasons = check.reasons if not check.fresh else ["forced"]
        logger.info("store_rebuild_required", db_path=str(self.db_path), reasons=reasons)
        stats = self.rebuild(source)
        return IngestOutcome(
            rebuilt=True,
            reasons=reasons,
            stats=stats,
            counts=self.queries.counts(),
        )

    def rebuild(self, source: Path) -> IngestStats:
        """Wipe and re-ingest in one transaction.

        On failure the previous complete graph (and its marker) is kept.
        """
        self.open()
        digest = file_sha256(source)
        try:
            with self.db.bulk_writer() as writer:
                return self._ingestor.ingest(writer, source, source_sha256=digest)
        except MismoKBError as e:
            logger.error("ingest_failed", source=str(source), code=int(e.code), error=e.message)
            raise
        except SQLAlchemyError as e:
            logger.error("ingest_failed", source=str(source), error=str(e))
            raise InternalError.unexpected(
                f"store write failed: {e}", source=str(source), db_path=str(self.db_path)
            ) from e

    def status(self) -> StoreStatus:
        self.open()
        marker = self.queries.marker()
        counts = self.queries.counts()
        if marker is None:
            return StoreStatus(db_path=str(self.db_path), ingested=False, counts=counts)
        return StoreStatus(
            db_path=str(self.db_path),
            ingested=True,
            counts=counts,
            format_version=marker.format_version,
            source_path=marker.source_path,
            source_sha256=marker.source_sha256,
            completed_at=marker.completed_at,
        )
