"""Database engine, session management and the niche store (SQLAlchemy)."""

import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator, Iterable, Optional

from sqlalchemy import create_engine, event, exists, func, or_, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from sitegenie.exceptions import PersistenceError

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = (
    "name",
    "monthly_search_volume",
    "competition_score",
    "monetization_potential",
    "trending_score",
    "estimated_cpc",
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enable_sqlite_pragmas(dbapi_conn, connection_record):
    """Enable WAL journal mode and foreign keys on SQLite connections."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL;")
    cursor.execute("PRAGMA synchronous=NORMAL;")
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.execute("PRAGMA busy_timeout=5000;")
    cursor.close()


def create_db_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """Create a SQLAlchemy engine.

    Args:
        database_url: Connection string.  Falls back to the ``DATABASE_URL``
                      env-var or a local SQLite file.
        echo: Whether to log every SQL statement.
    """
    if database_url is None:
        database_url = os.getenv("DATABASE_URL", "sqlite:///data/sitegenie.db")

    kwargs: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every checkout sees an empty db
            kwargs["poolclass"] = StaticPool
        elif database_url.startswith("sqlite:///"):
            db_path = database_url.replace("sqlite:///", "")
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(database_url, **kwargs)
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_pragmas)
    logger.info("Database engine created: %s", engine.url.render_as_string(hide_password=True))
    return engine


class NicheStore:
    """Relational store for analysed niches.

    The caller owns the lifecycle: construct one store at process start,
    pass it to whatever needs persistence and ``dispose()`` it at shutdown.

    Usage::

        store = NicheStore("sqlite:///data/sitegenie.db")
        store.init_schema()
        store.save_niches(scored_niches)
        rows, total = store.query_niches(min_search_volume=1000)
        store.dispose()
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        echo: bool = False,
        engine: Optional[Engine] = None,
    ):
        self._engine = engine or create_db_engine(database_url, echo=echo)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    @property
    def engine(self) -> Engine:
        return self._engine

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init_schema(self) -> None:
        """Create all tables that do not yet exist."""
        # Side-effect import: registers all models with Base.metadata
        import sitegenie.models  # noqa: F401
        Base.metadata.create_all(bind=self._engine)
        logger.info("All database tables created / verified.")

    def reset_schema(self) -> None:
        """Drop and recreate every table.  **Destructive**."""
        import sitegenie.models  # noqa: F401
        Base.metadata.drop_all(bind=self._engine)
        Base.metadata.create_all(bind=self._engine)
        logger.warning("Database has been reset (all tables dropped and recreated).")

    def dispose(self) -> None:
        """Release every pooled connection."""
        self._engine.dispose()
        logger.debug("Database engine disposed.")

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Provide a transactional session via context manager.

        Commits on success, rolls back and re-raises on error, and always
        closes the session.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save_niches(self, niches: Iterable[Any]) -> int:
        """Upsert scored niches by name in a single transaction.

        Related keywords and competitors are replaced, not merged.  Any
        failure rolls the whole batch back and raises ``PersistenceError``.

        Returns:
            Number of niches written.
        """
        from sitegenie.models import Niche, NicheCompetitor, NicheKeyword

        niches = list(niches)
        try:
            with self.session() as session:
                for niche in niches:
                    row = session.scalar(select(Niche).where(Niche.name == niche.niche_name))
                    if row is None:
                        row = Niche(name=niche.niche_name)
                        session.add(row)
                    else:
                        row.last_updated = _utcnow()
                    row.monthly_search_volume = int(niche.monthly_search_volume)
                    row.competition_score = float(niche.competition_score)
                    row.monetization_potential = float(niche.monetization_potential)
                    row.trending_score = float(niche.trending_score)
                    row.estimated_cpc = float(niche.estimated_cpc)
                    row.keywords = [
                        NicheKeyword(keyword=kw) for kw in niche.related_keywords
                    ]
                    row.competitors = [
                        NicheCompetitor(
                            domain=comp.get("domain"),
                            domain_authority=comp.get("domain_authority"),
                            estimated_traffic=comp.get("estimated_traffic"),
                        )
                        for comp in niche.top_competitors
                    ]
                    session.flush()
        except SQLAlchemyError as exc:
            logger.error("Error saving niche analysis results to database: %s", exc)
            raise PersistenceError(f"Failed to save {len(niches)} niches: {exc}") from exc

        logger.info("Saved analysis results for %d niches to database", len(niches))
        return len(niches)

    def add_site(self, niche_name: str, domain: str) -> Optional[int]:
        """Record a site built for a niche.  Returns the site id, or None
        when the niche is unknown."""
        from sitegenie.models import Niche, Site

        try:
            with self.session() as session:
                niche = session.scalar(select(Niche).where(Niche.name == niche_name))
                if niche is None:
                    logger.warning("Cannot record site %s: niche %r not found", domain, niche_name)
                    return None
                site = Site(niche_id=niche.id, domain=domain)
                session.add(site)
                session.flush()
                return site.id
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to record site {domain}: {exc}") from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_niche(self, niche_id: int) -> Optional[dict[str, Any]]:
        """Return one niche with its keywords and competitors, or None."""
        from sitegenie.models import Niche

        with self.session() as session:
            niche = session.get(Niche, niche_id)
            if niche is None:
                return None
            return {
                "id": niche.id,
                "name": niche.name,
                "monthly_search_volume": niche.monthly_search_volume,
                "competition_score": niche.competition_score,
                "monetization_potential": niche.monetization_potential,
                "trending_score": niche.trending_score,
                "estimated_cpc": niche.estimated_cpc,
                "related_keywords": [kw.keyword for kw in niche.keywords],
                "top_competitors": [
                    {
                        "domain": c.domain,
                        "domain_authority": c.domain_authority,
                        "estimated_traffic": c.estimated_traffic,
                    }
                    for c in niche.competitors
                ],
                "site_count": len(niche.sites),
            }

    def query_niches(
        self,
        min_search_volume: int = 0,
        max_competition: float = 100,
        industry: Optional[str] = None,
        investment_level: Optional[str] = None,
        sort_by: str = "monetization_potential",
        sort_order: str = "DESC",
        limit: int = 50,
        offset: int = 0,
        keywords_per_niche: int = 10,
    ) -> tuple[list[dict[str, Any]], int]:
        """Filter, sort and page stored niches.

        ``sort_by`` must be one of ``SORTABLE_COLUMNS`` and ``sort_order``
        ASC or DESC; anything else falls back to the defaults.

        Returns:
            Tuple of (rows, total matching count ignoring limit/offset).
        """
        from sitegenie.models import Niche, NicheKeyword, Site

        conditions = []
        if min_search_volume > 0:
            conditions.append(Niche.monthly_search_volume >= min_search_volume)
        if max_competition < 100:
            conditions.append(Niche.competition_score <= max_competition)
        if industry:
            pattern = f"%{industry}%"
            conditions.append(or_(
                Niche.name.ilike(pattern),
                exists().where(
                    NicheKeyword.niche_id == Niche.id,
                    NicheKeyword.keyword.ilike(pattern),
                ),
            ))
        level = (investment_level or "").lower()
        if level == "low":
            conditions.append(Niche.competition_score < 30)
        elif level == "medium":
            conditions.append(Niche.competition_score.between(30, 60))
        elif level == "high":
            conditions.append(Niche.competition_score > 60)

        if sort_by not in SORTABLE_COLUMNS:
            sort_by = "monetization_potential"
        sort_order = sort_order.upper() if sort_order else "DESC"
        if sort_order not in ("ASC", "DESC"):
            sort_order = "DESC"
        sort_column = getattr(Niche, sort_by)
        ordering = sort_column.asc() if sort_order == "ASC" else sort_column.desc()

        site_count = (
            select(func.count(Site.id))
            .where(Site.niche_id == Niche.id)
            .correlate(Niche)
            .scalar_subquery()
        )

        with self.session() as session:
            total = session.scalar(
                select(func.count(Niche.id)).where(*conditions)
            ) or 0
            result = session.execute(
                select(Niche, site_count.label("site_count"))
                .where(*conditions)
                .order_by(ordering, Niche.id.asc())
                .limit(limit)
                .offset(offset)
            ).all()

            rows: list[dict[str, Any]] = []
            for niche, count in result:
                keywords = session.scalars(
                    select(NicheKeyword.keyword)
                    .where(NicheKeyword.niche_id == niche.id)
                    .order_by(NicheKeyword.id)
                    .limit(keywords_per_niche)
                ).all()
                rows.append({
                    "id": niche.id,
                    "name": niche.name,
                    "monthly_search_volume": niche.monthly_search_volume,
                    "competition_score": niche.competition_score,
                    "monetization_potential": niche.monetization_potential,
                    "trending_score": niche.trending_score,
                    "estimated_cpc": niche.estimated_cpc,
                    "created_at": niche.created_at,
                    "last_updated": niche.last_updated,
                    "site_count": int(count or 0),
                    "related_keywords": list(keywords),
                })

        logger.info("Retrieved %d niche performance records (total=%d)", len(rows), total)
        return rows, int(total)
