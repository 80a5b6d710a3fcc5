"""Niche, niche keyword, competitor and site SQLAlchemy models."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sitegenie.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Niche(Base):
    """An analysed niche with its latest scores, keyed by name."""

    __tablename__ = "niches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False, unique=True, index=True)
    monthly_search_volume: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    competition_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    monetization_potential: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    trending_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    estimated_cpc: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    last_updated: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    keywords: Mapped[list["NicheKeyword"]] = relationship(
        back_populates="niche", cascade="all, delete-orphan", lazy="selectin",
        order_by="NicheKeyword.id",
    )
    competitors: Mapped[list["NicheCompetitor"]] = relationship(
        back_populates="niche", cascade="all, delete-orphan", lazy="selectin",
        order_by="NicheCompetitor.id",
    )
    sites: Mapped[list["Site"]] = relationship(
        back_populates="niche", cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Niche id={self.id} name={self.name!r} vol={self.monthly_search_volume}>"


class NicheKeyword(Base):
    """Related keyword attached to a niche."""

    __tablename__ = "niche_keywords"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    niche_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("niches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    keyword: Mapped[str] = mapped_column(String(500), nullable=False)

    niche: Mapped["Niche"] = relationship(back_populates="keywords")

    def __repr__(self) -> str:
        return f"<NicheKeyword niche_id={self.niche_id} keyword={self.keyword!r}>"


class NicheCompetitor(Base):
    """Top-ranking competitor domain for a niche."""

    __tablename__ = "niche_competitors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    niche_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("niches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    domain: Mapped[str] = mapped_column(String(500), nullable=False)
    domain_authority: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    estimated_traffic: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    niche: Mapped["Niche"] = relationship(back_populates="competitors")

    def __repr__(self) -> str:
        return f"<NicheCompetitor niche_id={self.niche_id} domain={self.domain!r}>"


class Site(Base):
    """A content site built for a niche."""

    __tablename__ = "sites"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    niche_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("niches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    domain: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    niche: Mapped["Niche"] = relationship(back_populates="sites")

    def __repr__(self) -> str:
        return f"<Site id={self.id} domain={self.domain!r}>"
