"""SQLAlchemy ORM models. Importing this package registers every table on Base.metadata."""

from sitegenie.models.niche import (
    Niche,
    NicheKeyword,
    NicheCompetitor,
    Site,
)

__all__ = [
    "Niche",
    "NicheKeyword",
    "NicheCompetitor",
    "Site",
]
