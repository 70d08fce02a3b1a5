"""
SQLAlchemy database models.

- base: Base declarative class
- match: Match lifecycle rows

Import any model from this module:
    from matchcore.db.models import Base, Match
"""

# Base class (must be imported first)
from .base import Base

from .match import Match

__all__ = [
    "Base",
    "Match",
]
