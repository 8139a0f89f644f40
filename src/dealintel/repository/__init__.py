"""Read access to deals, leads, and users.

Provides the IntelligenceRepository ABC with two implementations:
- SqlIntelligenceRepository: Async SQLAlchemy store (session_factory pattern)
- InMemoryIntelligenceRepository: Dict-backed store for seeding and tests
"""

from src.dealintel.repository.base import IntelligenceRepository
from src.dealintel.repository.memory import InMemoryIntelligenceRepository
from src.dealintel.repository.sql import SqlIntelligenceRepository

__all__ = [
    "IntelligenceRepository",
    "InMemoryIntelligenceRepository",
    "SqlIntelligenceRepository",
]
