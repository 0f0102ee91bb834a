"""Repositories encapsulating SQL for definitions and records."""

from entityctl.infrastructure.repositories.definitions import DefinitionRepository
from entityctl.infrastructure.repositories.records import RecordRepository

__all__ = ["DefinitionRepository", "RecordRepository"]
