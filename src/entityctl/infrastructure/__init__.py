"""Infrastructure layer — SQLite persistence for definitions and records.

This layer depends on stdlib, SQLAlchemy, and the pure domain types it
stores and translates (field models, predicates). It must never import
from services, commands, or output.
"""
