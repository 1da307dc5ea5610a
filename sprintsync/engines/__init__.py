"""
Hierarchy-copy engines behind the backlog service:

- sprint-end migration into the backlog tables
- cloning backlog stories into a sprint
- carrying a story forward from an earlier sprint
"""

from .base_engine import BaseEngine
from .backlog_migration import BacklogMigrationEngine
from .backlog_clone import BacklogCloneEngine
from .carry_forward import CarryForwardEngine

__all__ = [
    "BaseEngine",
    "BacklogMigrationEngine",
    "BacklogCloneEngine",
    "CarryForwardEngine",
]
