"""Repositories for templates and user checklists.

Each repository wraps a :class:`~rookie_guide.core.protocols.Connection`
and owns the SQL for one aggregate.
"""

from .checklists import ChecklistRepository
from .templates import TemplateRepository

__all__ = [
    "ChecklistRepository",
    "TemplateRepository",
]
