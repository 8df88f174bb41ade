"""
Repository layer for database operations.

Provides a clean API for CRUD operations on database models.
"""

from sdlc_backoffice.db.repositories.base import BaseRepository
from sdlc_backoffice.db.repositories.development import DevelopmentRepository
from sdlc_backoffice.db.repositories.project import ProjectRepository
from sdlc_backoffice.db.repositories.webhook_event import WebhookEventRepository

__all__ = [
    "BaseRepository",
    "DevelopmentRepository",
    "ProjectRepository",
    "WebhookEventRepository",
]
