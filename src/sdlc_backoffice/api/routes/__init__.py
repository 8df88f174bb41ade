"""
API routes for SDLC Backoffice.
"""

from sdlc_backoffice.api.routes import developments, projects, repositories, webhooks

__all__ = [
    "developments",
    "projects",
    "repositories",
    "webhooks",
]
