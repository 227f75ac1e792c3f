"""
FastAPI REST API for Draftsmith.

Provides endpoints for document management, model discovery and grounded
post generation.
"""

from draftsmith.api.main import app, create_app

__all__ = ["app", "create_app"]
