"""
REST API layer for Rookie Guide.

Provides a FastAPI application factory with endpoints that delegate to
the operations layer (``rookie_guide.ops``). This package handles only
HTTP transport concerns: serialisation, caller identity, error mapping,
and request context.

Quick start::

    from rookie_guide.api import create_app

    app = create_app()  # ready for uvicorn
"""

from rookie_guide.api.app import create_app

__all__ = ["create_app"]
