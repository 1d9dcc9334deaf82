"""
Operator HTTP API (FastAPI).

- app.py: create_app() factory and error mapping
- routes.py: /api/admin routes
- schemas.py: Pydantic bodies
- security.py: X-Internal-Key guard
"""

from .app import create_app

__all__ = ["create_app"]
