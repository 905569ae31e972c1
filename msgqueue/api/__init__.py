"""
API module.
Contains the FastAPI application, routes, and exception handlers.
"""

from msgqueue.api.main import create_app, run

__all__ = ["create_app", "run"]
