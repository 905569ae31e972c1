"""
API routes module.
"""

from msgqueue.api.routes.health import router as health_router
from msgqueue.api.routes.messages import router as messages_router
from msgqueue.api.routes.queues import router as queues_router

__all__ = ["queues_router", "messages_router", "health_router"]
