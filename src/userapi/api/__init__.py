"""
API endpoints package.

Contains FastAPI routers for all service endpoints:
- /users/* - User CRUD (API key required)
- /, /healthz - Health checks
- /metrics - Prometheus metrics
"""
from .health import router as health_router
from .metrics import router as metrics_router
from .users import router as users_router

__all__ = ["health_router", "metrics_router", "users_router"]
