"""
Core components.

- API key gate for the protected routes
- In-memory user store
- Secret masking
- Request logging and metrics
"""
