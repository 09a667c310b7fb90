"""
API v1 package.

Contains versioned API routes for registration and email verification.
"""

from learngate.api.v1.routes import router

__all__ = ["router"]
