"""
API Routes Module

Exposes all route modules for registration in main app.
"""
from . import routes_assist
from . import routes_usage
from . import routes_admin

__all__ = ["routes_assist", "routes_usage", "routes_admin"]
