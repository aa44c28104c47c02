"""
Admin module: user role management and audit log viewer endpoints.
"""
from .router import router

__all__: list[str] = ["router"]
