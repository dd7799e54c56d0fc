"""
FastAPI Routes.

API 라우트 (JSON): templates, components, kv
"""

from . import components, kv, templates

__all__ = ["components", "kv", "templates"]
