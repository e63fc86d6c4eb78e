"""
FastAPI application exposing the scheduling core over HTTP.
"""

from .app import create_app

__all__ = ["create_app"]
