"""API module."""

from .main import app, create_app, main
from .routes import analysis_mapping_router, inspection_data_router, router

__all__ = [
    "app",
    "create_app",
    "main",
    "router",
    "analysis_mapping_router",
    "inspection_data_router",
]
