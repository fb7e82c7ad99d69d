"""
HTTP layer for the priceport service (FastAPI).
"""

from priceport.web.app import create_app

__all__ = ["create_app"]
