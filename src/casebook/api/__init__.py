"""
casebook REST API.

Usage::

    uvicorn casebook.api.app:create_app --factory
"""

from casebook.api.app import create_app

__all__ = ["create_app"]
