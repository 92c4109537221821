"""
dbmanager REST API.

Envelope-style HTTP surface over :mod:`dbmanager.ops`.  Start it with
``dbmanager serve`` or ``uvicorn dbmanager.api:create_app --factory``.
"""

from dbmanager.api.app import create_app

__all__ = ["create_app"]
