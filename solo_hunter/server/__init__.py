# solo_hunter/server/__init__.py

"""
HTTP-сервис Solo Hunter (FastAPI + SQLAlchemy)
"""

from .app import create_app
from .config import ServerSettings, get_settings

__all__ = ['create_app', 'ServerSettings', 'get_settings']
