# solo_hunter/server/api/__init__.py

from . import auth, calendar_events, notes

__all__ = ['auth', 'calendar_events', 'notes']
