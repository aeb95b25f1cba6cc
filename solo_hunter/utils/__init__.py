# solo_hunter/utils/__init__.py
