# scopepost/utils/__init__.py
