# scopepost/cli/__init__.py
