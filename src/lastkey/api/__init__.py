"""FastAPI binding of the release engine operations."""
