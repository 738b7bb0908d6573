"""Production adapters for lastkey ports."""
