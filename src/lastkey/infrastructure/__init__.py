"""Infrastructure adapters for lastkey."""
