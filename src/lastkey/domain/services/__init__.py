"""Pure domain services for lastkey."""
