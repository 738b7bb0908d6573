"""Domain layer for lastkey.

Pure models, transition rules and errors. Nothing in this package
performs I/O or reads the clock.
"""
