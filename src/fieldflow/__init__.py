"""FieldFlow - well registry and inspection record capture."""

__version__ = "0.1.0"
