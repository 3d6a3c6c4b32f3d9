"""Schema definitions."""
from .tables import build_schema

__all__ = ['build_schema']
