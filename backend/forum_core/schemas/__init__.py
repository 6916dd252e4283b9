from .base import parse_fields

__all__ = ["parse_fields"]
