"""Role keyword matching."""
from .role_filter import matches_role, parse_keywords

__all__ = ["matches_role", "parse_keywords"]
