"""Utility helpers."""
from .clients import UNKNOWN_CLIENT, client_identifier, first_forwarded_address  # noqa: F401
