"""
StarSocket Services

Pluggable services invoked by the dispatcher through narrow contracts.
"""

from .coercion import CoercionService, PydanticCoercionService, to_number, to_boolean

__all__ = ["CoercionService", "PydanticCoercionService", "to_number", "to_boolean"]
