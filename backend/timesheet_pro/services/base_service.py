"""
Base service class.
Services contain the engine's business logic and coordinate the store and reconciler.
"""

from abc import ABC


class BaseService(ABC):
    """Base service class for all services."""
    pass
