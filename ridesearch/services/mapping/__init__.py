"""Mapping collaborator clients"""

from .osrm_client import MappingService, OSRMMappingClient

__all__ = ["MappingService", "OSRMMappingClient"]
