"""Geometry helpers: haversine distance and angle conversion."""

from .distance import EARTH_RADIUS_KM, distance, distance_between, to_radians

__all__ = ['EARTH_RADIUS_KM', 'distance', 'distance_between', 'to_radians']
