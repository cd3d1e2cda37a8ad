"""Route efficiency scoring for ride candidates."""

from .route_scorer import WEIGHTS, RouteScorer, ScoredRide, calculate_optimization_score

__all__ = ['WEIGHTS', 'RouteScorer', 'ScoredRide', 'calculate_optimization_score']
