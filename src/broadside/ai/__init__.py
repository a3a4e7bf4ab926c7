"""AI package exports."""

from .targeting import TargetingMode, density_map, get_best_move, targeting_mode

__all__ = ["TargetingMode", "density_map", "get_best_move", "targeting_mode"]
