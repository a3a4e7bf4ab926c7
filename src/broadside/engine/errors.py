"""Exceptions raised by the broadside engine and AI."""

from __future__ import annotations


class BroadsideError(RuntimeError):
    """Base class for engine failures that are not caller mistakes."""


class FleetGenerationError(BroadsideError):
    """Random fleet generation gave up: the fleet does not fit the board."""


class TargetingError(BroadsideError):
    """No cell is left to shoot at; the board state is inconsistent."""


class GridConsistencyError(BroadsideError):
    """A grid cell references a ship missing from the registry."""
