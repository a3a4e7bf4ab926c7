"""Static game configuration: board geometry, labels and the fleet manifest."""

from __future__ import annotations

import os
import string
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from broadside.engine.ship import ShipType

BOARD_SIZE = 10
MAX_PLACEMENT_ATTEMPTS = 1000
MAX_FLEET_RESTARTS = 100


class ShipSpec(BaseModel):
    """One manifest entry: a ship class, its length and how many to field."""

    model_config = ConfigDict(frozen=True)

    ship_type: ShipType
    size: int = Field(ge=1)
    count: int = Field(default=1, ge=1)


DEFAULT_FLEET: tuple[ShipSpec, ...] = (
    ShipSpec(ship_type=ShipType.CARRIER, size=5),
    ShipSpec(ship_type=ShipType.BATTLESHIP, size=4),
    ShipSpec(ship_type=ShipType.CRUISER, size=3),
    ShipSpec(ship_type=ShipType.SUBMARINE, size=3),
    ShipSpec(ship_type=ShipType.DESTROYER, size=2),
)


def default_row_labels(board_size: int) -> tuple[str, ...]:
    return tuple(string.ascii_uppercase[:board_size])


def default_col_labels(board_size: int) -> tuple[str, ...]:
    return tuple(str(col) for col in range(board_size))


class GameConfig(BaseModel):
    """Board and fleet settings shared by the engine, the AI and the CLI."""

    model_config = ConfigDict(frozen=True)

    board_size: int = Field(default=BOARD_SIZE, ge=1, le=26)
    row_labels: tuple[str, ...] = ()
    col_labels: tuple[str, ...] = ()
    fleet: tuple[ShipSpec, ...] = DEFAULT_FLEET
    max_placement_attempts: int = Field(default=MAX_PLACEMENT_ATTEMPTS, ge=1)
    max_fleet_restarts: int = Field(default=MAX_FLEET_RESTARTS, ge=0)
    seed: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _fill_labels(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        size = int(data.get("board_size", BOARD_SIZE))
        if not data.get("row_labels"):
            data = {**data, "row_labels": default_row_labels(size)}
        if not data.get("col_labels"):
            data = {**data, "col_labels": default_col_labels(size)}
        return data

    @model_validator(mode="after")
    def _check_geometry(self) -> "GameConfig":
        if len(self.row_labels) != self.board_size:
            raise ValueError("row_labels must have one label per board row")
        if len(self.col_labels) != self.board_size:
            raise ValueError("col_labels must have one label per board column")
        if len({label.upper() for label in self.row_labels}) != self.board_size:
            raise ValueError("row_labels must be unique")
        if len(set(self.col_labels)) != self.board_size:
            raise ValueError("col_labels must be unique")
        for spec in self.fleet:
            if spec.size > self.board_size:
                raise ValueError(
                    f"{spec.ship_type.value} of size {spec.size} does not fit a "
                    f"{self.board_size}x{self.board_size} board"
                )
        return self

    @property
    def total_ship_cells(self) -> int:
        """Number of cells a complete fleet occupies."""
        return sum(spec.size * spec.count for spec in self.fleet)

    def spec_for(self, ship_type: ShipType) -> ShipSpec:
        for spec in self.fleet:
            if spec.ship_type is ship_type:
                return spec
        raise KeyError(f"{ship_type.value} is not part of this fleet")

    @classmethod
    def from_env(cls, **overrides: Any) -> "GameConfig":
        """Construct config from ``BROADSIDE_*`` env vars, then ``overrides``."""
        data: dict[str, Any] = {}
        env_fields = {
            "board_size": "BROADSIDE_BOARD_SIZE",
            "max_placement_attempts": "BROADSIDE_MAX_PLACEMENT_ATTEMPTS",
            "max_fleet_restarts": "BROADSIDE_MAX_FLEET_RESTARTS",
            "seed": "BROADSIDE_SEED",
        }
        for field, env_name in env_fields.items():
            value = os.getenv(env_name)
            if value is not None and value.strip():
                data[field] = int(value)
        data.update(overrides)
        return cls(**data)


@lru_cache(maxsize=1)
def load_game_config() -> GameConfig:
    """Load and cache the game config from the environment."""

    return GameConfig.from_env()
