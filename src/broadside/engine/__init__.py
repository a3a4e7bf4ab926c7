"""Game-state engine: grids, ships, placement and shot resolution."""
