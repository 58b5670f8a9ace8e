"""
Tuning parameters for grid storage and mask compilation.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class GridSettings:
    """Settings shared by grid creation and the mask compiler.

    Attributes:
        sector_size: Edge length (in cells) of the coarse sectors tested
            first by the mask compiler.
        subsector_size: Edge length of the sub-sectors a straddling sector
            is split into before falling back to per-lane evaluation.
        lane_granularity: The x dimension of every grid is padded up to a
            multiple of this.
        bounds_epsilon: Added to the bounds before rounding up, so atoms on
            the upper faces land in an allocated cell.
    """

    sector_size: int = 4
    subsector_size: int = 2
    lane_granularity: int = 4
    bounds_epsilon: float = 0.001

    def __post_init__(self):
        if self.sector_size < 1 or self.subsector_size < 1:
            raise ValueError("Sector sizes must be positive")
        if self.sector_size % self.subsector_size != 0:
            raise ValueError(
                f"Sub-sector size {self.subsector_size} does not divide "
                f"sector size {self.sector_size}"
            )
        if self.lane_granularity < 1:
            raise ValueError("Lane granularity must be positive")
        if not 0.0 <= self.bounds_epsilon < 1.0:
            raise ValueError("Bounds epsilon must lie in [0, 1)")

    @property
    def sector_levels(self) -> tuple[int, ...]:
        """Sector edge lengths visited by the compiler, coarsest first."""
        if self.subsector_size == self.sector_size:
            return (self.sector_size,)
        return (self.sector_size, self.subsector_size)


# Default settings
DEFAULT_SETTINGS = GridSettings()
