"""Horizontal boundary-condition regimes of the top-boundary potential solve."""

from enum import Enum
from typing import Sequence

from .errors import ConfigurationError

HORIZONTAL_BC_TYPES = ("periodic", "inflow")


class Regime(Enum):
    """Which spectral basis is used along x and y.

    Inflow directions use sine/cosine series on the node grid, periodic
    directions use Fourier series.
    """
    PERIODIC_PERIODIC = "periodic-periodic"
    INFLOW_PERIODIC = "inflow-periodic"
    INFLOW_INFLOW = "inflow-inflow"

    @classmethod
    def from_horizontal_bcs(cls, horizontal_bcs: Sequence[str]) -> "Regime":
        """Map per-direction BC names (x, y) to a regime."""
        if len(horizontal_bcs) != 2:
            raise ConfigurationError(
                f"need one horizontal BC per direction (x, y), got {list(horizontal_bcs)}")
        bc_x, bc_y = (str(bc).lower() for bc in horizontal_bcs)
        for bc in (bc_x, bc_y):
            if bc not in HORIZONTAL_BC_TYPES:
                raise ConfigurationError(
                    f"horizontal BC must be one of {HORIZONTAL_BC_TYPES}, got '{bc}'")

        if bc_x == "periodic" and bc_y == "periodic":
            return cls.PERIODIC_PERIODIC
        if bc_x == "inflow" and bc_y == "periodic":
            return cls.INFLOW_PERIODIC
        if bc_x == "inflow" and bc_y == "inflow":
            return cls.INFLOW_INFLOW
        raise ConfigurationError(
            "periodic-x / inflow-y is not supported; orient the mesh so that "
            "the inflow direction is x")

    @property
    def x_periodic(self) -> bool:
        return self is Regime.PERIODIC_PERIODIC

    @property
    def y_periodic(self) -> bool:
        return self is not Regime.INFLOW_INFLOW
