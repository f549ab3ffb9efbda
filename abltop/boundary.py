"""Open-top boundary condition for atmospheric boundary-layer simulations.

Instead of a rigid lid, the thin slab between a sampling plane (near the
domain top) and the top boundary is treated as potential flow. Each step
the vertical velocity on the sampling plane is gathered from all
partitions, the top-boundary velocity that is consistent with it is solved
spectrally, and the result is scattered back into the mesh's boundary
velocity field along with the open-boundary mass and momentum fluxes.

The mesh must be a structured Cartesian block whose nodes carry their
(i, j, k) grid index, uniformly spaced in x and y at the sampling plane.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import numpy as np
from numba import njit

from .config import TopBCConfig
from .distribution import SampleDistribution, plan_distribution
from .errors import ConfigurationError, GeometryError
from .indexing import GridFootprint, NodeMaps, build_lookup, build_node_maps, discover_footprint
from .potential import BLEND_RAMPS, PotentialFlowSolver
from .regime import Regime
from .transforms import TransformPlans, build_transform_plans

log = logging.getLogger(__name__)

CONSUMED_FIELDS = ("velocity", "density", "exposed_area_vector", "bc_velocity")


class BCState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class TopBoundarySolution:
    """Canonically ordered top-plane result of one execute() call."""
    u: np.ndarray
    v: np.ndarray
    w: np.ndarray
    w_sample: np.ndarray
    u_avg: np.ndarray
    net_mass_flow: float


@njit
def _open_boundary_flux_jit(rho, area, u_bc, u_below):
    """Mass flow and upwinded momentum flux through each top-boundary node.

    mdot = rho * (u_bc . A), A the outward area vector. Outflow (mdot > 0)
    carries the momentum of the interior node one level below the top;
    inflow carries the boundary velocity.
    """
    n = rho.shape[0]
    mdot = np.zeros(n)
    flux = np.zeros((n, 3))
    for p in range(n):
        m = rho[p] * (u_bc[p, 0] * area[p, 0]
                      + u_bc[p, 1] * area[p, 1]
                      + u_bc[p, 2] * area[p, 2])
        mdot[p] = m
        for c in range(3):
            if m > 0.0:
                flux[p, c] = m * u_below[p, c]
            else:
                flux[p, c] = m * u_bc[p, c]
    return mdot, flux


class ABLTopBoundaryCondition:
    """Potential-flow open top boundary condition.

    Lifecycle: UNINITIALIZED -> READY on the first execute() (or an explicit
    initialize()). A failure while initializing is fatal: the state becomes
    FAILED and every later call re-raises the same error.
    """

    def __init__(self, mesh, grid_dims: Sequence[int],
                 horizontal_bcs: Sequence[str], z_sample: float, *,
                 blend_fraction: float = 0.1, blend_ramp: str = "smooth",
                 spacing_tolerance: float = 1e-6,
                 fft_workers: Optional[int] = 1):
        if len(grid_dims) != 2 or min(grid_dims) < 2:
            raise ConfigurationError(
                f"grid_dims must be two horizontal node counts >= 2, got {list(grid_dims)}")
        if not 0.0 <= blend_fraction <= 0.5:
            raise ConfigurationError(
                f"blend_fraction must be in [0, 0.5], got {blend_fraction}")
        if blend_ramp not in BLEND_RAMPS:
            raise ConfigurationError(
                f"blend_ramp must be one of {BLEND_RAMPS}, got '{blend_ramp}'")
        if not np.isfinite(z_sample):
            raise ConfigurationError(f"z_sample must be a finite elevation, got {z_sample}")
        if spacing_tolerance <= 0.0:
            raise ConfigurationError("spacing_tolerance must be positive")

        self.mesh = mesh
        self.grid_dims = (int(grid_dims[0]), int(grid_dims[1]))
        self.regime = Regime.from_horizontal_bcs(horizontal_bcs)
        self.z_sample = float(z_sample)
        self.blend_fraction = blend_fraction
        self.blend_ramp = blend_ramp
        self.spacing_tolerance = spacing_tolerance
        self.fft_workers = fft_workers

        self.state = BCState.UNINITIALIZED
        self._init_error: Optional[Exception] = None

        self.footprint: Optional[GridFootprint] = None
        self.node_maps: Optional[NodeMaps] = None
        self.distribution: Optional[SampleDistribution] = None
        self.plans: Optional[TransformPlans] = None
        self.solver: Optional[PotentialFlowSolver] = None
        self._edge_rows: Optional[np.ndarray] = None

    @classmethod
    def from_config(cls, mesh, grid_dims, cfg: TopBCConfig) -> "ABLTopBoundaryCondition":
        return cls(mesh, grid_dims, cfg.horizontal_bcs, cfg.z_sample,
                   blend_fraction=cfg.blend_fraction,
                   blend_ramp=cfg.blend_ramp,
                   spacing_tolerance=cfg.spacing_tolerance,
                   fft_workers=cfg.fft_workers)

    @property
    def need_to_initialize(self) -> bool:
        return self.state is not BCState.READY

    def initialize_connectivity(self):
        """Check the consumed mesh fields and register the produced ones."""
        missing = [name for name in CONSUMED_FIELDS if not self.mesh.has_field(name)]
        if missing:
            raise ConfigurationError(f"mesh is missing required fields: {missing}")
        self.mesh.register_field("open_mass_flow_rate", 1)
        self.mesh.register_field("top_momentum_flux", 3)

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def initialize(self):
        """One-time geometry discovery, distribution planning and plan setup."""
        if self.state is BCState.READY:
            return
        if self.state is BCState.FAILED:
            raise self._init_error

        try:
            self._initialize()
        except Exception as err:
            self.state = BCState.FAILED
            self._init_error = err
            log.error(f"Open-top boundary condition failed to initialize: {err}")
            raise

        self.state = BCState.READY

    def _initialize(self):
        mesh = self.mesh
        self.initialize_connectivity()
        lookup = build_lookup(mesh.grid_index)
        footprint = discover_footprint(
            mesh.coords, lookup, self.regime.x_periodic, self.regime.y_periodic,
            self.z_sample, self.spacing_tolerance)

        if (footprint.imax, footprint.jmax) != self.grid_dims:
            raise GeometryError(
                f"mesh footprint {footprint.imax}x{footprint.jmax} does not match "
                f"configured grid_dims {self.grid_dims[0]}x{self.grid_dims[1]}")

        node_maps = build_node_maps(mesh.ids, lookup, footprint,
                                    self.regime.x_periodic, self.regime.y_periodic)
        distribution = plan_distribution(mesh.partitions, node_maps, mesh.rows)
        plans = build_transform_plans(self.regime, footprint.imax, footprint.jmax,
                                      self.fft_workers)
        solver = PotentialFlowSolver(self.regime, footprint, plans,
                                     self.blend_fraction, self.blend_ramp)

        self.footprint = footprint
        self.node_maps = node_maps
        self.distribution = distribution
        self.plans = plans
        self.solver = solver
        self._edge_rows = mesh.rows(np.concatenate([node_maps.x_inflow,
                                                    node_maps.y_inflow]))

        log.info(f"Open-top BC ready: regime={self.regime.value}, "
                 f"{distribution.n_partitions} partitions "
                 f"(sampling counts {distribution.counts.tolist()}), "
                 f"plans {plans.names()}")

    # ------------------------------------------------------------------
    # Per-step execution
    # ------------------------------------------------------------------

    def execute(self) -> TopBoundarySolution:
        """Gather sampling-plane velocity, solve, and write the top boundary."""
        self.initialize()

        mesh = self.mesh
        dist = self.distribution
        velocity = mesh.field("velocity")

        samples = dist.gather([velocity[rows] for rows in dist.sample_rows])
        u_avg = samples.mean(axis=0)
        w_samp = samples[:, 2]

        u_bc, v_bc, w_bc = self.solver.solve(w_samp, u_avg)
        top_velocity = np.stack([u_bc, v_bc, w_bc], axis=1)

        bc_velocity = mesh.field("bc_velocity")
        for rows, values in zip(dist.top_rows, dist.scatter_top(top_velocity)):
            bc_velocity[rows] = values
        # The lateral inflow condition owns the edges of the top plane
        bc_velocity[self._edge_rows] = u_avg

        density = mesh.field("density")
        area = mesh.field("exposed_area_vector")
        mass_flow = mesh.field("open_mass_flow_rate")
        momentum_flux = mesh.field("top_momentum_flux")

        net_mass_flow = 0.0
        for rows, below in zip(dist.top_rows, dist.below_rows):
            mdot, flux = _open_boundary_flux_jit(
                np.ascontiguousarray(density[rows]),
                np.ascontiguousarray(area[rows]),
                np.ascontiguousarray(bc_velocity[rows]),
                np.ascontiguousarray(velocity[below]))
            mass_flow[rows] = mdot
            momentum_flux[rows] = flux
            net_mass_flow += float(mdot.sum())

        log.debug(f"Open-top BC: u_avg={u_avg}, max|w_sample|="
                  f"{np.max(np.abs(w_samp)):.4g}, net mass flow={net_mass_flow:.4g}")

        return TopBoundarySolution(
            u=u_bc, v=v_bc, w=w_bc, w_sample=w_samp, u_avg=u_avg,
            net_mass_flow=net_mass_flow)
