"""Structured-grid discovery and node maps for the open-top boundary condition.

The mesh tags every node with its integer (i, j, k) grid index. From those
tags we recover the grid footprint, pick the sampling plane, check that it
is a uniform Cartesian plane, and build node-id lists in canonical order.

Canonical order for a horizontal plane is row-major over (i, j): the flat
index of node (i, j) is i * jmax + j, which matches a (imax, jmax) array.
"""

import logging
from dataclasses import dataclass

import numpy as np
from numba import njit

from .errors import ConfigurationError, GeometryError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridFootprint:
    """Extents of the structured grid and position of the sampling plane.

    Lx, Ly are periods along periodic directions (n * spacing) and edge-to-edge
    extents along inflow directions ((n - 1) * spacing).
    """
    imax: int
    jmax: int
    kmax: int
    Lx: float
    Ly: float
    z_sample: float
    z_top: float
    k_sample: int = -1

    @property
    def delta_z(self) -> float:
        return self.z_top - self.z_sample

    @property
    def n_plane(self) -> int:
        return self.imax * self.jmax


@dataclass(frozen=True)
class NodeMaps:
    """Node ids of the five node roles, each in canonical grid order."""
    sample: np.ndarray
    top: np.ndarray
    below_top: np.ndarray
    x_inflow: np.ndarray
    y_inflow: np.ndarray


def _frozen(a):
    a = np.ascontiguousarray(a)
    a.flags.writeable = False
    return a


@njit
def _fill_lookup_jit(grid_index, lookup):
    """Scatter storage rows into the (imax, jmax, kmax) lookup.

    Returns the number of nodes whose slot was already taken.
    """
    n_dup = 0
    for row in range(grid_index.shape[0]):
        i = grid_index[row, 0]
        j = grid_index[row, 1]
        k = grid_index[row, 2]
        if lookup[i, j, k] >= 0:
            n_dup += 1
        else:
            lookup[i, j, k] = row
    return n_dup


def build_lookup(grid_index: np.ndarray) -> np.ndarray:
    """Dense (imax, jmax, kmax) array of storage rows from grid-index tags."""
    grid_index = np.ascontiguousarray(grid_index, dtype=np.int64)
    if grid_index.ndim != 2 or grid_index.shape[1] != 3 or len(grid_index) == 0:
        raise GeometryError("grid-index tags must be an (n, 3) integer array")
    if grid_index.min() < 0:
        raise GeometryError("negative structured grid index found")

    dims = grid_index.max(axis=0) + 1
    lookup = np.full(tuple(int(d) for d in dims), -1, dtype=np.int64)
    n_dup = _fill_lookup_jit(grid_index, lookup)

    if n_dup > 0:
        raise GeometryError(f"{n_dup} nodes share a structured grid index")
    n_missing = int(np.count_nonzero(lookup < 0))
    if n_missing > 0:
        raise GeometryError(
            f"structured grid {tuple(lookup.shape)} is missing {n_missing} nodes; "
            "mesh is not a logically Cartesian block")
    return lookup


def _check_flat(z_plane, z_ref, tol, name):
    dev = np.max(np.abs(z_plane - z_ref))
    if dev > tol:
        raise GeometryError(f"{name} plane is not flat (max deviation {dev:.3e} m)")


def _uniform_spacing(coord, axis, tol, name):
    """Return the spacing of a plane coordinate that must vary only along axis."""
    n = coord.shape[axis]
    line = coord[:, 0] if axis == 0 else coord[0, :]
    spacing = (line[-1] - line[0]) / (n - 1)
    if spacing <= 0.0:
        raise GeometryError(f"{name} coordinate does not increase with its grid index")

    idx = np.arange(n).reshape((-1, 1) if axis == 0 else (1, -1))
    expected = line[0] + idx * spacing
    dev = np.max(np.abs(coord - expected))
    if dev > tol:
        raise GeometryError(
            f"sampling plane is not uniformly spaced in {name} "
            f"(max deviation {dev:.3e} m from spacing {spacing:.6g} m)")
    return spacing


def discover_footprint(coords: np.ndarray, lookup: np.ndarray,
                       x_periodic: bool, y_periodic: bool,
                       z_sample: float, tolerance: float = 1e-6) -> GridFootprint:
    """Find the grid footprint and the sampling plane closest to z_sample.

    Raises GeometryError for non-flat planes, non-uniform horizontal spacing,
    too few nodes or a degenerate sampling-to-top distance, and
    ConfigurationError when z_sample is not between the bottom and the top.
    """
    imax, jmax, kmax = lookup.shape
    if kmax < 2:
        raise GeometryError("need at least two vertical levels")
    for n, periodic, name in ((imax, x_periodic, "x"), (jmax, y_periodic, "y")):
        n_min = 2 if periodic else 3
        if n < n_min:
            kind = "periodic" if periodic else "inflow"
            raise GeometryError(f"{kind} direction {name} needs at least {n_min} nodes, got {n}")

    z_column = coords[lookup[0, 0, :], 2]
    if np.any(np.diff(z_column) <= 0.0):
        raise GeometryError("vertical levels do not increase with k")

    Lz = z_column[-1] - z_column[0]
    z_tol = tolerance * max(abs(Lz), 1.0)
    z_top = z_column[-1]
    _check_flat(coords[lookup[:, :, kmax - 1], 2], z_top, z_tol, "top boundary")

    if not np.isfinite(z_sample) or z_sample >= z_top:
        raise ConfigurationError(
            f"sampling plane z={z_sample} must lie below the top boundary z={z_top}")
    if z_sample < z_column[0]:
        raise ConfigurationError(
            f"sampling plane z={z_sample} lies below the bottom of the mesh z={z_column[0]}")

    k_sample = int(np.argmin(np.abs(z_column[:kmax - 1] - z_sample)))
    z_samp = z_column[k_sample]
    plane = lookup[:, :, k_sample]
    _check_flat(coords[plane, 2], z_samp, z_tol, "sampling")

    if z_top - z_samp <= z_tol:
        raise GeometryError("sampling plane coincides with the top boundary")

    x = coords[plane, 0]
    y = coords[plane, 1]
    x_tol = tolerance * max(abs(x[-1, 0] - x[0, 0]), 1.0)
    y_tol = tolerance * max(abs(y[0, -1] - y[0, 0]), 1.0)
    dx = _uniform_spacing(x, 0, x_tol, "x")
    dy = _uniform_spacing(y, 1, y_tol, "y")

    Lx = dx * imax if x_periodic else dx * (imax - 1)
    Ly = dy * jmax if y_periodic else dy * (jmax - 1)

    footprint = GridFootprint(imax=imax, jmax=jmax, kmax=kmax, Lx=Lx, Ly=Ly,
                              z_sample=float(z_samp), z_top=float(z_top),
                              k_sample=k_sample)
    log.info(f"Discovered grid {imax}x{jmax}x{kmax}, Lx={Lx:.6g} m, Ly={Ly:.6g} m, "
             f"sampling level k={k_sample} (z={z_samp:.6g} m), "
             f"delta_z={footprint.delta_z:.6g} m")
    return footprint


def build_node_maps(ids: np.ndarray, lookup: np.ndarray, footprint: GridFootprint,
                    x_periodic: bool, y_periodic: bool) -> NodeMaps:
    """Canonically ordered node ids for the sampling, top and edge node sets."""
    kmax = footprint.kmax
    top = lookup[:, :, kmax - 1]

    if x_periodic:
        x_inflow = np.empty(0, dtype=ids.dtype)
    else:
        x_inflow = ids[top[[0, -1], :].ravel()]
    if y_periodic:
        y_inflow = np.empty(0, dtype=ids.dtype)
    else:
        y_inflow = ids[top[:, [0, -1]].ravel()]

    return NodeMaps(
        sample=_frozen(ids[lookup[:, :, footprint.k_sample].ravel()]),
        top=_frozen(ids[top.ravel()]),
        below_top=_frozen(ids[lookup[:, :, kmax - 2].ravel()]),
        x_inflow=_frozen(x_inflow),
        y_inflow=_frozen(y_inflow),
    )
