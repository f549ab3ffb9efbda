"""Pytest configuration and fixtures for the open-top boundary condition tests."""

import numpy as np
import pytest

from abltop.boundary import ABLTopBoundaryCondition
from abltop.indexing import GridFootprint
from abltop.mesh import StructuredMesh


@pytest.fixture
def periodic_mesh():
    """8x8 doubly periodic mesh, levels every 0.1 up to 0.5, three partitions."""
    return StructuredMesh(8, 8, 6, Lx=1.0, Ly=1.0, Lz=0.5, n_partitions=3)


@pytest.fixture
def inflow_mesh():
    """Inflow in x (9 nodes over 800 m), periodic in y, two partitions."""
    return StructuredMesh(9, 6, 5, Lx=800.0, Ly=600.0, Lz=400.0,
                          periodic_x=False, periodic_y=True, n_partitions=2)


@pytest.fixture
def make_bc():
    """Factory for a boundary condition on a mesh with matching grid_dims."""
    def _make(mesh, horizontal_bcs=("periodic", "periodic"), z_sample=0.4, **kwargs):
        return ABLTopBoundaryCondition(mesh, (mesh.nx, mesh.ny), horizontal_bcs,
                                       z_sample, **kwargs)
    return _make


@pytest.fixture
def footprints():
    """Footprints for each regime: 8x8 plane with delta_z = 0.1."""
    return {
        "periodic-periodic": GridFootprint(8, 8, 6, Lx=1.0, Ly=1.0,
                                           z_sample=0.4, z_top=0.5, k_sample=4),
        "inflow-periodic": GridFootprint(9, 8, 6, Lx=1.0, Ly=1.0,
                                         z_sample=0.4, z_top=0.5, k_sample=4),
        "inflow-inflow": GridFootprint(9, 7, 6, Lx=1.0, Ly=0.75,
                                       z_sample=0.4, z_top=0.5, k_sample=4),
    }


def plane_coords(footprint, x_periodic, y_periodic):
    """(imax, jmax) node coordinates of a footprint's horizontal plane."""
    if x_periodic:
        x = np.arange(footprint.imax) * footprint.Lx / footprint.imax
    else:
        x = np.linspace(0.0, footprint.Lx, footprint.imax)
    if y_periodic:
        y = np.arange(footprint.jmax) * footprint.Ly / footprint.jmax
    else:
        y = np.linspace(0.0, footprint.Ly, footprint.jmax)
    return np.meshgrid(x, y, indexing="ij")


@pytest.fixture
def plane_xy():
    return plane_coords
