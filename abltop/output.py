"""NetCDF output of the top-boundary solution using scipy.io.netcdf."""

import os
from typing import List

import numpy as np
from scipy.io import netcdf_file

from .boundary import TopBoundarySolution
from .indexing import GridFootprint


class TopBoundaryWriter:
    """Accumulates top-plane snapshots in memory and writes a NetCDF file at close."""

    def __init__(self, output_dir: str, footprint: GridFootprint,
                 x: np.ndarray, y: np.ndarray):
        os.makedirs(output_dir, exist_ok=True)
        self.filepath = os.path.join(output_dir, "abltop_output.nc")
        self.footprint = footprint
        self.x = np.asarray(x)
        self.y = np.asarray(y)

        self._times: List[float] = []
        self._u: List[np.ndarray] = []
        self._v: List[np.ndarray] = []
        self._w: List[np.ndarray] = []
        self._w_sample: List[np.ndarray] = []
        self._u_avg: List[np.ndarray] = []
        self._net_mass_flow: List[float] = []

    def _plane(self, values):
        return np.asarray(values).reshape(self.footprint.imax, self.footprint.jmax)

    def write(self, solution: TopBoundarySolution, time: float):
        """Append a snapshot to the in-memory buffer."""
        self._times.append(time)
        self._u.append(self._plane(solution.u).copy())
        self._v.append(self._plane(solution.v).copy())
        self._w.append(self._plane(solution.w).copy())
        self._w_sample.append(self._plane(solution.w_sample).copy())
        self._u_avg.append(np.asarray(solution.u_avg).copy())
        self._net_mass_flow.append(solution.net_mass_flow)

    def close(self):
        """Write all accumulated data to a NetCDF file."""
        nt = len(self._times)
        nc = netcdf_file(self.filepath, "w")

        # --------------------
        # Dimensions
        # --------------------
        nc.createDimension("time", nt)
        nc.createDimension("x", self.footprint.imax)
        nc.createDimension("y", self.footprint.jmax)
        nc.createDimension("component", 3)

        # --------------------
        # Coordinate variables
        # --------------------
        t_var = nc.createVariable("time", "f8", ("time",))
        t_var[:] = np.array(self._times)
        t_var.units = "s"
        t_var.axis = "T"

        x_var = nc.createVariable("x", "f8", ("x",))
        x_var[:] = self.x
        x_var.units = "m"
        x_var.axis = "X"
        x_var.standard_name = "projection_x_coordinate"

        y_var = nc.createVariable("y", "f8", ("y",))
        y_var[:] = self.y
        y_var.units = "m"
        y_var.axis = "Y"
        y_var.standard_name = "projection_y_coordinate"

        nc.z_sample = self.footprint.z_sample
        nc.z_top = self.footprint.z_top

        # --------------------
        # Plane variables
        # NetCDF dimension order: (time, y, x)
        # Solver storage order: (time, x, y)
        # --------------------
        for name, data, long_name in (
                ("u_top", self._u, "x velocity at top boundary"),
                ("v_top", self._v, "y velocity at top boundary"),
                ("w_top", self._w, "vertical velocity at top boundary"),
                ("w_sample", self._w_sample, "vertical velocity on sampling plane")):
            var = nc.createVariable(name, "f8", ("time", "y", "x"))
            var[:] = np.asarray(data).reshape(nt, self.footprint.imax,
                                              self.footprint.jmax).transpose(0, 2, 1)
            var.units = "m s-1"
            var.long_name = long_name
            var.coordinates = "time y x"

        avg_var = nc.createVariable("u_avg", "f8", ("time", "component"))
        avg_var[:] = np.asarray(self._u_avg).reshape(nt, 3)
        avg_var.units = "m s-1"
        avg_var.long_name = "mean velocity over sampling plane"

        mf_var = nc.createVariable("net_mass_flow", "f8", ("time",))
        mf_var[:] = np.array(self._net_mass_flow)
        mf_var.units = "kg s-1"
        mf_var.long_name = "net mass outflow through top boundary"

        nc.close()
