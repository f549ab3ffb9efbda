"""Demonstration driver: impose terrain-forced flow and run the open-top BC."""

import os

import numpy as np

from .boundary import ABLTopBoundaryCondition, TopBoundarySolution
from .config import SimConfig
from .mesh import StructuredMesh
from .output import TopBoundaryWriter


class TopBCRunner:
    """Owns the mesh and the boundary condition and runs the step loop.

    The interior flow is prescribed rather than solved: a mean wind plus the
    vertical velocity induced by flow over a Gaussian hill,

        w = (U . grad h) * exp(-z / H)

    ramped in linearly over the spin-up time. Each step the top boundary
    condition is executed on that field.
    """

    def __init__(self, cfg: SimConfig):
        self.cfg = cfg
        mcfg = cfg.mesh
        bcs = [bc.lower() for bc in cfg.top_bc.horizontal_bcs]

        self.mesh = StructuredMesh(
            mcfg.nx, mcfg.ny, mcfg.nz, mcfg.Lx, mcfg.Ly, mcfg.Lz,
            periodic_x=bcs[0] == "periodic", periodic_y=bcs[1] == "periodic",
            n_partitions=mcfg.n_partitions,
            stretch_factor=mcfg.stretch_factor, nz_uniform=mcfg.nz_uniform,
        )
        self.mesh.field("density")[:] = cfg.flow.density

        self.bc = ABLTopBoundaryCondition.from_config(
            self.mesh, (mcfg.nx, mcfg.ny), cfg.top_bc)
        self.bc.initialize_connectivity()

        self._w_shape = self._terrain_w_shape()
        self.time = 0.0
        self.step_count = 0

    def _terrain_w_shape(self) -> np.ndarray:
        """Terrain-induced w per node at full forcing strength."""
        flow = self.cfg.flow
        x, y, z = self.mesh.coords.T
        sigma2 = flow.hill_halfwidth ** 2
        dx = x - flow.hill_x
        dy = y - flow.hill_y
        h = flow.hill_height * np.exp(-(dx * dx + dy * dy) / (2.0 * sigma2))
        dh_dx = -dx / sigma2 * h
        dh_dy = -dy / sigma2 * h
        return (flow.u_mean * dh_dx + flow.v_mean * dh_dy) * np.exp(-z / flow.decay_height)

    def impose_flow(self, time: float):
        """Set the mesh velocity field for the given time."""
        flow = self.cfg.flow
        if flow.spinup_time > 0:
            ramp = min(1.0, time / flow.spinup_time)
        else:
            ramp = 1.0

        velocity = self.mesh.field("velocity")
        velocity[:, 0] = flow.u_mean
        velocity[:, 1] = flow.v_mean
        velocity[:, 2] = ramp * self._w_shape

    def step(self) -> TopBoundarySolution:
        """Advance one timestep."""
        self.time += self.cfg.time.dt
        self.step_count += 1
        self.impose_flow(self.time)
        return self.bc.execute()

    def run(self):
        """Run the full simulation."""
        dt = self.cfg.time.dt
        t_end = self.cfg.time.t_end
        output_interval = self.cfg.time.output_interval
        next_output_time = 0.0
        output_dir = self.cfg.output.output_dir

        self.impose_flow(self.time)
        solution = self.bc.execute()

        writer = TopBoundaryWriter(output_dir, self.bc.footprint,
                                   self.mesh.x, self.mesh.y)

        n_steps = int(t_end / dt)
        print(f"Starting run: {n_steps} steps, dt={dt} s, t_end={t_end} s  "
              f"regime={self.bc.regime.value}  "
              f"delta_z={self.bc.footprint.delta_z:.1f} m")

        # Progress log file for monitoring long runs
        log_path = os.path.join(output_dir, "progress.log")
        log_interval = max(1, n_steps // 200)  # ~200 log entries total

        def _log_progress(n, msg):
            with open(log_path, "a") as lf:
                lf.write(f"step {n}/{n_steps}  {msg}\n")

        # Clear old log
        with open(log_path, "w") as lf:
            lf.write(f"# abltop progress: {n_steps} steps, dt={dt}, "
                     f"regime={self.bc.regime.value}\n")

        writer.write(solution, self.time)
        next_output_time += output_interval

        for n in range(1, n_steps + 1):
            solution = self.step()

            if n % log_interval == 0:
                _log_progress(n, f"t={self.time:.1f}s  "
                              f"max|w_top|={np.max(np.abs(solution.w)):.4f}")

            if self.time >= next_output_time - 0.5 * dt:
                writer.write(solution, self.time)
                next_output_time += output_interval

                print(f"  t={self.time:8.1f} s  "
                      f"max|w_sample|={np.max(np.abs(solution.w_sample)):.3f} m/s  "
                      f"max|w_top|={np.max(np.abs(solution.w)):.3f} m/s  "
                      f"net outflow={solution.net_mass_flow:.3e} kg/s")

        writer.close()
        _log_progress(n_steps, "COMPLETE")
        print(f"Run complete. Output in {output_dir}/")
        return writer.filepath
