"""Post-run visualization of the top-boundary output."""

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from scipy.io import netcdf_file


def plot_results(filepath: str, output_dir: str = "output"):
    """Generate diagnostic plots from the top-boundary NetCDF output."""
    nc = netcdf_file(filepath, "r", mmap=False)

    time = nc.variables["time"].data.copy()
    x = nc.variables["x"].data.copy()
    y = nc.variables["y"].data.copy()
    u_top = nc.variables["u_top"].data.copy()          # (nt, ny, nx)
    v_top = nc.variables["v_top"].data.copy()          # (nt, ny, nx)
    w_top = nc.variables["w_top"].data.copy()          # (nt, ny, nx)
    w_sample = nc.variables["w_sample"].data.copy()    # (nt, ny, nx)
    u_avg = nc.variables["u_avg"].data.copy()          # (nt, 3)
    net_mass_flow = nc.variables["net_mass_flow"].data.copy()
    nc.close()

    x_km = x / 1000.0
    y_km = y / 1000.0
    last = len(time) - 1
    t_min = time[last] / 60.0

    # --- Plot 1: sampling plane vs top boundary w ---
    fig, axes = plt.subplots(1, 2, figsize=(12, 5))
    wmax = max(np.max(np.abs(w_sample[last])), 1e-6)
    for ax, data, title in ((axes[0], w_sample[last], "w sampling plane"),
                            (axes[1], w_top[last], "w top boundary")):
        pc = ax.pcolormesh(x_km, y_km, data, shading="auto", cmap="RdBu_r",
                           vmin=-wmax, vmax=wmax)
        fig.colorbar(pc, ax=ax, label="m/s")
        ax.set_title(f"{title}  t={t_min:.1f} min")
        ax.set_xlabel("x (km)")
        ax.set_ylabel("y (km)")
    fig.tight_layout()
    fname = f"{output_dir}/w_sample_vs_top.png"
    fig.savefig(fname, dpi=150)
    plt.close(fig)
    print(f"  Saved {fname}")

    # --- Plot 2: horizontal velocity perturbation at the top ---
    fig, axes = plt.subplots(1, 2, figsize=(12, 5))
    for ax, data, mean, title in ((axes[0], u_top[last], u_avg[last, 0], "u' top"),
                                  (axes[1], v_top[last], u_avg[last, 1], "v' top")):
        pert = data - mean
        pmax = max(np.max(np.abs(pert)), 1e-6)
        pc = ax.pcolormesh(x_km, y_km, pert, shading="auto", cmap="RdBu_r",
                           vmin=-pmax, vmax=pmax)
        fig.colorbar(pc, ax=ax, label="m/s")
        ax.set_title(f"{title}  t={t_min:.1f} min")
        ax.set_xlabel("x (km)")
        ax.set_ylabel("y (km)")
    fig.tight_layout()
    fname = f"{output_dir}/uv_top_perturbation.png"
    fig.savefig(fname, dpi=150)
    plt.close(fig)
    print(f"  Saved {fname}")

    # --- Plot 3: net mass flow through the top ---
    fig, ax = plt.subplots(figsize=(8, 4))
    ax.plot(time / 60.0, net_mass_flow, "b-", linewidth=1.5)
    ax.axhline(0.0, color="k", linewidth=0.5)
    ax.set_xlabel("Time (min)")
    ax.set_ylabel("Net outflow (kg/s)")
    ax.set_title("Mass Flow Through Top Boundary")
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    fname = f"{output_dir}/net_mass_flow.png"
    fig.savefig(fname, dpi=150)
    plt.close(fig)
    print(f"  Saved {fname}")
