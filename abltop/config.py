"""Configuration dataclasses parsed from YAML."""

from dataclasses import dataclass, field
from typing import List, Optional

import yaml


@dataclass
class MeshConfig:
    nx: int = 32
    ny: int = 32
    nz: int = 41
    Lx: float = 6000.0
    Ly: float = 6000.0
    Lz: float = 1000.0
    n_partitions: int = 4  # column slabs along x
    stretch_factor: float = 1.0  # 1.0 = uniform; >1.0 = geometric stretch ratio
    nz_uniform: int = 0  # uniform-dz intervals near surface before stretching begins


@dataclass
class TopBCConfig:
    horizontal_bcs: List[str] = field(
        default_factory=lambda: ["periodic", "periodic"]
    )  # (x, y), each "periodic" or "inflow"
    z_sample: float = 900.0  # m, sampling plane elevation
    blend_fraction: float = 0.1  # fraction of domain over which inflow edges blend in
    blend_ramp: str = "smooth"  # "smooth" (cos^2) or "linear"
    spacing_tolerance: float = 1e-6  # relative tolerance for uniform spacing checks
    fft_workers: Optional[int] = 1


@dataclass
class FlowConfig:
    u_mean: float = 10.0
    v_mean: float = 0.0
    density: float = 1.225  # kg/m^3
    hill_height: float = 100.0  # m, Gaussian hill driving the vertical motion
    hill_halfwidth: float = 600.0  # m
    hill_x: float = 3000.0
    hill_y: float = 3000.0
    decay_height: float = 2000.0  # m, e-folding height of terrain-induced w
    spinup_time: float = 600.0  # s, forcing ramps in linearly over this time


@dataclass
class TimeConfig:
    dt: float = 1.0
    t_end: float = 3600.0
    output_interval: float = 300.0


@dataclass
class OutputConfig:
    output_dir: str = "output"


@dataclass
class SimConfig:
    mesh: MeshConfig = field(default_factory=MeshConfig)
    top_bc: TopBCConfig = field(default_factory=TopBCConfig)
    flow: FlowConfig = field(default_factory=FlowConfig)
    time: TimeConfig = field(default_factory=TimeConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def load_config(path: str) -> SimConfig:
    """Load and validate a YAML configuration file into SimConfig."""
    with open(path, "r") as f:
        raw = yaml.safe_load(f)

    if raw is None:
        return SimConfig()

    cfg = SimConfig()

    if "mesh" in raw:
        cfg.mesh = MeshConfig(**raw["mesh"])
    if "top_bc" in raw:
        cfg.top_bc = TopBCConfig(**raw["top_bc"])
    if "flow" in raw:
        cfg.flow = FlowConfig(**raw["flow"])
    if "time" in raw:
        cfg.time = TimeConfig(**raw["time"])
    if "output" in raw:
        cfg.output = OutputConfig(**raw["output"])

    # Validate
    assert cfg.mesh.nx > 1 and cfg.mesh.ny > 1, "nx and ny must exceed 1"
    assert cfg.mesh.nz > 2, "nz must exceed 2"
    assert cfg.mesh.Lz > 0, "Lz must be positive"
    assert 1 <= cfg.mesh.n_partitions <= cfg.mesh.nx, \
        f"n_partitions must be in [1, nx], got {cfg.mesh.n_partitions}"
    assert len(cfg.top_bc.horizontal_bcs) == 2, \
        f"horizontal_bcs needs an (x, y) pair, got {cfg.top_bc.horizontal_bcs}"
    assert 0 < cfg.top_bc.z_sample < cfg.mesh.Lz, "z_sample must lie inside (0, Lz)"
    assert cfg.time.dt > 0, "dt must be positive"
    assert cfg.time.t_end > cfg.time.dt, "t_end must exceed dt"

    return cfg
