"""Tests for YAML configuration loading."""

from pathlib import Path

import pytest

from abltop.config import SimConfig, load_config

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


def write_yaml(tmp_path, text):
    path = tmp_path / "case.yaml"
    path.write_text(text)
    return str(path)


def test_empty_file_gives_defaults(tmp_path):
    cfg = load_config(write_yaml(tmp_path, ""))
    assert cfg == SimConfig()
    assert cfg.top_bc.horizontal_bcs == ["periodic", "periodic"]


def test_sections_override_defaults(tmp_path):
    cfg = load_config(write_yaml(tmp_path, """
mesh:
  nx: 61
  ny: 40
  n_partitions: 3
top_bc:
  horizontal_bcs: [inflow, periodic]
  z_sample: 880.0
  blend_ramp: linear
time:
  dt: 5.0
  t_end: 100.0
"""))
    assert (cfg.mesh.nx, cfg.mesh.ny, cfg.mesh.n_partitions) == (61, 40, 3)
    assert cfg.mesh.Lz == 1000.0
    assert cfg.top_bc.horizontal_bcs == ["inflow", "periodic"]
    assert cfg.top_bc.blend_ramp == "linear"
    assert cfg.top_bc.blend_fraction == 0.1
    assert cfg.time.dt == 5.0


def test_unknown_key_rejected(tmp_path):
    with pytest.raises(TypeError):
        load_config(write_yaml(tmp_path, "mesh:\n  nq: 4\n"))


@pytest.mark.parametrize("text", [
    "time:\n  dt: 0.0\n",
    "top_bc:\n  z_sample: 1000.0\n",
    "top_bc:\n  horizontal_bcs: [periodic]\n",
    "mesh:\n  nx: 4\n  n_partitions: 5\n",
])
def test_invalid_values_rejected(tmp_path, text):
    with pytest.raises(AssertionError):
        load_config(write_yaml(tmp_path, text))


def test_shipped_configs_load():
    for name in ("abltop_periodic.yaml", "abltop_inflow.yaml"):
        cfg = load_config(str(CONFIG_DIR / name))
        assert 0.0 < cfg.top_bc.z_sample < cfg.mesh.Lz
