"""Tests for structured-grid discovery and node maps."""

import numpy as np
import pytest

from abltop.errors import ConfigurationError, GeometryError
from abltop.indexing import build_lookup, build_node_maps, discover_footprint
from abltop.mesh import StructuredMesh


class TestLookup:
    def test_lookup_inverts_grid_index(self, periodic_mesh):
        lookup = build_lookup(periodic_mesh.grid_index)
        assert lookup.shape == (8, 8, 6)
        i, j, k = 3, 5, 2
        assert tuple(periodic_mesh.grid_index[lookup[i, j, k]]) == (i, j, k)

    def test_duplicate_index_rejected(self, periodic_mesh):
        gi = periodic_mesh.grid_index.copy()
        gi[1] = gi[0]
        with pytest.raises(GeometryError, match="share"):
            build_lookup(gi)

    def test_missing_node_rejected(self, periodic_mesh):
        # row 0 is node (0, 0, 0), so the block extents stay 8x8x6
        gi = periodic_mesh.grid_index[1:]
        with pytest.raises(GeometryError, match="missing"):
            build_lookup(gi)


class TestFootprint:
    def test_periodic_footprint(self, periodic_mesh):
        lookup = build_lookup(periodic_mesh.grid_index)
        fp = discover_footprint(periodic_mesh.coords, lookup, True, True, 0.4)
        assert (fp.imax, fp.jmax, fp.kmax) == (8, 8, 6)
        assert np.isclose(fp.Lx, 1.0) and np.isclose(fp.Ly, 1.0)
        assert fp.k_sample == 4
        assert np.isclose(fp.delta_z, 0.1)

    def test_inflow_footprint_counts_both_edges(self, inflow_mesh):
        lookup = build_lookup(inflow_mesh.grid_index)
        fp = discover_footprint(inflow_mesh.coords, lookup, False, True, 290.0)
        assert np.isclose(fp.Lx, 800.0)
        assert np.isclose(fp.Ly, 600.0)
        # levels at 0, 100, 200, 300, 400: closest below the top is 300
        assert fp.k_sample == 3
        assert np.isclose(fp.delta_z, 100.0)

    def test_stretched_levels(self):
        mesh = StructuredMesh(6, 6, 12, 600.0, 600.0, 1000.0,
                              stretch_factor=1.1, nz_uniform=4)
        lookup = build_lookup(mesh.grid_index)
        fp = discover_footprint(mesh.coords, lookup, True, True, 850.0)
        assert np.isclose(fp.z_top, 1000.0)
        assert fp.z_sample == mesh.z[fp.k_sample]
        assert fp.k_sample <= 10

    def test_sample_at_or_above_top_rejected(self, periodic_mesh):
        lookup = build_lookup(periodic_mesh.grid_index)
        with pytest.raises(ConfigurationError):
            discover_footprint(periodic_mesh.coords, lookup, True, True, 0.5)

    @pytest.mark.parametrize("z_sample", [-50.0, float("nan")])
    def test_sample_below_bottom_or_undefined_rejected(self, periodic_mesh, z_sample):
        lookup = build_lookup(periodic_mesh.grid_index)
        with pytest.raises(ConfigurationError):
            discover_footprint(periodic_mesh.coords, lookup, True, True, z_sample)

    def test_sample_at_bottom_accepted(self, periodic_mesh):
        lookup = build_lookup(periodic_mesh.grid_index)
        fp = discover_footprint(periodic_mesh.coords, lookup, True, True, 0.0)
        assert fp.k_sample == 0

    def test_non_uniform_spacing_rejected(self, periodic_mesh):
        lookup = build_lookup(periodic_mesh.grid_index)
        coords = periodic_mesh.coords.copy()
        coords[lookup[3, 4, 4], 0] += 0.01
        with pytest.raises(GeometryError, match="uniformly spaced in x"):
            discover_footprint(coords, lookup, True, True, 0.4)

    def test_non_flat_sampling_plane_rejected(self, periodic_mesh):
        lookup = build_lookup(periodic_mesh.grid_index)
        coords = periodic_mesh.coords.copy()
        coords[lookup[2, 2, 4], 2] += 0.005
        with pytest.raises(GeometryError, match="not flat"):
            discover_footprint(coords, lookup, True, True, 0.4)

    def test_inflow_direction_needs_three_nodes(self):
        mesh = StructuredMesh(2, 4, 4, 100.0, 100.0, 100.0, periodic_x=False)
        lookup = build_lookup(mesh.grid_index)
        with pytest.raises(GeometryError, match="at least 3"):
            discover_footprint(mesh.coords, lookup, False, True, 60.0)


class TestNodeMaps:
    def test_canonical_order(self, periodic_mesh):
        lookup = build_lookup(periodic_mesh.grid_index)
        fp = discover_footprint(periodic_mesh.coords, lookup, True, True, 0.4)
        maps = build_node_maps(periodic_mesh.ids, lookup, fp, True, True)

        for ids, k in ((maps.sample, 4), (maps.top, 5), (maps.below_top, 4)):
            ijk = periodic_mesh.grid_index[periodic_mesh.rows(ids)]
            flat = ijk[:, 0] * fp.jmax + ijk[:, 1]
            assert np.array_equal(flat, np.arange(fp.n_plane))
            assert np.all(ijk[:, 2] == k)

        assert len(maps.x_inflow) == 0 and len(maps.y_inflow) == 0

    def test_storage_order_is_not_canonical(self, periodic_mesh):
        lookup = build_lookup(periodic_mesh.grid_index)
        fp = discover_footprint(periodic_mesh.coords, lookup, True, True, 0.4)
        maps = build_node_maps(periodic_mesh.ids, lookup, fp, True, True)
        assert not np.all(np.diff(maps.sample) > 0)

    def test_inflow_edges(self, inflow_mesh):
        lookup = build_lookup(inflow_mesh.grid_index)
        fp = discover_footprint(inflow_mesh.coords, lookup, False, True, 290.0)
        maps = build_node_maps(inflow_mesh.ids, lookup, fp, False, True)

        ijk = inflow_mesh.grid_index[inflow_mesh.rows(maps.x_inflow)]
        assert len(ijk) == 2 * fp.jmax
        assert set(ijk[:, 0]) == {0, fp.imax - 1}
        assert np.all(ijk[:, 2] == fp.kmax - 1)
        assert len(maps.y_inflow) == 0

    def test_maps_are_read_only(self, periodic_mesh):
        lookup = build_lookup(periodic_mesh.grid_index)
        fp = discover_footprint(periodic_mesh.coords, lookup, True, True, 0.4)
        maps = build_node_maps(periodic_mesh.ids, lookup, fp, True, True)
        with pytest.raises(ValueError):
            maps.top[0] = 0
