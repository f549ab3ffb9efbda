"""Node-centred structured box mesh, partitioned into column slabs.

This stands in for the outer flow solver's mesh: it owns node ids,
coordinates, the (i, j, k) grid-index tag of every node and the nodal
fields the top boundary condition reads and writes.
"""

from typing import Dict, List

import numpy as np


class MeshPartition:
    """The set of storage rows owned by one worker.

    Partitions own whole vertical columns, so the sampling-plane node and
    the top-boundary node of a column always live on the same partition.
    """

    def __init__(self, rank: int, rows: np.ndarray):
        self.rank = rank
        self.rows = rows

    def __len__(self):
        return len(self.rows)

    def __repr__(self):
        return f"MeshPartition(rank={self.rank}, n_nodes={len(self.rows)})"


class StructuredMesh:
    """Structured node mesh over [0, Lx] x [0, Ly] x [0, Lz].

    Horizontal nodes are uniformly spaced:
      - periodic direction with n nodes: spacing L / n, the node at x = L is
        the periodic image of node 0 and is not stored
      - non-periodic (inflow) direction with n nodes: spacing L / (n - 1),
        both edge nodes are stored

    Vertical levels (nz nodes from 0 to Lz) are uniform, or geometrically
    stretched above nz_uniform levels when stretch_factor > 1.0.

    Storage order is partition by partition, and (k, j, i) inside a
    partition, so it is deliberately unrelated to canonical grid order.
    Node ids are 1-based positions in storage order.
    """

    def __init__(self, nx: int, ny: int, nz: int,
                 Lx: float, Ly: float, Lz: float,
                 periodic_x: bool = True, periodic_y: bool = True,
                 n_partitions: int = 1,
                 stretch_factor: float = 1.0, nz_uniform: int = 0):
        if nx < 2 or ny < 2 or nz < 2:
            raise ValueError("mesh needs at least 2 nodes in every direction")
        if not 1 <= n_partitions <= nx:
            raise ValueError(f"n_partitions must be in [1, {nx}], got {n_partitions}")

        self.nx, self.ny, self.nz = nx, ny, nz
        self.Lx, self.Ly, self.Lz = Lx, Ly, Lz
        self.periodic_x = periodic_x
        self.periodic_y = periodic_y

        self.x = self._build_horizontal(nx, Lx, periodic_x)
        self.y = self._build_horizontal(ny, Ly, periodic_y)
        self.z = self._build_z_levels(nz, Lz, stretch_factor, nz_uniform)

        # Column slabs along x, one per partition
        slabs = np.array_split(np.arange(nx), n_partitions)

        index_blocks = []
        self.partitions: List[MeshPartition] = []
        start = 0
        for rank, slab in enumerate(slabs):
            K, J, I = np.meshgrid(np.arange(nz), np.arange(ny), slab,
                                  indexing="ij")
            block = np.stack([I.ravel(), J.ravel(), K.ravel()], axis=1)
            index_blocks.append(block)
            self.partitions.append(
                MeshPartition(rank, np.arange(start, start + len(block))))
            start += len(block)

        self.grid_index = np.concatenate(index_blocks).astype(np.int64)
        self.n_nodes = len(self.grid_index)
        self.ids = np.arange(1, self.n_nodes + 1, dtype=np.int64)

        self.coords = np.empty((self.n_nodes, 3))
        self.coords[:, 0] = self.x[self.grid_index[:, 0]]
        self.coords[:, 1] = self.y[self.grid_index[:, 1]]
        self.coords[:, 2] = self.z[self.grid_index[:, 2]]

        self._row_of_id = np.full(self.n_nodes + 1, -1, dtype=np.int64)
        self._row_of_id[self.ids] = np.arange(self.n_nodes)

        self.fields: Dict[str, np.ndarray] = {}
        self.register_field("velocity", 3)
        self.register_field("density", 1, value=1.0)
        self.register_field("bc_velocity", 3)
        self.register_field("exposed_area_vector", 3)
        self._fill_top_exposed_area()

    @staticmethod
    def _build_horizontal(n, L, periodic):
        if periodic:
            return np.arange(n) * (L / n)
        return np.linspace(0.0, L, n)

    @staticmethod
    def _build_z_levels(nz, Lz, stretch_factor, nz_uniform):
        """Node elevations with optional geometric stretching aloft.

        The first nz_uniform intervals share the base spacing, every interval
        above grows by stretch_factor, and the whole column is rescaled to
        end exactly at Lz.
        """
        n_int = nz - 1
        if stretch_factor <= 1.0 or nz_uniform >= n_int:
            return np.linspace(0.0, Lz, nz)

        dz_raw = np.ones(n_int)
        n_stretch = n_int - nz_uniform
        dz_raw[nz_uniform:] = stretch_factor ** np.arange(1, n_stretch + 1)
        dz_raw *= Lz / np.sum(dz_raw)

        z = np.zeros(nz)
        z[1:] = np.cumsum(dz_raw)
        z[-1] = Lz
        return z

    def _fill_top_exposed_area(self):
        """Lumped outward (+z) area vector at every top-boundary node."""
        ax = self._lumped_widths(self.x, self.Lx, self.periodic_x)
        ay = self._lumped_widths(self.y, self.Ly, self.periodic_y)

        top = self.grid_index[:, 2] == self.nz - 1
        i = self.grid_index[top, 0]
        j = self.grid_index[top, 1]
        self.fields["exposed_area_vector"][top, 2] = ax[i] * ay[j]

    @staticmethod
    def _lumped_widths(coord, L, periodic):
        n = len(coord)
        if periodic:
            return np.full(n, L / n)
        width = np.full(n, L / (n - 1))
        width[0] *= 0.5
        width[-1] *= 0.5
        return width

    # ------------------------------------------------------------------
    # Field storage
    # ------------------------------------------------------------------

    def register_field(self, name: str, n_components: int = 1,
                       value: float = 0.0) -> np.ndarray:
        """Create a nodal field, or return it if it already exists."""
        if name not in self.fields:
            shape = (self.n_nodes,) if n_components == 1 else (self.n_nodes, n_components)
            self.fields[name] = np.full(shape, value, dtype=float)
        return self.fields[name]

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def field(self, name: str) -> np.ndarray:
        try:
            return self.fields[name]
        except KeyError:
            raise KeyError(f"mesh has no field '{name}'") from None

    def rows(self, ids) -> np.ndarray:
        """Storage rows for an array of node ids."""
        return self._row_of_id[np.asarray(ids, dtype=np.int64)]
