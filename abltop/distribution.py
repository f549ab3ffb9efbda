"""Partition-aware gather/scatter of sampling-plane and top-plane values.

Every partition contributes the sampling-plane values it owns. The
contributions are laid end to end at offsets ``displs`` (like an MPI
Gatherv receive buffer) and then reordered into canonical grid order with
``sample_index``. Scattering the top-plane solution goes the other way via
each partition's canonical top indices.
"""

from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

import numpy as np

from .errors import DistributionMismatchError
from .indexing import NodeMaps, _frozen


@dataclass(frozen=True)
class SampleDistribution:
    """Static gather/scatter layout, built once per run.

    counts[p]         number of sampling-plane values owned by partition p
    displs[p]         offset of partition p in the gathered buffer
    sample_index      canonical index of every gathered buffer position
    sample_rows[p]    storage rows of partition p's sampling nodes
    top_index[p]      canonical index of each top node owned by partition p
    top_rows[p]       storage rows of those top nodes
    below_rows[p]     storage rows of the node one level below each of them
    """
    counts: np.ndarray
    displs: np.ndarray
    sample_index: np.ndarray
    sample_rows: Tuple[np.ndarray, ...]
    top_index: Tuple[np.ndarray, ...]
    top_rows: Tuple[np.ndarray, ...]
    below_rows: Tuple[np.ndarray, ...]

    @property
    def n_partitions(self) -> int:
        return len(self.counts)

    @property
    def n_total(self) -> int:
        return int(self.counts.sum())

    def gather(self, contributions: Sequence[np.ndarray]) -> np.ndarray:
        """Collect per-partition sampling values into one canonical array.

        Values may be scalars per node (shape (n,)) or vectors (n, ncomp).
        """
        if len(contributions) != self.n_partitions:
            raise DistributionMismatchError(
                f"expected contributions from {self.n_partitions} partitions, "
                f"got {len(contributions)}")

        first = np.asarray(contributions[0])
        buf = np.empty((self.n_total,) + first.shape[1:], dtype=first.dtype)
        for p, values in enumerate(contributions):
            values = np.asarray(values)
            if len(values) != self.counts[p]:
                raise DistributionMismatchError(
                    f"partition {p} contributed {len(values)} sampling values, "
                    f"expected {self.counts[p]}")
            start = self.displs[p]
            buf[start:start + self.counts[p]] = values

        out = np.empty_like(buf)
        out[self.sample_index] = buf
        return out

    def scatter_samples(self, canonical: np.ndarray) -> List[np.ndarray]:
        """Inverse of gather: per-partition slices of a canonical plane array."""
        return [canonical[self.sample_index[d:d + c]]
                for d, c in zip(self.displs, self.counts)]

    def scatter_top(self, canonical: np.ndarray) -> List[np.ndarray]:
        """Per-partition values of a canonical top-plane array."""
        return [canonical[index] for index in self.top_index]


def _check_complete(index_parts, n_plane, name):
    owned = np.bincount(np.concatenate(index_parts), minlength=n_plane)
    if len(owned) != n_plane or np.any(owned != 1):
        n_bad = int(np.count_nonzero(owned[:n_plane] != 1))
        raise DistributionMismatchError(
            f"{name} plane ownership is inconsistent: {n_bad} of {n_plane} "
            "nodes are not owned by exactly one partition")


def plan_distribution(partitions, node_maps: NodeMaps,
                      rows_of: Callable[[np.ndarray], np.ndarray]) -> SampleDistribution:
    """Work out which partition owns which sampling and top nodes.

    node_maps gives the canonical node ids of each plane; rows_of maps node
    ids to storage rows (StructuredMesh.rows). Each partition's share is
    kept in canonical order.
    """
    if len(partitions) == 0:
        raise DistributionMismatchError("mesh has no partitions to gather from")

    sample = rows_of(node_maps.sample)
    top = rows_of(node_maps.top)
    below = rows_of(node_maps.below_top)
    n_plane = len(sample)

    sample_rows, sample_parts = [], []
    top_rows, top_parts, below_rows = [], [], []

    for part in partitions:
        owned = np.asarray(part.rows)

        s_idx = np.flatnonzero(np.isin(sample, owned))
        sample_rows.append(_frozen(sample[s_idx]))
        sample_parts.append(_frozen(s_idx))

        t_idx = np.flatnonzero(np.isin(top, owned))
        top_rows.append(_frozen(top[t_idx]))
        top_parts.append(_frozen(t_idx))
        below_rows.append(_frozen(below[t_idx]))

    _check_complete(sample_parts, n_plane, "sampling")
    _check_complete(top_parts, n_plane, "top boundary")

    counts = np.array([len(s) for s in sample_parts], dtype=np.int64)
    displs = np.zeros_like(counts)
    displs[1:] = np.cumsum(counts)[:-1]

    return SampleDistribution(
        counts=_frozen(counts),
        displs=_frozen(displs),
        sample_index=_frozen(np.concatenate(sample_parts)),
        sample_rows=tuple(sample_rows),
        top_index=tuple(top_parts),
        top_rows=tuple(top_rows),
        below_rows=tuple(below_rows),
    )
