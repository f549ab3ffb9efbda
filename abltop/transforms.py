"""Spectral transform plans for the potential-flow solve.

A plan fixes the kind of transform, its length and axis, and the direction.
Plans are built once for the active regime and applied unchanged every
step.

Sine and cosine transforms are the type-I real-to-real transforms on the
node grid of an inflow direction. DCT-I acts on all n nodes including both
edges. DST-I acts on the n - 2 interior nodes, because a sine series
vanishes at the edges. scipy's default ("backward") normalisation is used
throughout, so that idct(dct(x)) == x and idst(dst(x)) == x.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import List, Optional

import numpy as np
import scipy.fft as sfft

from .regime import Regime


class TransformKind(Enum):
    FOURIER_2D = "fourier2d"
    FOURIER = "fourier"
    SINE = "sine"
    COSINE = "cosine"


@dataclass(frozen=True)
class TransformPlan:
    """One reusable transform of fixed kind, extent, axis and direction."""
    kind: TransformKind
    n: int
    axis: int = 0
    forward: bool = True
    workers: Optional[int] = None
    m: int = 0  # second extent, 2-D plans only

    def __call__(self, data: np.ndarray) -> np.ndarray:
        if self.kind is TransformKind.FOURIER_2D:
            if data.shape != (self.n, self.m):
                raise ValueError(
                    f"2-D Fourier plan sized for ({self.n}, {self.m}), got shape {data.shape}")
            func = sfft.fft2 if self.forward else sfft.ifft2
            return func(data, axes=(0, 1), workers=self.workers)

        if data.shape[self.axis] != self.n:
            raise ValueError(
                f"{self.kind.value} plan sized for {self.n} points along axis "
                f"{self.axis}, got shape {data.shape}")

        if self.kind is TransformKind.FOURIER:
            func = sfft.fft if self.forward else sfft.ifft
            return func(data, axis=self.axis, workers=self.workers)
        if self.kind is TransformKind.COSINE:
            func = sfft.dct if self.forward else sfft.idct
        else:
            func = sfft.dst if self.forward else sfft.idst
        return func(data, type=1, axis=self.axis, workers=self.workers)


@dataclass(frozen=True)
class TransformPlans:
    """The plan set for one regime; plans the regime does not need are None."""
    fourier2d_f: Optional[TransformPlan] = None
    fourier2d_b: Optional[TransformPlan] = None
    fourier_y_f: Optional[TransformPlan] = None
    fourier_y_b: Optional[TransformPlan] = None
    cos_x_f: Optional[TransformPlan] = None
    cos_x_b: Optional[TransformPlan] = None
    sin_x_f: Optional[TransformPlan] = None
    sin_x_b: Optional[TransformPlan] = None
    cos_y_f: Optional[TransformPlan] = None
    cos_y_b: Optional[TransformPlan] = None
    sin_y_f: Optional[TransformPlan] = None
    sin_y_b: Optional[TransformPlan] = None

    def names(self) -> List[str]:
        """Names of the plans that were built."""
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]


def _pair(kind, n, axis, workers, m=0):
    return (TransformPlan(kind, n, axis, True, workers, m),
            TransformPlan(kind, n, axis, False, workers, m))


def build_transform_plans(regime: Regime, imax: int, jmax: int,
                          workers: Optional[int] = None) -> TransformPlans:
    """Build the minimal plan set for regime on an (imax, jmax) plane."""
    plans = {}
    if regime is Regime.PERIODIC_PERIODIC:
        plans["fourier2d_f"], plans["fourier2d_b"] = _pair(
            TransformKind.FOURIER_2D, imax, 0, workers, m=jmax)
        return TransformPlans(**plans)

    # x is an inflow direction in both remaining regimes
    plans["cos_x_f"], plans["cos_x_b"] = _pair(TransformKind.COSINE, imax, 0, workers)
    plans["sin_x_f"], plans["sin_x_b"] = _pair(TransformKind.SINE, imax - 2, 0, workers)

    if regime is Regime.INFLOW_PERIODIC:
        plans["fourier_y_f"], plans["fourier_y_b"] = _pair(
            TransformKind.FOURIER, jmax, 1, workers)
    else:
        plans["cos_y_f"], plans["cos_y_b"] = _pair(TransformKind.COSINE, jmax, 1, workers)
        plans["sin_y_f"], plans["sin_y_b"] = _pair(TransformKind.SINE, jmax - 2, 1, workers)

    return TransformPlans(**plans)
