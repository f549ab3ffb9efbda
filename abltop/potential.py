"""Potential-flow solve for the velocity at the open top boundary.

The slab between the sampling plane and the top boundary is treated as
irrotational, incompressible flow. A horizontal mode of wavenumber
magnitude k in the vertical velocity perturbation is extended harmonically
from the sampling plane into the open half-space above it, where it decays
as

    T(k) = w_top / w_sample = 1 / (cosh(k dz) + sinh(k dz)) = exp(-k dz)

The velocity potential of a decaying mode satisfies w = d(phi)/dz = -k phi,
so the horizontal velocity at the top is the horizontal gradient of
phi = -w_top / k:

    Fourier direction:  u_hat = -i kx / k * w_top_hat
    sine/cosine (inflow) direction: the cosine coefficients of w map to sine
    coefficients of u, u_sin = kx / k * w_top_cos

The zero mode carries no perturbation; the mean top velocity is u_avg.
"""

import logging
from typing import Tuple

import numpy as np

from .errors import ConfigurationError
from .indexing import GridFootprint
from .regime import Regime
from .transforms import TransformPlans

log = logging.getLogger(__name__)

BLEND_RAMPS = ("smooth", "linear")


def harmonic_transfer(k, delta_z):
    """Amplitude ratio between top boundary and sampling plane for mode |k|."""
    return np.exp(-np.asarray(k) * delta_z)


def fourier_wavenumbers(n: int, length: float) -> np.ndarray:
    """Angular wavenumbers of an n-point periodic grid of period length."""
    return 2.0 * np.pi * np.fft.fftfreq(n, d=length / n)


def cosine_wavenumbers(n: int, length: float) -> np.ndarray:
    """Angular wavenumbers pi*m/L of the type-I cosine series on n nodes."""
    return np.pi * np.arange(n) / length


def _derivative_wavenumbers(k):
    """Fourier wavenumbers with the unresolvable Nyquist entry zeroed."""
    kd = k.copy()
    if len(kd) % 2 == 0:
        kd[len(kd) // 2] = 0.0
    return kd


def inflow_weights(n: int, blend_fraction: float, ramp: str = "smooth") -> np.ndarray:
    """Weight of the pure mean flow along an inflow direction with n nodes.

    The weight is 1 on both edge nodes and falls to 0 at a distance of
    blend_fraction * L from the edge:

      linear:  w = 1 - d/band
      smooth:  w = cos^2(pi/2 * d/band)

    blend_fraction = 0 disables blending (all weights 0).
    """
    if ramp not in BLEND_RAMPS:
        raise ConfigurationError(f"blend_ramp must be one of {BLEND_RAMPS}, got '{ramp}'")
    if blend_fraction <= 0.0:
        return np.zeros(n)

    idx = np.arange(n)
    r = np.minimum(idx, n - 1 - idx) / (n - 1) / blend_fraction

    weights = np.zeros(n)
    inside = r < 1.0
    if ramp == "linear":
        weights[inside] = 1.0 - r[inside]
    else:
        weights[inside] = np.cos(0.5 * np.pi * r[inside]) ** 2
    return weights


class PotentialFlowSolver:
    """Spectral solve of the top-boundary velocity for one regime.

    Everything that depends only on the geometry (wavenumbers, transfer
    function, blend factor) is computed here once; solve() only transforms.
    """

    def __init__(self, regime: Regime, footprint: GridFootprint,
                 plans: TransformPlans, blend_fraction: float = 0.1,
                 blend_ramp: str = "smooth"):
        if not footprint.delta_z > 0.0:
            raise ConfigurationError(
                f"sampling plane must lie below the top boundary "
                f"(delta_z = {footprint.delta_z})")

        self.regime = regime
        self.footprint = footprint
        self.plans = plans
        imax, jmax = footprint.imax, footprint.jmax

        if regime.x_periodic:
            kx = fourier_wavenumbers(imax, footprint.Lx)
            self._kx = _derivative_wavenumbers(kx)[:, None]
            x_weight = np.zeros(imax)
        else:
            kx = cosine_wavenumbers(imax, footprint.Lx)
            self._kx = kx[:, None]
            x_weight = inflow_weights(imax, blend_fraction, blend_ramp)

        if regime.y_periodic:
            ky = fourier_wavenumbers(jmax, footprint.Ly)
            self._ky = _derivative_wavenumbers(ky)[None, :]
            y_weight = np.zeros(jmax)
        else:
            ky = cosine_wavenumbers(jmax, footprint.Ly)
            self._ky = ky[None, :]
            y_weight = inflow_weights(jmax, blend_fraction, blend_ramp)

        k = np.sqrt(kx[:, None] ** 2 + ky[None, :] ** 2)
        self._transfer = harmonic_transfer(k, footprint.delta_z)
        self._inv_k = np.zeros_like(k)
        np.divide(1.0, k, out=self._inv_k, where=k > 0.0)

        self.x_inflow_weight = x_weight
        self.y_inflow_weight = y_weight
        self._blend = (1.0 - x_weight)[:, None] * (1.0 - y_weight)[None, :]

        self._dispatch = {
            Regime.PERIODIC_PERIODIC: self._solve_periodic_periodic,
            Regime.INFLOW_PERIODIC: self._solve_inflow_periodic,
            Regime.INFLOW_INFLOW: self._solve_inflow_inflow,
        }
        log.debug(f"Potential-flow solver ready: {regime.value}, "
                  f"{imax}x{jmax}, delta_z={footprint.delta_z:.6g}")

    def solve(self, w_samp, u_avg) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Top-boundary (u, v, w) from sampling-plane w and the mean velocity.

        w_samp: (imax*jmax,) vertical velocity on the sampling plane,
                canonical order
        u_avg:  (3,) mean velocity over the sampling plane
        Returns three (imax*jmax,) arrays in canonical order.
        """
        imax, jmax = self.footprint.imax, self.footprint.jmax
        w_samp = np.asarray(w_samp, dtype=float)
        u_avg = np.asarray(u_avg, dtype=float)
        if w_samp.size != imax * jmax:
            raise ValueError(
                f"w_samp has {w_samp.size} values, expected {imax * jmax}")
        if u_avg.shape != (3,):
            raise ValueError(f"u_avg must have 3 components, got shape {u_avg.shape}")

        w_prime = w_samp.reshape(imax, jmax) - np.mean(w_samp)
        u_p, v_p, w_p = self._dispatch[self.regime](w_prime)

        u_bc = u_avg[0] + self._blend * u_p
        v_bc = u_avg[1] + self._blend * v_p
        w_bc = u_avg[2] + self._blend * w_p
        return u_bc.ravel(), v_bc.ravel(), w_bc.ravel()

    # ------------------------------------------------------------------
    # Regimes
    # ------------------------------------------------------------------

    def _solve_periodic_periodic(self, w_prime):
        p = self.plans
        w_top = self._transfer * p.fourier2d_f(w_prime)
        u_hat = -1j * self._kx * self._inv_k * w_top
        v_hat = -1j * self._ky * self._inv_k * w_top
        return (p.fourier2d_b(u_hat).real,
                p.fourier2d_b(v_hat).real,
                p.fourier2d_b(w_top).real)

    def _solve_inflow_periodic(self, w_prime):
        p = self.plans
        w_top = self._transfer * p.fourier_y_f(p.cos_x_f(w_prime))

        # u is a sine series in x: zero on both x edges
        u_hat = (self._kx * self._inv_k * w_top)[1:-1, :]
        u = np.zeros_like(w_prime)
        u[1:-1, :] = p.sin_x_b(p.fourier_y_b(u_hat).real)

        v_hat = -1j * self._ky * self._inv_k * w_top
        v = p.cos_x_b(p.fourier_y_b(v_hat).real)
        w = p.cos_x_b(p.fourier_y_b(w_top).real)
        return u, v, w

    def _solve_inflow_inflow(self, w_prime):
        p = self.plans
        w_top = self._transfer * p.cos_y_f(p.cos_x_f(w_prime))

        u_hat = (self._kx * self._inv_k * w_top)[1:-1, :]
        u = np.zeros_like(w_prime)
        u[1:-1, :] = p.sin_x_b(p.cos_y_b(u_hat))

        v_hat = (self._ky * self._inv_k * w_top)[:, 1:-1]
        v = np.zeros_like(w_prime)
        v[:, 1:-1] = p.cos_x_b(p.sin_y_b(v_hat))

        w = p.cos_x_b(p.cos_y_b(w_top))
        return u, v, w
