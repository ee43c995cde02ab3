from typing import Optional

import numpy as np
from gt4py.cartesian import gtscript
from gt4py.cartesian.gtscript import (
    __INLINED,
    PARALLEL,
    computation,
    exp,
    interval,
    sqrt,
)

import ndsl.constants as constants
import ndsl.dsl.gt4py_utils as gt_utils
import pyAtmos.constants as physcons
from ndsl.constants import X_DIM, Y_DIM, Z_DIM
from ndsl.dsl.stencil import StencilFactory
from ndsl.dsl.typing import Float, FloatField, FloatFieldIJ
from ndsl.logging import ndsl_log
from ndsl.quantity import Quantity
from pyAtmos._config import EDMFConfig


@gtscript.function
def convective_velocity(buoy_flux_surface):
    """Deardorff velocity w* for an assumed 1 km inversion height"""
    return max(buoy_flux_surface * physcons.WSTAR_ZI, 0.0) ** (1.0 / 3.0)


@gtscript.function
def pi_buoyancy(dz_sfc, buoy_flux_surface, w_up, buoy_up, w_env, buoy_env):
    w_star = convective_velocity(buoy_flux_surface)
    return (
        dz_sfc
        * (buoy_up - buoy_env)
        / ((w_up - w_env) ** 2 + w_star**2 + physcons.EPS_FT)
    )


@gtscript.function
def pi_pressure_scale_height(dz_sfc, p, rho):
    # pressure scale height (height where pressure drops by 1/e)
    ref_h = p / (rho * constants.GRAV)
    return dz_sfc / ref_h


@gtscript.function
def entrainment_pi_groups(
    dz_sfc,
    p,
    rho,
    buoy_flux_surface,
    a_up,
    w_up,
    rh_up,
    buoy_up,
    w_env,
    rh_env,
    buoy_env,
    dt,
):
    entr = 0.0
    if a_up > 0.0:
        pi_1 = pi_buoyancy(dz_sfc, buoy_flux_surface, w_up, buoy_up, w_env, buoy_env)
        pi_3 = sqrt(a_up)
        pi_4 = rh_up - rh_env
        pi_6 = pi_pressure_scale_height(dz_sfc, p, rho)
        entr = max(
            0.0,
            min(
                abs(w_up)
                / dz_sfc
                * (
                    physcons.ENTR_PI_C0
                    + physcons.ENTR_PI_C1 * pi_1
                    + physcons.ENTR_PI_C3 * pi_3
                    + physcons.ENTR_PI_C4 * pi_4
                    + physcons.ENTR_PI_C6 * pi_6
                ),
                1.0 / dt,
            ),
        )
    return entr


@gtscript.function
def detrainment_pi_groups(
    dz_sfc,
    p,
    rho,
    buoy_flux_surface,
    a_up,
    w_up,
    rh_up,
    buoy_up,
    w_env,
    rh_env,
    buoy_env,
    dt,
    max_area,
):
    detr = 0.0
    if a_up > 0.0:
        max_area_limiter = physcons.AREA_LIMITER_SCALE * exp(
            -physcons.AREA_LIMITER_POWER * (max_area - a_up)
        )
        pi_1 = pi_buoyancy(dz_sfc, buoy_flux_surface, w_up, buoy_up, w_env, buoy_env)
        pi_3 = sqrt(a_up)
        pi_4 = rh_up - rh_env
        pi_6 = pi_pressure_scale_height(dz_sfc, p, rho)
        detr = max(
            0.0,
            min(
                abs(w_up)
                * (
                    physcons.DETR_PI_C0
                    + physcons.DETR_PI_C1 * pi_1
                    + physcons.DETR_PI_C3 * pi_3
                    + physcons.DETR_PI_C4 * pi_4
                    + physcons.DETR_PI_C6 * pi_6
                    + max_area_limiter
                ),
                1.0 / dt,
            ),
        )
    return detr


@gtscript.function
def entrainment_constant_coefficient(dz_sfc, a_up, w_up, dt, entr_coeff):
    entr = 0.0
    if a_up > 0.0:
        entr = max(0.0, min(entr_coeff * abs(w_up) / dz_sfc, 1.0 / dt))
    return entr


@gtscript.function
def detrainment_constant_coefficient(a_up, w_up, dt, detr_coeff):
    detr = 0.0
    if a_up > 0.0:
        detr = max(0.0, min(detr_coeff * abs(w_up), 1.0 / dt))
    return detr


@gtscript.function
def entrainment_constant_timescale(a_up, dt, entr_tau):
    entr = 0.0
    if a_up > 0.0:
        entr = max(0.0, min(1.0 / entr_tau, 1.0 / dt))
    return entr


def entr_detr_rates(
    z: FloatField,
    z_sfc: FloatFieldIJ,
    p: FloatField,
    rho: FloatField,
    buoy_flux_surface: FloatFieldIJ,
    a_up: FloatField,
    w_up: FloatField,
    rh_up: FloatField,
    buoy_up: FloatField,
    w_env: FloatField,
    rh_env: FloatField,
    buoy_env: FloatField,
    entr: FloatField,
    detr: FloatField,
    dt: Float,
):
    """
    Entrainment and detrainment rates [1/s] of one updraft.

    The closures are chosen at compile time. Every rate is zero where the
    updraft area vanishes and is clipped to [0, 1/dt].

    Arguments:
        z (in): height of cell centers
        z_sfc (in): surface height
        p (in): grid-mean pressure
        rho (in): grid-mean density
        buoy_flux_surface (in): surface buoyancy flux
        a_up, w_up, rh_up, buoy_up (in): updraft area fraction, vertical
            velocity, relative humidity and buoyancy on cell centers
        w_env, rh_env, buoy_env (in): environment vertical velocity,
            relative humidity and buoyancy on cell centers
        entr (out): entrainment rate
        detr (out): detrainment rate
        dt (in): timestep
    """
    from __externals__ import (
        detr_coeff,
        detr_model,
        entr_coeff,
        entr_model,
        entr_tau,
        max_area,
    )

    with computation(PARALLEL), interval(...):
        dz_sfc = z - z_sfc
        entr = 0.0
        detr = 0.0
        if __INLINED(entr_model == physcons.ENTR_PI_GROUPS):
            entr = entrainment_pi_groups(
                dz_sfc,
                p,
                rho,
                buoy_flux_surface,
                a_up,
                w_up,
                rh_up,
                buoy_up,
                w_env,
                rh_env,
                buoy_env,
                dt,
            )
        if __INLINED(entr_model == physcons.ENTR_CONSTANT_COEFFICIENT):
            entr = entrainment_constant_coefficient(dz_sfc, a_up, w_up, dt, entr_coeff)
        if __INLINED(entr_model == physcons.ENTR_CONSTANT_TIMESCALE):
            entr = entrainment_constant_timescale(a_up, dt, entr_tau)
        if __INLINED(detr_model == physcons.DETR_PI_GROUPS):
            detr = detrainment_pi_groups(
                dz_sfc,
                p,
                rho,
                buoy_flux_surface,
                a_up,
                w_up,
                rh_up,
                buoy_up,
                w_env,
                rh_env,
                buoy_env,
                dt,
                max_area,
            )
        if __INLINED(detr_model == physcons.DETR_CONSTANT_COEFFICIENT):
            detr = detrainment_constant_coefficient(a_up, w_up, dt, detr_coeff)


class EntrainmentDetrainment:
    """
    Exchange rates between an updraft and its environment.

    Closures:
        none: no exchange
        pi_groups: regression on non-dimensional groups of buoyancy,
            velocity, area, relative humidity and pressure scale height
        constant_coefficient: entr = c_e |w| / (z - z_sfc), detr = c_d |w|
        constant_timescale (entrainment only): entr = 1 / tau

    Heights must be strictly above the surface: the pi_groups and
    constant_coefficient entrainment divide by z - z_sfc. With
    check_preconditions this is verified on every call.
    """

    def __init__(
        self,
        stencil_factory: StencilFactory,
        config: EDMFConfig,
    ):
        self._config = config
        self._check_preconditions = config.check_preconditions
        self._dt = config.dt

        self._entr_detr_rates = stencil_factory.from_dims_halo(
            func=entr_detr_rates,
            compute_dims=[X_DIM, Y_DIM, Z_DIM],
            externals={
                "entr_model": config.entr_id,
                "detr_model": config.detr_id,
                "entr_coeff": config.entr_coeff,
                "detr_coeff": config.detr_coeff,
                "entr_tau": config.entr_tau,
                "max_area": config.max_area,
            },
        )
        ndsl_log.info(
            f"EDMF closures: entrainment {config.entr_model.value}, "
            f"detrainment {config.detr_model.value}"
        )

    def _check_heights(self, z: Quantity, z_sfc: Quantity):
        dz_sfc = gt_utils.asarray(z.view[:]) - gt_utils.asarray(z_sfc.view[:])[
            :, :, np.newaxis
        ]
        n_bad = int(np.count_nonzero(dz_sfc <= 0.0))
        if n_bad > 0:
            raise ValueError(
                f"{n_bad} cell center(s) at or below the surface height; "
                "entrainment requires z > z_sfc"
            )

    def _check_area(self, a_up: Quantity):
        n_negative = int(np.count_nonzero(gt_utils.asarray(a_up.view[:]) < 0.0))
        if n_negative > 0:
            ndsl_log.warning(
                f"{n_negative} point(s) with negative updraft area, "
                "treated as inactive"
            )

    def __call__(
        self,
        z: Quantity,
        z_sfc: Quantity,
        p: Quantity,
        rho: Quantity,
        buoy_flux_surface: Quantity,
        a_up: Quantity,
        w_up: Quantity,
        rh_up: Quantity,
        buoy_up: Quantity,
        w_env: Quantity,
        rh_env: Quantity,
        buoy_env: Quantity,
        entr: Quantity,
        detr: Quantity,
        dt: Optional[Float] = None,
    ):
        if dt is None:
            dt = self._dt
        if dt <= 0.0:
            raise ValueError(f"timestep must be positive, got {dt}")
        if self._check_preconditions:
            self._check_heights(z, z_sfc)
            self._check_area(a_up)
        self._entr_detr_rates(
            z,
            z_sfc,
            p,
            rho,
            buoy_flux_surface,
            a_up,
            w_up,
            rh_up,
            buoy_up,
            w_env,
            rh_env,
            buoy_env,
            entr,
            detr,
            Float(dt),
        )
