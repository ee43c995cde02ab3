from typing import List

from gt4py.cartesian.gtscript import PARALLEL, computation, interval

from ndsl.constants import X_DIM, Y_DIM, Z_DIM, Z_INTERFACE_DIM
from ndsl.dsl.stencil import StencilFactory
from ndsl.dsl.typing import FloatField
from ndsl.logging import ndsl_log
from ndsl.quantity import Quantity
from pyAtmos._config import EDMFConfig
from pyAtmos.state import EnvironmentState, UpdraftState, UpdraftTendencies


def entr_detr_tendencies(
    rhoa: FloatField,
    h_tot: FloatField,
    q_tot: FloatField,
    h_tot_env: FloatField,
    q_tot_env: FloatField,
    entr: FloatField,
    detr: FloatField,
    tend_rhoa: FloatField,
    tend_rhoa_h_tot: FloatField,
    tend_rhoa_q_tot: FloatField,
):
    """
    Exchange of mass, enthalpy and total water between one updraft and the
    environment. Entrained air carries environment values, detrained air
    carries updraft values.

    Arguments:
        rhoa (in): updraft area weighted density
        h_tot, q_tot (in): updraft specific enthalpy and total water
        h_tot_env, q_tot_env (in): environment specific enthalpy and total water
        entr, detr (in): entrainment and detrainment rates
        tend_rhoa, tend_rhoa_h_tot, tend_rhoa_q_tot (inout): updraft tendencies
    """
    with computation(PARALLEL), interval(...):
        tend_rhoa = tend_rhoa + rhoa * (entr - detr)
        tend_rhoa_h_tot = tend_rhoa_h_tot + rhoa * (entr * h_tot_env - detr * h_tot)
        tend_rhoa_q_tot = tend_rhoa_q_tot + rhoa * (entr * q_tot_env - detr * q_tot)


def entr_momentum_tendency(
    entr: FloatField,
    w_env_center: FloatField,
    w: FloatField,
    tend_w: FloatField,
):
    """
    Face vertical velocity tendency from entrainment,
        tend_w += interp(entr * w_env) - interp(entr) * w
    Built on Z_INTERFACE_DIM, boundary faces take the adjacent center.
    """
    with computation(PARALLEL):
        with interval(0, 1):
            tend_w = tend_w + entr * w_env_center - entr * w
        with interval(1, -1):
            tend_w = (
                tend_w
                + 0.5
                * (entr[0, 0, -1] * w_env_center[0, 0, -1] + entr * w_env_center)
                - 0.5 * (entr[0, 0, -1] + entr) * w
            )
        with interval(-1, None):
            tend_w = (
                tend_w
                + entr[0, 0, -1] * w_env_center[0, 0, -1]
                - entr[0, 0, -1] * w
            )


class SGSTendency:
    """
    Adds the entrainment/detrainment exchange of every updraft to its
    tendencies. Without a turbulence/convection scheme nothing is compiled
    and calls leave the tendencies untouched.
    """

    def __init__(
        self,
        stencil_factory: StencilFactory,
        config: EDMFConfig,
    ):
        self._active = config.active
        self._n_updrafts = config.n_updrafts
        if not self._active:
            return

        self._entr_detr_tendencies = stencil_factory.from_dims_halo(
            func=entr_detr_tendencies,
            compute_dims=[X_DIM, Y_DIM, Z_DIM],
        )
        self._entr_momentum_tendency = stencil_factory.from_dims_halo(
            func=entr_momentum_tendency,
            compute_dims=[X_DIM, Y_DIM, Z_INTERFACE_DIM],
        )

    @property
    def active(self) -> bool:
        return self._active

    def __call__(
        self,
        updrafts: List[UpdraftState],
        environment: EnvironmentState,
        entr: List[Quantity],
        detr: List[Quantity],
        tendencies: List[UpdraftTendencies],
    ):
        if not self._active:
            ndsl_log.debug("SGS tendency: no turbulence/convection scheme, skipping")
            return
        n_updrafts = self._n_updrafts
        for name, items in (
            ("updrafts", updrafts),
            ("entr", entr),
            ("detr", detr),
            ("tendencies", tendencies),
        ):
            if len(items) != n_updrafts:
                raise ValueError(
                    f"expected {n_updrafts} {name}, got {len(items)}"
                )

        for j in range(n_updrafts):
            self._entr_detr_tendencies(
                updrafts[j].rhoa,
                updrafts[j].h_tot,
                updrafts[j].q_tot,
                environment.h_tot,
                environment.q_tot,
                entr[j],
                detr[j],
                tendencies[j].rhoa,
                tendencies[j].rhoa_h_tot,
                tendencies[j].rhoa_q_tot,
            )
            self._entr_momentum_tendency(
                entr[j],
                environment.w_center,
                updrafts[j].w,
                tendencies[j].w,
            )
