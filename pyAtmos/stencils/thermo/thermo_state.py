from gt4py.cartesian.gtscript import __INLINED, PARALLEL, computation, interval

import pyAtmos.constants as physcons
from ndsl.constants import X_DIM, Y_DIM, Z_DIM
from ndsl.dsl.stencil import StencilFactory
from ndsl.dsl.typing import FloatField
from ndsl.logging import ndsl_log
from ndsl.quantity import Quantity
from pyAtmos._config import MoistureModel
from pyAtmos.functions.thermodynamics import (
    gas_constant_air,
    liquid_fraction,
    q_vap_saturation,
)


def phase_dry_rho_p(
    rho: FloatField,
    pressure: FloatField,
    temperature: FloatField,
    q_liq: FloatField,
    q_ice: FloatField,
):
    with computation(PARALLEL), interval(...):
        temperature = pressure / (rho * physcons.R_D)
        q_liq = 0.0
        q_ice = 0.0


def phase_equil_rho_p_q(
    rho: FloatField,
    pressure: FloatField,
    rho_q_tot: FloatField,
    temperature: FloatField,
    q_liq: FloatField,
    q_ice: FloatField,
):
    with computation(PARALLEL), interval(...):
        q_tot = rho_q_tot / rho
        temp = pressure / (rho * gas_constant_air(q_tot, 0.0, 0.0))
        fliq = 1.0
        q_con = 0.0
        iteration = 0
        while iteration < physcons.SAT_ADJUST_ITERS:
            fliq = liquid_fraction(temp)
            q_con = max(0.0, q_tot - q_vap_saturation(temp, rho))
            temp = pressure / (
                rho * gas_constant_air(q_tot, fliq * q_con, (1.0 - fliq) * q_con)
            )
            iteration = iteration + 1
        fliq = liquid_fraction(temp)
        q_con = max(0.0, q_tot - q_vap_saturation(temp, rho))
        temperature = temp
        q_liq = fliq * q_con
        q_ice = (1.0 - fliq) * q_con


def air_pressure(
    rho: FloatField,
    rho_q_tot: FloatField,
    temperature: FloatField,
    q_liq: FloatField,
    q_ice: FloatField,
    pressure: FloatField,
):
    from __externals__ import moist

    with computation(PARALLEL), interval(...):
        q_tot = 0.0
        if __INLINED(moist):
            q_tot = rho_q_tot / rho
        pressure = rho * gas_constant_air(q_tot, q_liq, q_ice) * temperature


class ThermodynamicState:
    """
    Thermodynamic state from density and pressure (dry) or density, pressure
    and total water (equilibrium moisture)
    """

    def __init__(
        self,
        stencil_factory: StencilFactory,
        moisture_model: MoistureModel,
    ):
        if moisture_model not in (MoistureModel.dry, MoistureModel.equil):
            ndsl_log.error(f"Unsupported moisture model: {moisture_model}")
            raise NotImplementedError(
                f"moisture model {moisture_model} is not supported"
            )
        self._moist = moisture_model == MoistureModel.equil

        if self._moist:
            self._phase = stencil_factory.from_dims_halo(
                func=phase_equil_rho_p_q,
                compute_dims=[X_DIM, Y_DIM, Z_DIM],
            )
        else:
            self._phase = stencil_factory.from_dims_halo(
                func=phase_dry_rho_p,
                compute_dims=[X_DIM, Y_DIM, Z_DIM],
            )
        self._air_pressure = stencil_factory.from_dims_halo(
            func=air_pressure,
            compute_dims=[X_DIM, Y_DIM, Z_DIM],
            externals={"moist": self._moist},
        )

    @property
    def moist(self) -> bool:
        return self._moist

    def __call__(
        self,
        rho: Quantity,
        pressure: Quantity,
        rho_q_tot: Quantity,
        temperature: Quantity,
        q_liq: Quantity,
        q_ice: Quantity,
    ):
        if self._moist:
            self._phase(rho, pressure, rho_q_tot, temperature, q_liq, q_ice)
        else:
            self._phase(rho, pressure, temperature, q_liq, q_ice)

    def air_pressure(
        self,
        rho: Quantity,
        rho_q_tot: Quantity,
        temperature: Quantity,
        q_liq: Quantity,
        q_ice: Quantity,
        pressure: Quantity,
    ):
        self._air_pressure(rho, rho_q_tot, temperature, q_liq, q_ice, pressure)
