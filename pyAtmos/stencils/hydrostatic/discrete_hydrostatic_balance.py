from typing import Optional

import numpy as np
from gt4py.cartesian.gtscript import (
    __INLINED,
    FORWARD,
    PARALLEL,
    computation,
    interval,
)

import ndsl.dsl.gt4py_utils as gt_utils
import pyAtmos.constants as physcons
from ndsl.constants import X_DIM, Y_DIM, Z_DIM, Z_INTERFACE_DIM
from ndsl.dsl.stencil import StencilFactory
from ndsl.dsl.typing import Float, FloatField
from ndsl.initialization.allocator import QuantityFactory
from ndsl.logging import ndsl_log
from ndsl.quantity import Quantity
from pyAtmos._config import ENERGY_IDS, AtmosConfig, MoistureModel
from pyAtmos.functions.interpolation import center_to_face, face_to_center
from pyAtmos.functions.thermodynamics import internal_energy, liquid_ice_pottemp
from pyAtmos.state import AtmosState
from pyAtmos.stencils.thermo.thermo_state import ThermodynamicState


def geopotential_gradient_to_faces(
    geopotential: FloatField,
    geopotential_gradient: FloatField,
):
    """
    Vertical difference of the geopotential on cell faces, zero at the
    bottom and top boundary faces. Built on Z_INTERFACE_DIM.
    """
    with computation(PARALLEL):
        with interval(0, 1):
            geopotential_gradient = 0.0
        with interval(1, -1):
            geopotential_gradient = geopotential[0, 0, 0] - geopotential[0, 0, -1]
        with interval(-1, None):
            geopotential_gradient = 0.0


def hydrostatic_pressure_gradient(
    rho: FloatField,
    geopotential_gradient: FloatField,
    pressure_gradient: FloatField,
):
    """
    Zero vertical acceleration on faces:
        grad_p = -(grad_phi * interp(rho))
    with linear center to face interpolation, extrapolated at the boundaries.
    Built on Z_INTERFACE_DIM.
    """
    with computation(PARALLEL):
        with interval(0, 1):
            pressure_gradient = -(geopotential_gradient * rho[0, 0, 0])
        with interval(1, -1):
            pressure_gradient = -(geopotential_gradient * center_to_face(rho))
        with interval(-1, None):
            pressure_gradient = -(geopotential_gradient * rho[0, 0, -1])


def integrate_hydrostatic_pressure(
    pressure_gradient: FloatField,
    pressure: FloatField,
    p_surface: Float,
):
    with computation(FORWARD):
        with interval(0, 1):
            pressure = p_surface
        with interval(1, None):
            pressure = pressure[0, 0, -1] + pressure_gradient[0, 0, 0]


def copy_field(
    q_in: FloatField,
    q_out: FloatField,
):
    with computation(PARALLEL), interval(...):
        q_out = q_in


def kinetic_energy(
    u: FloatField,
    v: FloatField,
    w: FloatField,
    ke: FloatField,
):
    with computation(PARALLEL), interval(...):
        w_center = face_to_center(w)
        ke = 0.5 * (u * u + v * v + w_center * w_center)


def set_energy(
    rho: FloatField,
    rho_q_tot: FloatField,
    pressure: FloatField,
    temperature: FloatField,
    q_liq: FloatField,
    q_ice: FloatField,
    ke: FloatField,
    geopotential: FloatField,
    energy: FloatField,
):
    from __externals__ import energy_form, moist

    with computation(PARALLEL), interval(...):
        q_tot = 0.0
        if __INLINED(moist):
            q_tot = rho_q_tot / rho
        if __INLINED(energy_form == physcons.ENERGY_TOTAL):
            energy = rho * (
                internal_energy(temperature, q_tot, q_liq, q_ice) + ke + geopotential
            )
        if __INLINED(energy_form == physcons.ENERGY_INTERNAL):
            energy = rho * internal_energy(temperature, q_tot, q_liq, q_ice)
        if __INLINED(energy_form == physcons.ENERGY_THETA):
            energy = rho * liquid_ice_pottemp(
                temperature, pressure, q_tot, q_liq, q_ice
            )


class DiscreteHydrostaticBalance:
    """
    Sets a state in discrete hydrostatic balance.

    The cell-center pressure is built so that the discrete vertical momentum
    equation has no tendency at rest,

        -(grad_p / interp(rho) + grad_phi) = 0 on every interior face,

    which, for the face difference operator grad(p)[k] = p[k] - p[k-1],
    gives the bottom-up recurrence

        p[0] = p_surface
        p[k] = p[k-1] + grad_p[k],  k = 1 .. nz-1.

    The thermodynamic state is then recomputed from (rho, p) or
    (rho, p, q_tot) and the conserved energy variable of the state is
    overwritten to match it.

    Every (i, j) column is independent; the vertical scan is sequential.
    """

    def __init__(
        self,
        stencil_factory: StencilFactory,
        quantity_factory: QuantityFactory,
        config: AtmosConfig,
    ):
        if config.moisture_model not in (MoistureModel.dry, MoistureModel.equil):
            ndsl_log.error(f"Unsupported moisture model: {config.moisture_model}")
            raise NotImplementedError(
                f"moisture model {config.moisture_model} is not supported "
                "by the discrete hydrostatic balance"
            )
        self._p_surface = Float(config.mslp)
        self._thermo = ThermodynamicState(stencil_factory, config.moisture_model)

        self._pressure_gradient = quantity_factory.zeros(
            [X_DIM, Y_DIM, Z_INTERFACE_DIM],
            units="Pa",
            dtype=Float,
        )
        self._pressure = quantity_factory.zeros(
            [X_DIM, Y_DIM, Z_DIM],
            units="Pa",
            dtype=Float,
        )

        self._geopotential_gradient = stencil_factory.from_dims_halo(
            func=geopotential_gradient_to_faces,
            compute_dims=[X_DIM, Y_DIM, Z_INTERFACE_DIM],
        )
        self._hydrostatic_pressure_gradient = stencil_factory.from_dims_halo(
            func=hydrostatic_pressure_gradient,
            compute_dims=[X_DIM, Y_DIM, Z_INTERFACE_DIM],
        )
        self._integrate_pressure = stencil_factory.from_dims_halo(
            func=integrate_hydrostatic_pressure,
            compute_dims=[X_DIM, Y_DIM, Z_DIM],
        )
        self._copy_centers = stencil_factory.from_dims_halo(
            func=copy_field,
            compute_dims=[X_DIM, Y_DIM, Z_DIM],
        )
        self._copy_faces = stencil_factory.from_dims_halo(
            func=copy_field,
            compute_dims=[X_DIM, Y_DIM, Z_INTERFACE_DIM],
        )
        self._kinetic_energy = stencil_factory.from_dims_halo(
            func=kinetic_energy,
            compute_dims=[X_DIM, Y_DIM, Z_DIM],
        )
        self._set_energy = stencil_factory.from_dims_halo(
            func=set_energy,
            compute_dims=[X_DIM, Y_DIM, Z_DIM],
            externals={
                "energy_form": ENERGY_IDS[config.energy_form],
                "moist": self._thermo.moist,
            },
        )

    def geopotential_gradient(
        self,
        geopotential: Quantity,
        geopotential_gradient: Quantity,
    ):
        self._geopotential_gradient(geopotential, geopotential_gradient)

    def pressure(
        self,
        rho: Quantity,
        geopotential_gradient: Quantity,
        pressure: Quantity,
        p_surface: Optional[Float] = None,
        pressure_gradient: Optional[Quantity] = None,
    ):
        """
        Hydrostatically balanced cell-center pressure.

        Args:
            rho (in): air density on cell centers
            geopotential_gradient (in): geopotential difference on cell faces
            pressure (out): balanced pressure on cell centers
            p_surface (in): pressure of the lowest level, defaults to the
                configured mean sea level pressure
            pressure_gradient (out): optional face field receiving grad_p

        The outputs are only written once the profile has passed the
        monotonicity check.
        """
        if p_surface is None:
            p_surface = self._p_surface
        self._hydrostatic_pressure_gradient(
            rho,
            geopotential_gradient,
            self._pressure_gradient,
        )
        self._integrate_pressure(
            self._pressure_gradient, self._pressure, Float(p_surface)
        )
        self._check_monotonic(self._pressure)
        self._copy_centers(self._pressure, pressure)
        if pressure_gradient is not None:
            self._copy_faces(self._pressure_gradient, pressure_gradient)

    def _check_monotonic(self, pressure: Quantity):
        p = gt_utils.asarray(pressure.view[:])
        increasing = np.diff(p, axis=2) >= 0.0
        if np.any(increasing):
            n_columns = int(np.count_nonzero(np.any(increasing, axis=2)))
            raise ValueError(
                "hydrostatic pressure does not decrease with height in "
                f"{n_columns} column(s); density and geopotential gradient "
                "must be positive"
            )

    def __call__(self, state: AtmosState):
        self.geopotential_gradient(state.geopotential, state.geopotential_gradient)
        self.pressure(
            state.rho,
            state.geopotential_gradient,
            state.pressure,
            pressure_gradient=state.pressure_gradient,
        )
        self._kinetic_energy(state.u, state.v, state.w, state.kinetic_energy)
        self._thermo(
            state.rho,
            state.pressure,
            state.rho_q_tot,
            state.temperature,
            state.q_liq,
            state.q_ice,
        )
        self._set_energy(
            state.rho,
            state.rho_q_tot,
            state.pressure,
            state.temperature,
            state.q_liq,
            state.q_ice,
            state.kinetic_energy,
            state.geopotential,
            state.energy,
        )
