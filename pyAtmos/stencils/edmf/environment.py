from typing import List

from gt4py.cartesian.gtscript import PARALLEL, computation, interval

from ndsl.constants import X_DIM, Y_DIM, Z_DIM, Z_INTERFACE_DIM
from ndsl.dsl.stencil import StencilFactory
from ndsl.dsl.typing import Float, FloatField
from ndsl.initialization.allocator import QuantityFactory
from pyAtmos.functions.interpolation import center_to_face, face_to_center
from pyAtmos.state import AtmosState, EnvironmentState, UpdraftState


def diagnose_updraft(
    rho: FloatField,
    rhoa: FloatField,
    rhoa_h_tot: FloatField,
    rhoa_q_tot: FloatField,
    w: FloatField,
    area: FloatField,
    h_tot: FloatField,
    q_tot: FloatField,
    w_center: FloatField,
):
    with computation(PARALLEL), interval(...):
        area = rhoa / rho
        if rhoa > 0.0:
            h_tot = rhoa_h_tot / rhoa
            q_tot = rhoa_q_tot / rhoa
        else:
            h_tot = 0.0
            q_tot = 0.0
        w_center = face_to_center(w)


def init_environment_centers(
    rho: FloatField,
    rho_q_tot: FloatField,
    h_tot: FloatField,
    rhoa_env: FloatField,
    rhoa_h_tot_env: FloatField,
    rhoa_q_tot_env: FloatField,
):
    with computation(PARALLEL), interval(...):
        rhoa_env = rho
        rhoa_h_tot_env = rho * h_tot
        rhoa_q_tot_env = rho_q_tot


def remove_updraft_centers(
    rhoa: FloatField,
    rhoa_h_tot: FloatField,
    rhoa_q_tot: FloatField,
    rhoa_env: FloatField,
    rhoa_h_tot_env: FloatField,
    rhoa_q_tot_env: FloatField,
):
    with computation(PARALLEL), interval(...):
        rhoa_env = rhoa_env - rhoa
        rhoa_h_tot_env = rhoa_h_tot_env - rhoa_h_tot
        rhoa_q_tot_env = rhoa_q_tot_env - rhoa_q_tot


def finalize_environment_centers(
    rhoa_env: FloatField,
    rhoa_h_tot_env: FloatField,
    rhoa_q_tot_env: FloatField,
    h_tot_env: FloatField,
    q_tot_env: FloatField,
):
    with computation(PARALLEL), interval(...):
        if rhoa_env > 0.0:
            h_tot_env = rhoa_h_tot_env / rhoa_env
            q_tot_env = rhoa_q_tot_env / rhoa_env
        else:
            h_tot_env = 0.0
            q_tot_env = 0.0


def init_environment_faces(
    rho: FloatField,
    w: FloatField,
    rhoa_env_face: FloatField,
    rhoaw_env_face: FloatField,
):
    """Built on Z_INTERFACE_DIM, boundary faces take the adjacent center"""
    with computation(PARALLEL):
        with interval(0, 1):
            rhoa_env_face = rho[0, 0, 0]
        with interval(1, -1):
            rhoa_env_face = center_to_face(rho)
        with interval(-1, None):
            rhoa_env_face = rho[0, 0, -1]
    with computation(PARALLEL), interval(...):
        rhoaw_env_face = rhoa_env_face * w


def remove_updraft_faces(
    rhoa: FloatField,
    w: FloatField,
    rhoa_env_face: FloatField,
    rhoaw_env_face: FloatField,
):
    """Built on Z_INTERFACE_DIM, boundary faces take the adjacent center"""
    with computation(PARALLEL):
        with interval(0, 1):
            rhoa_face = rhoa[0, 0, 0]
        with interval(1, -1):
            rhoa_face = center_to_face(rhoa)
        with interval(-1, None):
            rhoa_face = rhoa[0, 0, -1]
    with computation(PARALLEL), interval(...):
        rhoa_env_face = rhoa_env_face - rhoa_face
        rhoaw_env_face = rhoaw_env_face - rhoa_face * w


def finalize_environment_faces(
    rhoa_env_face: FloatField,
    rhoaw_env_face: FloatField,
    w_env: FloatField,
):
    with computation(PARALLEL), interval(...):
        if rhoa_env_face > 0.0:
            w_env = rhoaw_env_face / rhoa_env_face
        else:
            w_env = 0.0


def environment_velocity_to_centers(
    w_env: FloatField,
    w_env_center: FloatField,
):
    with computation(PARALLEL), interval(...):
        w_env_center = face_to_center(w_env)


class EnvironmentDiagnostics:
    """
    Environment as the grid mean minus the sum of all updrafts.

    Also fills the diagnostic fields of every updraft (area fraction,
    specific enthalpy and total water, center vertical velocity). Where
    the environment mass is not positive its specific quantities are 0.
    """

    def __init__(
        self,
        stencil_factory: StencilFactory,
        quantity_factory: QuantityFactory,
    ):
        self._rhoa_h_tot_env = quantity_factory.zeros(
            [X_DIM, Y_DIM, Z_DIM],
            units="J/m^3",
            dtype=Float,
        )
        self._rhoa_q_tot_env = quantity_factory.zeros(
            [X_DIM, Y_DIM, Z_DIM],
            units="kg/m^3",
            dtype=Float,
        )
        self._rhoa_env_face = quantity_factory.zeros(
            [X_DIM, Y_DIM, Z_INTERFACE_DIM],
            units="kg/m^3",
            dtype=Float,
        )
        self._rhoaw_env_face = quantity_factory.zeros(
            [X_DIM, Y_DIM, Z_INTERFACE_DIM],
            units="kg/m^2/s",
            dtype=Float,
        )

        self._diagnose_updraft = stencil_factory.from_dims_halo(
            func=diagnose_updraft,
            compute_dims=[X_DIM, Y_DIM, Z_DIM],
        )
        self._init_centers = stencil_factory.from_dims_halo(
            func=init_environment_centers,
            compute_dims=[X_DIM, Y_DIM, Z_DIM],
        )
        self._remove_updraft_centers = stencil_factory.from_dims_halo(
            func=remove_updraft_centers,
            compute_dims=[X_DIM, Y_DIM, Z_DIM],
        )
        self._finalize_centers = stencil_factory.from_dims_halo(
            func=finalize_environment_centers,
            compute_dims=[X_DIM, Y_DIM, Z_DIM],
        )
        self._init_faces = stencil_factory.from_dims_halo(
            func=init_environment_faces,
            compute_dims=[X_DIM, Y_DIM, Z_INTERFACE_DIM],
        )
        self._remove_updraft_faces = stencil_factory.from_dims_halo(
            func=remove_updraft_faces,
            compute_dims=[X_DIM, Y_DIM, Z_INTERFACE_DIM],
        )
        self._finalize_faces = stencil_factory.from_dims_halo(
            func=finalize_environment_faces,
            compute_dims=[X_DIM, Y_DIM, Z_INTERFACE_DIM],
        )
        self._velocity_to_centers = stencil_factory.from_dims_halo(
            func=environment_velocity_to_centers,
            compute_dims=[X_DIM, Y_DIM, Z_DIM],
        )

    def __call__(
        self,
        state: AtmosState,
        updrafts: List[UpdraftState],
        environment: EnvironmentState,
    ):
        self._init_centers(
            state.rho,
            state.rho_q_tot,
            state.h_tot,
            environment.rhoa,
            self._rhoa_h_tot_env,
            self._rhoa_q_tot_env,
        )
        self._init_faces(
            state.rho,
            state.w,
            self._rhoa_env_face,
            self._rhoaw_env_face,
        )
        for updraft in updrafts:
            self._diagnose_updraft(
                state.rho,
                updraft.rhoa,
                updraft.rhoa_h_tot,
                updraft.rhoa_q_tot,
                updraft.w,
                updraft.area,
                updraft.h_tot,
                updraft.q_tot,
                updraft.w_center,
            )
            self._remove_updraft_centers(
                updraft.rhoa,
                updraft.rhoa_h_tot,
                updraft.rhoa_q_tot,
                environment.rhoa,
                self._rhoa_h_tot_env,
                self._rhoa_q_tot_env,
            )
            self._remove_updraft_faces(
                updraft.rhoa,
                updraft.w,
                self._rhoa_env_face,
                self._rhoaw_env_face,
            )
        self._finalize_centers(
            environment.rhoa,
            self._rhoa_h_tot_env,
            self._rhoa_q_tot_env,
            environment.h_tot,
            environment.q_tot,
        )
        self._finalize_faces(
            self._rhoa_env_face,
            self._rhoaw_env_face,
            environment.w,
        )
        self._velocity_to_centers(environment.w, environment.w_center)
