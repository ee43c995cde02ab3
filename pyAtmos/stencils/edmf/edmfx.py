from typing import List, Optional

from ndsl.constants import X_DIM, Y_DIM, Z_DIM
from ndsl.dsl.stencil import StencilFactory
from ndsl.dsl.typing import Float
from ndsl.initialization.allocator import QuantityFactory
from ndsl.logging import ndsl_log
from ndsl.quantity import Quantity
from pyAtmos._config import EDMFConfig
from pyAtmos.state import (
    AtmosState,
    ColumnGeometry,
    EnvironmentState,
    UpdraftState,
    UpdraftTendencies,
)
from pyAtmos.stencils.edmf.entr_detr import EntrainmentDetrainment
from pyAtmos.stencils.edmf.environment import EnvironmentDiagnostics
from pyAtmos.stencils.edmf.sgs_tendency import SGSTendency


class EDMFX:
    """
    Prognostic eddy-diffusivity/mass-flux updraft exchange.

    One call diagnoses the environment from the grid mean and the
    updrafts, evaluates the entrainment and detrainment rates of every
    updraft and adds the resulting exchange to the updraft tendencies.
    """

    def __init__(
        self,
        stencil_factory: StencilFactory,
        quantity_factory: QuantityFactory,
        config: EDMFConfig,
    ):
        self.config = config
        self._active = config.active
        self._sgs_tendency = SGSTendency(stencil_factory, config)
        if not self._active:
            ndsl_log.info("EDMFX: turbulence/convection scheme disabled")
            return

        ndsl_log.info(f"EDMFX: {config.n_updrafts} updraft(s)")
        self._environment = EnvironmentDiagnostics(stencil_factory, quantity_factory)
        self._entr_detr = EntrainmentDetrainment(stencil_factory, config)
        self.entr = []
        self.detr = []
        for _ in range(config.n_updrafts):
            self.entr.append(
                quantity_factory.zeros([X_DIM, Y_DIM, Z_DIM], units="1/s", dtype=Float)
            )
            self.detr.append(
                quantity_factory.zeros([X_DIM, Y_DIM, Z_DIM], units="1/s", dtype=Float)
            )

    def __call__(
        self,
        state: AtmosState,
        geometry: ColumnGeometry,
        buoy_flux_surface: Quantity,
        updrafts: List[UpdraftState],
        environment: EnvironmentState,
        tendencies: List[UpdraftTendencies],
        dt: Optional[Float] = None,
    ):
        """
        Args:
            state (in): grid mean state, pressure and density are used
            geometry (in): cell center and surface heights
            buoy_flux_surface (in): surface buoyancy flux
            updrafts (inout): prognostic fields in, diagnostics out
            environment (inout): relative humidity and buoyancy in,
                everything else diagnosed
            tendencies (inout): updraft tendencies, incremented
            dt (in): timestep, defaults to the configured one
        """
        if not self._active:
            return
        n_updrafts = self.config.n_updrafts
        for name, items in (("updrafts", updrafts), ("tendencies", tendencies)):
            if len(items) != n_updrafts:
                raise ValueError(f"expected {n_updrafts} {name}, got {len(items)}")

        self._environment(state, updrafts, environment)
        for j, updraft in enumerate(updrafts):
            self._entr_detr(
                geometry.z,
                geometry.z_sfc,
                state.pressure,
                state.rho,
                buoy_flux_surface,
                updraft.area,
                updraft.w_center,
                updraft.relative_humidity,
                updraft.buoyancy,
                environment.w_center,
                environment.relative_humidity,
                environment.buoyancy,
                self.entr[j],
                self.detr[j],
                dt,
            )
        self._sgs_tendency(updrafts, environment, self.entr, self.detr, tendencies)
