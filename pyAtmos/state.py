from dataclasses import dataclass, field, fields
from typing import List

import numpy as np
import xarray as xr

import ndsl.dsl.gt4py_utils as gt_utils
from ndsl import Quantity, QuantityFactory
from ndsl.constants import X_DIM, Y_DIM, Z_DIM, Z_INTERFACE_DIM
from ndsl.dsl.typing import Float


CENTER_DIMS = [X_DIM, Y_DIM, Z_DIM]
FACE_DIMS = [X_DIM, Y_DIM, Z_INTERFACE_DIM]
SURFACE_DIMS = [X_DIM, Y_DIM]


def _zeros(cls, quantity_factory: QuantityFactory):
    initial_quantities = {}
    for _field in fields(cls):
        if "dims" in _field.metadata.keys():
            initial_quantities[_field.name] = quantity_factory.zeros(
                _field.metadata["dims"],
                _field.metadata["units"],
                dtype=Float,
            )
    return cls(**initial_quantities)


def _metadata(name: str, dims: List[str], units: str, intent: str):
    return field(
        metadata={"name": name, "dims": dims, "units": units, "intent": intent}
    )


@dataclass()
class ColumnGeometry:
    z: Quantity = _metadata("height_at_cell_centers", CENTER_DIMS, "m", "in")
    z_face: Quantity = _metadata("height_at_cell_faces", FACE_DIMS, "m", "in")
    z_sfc: Quantity = _metadata("surface_height", SURFACE_DIMS, "m", "in")

    @classmethod
    def init_zeros(cls, quantity_factory: QuantityFactory) -> "ColumnGeometry":
        return _zeros(cls, quantity_factory)

    @classmethod
    def from_face_heights(
        cls,
        quantity_factory: QuantityFactory,
        z_face: np.ndarray,
    ) -> "ColumnGeometry":
        """
        Build a geometry where every column shares the face heights z_face
        (length nz + 1, increasing). Centers sit halfway between faces and the
        surface is the lowest face.
        """
        z_face = np.asarray(z_face, dtype=Float)
        geometry = cls.init_zeros(quantity_factory)
        nz = geometry.z.view[:].shape[2]
        if z_face.shape != (nz + 1,):
            raise ValueError(
                f"expected {nz + 1} face heights, got array of shape {z_face.shape}"
            )
        geometry.z_face.view[:] = z_face[np.newaxis, np.newaxis, :]
        geometry.z.view[:] = 0.5 * (z_face[:-1] + z_face[1:])[np.newaxis, np.newaxis, :]
        geometry.z_sfc.view[:] = z_face[0]
        return geometry


@dataclass()
class AtmosState:
    rho: Quantity = _metadata("air_density", CENTER_DIMS, "kg/m^3", "in")
    u: Quantity = _metadata("eastward_wind", CENTER_DIMS, "m/s", "in")
    v: Quantity = _metadata("northward_wind", CENTER_DIMS, "m/s", "in")
    w: Quantity = _metadata("upward_air_velocity", FACE_DIMS, "m/s", "in")
    rho_q_tot: Quantity = _metadata(
        "total_water_density", CENTER_DIMS, "kg/m^3", "in"
    )
    h_tot: Quantity = _metadata(
        "specific_total_enthalpy", CENTER_DIMS, "J/kg", "in"
    )
    energy: Quantity = _metadata(
        "conserved_energy_variable", CENTER_DIMS, "unknown", "inout"
    )
    geopotential: Quantity = _metadata("geopotential", CENTER_DIMS, "m^2/s^2", "in")
    geopotential_gradient: Quantity = _metadata(
        "vertical_geopotential_difference", FACE_DIMS, "m^2/s^2", "out"
    )
    pressure: Quantity = _metadata("air_pressure", CENTER_DIMS, "Pa", "out")
    pressure_gradient: Quantity = _metadata(
        "vertical_pressure_difference", FACE_DIMS, "Pa", "out"
    )
    kinetic_energy: Quantity = _metadata(
        "specific_kinetic_energy", CENTER_DIMS, "m^2/s^2", "out"
    )
    temperature: Quantity = _metadata("air_temperature", CENTER_DIMS, "K", "out")
    q_liq: Quantity = _metadata(
        "liquid_water_specific_humidity", CENTER_DIMS, "kg/kg", "out"
    )
    q_ice: Quantity = _metadata("ice_specific_humidity", CENTER_DIMS, "kg/kg", "out")

    @classmethod
    def init_zeros(cls, quantity_factory: QuantityFactory) -> "AtmosState":
        return _zeros(cls, quantity_factory)

    @property
    def xr_dataset(self):
        data_vars = {}
        for name, field_info in self.__dataclass_fields__.items():
            if issubclass(field_info.type, Quantity):
                dims = [
                    f"{dim_name}_{name}" for dim_name in field_info.metadata["dims"]
                ]
                data_vars[name] = xr.DataArray(
                    gt_utils.asarray(getattr(self, name).view[:]),
                    dims=dims,
                    attrs={
                        "long_name": field_info.metadata["name"],
                        "units": field_info.metadata.get("units", "unknown"),
                    },
                )
        return xr.Dataset(data_vars=data_vars)


@dataclass()
class UpdraftState:
    """Prognostic and diagnostic fields of one updraft subdomain."""

    rhoa: Quantity = _metadata(
        "updraft_area_weighted_density", CENTER_DIMS, "kg/m^3", "in"
    )
    rhoa_h_tot: Quantity = _metadata(
        "updraft_area_weighted_total_enthalpy", CENTER_DIMS, "J/m^3", "in"
    )
    rhoa_q_tot: Quantity = _metadata(
        "updraft_area_weighted_total_water", CENTER_DIMS, "kg/m^3", "in"
    )
    w: Quantity = _metadata("updraft_vertical_velocity", FACE_DIMS, "m/s", "in")
    relative_humidity: Quantity = _metadata(
        "updraft_relative_humidity", CENTER_DIMS, "", "in"
    )
    buoyancy: Quantity = _metadata("updraft_buoyancy", CENTER_DIMS, "m/s^2", "in")
    area: Quantity = _metadata("updraft_area_fraction", CENTER_DIMS, "", "out")
    h_tot: Quantity = _metadata(
        "updraft_specific_total_enthalpy", CENTER_DIMS, "J/kg", "out"
    )
    q_tot: Quantity = _metadata(
        "updraft_total_specific_humidity", CENTER_DIMS, "kg/kg", "out"
    )
    w_center: Quantity = _metadata(
        "updraft_vertical_velocity_at_cell_centers", CENTER_DIMS, "m/s", "out"
    )

    @classmethod
    def init_zeros(cls, quantity_factory: QuantityFactory) -> "UpdraftState":
        return _zeros(cls, quantity_factory)


@dataclass()
class EnvironmentState:
    rhoa: Quantity = _metadata(
        "environment_area_weighted_density", CENTER_DIMS, "kg/m^3", "out"
    )
    h_tot: Quantity = _metadata(
        "environment_specific_total_enthalpy", CENTER_DIMS, "J/kg", "out"
    )
    q_tot: Quantity = _metadata(
        "environment_total_specific_humidity", CENTER_DIMS, "kg/kg", "out"
    )
    w: Quantity = _metadata("environment_vertical_velocity", FACE_DIMS, "m/s", "out")
    w_center: Quantity = _metadata(
        "environment_vertical_velocity_at_cell_centers", CENTER_DIMS, "m/s", "out"
    )
    relative_humidity: Quantity = _metadata(
        "environment_relative_humidity", CENTER_DIMS, "", "in"
    )
    buoyancy: Quantity = _metadata("environment_buoyancy", CENTER_DIMS, "m/s^2", "in")

    @classmethod
    def init_zeros(cls, quantity_factory: QuantityFactory) -> "EnvironmentState":
        return _zeros(cls, quantity_factory)


@dataclass()
class UpdraftTendencies:
    """Caller-owned tendency arrays of one updraft; written, never allocated."""

    rhoa: Quantity = _metadata(
        "tendency_of_updraft_rhoa", CENTER_DIMS, "kg/m^3/s", "inout"
    )
    rhoa_h_tot: Quantity = _metadata(
        "tendency_of_updraft_rhoa_h_tot", CENTER_DIMS, "J/m^3/s", "inout"
    )
    rhoa_q_tot: Quantity = _metadata(
        "tendency_of_updraft_rhoa_q_tot", CENTER_DIMS, "kg/m^3/s", "inout"
    )
    w: Quantity = _metadata("tendency_of_updraft_w", FACE_DIMS, "m/s^2", "inout")

    @classmethod
    def init_zeros(cls, quantity_factory: QuantityFactory) -> "UpdraftTendencies":
        return _zeros(cls, quantity_factory)
