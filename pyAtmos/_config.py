import dataclasses
from enum import Enum, unique
from typing import Optional, Tuple

import f90nml

import pyAtmos.constants as physcons
from ndsl import MetaEnumStr
from ndsl.dsl.typing import Float, Int
from ndsl.logging import ndsl_log


DEFAULT_FLOAT = 0.0
DEFAULT_INT = 0
DEFAULT_BOOL = False


@unique
class MoistureModel(Enum, metaclass=MetaEnumStr):
    dry = "dry"
    equil = "equil"
    nonequil = "nonequil"


@unique
class EnergyForm(Enum, metaclass=MetaEnumStr):
    total_energy = "total_energy"
    internal_energy = "internal_energy"
    potential_temperature = "potential_temperature"


@unique
class TurbConvModel(Enum, metaclass=MetaEnumStr):
    none = "none"
    prognostic_edmfx = "prognostic_edmfx"


@unique
class EntrainmentModel(Enum, metaclass=MetaEnumStr):
    none = "none"
    pi_groups = "pi_groups"
    constant_coefficient = "constant_coefficient"
    constant_timescale = "constant_timescale"


@unique
class DetrainmentModel(Enum, metaclass=MetaEnumStr):
    none = "none"
    pi_groups = "pi_groups"
    constant_coefficient = "constant_coefficient"


ENTRAINMENT_IDS = {
    EntrainmentModel.none: physcons.ENTR_NONE,
    EntrainmentModel.pi_groups: physcons.ENTR_PI_GROUPS,
    EntrainmentModel.constant_coefficient: physcons.ENTR_CONSTANT_COEFFICIENT,
    EntrainmentModel.constant_timescale: physcons.ENTR_CONSTANT_TIMESCALE,
}

DETRAINMENT_IDS = {
    DetrainmentModel.none: physcons.DETR_NONE,
    DetrainmentModel.pi_groups: physcons.DETR_PI_GROUPS,
    DetrainmentModel.constant_coefficient: physcons.DETR_CONSTANT_COEFFICIENT,
}

ENERGY_IDS = {
    EnergyForm.total_energy: physcons.ENERGY_TOTAL,
    EnergyForm.internal_energy: physcons.ENERGY_INTERNAL,
    EnergyForm.potential_temperature: physcons.ENERGY_THETA,
}


def _as_member(enum_cls, value, option: str):
    if isinstance(value, enum_cls):
        return value
    if value not in enum_cls:
        ndsl_log.error(f"Unsupported {option}: {value}")
        raise NotImplementedError(f"{option} {value} not implemented")
    return enum_cls[value]


@dataclasses.dataclass(frozen=True)
class EDMFConfig:
    n_updrafts: Int = 1
    entr_model: EntrainmentModel = EntrainmentModel.none
    detr_model: DetrainmentModel = DetrainmentModel.none
    entr_coeff: Float = DEFAULT_FLOAT
    detr_coeff: Float = DEFAULT_FLOAT
    entr_tau: Float = 900.0
    max_area: Float = 0.9
    dt: Float = DEFAULT_FLOAT
    turbconv: TurbConvModel = TurbConvModel.prognostic_edmfx
    check_preconditions: bool = True

    def __post_init__(self):
        # frozen dataclass, hence object.__setattr__
        object.__setattr__(
            self,
            "entr_model",
            _as_member(EntrainmentModel, self.entr_model, "entrainment model"),
        )
        object.__setattr__(
            self,
            "detr_model",
            _as_member(DetrainmentModel, self.detr_model, "detrainment model"),
        )
        object.__setattr__(
            self,
            "turbconv",
            _as_member(TurbConvModel, self.turbconv, "turbconv model"),
        )
        if self.n_updrafts < 1:
            raise ValueError(f"n_updrafts must be at least 1, got {self.n_updrafts}")
        if self.entr_model == EntrainmentModel.constant_timescale and (
            self.entr_tau <= 0.0
        ):
            raise ValueError(f"entr_tau must be positive, got {self.entr_tau}")

    @property
    def active(self) -> bool:
        return self.turbconv != TurbConvModel.none

    @property
    def entr_id(self) -> int:
        return ENTRAINMENT_IDS[self.entr_model]

    @property
    def detr_id(self) -> int:
        return DETRAINMENT_IDS[self.detr_model]


@dataclasses.dataclass
class AtmosConfig:
    dt_atmos: Float = DEFAULT_FLOAT
    npx: Int = DEFAULT_INT
    npy: Int = DEFAULT_INT
    npz: Int = DEFAULT_INT
    layout: Tuple[Int, Int] = (1, 1)
    moisture_model: MoistureModel = MoistureModel.dry
    energy_form: EnergyForm = EnergyForm.total_energy
    turbconv: TurbConvModel = TurbConvModel.none
    mslp: Float = physcons.MSLP
    # EDMF
    n_updrafts: Int = 1
    entr_model: EntrainmentModel = EntrainmentModel.none
    detr_model: DetrainmentModel = DetrainmentModel.none
    entr_coeff: Float = DEFAULT_FLOAT
    detr_coeff: Float = DEFAULT_FLOAT
    entr_tau: Float = 900.0
    max_area: Float = 0.9
    check_preconditions: bool = True
    namelist_override: Optional[str] = None

    def __post_init__(self):
        if self.namelist_override is not None:
            try:
                f90_nml = f90nml.read(self.namelist_override)
            except FileNotFoundError:
                ndsl_log.error(f"{self.namelist_override} does not exist")
                raise
            atmos_config = self.from_f90nml(f90_nml)
            for var in atmos_config.__dict__.keys():
                if var != "namelist_override":
                    setattr(self, var, atmos_config.__dict__[var])
        self.moisture_model = _as_member(
            MoistureModel, self.moisture_model, "moisture model"
        )
        self.energy_form = _as_member(EnergyForm, self.energy_form, "energy form")
        self.turbconv = _as_member(TurbConvModel, self.turbconv, "turbconv model")
        self.entr_model = _as_member(
            EntrainmentModel, self.entr_model, "entrainment model"
        )
        self.detr_model = _as_member(
            DetrainmentModel, self.detr_model, "detrainment model"
        )
        self.layout = tuple(self.layout)

    @classmethod
    def from_namelist_file(cls, path: str) -> "AtmosConfig":
        return cls.from_f90nml(f90nml.read(path))

    @classmethod
    def from_f90nml(cls, f90_namelist: f90nml.Namelist) -> "AtmosConfig":
        atmos_nml = f90_namelist.get("atmos_nml", {})
        edmf_nml = f90_namelist.get("edmf_nml", {})
        defaults = cls()
        kwargs = {}
        for _field in dataclasses.fields(cls):
            if _field.name == "namelist_override":
                continue
            if _field.name in edmf_nml:
                kwargs[_field.name] = edmf_nml[_field.name]
            elif _field.name in atmos_nml:
                kwargs[_field.name] = atmos_nml[_field.name]
            else:
                kwargs[_field.name] = getattr(defaults, _field.name)
        return cls(**kwargs)

    @property
    def edmf(self) -> EDMFConfig:
        return EDMFConfig(
            n_updrafts=self.n_updrafts,
            entr_model=self.entr_model,
            detr_model=self.detr_model,
            entr_coeff=self.entr_coeff,
            detr_coeff=self.detr_coeff,
            entr_tau=self.entr_tau,
            max_area=self.max_area,
            dt=self.dt_atmos,
            turbconv=self.turbconv,
            check_preconditions=self.check_preconditions,
        )
