import f90nml
import pytest

from pyAtmos._config import (
    AtmosConfig,
    DetrainmentModel,
    EDMFConfig,
    EnergyForm,
    EntrainmentModel,
    MoistureModel,
    TurbConvModel,
)


NAMELIST = """
&atmos_nml
    dt_atmos = 60.0
    npz = 10
    moisture_model = 'equil'
    energy_form = 'potential_temperature'
    turbconv = 'prognostic_edmfx'
/
&edmf_nml
    n_updrafts = 2
    entr_model = 'pi_groups'
    detr_model = 'constant_coefficient'
    detr_coeff = 0.5
/
"""


def test_defaults():
    config = AtmosConfig()
    assert config.moisture_model == MoistureModel.dry
    assert config.energy_form == EnergyForm.total_energy
    assert config.turbconv == TurbConvModel.none
    assert config.mslp == 101325.0
    assert not config.edmf.active


def test_strings_become_members():
    config = AtmosConfig(
        moisture_model="equil",
        energy_form="internal_energy",
        entr_model="constant_timescale",
        detr_model="pi_groups",
    )
    assert config.moisture_model == MoistureModel.equil
    assert config.energy_form == EnergyForm.internal_energy
    assert config.entr_model == EntrainmentModel.constant_timescale
    assert config.detr_model == DetrainmentModel.pi_groups


@pytest.mark.parametrize(
    "kwargs",
    [
        {"moisture_model": "wet"},
        {"energy_form": "enthalpy"},
        {"turbconv": "diagnostic_edmfx"},
        {"entr_model": "stochastic"},
        {"detr_model": "constant_timescale"},
    ],
)
def test_unknown_option_is_fatal(kwargs):
    with pytest.raises(NotImplementedError):
        AtmosConfig(**kwargs)


def test_edmf_config_validation():
    with pytest.raises(ValueError):
        EDMFConfig(n_updrafts=0)
    with pytest.raises(ValueError):
        EDMFConfig(entr_model="constant_timescale", entr_tau=0.0)


def test_edmf_config_is_immutable():
    config = EDMFConfig()
    with pytest.raises(AttributeError):
        config.n_updrafts = 3


def test_from_namelist_file(tmp_path):
    path = tmp_path / "input.nml"
    path.write_text(NAMELIST)
    config = AtmosConfig.from_namelist_file(str(path))
    assert config.dt_atmos == 60.0
    assert config.npz == 10
    assert config.moisture_model == MoistureModel.equil
    assert config.energy_form == EnergyForm.potential_temperature

    edmf = config.edmf
    assert edmf.active
    assert edmf.n_updrafts == 2
    assert edmf.entr_model == EntrainmentModel.pi_groups
    assert edmf.detr_model == DetrainmentModel.constant_coefficient
    assert edmf.detr_coeff == 0.5
    assert edmf.dt == 60.0


def test_namelist_override(tmp_path):
    path = tmp_path / "input.nml"
    f90nml.write(f90nml.reads(NAMELIST), str(path))
    config = AtmosConfig(moisture_model="dry", namelist_override=str(path))
    assert config.moisture_model == MoistureModel.equil
    assert config.n_updrafts == 2


def test_missing_namelist(tmp_path):
    with pytest.raises(FileNotFoundError):
        AtmosConfig(namelist_override=str(tmp_path / "missing.nml"))
