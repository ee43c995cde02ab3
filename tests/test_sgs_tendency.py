import numpy as np
import pytest

from ndsl.constants import X_DIM, Y_DIM, Z_DIM
from ndsl.dsl.typing import Float
from pyAtmos._config import EDMFConfig
from pyAtmos.state import EnvironmentState, UpdraftState, UpdraftTendencies
from pyAtmos.stencils.edmf.sgs_tendency import SGSTendency


NZ = 3


def _rate(quantity_factory, values):
    rate = quantity_factory.zeros([X_DIM, Y_DIM, Z_DIM], "1/s", dtype=Float)
    rate.view[:] = values
    return rate


def _setup(quantity_factory, n_updrafts=1):
    rng = np.random.default_rng(7)
    updrafts, tendencies, entr, detr = [], [], [], []
    for _ in range(n_updrafts):
        updraft = UpdraftState.init_zeros(quantity_factory)
        updraft.rhoa.view[:] = 0.1
        updraft.h_tot.view[:] = 3.1e5
        updraft.q_tot.view[:] = 0.015
        updraft.w.view[:] = 2.0
        updrafts.append(updraft)
        tendency = UpdraftTendencies.init_zeros(quantity_factory)
        for name in ("rhoa", "rhoa_h_tot", "rhoa_q_tot", "w"):
            q = getattr(tendency, name)
            q.view[:] = rng.uniform(-1.0, 1.0, q.view[:].shape)
        tendencies.append(tendency)
        entr.append(_rate(quantity_factory, np.array([1.0e-3, 2.0e-3, 4.0e-3])))
        detr.append(_rate(quantity_factory, 5.0e-4))
    environment = EnvironmentState.init_zeros(quantity_factory)
    environment.h_tot.view[:] = 2.9e5
    environment.q_tot.view[:] = 0.008
    environment.w_center.view[:] = np.array([0.5, -0.5, 0.25])
    return updrafts, environment, entr, detr, tendencies


def test_null_turbconv_leaves_tendencies_untouched(make_factories):
    stencil_factory, quantity_factory = make_factories(NZ)
    updrafts, environment, entr, detr, tendencies = _setup(quantity_factory)
    names = ("rhoa", "rhoa_h_tot", "rhoa_q_tot", "w")
    before = [
        {name: getattr(t, name).data.copy() for name in names} for t in tendencies
    ]
    sgs = SGSTendency(stencil_factory, EDMFConfig(turbconv="none"))
    assert not sgs.active
    sgs(updrafts, environment, entr, detr, tendencies)
    for tendency, saved in zip(tendencies, before):
        for name, data in saved.items():
            np.testing.assert_array_equal(getattr(tendency, name).data, data)


def test_center_tendencies(make_factories):
    stencil_factory, quantity_factory = make_factories(NZ)
    updrafts, environment, entr, detr, tendencies = _setup(quantity_factory)
    before = {
        name: np.asarray(getattr(tendencies[0], name).view[:]).copy()
        for name in ("rhoa", "rhoa_h_tot", "rhoa_q_tot")
    }
    SGSTendency(stencil_factory, EDMFConfig())(
        updrafts, environment, entr, detr, tendencies
    )
    e = np.array([1.0e-3, 2.0e-3, 4.0e-3])
    d = 5.0e-4
    np.testing.assert_allclose(
        tendencies[0].rhoa.view[:], before["rhoa"] + 0.1 * (e - d), rtol=1e-6
    )
    np.testing.assert_allclose(
        tendencies[0].rhoa_h_tot.view[:],
        before["rhoa_h_tot"] + 0.1 * (e * 2.9e5 - d * 3.1e5),
        rtol=1e-6,
    )
    np.testing.assert_allclose(
        tendencies[0].rhoa_q_tot.view[:],
        before["rhoa_q_tot"] + 0.1 * (e * 0.008 - d * 0.015),
        rtol=1e-6,
        atol=1e-12,
    )


def test_momentum_tendency_on_faces(make_factories):
    stencil_factory, quantity_factory = make_factories(NZ)
    updrafts, environment, entr, detr, tendencies = _setup(quantity_factory)
    before = np.asarray(tendencies[0].w.view[:]).copy()
    SGSTendency(stencil_factory, EDMFConfig())(
        updrafts, environment, entr, detr, tendencies
    )
    e = np.array([1.0e-3, 2.0e-3, 4.0e-3])
    w_env = np.array([0.5, -0.5, 0.25])
    w_up = 2.0

    def to_faces(field):
        # boundary faces take the adjacent center
        return np.concatenate([field[:1], 0.5 * (field[:-1] + field[1:]), field[-1:]])

    expected = to_faces(e * w_env) - to_faces(e) * w_up
    np.testing.assert_allclose(
        np.asarray(tendencies[0].w.view[:]) - before,
        np.broadcast_to(expected, before.shape),
        rtol=1e-5,
        atol=1e-12,
    )


def test_updrafts_are_independent(make_factories):
    stencil_factory, quantity_factory = make_factories(NZ)
    updrafts, environment, entr, detr, tendencies = _setup(quantity_factory, 2)
    detr[1].view[:] = 0.0
    before = np.asarray(tendencies[1].rhoa.view[:]).copy()
    SGSTendency(stencil_factory, EDMFConfig(n_updrafts=2))(
        updrafts, environment, entr, detr, tendencies
    )
    e = np.array([1.0e-3, 2.0e-3, 4.0e-3])
    np.testing.assert_allclose(tendencies[1].rhoa.view[:], before + 0.1 * e, rtol=1e-6)


def test_updraft_count_mismatch(make_factories):
    stencil_factory, quantity_factory = make_factories(NZ)
    updrafts, environment, entr, detr, tendencies = _setup(quantity_factory)
    sgs = SGSTendency(stencil_factory, EDMFConfig(n_updrafts=2))
    with pytest.raises(ValueError):
        sgs(updrafts, environment, entr, detr, tendencies)
