import numpy as np

from pyAtmos.state import AtmosState, EnvironmentState, UpdraftState
from pyAtmos.stencils.edmf.environment import EnvironmentDiagnostics


NZ = 4


def _grid_mean(quantity_factory):
    state = AtmosState.init_zeros(quantity_factory)
    state.rho.view[:] = 1.2
    state.rho_q_tot.view[:] = 1.2 * 0.01
    state.h_tot.view[:] = 3.0e5
    state.w.view[:] = 1.0
    return state


def _updraft(quantity_factory, rhoa, h_tot, q_tot, w):
    updraft = UpdraftState.init_zeros(quantity_factory)
    updraft.rhoa.view[:] = rhoa
    updraft.rhoa_h_tot.view[:] = rhoa * h_tot
    updraft.rhoa_q_tot.view[:] = rhoa * q_tot
    updraft.w.view[:] = w
    return updraft


def test_environment_is_grid_mean_minus_updrafts(make_factories):
    stencil_factory, quantity_factory = make_factories(NZ)
    state = _grid_mean(quantity_factory)
    updrafts = [
        _updraft(quantity_factory, 0.12, 3.1e5, 0.015, 2.0),
        _updraft(quantity_factory, 0.06, 3.05e5, 0.012, 3.0),
    ]
    environment = EnvironmentState.init_zeros(quantity_factory)
    EnvironmentDiagnostics(stencil_factory, quantity_factory)(
        state, updrafts, environment
    )

    rhoa_env = 1.2 - 0.12 - 0.06
    np.testing.assert_allclose(environment.rhoa.view[:], rhoa_env, rtol=1e-6)
    np.testing.assert_allclose(
        environment.h_tot.view[:],
        (1.2 * 3.0e5 - 0.12 * 3.1e5 - 0.06 * 3.05e5) / rhoa_env,
        rtol=1e-6,
    )
    np.testing.assert_allclose(
        environment.q_tot.view[:],
        (1.2 * 0.01 - 0.12 * 0.015 - 0.06 * 0.012) / rhoa_env,
        rtol=1e-6,
    )
    w_env = (1.2 * 1.0 - 0.12 * 2.0 - 0.06 * 3.0) / rhoa_env
    np.testing.assert_allclose(environment.w.view[:], w_env, rtol=1e-6)
    np.testing.assert_allclose(environment.w_center.view[:], w_env, rtol=1e-6)

    np.testing.assert_allclose(updrafts[0].area.view[:], 0.1, rtol=1e-6)
    np.testing.assert_allclose(updrafts[1].area.view[:], 0.05, rtol=1e-6)
    np.testing.assert_allclose(updrafts[0].h_tot.view[:], 3.1e5, rtol=1e-6)
    np.testing.assert_allclose(updrafts[1].q_tot.view[:], 0.012, rtol=1e-6)
    np.testing.assert_allclose(updrafts[1].w_center.view[:], 3.0, rtol=1e-6)


def test_updraft_filling_the_column_leaves_empty_environment(make_factories):
    stencil_factory, quantity_factory = make_factories(NZ)
    state = _grid_mean(quantity_factory)
    updraft = _updraft(quantity_factory, 1.2, 3.1e5, 0.015, 2.0)
    environment = EnvironmentState.init_zeros(quantity_factory)
    EnvironmentDiagnostics(stencil_factory, quantity_factory)(
        state, [updraft], environment
    )
    assert np.all(np.asarray(environment.rhoa.view[:]) == 0.0)
    assert np.all(np.asarray(environment.h_tot.view[:]) == 0.0)
    assert np.all(np.asarray(environment.q_tot.view[:]) == 0.0)
    assert np.all(np.asarray(environment.w.view[:]) == 0.0)


def test_empty_updraft(make_factories):
    stencil_factory, quantity_factory = make_factories(NZ)
    state = _grid_mean(quantity_factory)
    updraft = _updraft(quantity_factory, 0.0, 3.1e5, 0.015, 2.0)
    environment = EnvironmentState.init_zeros(quantity_factory)
    EnvironmentDiagnostics(stencil_factory, quantity_factory)(
        state, [updraft], environment
    )
    assert np.all(np.asarray(updraft.area.view[:]) == 0.0)
    assert np.all(np.asarray(updraft.h_tot.view[:]) == 0.0)
    np.testing.assert_allclose(environment.h_tot.view[:], 3.0e5, rtol=1e-6)
    np.testing.assert_allclose(environment.w.view[:], 1.0, rtol=1e-6)
