from gt4py.cartesian import gtscript
from gt4py.cartesian.gtscript import exp

import pyAtmos.constants as physcons


@gtscript.function
def liquid_fraction(t):
    """
    Fraction of condensate in the liquid phase: 1 above freezing, 0 below
    homogeneous ice nucleation and linear in between.
    """
    fliq = (t - physcons.T_ICENUC) / (physcons.T_FREEZE - physcons.T_ICENUC)
    if t >= physcons.T_FREEZE:
        fliq = 1.0
    if t <= physcons.T_ICENUC:
        fliq = 0.0
    return fliq


@gtscript.function
def saturation_vapor_pressure(t):
    """
    Saturation vapor pressure [Pa] over a liquid/ice mixture.

    The Clausius-Clapeyron relation is integrated from the triple point with
    constant heat capacities:
        p_sat = p_tr * (t / t_tr) ** (dcp / Rv)
                * exp((L0 - dcp * T0) / Rv * (1 / t_tr - 1 / t))
    for liquid (L0 = Lv0, dcp = cp_v - cp_l) and ice (L0 = Ls0,
    dcp = cp_v - cp_i). Between homogeneous ice nucleation and freezing the
    two are blended with the liquid fraction.
    """
    dcp_l = physcons.CP_V - physcons.CP_L
    dcp_i = physcons.CP_V - physcons.CP_I
    tr = t / physcons.T_TRIPLE
    pvl = (
        physcons.PRESS_TRIPLE
        * (tr ** (dcp_l / physcons.R_V))
        * exp(
            (physcons.LH_V0 - dcp_l * physcons.T_0)
            / physcons.R_V
            * (1.0 / physcons.T_TRIPLE - 1.0 / t)
        )
    )
    pvi = (
        physcons.PRESS_TRIPLE
        * (tr ** (dcp_i / physcons.R_V))
        * exp(
            (physcons.LH_S0 - dcp_i * physcons.T_0)
            / physcons.R_V
            * (1.0 / physcons.T_TRIPLE - 1.0 / t)
        )
    )
    w = liquid_fraction(t)
    return w * pvl + (1.0 - w) * pvi


@gtscript.function
def q_vap_saturation(t, rho):
    return saturation_vapor_pressure(t) / (rho * physcons.R_V * t)


@gtscript.function
def gas_constant_air(q_tot, q_liq, q_ice):
    return physcons.R_D * (1.0 - q_tot) + physcons.R_V * (q_tot - q_liq - q_ice)


@gtscript.function
def cv_m(q_tot, q_liq, q_ice):
    return (
        physcons.CV_D
        + (physcons.CV_V - physcons.CV_D) * q_tot
        + (physcons.CV_L - physcons.CV_V) * q_liq
        + (physcons.CV_I - physcons.CV_V) * q_ice
    )


@gtscript.function
def cp_m(q_tot, q_liq, q_ice):
    return (
        physcons.CP_D
        + (physcons.CP_V - physcons.CP_D) * q_tot
        + (physcons.CP_L - physcons.CP_V) * q_liq
        + (physcons.CP_I - physcons.CP_V) * q_ice
    )


@gtscript.function
def internal_energy(t, q_tot, q_liq, q_ice):
    return (
        cv_m(q_tot, q_liq, q_ice) * (t - physcons.T_0)
        + (q_tot - q_liq - q_ice) * physcons.E_INT_V0
        - q_ice * physcons.E_INT_I0
    )


@gtscript.function
def exner(p, q_tot, q_liq, q_ice):
    kappa = gas_constant_air(q_tot, q_liq, q_ice) / cp_m(q_tot, q_liq, q_ice)
    return (p / physcons.P_REF_THETA) ** kappa


@gtscript.function
def liquid_ice_pottemp(t, p, q_tot, q_liq, q_ice):
    return (
        t
        / exner(p, q_tot, q_liq, q_ice)
        * (
            1.0
            - (physcons.LH_V0 * q_liq + physcons.LH_S0 * q_ice)
            / (cp_m(q_tot, q_liq, q_ice) * t)
        )
    )
