import numpy as np

import ndsl.constants as constants
from ndsl.dsl.typing import Float


EPS_FT = float(np.finfo(Float).eps)

MSLP = 101325.0  # Mean sea level pressure

# Moist thermodynamics
R_D = constants.RDGAS
R_V = constants.RVGAS
CP_D = constants.CP_AIR
CV_D = CP_D - R_D
CP_V = 1859.0
CV_V = CP_V - R_V
CP_L = 4181.0
CV_L = CP_L
CP_I = 2100.0
CV_I = CP_I
LH_V0 = constants.HLV  # Latent heat of vaporization at T_0
LH_F0 = constants.HLF  # Latent heat of fusion at T_0
LH_S0 = LH_V0 + LH_F0
T_0 = 273.16  # Reference temperature of the energy definitions
T_TRIPLE = 273.16
PRESS_TRIPLE = 611.657
T_FREEZE = 273.15
T_ICENUC = 233.0  # Homogeneous ice nucleation
E_INT_V0 = LH_V0 - R_V * T_0
E_INT_I0 = LH_F0
P_REF_THETA = 1.0e5
RV_OVER_RD = R_V / R_D
SAT_ADJUST_ITERS = 20

# Entrainment / detrainment closures
ENTR_NONE = 0
ENTR_PI_GROUPS = 1
ENTR_CONSTANT_COEFFICIENT = 2
ENTR_CONSTANT_TIMESCALE = 3
DETR_NONE = 0
DETR_PI_GROUPS = 1
DETR_CONSTANT_COEFFICIENT = 2

WSTAR_ZI = 1000.0  # Assumed inversion height for the convective velocity
AREA_LIMITER_SCALE = 0.1
AREA_LIMITER_POWER = 10.0

# Pi-group regression fits
ENTR_PI_C0 = -4.013288
ENTR_PI_C1 = -0.000968
ENTR_PI_C3 = 0.356974
ENTR_PI_C4 = -0.403124
ENTR_PI_C6 = 1.503261
DETR_PI_C0 = 3.535208
DETR_PI_C1 = 0.598496
DETR_PI_C3 = 1.583348
DETR_PI_C4 = 0.046275
DETR_PI_C6 = -0.344836

# Energy forms
ENERGY_TOTAL = 0
ENERGY_INTERNAL = 1
ENERGY_THETA = 2
