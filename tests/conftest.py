import numpy as np
import pytest

from ndsl.boilerplate import get_factories_single_tile_numpy
from pyAtmos.state import ColumnGeometry


NX = 2
NY = 2
NHALO = 1


@pytest.fixture
def make_factories():
    def _make_factories(nz: int):
        return get_factories_single_tile_numpy(NX, NY, nz, NHALO)

    return _make_factories


@pytest.fixture
def uniform_geometry():
    """Columns of nz layers, dz thick, starting at the surface."""

    def _uniform_geometry(quantity_factory, nz: int, dz: float = 100.0):
        return ColumnGeometry.from_face_heights(
            quantity_factory, np.arange(nz + 1) * dz
        )

    return _uniform_geometry
