from gt4py.cartesian import gtscript


@gtscript.function
def center_to_face(field):
    """Linear interpolation of a cell-center field to an interior face."""
    return 0.5 * (field[0, 0, -1] + field[0, 0, 0])


@gtscript.function
def face_to_center(field):
    """Average of the two faces bounding a cell."""
    return 0.5 * (field[0, 0, 0] + field[0, 0, 1])
