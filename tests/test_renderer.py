import numpy as np
import pytest

from fixedbrot.engine import float_iterations, iterate_point
from fixedbrot.coordinates import ViewParameters
from fixedbrot.fixed_point import Q3_13
from fixedbrot.renderer import FrameView, float_frame, render_frame

VIEWS = [
    FrameView(center_x=0, center_y=0, zoom_level=0, max_iter_limit=63, width=32, height=24),
    FrameView(center_x=-30720, center_y=4096, zoom_level=8, max_iter_limit=63, width=20, height=16),
    FrameView(center_x=Q3_13.from_real(-0.75), center_y=Q3_13.from_real(0.1), zoom_level=6, max_iter_limit=40, width=24, height=20),
    FrameView(center_x=65536 - 5000, center_y=2000, zoom_level=4, max_iter_limit=50, width=16, height=16),
]


@pytest.mark.parametrize("view", VIEWS)
def test_frame_matches_scalar_engine(view):
    result = render_frame(view)
    assert result.iterations.shape == (view.height, view.width)
    for y in range(view.height):
        for x in range(view.width):
            expected = iterate_point(int(result.c_real[y, x]), int(result.c_imag[y, x]), view.max_iter_limit)
            assert result.iterations[y, x] == expected, (x, y)


def test_limit_zero_frame_is_all_zero():
    result = render_frame(FrameView(center_x=0, center_y=0, zoom_level=0, max_iter_limit=0, width=8, height=6))
    assert not result.iterations.any()
    assert result.inside.all()


def test_inside_mask_marks_limit_pixels():
    view = FrameView(center_x=0, center_y=0, zoom_level=2, max_iter_limit=63, width=8, height=4)
    result = render_frame(view)
    assert np.array_equal(result.inside, result.iterations == 63)
    assert result.view is view


def test_frame_view_validation():
    with pytest.raises(ValueError):
        FrameView(center_x=0, center_y=0, zoom_level=0, max_iter_limit=10, width=0, height=10)
    with pytest.raises(ValueError):
        FrameView(center_x=0, center_y=0, zoom_level=-1, max_iter_limit=10)


def test_float_frame_matches_scalar_reference():
    view = FrameView(center_x=Q3_13.from_real(-0.5), center_y=0, zoom_level=5, max_iter_limit=30, width=12, height=8)
    grid = float_frame(view)
    for y in range(view.height):
        for x in range(view.width):
            params = ViewParameters(x, y, view.center_x, view.center_y, view.zoom_level, view.max_iter_limit)
            assert grid[y, x] == float_iterations(params)
