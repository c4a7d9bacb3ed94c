import numpy as np
import pytest

from fixedbrot.coordinates import ComplexConstant, map_pixel
from fixedbrot.renderer import FrameView, RenderResult
from fixedbrot.sequence import ZoomPlanner, center_for_pixel, edge_map, select_zoom_center, zoom_levels


def test_zoom_levels_inclusive_in_both_directions():
    assert zoom_levels(0, 3) == [0, 1, 2, 3]
    assert zoom_levels(5, 2) == [5, 4, 3, 2]
    assert zoom_levels(7, 7) == [7]


def test_zoom_levels_clamp_to_fifteen():
    assert zoom_levels(14, 20) == [14, 15]
    assert zoom_levels(18, 19) == [15]


def test_zoom_levels_reject_negative():
    with pytest.raises(ValueError):
        zoom_levels(-1, 3)


def test_center_for_pixel_puts_pixel_on_screen_center():
    view = FrameView(center_x=0, center_y=0, zoom_level=2, max_iter_limit=63)
    center_x, center_y = center_for_pixel(view, 256, 200)
    assert (center_x, center_y) == (-8192, -5120)
    assert map_pixel(320, 240, center_x, center_y, 2) == map_pixel(256, 200, 0, 0, 2)


def test_select_zoom_center_prefers_nearest_edge():
    edges = np.zeros((9, 9), dtype=bool)
    edges[0, 0] = True
    edges[4, 6] = True
    assert select_zoom_center(edges).tolist() == [4, 6]


def test_select_zoom_center_without_edges_returns_middle():
    assert select_zoom_center(np.zeros((6, 10), dtype=bool)).tolist() == [3, 5]


def test_edge_map_marks_row_transitions():
    inside = np.array([[False], [True], [True], [False]])
    assert edge_map(inside)[:, 0].tolist() == [False, True, False, True]


def test_planner_recenters_and_zooms():
    view = FrameView(center_x=0, center_y=0, zoom_level=0, max_iter_limit=10, width=4, height=4)
    iterations = np.zeros((4, 4), dtype=np.int64)
    iterations[2:, :] = 10
    result = RenderResult(iterations=iterations, c_real=iterations, c_imag=iterations, view=view)

    updated = ZoomPlanner().update_after_frame(view, result, 1)
    assert updated.zoom_level == 1
    assert map_pixel(320, 240, updated.center_x, updated.center_y, 0) == map_pixel(2, 2, 0, 0, 0)
    assert map_pixel(2, 2, 0, 0, 0) == ComplexConstant(-1984, 576)

    still = ZoomPlanner(follow_edges=False).update_after_frame(view, result, 3)
    assert (still.center_x, still.center_y, still.zoom_level) == (0, 0, 3)
