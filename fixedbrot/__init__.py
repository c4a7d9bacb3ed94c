"""Public API for the fixed-point escape-time engine."""

from .controller import ControllerState, RequestController
from .coordinates import ComplexConstant, ViewParameters, map_grid, map_pixel, map_request
from .engine import IterationState, compute_iterations, float_iterations, iterate_point
from .fixed_point import Q3_9, Q3_13, FixedFormat, arith_shift, truncate
from .renderer import FrameView, RenderResult, float_frame, render_frame
from .sequence import ZoomPlanner, center_for_pixel, select_zoom_center, zoom_levels

__all__ = [
    "ComplexConstant",
    "ControllerState",
    "FixedFormat",
    "FrameView",
    "IterationState",
    "Q3_13",
    "Q3_9",
    "RenderResult",
    "RequestController",
    "ViewParameters",
    "ZoomPlanner",
    "arith_shift",
    "center_for_pixel",
    "compute_iterations",
    "float_frame",
    "float_iterations",
    "iterate_point",
    "map_grid",
    "map_pixel",
    "map_request",
    "render_frame",
    "select_zoom_center",
    "truncate",
    "zoom_levels",
]
