"""Utilities for stepping a fixed-point view through a zoom sequence."""

from __future__ import annotations

from dataclasses import dataclass, replace

import numpy as np

from .coordinates import CENTER_SHIFT, CENTER_WIDTH, MAX_ZOOM, map_pixel
from .fixed_point import truncate
from .renderer import FrameView, RenderResult


def zoom_levels(start: int, stop: int) -> list[int]:
    """Inclusive list of zoom levels from ``start`` to ``stop``, clamped to the hardware range."""

    if start < 0 or stop < 0:
        raise ValueError("zoom levels are unsigned")
    start = min(start, MAX_ZOOM)
    stop = min(stop, MAX_ZOOM)
    step = 1 if stop >= start else -1
    return list(range(start, stop + step, step))


def edge_map(inside: np.ndarray) -> np.ndarray:
    """Boundary of the bounded region: pixels whose row neighbour differs."""

    return np.logical_xor(np.roll(inside, 1, axis=0), inside)


def select_zoom_center(edges: np.ndarray) -> np.ndarray:
    """Pick the edge pixel ``(row, col)`` nearest the frame center, or the center itself."""

    height, width = edges.shape
    center = np.array([height // 2, width // 2], dtype=np.int64)
    edge_indices = np.argwhere(edges)
    if edge_indices.size == 0:
        return center
    distances = np.sum((edge_indices - center) ** 2, axis=1)
    return edge_indices[int(np.argmin(distances))]


def center_for_pixel(view: FrameView, pixel_x: int, pixel_y: int) -> tuple[int, int]:
    """Q3.13 center that places ``(pixel_x, pixel_y)`` of ``view`` on the screen center."""

    c = map_pixel(pixel_x, pixel_y, view.center_x, view.center_y, view.zoom_level)
    return (
        truncate(c.c_real << CENTER_SHIFT, CENTER_WIDTH),
        truncate(c.c_imag << CENTER_SHIFT, CENTER_WIDTH),
    )


@dataclass(frozen=True)
class ZoomPlanner:
    """Maintain the view updates for a zoom sequence."""

    follow_edges: bool = True

    def recenter(self, view: FrameView, pixel_x: int, pixel_y: int) -> FrameView:
        center_x, center_y = center_for_pixel(view, pixel_x, pixel_y)
        return replace(view, center_x=center_x, center_y=center_y)

    def update_after_frame(self, view: FrameView, result: RenderResult, zoom_level: int) -> FrameView:
        if self.follow_edges:
            row, col = select_zoom_center(edge_map(result.inside))
            view = self.recenter(view, int(col), int(row))
        return replace(view, zoom_level=zoom_level)
