import pytest

from fixedbrot.coordinates import ViewParameters, map_pixel
from fixedbrot.engine import (
    ESCAPE_THRESHOLD,
    IterationState,
    compute_iterations,
    float_iterations,
    has_escaped,
    iterate_point,
    magnitude,
    next_iterate,
)


def request(pixel_x, pixel_y, center_x=0, center_y=0, zoom_level=0, max_iter_limit=63):
    return ViewParameters(
        pixel_x=pixel_x,
        pixel_y=pixel_y,
        center_x=center_x,
        center_y=center_y,
        zoom_level=zoom_level,
        max_iter_limit=max_iter_limit,
    )


BENCH_CASES = [
    # name, params, expected
    ("origin", request(320, 240), 63),
    ("offset wraps to zero", request(576, 240, zoom_level=1), 63),
    ("period two bulb", request(256, 240, zoom_level=2), 63),
    ("max zoom", request(320, 240, zoom_level=15), 63),
    ("zoom clamping", request(320, 240, zoom_level=16), 63),
    ("max iter zero", request(320, 240, max_iter_limit=0), 0),
    ("max iter one", request(480, 240, zoom_level=2, max_iter_limit=1), 1),
    ("most negative center", request(320, 240, center_x=-32768, zoom_level=4), 1),
    ("c is minus two", request(192, 240, zoom_level=2), 63),
    ("center truncation", request(320, 240, center_x=15), 63),
    ("seahorse valley", request(320, 240, center_x=-30720, center_y=4096, zoom_level=8), 1),
]


@pytest.mark.parametrize("name, params, expected", BENCH_CASES, ids=[case[0] for case in BENCH_CASES])
def test_bench_cases(name, params, expected):
    assert compute_iterations(params) == expected


def test_escape_after_first_update():
    # c = 2.5: |z|^2 = 6.25 after one step.
    assert iterate_point(1280, 0, 63) == 1


def test_half_escapes_after_five():
    assert iterate_point(256, 0, 63) == 5
    assert iterate_point(256, 0, 5) == 5
    assert iterate_point(256, 0, 4) == 4


def test_limit_one_returns_one_for_point_that_runs_longer():
    assert iterate_point(256, 0, 63) > 1
    assert iterate_point(256, 0, 1) == 1


def test_two_never_escapes_because_the_iterate_wraps():
    # z^2 + c = 4.0 + 2.0 wraps to -2.0 in Q3.9, and |z|^2 == 4.0 is not an escape.
    state = next_iterate(IterationState(), 1024, 0)
    assert state == IterationState(1024, 0, 1)
    state = next_iterate(state, 1024, 0)
    assert state == IterationState(-1024, 0, 2)
    assert iterate_point(1024, 0, 63) == 63


def test_limit_zero_never_updates():
    for c_real, c_imag in [(0, 0), (2047, 2047), (-2048, -2048), (1280, 0)]:
        assert iterate_point(c_real, c_imag, 0) == 0


def test_magnitude_rescales_before_summing():
    # Each square shifted separately loses its own low bits.
    state = IterationState(z_real=1, z_imag=1)
    assert magnitude(state) == 0
    state = IterationState(z_real=-1024, z_imag=0)
    assert magnitude(state) == ESCAPE_THRESHOLD
    assert not has_escaped(state, 10)


def test_has_escaped_shares_limit_exit():
    assert has_escaped(IterationState(iteration=3), 3)
    assert not has_escaped(IterationState(iteration=2), 3)
    assert has_escaped(IterationState(z_real=1100, iteration=0), 3)


def test_cross_term_uses_doubled_product():
    state = next_iterate(IterationState(z_real=256, z_imag=256), 0, 0)
    # (0.5 + 0.5i)^2 = 0.5i
    assert (state.z_real, state.z_imag) == (0, 256)


def test_squared_difference_wraps_at_sum_width():
    # 1500**2 >> 9 = 4394 overflows 13 bits, then the sum is cut to 12 bits.
    state = next_iterate(IterationState(z_real=1500, z_imag=0), 0, 0)
    assert state.z_real == 298


@pytest.mark.parametrize("limit", [0, 1, 2, 7, 31, 63, 255])
def test_result_is_within_bounds(limit):
    for pixel_x in range(0, 640, 37):
        for pixel_y in range(0, 480, 53):
            for zoom in (0, 2, 5):
                result = compute_iterations(request(pixel_x, pixel_y, -4000, 1000, zoom, limit))
                assert 0 <= result <= limit


def test_center_low_bits_do_not_change_result():
    for pixel_x, pixel_y in [(300, 200), (500, 100), (10, 470)]:
        base = compute_iterations(request(pixel_x, pixel_y, -6144, 1024, 4))
        for low in (1, 7, 15):
            assert compute_iterations(request(pixel_x, pixel_y, -6144 + low, 1024 + low, 4)) == base


def test_zoom_fifteen_and_twenty_agree():
    for pixel in [(0, 0), (639, 479), (333, 111)]:
        assert compute_iterations(request(*pixel, -6144, 800, 15)) == compute_iterations(request(*pixel, -6144, 800, 20))


def test_float_reference_on_simple_points():
    assert float_iterations(request(320, 240)) == 63
    assert float_iterations(request(480, 240, zoom_level=2)) == 1
    assert float_iterations(request(256, 240, zoom_level=2, max_iter_limit=0)) == 0


def test_interesting_point_constant():
    params = request(400, 300, 65536 - 5000, 2000, 4, 50)
    c = map_pixel(400, 300, 65536 - 5000, 2000, 4)
    assert iterate_point(c.c_real, c.c_imag, 50) == compute_iterations(params)
    assert 0 <= compute_iterations(params) <= 50
