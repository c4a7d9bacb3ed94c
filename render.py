import logging
import math
import os
import sys
import warnings
from argparse import ArgumentParser
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf
import numpy as np

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")

import PIL.Image
import imageio
from matplotlib import colormaps

from fixedbrot import (
    Q3_13,
    FrameView,
    ViewParameters,
    ZoomPlanner,
    float_frame,
    float_iterations,
    compute_iterations,
    map_request,
    render_frame,
    zoom_levels,
)
from fixedbrot.coordinates import SCREEN_HEIGHT, SCREEN_WIDTH


def select_device() -> str:
    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        log("No GPU found, using CPU")
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as e:
        log(e)
        return '/CPU:0'
    log("GPU found, using %s" % gpus[0].name)
    return '/GPU:0'


@dataclass(frozen=True)
class OutputConfig:
    modes: tuple[str, ...]
    gif_path: Path | None
    image_path: Path | None
    frame_dir: Path | None
    image_format: str


def build_parser():
    parser = ArgumentParser(description='Render frames with the fixed-point escape-time engine.')

    parser.add_argument('--center-x', type=int, dest='center_x', default=None, metavar='CENTER_X',
                        help='view center real part as a signed or raw 16-bit Q3.13 value')
    parser.add_argument('--center-y', type=int, dest='center_y', default=None, metavar='CENTER_Y',
                        help='view center imaginary part as a signed or raw 16-bit Q3.13 value')
    parser.add_argument('--center-real', type=float, dest='center_real', default=None, metavar='REAL',
                        help='view center real part as a float, converted to Q3.13')
    parser.add_argument('--center-imag', type=float, dest='center_imag', default=None, metavar='IMAG',
                        help='view center imaginary part as a float, converted to Q3.13')

    parser.add_argument('--zoom', type=int, dest='zoom', default=0, metavar='ZOOM',
                        help='zoom level; each level halves the pixel step, values above 15 are clamped')
    parser.add_argument('--zoom-to', type=int, dest='zoom_to', default=None, metavar='ZOOM_TO',
                        help='render one frame per zoom level from --zoom to this level (inclusive)')
    parser.add_argument('--follow-edges', dest='follow_edges', action='store_true',
                        help='recenter on the set boundary nearest the middle after each frame of a sequence')

    parser.add_argument('--max-iter', type=int, dest='max_iter', default=63, metavar='MAX_ITER',
                        help='iteration limit per pixel')
    parser.add_argument('--width', type=int, dest='width', default=SCREEN_WIDTH, metavar='WIDTH',
                        help='number of pixel columns to render, starting at column 0')
    parser.add_argument('--height', type=int, dest='height', default=SCREEN_HEIGHT, metavar='HEIGHT',
                        help='number of pixel rows to render, starting at row 0')

    parser.add_argument('--mode', dest='modes', action='append', metavar='MODE',
                        help='Output modes to generate. May be repeated. Choices: image, gif, frames.')
    parser.add_argument('--output', dest='output', type=str,
                        help='Destination for single-file outputs (gif/image) or container directory when both are requested.')
    parser.add_argument('--frame-dir', dest='frame_dir', type=str,
                        help='Directory in which to store the numbered frame sequence.')
    parser.add_argument('--format', type=str, dest='format', default='png', metavar='FORMAT',
                        help='file format for image-based outputs. Can be any extension supported by Pillow. Default: "png".')

    parser.add_argument('--colormap', type=str, dest='colormap', default='twilight_shifted', metavar='COLORMAP',
                        help='matplotlib colormap applied to escape counts (e.g. "viridis", "inferno")')
    parser.add_argument('--invert', action='store_true', help='Invert the selected colormap.')
    parser.add_argument('--inside-color', type=str, default='#000000',
                        help='Hex color for points that reach the iteration limit.')

    parser.add_argument('--probe', type=int, nargs=2, metavar=('PIXEL_X', 'PIXEL_Y'),
                        help='print c and the fixed/float iteration counts for one pixel instead of rendering')
    parser.add_argument('--compare-float', dest='compare_float', action='store_true',
                        help='report how many pixels differ from the floating-point reference')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def resolve_center(opt, parser: ArgumentParser) -> tuple[int, int]:
    if opt.center_x is not None and opt.center_real is not None:
        parser.error("--center-x and --center-real are mutually exclusive.")
    if opt.center_y is not None and opt.center_imag is not None:
        parser.error("--center-y and --center-imag are mutually exclusive.")
    for flag, value in (("--center-real", opt.center_real), ("--center-imag", opt.center_imag)):
        if value is not None and not math.isfinite(value):
            parser.error(f"{flag} must be a finite number, got {value}.")

    if opt.center_real is not None:
        center_x = Q3_13.from_real(opt.center_real)
    else:
        center_x = opt.center_x or 0
    if opt.center_imag is not None:
        center_y = Q3_13.from_real(opt.center_imag)
    else:
        center_y = opt.center_y or 0
    return center_x, center_y


def resolve_output_config(opt, parser: ArgumentParser) -> OutputConfig:
    valid_modes = {"gif", "image", "frames"}
    modes = opt.modes or ["image"]

    normalized_modes: list[str] = []
    for mode in modes:
        if mode not in valid_modes:
            parser.error(f"Unknown output mode '{mode}'. Valid choices: {', '.join(sorted(valid_modes))}.")
        if mode not in normalized_modes:
            normalized_modes.append(mode)

    modes_tuple = tuple(normalized_modes)
    modes_set = set(modes_tuple)

    frame_dir_path: Path | None = None
    if "frames" in modes_set:
        frame_dir_path = Path(opt.frame_dir or "./frames").expanduser().resolve()
    elif opt.frame_dir is not None:
        parser.error("--frame-dir is only valid with the frames mode.")

    image_format = (opt.format or "png").lower().lstrip(".") or "png"

    file_modes = [mode for mode in modes_tuple if mode in {"gif", "image"}]
    gif_path: Path | None = None
    image_path: Path | None = None

    if not file_modes:
        if opt.output:
            parser.error("--output is only valid when gif or image modes are requested.")
    elif len(file_modes) == 1:
        mode = file_modes[0]
        if opt.output:
            output_path = Path(opt.output).expanduser()
            if output_path.exists() and output_path.is_dir():
                parser.error("--output must point to a file, not a directory, when a single file mode is active.")
            if mode == "gif":
                if output_path.suffix and output_path.suffix.lower() != ".gif":
                    parser.error("GIF outputs must end with .gif.")
                gif_path = output_path.with_suffix(".gif").resolve()
            else:
                expected_suffix = f".{image_format}"
                if output_path.suffix and output_path.suffix.lower() != expected_suffix:
                    parser.error(f"--output extension {output_path.suffix} does not match --format {image_format}.")
                image_path = output_path.with_suffix(expected_suffix).resolve()
        elif mode == "gif":
            gif_path = Path("zoom.gif").resolve()
        else:
            image_path = Path(f"frame_final.{image_format}").resolve()
    else:
        base_dir = Path(opt.output).expanduser() if opt.output else Path.cwd()
        if base_dir.exists() and not base_dir.is_dir():
            parser.error("--output must be a directory when both gif and image modes are active.")
        gif_path = (base_dir / "zoom.gif").resolve()
        image_path = (base_dir / f"frame_final.{image_format}").resolve()

    return OutputConfig(
        modes=modes_tuple,
        gif_path=gif_path,
        image_path=image_path,
        frame_dir=frame_dir_path,
        image_format=image_format,
    )


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=_pil_format_name(image_format))


def write_frame_sequence(image: PIL.Image.Image, frame_dir: Path, index: int, digits: int, image_format: str) -> Path:
    """Persist a frame in a numbered sequence inside ``frame_dir``."""

    frame_path = frame_dir / f"frame{index:0{digits}d}.{image_format}"
    frame_dir.mkdir(parents=True, exist_ok=True)
    image.save(str(frame_path), format=_pil_format_name(image_format))
    return frame_path


def parse_hex_color(hex_color: str) -> tuple[float, float, float]:
    hex_color = hex_color.lstrip('#')
    if len(hex_color) != 6:
        raise ValueError('inside_color must be in the form #RRGGBB.')
    try:
        return tuple(int(hex_color[i:i + 2], 16) / 255.0 for i in (0, 2, 4))
    except ValueError as exc:
        raise ValueError('inside_color must contain only hexadecimal digits.') from exc


def colorize(iterations: np.ndarray, max_iter: int, cmap: Any, inside_rgb, invert: bool = False) -> np.ndarray:
    """Map escape counts to an RGB ``uint8`` array; limit-reaching pixels get ``inside_rgb``."""

    inside = iterations >= max_iter
    v = iterations.astype(np.float64) / max(max_iter, 1)
    if invert:
        v = 1.0 - v
    rgba = np.array(cmap(np.clip(v, 0.0, 1.0)), copy=True)
    for k in (0, 1, 2):
        rgba[..., k] = np.where(inside, inside_rgb[k], rgba[..., k])
    return np.uint8(np.clip(rgba[..., :3] * 255, 0, 255))


@dataclass
class OutputWriters:
    config: OutputConfig
    frame_digits: int

    def __post_init__(self) -> None:
        self._gif_writer = None
        if "gif" in self.config.modes and self.config.gif_path is not None:
            self.config.gif_path.parent.mkdir(parents=True, exist_ok=True)
            self._gif_writer = imageio.get_writer(str(self.config.gif_path), mode='I', duration=0.25, loop=0)

    def write_frame(self, frame_index: int, frame_array: np.ndarray) -> None:
        if self._gif_writer is not None:
            self._gif_writer.append_data(frame_array)
        if self.config.frame_dir is not None:
            write_frame_sequence(
                PIL.Image.fromarray(frame_array),
                self.config.frame_dir,
                frame_index,
                self.frame_digits,
                self.config.image_format,
            )

    def finalize(self, final_array: np.ndarray | None) -> None:
        if "image" in self.config.modes and final_array is not None and self.config.image_path is not None:
            write_single_image(PIL.Image.fromarray(final_array), self.config.image_path, self.config.image_format)

    def close(self) -> None:
        if self._gif_writer is not None:
            self._gif_writer.close()
            self._gif_writer = None


def probe(opt, center_x: int, center_y: int) -> None:
    params = ViewParameters(
        pixel_x=opt.probe[0],
        pixel_y=opt.probe[1],
        center_x=center_x,
        center_y=center_y,
        zoom_level=opt.zoom,
        max_iter_limit=opt.max_iter,
    )
    c = map_request(params)
    print(f"    c: {c.as_complex()} (raw {c.c_real}, {c.c_imag})")
    print(f"float: {float_iterations(params)}")
    print(f"fixed: {compute_iterations(params)}")


def main():
    parser = build_parser()
    opt = parser.parse_args()

    global VERBOSE
    VERBOSE = bool(opt.verbose)
    if VERBOSE:
        logging.basicConfig(level=logging.DEBUG)

    if opt.max_iter < 0 or opt.zoom < 0 or (opt.zoom_to is not None and opt.zoom_to < 0):
        parser.error("--max-iter, --zoom and --zoom-to must be non-negative.")
    if opt.width <= 0 or opt.height <= 0:
        parser.error("--width and --height must be positive.")

    center_x, center_y = resolve_center(opt, parser)

    if opt.probe is not None:
        if min(opt.probe) < 0:
            parser.error("--probe coordinates must be non-negative.")
        probe(opt, center_x, center_y)
        return

    output_config = resolve_output_config(opt, parser)
    device = select_device()
    log("TensorFlow version: %s" % tf.__version__)

    cmap = colormaps[opt.colormap]
    try:
        inside_rgb = parse_hex_color(opt.inside_color)
    except ValueError:
        print(f"Invalid inside_color '{opt.inside_color}', defaulting to black.")
        inside_rgb = (0.0, 0.0, 0.0)

    levels = zoom_levels(opt.zoom, opt.zoom if opt.zoom_to is None else opt.zoom_to)
    planner = ZoomPlanner(follow_edges=bool(opt.follow_edges))
    view = FrameView(
        center_x=center_x,
        center_y=center_y,
        zoom_level=levels[0],
        max_iter_limit=opt.max_iter,
        width=opt.width,
        height=opt.height,
    )

    writers = OutputWriters(output_config, frame_digits=max(3, len(str(len(levels) - 1))))
    final_array: np.ndarray | None = None

    try:
        for i, level in enumerate(levels):
            print("frame {0} out of {1} (zoom {2})".format(i, len(levels), level), end='\r')
            result = render_frame(view, device=device)

            if opt.compare_float:
                mismatches = int(np.count_nonzero(result.iterations != float_frame(view)))
                print(f"zoom {level}: {mismatches} of {result.iterations.size} pixels differ from float")

            final_array = colorize(result.iterations, opt.max_iter, cmap, inside_rgb, invert=opt.invert)
            writers.write_frame(i, final_array)

            if i < len(levels) - 1:
                view = planner.update_after_frame(view, result, levels[i + 1])
    finally:
        writers.close()

    writers.finalize(final_array)
    print()


if __name__ == '__main__':
    main()
