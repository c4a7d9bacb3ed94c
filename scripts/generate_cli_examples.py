from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["--mode", "image", "--width", "640", "--height", "480"]


@dataclass
class Expected:
    path: Path
    is_dir: bool = False


@dataclass
class Example:
    name: str
    args: list[str]
    expected: list[Expected]

    def full_args(self) -> list[str]:
        return ["python", "render.py", *self.args]

    @property
    def root(self) -> Path:
        return EXAMPLES_ROOT / self.name


def _image_example(name: str, filename: str, *extra: str) -> Example:
    path = EXAMPLES_ROOT / name / filename
    return Example(name=name, args=[*BASE_ARGS, *extra, "--output", str(path)], expected=[Expected(path)])


EXAMPLES: list[Example] = [
    _image_example("default", "origin.png"),
    _image_example("zoom", "zoom-two.png", "--zoom", "2"),
    _image_example("zoom-clamped", "zoom-twenty.png", "--zoom", "20"),
    _image_example("center-raw", "seahorse.png", "--center-x", "-30720", "--center-y", "4096", "--zoom", "8"),
    _image_example("center-real", "period-two.png", "--center-real", "-1.0", "--zoom", "3"),
    _image_example("max-iter", "few-iterations.png", "--max-iter", "8"),
    _image_example("colormap", "inferno.png", "--colormap", "inferno"),
    _image_example("invert", "inverted.png", "--invert"),
    _image_example("inside-color", "navy-inside.png", "--inside-color", "#001040"),
    _image_example("format", "custom.webp", "--format", "webp"),
    Example(
        name="gif",
        args=[
            "--mode", "gif", "--zoom", "0", "--zoom-to", "6", "--follow-edges",
            "--output", str(EXAMPLES_ROOT / "gif" / "zoom.gif"),
        ],
        expected=[Expected(EXAMPLES_ROOT / "gif" / "zoom.gif")],
    ),
    Example(
        name="frames",
        args=[
            "--mode", "frames", "--zoom", "0", "--zoom-to", "3",
            "--frame-dir", str(EXAMPLES_ROOT / "frames" / "frames"),
        ],
        expected=[Expected(EXAMPLES_ROOT / "frames" / "frames", is_dir=True)],
    ),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()


def _verify(example: Example) -> None:
    for expected in example.expected:
        if expected.is_dir:
            if not expected.path.is_dir():
                raise RuntimeError(f"Expected directory {expected.path} was not created")
            if not any(expected.path.iterdir()):
                raise RuntimeError(f"Directory {expected.path} is empty")
        elif not expected.path.is_file():
            raise RuntimeError(f"Expected file {expected.path} was not created")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _ensure_clean([example.root])
        example.root.mkdir(parents=True, exist_ok=True)
        subprocess.run(example.full_args(), check=True)
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
