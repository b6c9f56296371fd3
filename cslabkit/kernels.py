"""Image kernels (rotate and smooth), their registry and baseline figures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, NamedTuple, Sequence


class Pixel(NamedTuple):
    """One RGB pixel with 16-bit channels."""

    red: int = 0
    green: int = 0
    blue: int = 0


KernelFunc = Callable[[int, Sequence[Pixel]], "list[Pixel]"]


@dataclass(frozen=True)
class Team:
    """Identifies the people who wrote the kernels."""

    team: str
    name1: str
    email1: str
    name2: str = ""
    email2: str = ""


TEAM = Team("Saltedfish", "Team Member", "member@example.com")

# Cycles per element of the naive kernels, one per test dimension.
ROTATE_BASELINE_CPES = (14.7, 40.1, 46.4, 65.9, 94.5)
SMOOTH_BASELINE_CPES = (695.0, 698.0, 702.0, 717.0, 722.0)


def ridx(i: int, j: int, n: int) -> int:
    """Index of row ``i``, column ``j`` in a row-major image of width ``n``."""
    return i * n + j


def _check_image(dim: int, src: Sequence[Pixel]) -> None:
    if dim < 1:
        raise ValueError(f"image dimension must be positive, got {dim}")
    if len(src) != dim * dim:
        raise ValueError(f"expected {dim * dim} pixels for dimension {dim}, got {len(src)}")


def average(dim: int, i: int, j: int, src: Sequence[Pixel]) -> Pixel:
    """Average of the pixels in the 3x3 window around (i, j), clipped to the image."""
    if not (0 <= i < dim and 0 <= j < dim):
        raise IndexError(f"pixel ({i}, {j}) lies outside a {dim}x{dim} image")
    rows = range(max(i - 1, 0), min(i + 1, dim - 1) + 1)
    cols = range(max(j - 1, 0), min(j + 1, dim - 1) + 1)
    window = [src[ridx(ii, jj, dim)] for ii in rows for jj in cols]
    count = len(window)
    return Pixel(*(sum(channel) // count for channel in zip(*window)))


def naive_rotate(dim: int, src: Sequence[Pixel]) -> list[Pixel]:
    """Rotate the image 90 degrees counter-clockwise, pixel by pixel."""
    _check_image(dim, src)
    dst = [Pixel()] * (dim * dim)
    for index, pixel in enumerate(src):
        i, j = divmod(index, dim)
        dst[ridx(dim - 1 - j, i, dim)] = pixel
    return dst


def _blocked_rotate(dim: int, src: Sequence[Pixel], block: int) -> list[Pixel]:
    _check_image(dim, src)
    if dim % block:
        raise ValueError(f"dimension {dim} is not a multiple of block size {block}")
    dst = [Pixel()] * (dim * dim)
    for top in range(0, dim, block):
        for left in range(0, dim, block):
            for k in range(top, top + block):
                source_col = dim - 1 - k
                for col in range(left, left + block):
                    dst[ridx(k, col, dim)] = src[ridx(col, source_col, dim)]
    return dst


def rotate(dim: int, src: Sequence[Pixel]) -> list[Pixel]:
    """Rotate in 4x4 blocks."""
    return _blocked_rotate(dim, src, 4)


def rotate2(dim: int, src: Sequence[Pixel]) -> list[Pixel]:
    """Rotate in 8x8 blocks."""
    return _blocked_rotate(dim, src, 8)


def rotate3(dim: int, src: Sequence[Pixel]) -> list[Pixel]:
    """Rotate in 16x16 blocks."""
    return _blocked_rotate(dim, src, 16)


def rotate4(dim: int, src: Sequence[Pixel]) -> list[Pixel]:
    """Rotate in 32x32 blocks."""
    return _blocked_rotate(dim, src, 32)


def naive_smooth(dim: int, src: Sequence[Pixel]) -> list[Pixel]:
    """Replace every pixel by the average of its neighbourhood, one window at a time."""
    _check_image(dim, src)
    return [average(dim, i, j, src) for i in range(dim) for j in range(dim)]


def smooth(dim: int, src: Sequence[Pixel]) -> list[Pixel]:
    """Smooth using per-row column sums; same result as :func:`naive_smooth`."""
    _check_image(dim, src)
    if dim < 2:
        raise ValueError(f"smooth needs an image of at least 2x2, got {dim}x{dim}")
    dst: list[Pixel] = []
    for i in range(dim):
        rows = [src[r * dim:(r + 1) * dim] for r in range(max(i - 1, 0), min(i + 1, dim - 1) + 1)]
        column_sums = [tuple(map(sum, zip(*column))) for column in zip(*rows)]
        for j in range(dim):
            window = column_sums[max(j - 1, 0):min(j + 1, dim - 1) + 1]
            count = len(rows) * len(window)
            dst.append(Pixel(*(total // count for total in map(sum, zip(*window)))))
    return dst


@dataclass(frozen=True)
class Kernel:
    """A kernel function paired with its description."""

    func: KernelFunc
    description: str

    def __call__(self, dim: int, src: Sequence[Pixel]) -> list[Pixel]:
        return self.func(dim, src)


NAIVE_ROTATE_DESCR = "naive_rotate: Naive baseline implementation"
ROTATE_DESCR1 = "rotate: 4*4 version"
ROTATE_DESCR2 = "rotate: 8*8 version"
ROTATE_DESCR3 = "rotate: 16*16 version"
ROTATE_DESCR4 = "rotate: 32*32 version"
NAIVE_SMOOTH_DESCR = "naive_smooth: Naive baseline implementation"
SMOOTH_DESCR = "smooth: Current working version"


def rotate_kernels() -> list[Kernel]:
    """All registered rotate kernels, in registration order."""
    return [
        Kernel(naive_rotate, NAIVE_ROTATE_DESCR),
        Kernel(rotate, ROTATE_DESCR1),
        Kernel(rotate2, ROTATE_DESCR2),
        Kernel(rotate3, ROTATE_DESCR3),
        Kernel(rotate4, ROTATE_DESCR4),
    ]


def smooth_kernels() -> list[Kernel]:
    """All registered smooth kernels, in registration order."""
    return [
        Kernel(smooth, SMOOTH_DESCR),
        Kernel(naive_smooth, NAIVE_SMOOTH_DESCR),
    ]