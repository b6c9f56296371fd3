"""Benchmark driver: checks rotate and smooth kernels and reports their speed."""

from __future__ import annotations

import getopt
import os
import random
import re
import sys
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, TextIO

from cslabkit.kernels import (
    ROTATE_BASELINE_CPES,
    SMOOTH_BASELINE_CPES,
    TEAM,
    Kernel,
    Pixel,
    Team,
    average,
    ridx,
    rotate,
    rotate_kernels,
    smooth,
    smooth_kernels,
)
from cslabkit.sampler import MeasurementConfig, measure

ROTATE_DIMS = (64, 128, 256, 512, 1024)
SMOOTH_DIMS = (32, 64, 128, 256, 512)
ODD_DIM = 96
DEFAULT_SEED = 1729
CHANNEL_LIMIT = 65536

Checker = Callable[[int, Sequence[Pixel], Sequence[Pixel]], None]


class CorrectnessError(Exception):
    """A kernel produced a wrong image or changed its input."""

    def __init__(self, message: str, dim: int, errors: int) -> None:
        super().__init__(message)
        self.dim = dim
        self.errors = errors


@dataclass
class Benchmark:
    """A registered kernel, whether it is to be tested, and its measured CPEs."""

    kernel: Kernel
    valid: bool = False
    cpes: list[float] = field(default_factory=list)

    @property
    def description(self) -> str:
        return self.kernel.description


def create_image(dim: int, rng: random.Random) -> list[Pixel]:
    """A ``dim`` x ``dim`` image of random colours."""
    if dim < 1:
        raise ValueError(f"image dimension must be positive, got {dim}")
    return [
        Pixel(rng.randrange(CHANNEL_LIMIT), rng.randrange(CHANNEL_LIMIT), rng.randrange(CHANNEL_LIMIT))
        for _ in range(dim * dim)
    ]


def _check_size(dim: int, result: Sequence[Pixel]) -> None:
    if len(result) != dim * dim:
        raise CorrectnessError(
            f"ERROR: Dimension={dim}, result holds {len(result)} pixels instead of {dim * dim}",
            dim,
            abs(dim * dim - len(result)),
        )


def _rgb(pixel: Pixel) -> str:
    return f"{{{pixel.red},{pixel.green},{pixel.blue}}}"


def check_rotate(dim: int, orig: Sequence[Pixel], result: Sequence[Pixel]) -> None:
    """Raise :class:`CorrectnessError` unless ``result`` is ``orig`` rotated."""
    _check_size(dim, result)
    errors = 0
    bad: Optional[tuple[int, int, Pixel, Pixel]] = None
    for index, pixel in enumerate(orig):
        i, j = divmod(index, dim)
        rotated = result[ridx(dim - 1 - j, i, dim)]
        if rotated != pixel:
            errors += 1
            bad = (i, j, pixel, rotated)
    if bad is not None:
        i, j, src_pixel, dst_pixel = bad
        raise CorrectnessError(
            f"ERROR: Dimension={dim}, {errors} errors\n"
            "E.g., The following two pixels should have equal value:\n"
            f"src[{i}][{j}].{{red,green,blue}} = {_rgb(src_pixel)}\n"
            f"dst[{dim - 1 - j}][{i}].{{red,green,blue}} = {_rgb(dst_pixel)}",
            dim,
            errors,
        )


def check_smooth(dim: int, orig: Sequence[Pixel], result: Sequence[Pixel]) -> None:
    """Raise :class:`CorrectnessError` unless ``result`` is ``orig`` smoothed."""
    _check_size(dim, result)
    errors = 0
    bad: Optional[tuple[int, int, Pixel, Pixel]] = None
    for index, got in enumerate(result):
        i, j = divmod(index, dim)
        expected = average(dim, i, j, orig)
        if got != expected:
            errors += 1
            bad = (i, j, got, expected)
    if bad is not None:
        i, j, wrong, right = bad
        raise CorrectnessError(
            f"ERROR: Dimension={dim}, {errors} errors\n"
            "E.g., \n"
            f"You have dst[{i}][{j}].{{red,green,blue}} = {_rgb(wrong)}\n"
            f"It should be dst[{i}][{j}].{{red,green,blue}} = {_rgb(right)}",
            dim,
            errors,
        )


def speedup(cpes: Sequence[float], baselines: Sequence[float]) -> tuple[list[float], float]:
    """Per-dimension speedups over the baselines and their geometric mean."""
    if len(cpes) != len(baselines) or not cpes:
        raise ValueError("need one CPE per baseline value")
    ratios = []
    product = 1.0
    for cpe, baseline in zip(cpes, baselines):
        if cpe <= 0.0:
            raise ValueError("Fatal Error: Non-positive CPE value...")
        ratio = baseline / cpe
        ratios.append(ratio)
        product *= ratio
    return ratios, product ** (1.0 / len(ratios))


def _default_config() -> MeasurementConfig:
    return MeasurementConfig(cache_bytes=1 << 14, clear_cache=True, compensate=True)


class Driver:
    """Runs the registered kernels, checks them and reports their speedups."""

    def __init__(
        self,
        rotate_benchmarks: Optional[Sequence[Benchmark]] = None,
        smooth_benchmarks: Optional[Sequence[Benchmark]] = None,
        *,
        seed: int = DEFAULT_SEED,
        config: Optional[MeasurementConfig] = None,
        rotate_dims: Sequence[int] = ROTATE_DIMS,
        smooth_dims: Sequence[int] = SMOOTH_DIMS,
        rotate_baselines: Sequence[float] = ROTATE_BASELINE_CPES,
        smooth_baselines: Sequence[float] = SMOOTH_BASELINE_CPES,
        odd_dim: int = ODD_DIM,
        autograder: bool = False,
        out: Optional[TextIO] = None,
    ) -> None:
        if rotate_benchmarks is None:
            rotate_benchmarks = [Benchmark(k) for k in rotate_kernels()]
        if smooth_benchmarks is None:
            smooth_benchmarks = [Benchmark(k) for k in smooth_kernels()]
        if len(rotate_dims) != len(rotate_baselines) or len(smooth_dims) != len(smooth_baselines):
            raise ValueError("need one baseline CPE per test dimension")
        self.rotate_benchmarks = list(rotate_benchmarks)
        self.smooth_benchmarks = list(smooth_benchmarks)
        self.rng = random.Random(seed)
        self.config = config if config is not None else _default_config()
        self.rotate_dims = tuple(rotate_dims)
        self.smooth_dims = tuple(smooth_dims)
        self.rotate_baselines = tuple(rotate_baselines)
        self.smooth_baselines = tuple(smooth_baselines)
        self.odd_dim = odd_dim
        self.autograder = autograder
        self.out = out
        self.rotate_maxmean = 0.0
        self.rotate_maxmean_desc: Optional[str] = None
        self.smooth_maxmean = 0.0
        self.smooth_maxmean_desc: Optional[str] = None

    def _emit(self, text: str) -> None:
        print(text, end="", file=self.out if self.out is not None else sys.stdout)

    def _verify(self, bench: Benchmark, dim: int, checker: Checker) -> bool:
        orig = create_image(dim, self.rng)
        pristine = tuple(orig)
        result = bench.kernel(dim, orig)
        try:
            if tuple(orig) != pristine:
                raise CorrectnessError("Error: Original image has been changed!", dim, 1)
            checker(dim, orig, result)
        except CorrectnessError as err:
            self._emit(f"\n{err}\n")
            self._emit(
                f'Benchmark "{bench.description}" failed correctness check for dimension {dim}.\n'
            )
            return False
        return True

    def _evaluate(
        self,
        title: str,
        bench: Benchmark,
        dims: Sequence[int],
        baselines: Sequence[float],
        checker: Checker,
    ) -> Optional[float]:
        bench.cpes = []
        for dim in dims:
            if not self._verify(bench, self.odd_dim, checker):
                return None
            if not self._verify(bench, dim, checker):
                return None
            orig = create_image(dim, self.rng)
            cycles = measure(bench.kernel, (dim, orig), self.config)
            bench.cpes.append(cycles / float(dim * dim))

        ratios, mean = speedup(bench.cpes, baselines)
        self._emit(f"{title}: Version = {bench.description}:\n")
        self._emit("Dim\t" + "".join(f"\t{dim}" for dim in dims) + "\tMean\n")
        self._emit("Your CPEs" + "".join(f"\t{cpe:.1f}" for cpe in bench.cpes) + "\n")
        self._emit("Baseline CPEs" + "".join(f"\t{b:.1f}" for b in baselines) + "\n")
        self._emit("Speedup\t" + "".join(f"\t{r:.1f}" for r in ratios) + f"\t{mean:.1f}\n\n")
        return mean

    def test_rotate(self, index: int) -> Optional[float]:
        """Check and time one rotate benchmark; its mean speedup, or None if wrong."""
        bench = self.rotate_benchmarks[index]
        mean = self._evaluate("Rotate", bench, self.rotate_dims, self.rotate_baselines, check_rotate)
        if mean is not None and mean > self.rotate_maxmean:
            self.rotate_maxmean = mean
            self.rotate_maxmean_desc = bench.description
        return mean

    def test_smooth(self, index: int) -> Optional[float]:
        """Check and time one smooth benchmark; its mean speedup, or None if wrong."""
        bench = self.smooth_benchmarks[index]
        mean = self._evaluate("Smooth", bench, self.smooth_dims, self.smooth_baselines, check_smooth)
        if mean is not None and mean > self.smooth_maxmean:
            self.smooth_maxmean = mean
            self.smooth_maxmean_desc = bench.description
        return mean

    def dump_names(self, path: str | os.PathLike[str]) -> None:
        """Write the descriptions of all benchmarks, one per line, to ``path``."""
        with open(path, "w", encoding="utf-8") as fp:
            for bench in self.rotate_benchmarks:
                fp.write(f"R:{bench.description}\n")
            for bench in self.smooth_benchmarks:
                fp.write(f"S:{bench.description}\n")

    def select_from_file(self, path: str | os.PathLike[str]) -> None:
        """Mark as valid the benchmarks whose descriptions are listed in ``path``."""
        with open(path, encoding="utf-8") as fp:
            for line in fp:
                flag, sep, name = line.partition(":")
                if not sep:
                    continue
                name = name.split("\n", 1)[0]
                if flag[:1] == "R":
                    targets = self.rotate_benchmarks
                elif flag[:1] == "S":
                    targets = self.smooth_benchmarks
                else:
                    continue
                for bench in targets:
                    if bench.description == name:
                        bench.valid = True

    def select_all(self) -> None:
        """Mark every benchmark as valid."""
        for bench in (*self.rotate_benchmarks, *self.smooth_benchmarks):
            bench.valid = True

    def run(self) -> tuple[float, float]:
        """Test every valid benchmark and print the best scores."""
        for index, bench in enumerate(self.rotate_benchmarks):
            if bench.valid:
                self.test_rotate(index)
        for index, bench in enumerate(self.smooth_benchmarks):
            if bench.valid:
                self.test_smooth(index)

        if self.autograder:
            self._emit(f"\nbestscores:{self.rotate_maxmean:.1f}:{self.smooth_maxmean:.1f}:\n")
        else:
            rotate_desc = self.rotate_maxmean_desc or "(null)"
            smooth_desc = self.smooth_maxmean_desc or "(null)"
            self._emit("Summary of Your Best Scores:\n")
            self._emit(f"  Rotate: {self.rotate_maxmean:3.1f} ({rotate_desc})\n")
            self._emit(f"  Smooth: {self.smooth_maxmean:3.1f} ({smooth_desc})\n")
        return self.rotate_maxmean, self.smooth_maxmean


def _atoi(text: str) -> int:
    match = re.match(r"\s*[+-]?\d+", text)
    return int(match.group()) if match else 0


def _usage(progname: str) -> int:
    lines = [
        f"Usage: {progname} [-hqg] [-f <func_file>] [-d <dump_file>]",
        "Options:",
        "  -h         Print this message",
        "  -q         Quit after dumping (use with -d )",
        "  -g         Autograder mode: checks only rotate() and smooth()",
        "  -f <file>  Get test function names from dump file <file>",
        "  -d <file>  Emit a dump file <file> for later use with -f",
    ]
    print("\n".join(lines), file=sys.stderr)
    return 1


def _print_team(progname: str, team: Team) -> bool:
    if team.team == "bovik":
        print(f"{progname}: Please fill in the team struct in kernels.c.")
        return False
    print(f"Teamname: {team.team}")
    print(f"Member 1: {team.name1}")
    print(f"Email 1: {team.email1}")
    if team.name2 or team.email2:
        print(f"Member 2: {team.name2}")
        print(f"Email 2: {team.email2}")
    print()
    return True


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point; returns the exit status."""
    progname = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "driver"
    args = list(sys.argv[1:] if argv is None else argv)

    driver = Driver()
    quit_after_dump = False
    skip_team_check = False
    autograder = False
    seed = DEFAULT_SEED
    bench_func_file: Optional[str] = None

    try:
        opts, _ = getopt.getopt(args, "tgqf:d:s:h")
    except getopt.GetoptError:
        return _usage(progname)

    for opt, value in opts:
        if opt == "-t":
            skip_team_check = True
        elif opt == "-s":
            seed = _atoi(value)
        elif opt == "-g":
            autograder = True
        elif opt == "-q":
            quit_after_dump = True
        elif opt == "-f":
            bench_func_file = value
        elif opt == "-d":
            try:
                driver.dump_names(value)
            except OSError:
                print(f"Can't open file {value}")
                return -5
        else:
            return _usage(progname)

    if quit_after_dump:
        return 0

    if not skip_team_check and not _print_team(progname, TEAM):
        return 1

    driver.rng = random.Random(seed)

    if autograder:
        driver.autograder = True
        driver.rotate_benchmarks = [Benchmark(Kernel(rotate, "rotate() function"), valid=True)]
        driver.smooth_benchmarks = [Benchmark(Kernel(smooth, "smooth() function"), valid=True)]
    elif bench_func_file is not None:
        try:
            driver.select_from_file(bench_func_file)
        except OSError:
            print(f"Can't open file {bench_func_file}")
            return -5
    else:
        driver.select_all()

    try:
        driver.run()
    except ValueError as err:
        print(err)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())