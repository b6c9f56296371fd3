import io
import random

import pytest

from cslabkit.driver import (
    Benchmark,
    CorrectnessError,
    Driver,
    check_rotate,
    check_smooth,
    create_image,
    main,
    speedup,
)
from cslabkit.kernels import Kernel, Pixel, naive_rotate, naive_smooth
from cslabkit.sampler import MeasurementConfig

FAST = MeasurementConfig(k=1, max_samples=2)


def _small_driver(rotate_benchmarks=None, smooth_benchmarks=None, out=None):
    return Driver(
        rotate_benchmarks if rotate_benchmarks is not None else [],
        smooth_benchmarks if smooth_benchmarks is not None else [],
        config=FAST,
        rotate_dims=(4, 8),
        smooth_dims=(4, 6),
        rotate_baselines=(1.0, 1.0),
        smooth_baselines=(1.0, 1.0),
        odd_dim=5,
        out=out if out is not None else io.StringIO(),
    )


def _identity(dim, src):
    return list(src)


def test_create_image_is_deterministic_and_in_range():
    first = create_image(5, random.Random(7))
    second = create_image(5, random.Random(7))
    assert first == second
    assert len(first) == 25
    assert all(0 <= channel < 65536 for pixel in first for channel in pixel)


def test_create_image_rejects_bad_dimension():
    with pytest.raises(ValueError):
        create_image(0, random.Random(1))


def test_check_rotate_accepts_rotation():
    image = create_image(6, random.Random(3))
    assert check_rotate(6, image, naive_rotate(6, image)) is None


def test_check_rotate_counts_single_error():
    image = create_image(4, random.Random(3))
    result = naive_rotate(4, image)
    result[0] = Pixel(result[0].red ^ 1, result[0].green, result[0].blue)
    with pytest.raises(CorrectnessError) as info:
        check_rotate(4, image, result)
    assert info.value.errors == 1
    assert info.value.dim == 4
    assert "ERROR: Dimension=4, 1 errors" in str(info.value)


def test_check_rotate_rejects_wrong_size():
    image = create_image(3, random.Random(3))
    with pytest.raises(CorrectnessError):
        check_rotate(3, image, image[:-1])


def test_check_smooth_accepts_smoothing():
    image = create_image(5, random.Random(11))
    assert check_smooth(5, image, naive_smooth(5, image)) is None


def test_check_smooth_reports_expected_pixel():
    image = create_image(4, random.Random(11))
    result = naive_smooth(4, image)
    right = result[5]
    result[5] = Pixel(right.red + 1, right.green, right.blue)
    with pytest.raises(CorrectnessError) as info:
        check_smooth(4, image, result)
    assert info.value.errors == 1
    assert f"It should be dst[1][1].{{red,green,blue}} = {{{right.red},{right.green},{right.blue}}}" in str(
        info.value
    )


def test_speedup_equal_cpes_gives_one():
    ratios, mean = speedup([2.0, 3.0, 4.0], [2.0, 3.0, 4.0])
    assert ratios == [1.0, 1.0, 1.0]
    assert mean == pytest.approx(1.0)


def test_speedup_geometric_mean_of_constant_ratio():
    baselines = [14.7, 40.1, 46.4, 65.9, 94.5]
    ratios, mean = speedup([b / 2 for b in baselines], baselines)
    assert ratios == pytest.approx([2.0] * 5)
    assert mean == pytest.approx(2.0)


@pytest.mark.parametrize("cpes", [[0.0, 1.0], [1.0, -3.0]])
def test_speedup_rejects_non_positive(cpes):
    with pytest.raises(ValueError):
        speedup(cpes, [1.0, 1.0])


def test_dump_and_select_round_trip(tmp_path):
    driver = Driver(config=FAST)
    path = tmp_path / "funcs.txt"
    driver.dump_names(path)
    lines = path.read_text().splitlines()
    assert lines[0] == "R:naive_rotate: Naive baseline implementation"
    assert len(lines) == len(driver.rotate_benchmarks) + len(driver.smooth_benchmarks)

    other = Driver(config=FAST)
    other.select_from_file(path)
    assert all(b.valid for b in other.rotate_benchmarks + other.smooth_benchmarks)


def test_select_from_file_marks_only_listed(tmp_path):
    driver = Driver(config=FAST)
    path = tmp_path / "funcs.txt"
    path.write_text("R:rotate: 8*8 version\nnonsense line\nS:smooth: Current working version\n")
    driver.select_from_file(path)
    assert [b.valid for b in driver.rotate_benchmarks] == [False, False, True, False, False]
    assert [b.valid for b in driver.smooth_benchmarks] == [True, False]


def test_test_rotate_success_records_cpes():
    out = io.StringIO()
    driver = _small_driver([Benchmark(Kernel(naive_rotate, "naive"))], out=out)
    mean = driver.test_rotate(0)
    assert mean is not None and mean > 0
    assert len(driver.rotate_benchmarks[0].cpes) == 2
    assert driver.rotate_maxmean == mean
    assert driver.rotate_maxmean_desc == "naive"
    assert out.getvalue().startswith("Rotate: Version = naive:\n")


def test_test_rotate_failure_reports_dimension():
    out = io.StringIO()
    driver = _small_driver([Benchmark(Kernel(_identity, "broken"))], out=out)
    assert driver.test_rotate(0) is None
    assert 'Benchmark "broken" failed correctness check for dimension 5.' in out.getvalue()
    assert driver.rotate_maxmean_desc is None


def test_test_smooth_detects_modified_input():
    def vandal(dim, src):
        result = naive_smooth(dim, src)
        src[0] = Pixel(src[0].red ^ 1, src[0].green, src[0].blue)
        return result

    out = io.StringIO()
    driver = _small_driver(smooth_benchmarks=[Benchmark(Kernel(vandal, "vandal"))], out=out)
    assert driver.test_smooth(0) is None
    assert "Error: Original image has been changed!" in out.getvalue()


def test_run_prints_summary_for_valid_benchmarks():
    out = io.StringIO()
    driver = _small_driver(
        [Benchmark(Kernel(naive_rotate, "r"), valid=True)],
        [Benchmark(Kernel(naive_smooth, "s"), valid=True)],
        out=out,
    )
    rotate_best, smooth_best = driver.run()
    text = out.getvalue()
    assert rotate_best > 0 and smooth_best > 0
    assert "Summary of Your Best Scores:\n" in text
    assert "(r)" in text and "(s)" in text


def test_run_autograder_format():
    out = io.StringIO()
    driver = _small_driver(out=out)
    driver.autograder = True
    assert driver.run() == (0.0, 0.0)
    assert out.getvalue() == "\nbestscores:0.0:0.0:\n"


def test_driver_rejects_mismatched_baselines():
    with pytest.raises(ValueError):
        Driver([], [], rotate_dims=(4, 8), rotate_baselines=(1.0,))


def test_main_dump_and_quit(tmp_path):
    path = tmp_path / "dump.txt"
    assert main(["-d", str(path), "-q"]) == 0
    lines = path.read_text().splitlines()
    assert "S:smooth: Current working version" in lines


def test_main_help_fails(capsys):
    assert main(["-h"]) == 1
    assert "Usage:" in capsys.readouterr().err


def test_main_unknown_option_fails():
    assert main(["-z"]) == 1


def test_main_missing_function_file(tmp_path, capsys):
    missing = tmp_path / "absent.txt"
    assert main(["-t", "-f", str(missing)]) == -5
    assert f"Can't open file {missing}" in capsys.readouterr().out