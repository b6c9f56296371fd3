import pytest

from cslabkit.timing import CompensatedCounter, CycleCounter, mhz, overhead


class _Settable:
    def __init__(self, value=0):
        self.value = value

    def __call__(self):
        return self.value


class _Stepper:
    def __init__(self, step):
        self.step = step
        self.value = 0

    def __call__(self):
        current = self.value
        self.value += self.step
        return current


def test_cycle_counter_uses_clock():
    clock = _Settable(100)
    counter = CycleCounter(clock)
    counter.start()
    clock.value = 350
    assert counter.elapsed() == 250.0


def test_cycle_counter_requires_start():
    with pytest.raises(RuntimeError):
        CycleCounter().elapsed()


def test_real_counter_is_monotonic():
    counter = CycleCounter()
    counter.start()
    first = counter.elapsed()
    second = counter.elapsed()
    assert 0 <= first <= second


def test_negative_reading_is_reported(capsys):
    clock = _Settable(500)
    counter = CycleCounter(clock)
    counter.start()
    clock.value = 200
    assert counter.elapsed() < 0
    assert "neg value" in capsys.readouterr().err


def test_overhead_non_negative():
    assert overhead() >= 0


def test_mhz_rate_and_output(capsys):
    rate = mhz(True, 0.01)
    assert rate >= 900
    out = capsys.readouterr().out
    assert out.startswith("Processor clock rate ~= ")
    assert out.endswith(" MHz\n")


def test_mhz_rejects_zero_sleep():
    with pytest.raises(ValueError):
        mhz(False, 0)


def test_calibrate_records_cycles_per_tick():
    counter = CompensatedCounter(
        counter=CycleCounter(_Stepper(5000)), ticks=_Stepper(1), events=3
    )
    counter.calibrate()
    assert counter.cycles_per_tick == 5000


def test_calibrate_ignores_short_ticks():
    counter = CompensatedCounter(
        counter=CycleCounter(_Stepper(2000)), ticks=_Stepper(1), events=3
    )
    counter.calibrate()
    assert counter.cycles_per_tick == 0.0


def test_compensated_elapsed_subtracts_ticks():
    clock = _Settable(0)
    ticks = _Settable(10)
    counter = CompensatedCounter(counter=CycleCounter(clock), ticks=ticks)
    counter.cycles_per_tick = 5000.0
    counter.start()
    clock.value = 20000
    ticks.value = 12
    assert counter.elapsed() == 20000 - 2 * 5000.0


def test_compensated_without_ticks_matches_raw():
    clock = _Settable(0)
    counter = CompensatedCounter(counter=CycleCounter(clock), ticks=_Settable(7))
    counter.cycles_per_tick = 4000.0
    counter.start()
    clock.value = 1234
    assert counter.elapsed() == 1234.0