from pytest import approx

from core.clock import FixedStepClock


def make_clock():
    return FixedStepClock(fixed_dt=1.0 / 120.0, max_steps_per_frame=4, max_frame_dt=0.05)


def test_steps_accumulate_across_frames():
    clock = make_clock()
    assert clock.advance(0.02) == 2
    assert clock.accumulator == approx(0.02 - 2.0 / 120.0)
    assert clock.advance(0.006) == 1


def test_long_frame_is_capped_and_backlog_dropped():
    clock = make_clock()
    assert clock.advance(1.0) == 4
    assert clock.accumulator == 0.0
    assert clock.dropped_frames == 1


def test_negative_frame_time_does_nothing():
    clock = make_clock()
    assert clock.advance(-0.5) == 0
    assert clock.accumulator == 0.0


def test_pause_and_resume():
    clock = make_clock()
    clock.advance(0.004)
    clock.pause()
    assert clock.advance(0.05) == 0
    clock.resume()
    assert not clock.paused
    assert clock.accumulator == 0.0
    assert clock.advance(0.01) == 1


def test_alpha_is_fraction_of_step():
    clock = make_clock()
    clock.advance(0.5 / 120.0)
    assert clock.alpha == approx(0.5)
