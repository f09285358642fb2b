import pytest

from gendance.core.clock import PlaybackClock


class FakeTime:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture
def fake_time():
    return FakeTime()


def test_clock_starts_paused_at_zero(fake_time):
    clock = PlaybackClock(fake_time)
    fake_time.now += 5
    assert clock.current_time() == 0.0
    assert not clock.is_running


def test_clock_advances_while_running(fake_time):
    clock = PlaybackClock(fake_time)
    clock.start()
    fake_time.now += 2.5
    assert clock.current_time() == pytest.approx(2.5)


def test_pause_freezes_and_resume_continues(fake_time):
    clock = PlaybackClock(fake_time)
    clock.start()
    fake_time.now += 1.0
    clock.pause()
    fake_time.now += 10.0
    assert clock.current_time() == pytest.approx(1.0)

    clock.start()
    fake_time.now += 0.5
    assert clock.current_time() == pytest.approx(1.5)


def test_seek_keeps_running_state(fake_time):
    clock = PlaybackClock(fake_time)
    clock.start()
    fake_time.now += 3.0
    clock.seek(42.0)
    fake_time.now += 1.0
    assert clock.current_time() == pytest.approx(43.0)

    clock.pause()
    clock.seek(-4.0)
    assert clock.current_time() == 0.0
    assert not clock.is_running


def test_reset_rewinds_and_stops(fake_time):
    clock = PlaybackClock(fake_time)
    clock.start()
    fake_time.now += 7.0
    clock.reset()
    fake_time.now += 1.0
    assert clock.current_time() == 0.0
    assert not clock.is_running
