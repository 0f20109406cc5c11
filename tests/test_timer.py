from collections import Counter

from tinyserve.timer import Timer, TimerQueue
from tinyserve.timestamp import Timestamp

START = Timestamp(1_700_000_000_000_000)


def seconds(value):
    return START + Timestamp.seconds_to_duration(value)


def test_timer_restart_repeatable():
    timer = Timer(lambda: None, START, 2_000_000)
    assert timer.repeatable() is True
    timer.restart(seconds(5))
    assert timer.expiration == seconds(7)


def test_timer_restart_one_shot_becomes_invalid():
    timer = Timer(lambda: None, START)
    assert timer.repeatable() is False
    timer.restart(seconds(5))
    assert timer.expiration == Timestamp.invalid()


def test_timer_run_calls_callback():
    calls = []
    Timer(lambda: calls.append("x"), START).run()
    assert calls == ["x"]


def test_once_and_every_timers():
    queue = TimerQueue()
    fired = Counter()

    def recorder(name):
        return lambda: fired.update([name])

    queue.add_timer(recorder("once1"), seconds(1))
    queue.add_timer(recorder("once1.5"), seconds(1.5))
    queue.add_timer(recorder("once2.5"), seconds(2.5))
    queue.add_timer(recorder("once3.5"), seconds(3.5))
    queue.add_timer(recorder("every2"), seconds(2), Timestamp.seconds_to_duration(2))
    queue.add_timer(recorder("every3"), seconds(3), Timestamp.seconds_to_duration(3))
    assert len(queue) == 6

    for tick in range(13):
        queue.handle_expired(seconds(tick * 0.5))

    assert fired == Counter(
        {"once1": 1, "once1.5": 1, "once2.5": 1, "once3.5": 1, "every2": 3, "every3": 2}
    )
    assert len(queue) == 2


def test_handle_expired_returns_in_order():
    queue = TimerQueue()
    late = queue.add_timer(lambda: None, seconds(2))
    early = queue.add_timer(lambda: None, seconds(1))
    pending = queue.add_timer(lambda: None, seconds(10))
    assert queue.handle_expired(seconds(2)) == [early, late]
    assert queue.next_expiration() == pending.expiration


def test_nothing_due_runs_nothing():
    queue = TimerQueue()
    queue.add_timer(lambda: None, seconds(5))
    assert queue.handle_expired(seconds(4.999)) == []
    assert len(queue) == 1


def test_repeat_restarts_from_handling_time():
    queue = TimerQueue()
    timer = queue.add_timer(lambda: None, seconds(2), Timestamp.seconds_to_duration(2))
    queue.handle_expired(seconds(2.2))
    assert timer.expiration == seconds(4.2)
    assert queue.next_expiration() == seconds(4.2)


def test_next_expiration_empty():
    assert TimerQueue().next_expiration() is None


def test_remove_pending_timer():
    queue = TimerQueue()
    calls = []
    timer = queue.add_timer(lambda: calls.append(1), seconds(1))
    queue.remove_timer(timer)
    assert len(queue) == 0
    assert queue.handle_expired(seconds(2)) == []
    assert calls == []


def test_self_cancel_stops_repeating():
    queue = TimerQueue()
    calls = []
    holder = {}

    def cancel_self():
        calls.append("cancel")
        queue.remove_timer(holder["timer"])

    holder["timer"] = queue.add_timer(cancel_self, seconds(5), Timestamp.seconds_to_duration(5))
    queue.add_timer(lambda: calls.append("every2"), seconds(2), Timestamp.seconds_to_duration(2))

    for tick in range(1, 13):
        queue.handle_expired(seconds(tick))

    assert calls.count("cancel") == 1
    assert calls.count("every2") == 6
    assert len(queue) == 1


def test_removing_spent_timer_is_harmless():
    queue = TimerQueue()
    timer = queue.add_timer(lambda: None, seconds(1))
    queue.handle_expired(seconds(1))
    queue.remove_timer(timer)
    assert len(queue) == 0


def test_timers_with_same_expiration_both_run():
    queue = TimerQueue()
    calls = []
    queue.add_timer(lambda: calls.append("a"), seconds(1))
    queue.add_timer(lambda: calls.append("b"), seconds(1))
    queue.handle_expired(seconds(1))
    assert calls == ["a", "b"]