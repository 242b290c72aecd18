import pytest

from braillechord.mapping import MappingTable
from braillechord.zones import ZoneLayout


class FakeTimer:
    def __init__(self, scheduler, due, callback):
        self._scheduler = scheduler
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manual clock standing in for threading.Timer."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def __call__(self, delay, callback):
        timer = FakeTimer(self, self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self):
        return [t for t in self.timers if not t.cancelled and t.due is not None]

    def advance(self, seconds):
        """Move the clock forward, firing due timers in order."""
        end = self.now + seconds
        while True:
            due = [t for t in self.pending if t.due <= end + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.now = timer.due
            timer.due = None  # Fired
            timer.callback()
        self.now = end


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def layout():
    return ZoneLayout(dot_size=45, dot_spacing=15)


@pytest.fixture
def letters():
    return MappingTable({
        '100000': 'a',
        '110000': 'b',
        '100100': 'c',
        '001000': "'",
        '111111': 'for',
    })
