import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from meapp.controller import WorkbookController
from meapp.services.storage import StorageGateway


class FakeTimer:
    """Stands in for threading.Timer; tests fire it by hand."""

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function()


class TimerRecorder:
    def __init__(self):
        self.timers = []

    def __call__(self, interval, function):
        timer = FakeTimer(interval, function)
        self.timers.append(timer)
        return timer

    @property
    def live(self):
        return [t for t in self.timers if not t.cancelled]


class CountingGateway(StorageGateway):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.saved = []

    def save(self, state):
        self.saved.append(state.to_dict())
        super().save(state)


@pytest.fixture
def engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def gateway(engine):
    return CountingGateway(engine, key="test_state")


@pytest.fixture
def timers():
    return TimerRecorder()


@pytest.fixture
def controller(gateway, timers):
    return WorkbookController(gateway, debounce_ms=250, timer_factory=timers, owner_name="")
