"""Shared fixtures for EventSync tests."""

import threading

import pytest

from eventsync import EventSyncAgent, EventSyncConfig, MemoryPendingStore, MockTransport


class RecordingSleep:
    """
    Stand-in for time.sleep that returns immediately.

    Records every requested delay. While ``gate`` is cleared, calls block
    until the test sets it, which holds a cycle in its cooldown.
    """

    def __init__(self, log=None):
        self.calls = []
        self.log = log
        self.gate = threading.Event()
        self.gate.set()

    def __call__(self, seconds):
        self.calls.append(seconds)
        if self.log is not None:
            self.log.append("cooldown")
        assert self.gate.wait(timeout=5), "cooldown gate never opened"


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def store_data():
    """Backing dict shared by stores that simulate the same device"""
    return {}


@pytest.fixture
def store(store_data):
    return MemoryPendingStore(data=store_data)


@pytest.fixture
def make_agent(store, sleeper):
    """Build agents wired to the shared store and the recording sleep"""
    agents = []

    def factory(transport=None, **config_kwargs):
        agent = EventSyncAgent(
            EventSyncConfig(**config_kwargs),
            transport=transport or MockTransport(),
            store=store,
            sleep_fn=sleeper,
        )
        agents.append(agent)
        return agent

    yield factory

    sleeper.gate.set()
    for agent in agents:
        agent.wait(timeout=5)
