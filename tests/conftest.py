import json
import os

import pytest
import requests

from tracker_core.api import Dispatcher
from tracker_core.config import Options
from tracker_core.context import AgentContext
from tracker_core.dispatch import PostResponse


class FakeTransport:
    """Records every POST; answers from a queue of codes / exceptions."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.calls = []

    def __call__(self, url, payload):
        self.calls.append((url, payload))
        answer = self.answers.pop(0) if self.answers else 200
        if isinstance(answer, BaseException):
            raise answer
        return PostResponse(answer, "OK" if answer < 400 else "nope")

    def urls(self):
        return [url for url, _ in self.calls]


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def no_sleep(_seconds):
    pass


@pytest.fixture
def options():
    return Options(access_key="secret-key")


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def dispatcher(options, transport):
    return Dispatcher(options, post=transport, sleep=no_sleep)


@pytest.fixture
def context(options, dispatcher, clock):
    return AgentContext(options, dispatcher, clock=clock, sleep=no_sleep)


def connection_error():
    return requests.ConnectionError("connection refused")


def set_mtime(path, epoch_ms):
    ns = epoch_ms * 1_000_000
    os.utime(path, ns=(ns, ns))


@pytest.fixture
def instance(tmp_path):
    """A .minecraft directory with legal Atum settings."""
    mc = tmp_path / "instance" / ".minecraft"
    atum = mc / "config" / "mcsr" / "atum.json"
    atum.parent.mkdir(parents=True)
    atum.write_text(json.dumps({
        "hasLegalSettings": True,
        "seed": "",
        "difficulty": "easy",
    }))
    (mc / "saves").mkdir()
    return mc


def make_world(instance_dir, name="Random Speedrun #7"):
    world = instance_dir / "saves" / name
    (world / "speedrunigt").mkdir(parents=True)
    return world


def write_pointer(pointer, world, version="1.16.1", mods=None, mod_version="14.2+1.16.1",
                  category="ANY", epoch_ms=None):
    data = {
        "world_path": str(world),
        "version": version,
        "category": category,
        "mods": mods if mods is not None else ["speedrunigt", "atum"],
        "mod_version": mod_version,
    }
    pointer.write_text(json.dumps(data) + "\n")
    if epoch_ms is not None:
        set_mtime(pointer, epoch_ms)
    return data
