"""Test doubles for the host, the network clients and the broker."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pyroomba.host import ThingStatus, ThingStatusDetail
from pyroomba.models.identity import Credential, DeviceIdentity

BLID = "3147C81234567890"


@dataclass
class FakeTimer:
    delay: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        assert not self.cancelled
        self.callback()


@dataclass
class FakeHost:
    statuses: list[tuple[ThingStatus, ThingStatusDetail, str | None]] = field(default_factory=list)
    states: dict[str, Any] = field(default_factory=dict)
    properties: dict[str, str] = field(default_factory=dict)
    persisted: list[Credential] = field(default_factory=list)
    timers: list[FakeTimer] = field(default_factory=list)

    def update_status(
        self,
        status: ThingStatus,
        detail: ThingStatusDetail = ThingStatusDetail.NONE,
        description: str | None = None,
    ) -> None:
        self.statuses.append((status, detail, description))

    def update_state(self, channel: str, value: Any) -> None:
        self.states[channel] = value

    def update_property(self, name: str, value: str) -> None:
        self.properties[name] = value

    def persist_credential(self, credential: Credential) -> None:
        self.persisted.append(credential)

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def last_status(self) -> tuple[ThingStatus, ThingStatusDetail, str | None]:
        return self.statuses[-1]

    @property
    def pending_timers(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]


@dataclass
class FakeDiscovery:
    result: DeviceIdentity | Exception
    calls: int = 0

    async def discover(self, host: str) -> DeviceIdentity:
        self.calls += 1
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@dataclass
class FakeCredentials:
    result: Credential | Exception | None
    calls: int = 0

    async def retrieve(self, host: str) -> Credential | None:
        self.calls += 1
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class FakeBroker:
    def __init__(self, address: str, listener: Any, fail_with: Exception | None = None) -> None:
        self.address = address
        self.listener = listener
        self.fail_with = fail_with
        self.started_with: tuple[str, Credential] | None = None
        self.stopped = False
        self.published: list[tuple[str, bytes]] = []

    def start(self, client_id: str, credential: Credential) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.started_with = (client_id, credential)

    def stop(self) -> None:
        self.stopped = True

    def publish(self, topic: str, payload: bytes) -> None:
        self.published.append((topic, payload))


@dataclass
class FakeBrokerFactory:
    fail_with: Exception | None = None
    brokers: list[FakeBroker] = field(default_factory=list)

    def __call__(self, address: str, listener: Any) -> FakeBroker:
        broker = FakeBroker(address, listener, self.fail_with)
        self.brokers.append(broker)
        return broker

    @property
    def last(self) -> FakeBroker:
        return self.brokers[-1]
