from __future__ import annotations

import pytest
from fakes import BLID, FakeBrokerFactory, FakeCredentials, FakeDiscovery, FakeHost

from pyroomba.config import RoombaConfig
from pyroomba.models.identity import Credential, DeviceIdentity


@pytest.fixture
def identity() -> DeviceIdentity:
    return DeviceIdentity(id=BLID, product_name="Roomba", protocol_version=3, robot_name="Kitchen")


@pytest.fixture
def config() -> RoombaConfig:
    return RoombaConfig(address="192.168.1.20")


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def discovery(identity: DeviceIdentity) -> FakeDiscovery:
    return FakeDiscovery(identity)


@pytest.fixture
def credentials() -> FakeCredentials:
    return FakeCredentials(Credential(secret=":1:1591234567:AbCdEfGhIjKlMnOp"))


@pytest.fixture
def broker_factory() -> FakeBrokerFactory:
    return FakeBrokerFactory()
