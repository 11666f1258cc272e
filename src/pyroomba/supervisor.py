"""Connection lifecycle for one robot.

Sequence: identify the robot over UDP, obtain its password if none is
configured, then open the MQTT session.  Every step that touches the
connection runs as a job on a single worker task, so a reconnect can
never race a concurrent connect or a teardown.

Failure classification (status detail / retried):

=====================================  =======================  =======
failure                                host status detail        retry
=====================================  =======================  =======
malformed identification reply         communication_error       no
unsupported version / wrong product    configuration_error       no
local TLS setup failure                communication_error       no
no password and none configured        configuration_pending     yes
network fault in any step              communication_error       yes
broker disconnect                      communication_error       yes
unexpected internal failure            communication_error       no
=====================================  =======================  =======

Failures that are not retried leave the supervisor in ``terminal``;
only a new supervisor gets the robot back online.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable

from pyroomba._credential import CredentialClient
from pyroomba._discovery import DiscoveryClient
from pyroomba._mqtt import BrokerConnection, BrokerFactory, mqtt_broker_factory
from pyroomba.config import RoombaConfig
from pyroomba.exceptions import (
    AuthenticationPendingError,
    BrokerDisconnectedError,
    MalformedResponseError,
    RoombaError,
    RoombaNetworkError,
    RoombaSetupError,
    UnsupportedVersionError,
    WrongProductTypeError,
)
from pyroomba.host import Cancellable, Host, ThingStatus, ThingStatusDetail
from pyroomba.models.identity import Credential, DeviceIdentity
from pyroomba.models.requests import RoombaRequest

_logger = logging.getLogger(__name__)

_Job = Callable[[], Awaitable[None]]


class ConnectionState(enum.StrEnum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    RETRIEVING_CREDENTIAL = "retrieving_credential"
    CONNECTING_BROKER = "connecting_broker"
    CONNECTED = "connected"
    RECONNECT_PENDING = "reconnect_pending"
    TERMINAL = "terminal"


_S = ConnectionState

_TRANSITIONS: dict[ConnectionState, frozenset[ConnectionState]] = {
    _S.IDLE: frozenset({_S.DISCOVERING, _S.RETRIEVING_CREDENTIAL, _S.CONNECTING_BROKER, _S.TERMINAL}),
    _S.DISCOVERING: frozenset(
        {_S.RETRIEVING_CREDENTIAL, _S.CONNECTING_BROKER, _S.RECONNECT_PENDING, _S.TERMINAL, _S.IDLE}
    ),
    _S.RETRIEVING_CREDENTIAL: frozenset({_S.CONNECTING_BROKER, _S.RECONNECT_PENDING, _S.TERMINAL, _S.IDLE}),
    _S.CONNECTING_BROKER: frozenset({_S.CONNECTED, _S.RECONNECT_PENDING, _S.TERMINAL, _S.IDLE}),
    _S.CONNECTED: frozenset({_S.RECONNECT_PENDING, _S.IDLE}),
    _S.RECONNECT_PENDING: frozenset(
        {_S.DISCOVERING, _S.RETRIEVING_CREDENTIAL, _S.CONNECTING_BROKER, _S.TERMINAL, _S.IDLE}
    ),
    _S.TERMINAL: frozenset({_S.IDLE}),
}

# States that need both identity and credential to be known.
_SESSION_STATES: frozenset[ConnectionState] = frozenset({_S.CONNECTING_BROKER, _S.CONNECTED})


class _LifecycleWorker:
    """Runs lifecycle jobs one at a time, in submission order."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[_Job | None] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None
        self._closed = False

    def submit(self, job: _Job) -> bool:
        if self._closed:
            return False
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())
        self._queue.put_nowait(job)
        return True

    async def _run(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                if job is None:
                    return
                await job()
            except Exception:
                _logger.exception("Lifecycle job failed")
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Wait until every submitted job has finished."""
        await self._queue.join()

    async def close(self) -> None:
        """Run the remaining jobs, then stop accepting new ones."""
        if self._closed:
            return
        self._closed = True
        if self._task is None:
            return
        self._queue.put_nowait(None)
        await self._task


class _SessionListener:
    """Tags broker callbacks with the session generation they belong to."""

    def __init__(self, supervisor: ConnectionSupervisor, generation: int) -> None:
        self._supervisor = supervisor
        self._generation = generation

    def on_connected(self) -> None:
        self._supervisor._on_broker_connected(self._generation)

    def on_disconnected(self, cause: BaseException) -> None:
        self._supervisor._on_broker_disconnected(self._generation, cause)

    def on_message(self, topic: str, payload: bytes) -> None:
        self._supervisor._on_broker_message(self._generation, topic, payload)


class ConnectionSupervisor:
    """Owns the connection state machine, the device identity and the credential.

    Parameters
    ----------
    config : RoombaConfig
        Robot address, optional password and timing.
    host : Host
        Receives status changes and persisted credentials, and provides
        the reconnect timer.
    on_message : callable
        Called on the event loop with ``(topic, payload)`` for every
        inbound broker message.
    discovery, credentials, broker_factory
        Collaborators; defaults talk to a real robot.
    """

    def __init__(
        self,
        config: RoombaConfig,
        host: Host,
        *,
        on_message: Callable[[str, bytes], None],
        discovery: DiscoveryClient | None = None,
        credentials: CredentialClient | None = None,
        broker_factory: BrokerFactory | None = None,
    ) -> None:
        self._config = config
        self._host = host
        self._on_message = on_message
        self._discovery = discovery or DiscoveryClient(
            port=config.discovery_port,
            timeout=config.discovery_timeout,
        )
        self._credentials = credentials or CredentialClient(
            port=config.credential_port,
            timeout=config.credential_timeout,
        )
        self._broker_factory = broker_factory
        self._loop: asyncio.AbstractEventLoop | None = None
        self._worker = _LifecycleWorker()

        self._state = ConnectionState.IDLE
        self._identity: DeviceIdentity | None = None
        self._credential: Credential | None = (
            Credential(secret=config.password) if config.password and config.has_password else None
        )
        self._broker: BrokerConnection | None = None
        self._generation = 0
        self._reconnect_handle: Cancellable | None = None
        self._disposed = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def identity(self) -> DeviceIdentity | None:
        return self._identity

    @property
    def has_credential(self) -> bool:
        return self._credential is not None

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    def connect(self) -> None:
        """Queue a connection attempt.  Safe to call from any thread.

        The first call must happen on the event loop that will own the
        connection.
        """
        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError as exc:
                raise RoombaError("connect() must first be called from a running event loop") from exc
        self._call_on_loop(self._submit_connect)

    def publish(self, request: RoombaRequest) -> None:
        """Send *request* over the current broker session."""
        broker = self._broker
        if broker is None or self._state != ConnectionState.CONNECTED:
            raise BrokerDisconnectedError(f"Not connected to {self._config.address}")
        payload = request.to_payload()
        _logger.debug("Sending %s: %s", request.topic, payload)
        broker.publish(request.topic, payload)

    async def drain(self) -> None:
        """Wait for queued lifecycle work to finish."""
        await asyncio.sleep(0)
        await self._worker.drain()

    async def dispose(self) -> None:
        """Cancel any pending reconnect and tear the session down.  Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        self._cancel_reconnect()
        if self._loop is None:
            return
        self._worker.submit(self._teardown)
        await self._worker.close()

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _transition(self, new_state: ConnectionState) -> None:
        old_state = self._state
        if new_state == old_state:
            return
        if new_state not in _TRANSITIONS[old_state]:
            raise RuntimeError(f"Illegal connection state transition {old_state} -> {new_state}")
        if new_state in _SESSION_STATES and (self._identity is None or self._credential is None):
            raise RuntimeError(f"Cannot enter {new_state} without identity and credential")
        _logger.debug("Connection state %s -> %s", old_state, new_state)
        self._state = new_state

    def _fail_terminal(self, detail: ThingStatusDetail, description: str) -> None:
        _logger.error("Giving up on %s: %s", self._config.address, description)
        self._transition(ConnectionState.TERMINAL)
        self._host.update_status(ThingStatus.OFFLINE, detail, description)

    def _fail_retry(self, detail: ThingStatusDetail, description: str) -> None:
        self._transition(ConnectionState.RECONNECT_PENDING)
        self._host.update_status(ThingStatus.OFFLINE, detail, description)
        self._schedule_reconnect()

    # ------------------------------------------------------------------
    # Lifecycle jobs (run on the worker)
    # ------------------------------------------------------------------

    def _submit_connect(self) -> None:
        if self._disposed:
            _logger.debug("Connect requested after dispose; ignoring")
            return
        self._worker.submit(self._connect)

    async def _connect(self) -> None:
        if self._disposed:
            return
        if self._state not in (ConnectionState.IDLE, ConnectionState.RECONNECT_PENDING):
            _logger.debug("Connect skipped in state %s", self._state)
            return

        _logger.info("Connecting to %s", self._config.address)
        try:
            await self._stop_broker()
            identity = await self._ensure_identity()
            credential = await self._ensure_credential()
            await self._open_broker(identity, credential)
        except MalformedResponseError:
            self._fail_terminal(ThingStatusDetail.COMMUNICATION_ERROR, "Malformed IDENT response")
        except (UnsupportedVersionError, WrongProductTypeError) as exc:
            self._fail_terminal(ThingStatusDetail.CONFIGURATION_ERROR, str(exc))
        except RoombaSetupError as exc:
            # Local environment fault, not the robot's.
            self._fail_terminal(ThingStatusDetail.COMMUNICATION_ERROR, str(exc))
        except AuthenticationPendingError as exc:
            _logger.warning("%s", exc)
            self._fail_retry(ThingStatusDetail.CONFIGURATION_PENDING, str(exc))
        except (RoombaNetworkError, BrokerDisconnectedError) as exc:
            _logger.error("%s", exc)
            self._fail_retry(ThingStatusDetail.COMMUNICATION_ERROR, str(exc))
        except Exception as exc:
            # Unclassified failure; never leave the machine in a transitional state.
            _logger.exception("Unexpected error while connecting to %s", self._config.address)
            await self._stop_broker()
            self._fail_terminal(ThingStatusDetail.COMMUNICATION_ERROR, f"Unexpected error: {exc}")

    async def _ensure_identity(self) -> DeviceIdentity:
        if self._identity is None:
            self._transition(ConnectionState.DISCOVERING)
            self._identity = await self._discovery.discover(self._config.address)
        _logger.debug("BLID is: %s", self._identity.id)
        return self._identity

    async def _ensure_credential(self) -> Credential:
        if self._credential is None:
            self._transition(ConnectionState.RETRIEVING_CREDENTIAL)
            credential = await self._credentials.retrieve(self._config.address)
            if credential is not None:
                self._credential = credential
                self._host.persist_credential(credential)
        if self._credential is None:
            raise AuthenticationPendingError("Authentication on the robot is required")
        return self._credential

    async def _open_broker(self, identity: DeviceIdentity, credential: Credential) -> None:
        self._transition(ConnectionState.CONNECTING_BROKER)
        self._generation += 1
        broker = self._create_broker(_SessionListener(self, self._generation))
        self._broker = broker
        loop = self._require_loop()
        try:
            # The BLID is both client id and username.
            await loop.run_in_executor(None, broker.start, identity.id, credential)
        except RoombaError:
            if self._broker is broker:
                self._broker = None
            raise

    async def _stop_broker(self) -> None:
        broker = self._broker
        self._broker = None
        self._generation += 1
        if broker is None:
            return
        try:
            await self._require_loop().run_in_executor(None, broker.stop)
        except Exception:
            _logger.debug("MQTT runtime stop failed", exc_info=True)

    async def _teardown(self) -> None:
        self._cancel_reconnect()
        await self._stop_broker()
        self._transition(ConnectionState.IDLE)

    def _create_broker(self, listener: _SessionListener) -> BrokerConnection:
        if self._broker_factory is None:
            self._broker_factory = mqtt_broker_factory(
                loop=self._require_loop(),
                port=self._config.broker_port,
                keepalive=self._config.mqtt_keepalive,
            )
        return self._broker_factory(self._config.address, listener)

    # ------------------------------------------------------------------
    # Reconnect timer
    # ------------------------------------------------------------------

    def _schedule_reconnect(self) -> None:
        if self._disposed:
            return
        if self._reconnect_handle is not None:
            _logger.debug("Reconnect already scheduled")
            return
        _logger.debug("Reconnecting in %ss", self._config.reconnect_delay)
        self._reconnect_handle = self._host.call_later(self._config.reconnect_delay, self._on_reconnect_timer)

    def _on_reconnect_timer(self) -> None:
        self._call_on_loop(self._reconnect_due)

    def _reconnect_due(self) -> None:
        self._reconnect_handle = None
        self._submit_connect()

    def _cancel_reconnect(self) -> None:
        handle = self._reconnect_handle
        self._reconnect_handle = None
        if handle is not None:
            handle.cancel()

    # ------------------------------------------------------------------
    # Broker callbacks (event loop)
    # ------------------------------------------------------------------

    def _on_broker_connected(self, generation: int) -> None:
        if generation != self._generation:
            return
        if self._state not in (ConnectionState.CONNECTING_BROKER, ConnectionState.CONNECTED):
            return
        self._transition(ConnectionState.CONNECTED)
        self._host.update_status(ThingStatus.ONLINE)

    def _on_broker_disconnected(self, generation: int, cause: BaseException) -> None:
        if generation != self._generation:
            return
        if self._state not in (ConnectionState.CONNECTING_BROKER, ConnectionState.CONNECTED):
            return
        message = str(cause) or type(cause).__name__
        _logger.error("MQTT connection failed: %s", message)
        self._fail_retry(ThingStatusDetail.COMMUNICATION_ERROR, message)

    def _on_broker_message(self, generation: int, topic: str, payload: bytes) -> None:
        if generation != self._generation:
            return
        self._on_message(topic, payload)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            raise RoombaError("Supervisor has not been started")
        return self._loop

    def _call_on_loop(self, fn: Callable[[], None]) -> None:
        loop = self._require_loop()
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            fn()
        else:
            loop.call_soon_threadsafe(fn)
