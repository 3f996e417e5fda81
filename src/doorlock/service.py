"""Top-level service wiring hardware, remote channel, verifier and HTTP listener."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp
from aiohttp import web

from doorlock import gpio
from doorlock._transport import JsonTransport
from doorlock.config import DoorlockConfig
from doorlock.controller import LockController
from doorlock.dispatcher import LockDispatcher
from doorlock.exceptions import DoorlockError
from doorlock.latency import LatencyLog
from doorlock.models.lock import LockCommand, TriggerSource
from doorlock.ports import ActuatorPort, LatencySink, NotificationPort
from doorlock.remote import LoggingNotifier, MqttRemoteChannel
from doorlock.router import TriggerRouter
from doorlock.server import create_app
from doorlock.verification import VerificationClient

_logger = logging.getLogger(__name__)

#: Seconds to wait for in-flight requests (including held-open
#: repeated-toggle requests) before they are cancelled at shutdown.
_SHUTDOWN_TIMEOUT = 5.0


class DoorlockService:
    """Runs the door lock.

    Usage::

        async with DoorlockService(DoorlockConfig.from_env()) as service:
            await service.wait_closed()

    Passing ``actuator`` skips the pigpio connection and the button
    watcher; wire ``service.router.on_button`` to another edge source.
    Passing ``notifier`` skips the MQTT remote channel.
    """

    def __init__(
        self,
        config: DoorlockConfig,
        *,
        actuator: ActuatorPort | None = None,
        notifier: NotificationPort | None = None,
        latency_sink: LatencySink | None = None,
        http_session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._actuator = actuator
        self._notifier = notifier
        self._latency_sink = latency_sink
        self._external_session = http_session is not None
        self._http_session = http_session
        self._pi: Any = None
        self._button: Any = None
        self._remote: MqttRemoteChannel | None = None
        self._dispatcher: LockDispatcher | None = None
        self._router: TriggerRouter | None = None
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None
        self._closed = asyncio.Event()

    @property
    def config(self) -> DoorlockConfig:
        return self._config

    @property
    def router(self) -> TriggerRouter:
        if self._router is None:
            raise DoorlockError("Service not started. Use 'async with DoorlockService(...) as service:'")
        return self._router

    @property
    def dispatcher(self) -> LockDispatcher:
        if self._dispatcher is None:
            raise DoorlockError("Service not started. Use 'async with DoorlockService(...) as service:'")
        return self._dispatcher

    @property
    def port(self) -> int | None:
        """Bound listener port, once started."""
        if self._site is None or self._runner is None:
            return None
        for address in self._runner.addresses:
            if isinstance(address, tuple) and len(address) >= 2:
                return int(address[1])
        return None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> DoorlockService:
        try:
            await self.start()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def start(self) -> None:
        config = self._config
        loop = asyncio.get_running_loop()

        actuator = self._actuator
        if actuator is None:
            self._pi = gpio.connect(config.pigpio_host, config.pigpio_port)
            actuator = gpio.PigpioActuator(self._pi, config.pins)

        notifier = self._notifier
        if notifier is None:
            if config.mqtt_host:
                self._remote = MqttRemoteChannel.from_config(config, loop=loop)
                notifier = self._remote
            else:
                notifier = LoggingNotifier()

        controller = LockController(actuator, notifier, actuator_config=config.actuator)
        self._dispatcher = LockDispatcher(controller)
        await self._dispatcher.start()

        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        verifier = VerificationClient(
            JsonTransport(self._http_session, timeout=config.verify_timeout),
            endpoint=config.verify_url,
        )
        self._router = TriggerRouter(
            self._dispatcher,
            verifier,
            notifier,
            self._latency_sink or LatencyLog(config.eval_file),
            check_cert=config.check_cert,
            reps=config.reps,
            poll_interval=config.poll_interval,
            respond_on_denied=config.respond_on_denied,
        )

        _logger.info("locking door")
        await self._dispatcher.submit(LockCommand.LOCK, source=TriggerSource.STARTUP)

        if self._pi is not None:
            self._button = gpio.PigpioButton(
                self._pi,
                config.pins.button,
                loop=loop,
                on_edge=self._router.on_button,
            )

        if self._remote is not None:
            self._remote.set_virtual_write_handler(self._router.on_virtual_write)
            self._remote.start(
                config.mqtt_host or "",
                config.mqtt_port,
                username=config.mqtt_username,
                password=config.mqtt_password,
            )

        self._runner = web.AppRunner(create_app(self._router), shutdown_timeout=_SHUTDOWN_TIMEOUT)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, config.listen_host, config.listen_port)
        await self._site.start()
        _logger.info("Server running on port %s", self.port)

    async def close(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
        if self._router is not None:
            await self._router.close()
        if self._button is not None:
            self._button.cancel()
            self._button = None
        if self._remote is not None:
            self._remote.stop()
            self._remote = None
        if self._dispatcher is not None:
            await self._dispatcher.stop()
            self._dispatcher.controller.shutdown()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if self._pi is not None:
            self._pi.stop()
            self._pi = None
        self._closed.set()

    async def wait_closed(self) -> None:
        await self._closed.wait()

    def request_close(self) -> None:
        """Signal :meth:`wait_closed` waiters; used by signal handlers."""
        self._closed.set()
