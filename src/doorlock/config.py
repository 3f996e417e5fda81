"""Service configuration for doorlock."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable
from typing import Any

from doorlock._constants import (
    DEFAULT_EVAL_FILE,
    DEFAULT_LOCKED_PULSE_WIDTH,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REPS,
    DEFAULT_SETTLE_DELAY,
    DEFAULT_UNLOCKED_PULSE_WIDTH,
    DEFAULT_VERIFY_URL,
)
from doorlock.exceptions import DoorlockConfigError
from doorlock.models.lock import LockState


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, raw: str, cast: Callable[[str], Any]) -> Any:
    try:
        return cast(raw)
    except ValueError as exc:
        raise DoorlockConfigError(f"{env_key} must be a number, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class ActuatorConfig:
    """Servo positions and settle time.

    Parameters
    ----------
    unlocked_pulse_width : int
        Servo pulse width in microseconds for the unlocked position.
    locked_pulse_width : int
        Servo pulse width in microseconds for the locked position.
    settle_delay : float
        Seconds after a drive command before the servo is commanded to
        zero drive.
    """

    unlocked_pulse_width: int = DEFAULT_UNLOCKED_PULSE_WIDTH
    locked_pulse_width: int = DEFAULT_LOCKED_PULSE_WIDTH
    settle_delay: float = DEFAULT_SETTLE_DELAY

    def __post_init__(self) -> None:
        if self.unlocked_pulse_width <= 0 or self.locked_pulse_width <= 0:
            raise DoorlockConfigError("pulse widths must be positive")
        if self.settle_delay < 0:
            raise DoorlockConfigError("settle_delay must not be negative")

    def pulse_width_for(self, state: LockState) -> int:
        if state is LockState.LOCKED:
            return self.locked_pulse_width
        return self.unlocked_pulse_width


@dataclasses.dataclass(frozen=True)
class PinAssignment:
    """BCM GPIO numbers for the servo signal, the button and the indicator LED."""

    motor: int = 14
    button: int = 4
    led: int = 17


@dataclasses.dataclass(frozen=True)
class DoorlockConfig:
    """Service configuration.

    Parameters
    ----------
    actuator : ActuatorConfig
        Servo pulse widths and settle delay.
    pins : PinAssignment
        GPIO pin numbers.
    check_cert : bool
        Gate network toggles behind the verification authority.
    verify_url : str
        Verification endpoint receiving the credential as JSON.
    verify_timeout : float or None
        Total timeout for one verification round trip. ``None`` waits
        forever.
    reps : int
        Attempts per repeated-toggle request.
    poll_interval : float
        Seconds between repeated-toggle attempts.
    respond_on_denied : bool
        Answer a repeated-toggle caller with an error when verification is
        denied instead of holding the request open.
    listen_host, listen_port
        HTTP listener address.
    eval_file : str
        Append-only latency log path.
    pigpio_host, pigpio_port
        Address of the pigpio daemon.
    mqtt_host : str or None
        Broker for the remote channel. ``None`` disables it and sends
        notifications to the log only.
    mqtt_port, mqtt_username, mqtt_password, mqtt_keepalive
        Broker connection details.
    mqtt_topic_prefix : str
        Prefix for the notify and virtual-pin topics.
    """

    actuator: ActuatorConfig = dataclasses.field(default_factory=ActuatorConfig)
    pins: PinAssignment = dataclasses.field(default_factory=PinAssignment)
    check_cert: bool = True
    verify_url: str = DEFAULT_VERIFY_URL
    verify_timeout: float | None = None
    reps: int = DEFAULT_REPS
    poll_interval: float = DEFAULT_POLL_INTERVAL
    respond_on_denied: bool = False
    listen_host: str = "0.0.0.0"
    listen_port: int = 3000
    eval_file: str = DEFAULT_EVAL_FILE
    pigpio_host: str = "localhost"
    pigpio_port: int = 8888
    mqtt_host: str | None = None
    mqtt_port: int = 1883
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_topic_prefix: str = "doorlock"
    mqtt_keepalive: int = 120

    def __post_init__(self) -> None:
        if self.reps < 0:
            raise DoorlockConfigError("reps must not be negative")
        if self.poll_interval < 0:
            raise DoorlockConfigError("poll_interval must not be negative")
        if self.verify_timeout is not None and self.verify_timeout <= 0:
            raise DoorlockConfigError("verify_timeout must be positive when set")
        if not 0 <= self.listen_port <= 65535:
            raise DoorlockConfigError(f"listen_port out of range: {self.listen_port}")
        if not self.mqtt_topic_prefix.strip("/"):
            raise DoorlockConfigError("mqtt_topic_prefix must be non-empty")

    @classmethod
    def from_env(cls, **overrides: Any) -> DoorlockConfig:
        """Create configuration from ``DOORLOCK_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        actuator_kwargs: dict[str, Any] = {}
        _ENV_ACTUATOR_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "DOORLOCK_UNLOCKED_PULSE_WIDTH": ("unlocked_pulse_width", int),
            "DOORLOCK_LOCKED_PULSE_WIDTH": ("locked_pulse_width", int),
            "DOORLOCK_SETTLE_DELAY": ("settle_delay", float),
        }
        for env_key, (field_name, cast) in _ENV_ACTUATOR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                actuator_kwargs[field_name] = _env_number(env_key, val, cast)

        pin_kwargs: dict[str, int] = {}
        _ENV_PIN_MAP = {
            "DOORLOCK_MOTOR_PIN": "motor",
            "DOORLOCK_BUTTON_PIN": "button",
            "DOORLOCK_LED_PIN": "led",
        }
        for env_key, field_name in _ENV_PIN_MAP.items():
            val = env.get(env_key)
            if val is not None:
                pin_kwargs[field_name] = _env_number(env_key, val, int)

        config_kwargs: dict[str, Any] = {}
        if "actuator" not in overrides:
            config_kwargs["actuator"] = ActuatorConfig(**actuator_kwargs)
        if "pins" not in overrides:
            config_kwargs["pins"] = PinAssignment(**pin_kwargs)

        _ENV_STRING_MAP = {
            "DOORLOCK_VERIFY_URL": "verify_url",
            "DOORLOCK_LISTEN_HOST": "listen_host",
            "DOORLOCK_EVAL_FILE": "eval_file",
            "DOORLOCK_PIGPIO_HOST": "pigpio_host",
            "DOORLOCK_MQTT_HOST": "mqtt_host",
            "DOORLOCK_MQTT_USERNAME": "mqtt_username",
            "DOORLOCK_MQTT_PASSWORD": "mqtt_password",
            "DOORLOCK_MQTT_TOPIC_PREFIX": "mqtt_topic_prefix",
        }
        for env_key, field_name in _ENV_STRING_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMBER_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "DOORLOCK_VERIFY_TIMEOUT": ("verify_timeout", float),
            "DOORLOCK_REPS": ("reps", int),
            "DOORLOCK_POLL_INTERVAL": ("poll_interval", float),
            "DOORLOCK_LISTEN_PORT": ("listen_port", int),
            "DOORLOCK_PIGPIO_PORT": ("pigpio_port", int),
            "DOORLOCK_MQTT_PORT": ("mqtt_port", int),
            "DOORLOCK_MQTT_KEEPALIVE": ("mqtt_keepalive", int),
        }
        for env_key, (field_name, cast) in _ENV_NUMBER_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, cast)

        if "check_cert" not in overrides:
            config_kwargs["check_cert"] = _env_bool(env.get("DOORLOCK_CHECK_CERT"), True)

        if "respond_on_denied" not in overrides:
            config_kwargs["respond_on_denied"] = _env_bool(
                env.get("DOORLOCK_RESPOND_ON_DENIED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
