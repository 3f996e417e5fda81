"""doorlock - Async door-lock controller with verification-gated toggles."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("doorlock")
except PackageNotFoundError:
    __version__ = "0+local"
from doorlock.config import ActuatorConfig, DoorlockConfig, PinAssignment
from doorlock.controller import LockController
from doorlock.dispatcher import LockDispatcher
from doorlock.exceptions import (
    DoorlockConfigError,
    DoorlockError,
    DoorlockHardwareError,
    VerificationDeniedError,
    VerificationError,
    VerificationParseError,
    VerificationTransportError,
)
from doorlock.models import (
    LatencyRecord,
    LatencySummary,
    LockCommand,
    LockState,
    SessionResult,
    SessionState,
    TriggerResult,
    TriggerSource,
    VerificationOutcome,
)
from doorlock.router import TriggerRouter
from doorlock.service import DoorlockService
from doorlock.session import RepeatedVerificationSession
from doorlock.verification import VerificationClient

__all__ = [
    "__version__",
    "ActuatorConfig",
    "DoorlockConfig",
    "DoorlockConfigError",
    "DoorlockError",
    "DoorlockHardwareError",
    "DoorlockService",
    "LatencyRecord",
    "LatencySummary",
    "LockCommand",
    "LockController",
    "LockDispatcher",
    "LockState",
    "PinAssignment",
    "RepeatedVerificationSession",
    "SessionResult",
    "SessionState",
    "TriggerResult",
    "TriggerRouter",
    "TriggerSource",
    "VerificationClient",
    "VerificationDeniedError",
    "VerificationError",
    "VerificationOutcome",
    "VerificationParseError",
    "VerificationTransportError",
]
