"""tswbridge - Async telemetry bridge for the Train Sim World local API."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tswbridge")
except PackageNotFoundError:
    __version__ = "0+local"
from tswbridge.broadcast import Broadcaster
from tswbridge.client import TswBridge
from tswbridge.config import BridgeConfig, discover_comm_key
from tswbridge.exceptions import (
    TswAssemblyError,
    TswConfigError,
    TswError,
    TswTransportError,
    TswUpstreamError,
)
from tswbridge.models import (
    GradientDirection,
    MotionState,
    SignalInfo,
    SpeedLimit,
    StatusSnapshot,
    TrackFeature,
)
from tswbridge.state.assembler import SnapshotAssembler
from tswbridge.state.kinematics import DerivativeTracker, SpeedSample

__all__ = [
    "__version__",
    "BridgeConfig",
    "Broadcaster",
    "DerivativeTracker",
    "GradientDirection",
    "MotionState",
    "SignalInfo",
    "SnapshotAssembler",
    "SpeedLimit",
    "SpeedSample",
    "StatusSnapshot",
    "TrackFeature",
    "TswAssemblyError",
    "TswBridge",
    "TswConfigError",
    "TswError",
    "TswTransportError",
    "TswUpstreamError",
    "discover_comm_key",
]
