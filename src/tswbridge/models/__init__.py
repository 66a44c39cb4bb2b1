"""Typed records for tswbridge."""

from tswbridge.models.status import (
    GradientDirection,
    MotionState,
    SignalInfo,
    SpeedLimit,
    StatusSnapshot,
    TrackFeature,
)
from tswbridge.models.subscription import SubscriptionEntry, SubscriptionListing

__all__ = [
    "GradientDirection",
    "MotionState",
    "SignalInfo",
    "SpeedLimit",
    "StatusSnapshot",
    "SubscriptionEntry",
    "SubscriptionListing",
    "TrackFeature",
]
