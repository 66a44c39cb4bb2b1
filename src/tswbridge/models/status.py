"""Status snapshot served to dashboards.

All distances are meters and all speeds m/s unless the field name says
otherwise.  A snapshot is built fresh for every query or broadcast tick
and never mutated.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from tswbridge.models._base import TswBaseModel


class GradientDirection(StrEnum):
    UPHILL = "Uphill"
    DOWNHILL = "Downhill"
    LEVEL = "Level"


class MotionState(StrEnum):
    ACCELERATING = "accelerating"
    BRAKING = "braking"
    IDLE = "idle"


class TrackFeature(TswBaseModel):
    """An upcoming station, relative to the player."""

    name: str | None = None
    distance_m: float | None = None


class SignalInfo(TswBaseModel):
    aspect: str | None = None
    distance_m: float | None = None


class SpeedLimit(TswBaseModel):
    value_mps: float | None = None
    value_kph: float | None = None
    distance_m: float | None = None


class StatusSnapshot(TswBaseModel):
    """One fully assembled view of the locomotive's current status."""

    observed_at: datetime

    speed_mps: float = 0.0
    speed_kph: float = 0.0
    accel_mps2: float = 0.0
    motion: MotionState = MotionState.IDLE

    distance_to_signal_m: float | None = None
    next_signal_aspect: str | None = None
    next_signals: tuple[SignalInfo, ...] = ()

    speed_limit: SpeedLimit | None = None
    next_speed_limit: SpeedLimit | None = None
    next_speed_limits: tuple[SpeedLimit, ...] = ()

    gradient_raw: float | None = None
    gradient_pct: float | None = None
    gradient_direction: GradientDirection | None = None

    next_station_name: str | None = None
    next_station_distance_m: float | None = None
    next_stations: tuple[TrackFeature, ...] = ()

    power_pct: int = 0
    electric_brake_pct: int = 0
    train_brake_pct: int = 0
    loco_brake_pct: int = 0
