"""Status snapshot assembly.

Reads the latest cached groups, feeds the fresh speed through the shared
derivative tracker, and produces one immutable :class:`StatusSnapshot`.
Nothing here touches the network.  Every field is extracted on its own:
a missing or malformed source degrades that field to ``None`` (or an
empty tuple, or ``0``) without affecting the others.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from tswbridge import _constants as const
from tswbridge._api.subscription import parse_listing
from tswbridge._cache import GroupCache
from tswbridge.exceptions import TswAssemblyError
from tswbridge.ingestion.normalize import (
    as_list,
    as_mapping,
    cm_to_m,
    cm_to_whole_m,
    first_present,
    resolve_float,
    resolve_str,
    round_half_up,
    safe_float,
)
from tswbridge.models.status import (
    GradientDirection,
    MotionState,
    SignalInfo,
    SpeedLimit,
    StatusSnapshot,
    TrackFeature,
)
from tswbridge.state.kinematics import DerivativeTracker

# Path keywords used to pick HUD function values out of the readback.
_SPEED_KEY = "speed"
_POWER_KEY = "powerhandle"
_ELECTRIC_BRAKE_KEY = "electricbrakehandle"
_TRAIN_BRAKE_KEY = "trainbrakehandle"
_LOCO_BRAKE_KEY = "locomotivebrakehandle"

_STATION_LIST_KEYS = ("markers", "stations")
_PLAYER_POSITION_KEYS = ("playerDistanceCM", "playerPositionCM", "distanceTravelledCM")


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ------------------------------------------------------------------
# Field extractors
# ------------------------------------------------------------------


def hud_function_values(cache: GroupCache) -> dict[str, Mapping[str, Any]]:
    """Collect HUD function values keyed by lower-cased function path.

    Values come from the subscription readback when present, and from
    individually polled function groups otherwise.
    """
    values: dict[str, Mapping[str, Any]] = {}
    listing = parse_listing(cache.get(const.SUBSCRIPTION_GROUP))
    for entry in listing.entries:
        if entry.path and entry.values:
            values[entry.path.lower()] = entry.values
    for function in const.HUD_FUNCTIONS:
        polled = cache.get(function)
        if isinstance(polled, Mapping):
            values[function.lower()] = polled
    return values


def _function_values(functions: Mapping[str, Mapping[str, Any]], keyword: str) -> Mapping[str, Any]:
    for path, values in functions.items():
        if keyword in path:
            return values
    return {}


def extract_speed(functions: Mapping[str, Mapping[str, Any]]) -> float:
    """Speed in m/s: labeled field, then generic ``value``, then 0."""
    speed = resolve_float(_function_values(functions, _SPEED_KEY), "Speed (ms)", "Speed", "value")
    return speed if speed is not None else 0.0


def _handle_position(functions: Mapping[str, Mapping[str, Any]], keyword: str, *keys: str) -> float:
    position = resolve_float(_function_values(functions, keyword), *keys)
    return position if position is not None else 0.0


def _speed_limit(raw_value: Any, distance_cm: float | None = None) -> SpeedLimit | None:
    # Limits arrive either as a bare number or as ``{"value": <m/s>}``.
    value = safe_float(raw_value)
    if value is None:
        value = resolve_float(raw_value, "value")
    if value is None:
        return None
    return SpeedLimit(
        value_mps=value,
        value_kph=value * const.MPS_TO_KPH,
        distance_m=cm_to_m(distance_cm),
    )


def _upcoming_limit(item: Any) -> SpeedLimit | None:
    mapping = as_mapping(item)
    return _speed_limit(
        first_present(mapping, "value", "speedLimit"),
        resolve_float(mapping, "distanceToNextSpeedLimit", "distanceToSpeedLimit"),
    )


def extract_speed_limits(driver_aid: Any) -> tuple[SpeedLimit | None, SpeedLimit | None, tuple[SpeedLimit, ...]]:
    """Return ``(current, next, upcoming)`` as supplied upstream."""
    current = _speed_limit(first_present(driver_aid, "speedLimit"))

    upcoming: list[SpeedLimit] = []
    for item in as_list(first_present(driver_aid, "nextSpeedLimits")):
        limit = _upcoming_limit(item)
        if limit is not None:
            upcoming.append(limit)
        if len(upcoming) == const.MAX_UPCOMING:
            break

    next_limit = upcoming[0] if upcoming else _upcoming_limit(first_present(driver_aid, "nextSpeedLimit"))
    return current, next_limit, tuple(upcoming)


def extract_signals(driver_aid: Any) -> tuple[SignalInfo, ...]:
    signals: list[SignalInfo] = []
    for item in as_list(first_present(driver_aid, "nextSignals"))[: const.MAX_UPCOMING]:
        signals.append(
            SignalInfo(
                aspect=resolve_str(item, "value", "aspect", "signalAspectClass"),
                distance_m=cm_to_m(resolve_float(item, "distanceToNextSignal", "distanceToSignal")),
            )
        )
    return tuple(signals)


def extract_stations(*sources: Any) -> tuple[TrackFeature, ...]:
    """Nearest stations ahead of the player, closest first.

    The first source whose station list has a station ahead wins.
    Distances become relative when the source reports the player's track
    position; otherwise they are taken as already relative.  When no list
    yields a station ahead, a single
    ``nextStationName``/``distanceToNextStationCM`` pair is used.
    """
    for source in sources:
        markers = as_list(first_present(source, *_STATION_LIST_KEYS))
        if not markers:
            continue
        player_cm = resolve_float(source, *_PLAYER_POSITION_KEYS) or 0.0
        ahead: list[tuple[float, str | None]] = []
        for marker in markers:
            distance_cm = resolve_float(marker, "distanceToStationCM", "distanceCM")
            if distance_cm is None:
                continue
            relative_cm = distance_cm - player_cm
            if relative_cm < 0:
                continue
            ahead.append((relative_cm, resolve_str(marker, "stationName", "name")))
        if not ahead:
            continue
        ahead.sort(key=lambda pair: pair[0])
        return tuple(
            TrackFeature(name=name, distance_m=cm_to_whole_m(relative_cm))
            for relative_cm, name in ahead[: const.MAX_UPCOMING]
        )

    for source in sources:
        name = resolve_str(source, "nextStationName", "stationName")
        distance_cm = resolve_float(source, "distanceToNextStationCM", "distanceToStationCM")
        if name is not None or distance_cm is not None:
            return (TrackFeature(name=name, distance_m=cm_to_whole_m(distance_cm)),)
    return ()


def compute_gradient(*sources: Any) -> float | None:
    """Percent grade between the two track-height samples nearest the player.

    Returns ``None`` when fewer than two usable samples exist or both sit
    at the same distance.
    """
    for source in sources:
        samples: list[tuple[float, float]] = []
        for item in as_list(first_present(source, "trackHeights")):
            height = resolve_float(item, "height")
            distance = resolve_float(item, "distanceToHeight")
            if height is not None and distance is not None:
                samples.append((distance, height))
        if len(samples) < 2:
            continue
        nearest = sorted(sorted(samples, key=lambda sample: abs(sample[0]))[:2])
        (d1, h1), (d2, h2) = nearest
        dx = d2 - d1
        if dx == 0:
            return None
        return (h2 - h1) / dx * 100.0
    return None


def classify_gradient(percent: float | None) -> GradientDirection | None:
    if percent is None:
        return None
    if percent > 0:
        return GradientDirection.UPHILL
    if percent < 0:
        return GradientDirection.DOWNHILL
    return GradientDirection.LEVEL


def classify_motion(accel: float) -> MotionState:
    if accel > const.MOTION_DEADBAND:
        return MotionState.ACCELERATING
    if accel < -const.MOTION_DEADBAND:
        return MotionState.BRAKING
    return MotionState.IDLE


# ------------------------------------------------------------------
# Assembler
# ------------------------------------------------------------------


class SnapshotAssembler:
    """Build :class:`StatusSnapshot` records from the group cache.

    Station priority: the track-data station list first, then the
    driver-aid aggregate's list, then a single next-station field from
    either group.
    """

    def __init__(
        self,
        cache: GroupCache,
        tracker: DerivativeTracker,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._cache = cache
        self._tracker = tracker
        self._clock = clock

    @property
    def tracker(self) -> DerivativeTracker:
        return self._tracker

    def build(self) -> StatusSnapshot:
        """Assemble one snapshot from whatever is cached right now.

        Raises
        ------
        TswAssemblyError
            Only for unexpected structural failures; missing data never
            raises.
        """
        try:
            return self._build()
        except TswAssemblyError:
            raise
        except Exception as exc:
            raise TswAssemblyError(f"Snapshot assembly failed: {exc}") from exc

    def _build(self) -> StatusSnapshot:
        functions = hud_function_values(self._cache)
        speed = extract_speed(functions)
        accel = self._tracker.update(speed)

        driver_aid = as_mapping(self._cache.get(const.DRIVER_AID_GROUP))
        track_data = as_mapping(self._cache.get(const.TRACK_DATA_GROUP))

        signals = extract_signals(driver_aid)
        aspect = resolve_str(driver_aid, "signalAspectClass")
        if aspect is None and signals:
            aspect = signals[0].aspect

        current_limit, next_limit, upcoming_limits = extract_speed_limits(driver_aid)

        gradient_raw = resolve_float(driver_aid, "gradient")
        if gradient_raw is None:
            gradient_raw = resolve_float(track_data, "gradient")
        gradient_pct = compute_gradient(track_data, driver_aid)
        direction = classify_gradient(gradient_pct if gradient_pct is not None else gradient_raw)

        stations = extract_stations(track_data, driver_aid)
        first_station = stations[0] if stations else None

        power = _handle_position(functions, _POWER_KEY, "Power", "value")
        electric_brake = _handle_position(functions, _ELECTRIC_BRAKE_KEY, "HandlePosition", "value")
        train_brake = _handle_position(functions, _TRAIN_BRAKE_KEY, "HandlePosition", "value")
        loco_brake = _handle_position(functions, _LOCO_BRAKE_KEY, "HandlePosition", "value")

        return StatusSnapshot(
            observed_at=self._clock(),
            speed_mps=speed,
            speed_kph=speed * const.MPS_TO_KPH,
            accel_mps2=accel,
            motion=classify_motion(accel),
            distance_to_signal_m=cm_to_m(resolve_float(driver_aid, "distanceToSignal")),
            next_signal_aspect=aspect,
            next_signals=signals,
            speed_limit=current_limit,
            next_speed_limit=next_limit,
            next_speed_limits=upcoming_limits,
            gradient_raw=gradient_raw,
            gradient_pct=gradient_pct,
            gradient_direction=direction,
            next_station_name=first_station.name if first_station else None,
            next_station_distance_m=first_station.distance_m if first_station else None,
            next_stations=stations,
            power_pct=round_half_up(power * 10),
            electric_brake_pct=round_half_up(electric_brake * 100),
            train_brake_pct=round_half_up(train_brake * 100),
            loco_brake_pct=round_half_up(loco_brake * 100),
        )
