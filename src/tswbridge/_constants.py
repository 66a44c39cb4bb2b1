"""Internal constants shared across the library."""

UPSTREAM_URL = "http://127.0.0.1:31270"
COMM_KEY_HEADER = "DTGCommKey"

# Envelope field the upstream wraps ``/get`` payloads in.
VALUES_FIELD = "Values"

# ------------------------------------------------------------------
# Upstream groups
# ------------------------------------------------------------------

DRIVER_AID_GROUP = "DriverAid.Data"
TRACK_DATA_GROUP = "DriverAid.TrackData"
SUBSCRIPTION_GROUP = "subscription"

SPEED_FUNCTION = "CurrentDrivableActor.Function.HUD_GetSpeed"
POWER_HANDLE_FUNCTION = "CurrentDrivableActor.Function.HUD_GetPowerHandle"
ELECTRIC_BRAKE_FUNCTION = "CurrentDrivableActor.Function.HUD_GetElectricBrakeHandle"
TRAIN_BRAKE_FUNCTION = "CurrentDrivableActor.Function.HUD_GetTrainBrakeHandle"
LOCO_BRAKE_FUNCTION = "CurrentDrivableActor.Function.HUD_GetLocomotiveBrakeHandle"

HUD_FUNCTIONS: tuple[str, ...] = (
    SPEED_FUNCTION,
    POWER_HANDLE_FUNCTION,
    ELECTRIC_BRAKE_FUNCTION,
    TRAIN_BRAKE_FUNCTION,
    LOCO_BRAKE_FUNCTION,
)

# ------------------------------------------------------------------
# Units and limits
# ------------------------------------------------------------------

MPS_TO_KPH = 3.6
CM_PER_M = 100.0
MAX_UPCOMING = 3

# |a| below this is reported as idle (m/s²).
MOTION_DEADBAND = 0.05

# ------------------------------------------------------------------
# Credential discovery
# ------------------------------------------------------------------

GAME_FOLDER_PREFIX = "TrainSimWorld"
COMM_KEY_RELATIVE_PATH = ("Saved", "Config", "CommAPIKey.txt")
