"""Internal constants shared across the library."""

# ------------------------------------------------------------------
# Network endpoints on the robot
# ------------------------------------------------------------------

DISCOVERY_PORT = 5678
DISCOVERY_REQUEST = b"irobotmcs"
CREDENTIAL_PORT = 8883
BROKER_PORT = 8883
RECONNECT_DELAY_SECONDS = 5.0

MIN_SUPPORTED_VERSION = 2
SUPPORTED_PRODUCTS: frozenset[str] = frozenset({"Roomba", "iRobot"})

# "Give me your password" frame.  Same fixed bytes the iRobot app sends.
PASSWORD_REQUEST_FRAME = bytes.fromhex("f005efcc3b2900")
PASSWORD_FRAME_TYPE = 0xF0
PASSWORD_MAGIC = bytes.fromhex("efcc3b2900")

# ------------------------------------------------------------------
# Broker topics
# ------------------------------------------------------------------

TOPIC_COMMAND = "cmd"
TOPIC_DELTA = "delta"
SUBSCRIBE_TOPIC = "#"
COMMAND_INITIATOR = "localApp"

# ------------------------------------------------------------------
# Channel ids
# ------------------------------------------------------------------

CHANNEL_COMMAND = "command"
CHANNEL_CYCLE = "cycle"
CHANNEL_PHASE = "phase"
CHANNEL_BATTERY = "battery"
CHANNEL_BIN = "bin"
CHANNEL_ERROR = "error"
CHANNEL_RSSI = "rssi"
CHANNEL_SNR = "snr"
CHANNEL_SCHEDULE = "schedule"
CHANNEL_EDGE_CLEAN = "edge_clean"
CHANNEL_ALWAYS_FINISH = "always_finish"
CHANNEL_POWER_BOOST = "power_boost"
CHANNEL_CLEAN_PASSES = "clean_passes"

CHANNEL_SCHED_SWITCH_PREFIX = "sched_"
# Index 0 is Sunday, matching the robot's cleanSchedule arrays.
CHANNEL_SCHED_SWITCH: tuple[str, ...] = (
    "sched_sun",
    "sched_mon",
    "sched_tue",
    "sched_wed",
    "sched_thu",
    "sched_fri",
    "sched_sat",
)
DAYS_PER_WEEK = len(CHANNEL_SCHED_SWITCH)

# ------------------------------------------------------------------
# Properties
# ------------------------------------------------------------------

PROPERTY_FIRMWARE_VERSION = "firmwareVersion"

# Reported field name -> host property name.
VERSION_PROPERTIES: tuple[tuple[str, str], ...] = (
    ("software_ver", PROPERTY_FIRMWARE_VERSION),
    ("nav_sw_ver", "navSwVer"),
    ("wifi_sw_ver", "wifiSwVer"),
    ("mobility_ver", "mobilityVer"),
    ("bootloader_ver", "bootloaderVer"),
    ("umi_ver", "umiVer"),
)
