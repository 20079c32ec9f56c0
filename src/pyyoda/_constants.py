"""Internal constants shared across the library."""

# ------------------------------------------------------------------
# Bus topics
# ------------------------------------------------------------------

HFP_EVENT_TOPIC = "bluetooth.hfp.event"
HFP_COMMAND_TOPIC = "bluetooth.hfp.command"

DEFAULT_BUS_HOST = "localhost"
DEFAULT_BUS_PORT = 1883

# Seconds between close() and resource release in BluetoothHfp.destroy().
HFP_DESTROY_GRACE_SECONDS = 3.0

# ------------------------------------------------------------------
# Cloud event reporter
# ------------------------------------------------------------------

EVENT_REQUEST_URI = "/v1/skill/dispatch/sendEvent"
EVENT_REQUEST_SERVICE = "rest"
DEFAULT_PROFILE_PATH = "/data/system/openvoice_profile.json"

# ------------------------------------------------------------------
# LEDs
# ------------------------------------------------------------------

DEFAULT_LED_COUNT = 12
CHANNELS_PER_LED = 3
