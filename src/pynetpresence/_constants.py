"""Internal constants shared across the library."""

#: Serial number reserved for the aggregate "anyone present" identity.
ANYONE_SERIAL = "12:34:56:78:9a:bc"
ANYONE_NAME = "Anyone"

#: Seconds between the end of one scan and the start of the next.
DEFAULT_POLL_INTERVAL: float = 10.0

#: Minutes a disconnect must persist before the identity is reported absent.
DEFAULT_THRESHOLD: float = 15.0

SECONDS_PER_MINUTE = 60.0

MQTT_DEFAULT_PREFIX = "netpresence"
MQTT_PAYLOAD_ON = "ON"
MQTT_PAYLOAD_OFF = "OFF"


def minutes_to_seconds(minutes: float) -> float:
    """Convert a debounce threshold in minutes to event-loop seconds.

    Raises :class:`ValueError` for negative thresholds.
    """
    value = float(minutes)
    if value < 0:
        raise ValueError(f"threshold must be >= 0 minutes, got {value}")
    return value * SECONDS_PER_MINUTE
