"""Internal constants shared across the package."""

#: Static acknowledgement body returned by every network trigger.
#: It carries no information about the lock; callers infer the outcome
#: out-of-band.
ACK_PAYLOAD: tuple[str, ...] = ("Tony", "Lisa", "Michael", "Ginger", "Food")

MSG_LOCKED = "Door has been locked!"
MSG_UNLOCKED = "Door has been unlocked!"
MSG_UNKNOWN_PARAMETER = "Door lock button was pressed with unknown parameter"

DEFAULT_VERIFY_URL = "http://127.0.0.1:9020/verify"
DEFAULT_EVAL_FILE = "eval-doorlock.csv"

# ------------------------------------------------------------------
# Timing
# ------------------------------------------------------------------

#: Verification attempts per repeated-toggle request.
DEFAULT_REPS = 100
#: Seconds between repeated-toggle attempts.
DEFAULT_POLL_INTERVAL = 2.0
#: Seconds after a drive command before the servo is switched off to
#: avoid stall current.
DEFAULT_SETTLE_DELAY = 1.5

# ------------------------------------------------------------------
# Servo pulse widths (microseconds). Roughly 100 degrees of horn travel
# between 1.0 ms and 2.2 ms; tune per lock.
# ------------------------------------------------------------------

DEFAULT_UNLOCKED_PULSE_WIDTH = 1000
DEFAULT_LOCKED_PULSE_WIDTH = 2200
POWER_OFF_PULSE_WIDTH = 0

# ------------------------------------------------------------------
# Remote channel
# ------------------------------------------------------------------

NOTIFY_TOPIC_SUFFIX = "notify"
VIRTUAL_PIN_TOPIC_SUFFIX = "v0"
