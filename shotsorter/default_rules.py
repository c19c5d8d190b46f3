# Simple, opinionated defaults.
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}

# bucket scheme -> strftime pattern for the folder under the channel
BUCKET_FORMATS = {
    "month": "%Y-%m",
    "day": "%Y-%m-%d",
    "none": None,
}
DEFAULT_BUCKET = "month"

DUPLICATE_POLICIES = ("discard", "keep")
DEFAULT_DUPLICATE_POLICY = "discard"

# debounce: seconds between size checks, and how many checks before giving up
DEFAULT_SETTLE_INTERVAL = 1.0
DEFAULT_SETTLE_CHECKS = 10
DEFAULT_POLL_INTERVAL = 1.0

LOG_LEVEL_ENV = "SHOTSORTER_LOG_LEVEL"
