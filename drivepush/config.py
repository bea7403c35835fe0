"""
Configuration settings for the drivepush engine.
"""
from pathlib import Path

# Base directories
BASE_DIR = Path.home() / ".drivepush"
LOG_DIR = BASE_DIR / "logs"

# Default files
LOG_FILE = LOG_DIR / "push.log"

# Per-root metadata directory, relative to the sync root
GD_DIR_NAME = ".gd"
INDICES_DIR_NAME = "indices"

# Remote settings
MAX_RETRIES = 3
RETRY_BACKOFF_FACTOR = 2  # For exponential backoff

# Threading settings
MAX_THREADS = 4  # For parallel remote operations
TRACKER_POLL_INTERVAL = 0.1  # Seconds between cancellation checks

# Checksum settings
CHECKSUM_ALGORITHM = "md5"  # Alternative: "sha256"

# Quota settings
QUOTA_ALMOST_EXCEEDED_RATIO = 0.9  # Projected usage / limit

# Upsert field mask (0 compares every field)
DEFAULT_TYPE_MASK = 0
