"""
AdaptCache Configuration Constants
Centralized defaults for cache tuning, maintenance intervals and reporting
"""

# Maintenance intervals (in seconds)
DEFAULT_CHECK_PERIOD = 60
DEFAULT_ANALYSIS_INTERVAL = 30
DEFAULT_OPTIMIZATION_INTERVAL = 120
DEFAULT_PRELOAD_INTERVAL = 300
DEFAULT_HIT_RATE_CHECK_INTERVAL = 60

# Hit rate targets (percent)
DEFAULT_TARGET_HIT_RATE = 85
STRATEGY_HIT_RATE_THRESHOLD = 90
DISPLAY_HIT_RATE_FLOOR = 25

# Priority thresholds (0-100 scale)
DEFAULT_PRELOAD_THRESHOLD = 50
DEFAULT_EXPIRY_PRELOAD_THRESHOLD = 70
HIGH_PRIORITY_TIER = 80
MEDIUM_PRIORITY_TIER = 50
STALE_PATTERN_PRIORITY = 30
NEW_PATTERN_PRIORITY = 1           # until a second access gives it a score
IMPROVEMENT_PRELOAD_PRIORITY = 70
IMPROVEMENT_PRELOAD_LIMIT = 10
TTL_EXTENSION_MIN_FREQUENCY = 5
TTL_EXTENSION_MIN_PRIORITY = 60
TTL_EXTENSION_FACTOR = 1.5

# Access pattern retention
STALE_PATTERN_AGE = 24 * 3600  # 24 hours

# Adaptive TTL bounds
MAX_FREQUENCY_MULTIPLIER = 3.0
MAX_INTERVAL_MULTIPLIER = 2.0
INTERVAL_REFERENCE_SECONDS = 60.0

# Eviction
EVICTION_TRIGGER_RATIO = 0.8
EVICTION_BATCH_RATIO = 0.1

# Preloading and warmup
DEFAULT_PRELOAD_BATCH_SIZE = 5
DEFAULT_PRELOAD_QUEUE_SIZE = 1000
WARMUP_PATTERN_LIMIT = 30
WARMUP_SEED_FREQUENCY = 10
WARMUP_SEED_PRIORITY = 90
WARMUP_SEED_INTERVAL = 60.0

# Reporting
APPROX_ENTRY_SIZE_BYTES = 1024
TOP_PATTERNS_IN_REPORT = 10

# Logging configuration
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_LEVEL = 'WARNING'
