"""Central constants for BWLaunch (light-weight and local-use oriented).

Only put small, stable primitives here – avoid runtime/config dependent values.
"""

# Own package name, never listed among launchable apps
SELF_PACKAGE_NAME: str = "com.bwlaunch.launcher"

# Installed-app catalog freshness window (seconds)
APP_CATALOG_TTL_SECONDS: float = 30.0

# Weather readings stay valid for 30 minutes (e-ink friendly - fewer redraws)
WEATHER_CACHE_TTL_SECONDS: float = 30 * 60

# Dark mode schedule re-evaluation interval (seconds)
DARK_MODE_CHECK_INTERVAL_SECONDS: float = 60.0

# Favorites
DEFAULT_FAVORITE_COUNT: int = 5
MIN_FAVORITE_COUNT: int = 1
MAX_FAVORITE_COUNT: int = 10

# Text size bounds (sp)
DEFAULT_TEXT_SIZE: int = 18
MIN_TEXT_SIZE: int = 12
MAX_TEXT_SIZE: int = 48

# Default fixed dark window
DEFAULT_DARK_START: str = "20:00"
DEFAULT_DARK_END: str = "07:00"
