import os


def _csv(name: str, default: str = ""):
    return [s.strip() for s in os.getenv(name, default).split(",") if s.strip()]


# Directions provider (HERE Routing v8); empty key -> straight-line legs
HERE_API_KEY = os.getenv("HERE_API_KEY", "")
HERE_ROUTER_URL = os.getenv("HERE_ROUTER_URL", "https://router.hereapi.com/v8/routes")
HERE_TIMEOUT_S = float(os.getenv("HERE_TIMEOUT_S", "30"))

# Playback
DEFAULT_SPEED_MPS = float(os.getenv("DEFAULT_SPEED_MPS", "14.0"))  # ~50 km/h
MIN_STEP_DELAY_S = float(os.getenv("MIN_STEP_DELAY_S", "0.05"))
DENSIFY_SPACING_M = float(os.getenv("DENSIFY_SPACING_M", "10.0"))
DIRECT_CRUISE_SPEED_MPS = float(os.getenv("DIRECT_CRUISE_SPEED_MPS", "13.9"))

# Delivery targets (opaque ids handed to the sink)
DELIVERY_TARGETS = _csv("DELIVERY_TARGETS")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

CORS_ORIGINS = _csv("CORS_ORIGINS", "http://localhost:3000,https://localhost:3000")
