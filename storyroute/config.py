"""Configuration constants for the storyroute package."""

from enum import Enum
import os


class RouteMode(str, Enum):
    ROAD = "road"
    STRAIGHT = "straight"


class RoutingProfile(str, Enum):
    DRIVING = "driving"
    WALKING = "walking"
    CYCLING = "cycling"


class IconType(str, Enum):
    CAR = "car"
    WALKING = "walking"
    BIKE = "bike"
    PLANE = "plane"
    BUS = "bus"
    TRAIN = "train"
    MOTORCYCLE = "motorcycle"
    BOAT = "boat"
    TRUCK = "truck"
    HELICOPTER = "helicopter"
    CUSTOM = "custom"


# Geodesy
EARTH_RADIUS_KM = 6371.0

# Frame clock
FRAME_INTERVAL_S = 1 / 60

# Camera
CAMERA_THROTTLE_MS = 16
FOLLOW_ZOOM_THRESHOLD = 0.5
CAMERA_TRANSITION_MS = 800
CAMERA_TRANSITION_GUARD_MS = 900
FOLLOW_PAN_DURATION_S = 0.15

# Segment timing
SEQUENTIAL_CAMERA_MS = 1000
DEFAULT_SEGMENT_DURATION_MS = 5000

# Chains
CHAIN_LOCATION_TOLERANCE = 1e-4

# Route styling
DEFAULT_ROUTE_COLOR = "#666666"
DEFAULT_VISITED_COLOR = "#3b82f6"
DEFAULT_ROUTE_WIDTH = 4
DEFAULT_ICON_SIZE = (32, 32)
ROUTE_LINE_OPACITY = 0.6
ROUTE_LINE_DASH = "5, 5"
MARKER_Z_INDEX = 1000

# Routing backend
OSRM_BASE_URL = os.getenv("STORYROUTE_OSRM_URL", "https://router.project-osrm.org")
OSRM_TIMEOUT_S = 30.0
