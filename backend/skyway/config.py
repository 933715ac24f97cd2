import os
from dataclasses import dataclass, field
from typing import Dict, List

from dotenv import load_dotenv

from .models import RoutingPreference

# Read settings from a local .env when one exists, e.g.
# GRAPH_PREFIX=data/graphs/umn
# MAPBOX_API_KEY=pk.xxx
load_dotenv()

OUTDOOR_PENALTY_BY_PREFERENCE: Dict[RoutingPreference, float] = {
    RoutingPreference.INDOOR: 2.0,    # strong tunnel preference
    RoutingPreference.BALANCED: 1.5,  # moderate tunnel preference
    RoutingPreference.FASTEST: 1.0,   # pure distance
}


@dataclass(frozen=True)
class RoutingConfig:
    # Composer thresholds
    min_direct_walk_m: float = 100.0        # skip the tunnel if a direct walk is shorter
    inside_building_m: float = 25.0         # user counts as inside a building within this radius
    indoor_walking_speed_mps: float = 1.4   # indoor graph has no timing of its own

    # Exit selection (disconnected targets)
    max_exit_radius_km: float = 0.5
    tunnel_estimate_factor: float = 1.4     # tunnels run ~1.4x the straight line
    outdoor_penalty: Dict[RoutingPreference, float] = field(
        default_factory=lambda: dict(OUTDOOR_PENALTY_BY_PREFERENCE)
    )
    default_preference: RoutingPreference = RoutingPreference.BALANCED

    # Start node selection
    forward_leeway_factor: float = 1.1
    max_start_nodes: int = 1
    direction_angle_weight: float = 1.0
    target_penalty_multiplier: float = 1.15

    # Candidate resolution
    max_candidate_hops: int = 400

    # Indoor turn instructions
    forward_angle_deg: float = 20.0

    def penalty_for(self, preference: RoutingPreference) -> float:
        return self.outdoor_penalty[RoutingPreference(preference)]


DEFAULT_CONFIG = RoutingConfig()


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    graph_prefix: str = "data/graphs/campus"
    mapbox_api_key: str = ""
    mapbox_base_url: str = "https://api.mapbox.com/directions/v5/mapbox"
    directions_timeout_s: float = 5.0
    visit_throttle_s: float = 120.0
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            graph_prefix=os.getenv("GRAPH_PREFIX", cls.graph_prefix),
            mapbox_api_key=os.getenv("MAPBOX_API_KEY", ""),
            mapbox_base_url=os.getenv("MAPBOX_BASE_URL", cls.mapbox_base_url),
            directions_timeout_s=_float_env("DIRECTIONS_TIMEOUT_SECONDS", cls.directions_timeout_s),
            visit_throttle_s=_float_env("VISIT_THROTTLE_SECONDS", cls.visit_throttle_s),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", cls.port)),
        )
