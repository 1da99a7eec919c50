# config.py
from typing import Dict, Any, FrozenSet
import os

# ====== Season config ======
SEASON_YEAR: int = int(os.environ.get("ADVISOR_SEASON", "2025"))
CURRENT_WEEK: int = int(os.environ.get("ADVISOR_WEEK", "14"))

# ====== Upstream endpoints ======
SLEEPER_API_BASE: str = "https://api.sleeper.app/v1"
SLEEPER_PROJECTIONS_BASE: str = "https://api.sleeper.com/projections/nfl"
ESPN_SCOREBOARD_URL: str = (
    "https://site.api.espn.com/apis/site/v2/sports/football/nfl/scoreboard"
)
HTTP_TIMEOUT: int = 15

# Projections are re-fetched at most every 30 minutes; the scoreboard every 5.
PROJECTION_CACHE_TTL_SECONDS: int = 30 * 60
SCHEDULE_CACHE_TTL_SECONDS: int = 5 * 60

# "csv" reads PROJECTIONS_CSV only, "sleeper" merges Sleeper rows with the CSV
# according to PROJECTION_FALLBACK_MODE ("fallback_to_csv", "zero", "exclude").
PROJECTION_SOURCE: str = os.environ.get("ADVISOR_PROJECTION_SOURCE", "sleeper")
PROJECTION_FALLBACK_MODE: str = os.environ.get(
    "ADVISOR_PROJECTION_FALLBACK", "fallback_to_csv"
)
PROJECTIONS_CSV: str = os.environ.get(
    "ADVISOR_PROJECTIONS_CSV",
    f"data/projections_{SEASON_YEAR}_week{CURRENT_WEEK:02d}.csv",
)

# ====== Recommendation thresholds ======
MIN_WAIVER_GAIN: float = 1.5
MAX_WAIVER_PER_POSITION: int = 3
MAX_WAIVER_PLAYERS: int = 8
MAX_WAIVER_ALTERNATIVES: int = 3
FA_PER_POSITION_CAP: int = 10

# Player names that should never be suggested as pickups (comma separated).
WAIVER_EXCLUDED_NAMES: FrozenSet[str] = frozenset(
    name.strip()
    for name in os.environ.get("ADVISOR_WAIVER_EXCLUDED_NAMES", "").split(",")
    if name.strip()
)


# ====== Leagues ======
# owner_id is the Sleeper user_id whose roster we optimise. username can be
# used instead; it is resolved through the Sleeper user endpoint.
LEAGUES: Dict[str, Dict[str, Any]] = {
    "home_league": {
        "platform": "sleeper",
        "league_id": os.environ.get("ADVISOR_LEAGUE_ID", "1048240370924761088"),
        "season_year": SEASON_YEAR,
        "username": os.environ.get("ADVISOR_SLEEPER_USERNAME", ""),
        "owner_id": os.environ.get("ADVISOR_SLEEPER_OWNER_ID", ""),
        "consider_waivers": True,
        "pickup_cap_remaining": 2,
        "require_later_start": False,
    },
}

DEFAULT_LEAGUE_KEY: str = "home_league"
