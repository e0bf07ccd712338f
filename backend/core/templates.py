"""
Engine templates — pre-built column mappings for common game analytics exports.
"""
import logging
from typing import Optional

from models.schema import ColumnTemplate, EngineTemplate, TemplateMatch

logger = logging.getLogger(__name__)

MIN_TEMPLATE_SCORE = 3   # at least one required column
REQUIRED_WEIGHT = 3
OPTIONAL_WEIGHT = 1


def _col(name: str, aliases: list[str], semantic_type: str, required: bool = False) -> ColumnTemplate:
    return ColumnTemplate(name=name, aliases=aliases, semantic_type=semantic_type, required=required)


UNITY_ANALYTICS = EngineTemplate(
    id="unity-analytics",
    name="Unity Analytics",
    description="Standard Unity Analytics event export",
    engine="Unity",
    columns=[
        _col("user_id", ["userId", "playerId", "player_id"], "user_id", True),
        _col("session_id", ["sessionId", "session"], "session_id"),
        _col("event_name", ["eventName", "event", "name"], "event_name", True),
        _col("timestamp", ["ts", "time", "datetime", "event_time"], "timestamp", True),
        _col("platform", ["os", "device_platform"], "platform"),
        _col("app_version", ["version", "appVersion", "build"], "version"),
        _col("country", ["geo_country", "location"], "country"),
        _col("device_model", ["deviceModel", "model"], "device"),
    ],
    event_types=[
        "app_start", "app_stop", "session_start", "session_end",
        "level_start", "level_complete", "level_fail",
        "purchase", "ad_impression", "tutorial_complete",
    ],
    sample_file_name="unity_analytics_export.csv",
)

FIREBASE_ANALYTICS = EngineTemplate(
    id="firebase-analytics",
    name="Firebase Analytics",
    description="Firebase/Google Analytics for Games export",
    engine="Firebase",
    columns=[
        _col("user_pseudo_id", ["user_id", "userId"], "user_id", True),
        _col("event_name", ["eventName"], "event_name", True),
        _col("event_timestamp", ["timestamp", "event_time"], "timestamp", True),
        _col("user_first_touch_timestamp", ["first_open_time"], "install_date"),
        _col("platform", ["device.category"], "platform"),
        _col("geo.country", ["country", "geo_country"], "country"),
        _col("app_info.version", ["version", "app_version"], "version"),
        _col("device.mobile_brand_name", ["device_brand"], "device"),
        _col("event_value_in_usd", ["value", "revenue"], "revenue"),
    ],
    event_types=[
        "first_open", "session_start", "screen_view",
        "level_start", "level_end", "level_up",
        "spend_virtual_currency", "earn_virtual_currency",
        "in_app_purchase", "ad_impression",
    ],
    sample_file_name="firebase_export.json",
)

GAME_ANALYTICS = EngineTemplate(
    id="gameanalytics",
    name="GameAnalytics",
    description="GameAnalytics event export",
    engine="GameAnalytics",
    columns=[
        _col("user_id", ["userId"], "user_id", True),
        _col("session_id", ["sessionId"], "session_id"),
        _col("event", ["event_type", "category"], "event_name", True),
        _col("ts", ["timestamp", "client_ts"], "timestamp", True),
        _col("platform", ["os"], "platform"),
        _col("build", ["version"], "version"),
        _col("country_code", ["country"], "country"),
        _col("manufacturer", ["device"], "device"),
        _col("amount", ["value", "revenue"], "revenue"),
    ],
    event_types=["user", "session_end", "business", "resource", "progression", "design", "error"],
)

PLAYFAB = EngineTemplate(
    id="playfab",
    name="PlayFab",
    description="PlayFab PlayStream event export",
    engine="PlayFab",
    columns=[
        _col("PlayerId", ["player_id", "EntityId"], "user_id", True),
        _col("EventName", ["event_name", "Name"], "event_name", True),
        _col("Timestamp", ["EventTimestamp", "ts"], "timestamp", True),
        _col("TitleId", ["title_id"], "game_id"),
        _col("Platform", ["DeviceType"], "platform"),
        _col("Location.CountryCode", ["country"], "country"),
    ],
    event_types=[
        "player_logged_in", "player_created", "player_statistic_changed",
        "player_virtual_currency_balance_changed", "player_inventory_item_added",
        "player_real_money_purchase", "player_started_session",
    ],
)

GODOT = EngineTemplate(
    id="godot",
    name="Godot Custom Analytics",
    description="Common patterns for Godot game analytics",
    engine="Godot",
    columns=[
        _col("player_id", ["user_id", "id"], "user_id", True),
        _col("event", ["event_type", "type"], "event_name", True),
        _col("timestamp", ["time", "ts"], "timestamp", True),
        _col("level", ["current_level", "stage"], "level"),
        _col("score", ["points"], "score"),
        _col("session_time", ["playtime", "duration"], "session_duration"),
    ],
    event_types=["level_start", "level_complete", "game_over", "purchase", "achievement"],
)

MOBILE_GENERIC = EngineTemplate(
    id="mobile-generic",
    name="Generic Mobile Game",
    description="Common patterns for mobile game analytics",
    engine="Generic",
    columns=[
        _col("user_id", ["player_id", "userId", "playerId", "id"], "user_id", True),
        _col("event", ["event_name", "event_type", "action"], "event_name", True),
        _col("timestamp", ["time", "ts", "datetime", "date"], "timestamp", True),
        _col("session_id", ["sessionId", "session"], "session_id"),
        _col("level", ["current_level", "stage", "wave"], "level"),
        _col("score", ["points", "xp"], "score"),
        _col("revenue", ["amount", "price", "value", "usd"], "revenue"),
        _col("currency", ["coins", "gems", "gold"], "currency"),
        _col("platform", ["os", "device_os"], "platform"),
        _col("country", ["geo", "region", "locale"], "country"),
    ],
    event_types=[
        "session_start", "session_end",
        "level_start", "level_complete", "level_fail",
        "purchase", "ad_view", "tutorial_step",
    ],
)

ENGINE_TEMPLATES: list[EngineTemplate] = [
    UNITY_ANALYTICS,
    FIREBASE_ANALYTICS,
    GAME_ANALYTICS,
    PLAYFAB,
    GODOT,
    MOBILE_GENERIC,
]


def list_templates() -> list[EngineTemplate]:
    return list(ENGINE_TEMPLATES)


def get_template(template_id: str) -> Optional[EngineTemplate]:
    return next((t for t in ENGINE_TEMPLATES if t.id == template_id), None)


def _names(col: ColumnTemplate) -> list[str]:
    return [n.lower() for n in (col.name, *col.aliases)]


def score_template(columns: list[str], template: EngineTemplate) -> int:
    present = {c.lower() for c in columns}
    score = 0
    for col in template.columns:
        if any(n in present for n in _names(col)):
            score += REQUIRED_WEIGHT if col.required else OPTIONAL_WEIGHT
    return score


def detect_template(columns: list[str]) -> Optional[EngineTemplate]:
    """Best-scoring template for the given headers, or None below the minimum score."""
    best: Optional[EngineTemplate] = None
    best_score = 0
    for template in ENGINE_TEMPLATES:
        score = score_template(columns, template)
        if score > best_score:
            best, best_score = template, score

    if best_score < MIN_TEMPLATE_SCORE:
        return None
    logger.debug("Detected template %s (score %d)", best.id, best_score)
    return best


def apply_template(columns: list[str], template: EngineTemplate) -> dict[str, str]:
    """Map upload columns to the template's semantic types (first matching column wins)."""
    mappings: dict[str, str] = {}
    lowered = [c.lower() for c in columns]
    for col in template.columns:
        names = _names(col)
        for original, low in zip(columns, lowered):
            if low in names:
                mappings[original] = col.semantic_type
                break
    return mappings


def match_template(columns: list[str]) -> TemplateMatch:
    template = detect_template(columns)
    if template is None:
        return TemplateMatch()
    return TemplateMatch(template=template, mappings=apply_template(columns, template))
