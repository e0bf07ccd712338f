"""
Schema Analyzer — detects what each column means for a game analytics dataset.
Name patterns first, then a fallback read of the sampled values.
"""
import logging
import re
from typing import Any

from dateutil import parser as dateparser

from core.data_quality import is_null
from models.schema import ColumnInfo, ColumnMeaning, SchemaInfo

logger = logging.getLogger(__name__)

SCHEMA_SAMPLE_ROWS = 10
PATTERN_CONFIDENCE = 0.85


def _compile(*patterns: str) -> list[re.Pattern]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


# Ordered: the first semantic type with a matching pattern wins.
COLUMN_PATTERNS: dict[str, list[re.Pattern]] = {
    # User identification
    "user_id": _compile(r"user.*id", r"player.*id", r"uid", r"^id$", r"^userId$"),
    "session_id": _compile(r"session.*id", r"^sid$", r"match.*id"),
    "event_name": _compile(r"event.*name", r"event.*type", r"action", r"^eventName$"),
    "timestamp": _compile(r"timestamp", r"^date$", r"^time$", r"created.*at", r"^ts$", r"eventTime", r"install.*date"),

    # Monetization
    "revenue": _compile(r"revenue", r"income", r"earnings", r"^rev$", r"iap.*revenue"),
    "currency": _compile(r"currency", r"^cur$", r"gold", r"gems", r"coins", r"gemsSpent", r"goldEarned"),
    "price": _compile(r"price", r"amount", r"cost", r"price.*usd"),
    "quantity": _compile(r"quantity", r"^count$", r"^qty$"),

    # Progression
    "level": _compile(r"^level$", r"^lvl$", r"player.*level", r"upgrade.*level"),
    "score": _compile(r"score", r"points"),
    "xp": _compile(r"^xp$", r"experience", r"^exp$"),
    "rank": _compile(r"^rank$", r"tier", r"league"),

    # Demographics
    "country": _compile(r"^country$", r"^region$", r"geo"),
    "platform": _compile(r"platform", r"^os$", r"device.*type"),
    "device": _compile(r"device", r"model"),
    "version": _compile(r"version", r"^ver$", r"app.*version"),

    # Retention & cohort
    "retention_day": _compile(r"retention", r"^d\d+$", r"retention_d\d+"),
    "cohort": _compile(r"cohort"),
    "segment": _compile(r"segment", r"group", r"bucket"),

    # Aggregate metrics
    "dau": _compile(r"^dau$", r"daily.*active"),
    "mau": _compile(r"^mau$", r"monthly.*active"),
    "arpu": _compile(r"^arpu$", r"revenue.*per.*user"),
    "ltv": _compile(r"^ltv$", r"lifetime.*value"),

    # Items
    "item_id": _compile(r"item.*id", r"product.*id", r"sku", r"transaction.*id"),
    "item_name": _compile(r"item.*name", r"product.*name"),
    "category": _compile(r"category", r"^type$", r"^mode$", r"upgradeType"),

    # Funnel
    "funnel_step": _compile(r"step", r"stage", r"funnel"),
    "conversion": _compile(r"conversion", r"converted"),

    # Errors
    "error_type": _compile(r"error.*type", r"error.*code"),
    "error_message": _compile(r"error.*message", r"error.*msg", r"exception"),

    # Puzzle / match-3
    "moves": _compile(r"moves", r"attempts", r"moves.*left"),
    "booster": _compile(r"booster", r"powerup", r"helper", r"boosters.*used"),
    "lives": _compile(r"lives", r"hearts", r"energy"),

    # Idle
    "prestige": _compile(r"prestige", r"rebirth", r"ascend"),
    "offline_reward": _compile(r"offline", r"idle", r"away", r"offlineMinutes"),
    "upgrade": _compile(r"upgrade", r"enhance", r"improve"),

    # Gacha
    "rarity": _compile(r"rarity", r"^ssr$", r"^sr$", r"^r$", r"legendary", r"epic", r"rare"),
    "banner": _compile(r"banner", r"summon", r"bannerName"),
    "pull_type": _compile(r"pull", r"gacha", r"pullType"),

    # Battle royale
    "kills": _compile(r"kills", r"eliminations", r"frags"),
    "placement": _compile(r"placement", r"position", r"standing"),
    "damage": _compile(r"damage", r"dmg"),
    "survival_time": _compile(r"survival", r"alive", r"survivalTime"),

    # Ad monetization
    "ad_impression": _compile(r"ad.*impression", r"impression.*count", r"ads.*shown"),
    "ad_revenue": _compile(r"ad.*revenue", r"ad.*earnings", r"ad_revenue_usd"),
    "ad_network": _compile(r"ad.*network", r"network.*name", r"admob", r"unity.*ads", r"applovin"),
    "ad_type": _compile(r"ad.*type", r"ad.*format", r"interstitial", r"rewarded", r"banner"),
    "ecpm": _compile(r"ecpm", r"cpm", r"ad_ecpm"),
    "ad_watched": _compile(r"ad.*watched", r"watched.*full", r"ad.*completed"),

    # IAP / purchase tracking
    "iap_revenue": _compile(r"iap.*revenue", r"purchase.*revenue", r"iap_revenue_usd"),
    "purchase_amount": _compile(r"purchase.*amount", r"transaction.*amount", r"spend"),
    "product_id": _compile(r"product.*id", r"bundle.*id", r"pack.*id", r"offer.*id"),
    "offer_id": _compile(r"offer.*id", r"promo.*id", r"deal.*id"),
    "offer_shown": _compile(r"offer.*shown", r"promo.*shown", r"offer.*displayed"),

    # Engagement
    "session_duration": _compile(r"session.*duration", r"session.*length", r"time.*spent", r"play.*time"),
    "session_count": _compile(r"session.*count", r"session.*number", r"sessions.*total"),
    "rounds_played": _compile(r"rounds.*played", r"games.*played", r"matches.*played", r"rounds.*this.*session"),
    "days_since_install": _compile(r"days.*since.*install", r"install.*day", r"player.*age", r"account.*age"),

    # Premium
    "vip_level": _compile(r"vip.*level", r"vip.*tier", r"premium.*level"),
    "battle_pass_level": _compile(r"battle.*pass", r"pass.*level", r"season.*pass"),
    "premium_currency": _compile(r"premium.*currency", r"premium.*gems", r"paid.*currency"),

    # Gacha, extended
    "pity_count": _compile(r"pity", r"pity.*count", r"guaranteed"),

    # Hyper-casual
    "high_score": _compile(r"high.*score", r"best.*score", r"top.*score"),
    "is_organic": _compile(r"is.*organic", r"organic.*user", r"acquisition.*type"),
    "acquisition_source": _compile(r"acquisition.*source", r"utm.*source", r"install.*source", r"campaign"),
}

# (semantic types that unlock them, metrics)
METRIC_SUGGESTIONS: list[tuple[set[str], list[str]]] = [
    ({"revenue", "iap_revenue"}, ["Total Revenue", "ARPU", "ARPPU", "Daily Revenue"]),
    ({"user_id"}, ["DAU", "MAU", "New Users"]),
    ({"session_id"}, ["Sessions", "Avg Session Length"]),
    ({"retention_day"}, ["Day 1 Retention", "Day 7 Retention"]),
    ({"level"}, ["Level Distribution", "Progression Speed"]),
    ({"funnel_step"}, ["Funnel Conversion", "Drop-off Rate"]),
    ({"error_type"}, ["Error Rate", "Crash-Free Users"]),
    ({"ad_impression", "ad_revenue", "ad_type"}, ["Ad Revenue", "eCPM by Network", "Ads per Session", "Ad Fill Rate"]),
    ({"iap_revenue", "purchase_amount"}, ["Conversion Rate", "Paying Users %", "Avg Purchase Value"]),
    ({"offer_id", "offer_shown"}, ["Offer Conversion", "Best Performing Offers"]),
    ({"session_duration", "rounds_played"}, ["Avg Session Duration", "Sessions per User", "Engagement Score"]),
    ({"days_since_install"}, ["Day N Retention", "Cohort LTV", "Time to First Purchase"]),
    ({"vip_level"}, ["VIP Distribution", "VIP Revenue Share"]),
    ({"battle_pass_level"}, ["Pass Progression", "Pass Completion Rate"]),
    ({"pity_count", "banner"}, ["Banner Performance", "Pull Distribution", "SSR Rate"]),
    ({"kills", "placement"}, ["K/D Ratio", "Win Rate", "Avg Placement"]),
    ({"high_score"}, ["Score Distribution", "High Score Trend"]),
    ({"is_organic", "acquisition_source"}, ["Organic vs Paid", "Source ROAS", "CAC by Channel"]),
]

DEFAULT_METRICS = ["Row Count", "Unique Values"]


class SchemaAnalyzer:
    def analyze(self, schema: SchemaInfo) -> list[ColumnMeaning]:
        return [self.analyze_column(col) for col in schema.columns]

    def suggested_metrics(self, meanings: list[ColumnMeaning]) -> list[str]:
        types = {m.semantic_type for m in meanings}
        metrics: list[str] = []
        for triggers, names in METRIC_SUGGESTIONS:
            if types & triggers:
                metrics.extend(names)
        return metrics or list(DEFAULT_METRICS)

    def analyze_column(self, col: ColumnInfo) -> ColumnMeaning:
        for semantic, patterns in COLUMN_PATTERNS.items():
            if any(p.search(col.name) for p in patterns):
                return ColumnMeaning(
                    column=col.name,
                    detected_type=col.type,
                    semantic_type=semantic,
                    confidence=PATTERN_CONFIDENCE,
                )
        return self._infer_from_values(col)

    def _infer_from_values(self, col: ColumnInfo) -> ColumnMeaning:
        samples = col.sample_values

        if col.type == "date":
            return ColumnMeaning(column=col.name, detected_type=col.type, semantic_type="timestamp", confidence=0.7)

        if col.type == "number":
            has_decimals = any(
                isinstance(v, float) and not v.is_integer() for v in samples
            )
            if has_decimals and len(col.name) <= 3:
                return ColumnMeaning(column=col.name, detected_type=col.type, semantic_type="price", confidence=0.5)

        if col.type == "string":
            if all(isinstance(v, str) and len(v) == 2 for v in samples):
                return ColumnMeaning(column=col.name, detected_type=col.type, semantic_type="country", confidence=0.6)

        return ColumnMeaning(column=col.name, detected_type=col.type, semantic_type="unknown", confidence=0.0)


schema_analyzer = SchemaAnalyzer()


# ── Schema extraction from parsed rows ───────────────────────────────────────

def _looks_like_date(value: str) -> bool:
    if "-" not in value:
        return False
    try:
        dateparser.parse(value)
    except (ValueError, OverflowError):
        return False
    return True


def _info_type(samples: list[Any]) -> str:
    non_null = [v for v in samples if v is not None]
    if not non_null:
        return "unknown"
    first = non_null[0]
    if isinstance(first, bool):
        return "boolean"
    if isinstance(first, (int, float)):
        return "number"
    if isinstance(first, str):
        return "date" if _looks_like_date(first) else "string"
    return "unknown"


def build_schema_info(rows: list[dict[str, Any]]) -> SchemaInfo:
    """Summarise columns from the first rows of a parsed upload."""
    if not rows:
        return SchemaInfo(columns=[], row_count=0, sample_data=[])

    head = rows[:SCHEMA_SAMPLE_ROWS]
    columns = []
    for name in rows[0].keys():
        samples = [row.get(name) for row in head]
        columns.append(ColumnInfo(
            name=name,
            type=_info_type(samples),
            nullable=any(is_null(v) for v in samples),
            sample_values=samples,
        ))
    return SchemaInfo(columns=columns, row_count=len(rows), sample_data=head)
