"""
LangChain prompt templates for column analysis.
"""
from langchain_core.prompts import PromptTemplate

# ── Column mapping ────────────────────────────────────────────────────────────

COLUMN_ANALYSIS_TEMPLATE = """\
You are a game analytics expert. Analyze these column headers and sample data
from a game analytics dataset and respond ONLY with valid JSON.

HEADERS: {headers}

SAMPLE DATA (first 3 rows):
{sample_rows}

Respond with this exact JSON structure:
{{
  "columns": [
    {{
      "original": "original_column_name",
      "canonical": "standardized_name",
      "type": "string|number|date|boolean|json",
      "role": "identifier|timestamp|metric|dimension|noise|unknown",
      "confidence": 0.95,
      "reasoning": "Brief explanation"
    }}
  ],
  "game_type": "puzzle|idle|battle_royale|match3_meta|gacha_rpg|other",
  "suggested_charts": ["retention_curve", "level_funnel"],
  "warnings": ["Any data quality issues"],
  "data_quality": 0.85
}}

CANONICAL NAMES to use:
- user_id, session_id (identifiers)
- timestamp, event_time (time)
- event_type, action (events)
- revenue, purchase_amount (money)
- level, stage, chapter (progression)
- country, region (geography)
- platform, os, device_model (device)
- app_version (version)

ROLES:
- identifier: unique IDs (user, session, device)
- timestamp: date/time columns
- metric: numbers to aggregate (revenue, score)
- dimension: categories to group by (country, level)
- noise: debug/internal data to filter
- unknown: unclear purpose
"""

column_analysis_prompt = PromptTemplate(
    input_variables=["headers", "sample_rows"],
    template=COLUMN_ANALYSIS_TEMPLATE,
)
