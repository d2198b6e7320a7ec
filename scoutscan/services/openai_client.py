"""
OpenAI API helpers — prospect snippet enrichment, with retry logic.
"""
import json
import logging
import time
from typing import Dict, Any, Optional

from scoutscan.config import OPENAI_MODEL
from scoutscan.extensions import get_openai_client

logger = logging.getLogger('services.openai')

SNIPPET_PROMPT = """Analyze this message from a sales prospect. The text may mix English and Filipino.

PROSPECT: {name}
MESSAGE: {snippet}

Identify:
1. PAIN POINTS: financial stress, debt, job insecurity, lack of time, health concerns
2. INTERESTS: business, extra income, family, health, pricing, products, travel
3. LIFE EVENTS: new baby, wedding, job change, relocation, graduation
4. SENTIMENT: positive, neutral or negative
5. OPPORTUNITY TYPE: business (income opportunity), product (buying), or both

Respond ONLY with JSON:
{{
  "pain_points": ["snake_case labels"],
  "interests": ["snake_case labels"],
  "life_events": ["snake_case labels"],
  "sentiment": "positive|neutral|negative",
  "opportunity_type": "business|product|both"
}}"""


def is_enabled() -> bool:
    return get_openai_client() is not None


def analyze_prospect_snippet(name: str, snippet: str, max_retries: int = 3) -> Optional[Dict[str, Any]]:
    """
    Enrich one snippet with a JSON chat completion.

    Returns None when OpenAI is not configured. Rate limits are retried with
    linear backoff; any other error propagates to the caller.
    """
    client = get_openai_client()
    if client is None or not snippet:
        return None

    for attempt in range(max_retries):
        try:
            response = client.chat.completions.create(
                model=OPENAI_MODEL,
                messages=[{
                    "role": "user",
                    "content": SNIPPET_PROMPT.format(name=name, snippet=snippet[:1000]),
                }],
                response_format={"type": "json_object"},
                temperature=0,
            )
            result = json.loads(response.choices[0].message.content)
            logger.debug("Snippet enrichment for %s: %s", name, result)
            return result
        except Exception as e:
            error_str = str(e).lower()
            is_rate_limit = 'rate_limit' in error_str or '429' in error_str or 'rate limit' in error_str
            if is_rate_limit and attempt < max_retries - 1:
                wait_time = (attempt + 1) * 5
                logger.warning("OpenAI rate limit hit, waiting %ds (attempt %d/%d)",
                               wait_time, attempt + 1, max_retries)
                time.sleep(wait_time)
            else:
                if attempt == max_retries - 1:
                    logger.error("Snippet enrichment failed after %d attempts: %s", max_retries, e)
                raise
