"""
Retry queue job handlers, keyed by QueueItem.job_type.

  score_prospect   → ScoutScore for one prospect payload (CRM re-scoring, webhooks)
  hot_lead_digest  → Slack digest of hot leads from recently completed scans

Handlers take the item payload and return a JSON-serialisable result; raising
marks the attempt failed.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from scoutscan.errors import ValidationError
from scoutscan.extraction.signals import analyze_snippet
from scoutscan.scoring.base import InteractionEvent, Prospect
from scoutscan.scoring.engine import ScoutScoreEngine
from scoutscan.services.notifications import notify_hot_lead_digest
from scoutscan.services.scan_store import ScanStore

logger = logging.getLogger('services.queue_handlers')


def prospect_from_payload(payload: Dict[str, Any]) -> Prospect:
    """
    Build a Prospect from a JSON payload:

        {name, snippet?, industry?, last_cta?, signals?,
         events?: [{kind, timestamp (ISO 8601), text?, from_prospect?}]}

    Signals are derived from the snippet when not supplied.
    """
    name = payload.get('name')
    if name is not None and not isinstance(name, str):
        raise ValidationError("name must be a string")
    name = (name or '').strip()
    if not name:
        raise ValidationError("name is required")

    snippet = payload.get('snippet') or ''
    if not isinstance(snippet, str):
        raise ValidationError("snippet must be a string")

    raw_events = payload.get('events') or []
    if not isinstance(raw_events, list):
        raise ValidationError("events must be a list")

    events = []
    for raw in raw_events:
        if not isinstance(raw, dict):
            raise ValidationError(f"Each event must be an object, got {raw!r}")
        events.append(InteractionEvent(
            kind=str(raw.get('kind') or 'message'),
            timestamp=_parse_timestamp(raw),
            text=str(raw.get('text') or ''),
            from_prospect=bool(raw.get('from_prospect', True)),
        ))

    signals = payload.get('signals')
    if signals is not None and not isinstance(signals, dict):
        raise ValidationError("signals must be an object")

    text = ' '.join([snippet, *[e.text for e in events if e.from_prospect]])
    return Prospect(
        name=name,
        snippet=snippet,
        industry=optional_str(payload, 'industry'),
        signals=signals or analyze_snippet(text),
        events=events,
        last_cta=optional_str(payload, 'last_cta'),
    )


def _parse_timestamp(raw) -> datetime:
    """ISO 8601, 'Z' accepted; timezone-less values are taken as UTC."""
    try:
        timestamp = datetime.fromisoformat(str(raw['timestamp']).replace('Z', '+00:00'))
    except (KeyError, ValueError) as e:
        raise ValidationError(f"Invalid event timestamp: {raw!r}") from e
    return timestamp if timestamp.tzinfo else timestamp.replace(tzinfo=timezone.utc)


def make_handlers(session_factory, engine: ScoutScoreEngine = None):
    store = ScanStore(session_factory)

    def score_prospect(payload):
        prospect = prospect_from_payload(payload)
        active_industry = optional_str(payload, 'active_industry')
        score = (engine or ScoutScoreEngine()).score(prospect, active_industry=active_industry)
        return score.to_dict(debug=bool(payload.get('debug')))

    def hot_lead_digest(payload):
        since = datetime.now(timezone.utc) - timedelta(hours=int(payload.get('since_hours', 24)))
        prospects, scan_count = store.hot_prospects(since=since, limit=int(payload.get('limit', 10)))
        sent = notify_hot_lead_digest(prospects, scan_count)
        if not sent:
            logger.info("SLACK_WEBHOOK_URL not set, hot lead digest skipped")
        return {'sent': sent, 'hot_leads': len(prospects), 'scans': scan_count}

    return {
        'score_prospect': score_prospect,
        'hot_lead_digest': hot_lead_digest,
    }


def optional_str(payload, key):
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value or None
