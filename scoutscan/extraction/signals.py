"""
Keyword signal analysis for a prospect snippet.

Produces the metadata fields stored on every ProcessedItem: pain points,
interests, life events, sentiment and opportunity type. Tables cover English and
Filipino (Taglish) phrasing because that is what the pasted chat logs contain.
"""
import re
from typing import Dict, List, Any

PAIN_POINT_KEYWORDS = {
    'financial_stress': ['walang pera', 'broke', 'no money', 'kulang ang sahod', 'bills', 'gastos'],
    'debt_burden': ['utang', 'debt', 'loan payments'],
    'job_insecurity': ['laid off', 'lost my job', 'nawalan ng trabaho', 'contract ended'],
    'time_poverty': ['no time', 'walang time', 'overtime', 'pagod', 'burnout', 'stressed'],
    'health_concern': ['sick', 'hospital', 'may sakit', 'checkup'],
}

INTEREST_KEYWORDS = {
    'business': ['business', 'negosyo', 'entrepreneur', 'sideline', 'side hustle'],
    'extra_income': ['extra income', 'dagdag kita', 'passive income', 'part time', 'part-time'],
    'family': ['family', 'pamilya', 'kids', 'anak'],
    'health': ['health', 'fitness', 'wellness', 'supplement'],
    'pricing': ['price', 'pricing', 'how much', 'magkano', 'cost'],
    'products': ['product', 'starter kit', 'package', 'catalog'],
    'travel': ['travel', 'trip', 'vacation', 'bakasyon'],
}

LIFE_EVENT_PATTERNS = {
    'new_baby': re.compile(r'\b(baby|buntis|pregnant)\b', re.I),
    'wedding': re.compile(r'\b(kasal|wedding|married|engaged)\b', re.I),
    'job_change': re.compile(r'\b(new job|hired|promoted|resigned)\b', re.I),
    'relocation': re.compile(r'\b(moved|moving|lumipat|relocat\w*)\b', re.I),
    'graduation': re.compile(r'\b(graduated|graduation|grad)\b', re.I),
}

POSITIVE_WORDS = ['happy', 'excited', 'interested', 'love', 'great', 'salamat', 'thank', 'gusto ko', 'nice']
NEGATIVE_WORDS = ['sad', 'stress', 'angry', 'scam', 'hate', 'tired', 'pagod', 'problem']

BUSINESS_KEYWORDS = ['business', 'income', 'opportunity', 'investment', 'earn', 'profit', 'financial']
PRODUCT_KEYWORDS = ['product', 'starter kit', 'supplement', 'order', 'buy', 'price', 'pricing']


def analyze_snippet(text: str) -> Dict[str, Any]:
    """Classify a snippet. Always returns every key, lists possibly empty."""
    lower = (text or '').lower()

    pain_points = _match_table(lower, PAIN_POINT_KEYWORDS)
    interests = _match_table(lower, INTEREST_KEYWORDS)
    life_events = [event for event, pattern in LIFE_EVENT_PATTERNS.items() if pattern.search(text or '')]

    return {
        'pain_points': pain_points,
        'interests': interests,
        'life_events': life_events,
        'sentiment': detect_sentiment(lower),
        'opportunity_type': detect_opportunity_type(lower),
        'business_keyword_hits': sum(1 for kw in BUSINESS_KEYWORDS if kw in lower),
    }


def detect_sentiment(lower: str) -> str:
    pos = sum(1 for w in POSITIVE_WORDS if w in lower)
    neg = sum(1 for w in NEGATIVE_WORDS if w in lower)
    if pos > neg:
        return 'positive'
    if neg > pos:
        return 'negative'
    return 'neutral'


def detect_opportunity_type(lower: str) -> str:
    """business = income/opportunity talk, product = buying talk, both otherwise."""
    business = any(kw in lower for kw in BUSINESS_KEYWORDS) or 'sideline' in lower
    product = any(kw in lower for kw in PRODUCT_KEYWORDS)
    if business and not product:
        return 'business'
    if product and not business:
        return 'product'
    return 'both'


def merge_signals(base: Dict[str, Any], enriched: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay LLM-enriched fields on keyword signals, keeping list fields unique and ordered."""
    merged = dict(base)
    for key in ('pain_points', 'interests', 'life_events'):
        values = enriched.get(key)
        if isinstance(values, list):
            merged[key] = _unique([*base.get(key, []), *[str(v) for v in values]])
    if enriched.get('sentiment') in ('positive', 'neutral', 'negative'):
        merged['sentiment'] = enriched['sentiment']
    if enriched.get('opportunity_type') in ('business', 'product', 'both'):
        merged['opportunity_type'] = enriched['opportunity_type']
    return merged


def _match_table(lower: str, table: Dict[str, List[str]]) -> List[str]:
    return [label for label, keywords in table.items() if any(kw in lower for kw in keywords)]


def _unique(values):
    seen = set()
    out = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out
