"""
ScoutScore rules — industry weights, personas, CTA catalogue, emotional signals.

Rules load from YAML (SCORING_CONFIG_PATH) with the hardcoded DEFAULT_RULES as
fallback, and are cached after the first load. Top-level YAML sections replace
the matching default section wholesale.

Every matching rule is a closed tagged condition, one of:

    {type: keyword, value: "extra income", weight: 15}   whole-word match
    {type: phrase,  value: "gusto ko ng extra income", weight: 25}   substring match
    {type: regex,   pattern: "\\bscam\\b", weight: 20}

Unknown condition types, unknown keys and malformed sections raise
ScoringConfigError at load time. Nothing is silently evaluated as False.
"""
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

import yaml

from scoutscan.errors import ScoringConfigError

logger = logging.getLogger('scoring.rules')

COMPONENTS = (
    'engagement',
    'business_interest',
    'pain_points',
    'life_events',
    'responsiveness',
    'leadership',
)

TEMPERATURES = ('cold', 'warm', 'hot')

NEUTRAL = 'neutral'
GENERIC = 'generic'


# ── Conditions (tagged variants) ─────────────────────────────────────────────

@dataclass(frozen=True)
class KeywordCondition:
    value: str
    weight: int = 15
    type: str = 'keyword'

    def matches(self, text: str) -> bool:
        return re.search(rf'(?<!\w){re.escape(self.value.lower())}(?!\w)', text) is not None


@dataclass(frozen=True)
class PhraseCondition:
    value: str
    weight: int = 25
    type: str = 'phrase'

    def matches(self, text: str) -> bool:
        return self.value.lower() in text


@dataclass(frozen=True)
class RegexCondition:
    pattern: str
    weight: int = 20
    type: str = 'regex'

    def matches(self, text: str) -> bool:
        return re.search(self.pattern, text, re.IGNORECASE) is not None


Condition = Union[KeywordCondition, PhraseCondition, RegexCondition]

_CONDITION_TYPES = {
    'keyword': (KeywordCondition, {'value'}, {'weight'}),
    'phrase': (PhraseCondition, {'value'}, {'weight'}),
    'regex': (RegexCondition, {'pattern'}, {'weight'}),
}


def parse_condition(raw, where: str = 'condition') -> Condition:
    """Validate one raw mapping into a Condition. Raises ScoringConfigError."""
    if not isinstance(raw, dict):
        raise ScoringConfigError(f"{where}: expected a mapping, got {type(raw).__name__}")

    kind = raw.get('type')
    if kind not in _CONDITION_TYPES:
        raise ScoringConfigError(f"{where}: unknown condition type {kind!r} "
                                 f"(expected one of {sorted(_CONDITION_TYPES)})")

    cls, required, optional = _CONDITION_TYPES[kind]
    keys = set(raw) - {'type'}
    unknown = keys - required - optional
    if unknown:
        raise ScoringConfigError(f"{where}: unknown key(s) {sorted(unknown)} for {kind} condition")
    missing = required - keys
    if missing:
        raise ScoringConfigError(f"{where}: missing key(s) {sorted(missing)} for {kind} condition")

    kwargs = {k: raw[k] for k in keys}
    for k in required:
        if not isinstance(kwargs[k], str) or not kwargs[k].strip():
            raise ScoringConfigError(f"{where}: '{k}' must be a non-empty string")
    if 'weight' in kwargs and not isinstance(kwargs['weight'], (int, float)):
        raise ScoringConfigError(f"{where}: 'weight' must be a number")
    if kind == 'regex':
        try:
            re.compile(kwargs['pattern'])
        except re.error as e:
            raise ScoringConfigError(f"{where}: invalid regex {kwargs['pattern']!r}: {e}") from e

    return cls(**kwargs)


def kw(*values, weight=15):
    """Shorthand for default tables: keyword condition dicts."""
    return [{'type': 'keyword', 'value': v, 'weight': weight} for v in values]


def ph(*values, weight=25):
    """Shorthand for default tables: phrase condition dicts."""
    return [{'type': 'phrase', 'value': v, 'weight': weight} for v in values]


# ── Typed rule records ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class Persona:
    id: str
    description: str
    notes: Tuple[str, ...]
    conditions: Tuple[Condition, ...]


@dataclass(frozen=True)
class CTA:
    id: str
    when: Tuple[str, ...]
    description: str


@dataclass(frozen=True)
class RiskFlag:
    id: str
    description: str
    conditions: Tuple[Condition, ...]


@dataclass
class ScoringRules:
    version: str
    industry_weights: Dict[str, Dict[str, float]]
    thresholds: Dict[str, float]
    decay: List[Tuple[float, float]]
    decay_floor: float
    default_ctas: Dict[str, str]
    personas: Dict[str, List[Persona]]
    ctas: Dict[str, List[CTA]]
    emotions: Dict[str, List[Condition]]
    emotion_min_score: int
    trust_positive: List[Condition]
    trust_negative: List[Condition]
    risk_flags: List[RiskFlag]
    composer_weights: Dict[str, float] = field(default_factory=dict)

    def weights_for(self, industry: Optional[str]) -> Dict[str, float]:
        return self.industry_weights.get(industry or NEUTRAL, self.industry_weights[NEUTRAL])

    def default_cta_for(self, industry: Optional[str]) -> str:
        return self.default_ctas.get(industry or GENERIC, self.default_ctas[GENERIC])

    def ctas_for(self, industry: Optional[str]) -> List[CTA]:
        return self.ctas.get(industry or GENERIC) or self.ctas[GENERIC]

    def personas_for(self, industry: Optional[str]) -> List[Persona]:
        return self.personas.get(industry or '', [])


# ── Default rules ────────────────────────────────────────────────────────────

DEFAULT_RULES = {
    'version': 'default',
    'industry_weights': {
        'neutral':     {'engagement': 0.25, 'business_interest': 0.20, 'pain_points': 0.20,
                        'life_events': 0.15, 'responsiveness': 0.10, 'leadership': 0.10},
        'mlm':         {'engagement': 0.20, 'business_interest': 0.25, 'pain_points': 0.15,
                        'life_events': 0.10, 'responsiveness': 0.10, 'leadership': 0.20},
        'insurance':   {'engagement': 0.20, 'business_interest': 0.10, 'pain_points': 0.20,
                        'life_events': 0.30, 'responsiveness': 0.15, 'leadership': 0.05},
        'real_estate': {'engagement': 0.20, 'business_interest': 0.20, 'pain_points': 0.15,
                        'life_events': 0.25, 'responsiveness': 0.15, 'leadership': 0.05},
        'ecommerce':   {'engagement': 0.30, 'business_interest': 0.10, 'pain_points': 0.15,
                        'life_events': 0.10, 'responsiveness': 0.30, 'leadership': 0.05},
        'coaching':    {'engagement': 0.20, 'business_interest': 0.20, 'pain_points': 0.25,
                        'life_events': 0.15, 'responsiveness': 0.15, 'leadership': 0.05},
    },
    'thresholds': {'hot': 70, 'warm': 50},
    # (max age in days, multiplier) — first matching row wins; older than all rows → decay_floor
    'decay': [[1, 1.0], [3, 0.9], [7, 0.7], [14, 0.5], [30, 0.3], [60, 0.15]],
    'decay_floor': 0.1,
    'default_ctas': {
        'generic': 'general_inquiry',
        'mlm': 'starter_kit_offer',
        'insurance': 'consultation_call',
        'real_estate': 'schedule_viewing',
        'ecommerce': 'add_to_cart',
        'coaching': 'discovery_call',
    },
    'personas': {
        'mlm': [
            {'id': 'aspiring_side_hustler',
             'description': 'Seeks additional income through flexible business opportunities',
             'notes': ['Highly motivated by income opportunity', 'Flexible time availability'],
             'conditions': kw('extra income', 'sideline', 'part time', 'part-time', 'side hustle',
                              'dagdag kita')
                           + ph('gusto ko ng extra income', 'may sideline ba')},
            {'id': 'health_first_income_second',
             'description': 'Interested primarily in products, potential business conversion',
             'notes': ['Product-focused initially', 'May convert to business opportunity'],
             'conditions': kw('health', 'wellness', 'product', 'supplement', 'kalusugan')
                           + ph('for health', 'wellness first')},
            {'id': 'burned_by_previous_mlm',
             'description': 'Has negative past experience, needs extra reassurance',
             'notes': ['High skepticism', 'Needs strong proof'],
             'conditions': kw('scam', 'waste', 'naloko', 'nawalan')
                           + ph('nagtry na ako', 'scam yan')},
            {'id': 'network_builder',
             'description': 'Focused on building and leading teams',
             'notes': ['Natural leader', 'Team-oriented'],
             'conditions': kw('team', 'recruit', 'leadership', 'network')
                           + ph('build team', 'gusto ko mag-recruit')},
        ],
        'insurance': [
            {'id': 'family_protector',
             'description': "Makes decisions to protect family and secure children's future",
             'notes': ['Family-focused decisions', 'Long-term planning'],
             'conditions': kw('family', 'kids', 'children', 'anak', 'pamilya', 'education')
                           + ph('para sa family', 'education plan')},
            {'id': 'ofw_supporter',
             'description': 'Overseas worker securing family back home',
             'notes': ['Regular income', 'Strong sense of responsibility'],
             'conditions': kw('ofw', 'overseas', 'abroad', 'remittance', 'padala')
                           + ph('working abroad')},
            {'id': 'skeptical_about_policies',
             'description': 'Skeptical about insurance policies, needs validation',
             'notes': ['High skepticism', 'Trust-building critical'],
             'conditions': kw('scam', 'legit', 'trust', 'proven')
                           + ph('legit ba', 'totoo ba')},
            {'id': 'health_conscious',
             'description': 'Focused on health and medical coverage',
             'notes': ['Risk-averse', 'Values protection'],
             'conditions': kw('hospital', 'medical', 'sickness', 'emergency')
                           + ph('health insurance', 'hospital coverage')},
        ],
        'real_estate': [
            {'id': 'first_time_homebuyer',
             'description': 'First-time homebuyer, needs guidance',
             'notes': ['Needs education', 'Price-sensitive'],
             'conditions': kw('first time', 'bahay', 'home') + ph('own house', 'first time buyer')},
            {'id': 'investor_flipper',
             'description': 'Real estate investor focused on returns',
             'notes': ['Numbers-focused', 'Quick decisions'],
             'conditions': kw('investment', 'roi', 'rent', 'flip') + ph('rental income')},
        ],
        'ecommerce': [
            {'id': 'bargain_hunter',
             'description': 'Price-conscious, seeks deals and discounts',
             'notes': ['Deal-seeker'],
             'conditions': kw('sale', 'discount', 'promo', 'cheap', 'mura') + ph('may discount ba')},
            {'id': 'fast_cod_buyer',
             'description': 'Prefers COD and fast delivery',
             'notes': ['Convenience-focused'],
             'conditions': kw('cod', 'delivery', 'bilis') + ph('cash on delivery')},
        ],
        'coaching': [
            {'id': 'career_changer',
             'description': 'Looking to change careers',
             'notes': ['Seeking change', 'Motivated'],
             'conditions': kw('career', 'transition', 'learn') + ph('career change', 'new career')},
            {'id': 'skill_enhancer',
             'description': 'Seeks to enhance existing skills',
             'notes': ['Growth-oriented'],
             'conditions': kw('improve', 'skills', 'growth') + ph('improve skills')},
        ],
    },
    'ctas': {
        'generic': [
            {'id': 'general_inquiry', 'when': ['cold', 'warm', 'hot'], 'description': 'General inquiry'},
            {'id': 'nurture_check_in', 'when': ['cold', 'warm'], 'description': 'Friendly check-in message'},
            {'id': 'book_call', 'when': ['warm', 'hot'], 'description': 'Book a short call'},
        ],
        'mlm': [
            {'id': 'educational_content', 'when': ['cold'], 'description': 'Share educational content first'},
            {'id': 'product_info', 'when': ['cold', 'warm'], 'description': 'Request product information'},
            {'id': 'testimonial_share', 'when': ['warm'], 'description': 'Share success stories and testimonials'},
            {'id': 'starter_kit_offer', 'when': ['warm', 'hot'], 'description': 'Offer starter kit to begin'},
            {'id': 'business_call', 'when': ['hot'], 'description': 'Schedule business opportunity call'},
        ],
        'insurance': [
            {'id': 'quote_request', 'when': ['cold', 'warm'], 'description': 'Request insurance quote'},
            {'id': 'consultation_call', 'when': ['warm', 'hot'], 'description': 'Schedule consultation call'},
            {'id': 'application_start', 'when': ['hot'], 'description': 'Start insurance application'},
        ],
        'real_estate': [
            {'id': 'send_listing', 'when': ['cold', 'warm'], 'description': 'Send property listings'},
            {'id': 'schedule_viewing', 'when': ['warm', 'hot'], 'description': 'Schedule property viewing'},
            {'id': 'reservation_invitation', 'when': ['hot'], 'description': 'Invite to reserve property'},
        ],
        'ecommerce': [
            {'id': 'product_catalog', 'when': ['cold', 'warm'], 'description': 'Share product catalog'},
            {'id': 'add_to_cart', 'when': ['warm', 'hot'], 'description': 'Add items to cart'},
            {'id': 'checkout_prompt', 'when': ['hot'], 'description': 'Prompt to complete checkout'},
        ],
        'coaching': [
            {'id': 'coaching_info', 'when': ['cold', 'warm'], 'description': 'Share program information'},
            {'id': 'discovery_call', 'when': ['warm', 'hot'], 'description': 'Schedule discovery call'},
            {'id': 'program_enrollment', 'when': ['hot'], 'description': 'Enroll in coaching program'},
        ],
    },
    'emotions': {
        'anxious': kw('scared', 'afraid', 'worried', 'anxious', 'takot', 'kaba', weight=10)
                   + ph('takot ako', 'natatakot', weight=20),
        'skeptical': kw('scam', 'legit', 'doubt', 'sigurado', weight=10)
                     + ph('scam ba', 'legit ba', 'totoo ba', 'too good to be true', weight=20),
        'confused': kw('confused', 'nalilito', weight=10)
                    + ph('di ko gets', 'paki explain', 'not clear', 'hindi ko maintindihan', weight=20),
        'excited': kw('nice', 'ganda', 'great', 'wow', 'amazing', 'awesome', 'interested', weight=10)
                   + ph('gusto ko to', 'i want this', 'interested ako', weight=20),
        'hopeful': kw('hope', 'sana', 'hoping', 'wish', weight=10)
                   + ph('sana gumana', 'looking forward', weight=20),
    },
    'emotion_min_score': 15,
    'trust': {
        'positive': ph('sounds good', 'helps', 'thanks', 'appreciate', 'helpful', 'salamat',
                       'thank you', 'nakakatulong', weight=5),
        'negative': ph('scam', 'fraud', 'fake', 'walang kwenta', 'waste', 'naloko', 'nabiktima',
                       weight=10),
    },
    'risk_flags': [
        {'id': 'scam_trauma', 'description': 'Has experienced scam or fraud in the past',
         'conditions': ph('scam', 'naloko', 'nabiktima', 'fraud')},
        {'id': 'fear_of_commitment', 'description': 'Shows hesitation and fear of commitment',
         'conditions': ph('think about it', 'isipin ko', 'not sure', 'hesitant')},
        {'id': 'financial_concern', 'description': 'Financial constraints may prevent commitment',
         'conditions': ph('walang pera', 'no money', 'expensive', 'mahal', 'budget')},
        {'id': 'time_constraint', 'description': 'Time constraints may affect engagement',
         'conditions': ph('busy', 'walang time', 'no time')},
        {'id': 'decision_maker_issue', 'description': 'Requires approval from decision maker',
         'conditions': ph('tanong ko muna', 'asawa', 'spouse', 'ask my husband', 'ask my wife')},
    ],
    'composer_weights': {'base': 0.55, 'persona': 0.15, 'cta_fit': 0.10, 'emotion': 0.20},
}

_SECTIONS = set(DEFAULT_RULES)


# ── Validation ───────────────────────────────────────────────────────────────

def build_rules(raw: dict) -> ScoringRules:
    """Validate a raw rules mapping (defaults merged with YAML) into ScoringRules."""
    if not isinstance(raw, dict):
        raise ScoringConfigError("Scoring config must be a mapping")
    unknown = set(raw) - _SECTIONS
    if unknown:
        raise ScoringConfigError(f"Unknown scoring config section(s): {sorted(unknown)}")

    weights = _require_mapping(raw, 'industry_weights')
    if NEUTRAL not in weights:
        raise ScoringConfigError("industry_weights must define a 'neutral' table")
    for industry, table in weights.items():
        _validate_weight_table(table, COMPONENTS, f"industry_weights.{industry}")

    thresholds = _require_mapping(raw, 'thresholds')
    if set(thresholds) != {'hot', 'warm'} or not thresholds['hot'] > thresholds['warm']:
        raise ScoringConfigError("thresholds must be {hot, warm} with hot > warm")

    decay = [(float(days), float(mult)) for days, mult in raw['decay']]
    if [d for d, _ in decay] != sorted(d for d, _ in decay):
        raise ScoringConfigError("decay rows must be ordered by age")

    default_ctas = _require_mapping(raw, 'default_ctas')
    ctas = {
        industry: [_build_cta(c, f"ctas.{industry}[{i}]") for i, c in enumerate(entries)]
        for industry, entries in _require_mapping(raw, 'ctas').items()
    }
    if GENERIC not in ctas or GENERIC not in default_ctas:
        raise ScoringConfigError("ctas and default_ctas must define a 'generic' entry")
    for industry, cta_id in default_ctas.items():
        if cta_id not in {c.id for c in ctas.get(industry, [])}:
            raise ScoringConfigError(f"default_ctas.{industry}: '{cta_id}' is not in ctas.{industry}")

    personas = {
        industry: [_build_persona(p, f"personas.{industry}[{i}]") for i, p in enumerate(entries)]
        for industry, entries in _require_mapping(raw, 'personas').items()
    }

    emotions = {
        state: [parse_condition(c, f"emotions.{state}[{i}]") for i, c in enumerate(conds)]
        for state, conds in _require_mapping(raw, 'emotions').items()
    }

    trust = _require_mapping(raw, 'trust')
    if set(trust) != {'positive', 'negative'}:
        raise ScoringConfigError("trust must have exactly 'positive' and 'negative'")

    risk_flags = []
    for i, flag in enumerate(raw['risk_flags']):
        where = f"risk_flags[{i}]"
        _check_keys(flag, {'id', 'description', 'conditions'}, where)
        risk_flags.append(RiskFlag(
            id=flag['id'],
            description=flag['description'],
            conditions=tuple(parse_condition(c, f"{where}.conditions[{j}]")
                             for j, c in enumerate(flag['conditions'])),
        ))

    composer_weights = _require_mapping(raw, 'composer_weights')
    _validate_weight_table(composer_weights, ('base', 'persona', 'cta_fit', 'emotion'), 'composer_weights')

    return ScoringRules(
        version=str(raw.get('version', 'custom')),
        industry_weights={k: dict(v) for k, v in weights.items()},
        thresholds=dict(thresholds),
        decay=decay,
        decay_floor=float(raw['decay_floor']),
        default_ctas=dict(default_ctas),
        personas=personas,
        ctas=ctas,
        emotions=emotions,
        emotion_min_score=int(raw['emotion_min_score']),
        trust_positive=[parse_condition(c, f"trust.positive[{i}]") for i, c in enumerate(trust['positive'])],
        trust_negative=[parse_condition(c, f"trust.negative[{i}]") for i, c in enumerate(trust['negative'])],
        risk_flags=risk_flags,
        composer_weights=dict(composer_weights),
    )


def _require_mapping(raw, key):
    value = raw.get(key)
    if not isinstance(value, dict):
        raise ScoringConfigError(f"'{key}' must be a mapping")
    return value


def _check_keys(entry, allowed, where):
    if not isinstance(entry, dict):
        raise ScoringConfigError(f"{where}: expected a mapping")
    unknown = set(entry) - allowed
    if unknown:
        raise ScoringConfigError(f"{where}: unknown key(s) {sorted(unknown)}")
    missing = allowed - set(entry)
    if missing:
        raise ScoringConfigError(f"{where}: missing key(s) {sorted(missing)}")


def _validate_weight_table(table, keys, where):
    if not isinstance(table, dict) or set(table) != set(keys):
        raise ScoringConfigError(f"{where}: expected exactly {list(keys)}")
    total = sum(float(v) for v in table.values())
    if abs(total - 1.0) > 0.001:
        raise ScoringConfigError(f"{where}: weights sum to {total:.3f}, expected 1.0")


def _build_cta(entry, where) -> CTA:
    _check_keys(entry, {'id', 'when', 'description'}, where)
    when = tuple(entry['when'])
    if not when or any(t not in TEMPERATURES for t in when):
        raise ScoringConfigError(f"{where}: 'when' must be a non-empty subset of {TEMPERATURES}")
    return CTA(id=entry['id'], when=when, description=entry['description'])


def _build_persona(entry, where) -> Persona:
    _check_keys(entry, {'id', 'description', 'notes', 'conditions'}, where)
    if entry['id'] == GENERIC:
        raise ScoringConfigError(f"{where}: '{GENERIC}' is reserved for the fallback persona")
    return Persona(
        id=entry['id'],
        description=entry['description'],
        notes=tuple(entry['notes']),
        conditions=tuple(parse_condition(c, f"{where}.conditions[{i}]")
                         for i, c in enumerate(entry['conditions'])),
    )


# ── Loading ──────────────────────────────────────────────────────────────────

_rules: Optional[ScoringRules] = None


def load_scoring_rules(path: Optional[str] = None) -> ScoringRules:
    """
    Load rules from YAML, with in-memory cache and DEFAULT_RULES fallback.

    A missing file falls back to defaults with a warning. A file that exists but
    fails validation raises ScoringConfigError.
    """
    global _rules
    if _rules is not None and path is None:
        return _rules

    if path is None:
        from scoutscan.config import SCORING_CONFIG_PATH
        path = SCORING_CONFIG_PATH

    raw = dict(DEFAULT_RULES)
    if path and os.path.exists(path):
        with open(path, 'r') as f:
            overrides = yaml.safe_load(f) or {}
        if not isinstance(overrides, dict):
            raise ScoringConfigError(f"{path}: top level must be a mapping")
        raw.update(overrides)
        rules = build_rules(raw)
        logger.info("Scoring rules loaded from YAML (version=%s)", rules.version)
    else:
        if path:
            logger.warning("Scoring config %s not found, using defaults", path)
        rules = build_rules(raw)

    _rules = rules
    return rules


def reset_scoring_rules():
    """Drop the cached rules (tests, config reload)."""
    global _rules
    _rules = None
