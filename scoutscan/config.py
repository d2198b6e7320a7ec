"""
Centralized configuration — all env vars, stage table, status values.
"""
import os

from scoutscan.errors import ConfigError


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Redis (RQ scan jobs) ──────────────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── Database ──────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── Auth ─────────────────────────────────────────────────────────────────────
# Bearer token required on /api/* routes. Unset = any bearer token accepted (local dev).
API_TOKEN = os.getenv('API_TOKEN')

# ── OpenAI (optional snippet enrichment) ─────────────────────────────────────
OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')
OPENAI_ENRICH_LIMIT = int(os.getenv('OPENAI_ENRICH_LIMIT', '10'))

# ── Slack notifications ──────────────────────────────────────────────────────
SLACK_WEBHOOK_URL = os.getenv('SLACK_WEBHOOK_URL')

# ── Scoring rules ────────────────────────────────────────────────────────────
SCORING_CONFIG_PATH = os.getenv('SCORING_CONFIG_PATH')

# ── Retry queue ──────────────────────────────────────────────────────────────
QUEUE_BATCH_LIMIT = int(os.getenv('QUEUE_BATCH_LIMIT', '10'))
QUEUE_DEFAULT_MAX_ATTEMPTS = int(os.getenv('QUEUE_DEFAULT_MAX_ATTEMPTS', '3'))

# ── Scan jobs ────────────────────────────────────────────────────────────────
SCAN_JOB_TIMEOUT = int(os.getenv('SCAN_JOB_TIMEOUT', '600'))

# ── Scan stage definitions (step → fixed percent) ────────────────────────────
SCAN_STAGES = [
    ('EXTRACTING_TEXT', 10),
    ('DETECTING_NAMES', 40),
    ('SCORING_PROSPECTS', 80),
]

QUEUED_STEP = 'QUEUED'
COMPLETED_STEP = 'COMPLETED'
FAILED_STEP = 'FAILED'
TERMINAL_STEPS = (COMPLETED_STEP, FAILED_STEP)

STEP_PERCENTS = {
    QUEUED_STEP: 0,
    **dict(SCAN_STAGES),
    COMPLETED_STEP: 100,
    FAILED_STEP: 0,
}

# ── Status values ────────────────────────────────────────────────────────────
SCAN_STATUSES = ['queued', 'processing', 'completed', 'failed']
QUEUE_STATUSES = ['pending', 'processing', 'completed', 'failed']
SOURCE_TYPES = ['paste', 'csv', 'file', 'screenshot']


REQUIRED_SETTINGS = ('DATABASE_URL', 'REDIS_URL')


def require_config():
    """Raise ConfigError if a required setting is empty. Called before any state mutation."""
    missing = [name for name in REQUIRED_SETTINGS if not os.getenv(name, globals()[name])]
    if missing:
        raise ConfigError(f"Missing required configuration: {', '.join(missing)}")
