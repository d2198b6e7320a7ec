"""
Shared client instances — Redis, RQ queue, OpenAI.

Lazily initialized on first access so importing this module is always safe
(even when env vars are missing during tests).
"""
import logging

import redis
from rq import Queue

from scoutscan.config import REDIS_URL, OPENAI_API_KEY

logger = logging.getLogger('scoutscan.extensions')

SCAN_QUEUE_NAME = 'scans'

_redis_client = None
_scan_queue = None
_openai_client = None


# ── Redis / RQ ────────────────────────────────────────────────────────────────

def get_redis():
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(REDIS_URL)
    return _redis_client


def get_scan_queue():
    """RQ queue that runs scan pipeline jobs."""
    global _scan_queue
    if _scan_queue is None:
        _scan_queue = Queue(SCAN_QUEUE_NAME, connection=get_redis())
    return _scan_queue


# ── OpenAI ────────────────────────────────────────────────────────────────────

def get_openai_client():
    """OpenAI client, or None when OPENAI_API_KEY is unset."""
    global _openai_client
    if _openai_client is not None:
        return _openai_client
    if not OPENAI_API_KEY:
        return None
    try:
        from openai import OpenAI
        _openai_client = OpenAI(api_key=OPENAI_API_KEY)
        logger.info("OpenAI client initialized successfully")
    except Exception as e:
        logger.error("Error initializing OpenAI client: %s", e)
    return _openai_client
