"""
RQ worker entry point — runs scan pipeline jobs from the 'scans' queue.

    python worker.py
"""
from rq import Worker

from scoutscan.extensions import SCAN_QUEUE_NAME, get_redis
from scoutscan.logging_config import configure_logging

if __name__ == '__main__':
    configure_logging()
    Worker([SCAN_QUEUE_NAME], connection=get_redis()).work()
