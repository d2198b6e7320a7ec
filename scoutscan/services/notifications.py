"""
Notifications — Slack webhook integration for scan events.

Notification failure never blocks the pipeline.
"""
import logging
import requests

from scoutscan.config import SLACK_WEBHOOK_URL

logger = logging.getLogger('services.notifications')


def _post(blocks):
    requests.post(SLACK_WEBHOOK_URL, json={"blocks": blocks}, timeout=10)


def _prospect_lines(prospects, limit=5):
    return "\n".join(
        f"• *{p['full_name']}* — {p['scout_score']:.0f} ({p['bucket']})"
        for p in prospects[:limit]
    )


def notify_scan_complete(scan, top_prospects=None):
    """Post scan completion summary (with top hot leads) to Slack."""
    if not SLACK_WEBHOOK_URL:
        return

    try:
        blocks = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": "Scan Completed"},
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Prospects:* {scan.total_items or 0}"},
                    {"type": "mrkdwn", "text": f"*Hot:* {scan.hot_leads or 0}"},
                    {"type": "mrkdwn", "text": f"*Warm:* {scan.warm_leads or 0}"},
                    {"type": "mrkdwn", "text": f"*Cold:* {scan.cold_leads or 0}"},
                ]
            },
        ]

        hot = [p for p in (top_prospects or []) if p.get('bucket') == 'hot']
        if hot:
            blocks.append({
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Hot leads*\n{_prospect_lines(hot)}"},
            })

        _post(blocks)
        logger.info("Scan %s completion notification sent", scan.id[:8])

    except Exception:
        logger.error("Failed to send notification for scan %s", scan.id[:8], exc_info=True)


def notify_scan_failed(scan, step=None):
    """Post scan failure alert to Slack."""
    if not SLACK_WEBHOOK_URL:
        return

    try:
        blocks = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": "Scan FAILED"},
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Scan:* {scan.id[:8]}"},
                    {"type": "mrkdwn", "text": f"*Stage:* {step or 'unknown'}"},
                ]
            },
        ]
        if scan.error_message:
            blocks.append({
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Error:* ```{scan.error_message[:500]}```"},
            })

        _post(blocks)
        logger.info("Scan %s failure notification sent", scan.id[:8])

    except Exception:
        logger.error("Failed to send failure notification for scan %s", scan.id[:8], exc_info=True)


def notify_hot_lead_digest(prospects, scan_count):
    """
    Post a digest of hot leads across recent scans.

    Unlike the scan notifications this is queue work, so errors propagate and
    the retry queue decides whether to try again. Returns False when Slack is
    not configured.
    """
    if not SLACK_WEBHOOK_URL:
        return False

    text = _prospect_lines(prospects, limit=10) if prospects else "_No hot leads._"
    blocks = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": f"Hot Lead Digest — {len(prospects)} from {scan_count} scans"},
        },
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": text},
        },
    ]
    response = requests.post(SLACK_WEBHOOK_URL, json={"blocks": blocks}, timeout=10)
    response.raise_for_status()
    logger.info("Hot lead digest sent (%d leads)", len(prospects))
    return True
