"""
Slack day-change notification job for Campaign Pulse.

When the rollover detector reports a new calendar day, this job posts a
short Slack message summarizing the snapshot that was just closed for the
previous day. It integrates with Slack using the WebhookClient from slack-sdk.

The job is synchronous; the application runs it in the default executor so
the event loop never blocks on the webhook call.

Environment Requirements:
- SLACK_WEBHOOK_URL: Slack incoming webhook URL
  Format: https://hooks.slack.com/services/xxx/yyy/zzz

Usage:
    result = send_rollover_digest(event, snapshot)
    if not result['success']:
        logger.warning(result['error'])
"""

from typing import Any, Dict, List, Optional

from slack_sdk.webhook import WebhookClient

from pulse.core.config import Settings, get_settings
from pulse.models import RolloverEvent, Snapshot


def _format_amount(value: float) -> str:
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return f"{value:.2f}"


def format_rollover_message(
    event: RolloverEvent,
    snapshot: Optional[Snapshot]
) -> List[Dict[str, Any]]:
    """
    Format a rollover event into Slack Block Kit blocks.

    Args:
        event: The day change that occurred.
        snapshot: Snapshot saved for event.previousDate, if any.

    Returns:
        List of Slack Block Kit block dicts ready to send via WebhookClient.
    """
    blocks: List[Dict[str, Any]] = []

    blocks.append({
        "type": "header",
        "text": {
            "type": "plain_text",
            "text": f"New day started - {event.newDate.strftime('%d/%m/%Y')}",
            "emoji": True
        }
    })

    blocks.append({"type": "divider"})

    if snapshot is None or not snapshot.records:
        summary_text = (
            f"No campaign metrics were recorded for *{event.previousDate.isoformat()}*."
        )
    else:
        revenue = sum(record.revenue for record in snapshot.records)
        cost = sum(record.cost for record in snapshot.records)
        conversions = sum(record.conversions for record in snapshot.records)
        campaigns = len({record.campaignId for record in snapshot.records})
        roas = revenue / cost if cost > 0 else 0.0
        summary_text = (
            f"*Snapshot saved for {event.previousDate.isoformat()}*\n\n"
            f"Campaigns: *{campaigns:,}*  |  "
            f"Revenue: *{_format_amount(revenue)}*  |  "
            f"Cost: *{_format_amount(cost)}*  |  "
            f"Conversions: *{conversions:,}*  |  "
            f"ROAS: *{roas:.2f}*"
        )

    blocks.append({
        "type": "section",
        "text": {
            "type": "mrkdwn",
            "text": summary_text
        }
    })

    blocks.append({
        "type": "context",
        "elements": [
            {
                "type": "mrkdwn",
                "text": f"Reference timezone: {event.timezone} | Detected at {event.timestamp.isoformat()}"
            }
        ]
    })

    return blocks


def send_rollover_digest(
    event: RolloverEvent,
    snapshot: Optional[Snapshot] = None,
    settings: Optional[Settings] = None
) -> Dict[str, Any]:
    """
    Send the day-change notification to Slack.

    Args:
        event: The day change that occurred.
        snapshot: Snapshot saved for the previous day, if any.
        settings: Settings override (defaults to get_settings()).

    Returns:
        Dict with:
        - success: True if the message was delivered
        - date: The previous date as string
        - error: Error message (if failed)

    Raises:
        No exceptions are raised - all errors are captured in the return dict.
    """
    settings = settings or get_settings()

    if not settings.slack_webhook_url:
        return {
            'success': False,
            'error': 'SLACK_WEBHOOK_URL not configured. Set this environment variable to enable day-change notifications.'
        }

    blocks = format_rollover_message(event, snapshot)

    try:
        client = WebhookClient(settings.slack_webhook_url)
        response = client.send(
            text=f"New day started: {event.newDate.isoformat()}",
            blocks=blocks
        )

        if response.status_code == 200:
            return {
                'success': True,
                'date': str(event.previousDate),
                'record_count': len(snapshot.records) if snapshot else 0
            }
        return {
            'success': False,
            'error': f'Slack API returned status {response.status_code}: {response.body}',
            'date': str(event.previousDate)
        }
    except Exception as e:
        return {
            'success': False,
            'error': f'Failed to send Slack message: {str(e)}',
            'date': str(event.previousDate)
        }
