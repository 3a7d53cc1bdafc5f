"""
Helpers for pulling links and fields out of SNS notification emails.
"""
import re
from typing import Dict, Optional

from logging_utils import log_safe


def extract_confirmation_url(html: str, region: str = 'us-east-1') -> Optional[str]:
    """
    Extract the SNS subscription confirmation link from an email body.

    Args:
        html: HTML body of the 'Subscription Confirmation' email
        region: AWS region of the topic

    Returns:
        Confirmation URL, or None if not found
    """
    pattern = rf'(https://sns\.{re.escape(region)}\.amazonaws\.com[^"\s<]*)'
    match = re.search(pattern, html or '')
    if not match:
        log_safe(f"ERROR: No SNS confirmation link for region {region} in email body")
        return None
    return match.group(1).replace('&amp;', '&')


def extract_subscription_token(url: str) -> Optional[str]:
    """Value of the Token query parameter of a confirmation URL."""
    match = re.search(r'Token=([^&]*)', url or '')
    return match.group(1) if match else None


def extract_download_link(text: str) -> Optional[str]:
    """The ``download_link:`` value of an image event notification."""
    match = re.search(r'download_link:\s(\S+)', text or '')
    return match.group(1) if match else None


def extract_unsubscribe_url(text: str) -> Optional[str]:
    """The unsubscribe link SNS appends to every notification."""
    match = re.search(r'(https?://\S*/unsubscribe[^\s<>"]+)', text or '')
    return match.group(1) if match else None


def parse_notification_fields(text: str) -> Dict[str, str]:
    """
    Parse ``key: value`` lines of an image event notification.

    Only lowercase snake_case keys are kept, so SNS footer text is ignored.

    Example:
        >>> parse_notification_fields("event_type: upload\\nobject_size: 42")
        {'event_type': 'upload', 'object_size': '42'}
    """
    fields = {}
    for line in (text or '').splitlines():
        # key must be followed by whitespace or end of line, so URLs never match
        match = re.match(r'^\s*([a-z][a-z0-9_]*):(?:\s+(.*?))?\s*$', line)
        if match:
            fields[match.group(1)] = match.group(2) or ''
    return fields
