"""
Logging utilities with sensitive data sanitization.
"""
import re
import json
from typing import Any


# Sensitive keys that should be redacted
SENSITIVE_KEYS = {
    'token', 'password', 'secret', 'authorization', 'api-token',
    'api_token', 'mailtrap_token', 'db_password', 'secret_access_key',
    'private_key', 'privatekey'
}


def sanitize_for_logging(data: Any) -> Any:
    """
    Sanitize sensitive data before logging.

    Recursively processes dictionaries, lists, and strings to remove
    sensitive information like emails, API tokens, and credentials.

    Args:
        data: Data to sanitize (dict, str, list, or other types)

    Returns:
        Sanitized data safe for logging
    """
    if isinstance(data, dict):
        sanitized = {}
        for key, value in data.items():
            if str(key).lower() in SENSITIVE_KEYS:
                sanitized[key] = '***REDACTED***'
            elif isinstance(value, (dict, list)):
                sanitized[key] = sanitize_for_logging(value)
            elif isinstance(value, str):
                sanitized[key] = sanitize_string(value)
            else:
                sanitized[key] = value
        return sanitized

    elif isinstance(data, list):
        return [sanitize_for_logging(item) for item in data]

    elif isinstance(data, str):
        return sanitize_string(data)

    return data


def sanitize_string(text: str) -> str:
    """
    Sanitize sensitive patterns in strings.

    Args:
        text: String to sanitize

    Returns:
        Sanitized string with sensitive patterns redacted
    """
    if not isinstance(text, str):
        return text

    # Redact email addresses (user part only, the domain helps debugging)
    text = re.sub(
        r'\b[a-zA-Z0-9._%+-]+@([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\b',
        r'***@\1',
        text
    )

    # Redact AWS access keys
    text = re.sub(
        r'(AKIA|ASIA)[0-9A-Z]{16}',
        '***AWS_KEY***',
        text
    )

    # Redact SNS subscription confirmation tokens
    text = re.sub(
        r'Token=[^&\s"]+',
        'Token=***TOKEN***',
        text
    )

    return text


def log_safe(message: str, data: Any = None) -> None:
    """
    Log a message with automatically sanitized data.

    Args:
        message: Log message
        data: Optional data to include (will be sanitized)
    """
    if data is not None:
        sanitized_data = sanitize_for_logging(data)
        if isinstance(sanitized_data, (dict, list)):
            print(f"{message}: {json.dumps(sanitized_data, default=str)}")
        else:
            print(f"{message}: {sanitized_data}")
    else:
        print(message)


def log_http_call(method: str, url: str, status_code: int = None) -> None:
    """
    Log an outbound HTTP call without exposing query strings.

    Args:
        method: HTTP verb
        url: Request URL (query string is dropped)
        status_code: Response status, if a response was received
    """
    path = sanitize_string(url.split('?', 1)[0])
    if status_code is None:
        print(f"HTTP {method.upper()} {path} -> no response")
    else:
        print(f"HTTP {method.upper()} {path} -> {status_code}")


def log_retry_attempt(description: str, attempt: int, attempt_limit: int, error: Exception = None) -> None:
    """
    Log the outcome of one unsuccessful retry attempt.

    Args:
        description: Short name of the condition being retried
        attempt: 1-based attempt index
        attempt_limit: Total attempts allowed
        error: Exception raised by the attempt, if any
    """
    status = {
        'condition': description.splitlines()[0] if description else 'unknown',
        'attempt': f"{attempt}/{attempt_limit}",
        'error': f"{type(error).__name__}: {error}" if error is not None else None
    }
    log_safe("Retry attempt unsuccessful", status)
