"""
Suite configuration.

Settings are read once from the environment (and an optional .env file) into
an immutable CloudxSettings object that fixtures pass to clients.
"""
import os
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv

from retry_utils import ConfigurationError
from ssm_utils import get_parameter


DEFAULT_REGION = 'us-east-1'
DEFAULT_MAILTRAP_URL = 'https://mailtrap.io/api'

# Mailbox polling timings (milliseconds / attempts)
MAILBOX_GRACE_MS = 5_000
MAILBOX_ATTEMPTS = 5
MAILBOX_DELAY_MS = 5_000

# Default resource name prefixes for the two deployed stacks
IMAGE_STACK_PREFIXES = {
    'bucket': 'cloudximage-imagestorebucket',
    'db_instance': 'cloudximage-databasemysqlinstanced',
    'topic': 'cloudximage-TopicSNSTopic',
    'queue': 'cloudximage-QueueSQSQueue',
}

SERVERLESS_STACK_PREFIXES = {
    'bucket': 'cloudxserverless-imagestorebucket',
    'table': 'cloudxserverless-DatabaseImagesTable',
    'topic': 'cloudxserverless-TopicSNSTopic',
    'queue': 'cloudxserverless-QueueSQSQueue',
    'lambda': 'cloudxserverless-EventHandlerLambda',
    'trail': 'cloudxserverless-Trail',
}

# Settings every live scenario needs
REQUIRED_FOR_ACCEPTANCE = ('region', 'account_id')
REQUIRED_FOR_MAILBOX = ('mailtrap_token', 'mailtrap_account_id', 'mailtrap_inbox_id', 'mailtrap_email')


@dataclass(frozen=True)
class CloudxSettings:
    region: str = DEFAULT_REGION
    account_id: str = ''
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None

    mailtrap_url: str = DEFAULT_MAILTRAP_URL
    mailtrap_token: str = ''
    mailtrap_account_id: str = ''
    mailtrap_inbox_id: str = ''
    mailtrap_email: str = ''

    db_username: str = ''
    db_password: str = ''
    db_name: str = ''
    db_port: int = 3306

    ssh_key_path: str = ''
    ssh_user: str = 'ec2-user'

    image_prefixes: Dict[str, str] = field(default_factory=lambda: dict(IMAGE_STACK_PREFIXES))
    serverless_prefixes: Dict[str, str] = field(default_factory=lambda: dict(SERVERLESS_STACK_PREFIXES))

    mailbox_grace_ms: int = MAILBOX_GRACE_MS
    mailbox_attempts: int = MAILBOX_ATTEMPTS
    mailbox_delay_ms: int = MAILBOX_DELAY_MS

    def missing(self, names) -> List[str]:
        """Return the names of settings that are empty."""
        return [name for name in names if not getattr(self, name)]

    def require(self, names) -> None:
        """Raise ConfigurationError listing any empty settings."""
        missing = self.missing(names)
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _prefixes(environ: Mapping[str, str], env_prefix: str, defaults: Dict[str, str]) -> Dict[str, str]:
    # e.g. CLOUDXIMAGE_BUCKET_PREFIX overrides the 'bucket' entry
    return {
        key: environ.get(f"{env_prefix}_{key.upper()}_PREFIX", value)
        for key, value in defaults.items()
    }


def load_settings(environ: Mapping[str, str] = None, dotenv_path: str = None) -> CloudxSettings:
    """
    Build CloudxSettings from environment variables.

    Args:
        environ: Mapping to read instead of os.environ (no .env loading then)
        dotenv_path: Optional explicit .env file

    Returns:
        CloudxSettings instance

    Raises:
        ConfigurationError: If a numeric variable is malformed
    """
    if environ is None:
        load_dotenv(dotenv_path)
        environ = os.environ

    region = environ.get('REGION') or environ.get('AWS_REGION') or DEFAULT_REGION
    access_key_id = environ.get('ACCESS_KEY_ID') or None
    secret_access_key = environ.get('SECRET_ACCESS_KEY') or None

    mailtrap_token = environ.get('MAILTRAP_TOKEN', '')
    token_parameter = environ.get('MAILTRAP_TOKEN_PARAMETER')
    if not mailtrap_token and token_parameter:
        # resolved with the suite's region and credentials
        mailtrap_token = get_parameter(token_parameter, region, access_key_id, secret_access_key)

    return CloudxSettings(
        region=region,
        account_id=environ.get('ACCOUNT_ID', ''),
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        mailtrap_url=environ.get('MAILTRAP_URL', DEFAULT_MAILTRAP_URL).rstrip('/'),
        mailtrap_token=mailtrap_token,
        mailtrap_account_id=environ.get('MAILTRAP_ACCOUNT_ID', ''),
        mailtrap_inbox_id=environ.get('MAILTRAP_INBOX_ID', ''),
        mailtrap_email=environ.get('MAILTRAP_EMAIL', ''),
        db_username=environ.get('DB_USERNAME', ''),
        db_password=environ.get('DB_PASSWORD', ''),
        db_name=environ.get('DB_NAME', ''),
        db_port=_int_setting(environ, 'DB_PORT', 3306),
        ssh_key_path=environ.get('SSH_KEY_PATH', ''),
        ssh_user=environ.get('SSH_USER', 'ec2-user'),
        image_prefixes=_prefixes(environ, 'CLOUDXIMAGE', IMAGE_STACK_PREFIXES),
        serverless_prefixes=_prefixes(environ, 'CLOUDXSERVERLESS', SERVERLESS_STACK_PREFIXES),
        mailbox_grace_ms=_int_setting(environ, 'MAILBOX_GRACE_MS', MAILBOX_GRACE_MS),
        mailbox_attempts=_int_setting(environ, 'MAILBOX_ATTEMPTS', MAILBOX_ATTEMPTS),
        mailbox_delay_ms=_int_setting(environ, 'MAILBOX_DELAY_MS', MAILBOX_DELAY_MS),
    )


def generate_mailtrap_email(settings: CloudxSettings) -> str:
    """
    Recipient address for a scenario.

    A '%s' placeholder in MAILTRAP_EMAIL is replaced with a random UUID so
    concurrent runs do not read each other's mail.
    """
    email = settings.mailtrap_email
    if '%s' in email:
        return email.replace('%s', uuid.uuid4().hex)
    return email


def aws_client_kwargs(settings: CloudxSettings) -> dict:
    """Keyword arguments for boto3.client() built from settings."""
    kwargs = {'region_name': settings.region}
    if settings.access_key_id and settings.secret_access_key:
        kwargs['aws_access_key_id'] = settings.access_key_id
        kwargs['aws_secret_access_key'] = settings.secret_access_key
    return kwargs
