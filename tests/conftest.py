"""
Central pytest configuration and fixtures for the CloudX acceptance suite.

This module provides reusable fixtures for:
- Suite settings with fast mailbox timings
- Mailtrap API mocking (responses)
- AWS service mocking (moto)
- Environment variable setup
"""
import pytest
import sys
import os
from pathlib import Path

# Add support directory to path for imports
support_dir = Path(__file__).parent.parent / 'support'
sys.path.insert(0, str(support_dir))

# Fixture payloads live next to the tests
sys.path.insert(0, str(Path(__file__).parent))

# AWS mocking
from moto import mock_aws
import boto3
import responses

from cloudx_config import CloudxSettings
from fixtures.mailtrap_payloads import (
    MAILTRAP_ACCOUNT_ID,
    MAILTRAP_INBOX_ID,
    MAILTRAP_TOKEN,
    MAILTRAP_URL
)


ACCEPTANCE_ENABLED = os.environ.get('CLOUDX_ACCEPTANCE') == '1'


# ==============================================================================
# Environment Setup
# ==============================================================================

@pytest.fixture(scope='session', autouse=True)
def set_test_environment():
    """Use fake AWS credentials unless the live acceptance run is enabled."""
    if not ACCEPTANCE_ENABLED:
        os.environ['AWS_DEFAULT_REGION'] = 'us-east-1'
        os.environ['AWS_ACCESS_KEY_ID'] = 'testing'
        os.environ['AWS_SECRET_ACCESS_KEY'] = 'testing'
        os.environ['AWS_SECURITY_TOKEN'] = 'testing'
        os.environ['AWS_SESSION_TOKEN'] = 'testing'

    yield


# ==============================================================================
# Settings Fixtures
# ==============================================================================

@pytest.fixture
def test_settings():
    """Settings pointing at a fake Mailtrap inbox with no waits."""
    return CloudxSettings(
        region='us-east-1',
        account_id='123456789012',
        mailtrap_url=MAILTRAP_URL,
        mailtrap_token=MAILTRAP_TOKEN,
        mailtrap_account_id=MAILTRAP_ACCOUNT_ID,
        mailtrap_inbox_id=MAILTRAP_INBOX_ID,
        mailtrap_email='cloudx-qa@inbox.mailtrap.test',
        mailbox_grace_ms=0,
        mailbox_attempts=3,
        mailbox_delay_ms=0
    )


# ==============================================================================
# Mailtrap API Fixtures
# ==============================================================================

@pytest.fixture
def mock_mailtrap_api():
    """Mock Mailtrap REST API with responses library."""
    with responses.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def mailtrap_client(test_settings):
    from mailtrap_client import MailtrapApiClient
    client = MailtrapApiClient(test_settings)
    yield client
    client.close()


# ==============================================================================
# AWS Fixtures
# ==============================================================================

@pytest.fixture
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')


@pytest.fixture
def mocked_aws(aws_credentials):
    """Activate moto for the duration of a test."""
    with mock_aws():
        yield


@pytest.fixture
def aws_clients(mocked_aws):
    """boto3 clients bound to moto."""
    return {
        name: boto3.client(name, region_name='us-east-1')
        for name in ('ec2', 's3', 'sns', 'sqs', 'rds', 'lambda', 'logs', 'dynamodb', 'cloudtrail', 'iam', 'ssm')
    }
