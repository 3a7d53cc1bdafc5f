"""
Fixtures for live acceptance scenarios against deployed CloudX stacks.

Every test in this directory is marked ``acceptance`` and skipped unless
CLOUDX_ACCEPTANCE=1 is set and the required settings are present.
"""
import os
import pytest
import boto3

from cloudx_config import (
    REQUIRED_FOR_ACCEPTANCE,
    REQUIRED_FOR_MAILBOX,
    aws_client_kwargs,
    generate_mailtrap_email,
    load_settings
)
from aws_lookup import describe_deployed_instances, find_instance
from image_api import CloudxImageApi
from mailtrap_client import MailtrapApiClient


def pytest_collection_modifyitems(config, items):
    if os.environ.get('CLOUDX_ACCEPTANCE') == '1':
        return
    skip_live = pytest.mark.skip(reason="Set CLOUDX_ACCEPTANCE=1 to run live acceptance scenarios")
    for item in items:
        if 'acceptance' in item.keywords:
            item.add_marker(skip_live)


# ==============================================================================
# Settings
# ==============================================================================

@pytest.fixture(scope='session')
def settings():
    """Suite settings loaded once from the environment and .env."""
    loaded = load_settings()
    missing = loaded.missing(REQUIRED_FOR_ACCEPTANCE)
    if missing:
        pytest.skip(f"Missing acceptance settings: {', '.join(missing)}")
    return loaded


@pytest.fixture(scope='session')
def mailbox_settings(settings):
    missing = settings.missing(REQUIRED_FOR_MAILBOX)
    if missing:
        pytest.skip(f"Missing Mailtrap settings: {', '.join(missing)}")
    return settings


@pytest.fixture(scope='session')
def region(settings):
    return settings.region


@pytest.fixture(scope='session')
def account_id(settings):
    return settings.account_id


# ==============================================================================
# AWS Clients
# ==============================================================================

@pytest.fixture(scope='session')
def aws_client(settings):
    """Factory for boto3 clients configured from settings."""
    created = {}

    def factory(service_name):
        if service_name not in created:
            created[service_name] = boto3.client(service_name, **aws_client_kwargs(settings))
        return created[service_name]

    return factory


@pytest.fixture(scope='session')
def ec2(aws_client):
    return aws_client('ec2')


@pytest.fixture(scope='session')
def s3(aws_client):
    return aws_client('s3')


@pytest.fixture(scope='session')
def sns(aws_client):
    return aws_client('sns')


@pytest.fixture(scope='session')
def sqs(aws_client):
    return aws_client('sqs')


@pytest.fixture(scope='session')
def iam(aws_client):
    return aws_client('iam')


@pytest.fixture(scope='session')
def rds(aws_client):
    return aws_client('rds')


@pytest.fixture(scope='session')
def dynamodb(aws_client):
    return aws_client('dynamodb')


@pytest.fixture(scope='session')
def lambda_client(aws_client):
    return aws_client('lambda')


@pytest.fixture(scope='session')
def logs(aws_client):
    return aws_client('logs')


@pytest.fixture(scope='session')
def cloudwatch(aws_client):
    return aws_client('cloudwatch')


@pytest.fixture(scope='session')
def cloudtrail(aws_client):
    return aws_client('cloudtrail')


# ==============================================================================
# Deployed Application
# ==============================================================================

@pytest.fixture(scope='session')
def deployed_instances(ec2):
    return describe_deployed_instances(ec2)


@pytest.fixture(scope='session')
def public_instance(deployed_instances):
    return find_instance(deployed_instances, 'public')


@pytest.fixture(scope='session')
def image_api(public_instance):
    api = CloudxImageApi(public_instance['os']['PublicIpAddress'])
    yield api
    api.close()


@pytest.fixture(scope='session')
def mailtrap(mailbox_settings):
    client = MailtrapApiClient(mailbox_settings)
    yield client
    client.close()


@pytest.fixture(scope='module')
def recipient(mailbox_settings):
    """Fresh Mailtrap address for each scenario module."""
    return generate_mailtrap_email(mailbox_settings)
