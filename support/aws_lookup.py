"""
AWS resource discovery helpers.

The deployed stacks use generated resource names, so scenarios locate
resources by name prefix or fragment through the boto3 clients they are given.
"""
import json
import time
from typing import Any, Dict, List, Optional
from urllib.parse import unquote


class ResourceNotFound(LookupError):
    """A deployed resource could not be located."""


# ==============================================================================
# EC2
# ==============================================================================

def describe_deployed_instances(ec2_client, state: str = 'running') -> List[Dict[str, Any]]:
    """
    List instances in the given state, flattened across reservations.

    Args:
        ec2_client: boto3 EC2 client
        state: instance-state-name filter value

    Returns:
        List of dicts with keys: id, type ('public' if the instance has a
        public IP, otherwise 'private'), instance_type, tags,
        root_block_device, os (the raw instance description)
    """
    paginator = ec2_client.get_paginator('describe_instances')
    pages = paginator.paginate(Filters=[{'Name': 'instance-state-name', 'Values': [state]}])

    instances = []
    for page in pages:
        for reservation in page.get('Reservations', []):
            for instance in reservation.get('Instances', []):
                mappings = instance.get('BlockDeviceMappings') or [{}]
                instances.append({
                    'id': instance['InstanceId'],
                    'type': 'public' if instance.get('PublicIpAddress') else 'private',
                    'instance_type': instance.get('InstanceType'),
                    'tags': instance.get('Tags', []),
                    'root_block_device': mappings[0].get('Ebs'),
                    'os': instance
                })
    return instances


def find_instance(instances: List[Dict[str, Any]], kind: str) -> Dict[str, Any]:
    """
    Return the first instance of the given kind ('public' or 'private').

    Raises:
        ResourceNotFound: If there is none
    """
    for instance in instances:
        if instance['type'] == kind:
            return instance
    raise ResourceNotFound(f"No {kind} EC2 instance found")


def tag_value(tags: Optional[List[Dict[str, str]]], key: str) -> Optional[str]:
    """Value of the tag named ``key`` in an AWS Key/Value tag list."""
    for tag in tags or []:
        if tag.get('Key') == key:
            return tag.get('Value')
    return None


# ==============================================================================
# Storage and messaging
# ==============================================================================

def find_bucket_name(s3_client, prefix: str) -> str:
    for bucket in s3_client.list_buckets().get('Buckets', []):
        if bucket['Name'].startswith(prefix):
            return bucket['Name']
    raise ResourceNotFound(f"No S3 bucket found with prefix: {prefix}")


def list_object_keys(s3_client, bucket: str, prefix: str = '') -> List[str]:
    paginator = s3_client.get_paginator('list_objects_v2')
    keys = []
    for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
        keys.extend(item['Key'] for item in page.get('Contents', []))
    return keys


def find_topic_arn(sns_client, fragment: str) -> str:
    paginator = sns_client.get_paginator('list_topics')
    for page in paginator.paginate():
        for topic in page.get('Topics', []):
            if fragment in topic['TopicArn']:
                return topic['TopicArn']
    raise ResourceNotFound(f"There is no SNS topic ARN containing: {fragment}")


def list_topic_subscriptions(sns_client, topic_arn: str) -> List[Dict[str, Any]]:
    paginator = sns_client.get_paginator('list_subscriptions_by_topic')
    subscriptions = []
    for page in paginator.paginate(TopicArn=topic_arn):
        subscriptions.extend(page.get('Subscriptions', []))
    return subscriptions


def find_queue_url(sqs_client, fragment: str) -> str:
    for url in sqs_client.list_queues().get('QueueUrls', []):
        if fragment in url:
            return url
    raise ResourceNotFound(f"There is no SQS queue URL containing: {fragment}")


def find_table_name(dynamodb_client, fragment: str) -> str:
    paginator = dynamodb_client.get_paginator('list_tables')
    for page in paginator.paginate():
        for name in page.get('TableNames', []):
            if fragment in name:
                return name
    raise ResourceNotFound(f"There is no DynamoDB table containing: {fragment}")


# ==============================================================================
# Compute and databases
# ==============================================================================

def find_db_instance(rds_client, fragment: str) -> Dict[str, Any]:
    paginator = rds_client.get_paginator('describe_db_instances')
    for page in paginator.paginate():
        for db_instance in page.get('DBInstances', []):
            if fragment in db_instance['DBInstanceIdentifier']:
                return db_instance
    raise ResourceNotFound(f"No MySQL RDS found with prefix: {fragment}")


def find_lambda_function_name(lambda_client, fragment: str) -> str:
    paginator = lambda_client.get_paginator('list_functions')
    for page in paginator.paginate():
        for function in page.get('Functions', []):
            if fragment in function['FunctionName']:
                return function['FunctionName']
    raise ResourceNotFound(f"There is no Lambda function containing: {fragment}")


# ==============================================================================
# IAM
# ==============================================================================

def decode_policy_document(document: Any) -> Dict[str, Any]:
    """
    Normalize an IAM policy document to a dict.

    boto3 usually returns parsed dicts, but raw API responses carry
    URL-encoded JSON strings.
    """
    if isinstance(document, dict):
        return document
    return json.loads(unquote(document))


# ==============================================================================
# Logging
# ==============================================================================

def _describe_log_groups(logs_client) -> List[Dict[str, Any]]:
    paginator = logs_client.get_paginator('describe_log_groups')
    groups = []
    for page in paginator.paginate():
        groups.extend(page.get('logGroups', []))
    return groups


def get_log_group_names(logs_client, fragment: str) -> List[str]:
    """Names of all log groups whose name contains ``fragment``."""
    return [
        group['logGroupName'] for group in _describe_log_groups(logs_client)
        if fragment in group['logGroupName']
    ]


def get_latest_log_group(logs_client, fragment: str) -> Dict[str, Any]:
    """
    Most recently created log group whose name contains ``fragment``.

    Raises:
        ResourceNotFound: If no group matches
    """
    groups = [
        group for group in _describe_log_groups(logs_client)
        if fragment in group['logGroupName']
    ]
    if not groups:
        raise ResourceNotFound(f"There is no log group containing: {fragment}")
    return max(groups, key=lambda group: group.get('creationTime', 0))


def fetch_log_events(logs_client, log_group_name: str, since_seconds: int = 30) -> List[Dict[str, Any]]:
    """
    All events in a log group from the last ``since_seconds`` seconds.
    """
    start_time = int((time.time() - since_seconds) * 1000)
    paginator = logs_client.get_paginator('filter_log_events')
    events = []
    for page in paginator.paginate(logGroupName=log_group_name, startTime=start_time):
        events.extend(page.get('events', []))
    return events


def find_trail(cloudtrail_client, fragment: str) -> Dict[str, Any]:
    for trail in cloudtrail_client.describe_trails().get('trailList', []):
        if fragment in trail['Name']:
            return trail
    raise ResourceNotFound(f"There is no CloudTrail trail containing: {fragment}")
