"""
AWS Systems Manager Parameter Store utilities.
Loads suite secrets (e.g. the Mailtrap API token) from SSM.
"""
import boto3
from functools import lru_cache

from logging_utils import log_safe


def _ssm_client(region: str, access_key_id: str = None, secret_access_key: str = None):
    kwargs = {'region_name': region}
    if access_key_id and secret_access_key:
        kwargs['aws_access_key_id'] = access_key_id
        kwargs['aws_secret_access_key'] = secret_access_key
    return boto3.client('ssm', **kwargs)


@lru_cache(maxsize=32)
def get_parameter(name: str, region: str, access_key_id: str = None, secret_access_key: str = None) -> str:
    """
    Read a (possibly SecureString) parameter, cached per name and region.

    Args:
        name: Parameter name (e.g., '/cloudx-qa/mailtrap-token')
        region: Region the parameter lives in
        access_key_id: Explicit key pair; the default credential chain is
            used when either half is missing
        secret_access_key: See access_key_id

    Returns:
        Parameter value, or an empty string if it cannot be read
    """
    try:
        client = _ssm_client(region, access_key_id, secret_access_key)
        response = client.get_parameter(Name=name, WithDecryption=True)
        return response['Parameter']['Value']
    except Exception as e:
        log_safe(f"Error getting parameter {name} in {region}", {'error': str(e)})
        return ""
