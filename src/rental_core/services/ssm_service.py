"""Gateway secrets from SSM Parameter Store.

SecureString values are decrypted on first read and kept for the life of
the service instance.
"""

import logging
from functools import lru_cache

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

_ERROR_HINTS = {
    "ParameterNotFound": "parameter does not exist",
    "AccessDeniedException": "missing ssm:GetParameter or kms:Decrypt permission",
}


class SSMServiceError(Exception):
    """Raised when a parameter cannot be read."""


class SSMService:
    """Read-through cache over ssm:GetParameter.

    Usage:
        secret = SSMService().get_parameter("/rental/dev/razorpay/key_secret")
    """

    def __init__(self) -> None:
        self._client = boto3.client("ssm")
        self._cache: dict[str, str] = {}

    def get_parameter(self, name: str, *, use_cache: bool = True) -> str:
        """Return the decrypted value of ``name``.

        Raises:
            SSMServiceError: If the parameter is missing or unreadable
        """
        if use_cache and name in self._cache:
            return self._cache[name]

        logger.info("Reading SSM parameter %s", name)
        try:
            response = self._client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            hint = _ERROR_HINTS.get(code, str(e))
            raise SSMServiceError(f"Cannot read {name}: {hint}") from e

        value: str = response["Parameter"]["Value"]
        self._cache[name] = value
        return value

    def clear_cache(self) -> None:
        self._cache.clear()


@lru_cache(maxsize=1)
def get_ssm_service() -> SSMService:
    """Get the shared SSMService instance."""
    return SSMService()
