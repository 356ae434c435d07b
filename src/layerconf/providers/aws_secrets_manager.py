"""
AWS Secrets Manager provider.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Any

from layerconf.exceptions import ProviderError, SecretNotFoundError
from layerconf.providers.base import SecretProvider


class AwsSecretsManagerProvider(SecretProvider):
    """
    Secrets Manager provider wrapping a boto3 ``secretsmanager`` client.

    References are full secret ARNs, e.g.
    ``arn:aws:secretsmanager:us-east-1:123456789012:secret:my-app/db-AbCdEf``.
    """

    name = "AwsSecretsManagerProvider"
    pattern = re.compile(r"^arn:aws:secretsmanager:[a-z0-9-]+:[0-9]+:secret:.+$")
    required_methods = ("get_secret_value",)

    @classmethod
    def from_defaults(
        cls,
        region_name: str | None = None,
        profile_name: str | None = None,
        logger: logging.Logger | None = None,
    ) -> AwsSecretsManagerProvider:
        """Build a provider around a default boto3 ``secretsmanager`` client."""
        try:
            import boto3
        except ImportError as e:
            raise ProviderError("boto3 is required for AWS Secrets Manager. Install 'layerconf[aws]'.") from e

        session = boto3.Session(profile_name=profile_name)
        return cls(session.client("secretsmanager", region_name=region_name), logger=logger)

    async def resolve_secret(self, secret_ref: str) -> str:
        """
        Resolve a secret ARN to its string value.

        ``SecretString`` wins; otherwise ``SecretBinary`` is decoded to UTF-8
        text (raw bytes as returned by boto3, or base64 text).

        Raises:
            SecretNotFoundError: If the secret has neither a string nor a binary value
        """
        response: dict[str, Any] = await self._call_backend("get_secret_value", SecretId=secret_ref)
        response = response or {}

        secret_string = response.get("SecretString")
        if secret_string:
            return secret_string

        secret_binary = response.get("SecretBinary")
        if secret_binary:
            return self._decode_binary_secret(secret_binary)

        raise SecretNotFoundError("Secret value is empty", reference=secret_ref)

    @staticmethod
    def _decode_binary_secret(binary_data: bytes | bytearray | str) -> str:
        if isinstance(binary_data, str):
            try:
                return base64.b64decode(binary_data, validate=True).decode("utf-8")
            except binascii.Error:
                # Not base64 after all; treat it as the text itself
                return binary_data
        return bytes(binary_data).decode("utf-8")
