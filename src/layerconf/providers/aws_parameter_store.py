"""
AWS Systems Manager Parameter Store provider.

References are parameter names (``/my-app/prod/db-password``) or full
parameter ARNs. A name ending in ``/*`` resolves every parameter under the
prefix, recursively and decrypted, to a list of values.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from layerconf.exceptions import ProviderError, SecretNotFoundError
from layerconf.providers.base import SecretProvider, SecretValue

PATH_WILDCARD = "/*"


class AwsParameterStoreProvider(SecretProvider):
    """
    Parameter Store provider wrapping a boto3 ``ssm`` client.

    Config example:
        database:
          password: /my-app/prod/db-password
          replicas: /my-app/prod/replicas/*
    """

    name = "AwsParameterStoreProvider"
    pattern = re.compile(
        r"^(?:/[a-zA-Z0-9_/.~-]+(?:/\*)?"
        r"|arn:aws[a-z-]*:ssm:[a-z0-9-]+:[0-9]+:parameter/[a-zA-Z0-9_/.~-]+)$"
    )
    required_methods = ("get_parameter", "get_parameters_by_path")

    @classmethod
    def from_defaults(
        cls,
        region_name: str | None = None,
        profile_name: str | None = None,
        logger: logging.Logger | None = None,
    ) -> AwsParameterStoreProvider:
        """
        Build a provider around a default boto3 ``ssm`` client.

        Credentials come from the standard boto3 chain (env, profile, IAM role).
        """
        try:
            import boto3
        except ImportError as e:
            raise ProviderError("boto3 is required for AWS Parameter Store. Install 'layerconf[aws]'.") from e

        session = boto3.Session(profile_name=profile_name)
        return cls(session.client("ssm", region_name=region_name), logger=logger)

    async def resolve_secret(self, secret_ref: str) -> SecretValue:
        """
        Resolve a parameter name, ARN or ``/*`` path prefix.

        Raises:
            SecretNotFoundError: If the parameter is missing or empty, or the
                path prefix matches no parameters
        """
        try:
            if secret_ref.endswith(PATH_WILDCARD):
                return await self._resolve_path(secret_ref[: -len(PATH_WILDCARD)])
            return await self._resolve_single(secret_ref)
        except Exception as e:
            self.logger.error(f"Failed to get AWS parameter: {e}")
            raise

    async def _resolve_single(self, name: str) -> str:
        response: dict[str, Any] = await self._call_backend("get_parameter", Name=name, WithDecryption=True)

        parameter = (response or {}).get("Parameter")
        if not parameter:
            raise SecretNotFoundError(f"Parameter not found: {name}", reference=name)

        value = parameter.get("Value")
        if not value:
            raise SecretNotFoundError(f"Parameter value is empty: {name}", reference=name)
        return value

    async def _resolve_path(self, base_path: str) -> list[str]:
        response: dict[str, Any] = await self._call_backend(
            "get_parameters_by_path",
            Path=base_path,
            Recursive=True,
            WithDecryption=True,
        )

        parameters = (response or {}).get("Parameters") or []
        if not parameters:
            raise SecretNotFoundError(f"No parameters found at path: {base_path}", reference=base_path)

        values = []
        for param in parameters:
            value = param.get("Value")
            if not value:
                name = param.get("Name", base_path)
                raise SecretNotFoundError(f"Parameter value is empty: {name}", reference=name)
            values.append(value)

        self.logger.debug(f"Resolved {len(values)} parameter(s) under {base_path}")
        return values
