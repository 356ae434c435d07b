"""
Tests for secret reference resolution over a config tree.
"""

import asyncio
import logging
import re

import pytest

from layerconf.diagnostics import LoadStage
from layerconf.exceptions import SecretNotFoundError
from layerconf.providers.base import SecretProvider
from layerconf.resolver import SecretResolver, find_secret_references


class FakeProvider(SecretProvider):
    """Resolves ``fake:<key>`` references from a dict."""

    name = "FakeProvider"
    pattern = re.compile(r"^fake:(.+)$")

    def __init__(self, secrets, delay=0.0):
        super().__init__(client=secrets)
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def resolve_secret(self, secret_ref):
        self.calls.append(secret_ref)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            key = secret_ref[len("fake:") :]
            if key not in self.client:
                raise SecretNotFoundError(f"Secret not found: {key}", reference=secret_ref)
            return self.client[key]
        finally:
            self.in_flight -= 1


class SyncProvider:
    """Duck-typed provider whose resolve_secret is a plain function."""

    def is_secret_reference(self, value):
        return isinstance(value, str) and value.startswith("sync:")

    def resolve_secret(self, secret_ref):
        return secret_ref.upper()


@pytest.mark.unit
class TestSecretResolver:
    """Tests for SecretResolver.resolve_tree."""

    @pytest.mark.asyncio
    async def test_nested_substitution(self):
        tree = {"a": {"b": "fake:x"}}
        failures = await SecretResolver().resolve_tree(tree, FakeProvider({"x": "S"}))
        assert failures == []
        assert tree == {"a": {"b": "S"}}

    @pytest.mark.asyncio
    async def test_non_references_untouched(self):
        tree = {"host": "localhost", "port": 5432, "flag": True, "none": None, "db": {"user": "admin"}}
        snapshot = {"host": "localhost", "port": 5432, "flag": True, "none": None, "db": {"user": "admin"}}
        provider = FakeProvider({})
        assert await SecretResolver().resolve_tree(tree, provider) == []
        assert tree == snapshot
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_partial_failure_is_isolated(self, caplog):
        tree = {"db": {"password": "fake:db", "api_key": "fake:missing"}, "other": "fake:other"}
        resolver = SecretResolver(logger=logging.getLogger("test.resolver"))
        with caplog.at_level(logging.ERROR, logger="test.resolver"):
            failures = await resolver.resolve_tree(tree, FakeProvider({"db": "pw", "other": "o"}))

        assert tree == {"db": {"password": "pw", "api_key": "fake:missing"}, "other": "o"}
        assert len(failures) == 1
        failure = failures[0]
        assert failure.path == "db.api_key"
        assert failure.reference == "fake:missing"
        assert isinstance(failure.error, SecretNotFoundError)
        assert any("Failed to load secret [db.api_key]" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_failure_diagnostic(self):
        tree = {"token": "fake:nope"}
        [failure] = await SecretResolver().resolve_tree(tree, FakeProvider({}))
        diag = failure.to_diagnostic()
        assert diag.stage is LoadStage.RESOLVE_SECRETS
        assert diag.level == logging.ERROR
        assert diag.path == "token"
        assert diag.message.startswith("Failed to load secret [token]")

    @pytest.mark.asyncio
    async def test_list_elements_not_scanned(self):
        tree = {"hosts": ["fake:a", "fake:b"], "nested": [{"k": "fake:a"}]}
        provider = FakeProvider({"a": "A", "b": "B"})
        assert await SecretResolver().resolve_tree(tree, provider) == []
        assert tree == {"hosts": ["fake:a", "fake:b"], "nested": [{"k": "fake:a"}]}
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_list_value_stored_as_list(self):
        tree = {"replicas": "fake:replicas"}
        await SecretResolver().resolve_tree(tree, FakeProvider({"replicas": ("r1", "r2")}))
        assert tree == {"replicas": ["r1", "r2"]}

    @pytest.mark.asyncio
    async def test_resolves_concurrently(self):
        tree = {f"k{i}": f"fake:s{i}" for i in range(5)}
        provider = FakeProvider({f"s{i}": str(i) for i in range(5)}, delay=0.01)
        await SecretResolver(max_concurrency=8).resolve_tree(tree, provider)
        assert provider.max_in_flight > 1
        assert tree == {f"k{i}": str(i) for i in range(5)}

    @pytest.mark.asyncio
    async def test_max_concurrency_one_serializes(self):
        tree = {f"k{i}": f"fake:s{i}" for i in range(5)}
        provider = FakeProvider({f"s{i}": str(i) for i in range(5)}, delay=0.01)
        await SecretResolver(max_concurrency=1).resolve_tree(tree, provider)
        assert provider.max_in_flight == 1
        assert tree == {f"k{i}": str(i) for i in range(5)}

    @pytest.mark.asyncio
    async def test_sync_duck_typed_provider(self):
        tree = {"a": {"b": "sync:value"}}
        await SecretResolver().resolve_tree(tree, SyncProvider())
        assert tree == {"a": {"b": "SYNC:VALUE"}}

    @pytest.mark.asyncio
    async def test_secret_value_is_not_rescanned(self):
        tree = {"a": "fake:x"}
        provider = FakeProvider({"x": "fake:y", "y": "nested"})
        await SecretResolver().resolve_tree(tree, provider)
        assert tree == {"a": "fake:y"}
        assert provider.calls == ["fake:x"]

    @pytest.mark.parametrize("value", [0, -1])
    def test_invalid_max_concurrency(self, value):
        with pytest.raises(ValueError, match="max_concurrency"):
            SecretResolver(max_concurrency=value)


@pytest.mark.unit
class TestFindSecretReferences:
    def test_lists_paths_in_tree_order(self):
        tree = {"a": "fake:1", "b": {"c": "plain", "d": "fake:2"}, "e": ["fake:3"]}
        assert find_secret_references(tree, FakeProvider({})) == ["a", "b.d"]

    def test_empty_tree(self):
        assert find_secret_references({}, FakeProvider({})) == []
