"""
Tests for the configuration load pipeline.
"""

import json
import logging
from unittest.mock import MagicMock

import pytest

from layerconf import ConfigLoader, LoadOptions, ResolvedConfig, load
from layerconf.diagnostics import LoadStage
from layerconf.exceptions import BaseDirectoryError, SecretResolutionError
from layerconf.providers import AwsParameterStoreProvider


def ssm_client(parameters):
    """Mock boto3 ssm client serving ``parameters`` by name."""
    client = MagicMock(spec=["get_parameter", "get_parameters_by_path"])

    def get_parameter(Name, WithDecryption):
        if Name not in parameters:
            raise RuntimeError(f"ParameterNotFound: {Name}")
        return {"Parameter": {"Name": Name, "Value": parameters[Name]}}

    client.get_parameter.side_effect = get_parameter
    return client


@pytest.fixture
def config_dir(tmp_path):
    directory = tmp_path / "config"
    directory.mkdir()
    (directory / "settings.yaml").write_text(
        "app:\n"
        "  name: demo\n"
        "  debug: false\n"
        "db:\n"
        "  host: localhost\n"
        "  password: /demo/db/password\n"
        "  api_key: /demo/api/key\n"
    )
    (directory / "settings.local.yaml").write_text("app:\n  debug: true\n")
    return directory


@pytest.mark.unit
class TestLoadOptions:
    """Tests for LoadOptions validation."""

    def test_files_coerced_to_tuple(self):
        assert LoadOptions(files=["a.yaml", "b.yaml"]).files == ("a.yaml", "b.yaml")

    def test_single_string_rejected(self):
        with pytest.raises(TypeError, match="sequence of filenames"):
            LoadOptions(files="settings.yaml")  # type: ignore[arg-type]

    def test_file_type_normalized(self):
        assert LoadOptions(files=[], file_type="YAML").file_type == "yaml"  # type: ignore[arg-type]

    def test_unknown_file_type(self):
        with pytest.raises(ValueError, match="Unsupported file_type"):
            LoadOptions(files=[], file_type="toml")  # type: ignore[arg-type]

    def test_max_concurrency_must_be_positive(self):
        with pytest.raises(ValueError, match="max_concurrency"):
            LoadOptions(files=[], max_concurrency=0)

    def test_from_mapping_camel_case(self):
        options = LoadOptions.from_mapping(
            {"rootDirectory": "./config", "files": ["a.json"], "fileType": "json", "maxConcurrency": 2}
        )
        assert options.root == "./config"
        assert options.files == ("a.json",)
        assert options.file_type == "json"
        assert options.max_concurrency == 2

    def test_from_mapping_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown load option"):
            LoadOptions.from_mapping({"files": [], "secretStore": "x"})

    def test_from_mapping_requires_files(self):
        with pytest.raises(ValueError, match="require 'files'"):
            LoadOptions.from_mapping({"root": "/etc/app"})


@pytest.mark.unit
class TestConfigLoader:
    """Tests for ConfigLoader.load."""

    @pytest.mark.asyncio
    async def test_merge_without_provider(self, config_dir):
        result = await ConfigLoader().load(LoadOptions(root=str(config_dir), files=["settings.yaml", "settings.local.yaml"]))
        assert result.data["app"] == {"name": "demo", "debug": True}
        assert result.data["db"]["password"] == "/demo/db/password"
        assert result.base_directory == config_dir
        assert result.loaded_files == (config_dir / "settings.yaml", config_dir / "settings.local.yaml")
        assert result.provider is None
        assert result.ok

    @pytest.mark.asyncio
    async def test_missing_files_yield_empty_tree(self, tmp_path):
        result = await ConfigLoader().load(LoadOptions(root=str(tmp_path), files=["nope.yaml"]))
        assert result.data == {}
        assert result.loaded_files == ()
        assert result.ok

    @pytest.mark.asyncio
    async def test_resolves_secrets_with_tag_and_client(self, config_dir):
        client = ssm_client({"/demo/db/password": "s3cret", "/demo/api/key": "k3y"})
        options = LoadOptions(
            root=str(config_dir),
            files=["settings.yaml"],
            provider="AwsParameterStoreProvider",
            client=client,
        )
        result = await ConfigLoader().load(options)
        assert result.data["db"] == {"host": "localhost", "password": "s3cret", "api_key": "k3y"}
        assert isinstance(result.provider, AwsParameterStoreProvider)
        assert result.unresolved_references() == []
        result.raise_for_failures()

    @pytest.mark.asyncio
    async def test_detects_provider_from_client(self, config_dir):
        client = ssm_client({"/demo/db/password": "s3cret", "/demo/api/key": "k3y"})
        result = await ConfigLoader().load(LoadOptions(root=str(config_dir), files=["settings.yaml"], client=client))
        assert result.data["db"]["password"] == "s3cret"

    @pytest.mark.asyncio
    async def test_partial_secret_failure(self, config_dir):
        client = ssm_client({"/demo/db/password": "s3cret"})
        result = await ConfigLoader().load(
            LoadOptions(root=str(config_dir), files=["settings.yaml"], provider="ssm", client=client)
        )
        assert result.data["db"]["password"] == "s3cret"
        assert result.data["db"]["api_key"] == "/demo/api/key"
        assert not result.ok
        assert [d.path for d in result.failures] == ["db.api_key"]
        assert result.unresolved_references() == ["db.api_key"]

        with pytest.raises(SecretResolutionError) as exc_info:
            result.raise_for_failures()
        assert exc_info.value.paths == ["db.api_key"]
        assert "ParameterNotFound" in str(exc_info.value.errors[0])

    @pytest.mark.asyncio
    async def test_unrecognized_client_skips_resolution(self, config_dir):
        result = await ConfigLoader().load(
            LoadOptions(root=str(config_dir), files=["settings.yaml"], client=MagicMock(spec=["fetch"]))
        )
        assert result.data["db"]["password"] == "/demo/db/password"
        assert result.provider is None
        assert [d.stage for d in result.diagnostics if d.is_problem] == [LoadStage.RESOLVE_PROVIDER]

    @pytest.mark.asyncio
    async def test_malformed_file_recorded(self, config_dir):
        (config_dir / "broken.json").write_text("{not json")
        result = await ConfigLoader().load(LoadOptions(root=str(config_dir), files=["settings.yaml", "broken.json"]))
        assert result.data["app"]["name"] == "demo"
        errors = [d for d in result.diagnostics if d.level == logging.ERROR]
        assert len(errors) == 1
        assert errors[0].stage is LoadStage.MERGE_FILES

    @pytest.mark.asyncio
    async def test_json_files(self, tmp_path):
        (tmp_path / "base.json").write_text(json.dumps({"a": {"b": 1, "c": 2}}))
        (tmp_path / "override.json").write_text(json.dumps({"a": {"c": 3}}))
        result = await ConfigLoader().load(
            LoadOptions(root=str(tmp_path), files=["base.json", "override.json"], file_type="json")
        )
        assert result.data == {"a": {"b": 1, "c": 3}}

    @pytest.mark.asyncio
    async def test_invalid_root_is_fatal(self):
        options = LoadOptions(root=42, files=["settings.yaml"])  # type: ignore[arg-type]
        with pytest.raises(BaseDirectoryError):
            await ConfigLoader().load(options)

    @pytest.mark.asyncio
    async def test_each_load_returns_fresh_tree(self, config_dir):
        loader = ConfigLoader()
        options = LoadOptions(root=str(config_dir), files=["settings.yaml"])
        first = await loader.load(options)
        first.data["app"]["name"] = "mutated"
        second = await loader.load(options)
        assert second.data["app"]["name"] == "demo"

    @pytest.mark.asyncio
    async def test_load_provider(self):
        client = ssm_client({})
        provider = await ConfigLoader().load_provider(LoadOptions(files=[], client=client))
        assert isinstance(provider, AwsParameterStoreProvider)
        assert provider.client is client

    @pytest.mark.asyncio
    async def test_create_config_factory(self, config_dir):
        factory = ConfigLoader().create_config_factory(LoadOptions(root=str(config_dir), files=["settings.yaml"]))
        data = await factory()
        assert data["app"]["name"] == "demo"
        assert (await factory()) is not data

    @pytest.mark.asyncio
    async def test_logs_summary(self, config_dir, caplog):
        loader = ConfigLoader(logger=logging.getLogger("test.loader"))
        with caplog.at_level(logging.INFO, logger="test.loader"):
            await loader.load(LoadOptions(root=str(config_dir), files=["settings.yaml", "missing.yaml"]))
        assert any("Loaded configuration from 1/2 file(s)" in r.getMessage() for r in caplog.records)


@pytest.mark.unit
class TestLoadFunction:
    """Tests for the module-level load()."""

    def test_sync_call(self, config_dir):
        result = load(root=str(config_dir), files=["settings.yaml", "settings.local.yaml"])
        assert isinstance(result, ResolvedConfig)
        assert result.data["app"]["debug"] is True

    def test_sync_call_with_options(self, config_dir):
        result = load(LoadOptions(root=str(config_dir), files=["settings.yaml"]))
        assert result.data["app"]["debug"] is False

    @pytest.mark.asyncio
    async def test_async_call(self, config_dir):
        result = await load(root=str(config_dir), files=["settings.yaml"])
        assert result.data["db"]["host"] == "localhost"

    def test_options_and_kwargs_conflict(self, config_dir):
        with pytest.raises(TypeError, match="not both"):
            load(LoadOptions(files=[]), root=str(config_dir))
