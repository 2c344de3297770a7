import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from api_discovery.cli import main

FIXTURES = Path(__file__).parent / "fixtures"


class TestCliInspect:
    def test_inspect_yaml(self):
        runner = CliRunner()
        result = runner.invoke(main, [
            "--server-url", "https://api.example.com/",
            "inspect", str(FIXTURES / "library_v1.json"),
        ])

        assert result.exit_code == 0
        data = yaml.safe_load(result.output)
        assert data["name"] == "library"
        assert data["discovery_version"] == "1.0"
        assert data["base_uri"] == "https://api.example.com/library/v1/"
        assert data["resources"]["shelves"]["resources"]["volumes"]["methods"] == ["list"]
        assert data["schemas"] == ["Book", "Shelf", "Shelves"]

    def test_inspect_json_v03(self):
        runner = CliRunner()
        result = runner.invoke(main, [
            "inspect", str(FIXTURES / "buzz_v03.json"), "--format", "json",
        ])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["discovery_version"] == "0.3"
        assert data["features"] == ["dataWrapper"]
        assert data["schemas"] == []

    def test_server_url_from_env(self):
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["inspect", str(FIXTURES / "library_v1.json"), "--format", "json"],
            env={"DISCOVERY_SERVER_URL": "https://env.example.com"},
        )

        assert result.exit_code == 0
        assert json.loads(result.output)["base_uri"] == "https://env.example.com/library/v1/"

    def test_forced_version_mismatch_fails(self):
        runner = CliRunner()
        result = runner.invoke(main, [
            "--discovery-version", "0.3",
            "inspect", str(FIXTURES / "library_v1.json"),
        ])

        assert result.exit_code == 1
        assert "restBasePath" in result.output


class TestCliMethod:
    def test_nested_method(self):
        runner = CliRunner()
        result = runner.invoke(main, [
            "--server-url", "https://api.example.com",
            "method", str(FIXTURES / "library_v1.json"), "shelves.volumes", "list", "--format", "json",
        ])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["rpc_name"] == "library.shelves.volumes.list"
        assert data["uri"] == "https://api.example.com/library/v1/shelves/{shelf}/volumes"

    def test_unknown_method(self):
        runner = CliRunner()
        result = runner.invoke(main, [
            "method", str(FIXTURES / "library_v1.json"), "books", "delete",
        ])

        assert result.exit_code == 1
        assert "delete" in result.output


class TestCliSchemas:
    def test_lists_references(self):
        runner = CliRunner()
        result = runner.invoke(main, ["schemas", str(FIXTURES / "library_v1.json")])

        assert result.exit_code == 0
        assert "Shelves: Shelf, Shelves" in result.output
        assert "Resolved 3 schemas." in result.output

    def test_unknown_reference_fails(self):
        runner = CliRunner()
        result = runner.invoke(main, ["schemas", str(FIXTURES / "broken_schemas.json")])

        assert result.exit_code == 1
        assert "Person" in result.output
