import json
from pathlib import Path

from click.testing import CliRunner

from openapi_descriptors.cli import openapi_descriptors

TEST_DATA = Path(__file__).parent / "test_data"
PETSTORE = str(TEST_DATA / "petstore.json")


class TestCli:
    def test_json_output_file(self, tmp_path):
        output = tmp_path / "descriptors.json"
        result = CliRunner().invoke(openapi_descriptors, [PETSTORE, "-o", str(output)])
        assert result.exit_code == 0, result.output

        data = json.loads(output.read_text())
        assert data["handlers"][0]["operation_id"] == "listPets"
        assert data["conflicts"] == {"Task": "Api.Generated.Models.Task"}

    def test_text_report(self):
        result = CliRunner().invoke(openapi_descriptors, [PETSTORE, "--format", "text"])
        assert result.exit_code == 0
        assert "petstore" in result.output
        assert "Handlers: 4" in result.output

    def test_config_and_flags(self, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"project_name": "Shop", "policies": {"enable_cache": False}}))
        output = tmp_path / "out.json"
        result = CliRunner().invoke(
            openapi_descriptors,
            [PETSTORE, "-c", str(config), "--include-deprecated", "-o", str(output)],
        )
        assert result.exit_code == 0, result.output

        data = json.loads(output.read_text())
        assert data["cache_policies"] == {}
        assert len(data["handlers"]) == 5
        assert data["conflicts"] == {"Task": "Shop.Generated.Models.Task"}

    def test_invalid_document(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("[1, 2]")
        result = CliRunner().invoke(openapi_descriptors, [str(path)])
        assert result.exit_code != 0
        assert "mapping" in result.output

    def test_missing_file(self):
        result = CliRunner().invoke(openapi_descriptors, ["does-not-exist.json"])
        assert result.exit_code != 0

    def test_invalid_config(self, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"security": {"source": "bogus"}}))
        result = CliRunner().invoke(openapi_descriptors, [PETSTORE, "-c", str(config)])
        assert result.exit_code == 1
        assert "Error: Unknown security source 'bogus'" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)
