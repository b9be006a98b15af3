import json
from pathlib import Path
from unittest.mock import patch

import yaml
from click.testing import CliRunner

from wadlgen.cli import main
from wadlgen.generator.code import CompilationResult
from wadlgen.generator.errors import UnknownTypeError

FIXTURES = Path(__file__).parent / "fixtures"
SAMPLE = str(FIXTURES / "sample.wadl")


class TestCliAst:
    def test_yaml(self):
        result = CliRunner().invoke(main, ["ast", SAMPLE])
        assert result.exit_code == 0
        data = yaml.safe_load(result.output)
        assert data["resources"][0]["base"] == "https://api.example.com/1.0/"
        assert [rt["id"] for rt in data["resource_types"]] == ["people", "person"]

    def test_json(self):
        result = CliRunner().invoke(main, ["ast", SAMPLE, "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["representations"][0]["id"] == "person-full"

    def test_parse_error(self, tmp_path):
        bad = tmp_path / "bad.wadl"
        bad.write_text("<application><resources></application>")
        result = CliRunner().invoke(main, ["ast", str(bad)])
        assert result.exit_code == 1
        assert "XML error" in result.output

    def test_missing_file(self):
        result = CliRunner().invoke(main, ["ast", "missing.wadl"])
        assert result.exit_code == 2


class TestCliCompile:
    def test_to_stdout(self):
        result = CliRunner().invoke(main, ["compile", SAMPLE])
        assert result.exit_code == 0
        assert "class People(_runtime.Resource):" in result.output

    def test_to_file(self, tmp_path):
        output = tmp_path / "out" / "people.py"
        result = CliRunner().invoke(main, ["compile", SAMPLE, "-o", str(output), "--check"])
        assert result.exit_code == 0
        assert output.exists()
        assert "class PersonFull(_runtime.Representation):" in output.read_text()
        assert f"Client saved to {output}" in result.output

    def test_async_flag(self):
        result = CliRunner().invoke(main, ["compile", SAMPLE, "--async"])
        assert result.exit_code == 0
        assert "async def find(" in result.output

    def test_config_file(self, tmp_path):
        config = tmp_path / "wadlgen.yaml"
        config.write_text("private: [find]\n")
        result = CliRunner().invoke(main, ["compile", SAMPLE, "--config", str(config)])
        assert result.exit_code == 0
        assert "def _find(" in result.output

    def test_invalid_config(self, tmp_path):
        config = tmp_path / "wadlgen.yaml"
        config.write_text("unknown: 1\n")
        result = CliRunner().invoke(main, ["compile", SAMPLE, "--config", str(config)])
        assert result.exit_code == 1
        assert "invalid configuration" in result.output

    def test_compilation_errors(self, tmp_path):
        wadl = tmp_path / "broken.wadl"
        wadl.write_text(
            '<application xmlns="http://wadl.dev.java.net/2009/02">'
            '<representation id="thing" mediaType="application/json">'
            '<param name="size" style="plain" type="xsd:decimal"/>'
            "</representation></application>"
        )
        output = tmp_path / "broken.py"
        result = CliRunner().invoke(main, ["compile", str(wadl), "-o", str(output)])
        assert result.exit_code == 1
        assert "error: unknown scalar type" in result.output
        assert "1 compilation error(s)" in result.output
        assert not output.exists()

    def test_parse_warnings_counted(self, tmp_path):
        wadl = tmp_path / "statuses.wadl"
        wadl.write_text(
            '<application xmlns="http://wadl.dev.java.net/2009/02">'
            '<resource_type id="t"><method name="GET"><response status="200 201"/></method></resource_type>'
            "</application>"
        )
        result = CliRunner().invoke(main, ["compile", str(wadl)])
        assert result.exit_code == 0
        assert "1 warning(s)" in result.output

    @patch("wadlgen.cli.CodeGenerator")
    def test_check_rejects_invalid_source(self, MockGen):
        MockGen.return_value.compile.return_value = CompilationResult(
            fragments=["def broken(\n"], errors=[], warnings=[]
        )
        result = CliRunner().invoke(main, ["compile", SAMPLE, "--check"])
        assert result.exit_code == 1
        assert "sample.py: SyntaxError" in result.output

    @patch("wadlgen.cli.CodeGenerator")
    def test_warnings_reported(self, MockGen):
        MockGen.return_value.compile.return_value = CompilationResult(
            fragments=["x = 1\n"], errors=[], warnings=["one", "two"]
        )
        result = CliRunner().invoke(main, ["compile", SAMPLE])
        assert result.exit_code == 0
        assert "2 warning(s)" in result.output

    @patch("wadlgen.cli.CodeGenerator")
    def test_errors_from_result(self, MockGen):
        MockGen.return_value.compile.return_value = CompilationResult(
            fragments=[], errors=[UnknownTypeError("unknown scalar type", type_name="xsd:foo")], warnings=[]
        )
        result = CliRunner().invoke(main, ["compile", SAMPLE])
        assert result.exit_code == 1
        assert "type 'xsd:foo'" in result.output
