"""Tests for the owl2step command line interface."""

from __future__ import annotations

from unittest.mock import patch

import orjson
import pytest
from typer.testing import CliRunner

from owl2step.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def keep_test_logging():
    """Keep the capturing logger configured by the test suite."""
    with patch("owl2step.cli.configure_logging") as mock_configure:
        yield mock_configure


class TestConvertCommand:
    """Test cases for the convert command."""

    def test_convert_to_file(self, wall_model_file, wall_model_step, schema_dir, temp_dir):
        """Test writing the STEP file to an output path."""
        output = temp_dir / "walls.ifc"
        result = runner.invoke(
            app, ["convert", str(wall_model_file), "-o", str(output), "--schema-dir", str(schema_dir)]
        )

        assert result.exit_code == 0
        assert output.read_text(encoding="utf-8") == wall_model_step

    def test_convert_to_stdout(self, wall_model_file, schema_dir):
        """Test writing the STEP text to stdout."""
        result = runner.invoke(app, ["convert", str(wall_model_file), "--schema-dir", str(schema_dir)])

        assert result.exit_code == 0
        assert "ISO-10303-21;" in result.output
        assert "#12= IFCWALL('Wall-1',$,#7);" in result.output

    def test_convert_writes_report(self, wall_model_file, schema_dir, temp_dir):
        """Test the JSON report option."""
        report_path = temp_dir / "report.json"
        result = runner.invoke(app, [
            "convert", str(wall_model_file),
            "-o", str(temp_dir / "walls.ifc"),
            "--schema-dir", str(schema_dir),
            "--report", str(report_path),
        ])

        assert result.exit_code == 0
        report = orjson.loads(report_path.read_bytes())
        assert report["schema_version"] == "IFC4"
        assert report["instance_count"] == 2

    def test_convert_missing_schema_dir(self, wall_model_file, temp_dir):
        """Test that a missing schema directory fails the command."""
        output = temp_dir / "walls.ifc"
        result = runner.invoke(
            app, ["convert", str(wall_model_file), "-o", str(output), "--schema-dir", str(temp_dir / "none")]
        )

        assert result.exit_code == 1
        assert not output.exists()

    def test_convert_strict_version(self, wall_model_file, schema_dir, temp_dir):
        """Test that a strict version mismatch fails the command."""
        result = runner.invoke(app, [
            "convert", str(wall_model_file),
            "-o", str(temp_dir / "walls.ifc"),
            "--schema-dir", str(schema_dir),
            "--schema-version", "IFC4_ADD2",
            "--strict-version",
        ])

        assert result.exit_code == 1

    def test_convert_verbose_logging(self, keep_test_logging, wall_model_file, schema_dir, temp_dir):
        """Test that verbose mode selects debug logging."""
        runner.invoke(app, [
            "convert", str(wall_model_file), "-o", str(temp_dir / "walls.ifc"),
            "--schema-dir", str(schema_dir), "-v",
        ])

        keep_test_logging.assert_called_once_with(level="DEBUG", enable_colors=True)


class TestSchemaCommands:
    """Test cases for version and schema commands."""

    def test_versions(self):
        """Test listing the known versions."""
        result = runner.invoke(app, ["versions"])
        assert result.exit_code == 0

    def test_detect(self, wall_model_file):
        """Test printing the declared version."""
        result = runner.invoke(app, ["detect", str(wall_model_file)])

        assert result.exit_code == 0
        assert "IFC4" in result.output

    def test_detect_undeclared(self, temp_dir, data_prefixes):
        """Test detection on a model without imports."""
        source = temp_dir / "bare.ttl"
        source.write_text(data_prefixes + "inst:IfcWall_1 a ifc:IfcWall .\n", encoding="utf-8")

        result = runner.invoke(app, ["detect", str(source)])
        assert result.exit_code == 1

    def test_compile_schema(self, schema_dir):
        """Test writing the compiled facts cache."""
        result = runner.invoke(app, ["compile-schema", "IFC4", "--schema-dir", str(schema_dir)])

        assert result.exit_code == 0
        assert (schema_dir / "IFC4.facts.json").is_file()

    def test_compile_schema_unknown_version(self, schema_dir):
        """Test an unknown version label."""
        result = runner.invoke(app, ["compile-schema", "IFC9", "--schema-dir", str(schema_dir)])
        assert result.exit_code == 1

    def test_schema_info(self, schema_dir):
        """Test displaying compiled schema counts."""
        result = runner.invoke(app, ["schema-info", "IFC4", "--schema-dir", str(schema_dir)])
        assert result.exit_code == 0
