"""Tests for the CLI main module."""

import argparse
import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from xml_slot_merge.cli.main import (
    create_argument_parser,
    load_config,
    main,
    parse_fragment_option,
    resolve_logging_level,
)
from xml_slot_merge.shared import MergeConfig

HOST_POM = """<project>
    <build><plugins><?MAVEN_PLUGIN_CONFIG?></plugins></build>
    <?DOCKER_PLUGIN_ENV_VARS?>
    <?DATASOURCES_FEATURE_PACK?>
</project>
"""


@pytest.fixture
def host(tmp_path):
    path = tmp_path / "pom.xml"
    path.write_text(HOST_POM, encoding="utf-8")
    return path


@pytest.fixture
def fragment(tmp_path):
    path = tmp_path / "plugin.xml"
    path.write_text("<server-config><plugin/></server-config>", encoding="utf-8")
    return path


class TestArgumentParser:
    """Test argument parsing."""

    def test_fragment_option(self):
        assert parse_fragment_option("SLOT=a/b.xml") == ("SLOT", Path("a/b.xml"))

        with pytest.raises(argparse.ArgumentTypeError):
            parse_fragment_option("SLOT")
        with pytest.raises(argparse.ArgumentTypeError):
            parse_fragment_option("=file.xml")

    def test_merge_arguments(self):
        parser = create_argument_parser()
        args = parser.parse_args(
            ["merge", "pom.xml", "-f", "A=one.xml", "-f", "A=two.xml", "--compact"]
        )

        assert args.command == "merge"
        assert args.host == Path("pom.xml")
        assert args.fragments == [("A", Path("one.xml")), ("A", Path("two.xml"))]
        assert args.fragment_root == "server-config"
        assert args.compact is True

    def test_invalid_fragment_is_a_usage_error(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["merge", "pom.xml", "-f", "no-separator"])

        assert exc_info.value.code == 2

    def test_load_config(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"serializer": {"indent": "\t"}}), encoding="utf-8")
        args = create_argument_parser().parse_args(
            ["merge", "pom.xml", "--config", str(config_path), "--compact"]
        )

        config = load_config(args)

        assert config.serializer.indent == ""
        assert config.serializer.xml_declaration is False


class TestMain:
    """Test command execution."""

    def test_no_command(self, capsys):
        assert main([]) == 1

    def test_slots_text(self, capsys):
        assert main(["slots"]) == 0

        output = capsys.readouterr().out
        assert "<?MAVEN_PLUGIN_CONFIG?>" in output
        assert "<?DATASOURCES_FEATURE_PACK?>" in output

    def test_slots_json(self, capsys):
        assert main(["slots", "--format", "json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert [slot["name"] for slot in data] == [
            "MAVEN_PLUGIN_CONFIG",
            "DOCKER_PLUGIN_ENV_VARS",
            "DATASOURCES_FEATURE_PACK",
        ]
        assert all(slot["required"] for slot in data)

    def test_check_valid_host(self, host, capsys):
        assert main(["check", str(host), "--format", "json"]) == 0

        result = json.loads(capsys.readouterr().out)
        assert result["valid"] is True
        assert result["root"] == "project"
        assert result["slots"] == [
            "MAVEN_PLUGIN_CONFIG",
            "DOCKER_PLUGIN_ENV_VARS",
            "DATASOURCES_FEATURE_PACK",
        ]

    def test_check_missing_slots(self, tmp_path, capsys):
        path = tmp_path / "pom.xml"
        path.write_text("<project><?MAVEN_PLUGIN_CONFIG?></project>", encoding="utf-8")

        assert main(["check", str(path), "--format", "json"]) == 1

        result = json.loads(capsys.readouterr().out)
        assert result["valid"] is False
        assert result["missing"] == ["DOCKER_PLUGIN_ENV_VARS", "DATASOURCES_FEATURE_PACK"]

    def test_check_text_output(self, tmp_path, capsys):
        path = tmp_path / "pom.xml"
        path.write_text("<project><?UNKNOWN_PI?></project>", encoding="utf-8")

        assert main(["check", str(path)]) == 1

        output = capsys.readouterr().out
        assert "Unknown processing instruction <?UNKNOWN_PI?>" in output

    def test_merge_to_file(self, host, fragment, tmp_path, capsys):
        output = tmp_path / "out.xml"

        exit_code = main([
            "merge", str(host),
            "-f", f"MAVEN_PLUGIN_CONFIG={fragment}",
            "-o", str(output),
            "--compact",
        ])

        assert exit_code == 0
        assert output.read_text(encoding="utf-8") == (
            "<project><build><plugins><plugin/></plugins></build></project>"
        )
        assert "Merged 1 fragments" in capsys.readouterr().err

    def test_merge_to_stdout(self, host, fragment, capsys):
        exit_code = main([
            "--quiet", "merge", str(host), "-f", f"MAVEN_PLUGIN_CONFIG={fragment}", "--compact",
        ])

        assert exit_code == 0
        captured = capsys.readouterr()
        assert captured.out == "<project><build><plugins><plugin/></plugins></build></project>"
        assert captured.err == ""

    def test_merge_custom_fragment_root(self, host, tmp_path):
        fragment = tmp_path / "plugin.xml"
        fragment.write_text("<f><plugin/></f>", encoding="utf-8")
        output = tmp_path / "out.xml"

        exit_code = main([
            "merge", str(host), "-f", f"MAVEN_PLUGIN_CONFIG={fragment}",
            "--fragment-root", "f", "-o", str(output),
        ])

        assert exit_code == 0
        assert "<plugin/>" in output.read_text(encoding="utf-8")

    def test_merge_unknown_slot(self, host, fragment, tmp_path, capsys):
        exit_code = main([
            "merge", str(host), "-f", f"NOT_A_SLOT={fragment}", "-o", str(tmp_path / "out.xml"),
        ])

        assert exit_code == 1
        assert "<?NOT_A_SLOT?>" in capsys.readouterr().err

    def test_merge_bad_config(self, host, tmp_path, capsys):
        config_path = tmp_path / "config.json"
        config_path.write_text('{"colour": "red"}', encoding="utf-8")

        exit_code = main(["merge", str(host), "--config", str(config_path)])

        assert exit_code == 1
        assert "Error loading configuration" in capsys.readouterr().err

    def test_default_config(self):
        args = create_argument_parser().parse_args(["merge", "pom.xml"])

        assert load_config(args) == MergeConfig()


class TestLoggingLevel:
    """Test how the logging level is chosen."""

    def test_flags_win_over_config(self):
        config = MergeConfig(logging_level="DEBUG")
        parser = create_argument_parser()

        assert resolve_logging_level(parser.parse_args(["-q", "slots"]), config) == logging.ERROR
        assert resolve_logging_level(parser.parse_args(["-v", "slots"]), config) == logging.DEBUG
        assert resolve_logging_level(parser.parse_args(["slots"]), config) == "DEBUG"
        assert resolve_logging_level(parser.parse_args(["slots"])) == logging.WARNING

    @patch("xml_slot_merge.cli.main.configure_logging")
    def test_config_file_level_is_applied(self, mock_configure, host, fragment, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"logging_level": "ERROR"}), encoding="utf-8")

        exit_code = main([
            "merge", str(host), "-f", f"MAVEN_PLUGIN_CONFIG={fragment}",
            "--config", str(config_path), "-o", str(tmp_path / "out.xml"),
        ])

        assert exit_code == 0
        mock_configure.assert_called_once_with("ERROR")

    @patch("xml_slot_merge.cli.main.configure_logging")
    def test_default_level_without_config(self, mock_configure):
        assert main(["slots"]) == 0

        mock_configure.assert_called_once_with(logging.WARNING)
