"""
Tests for the tokenlens command line interface.

Commands run in-process through main(argv) against a temp project that uses
the bundled dataset.
"""

from __future__ import annotations

import pytest

from .. import __version__
from ..cli import create_parser, main


@pytest.fixture
def project(write_file, tmp_path):
    """A project with a settings file and one configured stylesheet."""
    write_file("tokenlens.yaml", """
        sources:
          - type: css
            path: styles/brand.css
        enable_auto_scan: false
    """)
    write_file("styles/brand.css", """
        :root {
          --ant-color-primary: #ff5500;
          --brand-spacing-size: 10px;
        }
    """)
    write_file("src/app.css", """
        .button {
          color: var(--ant-color-primary);
          /* margin: var(--commented-out); */
          padding: var(--brand-spacing-size, 4px);
          border-color: var(--no-such-token);
        }
    """)
    return tmp_path


def run(project, *args: str) -> int:
    return main(["--root", str(project), "--no-color", *args])


class TestParser:
    def test_version_matches_package(self, capsys):
        with pytest.raises(SystemExit) as exc:
            create_parser().parse_args(["--version"])

        assert exc.value.code == 0
        assert capsys.readouterr().out.strip() == f"tokenlens {__version__}"

    def test_commands_are_registered(self):
        parser = create_parser()
        for argv in (
            ["list"],
            ["search", "primary"],
            ["get", "--ant-color-primary"],
            ["scan", "a.css"],
            ["sources"],
            ["watch"],
        ):
            assert parser.parse_args(argv).command == argv[0]

    def test_get_accepts_dashed_token_name(self):
        args = create_parser().parse_args(["get", "--ant-color-primary"])
        assert args.name == "--ant-color-primary"

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage: tokenlens" in capsys.readouterr().out


class TestCommands:
    def test_list(self, project, capsys):
        assert run(project, "list", "--category", "color") == 0
        out = capsys.readouterr().out

        assert "--ant-color-primary" in out
        assert "#ff5500" in out
        assert "--ant-font-size " not in out

    def test_list_dark(self, project, capsys):
        assert run(project, "list", "--theme", "dark") == 0
        out = capsys.readouterr().out
        assert "Dark tokens" in out
        assert "#1677ff" in out

    def test_search(self, project, capsys):
        assert run(project, "search", "spacing") == 0
        assert "--brand-spacing-size" in capsys.readouterr().out

    def test_search_no_results(self, project, capsys):
        assert run(project, "search", "zzzz-nothing") == 1
        assert "No tokens match" in capsys.readouterr().out

    def test_get(self, project, capsys):
        assert run(project, "get", "--ant-color-primary") == 0
        out = capsys.readouterr().out

        assert "#ff5500" in out
        assert "Brand color" in out
        assert "builtin (priority 100)" in out
        assert "stylesheet:" in out

    def test_get_without_prefix(self, project, capsys):
        assert run(project, "get", "ant-color-primary") == 0
        assert "#ff5500" in capsys.readouterr().out

    def test_get_unknown(self, project, capsys):
        assert run(project, "get", "--no-such-token") == 1
        assert "Unknown token" in capsys.readouterr().out

    def test_scan(self, project, capsys):
        assert run(project, "scan", str(project / "src/app.css")) == 0
        out = capsys.readouterr().out

        assert "3:10 --ant-color-primary" in out
        assert "--commented-out" not in out
        assert "fallback 4px" in out
        assert "3 references, 1 unknown" in out

    def test_scan_unknown_only(self, project, capsys):
        assert run(project, "scan", "--unknown", str(project / "src/app.css")) == 1
        out = capsys.readouterr().out

        assert "--no-such-token" in out
        assert "--ant-color-primary" not in out

    def test_scan_missing_file(self, project, capsys):
        assert run(project, "scan", str(project / "missing.css")) == 1

    def test_sources(self, project, capsys):
        assert run(project, "sources") == 0
        out = capsys.readouterr().out

        assert "Bundled Ant Design tokens" in out
        assert "Stylesheet: brand.css" in out


class TestErrors:
    def test_invalid_settings(self, write_file, tmp_path, capsys):
        write_file("tokenlens.yaml", "sources:\n  - type: json\n")
        assert main(["--root", str(tmp_path), "--no-color", "sources"]) == 1
        assert "Invalid settings" in capsys.readouterr().out

    def test_missing_config_file(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "nope.yaml"), "--no-color", "sources"]) == 1
        assert "Settings file not found" in capsys.readouterr().out
