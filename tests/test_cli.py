#=============================================================================
# File        : tests/test_cli.py
# Project     : TrackObjects v1.0
# Component   : CLI Test Suite
# Description : check and run commands, exit codes
# Version     : 1.0.0
# Created     : 2025-09-02
#=============================================================================

import json
import os
import sys
import textwrap

import pytest

from trackobjects import core
from trackobjects.cli import create_parser, main, resolve_predicate
from trackobjects.config import ConfigurationError


@pytest.fixture(autouse=True)
def isolated_process_state(monkeypatch, fresh_default_tracker):
    for name in ("TRACKOBJECTS", "TRACKOBJECTS_VERBOSE",
                 "TRACKOBJECTS_NOEND", "TRACKOBJECTS_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(sys, "argv", list(sys.argv))
    monkeypatch.setattr(sys, "path", list(sys.path))


def write_script(tmp_path, body):
    script = tmp_path / "app.py"
    script.write_text(textwrap.dedent(body))
    return script


class TestParser:

    def test_run_collects_script_arguments(self):
        args = create_parser().parse_args(
            ["run", "-c", "/^app/", "--verbose", "server.py", "--port", "8080"])
        assert args.conditions == ["/^app/"]
        assert args.verbose
        assert args.target == "server.py"
        assert args.args == ["--port", "8080"]

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out


class TestCheck:
    """trackobjects check"""

    def test_text(self, capsys):
        assert main(["check", "-c", "Foo", "-c", "/^Bar/", "--no-end"]) == 0
        out = capsys.readouterr().out
        assert "Conditions: 2" in out
        assert "literal" in out and "/^Bar/" in out
        assert "Options: -noend" in out

    def test_no_conditions(self, capsys):
        assert main(["check"]) == 0
        assert "would not be installed" in capsys.readouterr().out

    def test_json(self, capsys):
        assert main(["check", "-c", "/^Bar/", "-p", "os.path:isabs", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["conditions"] == [
            {"kind": "pattern", "value": "/^Bar/"},
            {"kind": "predicate", "value": f"{os.path.isabs.__module__}:isabs"},
        ]
        assert data["verbose"] is False

    def test_environment_applies(self, monkeypatch, capsys):
        monkeypatch.setenv("TRACKOBJECTS", "Foo -verbose")
        assert main(["check", "-c", "Bar", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [c["value"] for c in data["conditions"]] == ["Foo", "Bar"]
        assert data["verbose"] is True

    def test_invalid_pattern(self, capsys):
        assert main(["check", "-c", "/(oops/"]) == 1
        assert "Invalid tracking configuration" in capsys.readouterr().err


class TestResolvePredicate:

    def test_resolves(self):
        assert resolve_predicate("os.path:isabs") is os.path.isabs

    @pytest.mark.parametrize("ref", ["nomodule", "os.path:", "no_such_mod_xyz:f",
                                     "os.path:no_such_func", "os:sep"])
    def test_rejects(self, ref):
        with pytest.raises(ConfigurationError):
            resolve_predicate(ref)


class TestRun:
    """trackobjects run"""

    def test_reports_leaked_objects(self, tmp_path, capsys):
        script = write_script(tmp_path, """
            import trackobjects

            class Conn:
                pass

            pool = [Conn(), Conn()]
            trackobjects.show_tracked_compact(" script")
        """)
        assert main(["run", "-c", "/Conn$/", "--no-end", str(script)]) == 0
        assert "LEAK script >> __main__.Conn=2 --" in capsys.readouterr().err
        assert core.get_tracker().is_armed

    def test_script_arguments(self, tmp_path, capsys):
        script = write_script(tmp_path, """
            import sys
            print(sys.argv[1:])
        """)
        assert main(["run", "-c", "Foo", "--no-end", str(script), "a", "b"]) == 0
        assert "['a', 'b']" in capsys.readouterr().out

    def test_exit_code_propagates(self, tmp_path):
        script = write_script(tmp_path, """
            import sys
            sys.exit(3)
        """)
        assert main(["run", "-c", "Foo", "--no-end", str(script)]) == 3

    def test_nothing_to_run(self, capsys):
        assert main(["run", "-c", "Foo"]) == 2
        assert "Nothing to run" in capsys.readouterr().err

    def test_bad_predicate(self, tmp_path, capsys):
        script = write_script(tmp_path, "pass\n")
        assert main(["run", "-p", "no_such_mod_xyz:f", str(script)]) == 1
        assert "Invalid tracking configuration" in capsys.readouterr().err
        assert not core.get_tracker().is_armed
