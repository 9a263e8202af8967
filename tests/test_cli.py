"""
Tests for the pluto command-line interface.
"""

import textwrap

import pytest
from pluto.__main__ import main, positive_int, MAX_ITERATIONS_ENV


@pytest.fixture
def script(tmp_path):
    """Write a Pluto script and return its path as a string."""
    def write(source: str, name: str = "script.pluto") -> str:
        path = tmp_path / name
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return str(path)
    return write


class TestRunCommand:
    """Test 'pluto run'."""

    def test_run_prints_output_and_result(self, script, capsys):
        """Test running a file that prints and returns a value."""
        path = script("""
            action double(x)
                result = x * 2
            end
            print("start")
            double(21)
        """)
        assert main(["run", path]) == 0
        assert capsys.readouterr().out == "start\n42\n"

    def test_absent_result_not_printed(self, script, capsys):
        """Test that an absent result prints nothing."""
        path = script("check (false) 1 end")
        assert main(["run", path]) == 0
        assert capsys.readouterr().out == ""

    def test_missing_file(self, tmp_path, capsys):
        """Test running a file that does not exist."""
        assert main(["run", str(tmp_path / "nope.pluto")]) == 1
        assert "Error: File not found" in capsys.readouterr().err

    def test_runtime_error(self, script, capsys):
        """Test that runtime errors go to stderr with the marker."""
        path = script("x = 1\nundefinedThing")
        assert main(["run", path]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.startswith("Pluto Error: ")
        assert "E401" in captured.err
        assert "script.pluto:2:1" in captured.err


class TestEvalCommand:
    """Test 'pluto eval'."""

    def test_eval_expression(self, capsys):
        """Test evaluating an inline expression."""
        assert main(["eval", "2 + 3 * 4"]) == 0
        assert capsys.readouterr().out == "14\n"

    def test_eval_prints_record(self, capsys):
        """Test the display of a record result."""
        code = "action f(a, b) sum = a + b prod = a * b end f(2, 3)"
        assert main(["eval", code]) == 0
        assert capsys.readouterr().out == "{sum: 5, prod: 6}\n"

    def test_eval_syntax_error(self, capsys):
        """Test a syntax error in inline code."""
        assert main(["eval", "x = "]) == 1
        err = capsys.readouterr().err
        assert "Pluto Error" in err
        assert "<eval>" in err


class TestCheckCommand:
    """Test 'pluto check'."""

    def test_check_ok(self, script, capsys):
        """Test checking a valid file."""
        path = script("x = 1\nprint(x)")
        assert main(["check", path]) == 0
        assert capsys.readouterr().out == "OK: script.pluto - 2 statement(s), no errors\n"

    def test_check_does_not_run(self, script, capsys):
        """Test that check never executes the program."""
        path = script('print("should not appear")\nmissing()')
        assert main(["check", path]) == 0
        assert "should not appear" not in capsys.readouterr().out

    def test_check_ast(self, script, capsys):
        """Test dumping the syntax tree."""
        path = script("x = 1 + 2")
        assert main(["check", path, "--ast"]) == 0
        out = capsys.readouterr().out
        assert "Program" in out
        assert "Assignment" in out

    def test_check_syntax_error(self, script, capsys):
        """Test checking a file with a syntax error."""
        path = script("each (x of xs) end")
        assert main(["check", path]) == 1
        assert "E101" in capsys.readouterr().err


class TestIterationOption:
    """Test --max-iterations and its environment fallback."""

    LOOP = "x = 0 as (x < 10) x = x + 1 end x"

    def test_default_ceiling(self, capsys, monkeypatch):
        """Test the default iteration ceiling."""
        monkeypatch.delenv(MAX_ITERATIONS_ENV, raising=False)
        assert main(["eval", self.LOOP]) == 0
        assert capsys.readouterr().out == "10\n"

    def test_flag(self, capsys):
        """Test lowering the ceiling with --max-iterations."""
        assert main(["--max-iterations", "5", "eval", self.LOOP]) == 1
        assert "E405" in capsys.readouterr().err

    def test_environment(self, capsys, monkeypatch):
        """Test the ceiling from the environment."""
        monkeypatch.setenv(MAX_ITERATIONS_ENV, "5")
        assert main(["eval", self.LOOP]) == 1
        assert "E405" in capsys.readouterr().err

    def test_flag_overrides_environment(self, capsys, monkeypatch):
        """Test that the flag wins over the environment."""
        monkeypatch.setenv(MAX_ITERATIONS_ENV, "5")
        assert main(["--max-iterations", "20", "eval", self.LOOP]) == 0

    def test_invalid_environment(self, capsys, monkeypatch):
        """Test an unparsable environment value."""
        monkeypatch.setenv(MAX_ITERATIONS_ENV, "lots")
        assert main(["eval", "1"]) == 1
        assert f"Error: {MAX_ITERATIONS_ENV}" in capsys.readouterr().err

    def test_invalid_flag(self, capsys):
        """Test that a zero ceiling is rejected by argparse."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--max-iterations", "0", "eval", "1"])
        assert exc_info.value.code == 2

    def test_positive_int(self):
        """Test the argparse type helper."""
        assert positive_int("3") == 3


class TestParserOptions:
    """Test top-level options."""

    def test_version(self, capsys):
        """Test --version output."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "pluto 0.1.0" in capsys.readouterr().out

    def test_command_required(self, capsys):
        """Test that a subcommand is required."""
        with pytest.raises(SystemExit):
            main([])
