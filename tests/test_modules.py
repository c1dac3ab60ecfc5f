"""
Tests for module imports (get ... from ...).
"""

import pytest
import textwrap

from pidgin import run, run_file, PidginConfig, ModuleLoader, Environment
from pidgin.errors import (
    ExportVisibilityError, ModuleNotFoundError as PidginModuleNotFoundError,
    NameNotFoundError, CircularImportError, SourceReadError,
    NameError as PidginNameError,
)


def write(path, source):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(source), encoding="utf-8")
    return path


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run each test from an empty temporary directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestImports:
    """Test importing exported names."""

    def test_import_value_and_function(self, workdir):
        write(workdir / "M.pg", """
            let Alpha = 42;
            let total = 7;
            function Double(x) { return x * 2; }
        """)
        result = run("get Alpha from M; get Double from M; print Double(Alpha);")
        assert result.success, result.error_message
        assert result.output == "84\n"

    def test_import_list(self, workdir):
        write(workdir / "shapes.pg", """
            let Pi = 3.5;
            function Area(r) { return Pi * r * r; }
        """)
        result = run("get {Pi, Area} from shapes; print Pi; print Area(2);")
        assert result.output == "3.5\n14\n"

    def test_arrow_separator_and_extension(self, workdir):
        write(workdir / "M.pg", "let Alpha = 1;")
        assert run("get Alpha <- M.pg; print Alpha;").output == "1\n"

    def test_private_name_is_not_exported(self, workdir):
        write(workdir / "M.pg", "let total = 7;")
        result = run("get total from M;")
        assert isinstance(result.error, ExportVisibilityError)
        assert result.error.name == "total"

    def test_missing_name(self, workdir):
        write(workdir / "M.pg", "let Alpha = 1;")
        result = run("get Beta from M;")
        err = result.error
        assert isinstance(err, NameNotFoundError)
        assert err.name == "Beta"
        assert err.module == "M"

    def test_only_requested_names_are_imported(self, workdir):
        write(workdir / "M.pg", "let Alpha = 1; let Beta = 2;")
        result = run("get Alpha from M; print Beta;")
        assert isinstance(result.error, PidginNameError)

    def test_module_output_is_shared(self, workdir):
        """Statements in a module run when it is imported."""
        write(workdir / "M.pg", 'print "loading"; let Alpha = 1;')
        assert run("get Alpha from M; print Alpha;").output == "loading\n1\n"

    def test_no_caching(self, workdir):
        write(workdir / "M.pg", 'print "loading"; let Alpha = 1;')
        result = run("get Alpha from M; get Alpha from M;")
        assert result.output == "loading\nloading\n"

    def test_function_keeps_module_scope(self, workdir):
        """An imported function still sees its module's private names."""
        write(workdir / "counter.pg", """
            let step = 10;
            function Next(n) { return n + step; }
        """)
        result = run("let step = 1; get Next from counter; print Next(5);")
        assert result.output == "15\n"

    def test_examples_directory_is_searched(self, workdir):
        write(workdir / "examples" / "util.pg", 'let Greeting = "hi";')
        assert run("get Greeting from util; print Greeting;").output == "hi\n"

    def test_dotted_path(self, workdir):
        write(workdir / "lib.math.pg", "let One = 1;")
        assert run("get One from lib.math; print One;").output == "1\n"

    def test_nested_imports(self, workdir):
        write(workdir / "base.pg", "let Base = 2;")
        write(workdir / "mid.pg", "get Base from base; let Mid = Base * 3;")
        assert run("get Mid from mid; print Mid;").output == "6\n"


class TestModuleErrors:
    """Test module resolution failures."""

    def test_module_not_found(self, workdir):
        result = run("get X from missing.pg;")
        err = result.error
        assert isinstance(err, PidginModuleNotFoundError)
        assert err.path == "missing.pg"
        assert err.attempted == ["missing.pg", "examples/missing.pg"]
        assert "missing.pg" in result.error_message
        assert "examples/missing.pg" in result.error_message

    def test_circular_import(self, workdir):
        write(workdir / "a.pg", "get B from b; let A = 1;")
        write(workdir / "b.pg", "get A from a; let B = 2;")
        result = run("get A from a;")
        assert isinstance(result.error, CircularImportError)

    def test_module_that_is_not_utf8(self, workdir):
        (workdir / "Bad.pg").write_bytes(b"let X = 1;\n\xff\xfe")
        result = run("get X from Bad;")
        err = result.error
        assert isinstance(err, SourceReadError)
        assert err.code == "E505"
        assert err.path == "Bad.pg"
        assert "not valid UTF-8" in result.error_message
        assert result.error_message.startswith("1:1:")

    def test_main_file_that_is_not_utf8(self, workdir):
        path = workdir / "main.pg"
        path.write_bytes(b"print \"\xe9\";")
        result = run_file(path)
        assert not result.success
        assert isinstance(result.error, SourceReadError)
        assert result.output == ""

    def test_error_inside_module_names_the_module(self, workdir):
        write(workdir / "bad.pg", "let X = 1;\nlet Y = X + nil;")
        result = run("get X from bad;")
        message = result.error_message
        assert message.startswith("bad.pg:2:11:")
        assert "let Y = X + nil;" in message


class TestModuleLoader:
    """Test the loader directly."""

    def test_custom_search_paths(self, workdir):
        write(workdir / "lib" / "tools.pg", "let Tool = 5;")
        config = PidginConfig(search_paths=["lib"])
        result = run("get Tool from tools; print Tool;", config=config)
        assert result.output == "5\n"

    def test_candidates(self):
        loader = ModuleLoader(PidginConfig(search_paths=[".", "lib"]))
        names = [str(p) for p in loader.candidates("util")]
        assert names == ["util.pg", "lib/util.pg"]

    def test_load_into_environment(self, workdir):
        write(workdir / "M.pg", "let Alpha = 3;")
        env = Environment()
        ModuleLoader().load(["Alpha"], "M", env)
        assert env.get("Alpha").data == 3.0
        assert "Alpha" in env

    def test_run_file_imports_relative_to_working_directory(self, workdir):
        write(workdir / "M.pg", "let Alpha = 1;")
        main = write(workdir / "main.pg", "get Alpha from M;\nprint Alpha + 1;")
        result = run_file(main)
        assert result.success
        assert result.output == "2\n"
