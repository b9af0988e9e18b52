"""Tests for the command line interface."""

from typer.testing import CliRunner

from scriptag import __version__
from scriptag.cli import app, parse_assignments

runner = CliRunner()


def write(tmp_path, text, name="script.tpl"):
    path = tmp_path / name
    path.write_text(text)
    return str(path)


def test_parse_assignments():
    assert parse_assignments(["n=3", "s=hi", "l=[1, 2]", "e="]) == {
        "n": 3,
        "s": "hi",
        "l": [1, 2],
        "e": "",
    }


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_render(tmp_path):
    template = write(tmp_path, "#!/usr/bin/env python\nprint({name}, n)\n")
    result = runner.invoke(app, ["render", template, "-s", "name=hi", "-d", "n=3"])
    assert result.exit_code == 0, result.output
    assert result.output == 'n = 3\nprint("hi", n)\n'


def test_render_with_type(tmp_path):
    template = write(tmp_path, "echo {word}")
    result = runner.invoke(app, ["render", template, "-t", "sh", "-s", "word=a b"])
    assert result.exit_code == 0, result.output
    assert result.output == "echo 'a b'"


def test_render_to_file(tmp_path):
    template = write(tmp_path, "echo hi\n")
    output = tmp_path / "out.sh"
    result = runner.invoke(app, ["render", template, "-o", str(output)])
    assert result.exit_code == 0, result.output
    assert output.read_text() == "echo hi\n"


def test_render_unknown_type(tmp_path):
    template = write(tmp_path, "#!ruby\nputs 1\n")
    result = runner.invoke(app, ["render", template])
    assert result.exit_code == 1


def test_render_with_definitions(tmp_path):
    definitions = write(
        tmp_path,
        "types:\n  lua:\n    extends: sh\n    language:\n      consts: {null: nil}\n",
        "defs.yaml",
    )
    template = write(tmp_path, "#!lua\nprint(x)\n")
    result = runner.invoke(app, ["render", template, "-D", definitions, "-d", "x=null"])
    assert result.exit_code == 0, result.output
    assert result.output == "x=nil\nprint(x)\n"


def test_run_exit_code(tmp_path):
    template = write(tmp_path, "#!/bin/sh\nexit 4\n")
    assert runner.invoke(app, ["run", template]).exit_code == 4
    assert runner.invoke(app, ["run", template, "--file"]).exit_code == 4


def test_types():
    result = runner.invoke(app, ["types"])
    assert result.exit_code == 0
    for name in ("sh", "bash", "python", "node"):
        assert name in result.output
