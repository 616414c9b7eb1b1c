"""Tests for the cregistry command-line entry point."""

from __future__ import annotations

import json

import pytest

from cregistry.cli import build_arg_parser, main


def _header(tmp_path, name: str, source: str) -> str:
    path = tmp_path / name
    path.write_text(source, encoding="utf-8")
    return str(path)


class TestArguments:
    def test_defaults(self):
        args = build_arg_parser().parse_args(["a.h"])
        assert args.files == ["a.h"]
        assert args.merge_policy == "reject"
        assert not args.keep_going
        assert args.indent == 2

    def test_unknown_merge_policy(self):
        with pytest.raises(SystemExit):
            build_arg_parser().parse_args(["--merge-policy", "newest", "a.h"])

    def test_files_are_required_without_schema(self):
        with pytest.raises(SystemExit):
            main([])


class TestMain:
    def test_single_file(self, tmp_path, capsys):
        path = _header(tmp_path, "api.h", "int add(int a, int b);\n")
        assert main(["--name", "api", path]) == 0
        document = json.loads(capsys.readouterr().out)
        assert document["name"] == "api"
        assert list(document["commands"]) == ["add"]

    def test_schema(self, capsys):
        assert main(["--schema"]) == 0
        schema = json.loads(capsys.readouterr().out)
        assert "properties" in schema

    def test_ir_only(self, tmp_path, capsys):
        path = _header(tmp_path, "t.h", "typedef int T;\n")
        assert main(["--ir-only", path]) == 0
        out = capsys.readouterr().out
        assert f"═══ IR: {path} ═══" in out
        assert "  typedef int T;" in out

    def test_stats_go_to_stderr(self, tmp_path, capsys):
        path = _header(tmp_path, "t.h", "typedef int T;\n")
        assert main(["--stats", path]) == 0
        captured = capsys.readouterr()
        assert "Pipeline Statistics" in captured.err
        json.loads(captured.out)

    def test_strict_failure(self, tmp_path, capsys):
        path = _header(tmp_path, "bad.h", "int table[COUNT];\nint ok(int a);\n")
        assert main([path]) == 1
        assert capsys.readouterr().out == ""

    def test_keep_going(self, tmp_path, capsys):
        path = _header(tmp_path, "bad.h", "int table[COUNT];\nint ok(int a);\n")
        assert main(["--keep-going", path]) == 0
        document = json.loads(capsys.readouterr().out)
        assert list(document["commands"]) == ["ok"]

    def test_files_are_merged(self, tmp_path, capsys):
        first = _header(tmp_path, "a.h", "typedef int A;\n")
        second = _header(tmp_path, "b.h", "typedef long B;\n")
        assert main([first, second]) == 0
        document = json.loads(capsys.readouterr().out)
        assert list(document["aliases"]) == ["A", "B"]

    def test_conflicting_files_are_rejected(self, tmp_path):
        first = _header(tmp_path, "a.h", "typedef int T;\n")
        second = _header(tmp_path, "b.h", "typedef long T;\n")
        assert main([first, second]) == 1

    def test_last_wins_policy(self, tmp_path, capsys):
        first = _header(tmp_path, "a.h", "typedef int T;\n")
        second = _header(tmp_path, "b.h", "typedef long T;\n")
        assert main(["--merge-policy", "last_wins", first, second]) == 0
        document = json.loads(capsys.readouterr().out)
        assert document["aliases"]["T"]["target"]["ident"] == "long"
