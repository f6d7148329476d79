"""
Unit tests for the command line entry point.
"""

import json

import pytest

from mailtri.cli import build_parser, main


@pytest.mark.unit
class TestCli:

    def test_single_file(self, tmp_path, capsys, simple_email):
        path = tmp_path / "message.eml"
        path.write_bytes(simple_email)

        exit_code = main([str(path), "--parser", "legacy"])

        document = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert document["source"] == str(path)
        assert document["subject"] == "Hello"
        assert document["from"]["address"] == "test.user@example.com"

    def test_directory(self, tmp_path, capsys, simple_email):
        """Test one JSON line per message in a directory."""
        (tmp_path / "a.eml").write_bytes(simple_email)
        (tmp_path / "b.eml").write_bytes(b"not an email")

        exit_code = main([str(tmp_path), "--parser", "legacy"])

        lines = capsys.readouterr().out.strip().splitlines()
        documents = [json.loads(line) for line in lines]
        assert exit_code == 0
        assert [doc["recovered"] for doc in documents] == [False, True]

    def test_include_content(self, tmp_path, capsys, multipart_email):
        path = tmp_path / "multi.eml"
        path.write_bytes(multipart_email)

        main([str(path), "--parser", "legacy", "--include-content"])

        document = json.loads(capsys.readouterr().out)
        assert all("content" in att for att in document["attachments"])

    def test_missing_path(self, tmp_path, capsys):
        exit_code = main([str(tmp_path / "missing.eml")])

        assert exit_code == 2
        assert capsys.readouterr().out == ""

    def test_rejects_unknown_parser(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["x.eml", "--parser", "outlook"])
