"""
tests/test_cli.py
Tests for the diagramgen command-line interface (exit codes and output).
"""

from __future__ import annotations

import json
import logging
import pathlib
import zipfile
from typing import Any, Dict, Iterator, List

import pytest

from diagramgen.cli import (
    EXIT_INPUT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    cli_main,
)


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    yield
    package_logger = logging.getLogger("diagramgen")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


def _run(argv: List[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        cli_main(argv)
    return exc_info.value.code


class TestGenerate:
    def test_generates_archive_into_directory(
        self, diagram_json_path: pathlib.Path, tmp_path: pathlib.Path, capsys: pytest.CaptureFixture
    ) -> None:
        out = tmp_path / "out"
        out.mkdir()
        code = _run([
            "-d", str(diagram_json_path),
            "-o", str(out),
            "--work-root", str(tmp_path / "work"),
            "-q",
        ])
        assert code == EXIT_SUCCESS
        archive = out / "MiBlog.zip"
        assert zipfile.is_zipfile(archive)
        with zipfile.ZipFile(archive) as zf:
            assert "src/main/java/com/example/miblog/MiBlogApplication.java" in zf.namelist()
        assert f"Archive: {archive}" in capsys.readouterr().out

    def test_flags_override_file(
        self, diagram_yaml_path: pathlib.Path, tmp_path: pathlib.Path
    ) -> None:
        target = tmp_path / "app.zip"
        code = _run([
            "-d", str(diagram_yaml_path),
            "-o", str(target),
            "--target", "client",
            "--project-name", "Shop App",
            "--work-root", str(tmp_path / "work"),
            "-q",
        ])
        assert code == EXIT_SUCCESS
        with zipfile.ZipFile(target) as zf:
            pubspec = zf.read("pubspec.yaml").decode("utf-8")
        assert pubspec.startswith("name: shop_app")

    def test_from_text(self, usuario_post_dict: Dict[str, Any], tmp_path: pathlib.Path) -> None:
        reply = tmp_path / "reply.txt"
        reply.write_text(
            "Here is the diagram:\n```json\n" + json.dumps(usuario_post_dict) + "\n```\n",
            encoding="utf-8",
        )
        target = tmp_path / "blog.zip"
        code = _run([
            "-d", str(reply), "--from-text",
            "-o", str(target),
            "--work-root", str(tmp_path / "work"),
            "-q",
        ])
        assert code == EXIT_SUCCESS
        assert zipfile.is_zipfile(target)


class TestValidateOnly:
    def test_report(self, diagram_json_path: pathlib.Path, capsys: pytest.CaptureFixture) -> None:
        code = _run(["-d", str(diagram_json_path), "--validate-only", "-q"])
        out = capsys.readouterr().out
        assert code == EXIT_SUCCESS
        assert "Diagram Validation Report" in out
        assert "Usuario, Post" in out
        assert "All validations passed" in out

    def test_report_lists_skipped_relationships(
        self, shop_dict: Dict[str, Any], tmp_path: pathlib.Path, capsys: pytest.CaptureFixture
    ) -> None:
        path = tmp_path / "shop.json"
        path.write_text(json.dumps(shop_dict), encoding="utf-8")
        code = _run(["-d", str(path), "--validate-only", "-q"])
        out = capsys.readouterr().out
        assert code == EXIT_SUCCESS
        assert "Skipped relationships (2)" in out
        assert "[UNKNOWN_RELATIONSHIP_TYPE]" in out

    def test_empty_diagram(self, empty_dict: Dict[str, Any], tmp_path: pathlib.Path) -> None:
        path = tmp_path / "empty.json"
        path.write_text(json.dumps(empty_dict), encoding="utf-8")
        assert _run(["-d", str(path), "--validate-only", "-q"]) == EXIT_VALIDATION_ERROR


class TestErrors:
    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        assert _run(["-d", str(tmp_path / "nope.json"), "--validate-only", "-q"]) == EXIT_INPUT_ERROR

    def test_missing_output(self, diagram_json_path: pathlib.Path) -> None:
        assert _run(["-d", str(diagram_json_path), "-q"]) == EXIT_INPUT_ERROR

    def test_bad_base_package(self, diagram_json_path: pathlib.Path, tmp_path: pathlib.Path) -> None:
        code = _run([
            "-d", str(diagram_json_path),
            "-o", str(tmp_path / "x.zip"),
            "--base-package", "Not-A-Package",
            "-q",
        ])
        assert code == EXIT_INPUT_ERROR

    def test_text_without_diagram(self, tmp_path: pathlib.Path) -> None:
        reply = tmp_path / "reply.txt"
        reply.write_text("Sorry, I cannot draw that.", encoding="utf-8")
        assert _run(["-d", str(reply), "--from-text", "--validate-only", "-q"]) == EXIT_VALIDATION_ERROR

    def test_empty_diagram_generation(
        self, empty_dict: Dict[str, Any], tmp_path: pathlib.Path
    ) -> None:
        path = tmp_path / "empty.json"
        path.write_text(json.dumps(empty_dict), encoding="utf-8")
        target = tmp_path / "x.zip"
        code = _run(["-d", str(path), "-o", str(target), "--work-root", str(tmp_path / "work"), "-q"])
        assert code == EXIT_VALIDATION_ERROR
        assert not target.exists()
        assert not (tmp_path / "work").exists()

    def test_unknown_target_is_rejected_by_argparse(self, diagram_json_path: pathlib.Path) -> None:
        assert _run(["-d", str(diagram_json_path), "--target", "desktop"]) == 2
