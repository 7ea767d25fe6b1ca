"""
tests/test_generator.py
Integration tests for diagramgen.generator (DiagramGenerator pipeline).

Tests cover:
- End-to-end server and client archives
- Fail-fast errors before any filesystem effect
- Cleanup of the working directory on success and on every failure path
- Input envelope parsing and file loading
"""

from __future__ import annotations

import io
import json
import pathlib
import zipfile
from typing import Any, Dict

import pytest

from diagramgen.errors import EmissionError, EmptyDiagramError, PackagingError, ValidationError
from diagramgen.generator import (
    DiagramGenerator,
    GenerationReport,
    generate_to_path,
    load_diagram_file,
    parse_raw_input,
)
from diagramgen.models import GenerationConfig


def _names(report: GenerationReport) -> set:
    with zipfile.ZipFile(io.BytesIO(report.archive_bytes)) as zf:
        return set(zf.namelist())


# ===========================================================================
# Happy paths
# ===========================================================================


class TestGenerate:
    def test_server_archive(
        self,
        usuario_post_dict: Dict[str, Any],
        blog_config: GenerationConfig,
        work_root: pathlib.Path,
    ) -> None:
        report = DiagramGenerator(work_root=work_root).generate(usuario_post_dict, blog_config)
        assert report.success
        assert report.archive_name == "Blog.zip"
        assert report.entity_count == 2
        names = _names(report)
        assert "pom.xml" in names
        assert "manifest.json" in names
        assert "src/main/java/com/example/blog/entities/Usuario.java" in names
        assert "src/main/java/com/example/blog/controllers/PostController.java" in names
        assert report.total_files == len(names)

    def test_client_archive(self, usuario_post_dict: Dict[str, Any], work_root: pathlib.Path) -> None:
        config = GenerationConfig(project_name="Blog", target="client")
        report = DiagramGenerator(work_root=work_root).generate(usuario_post_dict, config)
        names = _names(report)
        assert "pubspec.yaml" in names
        assert "lib/models/usuario.dart" in names
        assert "lib/pages/post_form_page.dart" in names
        assert not any(name.endswith(".java") for name in names)

    def test_work_root_is_left_empty(
        self,
        usuario_post_dict: Dict[str, Any],
        blog_config: GenerationConfig,
        work_root: pathlib.Path,
    ) -> None:
        DiagramGenerator(work_root=work_root).generate(usuario_post_dict, blog_config)
        assert list(work_root.iterdir()) == []

    def test_report_collects_diagnostics(self, shop_dict: Dict[str, Any], work_root: pathlib.Path) -> None:
        report = DiagramGenerator(work_root=work_root).generate(shop_dict)
        codes = [d["code"] for d in report.diagnostics]
        assert codes == ["UNKNOWN_RELATIONSHIP_TYPE", "DANGLING_ENDPOINT"]
        assert any("DANGLING_ENDPOINT" in w for w in report.validation_warnings)
        assert report.entity_count == 6
        assert "Skipped Relationships (2)" in report.summary()

    def test_step_metrics(
        self,
        usuario_post_dict: Dict[str, Any],
        blog_config: GenerationConfig,
        work_root: pathlib.Path,
    ) -> None:
        report = DiagramGenerator(work_root=work_root).generate(
            usuario_post_dict, blog_config, request_id="req/42"
        )
        assert [s.step_name for s in report.step_metrics] == [
            "normalize", "validate", "resolve", "emit", "archive",
        ]
        assert all(s.success for s in report.step_metrics)
        assert report.request_id == "req42"

    def test_keep_workdir(
        self,
        usuario_post_dict: Dict[str, Any],
        blog_config: GenerationConfig,
        work_root: pathlib.Path,
    ) -> None:
        report = DiagramGenerator(work_root=work_root, keep_workdir=True).generate(
            usuario_post_dict, blog_config
        )
        kept = pathlib.Path(report.kept_workdir)
        assert kept.is_dir()
        assert (kept / "pom.xml").exists()
        assert not any(p.suffix == ".zip" for p in work_root.iterdir())

    def test_concurrent_requests_get_distinct_workdirs(
        self,
        usuario_post_dict: Dict[str, Any],
        blog_config: GenerationConfig,
        work_root: pathlib.Path,
    ) -> None:
        generator = DiagramGenerator(work_root=work_root, keep_workdir=True)
        first = generator.generate(usuario_post_dict, blog_config)
        second = generator.generate(usuario_post_dict, blog_config)
        assert first.kept_workdir != second.kept_workdir


# ===========================================================================
# Failure paths
# ===========================================================================


class TestFailures:
    def test_empty_diagram_touches_nothing(
        self, empty_dict: Dict[str, Any], work_root: pathlib.Path
    ) -> None:
        with pytest.raises(EmptyDiagramError):
            DiagramGenerator(work_root=work_root).generate(empty_dict)
        assert not work_root.exists()

    @pytest.mark.parametrize("raw", [None, "tables", {"entities": []}])
    def test_invalid_diagram(self, raw: Any, work_root: pathlib.Path) -> None:
        with pytest.raises(ValidationError):
            DiagramGenerator(work_root=work_root).generate(raw)
        assert not work_root.exists()

    def test_emission_failure_cleans_up(
        self,
        usuario_post_dict: Dict[str, Any],
        blog_config: GenerationConfig,
        work_root: pathlib.Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def _fail(path, content):
            raise OSError("read-only file system")

        monkeypatch.setattr("diagramgen.exporters.write_file", _fail)
        with pytest.raises(EmissionError) as exc_info:
            DiagramGenerator(work_root=work_root).generate(usuario_post_dict, blog_config)
        assert exc_info.value.status_code == 500
        assert list(work_root.iterdir()) == []

    def test_packaging_failure_cleans_up(
        self,
        usuario_post_dict: Dict[str, Any],
        blog_config: GenerationConfig,
        work_root: pathlib.Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def _broken_zip(*args, **kwargs):
            raise OSError("no space left on device")

        monkeypatch.setattr("diagramgen.exporters.zipfile.ZipFile", _broken_zip)
        with pytest.raises(PackagingError) as exc_info:
            DiagramGenerator(work_root=work_root).generate(usuario_post_dict, blog_config)
        assert exc_info.value.to_payload()["message"].startswith("Could not package result")
        assert list(work_root.iterdir()) == []

    def test_unexpected_error_still_cleans_up(
        self,
        usuario_post_dict: Dict[str, Any],
        blog_config: GenerationConfig,
        work_root: pathlib.Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def _explode(self):
            raise RuntimeError("boom")

        monkeypatch.setattr("diagramgen.templates.ServerEmitter.generate_all", _explode)
        with pytest.raises(RuntimeError):
            DiagramGenerator(work_root=work_root).generate(usuario_post_dict, blog_config)
        assert list(work_root.iterdir()) == []


# ===========================================================================
# Input helpers
# ===========================================================================


class TestParseRawInput:
    def test_envelope(self, usuario_post_dict: Dict[str, Any]) -> None:
        diagram, config = parse_raw_input(
            {"projectName": "Mi Blog", "target": "client", "diagram": usuario_post_dict}
        )
        assert diagram == usuario_post_dict
        assert config.sanitized_project_name == "MiBlog"
        assert config.target == "client"

    def test_canvas_string(self, usuario_post_dict: Dict[str, Any]) -> None:
        diagram, config = parse_raw_input(
            {"contenidoCanvas": json.dumps(usuario_post_dict), "projectName": "Tienda"}
        )
        assert diagram["tables"][0]["name"] == "Usuario"
        assert config.archive_name == "Tienda.zip"

    def test_bad_canvas_string(self) -> None:
        with pytest.raises(ValidationError):
            parse_raw_input({"contenidoCanvas": "{oops"})

    def test_bare_diagram(self, usuario_post_dict: Dict[str, Any]) -> None:
        diagram, config = parse_raw_input(usuario_post_dict)
        assert diagram is usuario_post_dict
        assert config.project_name == "demo"

    def test_precedence(self, usuario_post_dict: Dict[str, Any]) -> None:
        raw = {
            "diagram": usuario_post_dict,
            "config": {"project_name": "FromConfig", "java_version": "17"},
            "projectName": "FromEnvelope",
        }
        _, config = parse_raw_input(raw, {"project_name": "FromFlag", "target": None})
        assert config.project_name == "FromFlag"
        assert config.java_version == "17"
        assert config.target == "server"

    def test_bad_config(self, usuario_post_dict: Dict[str, Any]) -> None:
        with pytest.raises(ValueError):
            parse_raw_input({"diagram": usuario_post_dict, "target": "desktop"})


class TestFiles:
    def test_load_json_envelope(self, diagram_json_path: pathlib.Path) -> None:
        raw = load_diagram_file(diagram_json_path)
        assert raw["projectName"] == "Mi Blog"
        assert len(raw["diagram"]["tables"]) == 2

    def test_load_yaml(self, diagram_yaml_path: pathlib.Path) -> None:
        raw = load_diagram_file(diagram_yaml_path)
        assert raw["relationships"][0]["type"] == "one-to-many"

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_diagram_file(tmp_path / "nope.json")

    def test_unparseable_file(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError):
            load_diagram_file(path)

    def test_generate_to_directory(
        self,
        usuario_post_dict: Dict[str, Any],
        blog_config: GenerationConfig,
        work_root: pathlib.Path,
        tmp_path: pathlib.Path,
    ) -> None:
        out = tmp_path / "out"
        out.mkdir()
        report, path = generate_to_path(
            usuario_post_dict, blog_config, out, DiagramGenerator(work_root=work_root)
        )
        assert path == out / "Blog.zip"
        assert path.read_bytes() == report.archive_bytes

    def test_generate_to_file(
        self,
        usuario_post_dict: Dict[str, Any],
        blog_config: GenerationConfig,
        work_root: pathlib.Path,
        tmp_path: pathlib.Path,
    ) -> None:
        target = tmp_path / "nested" / "custom.zip"
        _, path = generate_to_path(
            usuario_post_dict, blog_config, target, DiagramGenerator(work_root=work_root)
        )
        assert path == target
        assert zipfile.is_zipfile(path)
