"""
tests/test_exporters.py
Unit tests for diagramgen.exporters (ProjectExporter, ProjectArchiver).

All writes happen inside pytest's tmp_path.
"""

from __future__ import annotations

import json
import pathlib
import zipfile

import pytest

from diagramgen.errors import EmissionError, PackagingError
from diagramgen.exporters import MANIFEST_FILE_NAME, ProjectArchiver, ProjectExporter
from diagramgen.models import GenerationConfig


_FILES = {
    "src/main/java/App.java": "class App {}\n",
    "README.md": "# Demo\n\nhello",
}


class TestProjectExporter:
    def test_writes_every_file(self, blog_config: GenerationConfig, tmp_path: pathlib.Path) -> None:
        out = tmp_path / "proj"
        result = ProjectExporter(blog_config, out).export(_FILES)
        assert (out / "src/main/java/App.java").read_text(encoding="utf-8") == "class App {}\n"
        assert (out / "README.md").exists()
        assert result.output_dir == str(out)
        assert result.file_count == 3

    def test_declared_directories_exist_even_when_empty(
        self, blog_config: GenerationConfig, tmp_path: pathlib.Path
    ) -> None:
        out = tmp_path / "proj"
        ProjectExporter(blog_config, out, ["lib", "lib/models"]).export({"pubspec.yaml": "name: x\n"})
        assert (out / "lib" / "models").is_dir()

    def test_manifest_contents(self, blog_config: GenerationConfig, tmp_path: pathlib.Path) -> None:
        out = tmp_path / "proj"
        ProjectExporter(blog_config, out).export(_FILES)
        manifest = json.loads((out / MANIFEST_FILE_NAME).read_text(encoding="utf-8"))
        assert manifest["project_name"] == "Blog"
        assert manifest["target"] == "server"
        assert manifest["total_files"] == 2
        paths = {f["relative_path"]: f for f in manifest["files"]}
        assert set(paths) == set(_FILES)
        assert paths["README.md"]["line_count"] == 3
        assert len(paths["README.md"]["sha256"]) == 64

    def test_manifest_can_be_disabled(self, blog_config: GenerationConfig, tmp_path: pathlib.Path) -> None:
        out = tmp_path / "proj"
        result = ProjectExporter(blog_config, out, generate_manifest=False).export(_FILES)
        assert not (out / MANIFEST_FILE_NAME).exists()
        assert result.file_count == 2

    def test_write_failure_aborts(
        self,
        blog_config: GenerationConfig,
        tmp_path: pathlib.Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def _fail(path, content):
            raise OSError("disk full")

        monkeypatch.setattr("diagramgen.exporters.write_file", _fail)
        with pytest.raises(EmissionError) as exc_info:
            ProjectExporter(blog_config, tmp_path / "proj").export(_FILES)
        assert "disk full" in str(exc_info.value)
        assert isinstance(exc_info.value.cause, OSError)

    def test_directory_failure(self, blog_config: GenerationConfig, tmp_path: pathlib.Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        with pytest.raises(EmissionError):
            ProjectExporter(blog_config, blocker).export(_FILES)


class TestProjectArchiver:
    def test_archive_uses_relative_paths(self, blog_config: GenerationConfig, tmp_path: pathlib.Path) -> None:
        out = tmp_path / "proj"
        ProjectExporter(blog_config, out).export(_FILES)
        archive = ProjectArchiver().archive(out, tmp_path / "proj.zip")
        with zipfile.ZipFile(archive) as zf:
            names = zf.namelist()
            assert sorted(names) == sorted([*_FILES, MANIFEST_FILE_NAME])
            assert zf.read("README.md").decode("utf-8") == _FILES["README.md"]

    def test_unwritable_destination(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "a.txt").write_text("a", encoding="utf-8")
        with pytest.raises(PackagingError):
            ProjectArchiver().archive(tmp_path / "src", tmp_path / "missing" / "out.zip")

    def test_partial_archive_is_removed(
        self, tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        src = tmp_path / "src"
        src.mkdir()
        (src / "a.txt").write_text("a", encoding="utf-8")
        target = tmp_path / "out.zip"

        def _broken_write(self, *args, **kwargs):
            raise OSError("write interrupted")

        monkeypatch.setattr(zipfile.ZipFile, "write", _broken_write)
        with pytest.raises(PackagingError) as exc_info:
            ProjectArchiver().archive(src, target)
        assert "write interrupted" in exc_info.value.message
        assert not target.exists()
