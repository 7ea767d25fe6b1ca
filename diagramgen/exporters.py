# File: diagramgen/exporters.py
"""
diagramgen - Project Exporter & Archiver
==========================================

Responsible for:
    1. Creating every directory of the emitted tree before any file write.
    2. Writing generated files atomically (write-to-temp then rename).
    3. Producing ``manifest.json`` with sizes, line counts and checksums.
    4. Zipping the finished tree into a single downloadable archive.

Unlike a best-effort writer, a failed write aborts the export: the
orchestrator must never archive a half-written project.  Filesystem errors
surface as ``EmissionError`` (writing) or ``PackagingError`` (zipping), both
naming the offending path.
"""

from __future__ import annotations

import json
import logging
import time
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence

from diagramgen.errors import EmissionError, PackagingError
from diagramgen.models import GenerationConfig
from diagramgen.utils import (
    Timer,
    count_lines,
    ensure_directory,
    remove_path,
    sha256_hex,
    write_file,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("diagramgen.exporters")

MANIFEST_FILE_NAME: str = "manifest.json"


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """Manifest of all exported files, serialisable to JSON."""

    project_name: str = ""
    target: str = ""
    generator_version: str = ""
    export_timestamp: str = ""
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    files: List[FileRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_name": self.project_name,
            "target": self.target,
            "generator_version": self.generator_version,
            "export_timestamp": self.export_timestamp,
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "files": [
                {
                    "relative_path": f.relative_path,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Returned by ``ProjectExporter.export()`` once every file is on disk."""

    output_dir: str
    manifest: ExportManifest
    directories_created: int
    elapsed_seconds: float

    @property
    def file_count(self) -> int:
        return self.manifest.total_files


# ---------------------------------------------------------------------------
# ProjectExporter
# ---------------------------------------------------------------------------


class ProjectExporter:
    """
    Writes one generated file set under *output_dir*.

    Usage::

        exporter = ProjectExporter(config, Path(workdir), emitter.directories())
        result = exporter.export(emitter.generate_all())

    Thread-safety: NOT thread-safe.  Use one exporter per output directory.
    """

    def __init__(
        self,
        config: GenerationConfig,
        output_dir: Path,
        directories: Sequence[str] = (),
        *,
        generate_manifest: bool = True,
    ) -> None:
        self._config: GenerationConfig = config
        self._output_dir: Path = Path(output_dir)
        self._directories: List[str] = list(directories)
        self._generate_manifest: bool = generate_manifest
        self._file_records: List[FileRecord] = []
        logger.debug("ProjectExporter initialised: output_dir=%s.", self._output_dir)

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def export(self, generated_files: Dict[str, str]) -> ExportResult:
        """
        Create all directories, then write every file, then the manifest.

        Raises:
            EmissionError: a directory could not be created or a file written.
        """
        with Timer("export") as timer:
            created: int = self._create_directory_structure(generated_files)
            for rel_path, content in generated_files.items():
                self._file_records.append(self._write_single_file(rel_path, content))
            if self._generate_manifest:
                self._write_manifest_file()

        manifest: ExportManifest = self._build_manifest()
        logger.info(
            "Export completed: %d files, %d bytes, %.3fs.",
            manifest.total_files,
            manifest.total_bytes,
            timer.elapsed,
        )
        return ExportResult(
            output_dir=str(self._output_dir),
            manifest=manifest,
            directories_created=created,
            elapsed_seconds=timer.elapsed,
        )

    # -----------------------------------------------------------------
    # Internal: directories & files
    # -----------------------------------------------------------------

    def _create_directory_structure(self, generated_files: Dict[str, str]) -> int:
        """Declared directories plus every parent of a generated file."""
        wanted: List[str] = [""] + self._directories
        for rel_path in generated_files:
            parent: str = str(Path(rel_path).parent)
            wanted.append("" if parent == "." else parent)

        created: int = 0
        for rel_dir in dict.fromkeys(wanted):
            dir_path: Path = self._output_dir / rel_dir if rel_dir else self._output_dir
            try:
                ensure_directory(dir_path)
            except OSError as exc:
                raise EmissionError(
                    f"Failed to create directory {dir_path}: {exc}", cause=exc
                ) from exc
            created += 1

        logger.info("Directory structure created under: %s", self._output_dir)
        return created

    def _write_single_file(self, rel_path: str, content: str) -> FileRecord:
        full_path: Path = self._output_dir / rel_path
        try:
            size_bytes: int = write_file(full_path, content)
        except OSError as exc:
            raise EmissionError(f"Failed to write {full_path}: {exc}", cause=exc) from exc

        record: FileRecord = FileRecord(
            relative_path=rel_path,
            size_bytes=size_bytes,
            line_count=count_lines(content),
            sha256=sha256_hex(content),
        )
        logger.debug("Wrote file: %s (%d bytes).", rel_path, size_bytes)
        return record

    # -----------------------------------------------------------------
    # Internal: manifest
    # -----------------------------------------------------------------

    def _build_manifest(self) -> ExportManifest:
        import diagramgen

        return ExportManifest(
            project_name=self._config.sanitized_project_name,
            target=str(self._config.target),
            generator_version=diagramgen.__version__,
            export_timestamp=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
            total_files=len(self._file_records),
            total_bytes=sum(r.size_bytes for r in self._file_records),
            total_lines=sum(r.line_count for r in self._file_records),
            files=list(self._file_records),
        )

    def _write_manifest_file(self) -> None:
        content: str = self._build_manifest().to_json()
        self._file_records.append(self._write_single_file(MANIFEST_FILE_NAME, content))


# ---------------------------------------------------------------------------
# ProjectArchiver
# ---------------------------------------------------------------------------


class ProjectArchiver:
    """Zips a finished project tree with paths relative to its root."""

    def __init__(self, compression_level: int = 9) -> None:
        self._compression_level: int = compression_level

    def archive(self, source_dir: Path, archive_path: Path) -> Path:
        """
        Zip every file under *source_dir* into *archive_path*.

        Raises:
            PackagingError: the archive could not be built; any partial
                archive is removed first.
        """
        source_dir = Path(source_dir)
        archive_path = Path(archive_path)
        try:
            with Timer("archive"):
                with zipfile.ZipFile(
                    archive_path,
                    "w",
                    compression=zipfile.ZIP_DEFLATED,
                    compresslevel=self._compression_level,
                ) as zf:
                    entries: int = 0
                    for file_path in sorted(source_dir.rglob("*")):
                        if file_path.is_file():
                            zf.write(file_path, file_path.relative_to(source_dir).as_posix())
                            entries += 1
        except (OSError, zipfile.BadZipFile, ValueError) as exc:
            remove_path(archive_path)
            raise PackagingError(
                f"Failed to build archive {archive_path}: {exc}", cause=exc
            ) from exc

        logger.info("Archived %d files into %s.", entries, archive_path)
        return archive_path


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MANIFEST_FILE_NAME",
    "FileRecord",
    "ExportManifest",
    "ExportResult",
    "ProjectExporter",
    "ProjectArchiver",
]

logger.debug("diagramgen.exporters loaded.")
