# File: diagramgen/generator.py
"""
diagramgen - Generation Pipeline (Orchestrator)
=================================================

Connects every phase of one generation request:

    Raw diagram → Normalise → Validate → Resolve → Emit → Export → Archive

Workflow of ``DiagramGenerator.generate``::

    1. Normalise the raw diagram (``ValidationError`` on unusable input).
    2. Refuse an empty diagram (``EmptyDiagramError``).
       Nothing has touched the filesystem up to here.
    3. Run semantic validation; warnings go into the report.
    4. Resolve relationships into entity descriptors; diagnostics go into
       the report.
    5. Allocate a private working directory ``gen_<request>_<epoch ms>_*``.
    6. Emit every file for the target and export it (``EmissionError``).
    7. Zip the tree beside the working directory (``PackagingError``) and
       read the archive bytes into the report.
    8. Remove the working directory and the archive, on every exit path.

The generator holds no per-request state, so one instance can serve
concurrent requests.
"""

from __future__ import annotations

import json
import logging
import re
import tempfile
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import yaml

from diagramgen.errors import (
    EmissionError,
    EmptyDiagramError,
    PackagingError,
    ValidationError,
    error_payload,
)
from diagramgen.exporters import ExportManifest, ExportResult, ProjectArchiver, ProjectExporter
from diagramgen.models import Diagram, GenerationConfig
from diagramgen.resolver import RelationshipResolver, ResolvedModel
from diagramgen.templates import EmitterStrategy, get_emitter
from diagramgen.utils import Timer, remove_path
from diagramgen.validators import ValidationResult, normalize_diagram, validate_full

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("diagramgen.generator")

_REQUEST_ID_RE: re.Pattern[str] = re.compile(r"[^A-Za-z0-9_-]")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Report produced by ``DiagramGenerator.generate()``.

    ``archive_bytes`` holds the finished zip; the on-disk copy is already
    gone when the report is returned.
    """

    success: bool = False
    request_id: str = ""
    project_name: str = ""
    target: str = ""
    archive_name: str = ""
    archive_bytes: bytes = field(default=b"", repr=False)

    # Metrics
    entity_count: int = 0
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_elapsed_seconds: float = 0.0

    # Sub-reports
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    diagnostics: List[Dict[str, str]] = field(default_factory=list)
    manifest: Optional[ExportManifest] = None
    kept_workdir: str = ""

    @property
    def archive_size(self) -> int:
        return len(self.archive_bytes)

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'=' * 60}")
        lines.append("  diagramgen — Generation Report")
        lines.append(f"{'=' * 60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Request:          {self.request_id}")
        lines.append(f"  Project:          {self.project_name}")
        lines.append(f"  Target:           {self.target}")
        lines.append(f"  Entities:         {self.entity_count}")
        lines.append(f"  Files generated:  {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Archive:          {self.archive_name} ({self.archive_size:,} bytes)")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        if self.kept_workdir:
            lines.append(f"  Working dir kept: {self.kept_workdir}")
        lines.append(f"{'─' * 60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<20s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        if self.validation_warnings:
            lines.append(f"{'─' * 60}")
            lines.append(f"  Validation Warnings ({len(self.validation_warnings)}):")
            for warn in self.validation_warnings:
                lines.append(f"    ⚠ {warn}")

        if self.diagnostics:
            lines.append(f"{'─' * 60}")
            lines.append(f"  Skipped Relationships ({len(self.diagnostics)}):")
            for diag in self.diagnostics:
                lines.append(f"    ⊘ [{diag['code']}] {diag['message']}")

        lines.append(f"{'=' * 60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Input loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc


def _load_yaml_file(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc


def load_diagram_file(path: Path) -> Any:
    """
    Load a diagram (or request envelope) from a JSON or YAML file.

    Dispatches on the file extension; an unknown extension tries JSON, then
    YAML.

    Raises:
        FileNotFoundError: the file does not exist.
        ValueError: the path is not a file or cannot be parsed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Diagram file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Diagram path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    logger.info("Unknown extension '%s' — trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except ValueError:
        return _load_yaml_file(path)


def parse_raw_input(
    raw: Any,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Tuple[Any, GenerationConfig]:
    """
    Split an input document into ``(raw diagram, GenerationConfig)``.

    Accepted shapes:
        - ``{"diagram": {...}, "config": {...}, "projectName": "...", "target": "..."}``
        - ``{"contenidoCanvas": {...} | "<json string>", ...}`` (editor export)
        - a bare ``{"tables": [...], "relationships": [...]}`` diagram

    Precedence, lowest first: model defaults, ``config``, the top-level
    ``projectName``/``target``, then *overrides* (``None`` values ignored).

    Raises:
        ValidationError: an embedded canvas string is not valid JSON.
        ValueError: the configuration does not validate.
    """
    diagram: Any = raw
    config_data: Dict[str, Any] = {}

    if isinstance(raw, Mapping) and ("diagram" in raw or "contenidoCanvas" in raw):
        diagram = raw.get("diagram", raw.get("contenidoCanvas"))
        if isinstance(diagram, str):
            try:
                diagram = json.loads(diagram)
            except json.JSONDecodeError as exc:
                raise ValidationError(
                    f"Embedded canvas content is not valid JSON: {exc}", cause=exc
                ) from exc
        embedded: Any = raw.get("config")
        if isinstance(embedded, Mapping):
            config_data.update(embedded)
        for key, field_name in (
            ("projectName", "project_name"),
            ("project_name", "project_name"),
            ("target", "target"),
        ):
            if raw.get(key) not in (None, ""):
                config_data[field_name] = raw[key]
    else:
        logger.info("No request envelope found — treating input as a bare diagram.")

    for key, value in (overrides or {}).items():
        if value is not None:
            config_data[key] = value

    try:
        config: GenerationConfig = GenerationConfig.model_validate(config_data)
    except Exception as exc:
        raise ValueError(f"Config validation failed: {exc}") from exc
    return diagram, config


# ---------------------------------------------------------------------------
# DiagramGenerator: pipeline orchestrator
# ---------------------------------------------------------------------------


class DiagramGenerator:
    """
    Pipeline orchestrator.

    Usage::

        generator = DiagramGenerator()
        report = generator.generate(raw_diagram, GenerationConfig(project_name="Shop"))
        Path(report.archive_name).write_bytes(report.archive_bytes)

    ``work_root``/``keep_workdir`` given here win over the per-request config.
    """

    def __init__(
        self,
        work_root: Optional[Path] = None,
        keep_workdir: Optional[bool] = None,
    ) -> None:
        self._work_root: Optional[Path] = Path(work_root) if work_root else None
        self._keep_workdir: Optional[bool] = keep_workdir
        self._resolver: RelationshipResolver = RelationshipResolver()
        logger.debug(
            "DiagramGenerator initialised: work_root=%s, keep_workdir=%s.",
            self._work_root,
            keep_workdir,
        )

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def generate(
        self,
        raw_diagram: Any,
        config: Optional[GenerationConfig] = None,
        request_id: Optional[str] = None,
    ) -> GenerationReport:
        """
        Run the whole pipeline for one request.

        Raises:
            ValidationError, EmptyDiagramError: before any filesystem effect.
            EmissionError: a directory or file could not be written.
            PackagingError: the archive could not be built or read.
        """
        config = config or GenerationConfig()
        rid: str = _REQUEST_ID_RE.sub("", request_id or "") or uuid.uuid4().hex[:8]
        report: GenerationReport = GenerationReport(
            request_id=rid,
            project_name=config.sanitized_project_name,
            target=str(config.target),
            archive_name=config.archive_name,
        )
        started: float = time.perf_counter()
        logger.info(
            "Generation %s started (project=%s, target=%s).",
            rid,
            report.project_name,
            report.target,
        )

        # --- 1-2. Fail fast, no filesystem effects ---
        diagram: Diagram = self._step(report, "normalize", normalize_diagram, raw_diagram)
        report.step_metrics[-1].detail = (
            f"{diagram.table_count} tables, {diagram.relationship_count} relationships"
        )
        if diagram.table_count == 0:
            raise EmptyDiagramError()

        # --- 3. Semantic validation ---
        validation: ValidationResult = self._step(report, "validate", validate_full, diagram)
        report.validation_warnings = [str(item) for item in validation.warnings]
        report.step_metrics[-1].detail = validation.summary()

        # --- 4. Resolution ---
        resolved: ResolvedModel = self._step(report, "resolve", self._resolver.resolve, diagram)
        report.entity_count = resolved.entity_count
        report.diagnostics = [warning.to_dict() for warning in resolved.diagnostics]
        report.step_metrics[-1].detail = f"{len(resolved.diagnostics)} diagnostics"

        # --- 5-8. Filesystem work, always cleaned up ---
        workdir: Path = self._allocate_workdir(config, rid)
        archive_path: Path = workdir.parent / f"{workdir.name}.zip"
        keep: bool = self._keep_workdir if self._keep_workdir is not None else config.keep_workdir
        try:
            export: ExportResult = self._step(
                report, "emit", self._emit, config, resolved, workdir
            )
            report.manifest = export.manifest
            report.total_files = export.manifest.total_files
            report.total_bytes = export.manifest.total_bytes
            report.total_lines = export.manifest.total_lines
            report.step_metrics[-1].detail = f"{report.total_files} files"

            self._step(
                report,
                "archive",
                ProjectArchiver(config.compression_level).archive,
                workdir,
                archive_path,
            )
            try:
                report.archive_bytes = archive_path.read_bytes()
            except OSError as exc:
                raise PackagingError(
                    f"Could not read archive {archive_path}: {exc}", cause=exc
                ) from exc
            report.step_metrics[-1].detail = f"{report.archive_size:,} bytes"
            report.success = True
        finally:
            if keep:
                report.kept_workdir = str(workdir)
                logger.warning("Keeping working directory %s (debug).", workdir)
            else:
                remove_path(workdir)
            remove_path(archive_path)
            report.total_elapsed_seconds = time.perf_counter() - started

        logger.info(
            "Generation %s finished: %d files, %d bytes archived in %.3fs.",
            rid,
            report.total_files,
            report.archive_size,
            report.total_elapsed_seconds,
        )
        return report

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    @staticmethod
    def _step(
        report: GenerationReport,
        name: str,
        func: Callable[..., Any],
        *args: Any,
    ) -> Any:
        """Run one pipeline step, recording its timing and outcome."""
        timer: Timer = Timer(name)
        succeeded: bool = False
        try:
            with timer:
                result: Any = func(*args)
            succeeded = True
            return result
        finally:
            report.step_metrics.append(
                GenerationStepMetric(
                    step_name=name,
                    success=succeeded,
                    elapsed_seconds=timer.elapsed,
                    detail="" if succeeded else "failed",
                )
            )

    def _allocate_workdir(self, config: GenerationConfig, rid: str) -> Path:
        root: Optional[Path] = self._work_root or (
            Path(config.work_root) if config.work_root else None
        )
        try:
            if root is not None:
                root.mkdir(parents=True, exist_ok=True)
            path: str = tempfile.mkdtemp(
                prefix=f"gen_{rid}_{int(time.time() * 1000)}_",
                dir=str(root) if root is not None else None,
            )
        except OSError as exc:
            raise EmissionError(
                f"Could not create working directory under {root or 'system temp'}: {exc}",
                cause=exc,
            ) from exc
        logger.debug("Allocated working directory %s.", path)
        return Path(path)

    @staticmethod
    def _emit(
        config: GenerationConfig,
        resolved: ResolvedModel,
        workdir: Path,
    ) -> ExportResult:
        emitter: EmitterStrategy = get_emitter(config.target, config, resolved)
        files: Dict[str, str] = emitter.generate_all()
        exporter: ProjectExporter = ProjectExporter(config, workdir, emitter.directories())
        return exporter.export(files)


def generate_to_path(
    raw_diagram: Any,
    config: GenerationConfig,
    destination: Path,
    generator: Optional[DiagramGenerator] = None,
) -> Tuple[GenerationReport, Path]:
    """
    Generate and copy the archive to *destination* (a ``.zip`` path or an
    existing directory, which receives ``<project>.zip``).

    Raises:
        PackagingError: the archive could not be written to *destination*.
    """
    generator = generator or DiagramGenerator()
    report: GenerationReport = generator.generate(raw_diagram, config)

    destination = Path(destination)
    target_path: Path = destination / report.archive_name if destination.is_dir() else destination
    try:
        target_path.parent.mkdir(parents=True, exist_ok=True)
        target_path.write_bytes(report.archive_bytes)
    except OSError as exc:
        raise PackagingError(f"Could not write {target_path}: {exc}", cause=exc) from exc
    logger.info("Archive written to %s.", target_path)
    return report, target_path


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "GenerationStepMetric",
    "GenerationReport",
    "load_diagram_file",
    "parse_raw_input",
    "DiagramGenerator",
    "generate_to_path",
    "error_payload",
]

logger.debug("diagramgen.generator loaded.")
