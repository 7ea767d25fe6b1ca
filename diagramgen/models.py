# File: diagramgen/models.py
"""
diagramgen - Core Data Models
===============================
Pydantic V2 models for the diagram handed to the generator and for the
generation configuration.  Pipeline:

    Raw diagram → Normalisation (validators.py) → ``Diagram`` →
    Resolution (resolver.py) → Emission → Packaging

Diagram models ignore unknown keys: the same document is produced by the
canvas editor (which adds ``top``/``left`` positions and styling) and by the
assistant, and neither may break generation by adding a field.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    computed_field,
    field_validator,
)

from diagramgen.utils import (
    sanitize_project_name,
    strip_non_identifier,
    to_snake_case,
    upper_first,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("diagramgen.models")

# ---------------------------------------------------------------------------
# Enums: fixed sets used across the entire project
# ---------------------------------------------------------------------------


class RelationshipKind(str, Enum):
    """Relationship types the resolver understands."""

    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"
    INHERITANCE = "inheritance"
    COMPOSITION = "composition"
    AGGREGATION = "aggregation"
    ASSOCIATION = "association"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["RelationshipKind"]:
        """Case-insensitive lookup; ``generalization`` maps to INHERITANCE."""
        if not raw:
            return None
        key: str = raw.strip().lower().replace("_", "-")
        if key == "generalization":
            return cls.INHERITANCE
        try:
            return cls(key)
        except ValueError:
            return None


class TargetEcosystem(str, Enum):
    """Which emitter set runs: Spring Boot server or Flutter client."""

    SERVER = "server"
    CLIENT = "client"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)

_DIAGRAM_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    frozen=False,
    extra="ignore",
)


# ---------------------------------------------------------------------------
# Diagram
# ---------------------------------------------------------------------------


class Column(BaseModel):
    """One column of a diagram table."""

    model_config = _DIAGRAM_CONFIG

    id: str = Field(..., min_length=1, description="Column id (unique per table).")
    name: str = Field(..., min_length=1, description="Column name as typed by the user.")
    type: str = Field(default="", description="Free-form SQL-like type, e.g. 'VARCHAR(255)'.")
    constraints: List[str] = Field(
        default_factory=list, description="Constraint tags, e.g. ['PK', 'NOT NULL']."
    )

    @computed_field  # type: ignore[misc]
    @property
    def is_primary_key(self) -> bool:
        return any(c.strip().upper() == "PK" for c in self.constraints)

    def __repr__(self) -> str:
        pk: str = " PK" if self.is_primary_key else ""
        return f"<Column {self.name}: {self.type or '?'}{pk}>"


class Table(BaseModel):
    """
    One diagram table.  ``id`` is the relationship-endpoint key, ``name`` is
    the source of every generated identifier.
    """

    model_config = _DIAGRAM_CONFIG

    id: str = Field(..., min_length=1, description="Table id (unique per diagram).")
    name: str = Field(..., min_length=1, description="Table name.")
    columns: List[Column] = Field(default_factory=list, description="Columns in order.")

    @property
    def primary_key_column(self) -> Optional[Column]:
        """First PK-constrained column; later PK columns are plain fields."""
        for column in self.columns:
            if column.is_primary_key:
                return column
        return None

    def __repr__(self) -> str:
        return f"<Table {self.name} ({len(self.columns)} cols)>"


class Relationship(BaseModel):
    """A typed edge between two tables, addressed by table id."""

    model_config = _DIAGRAM_CONFIG

    id: str = Field(..., min_length=1, description="Relationship id.")
    type: str = Field(default="", description="Raw relationship type string.")
    from_table_id: str = Field(default="", alias="fromTableId")
    to_table_id: str = Field(default="", alias="toTableId")

    @property
    def kind(self) -> Optional[RelationshipKind]:
        """Parsed type; ``None`` for types the resolver does not know."""
        return RelationshipKind.parse(self.type)

    def __repr__(self) -> str:
        return f"<Relationship {self.type}: {self.from_table_id} → {self.to_table_id}>"


class Diagram(BaseModel):
    """
    Root model: ``{tables, relationships}``.

    Invariant: ``get_table`` is an O(1) lookup built once from ``tables``.
    """

    model_config = _DIAGRAM_CONFIG

    tables: List[Table] = Field(default_factory=list)
    relationships: List[Relationship] = Field(default_factory=list)

    _table_map: Dict[str, Table] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: object) -> None:
        self._table_map = {t.id: t for t in self.tables}

    def get_table(self, table_id: str) -> Optional[Table]:
        return self._table_map.get(table_id)

    @computed_field  # type: ignore[misc]
    @property
    def table_count(self) -> int:
        return len(self.tables)

    @computed_field  # type: ignore[misc]
    @property
    def relationship_count(self) -> int:
        return len(self.relationships)

    def __repr__(self) -> str:
        return (
            f"<Diagram {self.table_count} tables, "
            f"{self.relationship_count} relationships>"
        )


# ---------------------------------------------------------------------------
# Generation configuration
# ---------------------------------------------------------------------------

_PACKAGE_SEGMENT_RE: re.Pattern[str] = re.compile(r"^[a-z_][a-z0-9_]*$")
_ARCHIVE_STEM_RE: re.Pattern[str] = re.compile(r"[^A-Za-z0-9_.-]")


class GenerationConfig(BaseModel):
    """
    Master configuration for one generation request.

    Project naming follows one rule everywhere: whitespace is removed from
    ``project_name`` and the result feeds the Java package, the application
    class, the Dart package and the archive file name.
    """

    model_config = _SHARED_CONFIG

    # -- Project metadata ---------------------------------------------------
    project_name: str = Field(
        default="demo",
        max_length=128,
        description="Free-form project name (whitespace is removed).",
    )
    target: TargetEcosystem = Field(
        default=TargetEcosystem.SERVER.value,
        description="Emitter set to run.",
    )

    # -- Server (Spring Boot) -----------------------------------------------
    base_package: str = Field(
        default="com.example",
        description="Java package prefix; the project segment is appended.",
    )
    spring_boot_version: str = Field(default="2.7.5")
    java_version: str = Field(default="11")

    # -- Client (Flutter) ---------------------------------------------------
    api_base_url: str = Field(
        default="http://localhost:8080",
        description="Server root the generated mobile services call.",
    )

    # -- Runtime ------------------------------------------------------------
    work_root: Optional[str] = Field(
        default=None,
        description="Directory for per-request working dirs (system temp if unset).",
    )
    keep_workdir: bool = Field(
        default=False,
        description="Debug only: leave the working directory behind.",
    )
    compression_level: int = Field(default=9, ge=0, le=9)

    @field_validator("project_name", mode="before")
    @classmethod
    def _coerce_project_name(cls, v: object) -> str:
        return "" if v is None else str(v)

    @field_validator("base_package")
    @classmethod
    def _validate_base_package(cls, v: str) -> str:
        segments: List[str] = v.split(".")
        if not all(_PACKAGE_SEGMENT_RE.match(s) for s in segments):
            raise ValueError(f"Invalid Java package prefix: {v!r}")
        return v

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # -- Derived names --------------------------------------------------------

    @computed_field  # type: ignore[misc]
    @property
    def sanitized_project_name(self) -> str:
        return sanitize_project_name(self.project_name) or "demo"

    @computed_field  # type: ignore[misc]
    @property
    def package_name(self) -> str:
        segment: str = strip_non_identifier(self.sanitized_project_name).lower()
        if not segment:
            segment = "demo"
        if segment[0].isdigit():
            segment = f"p{segment}"
        return f"{self.base_package}.{segment}"

    @computed_field  # type: ignore[misc]
    @property
    def package_path(self) -> str:
        return self.package_name.replace(".", "/")

    @computed_field  # type: ignore[misc]
    @property
    def application_class(self) -> str:
        base: str = strip_non_identifier(self.sanitized_project_name) or "Demo"
        if base[0].isdigit():
            base = f"App{base}"
        return f"{upper_first(base)}Application"

    @computed_field  # type: ignore[misc]
    @property
    def dart_package(self) -> str:
        name: str = to_snake_case(self.sanitized_project_name) or "app"
        if name[0].isdigit():
            name = f"app_{name}"
        return name

    @computed_field  # type: ignore[misc]
    @property
    def archive_name(self) -> str:
        stem: str = _ARCHIVE_STEM_RE.sub("", self.sanitized_project_name).strip(".")
        return f"{stem or 'demo'}.zip"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "RelationshipKind",
    "TargetEcosystem",
    "Column",
    "Table",
    "Relationship",
    "Diagram",
    "GenerationConfig",
]

logger.debug("diagramgen.models loaded — %d public symbols.", len(__all__))
