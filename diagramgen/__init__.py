# File: diagramgen/__init__.py
"""
diagramgen — Diagram-to-Code Generator
========================================

Turns an entity-relationship / UML-style diagram (tables, columns,
relationships) into a downloadable project archive: a Spring Boot REST API
(``target="server"``) or a Flutter mobile client (``target="client"``).

Architecture overview::

    ┌──────────────┐     ┌──────────────────┐     ┌──────────────────┐
    │ CLI / HTTP   │────▶│ DiagramGenerator │────▶│  EmitterStrategy │
    │ cli, service │     │  (generator.py)  │     │  spring, flutter │
    └──────────────┘     └────────┬─────────┘     └──────────────────┘
                                  │
                 ┌────────────────┼─────────────────┐
                 ▼                ▼                 ▼
          ┌────────────┐   ┌────────────┐    ┌───────────┐
          │ validators │   │  resolver  │    │ exporters │
          └────────────┘   └────────────┘    └───────────┘

Usage::

    # As a library
    from diagramgen import DiagramGenerator, GenerationConfig
    report = DiagramGenerator().generate(diagram_dict, GenerationConfig(project_name="Shop"))

    # From the command line
    python -m diagramgen --diagram diagram.json --output ./out --verbose

Public API:
    - DiagramGenerator     — Pipeline orchestrator
    - GenerationConfig     — Generation settings model
    - Diagram              — Normalised diagram model
    - RelationshipResolver — Diagram → entity descriptors
    - get_emitter          — Target-specific file emitter
    - normalize_diagram    — Raw input → ``Diagram``
    - validate_full        — Semantic validation entry point
"""

from __future__ import annotations

__version__: str = "1.0.0"
__author__: str = "diagramgen contributors"
__license__: str = "MIT"

from diagramgen.errors import (
    DiagramGenError,
    EmissionError,
    EmptyDiagramError,
    PackagingError,
    RelationshipResolutionWarning,
    ValidationError,
)
from diagramgen.models import (
    Column,
    Diagram,
    GenerationConfig,
    Relationship,
    RelationshipKind,
    Table,
    TargetEcosystem,
)
from diagramgen.validators import (
    ValidationResult,
    extract_diagram_text,
    normalize_diagram,
    validate_full,
)
from diagramgen.typemap import map_type, map_types
from diagramgen.utils import (
    Timer,
    safe_member_name,
    to_camel_case,
    to_pascal_case,
    to_snake_case,
)
from diagramgen.resolver import EntityDescriptor, RelationshipResolver, ResolvedModel
from diagramgen.templates import EmitterStrategy, get_emitter
from diagramgen.exporters import ExportManifest, ProjectArchiver, ProjectExporter
from diagramgen.generator import DiagramGenerator, GenerationReport, generate_to_path

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Core orchestrator
    "DiagramGenerator",
    "GenerationReport",
    "generate_to_path",
    # Errors
    "DiagramGenError",
    "ValidationError",
    "EmptyDiagramError",
    "EmissionError",
    "PackagingError",
    "RelationshipResolutionWarning",
    # Models
    "Column",
    "Diagram",
    "GenerationConfig",
    "Relationship",
    "RelationshipKind",
    "Table",
    "TargetEcosystem",
    # Validation
    "ValidationResult",
    "extract_diagram_text",
    "normalize_diagram",
    "validate_full",
    # Resolution
    "EntityDescriptor",
    "RelationshipResolver",
    "ResolvedModel",
    # Emission & packaging
    "EmitterStrategy",
    "get_emitter",
    "ExportManifest",
    "ProjectArchiver",
    "ProjectExporter",
    # Utilities
    "Timer",
    "map_type",
    "map_types",
    "safe_member_name",
    "to_camel_case",
    "to_pascal_case",
    "to_snake_case",
]
