# File: diagramgen/validators.py
"""
diagramgen - Diagram Normalisation & Validation
=================================================
Two layers:

1. ``normalize_diagram`` turns whatever the canvas editor or the assistant
   produced into the canonical ``Diagram`` model.  It **repairs** rather than
   rejects: missing ids are generated, missing collections become empty,
   legacy endpoint keys are mapped.  Only a document without any
   ``tables``/``relationships`` shape, or with a non-list ``tables``, raises
   ``ValidationError``.

2. Semantic validators inspect a normalised ``Diagram`` and return a
   ``ValidationResult`` of warnings/infos (dangling endpoints, unknown types,
   duplicate names...).  None of them stop generation; they end up in the
   generation report.

Usage by downstream modules:
    from diagramgen.validators import normalize_diagram, validate_full
    diagram = normalize_diagram(raw)
    result = validate_full(diagram)
"""

from __future__ import annotations

import copy
import json
import logging
import re
import time
import uuid
from collections import Counter
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from diagramgen.errors import ValidationError
from diagramgen.models import Diagram, RelationshipKind, Table
from diagramgen.utils import to_pascal_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("diagramgen.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """Lightweight issue descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Accumulates ``ValidationIssue`` instances produced by the validators."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("warning", code, message, context))

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_warning]

    @property
    def all_items(self) -> List[ValidationIssue]:
        return list(self._items)

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def has_warnings(self) -> bool:
        return any(e.is_warning for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {
                "error": "❌",
                "warning": "⚠️",
                "info": "ℹ️",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            if item.context:
                for k, v in item.context.items():
                    lines.append(f"       {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------

# Accepted endpoint keys, in lookup order
FROM_ENDPOINT_KEYS: Tuple[str, ...] = (
    "fromTableId",
    "fromComponentId",
    "from_table_id",
    "from",
)
TO_ENDPOINT_KEYS: Tuple[str, ...] = (
    "toTableId",
    "endComponentId",
    "toComponentId",
    "to_table_id",
    "to",
)
_KNOWN_ENDPOINT_KEYS: frozenset = frozenset(FROM_ENDPOINT_KEYS + TO_ENDPOINT_KEYS)
_ENDPOINT_LIKE_RE: re.Pattern[str] = re.compile(
    r"(table|component)_?id$|^(source|target|start|end)", re.IGNORECASE
)

# Column flags some producers use instead of a "PK" constraint
_PK_FLAG_KEYS: Tuple[str, ...] = ("pk", "primaryKey", "primary_key", "isPrimaryKey")


def generate_id(prefix: str) -> str:
    """Unique id such as ``table-1718000000000-3f9a1c2e``."""
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


def synthesize_table_name(table_id: str) -> str:
    """Fallback name for an unnamed table: ``Table`` + last four id chars."""
    return f"Table{table_id[-4:]}"


def _first_present(data: Mapping[str, Any], keys: Sequence[str]) -> str:
    for key in keys:
        value: Any = data.get(key)
        if value not in (None, ""):
            return str(value)
    return ""


def _coerce_constraints(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple, set)):
        return [str(item) for item in value if item not in (None, "")]
    logger.warning("Ignoring constraints of unexpected type %s.", type(value).__name__)
    return []


def _normalize_column(raw: Mapping[str, Any], position: int) -> Dict[str, Any]:
    constraints: List[str] = _coerce_constraints(raw.get("constraints"))
    if any(raw.get(key) is True for key in _PK_FLAG_KEYS):
        if not any(c.strip().upper() == "PK" for c in constraints):
            constraints.insert(0, "PK")
    name: str = str(raw.get("name") or "").strip()
    return {
        "id": str(raw.get("id") or generate_id("col")),
        "name": name or f"field{position}",
        "type": str(raw.get("type") or ""),
        "constraints": constraints,
    }


def _normalize_table(raw: Mapping[str, Any], seen_ids: Dict[str, int]) -> Dict[str, Any]:
    table_id: str = str(raw.get("id") or generate_id("table"))
    if table_id in seen_ids:
        fresh_id: str = generate_id("table")
        logger.warning(
            "Duplicate table id %r; the later table is re-keyed as %r.",
            table_id,
            fresh_id,
        )
        table_id = fresh_id
    seen_ids[table_id] = 1

    name: str = str(raw.get("name") or "").strip()
    if not name:
        name = synthesize_table_name(table_id)
        logger.warning("Table %r has no name; using %r.", table_id, name)

    raw_columns: Any = raw.get("columns")
    if raw_columns is None:
        raw_columns = []
    elif not isinstance(raw_columns, (list, tuple)):
        logger.warning("Table %r: 'columns' is not a list; treating as empty.", name)
        raw_columns = []

    columns: List[Dict[str, Any]] = []
    for position, raw_column in enumerate(raw_columns, start=1):
        if not isinstance(raw_column, Mapping):
            logger.warning("Table %r: dropping non-object column #%d.", name, position)
            continue
        columns.append(_normalize_column(raw_column, position))

    return {"id": table_id, "name": name, "columns": columns}


def _normalize_relationship(raw: Mapping[str, Any]) -> Dict[str, Any]:
    rel_id: str = str(raw.get("id") or generate_id("rel"))
    for key in raw:
        if key not in _KNOWN_ENDPOINT_KEYS and _ENDPOINT_LIKE_RE.search(str(key)):
            logger.warning(
                "Relationship %r: ignoring unrecognised endpoint key %r.", rel_id, key
            )
    return {
        "id": rel_id,
        "type": str(raw.get("type") or "").strip(),
        "fromTableId": _first_present(raw, FROM_ENDPOINT_KEYS),
        "toTableId": _first_present(raw, TO_ENDPOINT_KEYS),
    }


def normalize_diagram(raw: Any) -> Diagram:
    """
    Normalise a raw diagram-shaped value into a ``Diagram``.

    The caller's object is never mutated.

    Raises:
        ValidationError: *raw* is not a mapping, has neither ``tables`` nor
            ``relationships``, or has a ``tables`` value that is not a list.
    """
    if isinstance(raw, Diagram):
        return raw.model_copy(deep=True)
    if not isinstance(raw, Mapping):
        raise ValidationError(
            f"Expected a diagram object, got {type(raw).__name__}."
        )
    if "tables" not in raw and "relationships" not in raw:
        raise ValidationError(
            "Diagram has neither 'tables' nor 'relationships'."
        )

    data: Dict[str, Any] = copy.deepcopy(dict(raw))

    raw_tables: Any = data.get("tables")
    if raw_tables is None:
        raw_tables = []
    elif not isinstance(raw_tables, (list, tuple)):
        raise ValidationError(
            f"'tables' must be a list, got {type(raw_tables).__name__}."
        )

    raw_relationships: Any = data.get("relationships")
    if raw_relationships is None:
        raw_relationships = []
    elif not isinstance(raw_relationships, (list, tuple)):
        logger.warning(
            "'relationships' is %s, not a list; treating as empty.",
            type(raw_relationships).__name__,
        )
        raw_relationships = []

    seen_ids: Dict[str, int] = {}
    tables: List[Dict[str, Any]] = []
    for index, raw_table in enumerate(raw_tables):
        if not isinstance(raw_table, Mapping):
            logger.warning("Dropping non-object table entry #%d.", index)
            continue
        tables.append(_normalize_table(raw_table, seen_ids))

    relationships: List[Dict[str, Any]] = []
    for index, raw_rel in enumerate(raw_relationships):
        if not isinstance(raw_rel, Mapping):
            logger.warning("Dropping non-object relationship entry #%d.", index)
            continue
        relationships.append(_normalize_relationship(raw_rel))

    diagram: Diagram = Diagram.model_validate(
        {"tables": tables, "relationships": relationships}
    )
    logger.info(
        "Normalised diagram: %d tables, %d relationships.",
        diagram.table_count,
        diagram.relationship_count,
    )
    return diagram


# ---------------------------------------------------------------------------
# Free-text extraction (assistant replies)
# ---------------------------------------------------------------------------

_FENCED_JSON_RE: re.Pattern[str] = re.compile(
    r"```json\b[^\S\n]*\n?([\s\S]*?)```", re.IGNORECASE
)
# Any fence; the language tag (```javascript, ```dart) is not part of the payload
_FENCED_ANY_RE: re.Pattern[str] = re.compile(r"```[\w+-]*[^\S\n]*\n?([\s\S]*?)```")


def extract_diagram_text(text: Any) -> Diagram:
    """
    Pull a diagram out of free-form text such as an assistant reply.

    Looks for a fenced ```json block first, then for any other fenced block,
    then for text that is itself JSON, then for the span between the first
    ``{`` and the last ``}``.

    Raises:
        ValidationError: no JSON payload found, it does not parse, or it is
            not a JSON object.
    """
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Expected non-empty text containing a diagram.")

    trimmed: str = text.strip()
    payload: Optional[str] = None

    fenced: Optional[re.Match[str]] = (
        _FENCED_JSON_RE.search(trimmed) or _FENCED_ANY_RE.search(trimmed)
    )
    if fenced and fenced.group(1).strip():
        payload = fenced.group(1).strip()
    elif trimmed.startswith(("{", "[")):
        payload = trimmed
    else:
        first: int = trimmed.find("{")
        last: int = trimmed.rfind("}")
        if first != -1 and last > first:
            payload = trimmed[first:last + 1]

    if payload is None:
        raise ValidationError("No JSON content found in the text.")

    try:
        parsed: Any = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Diagram JSON does not parse: {exc}", cause=exc) from exc

    if not isinstance(parsed, dict):
        raise ValidationError(
            f"Expected a JSON object with tables and relationships, got {type(parsed).__name__}."
        )
    tables: Any = parsed.get("tables")
    relationships: Any = parsed.get("relationships")
    return normalize_diagram({
        "tables": tables if isinstance(tables, list) else [],
        "relationships": relationships if isinstance(relationships, list) else [],
    })


# ---------------------------------------------------------------------------
# Semantic validators (each returns warnings/infos only)
# ---------------------------------------------------------------------------


def validate_table_names(diagram: Diagram) -> ValidationResult:
    """
    Check table names for:
    - synthesized fallback names (info)
    - names that collapse to the same entity name, ignoring case (warning;
      suffixed later)
    - names with no usable identifier characters (warning)
    """
    result: ValidationResult = ValidationResult()
    entity_names: Counter = Counter()
    spellings: Dict[str, str] = {}

    for table in diagram.tables:
        ctx: Dict[str, Any] = {"table_id": table.id, "table": table.name}
        if table.name == synthesize_table_name(table.id):
            result.add_info(
                "TABLE_NAME_SYNTHESIZED",
                f"Table '{table.id}' had no name; generated as '{table.name}'.",
                ctx,
            )
        entity: str = to_pascal_case(table.name)
        if not entity:
            result.add_warning(
                "TABLE_NAME_UNUSABLE",
                f"Table name '{table.name}' has no identifier characters.",
                ctx,
            )
            continue
        entity_names[entity.lower()] += 1
        spellings.setdefault(entity.lower(), entity)

    for key, count in entity_names.items():
        if count > 1:
            entity = spellings[key]
            result.add_warning(
                "DUPLICATE_ENTITY_NAME",
                f"{count} tables normalise to entity '{entity}'; "
                f"later ones get a numeric suffix.",
                {"entity": entity},
            )
    return result


def validate_primary_keys(diagram: Diagram) -> ValidationResult:
    """Every table ends with exactly one id field; report how it gets there."""
    result: ValidationResult = ValidationResult()
    for table in diagram.tables:
        pk_columns: List[str] = [c.name for c in table.columns if c.is_primary_key]
        ctx: Dict[str, Any] = {"table": table.name}
        if not pk_columns:
            result.add_info(
                "PK_SYNTHESIZED",
                f"Table '{table.name}' has no PK column; an 'id' field is generated.",
                ctx,
            )
        elif len(pk_columns) > 1:
            result.add_warning(
                "MULTIPLE_PK_COLUMNS",
                f"Table '{table.name}' marks {pk_columns} as PK; only "
                f"'{pk_columns[0]}' is used as the identifier.",
                ctx,
            )
    return result


def validate_column_names(diagram: Diagram) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    for table in diagram.tables:
        counts: Counter = Counter(c.name.strip().lower() for c in table.columns)
        for name, count in counts.items():
            if count > 1:
                result.add_warning(
                    "DUPLICATE_COLUMN_NAME",
                    f"Column '{name}' appears {count} times in '{table.name}'.",
                    {"table": table.name, "column": name},
                )
    return result


def validate_relationships(diagram: Diagram) -> ValidationResult:
    """
    Report relationships the resolver will skip:
    dangling endpoints, unknown types, self-inheritance.
    """
    result: ValidationResult = ValidationResult()
    for rel in diagram.relationships:
        ctx: Dict[str, Any] = {"relationship_id": rel.id, "type": rel.type}
        from_table: Optional[Table] = diagram.get_table(rel.from_table_id)
        to_table: Optional[Table] = diagram.get_table(rel.to_table_id)
        if from_table is None or to_table is None:
            result.add_warning(
                "DANGLING_ENDPOINT",
                f"Relationship '{rel.id}' references unknown table(s): "
                f"from={rel.from_table_id or '∅'}, to={rel.to_table_id or '∅'}.",
                ctx,
            )
            continue
        kind: Optional[RelationshipKind] = rel.kind
        if kind is None:
            result.add_warning(
                "UNKNOWN_RELATIONSHIP_TYPE",
                f"Relationship '{rel.id}' has unknown type '{rel.type}'.",
                ctx,
            )
        elif kind == RelationshipKind.INHERITANCE and from_table.id == to_table.id:
            result.add_warning(
                "SELF_INHERITANCE",
                f"Table '{from_table.name}' cannot extend itself.",
                ctx,
            )
    return result


def validate_full(diagram: Diagram) -> ValidationResult:
    """
    **Master validation entry point.**  Runs every semantic validator and
    merges the results.  Never raises.
    """
    logger.info("Starting full validation — %d tables.", diagram.table_count)
    result: ValidationResult = ValidationResult()

    validators: List[Callable[[Diagram], ValidationResult]] = [
        validate_table_names,
        validate_primary_keys,
        validate_column_names,
        validate_relationships,
    ]
    for validator_fn in validators:
        logger.debug("Running validator: %s", validator_fn.__name__)
        result.merge(validator_fn(diagram))

    if result.has_warnings:
        logger.warning("Validation finished with warnings. %s", result.summary())
    else:
        logger.info("Validation PASSED. %s", result.summary())
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationIssue",
    "ValidationResult",
    "FROM_ENDPOINT_KEYS",
    "TO_ENDPOINT_KEYS",
    "generate_id",
    "synthesize_table_name",
    "normalize_diagram",
    "extract_diagram_text",
    "validate_table_names",
    "validate_primary_keys",
    "validate_column_names",
    "validate_relationships",
    "validate_full",
]

logger.debug("diagramgen.validators loaded — %d public symbols.", len(__all__))
