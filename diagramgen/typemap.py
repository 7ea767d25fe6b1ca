# File: diagramgen/typemap.py
"""
diagramgen - Column type mapping
==================================

Maps the free-form SQL-like type typed into the diagram (``VARCHAR(255)``,
``int``, ``DECIMAL(10,2)``...) to a target-language type.  Both ecosystems
share one precedence table; only the concrete names differ.

Precedence (case-insensitive substring match, first hit wins):

    1. INT                       → integer
    2. VARCHAR / TEXT / CHAR     → string
    3. DECIMAL / FLOAT / DOUBLE  → floating point
    4. BOOLEAN / BOOL            → boolean
    5. DATE (without TIME)       → date
    6. TIMESTAMP / DATETIME      → date-time
    7. anything else             → string
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from diagramgen.models import TargetEcosystem

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("diagramgen.typemap")

# ---------------------------------------------------------------------------
# Abstract type categories and their concrete names per ecosystem
# ---------------------------------------------------------------------------

INTEGER: str = "integer"
STRING: str = "string"
FLOAT: str = "float"
BOOLEAN: str = "boolean"
DATE: str = "date"
DATETIME: str = "datetime"

_TYPE_NAMES: Dict[str, Dict[str, str]] = {
    TargetEcosystem.SERVER.value: {
        INTEGER: "Long",
        STRING: "String",
        FLOAT: "Double",
        BOOLEAN: "Boolean",
        DATE: "LocalDate",
        DATETIME: "LocalDateTime",
    },
    TargetEcosystem.CLIENT.value: {
        INTEGER: "int",
        STRING: "String",
        FLOAT: "double",
        BOOLEAN: "bool",
        DATE: "DateTime",
        DATETIME: "DateTime",
    },
}

# Java types that need an explicit import in the entity file
_JAVA_TYPE_IMPORTS: Dict[str, str] = {
    "LocalDate": "java.time.LocalDate",
    "LocalDateTime": "java.time.LocalDateTime",
}


def classify_type(raw: Optional[str]) -> str:
    """Return the abstract category of a raw column type.  Never raises."""
    upper: str = str(raw or "").upper()
    if "INT" in upper:
        return INTEGER
    if "VARCHAR" in upper or "TEXT" in upper or "CHAR" in upper:
        return STRING
    if "DECIMAL" in upper or "FLOAT" in upper or "DOUBLE" in upper:
        return FLOAT
    if "BOOLEAN" in upper or "BOOL" in upper:
        return BOOLEAN
    if "DATE" in upper and "TIME" not in upper:
        return DATE
    if "TIMESTAMP" in upper or "DATETIME" in upper:
        return DATETIME
    return STRING


def map_type(raw: Optional[str], target: str = TargetEcosystem.SERVER.value) -> str:
    """
    Map a raw column type to a concrete type name for *target*.

    Examples:
        >>> map_type("VARCHAR(255)", "server")
        'String'
        >>> map_type("int", "client")
        'int'
        >>> map_type(None, "server")
        'String'
    """
    key: str = target.value if isinstance(target, TargetEcosystem) else str(target)
    names: Optional[Dict[str, str]] = _TYPE_NAMES.get(key)
    if names is None:
        raise ValueError(f"Unknown target ecosystem: {target!r}")
    return names[classify_type(raw)]


def map_types(raw: Optional[str]) -> Tuple[str, str]:
    """``(java_type, dart_type)`` for one raw type."""
    return (
        map_type(raw, TargetEcosystem.SERVER.value),
        map_type(raw, TargetEcosystem.CLIENT.value),
    )


def java_type_import(java_type: str) -> Optional[str]:
    """Fully-qualified import required by *java_type*, if any."""
    return _JAVA_TYPE_IMPORTS.get(java_type)


# ---------------------------------------------------------------------------
# Flutter form helpers
# ---------------------------------------------------------------------------


def keyboard_type(dart_type: str) -> str:
    """``TextInputType`` for a form field of *dart_type*."""
    if dart_type == "int":
        return "TextInputType.number"
    if dart_type == "double":
        return "const TextInputType.numberWithOptions(decimal: true)"
    if dart_type == "DateTime":
        return "TextInputType.datetime"
    return "TextInputType.text"


def dart_parse_expression(dart_type: str, text_expr: str) -> str:
    """Dart expression turning the controller text *text_expr* into *dart_type*."""
    if dart_type == "int":
        return f"int.tryParse({text_expr})"
    if dart_type == "double":
        return f"double.tryParse({text_expr})"
    if dart_type == "DateTime":
        return f"DateTime.tryParse({text_expr})"
    if dart_type == "bool":
        return f"{text_expr}.toLowerCase() == 'true'"
    return f"{text_expr}.isEmpty ? null : {text_expr}"


def dart_from_json_expression(dart_type: str, json_expr: str) -> str:
    """Dart expression reading *json_expr* (a ``json['x']`` lookup) as *dart_type*."""
    if dart_type == "DateTime":
        return f"{json_expr} != null ? DateTime.parse({json_expr}) : null"
    if dart_type == "double":
        return f"({json_expr} as num?)?.toDouble()"
    if dart_type == "int":
        return f"({json_expr} as num?)?.toInt()"
    if dart_type == "bool":
        return f"{json_expr} as bool?"
    return f"{json_expr}?.toString()"


def dart_to_json_expression(
    dart_type: str,
    field_name: str,
    category: Optional[str] = None,
) -> str:
    # LocalDate on the server only accepts the yyyy-MM-dd part
    if dart_type == "DateTime" and category == DATE:
        return f"{field_name}?.toIso8601String().split('T').first"
    if dart_type == "DateTime":
        return f"{field_name}?.toIso8601String()"
    return field_name


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "INTEGER",
    "STRING",
    "FLOAT",
    "BOOLEAN",
    "DATE",
    "DATETIME",
    "classify_type",
    "map_type",
    "map_types",
    "java_type_import",
    "keyboard_type",
    "dart_parse_expression",
    "dart_from_json_expression",
    "dart_to_json_expression",
]

logger.debug("diagramgen.typemap loaded.")
