# File: diagramgen/utils.py
"""
diagramgen - Utility Functions & Helpers
==========================================
String normalisation, file I/O and small formatting helpers shared by the
resolver, the emitters and the exporter.

Naming strategy:
- ALL string-conversion functions are decorated with ``@lru_cache(maxsize=None)``;
  the same table and column names are normalised many times per run
  (entity, repository, service, controller, model, pages...).
- Every conversion goes through ``_extract_words`` so the three forms
  (PascalCase, camelCase, snake_case) always agree on word boundaries and
  are idempotent.
- Accented letters are folded to ASCII before splitting, so ``Categoría``
  becomes ``Categoria`` rather than ``CategorA``.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import re
import shutil
import tempfile
import time
import unicodedata
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("diagramgen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns (compiled once at module load)
# ---------------------------------------------------------------------------

_CAMEL_TO_SNAKE_RE1: re.Pattern[str] = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_TO_SNAKE_RE2: re.Pattern[str] = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_MULTI_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"_{2,}")
_LEADING_TRAILING_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"^_+|_+$")
_LEADING_UPPER_RE: re.Pattern[str] = re.compile(r"^[A-Z]+")
_WHITESPACE_RE: re.Pattern[str] = re.compile(r"\s+")
_NON_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9_]")
_SPLIT_WORDS_RE: re.Pattern[str] = re.compile(
    r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]|\d+"
)

# Java keywords and literals that cannot be used as member names
JAVA_RESERVED_WORDS: FrozenSet[str] = frozenset({
    "abstract", "assert", "boolean", "break", "byte", "case", "catch",
    "char", "class", "const", "continue", "default", "do", "double",
    "else", "enum", "extends", "final", "finally", "float", "for", "goto",
    "if", "implements", "import", "instanceof", "int", "interface", "long",
    "native", "new", "package", "private", "protected", "public", "return",
    "short", "static", "strictfp", "super", "switch", "synchronized",
    "this", "throw", "throws", "transient", "try", "void", "volatile",
    "while", "true", "false", "null", "var", "record", "yield",
})

# Dart reserved words plus identifiers the generated widgets already use
DART_RESERVED_WORDS: FrozenSet[str] = frozenset({
    "assert", "break", "case", "catch", "class", "const", "continue",
    "default", "do", "else", "enum", "extends", "false", "final",
    "finally", "for", "if", "in", "is", "new", "null", "rethrow",
    "return", "super", "switch", "this", "throw", "true", "try", "var",
    "void", "while", "with", "await", "yield", "late", "required",
    "dynamic", "get", "set", "operator", "factory", "external",
    "context", "widget", "mounted", "key", "hashCode", "runtimeType",
})


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def _ascii_fold(name: str) -> str:
    """Strip diacritics: ``Categoría`` → ``Categoria``."""
    decomposed: str = unicodedata.normalize("NFKD", name)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


@functools.lru_cache(maxsize=None)
def _extract_words(name: str) -> Tuple[str, ...]:
    """
    Extract individual words from any casing style.

    Returns a tuple (hashable for LRU cache) of lowercase word strings.
    """
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", _ascii_fold(name))
    words: List[str] = _SPLIT_WORDS_RE.findall(cleaned)
    return tuple(w.lower() for w in words if w)


@functools.lru_cache(maxsize=None)
def to_pascal_case(name: str) -> str:
    """
    Convert any string to PascalCase (type-name form).

    Separators delimit segments; each segment gets its first letter
    upper-cased and keeps the rest untouched, so already-Pascal input
    comes back unchanged.

    Examples:
        >>> to_pascal_case("detalle_pedido")
        'DetallePedido'
        >>> to_pascal_case("HTTPServer")
        'HTTPServer'
        >>> to_pascal_case("")
        ''
    """
    if not name:
        return ""
    segments: List[str] = _NON_ALPHANUM_RE.split(_ascii_fold(name))
    return "".join(upper_first(segment) for segment in segments if segment)


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """
    Convert any string to camelCase (member-name form).

    A leading acronym is lower-cased as a whole.

    Examples:
        >>> to_camel_case("DetallePedido")
        'detallePedido'
        >>> to_camel_case("fecha de alta")
        'fechaDeAlta'
        >>> to_camel_case("URLValue")
        'urlValue'
    """
    pascal: str = to_pascal_case(name)
    if not pascal:
        return ""
    match: Optional[re.Match[str]] = _LEADING_UPPER_RE.match(pascal)
    run: str = match.group(0) if match else ""
    if len(run) == len(pascal):
        return pascal.lower()
    if not pascal[len(run)].islower():
        return run.lower() + pascal[len(run):]
    if len(run) > 1:
        return run[:-1].lower() + pascal[len(run) - 1:]
    return lower_first(pascal)


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Convert any string to snake_case (file/module-name form).

    Examples:
        >>> to_snake_case("DetallePedido")
        'detalle_pedido'
        >>> to_snake_case("getHTTPResponse")
        'get_http_response'
        >>> to_snake_case("already_snake")
        'already_snake'
    """
    if not name:
        return ""
    s: str = _CAMEL_TO_SNAKE_RE1.sub(r"\1_\2", _ascii_fold(name))
    s = _CAMEL_TO_SNAKE_RE2.sub(r"\1_\2", s)
    s = _NON_ALPHANUM_RE.sub("_", s)
    s = _MULTI_UNDERSCORE_RE.sub("_", s)
    s = _LEADING_TRAILING_UNDERSCORE_RE.sub("", s)
    return s.lower()


@functools.lru_cache(maxsize=None)
def to_title_human(name: str) -> str:
    """
    Convert identifier to a human-readable label.

    Examples:
        >>> to_title_human("fechaNacimiento")
        'Fecha Nacimiento'
    """
    if not name:
        return ""
    return " ".join(w.capitalize() for w in _extract_words(name))


def upper_first(name: str) -> str:
    """JavaBeans accessor suffix: ``usuarioList`` → ``UsuarioList``."""
    if not name:
        return ""
    return name[0].upper() + name[1:]


def lower_first(name: str) -> str:
    if not name:
        return ""
    return name[0].lower() + name[1:]


@functools.lru_cache(maxsize=None)
def safe_member_name(name: str) -> str:
    """
    Member name that compiles in both Java and Dart.

    - Converts to camelCase
    - Prefixes with ``f`` if it starts with a digit
    - Appends ``Value`` if it clashes with a reserved word of either language

    Returns ``""`` for input with no usable characters.
    """
    result: str = to_camel_case(name)
    if not result:
        return ""
    if result[0].isdigit():
        result = f"f{result}"
    if result in JAVA_RESERVED_WORDS or result in DART_RESERVED_WORDS:
        result = f"{result}Value"
    return result


def sanitize_project_name(name: Optional[str]) -> str:
    """Remove every whitespace character: ``"Mi Tienda"`` → ``"MiTienda"``."""
    if not name:
        return ""
    return _WHITESPACE_RE.sub("", name)


def strip_non_identifier(name: str) -> str:
    """Drop characters that are not valid in a Java/Dart identifier."""
    return _NON_IDENTIFIER_RE.sub("", _ascii_fold(name))


# ---------------------------------------------------------------------------
# Code formatting helpers
# ---------------------------------------------------------------------------


def indent_lines(lines: Sequence[str], level: int = 1, size: int = 4) -> List[str]:
    """Indent a list of lines, returning a new list. Blank lines stay blank."""
    prefix: str = " " * (level * size)
    return [prefix + line if line.strip() else "" for line in lines]


def quote_dart(value: str) -> str:
    """Single-quoted Dart string literal with ``'``, ``\\`` and ``$`` escaped."""
    escaped: str = (
        value.replace("\\", "\\\\").replace("'", "\\'").replace("$", "\\$")
    )
    return f"'{escaped}'"


def quote_java(value: str) -> str:
    escaped: str = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_java_import_block(imports: Iterable[str]) -> str:
    """
    Render ``import x;`` lines in insertion order, without duplicates.

    Example:
        >>> build_java_import_block(["javax.persistence.*", "java.util.List"])
        'import javax.persistence.*;\\nimport java.util.List;'
    """
    seen: List[str] = []
    for module in imports:
        if module and module not in seen:
            seen.append(module)
    return "\n".join(f"import {module};" for module in seen)


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str) -> int:
    """
    Write *content* to *path* atomically (temp file in the same directory,
    then ``os.replace``).  The parent directory must already exist.

    Returns the number of bytes written.
    """
    encoded: bytes = content.encode("utf-8")
    fd: int
    tmp_path: str
    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(encoded)
        os.replace(tmp_path, str(path))
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def remove_path(path: Optional[Path]) -> bool:
    """
    Remove a file or directory tree if it exists.

    Returns True if something was removed.  Errors are logged, not raised:
    this runs inside ``finally`` blocks and must not mask the original error.
    """
    if path is None or not path.exists():
        return False
    try:
        if path.is_dir():
            shutil.rmtree(path)
        else:
            path.unlink()
    except OSError as exc:
        logger.error("Could not remove %s: %s", path, exc)
        return False
    logger.debug("Removed %s", path)
    return True


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("resolve") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.info(
            "Timer [%s]: %.4f seconds",
            self.label,
            self.elapsed,
        )

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "JAVA_RESERVED_WORDS",
    "DART_RESERVED_WORDS",
    "to_pascal_case",
    "to_camel_case",
    "to_snake_case",
    "to_title_human",
    "upper_first",
    "lower_first",
    "safe_member_name",
    "sanitize_project_name",
    "strip_non_identifier",
    "indent_lines",
    "quote_dart",
    "quote_java",
    "build_java_import_block",
    "ensure_directory",
    "write_file",
    "remove_path",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("diagramgen.utils loaded — %d public symbols.", len(__all__))
