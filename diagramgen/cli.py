# File: diagramgen/cli.py
"""
diagramgen - Command-Line Interface
=====================================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # Spring Boot project from a diagram file
    python -m diagramgen -d diagram.json -o ./out

    # Flutter client, custom name and API host
    python -m diagramgen -d diagram.yaml -o shop-app.zip \\
        --target client --project-name "Shop App" --api-base-url http://10.0.2.2:8080

    # Diagram embedded in an assistant reply
    python -m diagramgen -d reply.txt --from-text -o ./out

    # Validate only (no file output)
    python -m diagramgen -d diagram.json --validate-only

Exit codes:
    0 — success
    1 — validation error (invalid or empty diagram)
    2 — generation error
    3 — packaging error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence, Tuple

from diagramgen.errors import (
    DiagramGenError,
    EmptyDiagramError,
    ValidationError,
)
from diagramgen.models import GenerationConfig, TargetEcosystem

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("diagramgen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_PACKAGING_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the ``diagramgen`` logger.

    Args:
        verbosity: -1 = silent, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    elif verbosity == 0:
        level = logging.WARNING
    else:
        level = logging.CRITICAL + 1

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("diagramgen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    from diagramgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="diagramgen",
        description=(
            "diagramgen — diagram-to-code generator.\n\n"
            "Turns an entity-relationship / UML diagram (JSON/YAML) into a "
            "zipped Spring Boot API or Flutter client project."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -d diagram.json -o ./out\n"
            "  %(prog)s -d diagram.yaml -o app.zip --target client\n"
            "  %(prog)s -d reply.txt --from-text --validate-only\n"
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"diagramgen v{__version__}",
    )

    # --- Input / output ---
    parser.add_argument(
        "-d", "--diagram",
        type=str,
        required=True,
        metavar="PATH",
        help="Diagram or request file (JSON or YAML).",
    )
    parser.add_argument(
        "--from-text",
        action="store_true",
        default=False,
        help="Treat the input file as free text (e.g. an assistant reply) "
             "containing a JSON diagram.",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="PATH",
        help="Zip file path, or an existing directory that receives <project>.zip.",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Normalise, validate and resolve; write nothing.",
    )

    # --- Config overrides ---
    config_group = parser.add_argument_group("Generation config overrides")
    config_group.add_argument(
        "--project-name",
        type=str,
        default=None,
        help="Project name (whitespace is removed).",
    )
    config_group.add_argument(
        "--target",
        type=str,
        choices=[t.value for t in TargetEcosystem],
        default=None,
        help="Emitter set: 'server' (Spring Boot) or 'client' (Flutter).",
    )
    config_group.add_argument(
        "--base-package",
        type=str,
        default=None,
        help="Java package prefix (default: com.example).",
    )
    config_group.add_argument(
        "--api-base-url",
        type=str,
        default=None,
        help="Server root called by the Flutter services.",
    )
    config_group.add_argument(
        "--work-root",
        type=str,
        default=None,
        metavar="DIR",
        help="Directory for per-request working directories.",
    )
    config_group.add_argument(
        "--keep-workdir",
        action="store_true",
        default=None,
        help="Debug: do not delete the working directory.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v INFO, -vv DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all log output.",
    )
    return parser


# ---------------------------------------------------------------------------
# Input handling
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, object]:
    overrides: Dict[str, object] = {}
    if args.project_name is not None:
        overrides["project_name"] = args.project_name
    if args.target is not None:
        overrides["target"] = args.target
    if args.base_package is not None:
        overrides["base_package"] = args.base_package
    if args.api_base_url is not None:
        overrides["api_base_url"] = args.api_base_url
    if args.work_root is not None:
        overrides["work_root"] = args.work_root
    if args.keep_workdir:
        overrides["keep_workdir"] = True
    return overrides


def _load_input(args: argparse.Namespace) -> Tuple[Any, GenerationConfig]:
    """
    Raises:
        FileNotFoundError, ValueError: unreadable input (exit 4).
        ValidationError: no diagram in the text (exit 1).
    """
    from diagramgen.generator import load_diagram_file, parse_raw_input
    from diagramgen.validators import extract_diagram_text

    path: Path = Path(args.diagram).resolve()
    overrides: Dict[str, object] = _build_config_overrides(args)

    if args.from_text:
        if not path.is_file():
            raise FileNotFoundError(f"Input file not found: {path}")
        diagram = extract_diagram_text(path.read_text(encoding="utf-8"))
        return parse_raw_input(diagram.model_dump(by_alias=True), overrides)

    return parse_raw_input(load_diagram_file(path), overrides)


# ---------------------------------------------------------------------------
# Validate-only mode
# ---------------------------------------------------------------------------


def _run_validate_only(raw_diagram: Any) -> int:
    from diagramgen.resolver import RelationshipResolver
    from diagramgen.utils import Timer
    from diagramgen.validators import normalize_diagram, validate_full

    with Timer("validation") as t:
        diagram = normalize_diagram(raw_diagram)
        if diagram.table_count == 0:
            raise EmptyDiagramError()
        result = validate_full(diagram)
        resolved = RelationshipResolver().resolve(diagram)

    print(f"\n{'=' * 50}")
    print("  Diagram Validation Report")
    print(f"{'=' * 50}")
    print(f"  Tables:         {diagram.table_count}")
    print(f"  Relationships:  {diagram.relationship_count}")
    print(f"  Entities:       {', '.join(d.entity_name for d in resolved)}")
    print(f"  Time:           {t.elapsed:.3f}s")

    if result.warnings:
        print(f"\n  Warnings ({len(result.warnings)}):")
        for warn in result.warnings:
            print(f"    ⚠ {warn}")

    if resolved.diagnostics:
        print(f"\n  Skipped relationships ({len(resolved.diagnostics)}):")
        for diag in resolved.diagnostics:
            print(f"    ⊘ {diag}")

    if not result.warnings and not resolved.diagnostics:
        print("\n  ✅ All validations passed!")
    print(f"{'=' * 50}\n")
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Full generation mode
# ---------------------------------------------------------------------------


def _run_generation(raw_diagram: Any, config: GenerationConfig, output: Path) -> int:
    from diagramgen.generator import generate_to_path

    report, archive_path = generate_to_path(raw_diagram, config, output)
    print(report.summary())
    print(f"Archive: {archive_path}")
    return EXIT_SUCCESS


def _exit_code_for(exc: DiagramGenError) -> int:
    return exc.exit_code


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    _setup_logging(-1 if args.quiet else args.verbose)

    try:
        raw_diagram, config = _load_input(args)
    except ValidationError as exc:
        logger.error("%s", exc.to_payload()["message"])
        sys.exit(EXIT_VALIDATION_ERROR)
    except (FileNotFoundError, ValueError, OSError) as exc:
        logger.error("Failed to load input: %s", exc)
        sys.exit(EXIT_INPUT_ERROR)

    try:
        if args.validate_only:
            sys.exit(_run_validate_only(raw_diagram))

        if args.output is None:
            logger.error(
                "Output path is required for generation. "
                "Use -o/--output or --validate-only."
            )
            parser.print_usage(sys.stderr)
            sys.exit(EXIT_INPUT_ERROR)

        logger.info("Input:   %s", args.diagram)
        logger.info("Output:  %s", args.output)
        logger.info("Target:  %s", config.target)
        exit_code: int = _run_generation(raw_diagram, config, Path(args.output))
    except DiagramGenError as exc:
        logger.error("%s", exc.to_payload()["message"])
        exit_code = _exit_code_for(exc)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)
    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_PACKAGING_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("diagramgen.cli loaded.")
