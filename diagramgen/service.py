# File: diagramgen/service.py
"""
diagramgen - HTTP surface
===========================

FastAPI application exposing the generator to the diagram editor::

    POST /api/generate        {projectName, target, diagram} → zip download
    POST /api/diagram/parse   {text}                         → normalised diagram
    GET  /health

Failures come back as ``{ok: false, message}`` with the status code carried
by the ``DiagramGenError`` subclass (400 invalid/empty, 500 emission/packaging).
Any other exception is logged and reported as a 500 generation failure.

Run with::

    diagramgen-server --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from diagramgen.errors import DiagramGenError, error_payload
from diagramgen.generator import DiagramGenerator, GenerationReport, parse_raw_input
from diagramgen.models import Diagram, TargetEcosystem
from diagramgen.validators import extract_diagram_text

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("diagramgen.service")


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class GenerateRequest(BaseModel):
    """Body of ``POST /api/generate``; the diagram is normalised later."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    project_name: str = Field(default="demo", alias="projectName")
    target: str = Field(default=TargetEcosystem.SERVER.value)
    diagram: Any = Field(default=None)


class ParseRequest(BaseModel):
    text: str = Field(default="")


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


async def diagramgen_exception_handler(request: Request, exc: DiagramGenError) -> JSONResponse:
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=400, content=error_payload(exc))


async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s crashed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content=error_payload(exc))


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(generator: Optional[DiagramGenerator] = None) -> FastAPI:
    """
    Build the FastAPI app.  *generator* is shared by all requests; it keeps
    no per-request state.
    """
    from diagramgen import __version__

    engine: DiagramGenerator = generator or DiagramGenerator(
        work_root=os.environ.get("DIAGRAMGEN_WORK_ROOT") or None,
    )

    app: FastAPI = FastAPI(
        title="diagramgen",
        description="Diagram-to-code generator (Spring Boot / Flutter).",
        version=__version__,
    )
    app.exception_handler(DiagramGenError)(diagramgen_exception_handler)
    app.exception_handler(ValueError)(value_error_handler)
    app.exception_handler(Exception)(unexpected_exception_handler)

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"ok": True, "version": __version__}

    @app.post("/api/generate")
    def generate(body: GenerateRequest) -> Response:
        raw_diagram, config = parse_raw_input(
            {
                "diagram": body.diagram,
                "projectName": body.project_name,
                "target": body.target,
            }
        )
        report: GenerationReport = engine.generate(raw_diagram, config)
        logger.info(
            "Served %s (%d bytes, request %s).",
            report.archive_name,
            report.archive_size,
            report.request_id,
        )
        return Response(
            content=report.archive_bytes,
            media_type="application/zip",
            headers={
                "Content-Disposition": f'attachment; filename="{report.archive_name}"',
                "X-Request-Id": report.request_id,
            },
        )

    @app.post("/api/diagram/parse")
    def parse_diagram(body: ParseRequest) -> Dict[str, Any]:
        diagram: Diagram = extract_diagram_text(body.text)
        return diagram.model_dump(by_alias=True, exclude={"table_count", "relationship_count"})

    logger.debug("FastAPI app created (version %s).", __version__)
    return app


# ---------------------------------------------------------------------------
# Server entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[List[str]] = None) -> None:
    """Run the app with uvicorn (``diagramgen-server`` console script)."""
    import uvicorn

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="diagramgen-server",
        description="Serve the diagramgen HTTP API.",
    )
    parser.add_argument(
        "--host",
        default=os.environ.get("DIAGRAMGEN_HOST", "127.0.0.1"),
        help="Bind address (env DIAGRAMGEN_HOST).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("DIAGRAMGEN_PORT", "8000")),
        help="Bind port (env DIAGRAMGEN_PORT).",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug"],
    )
    args: argparse.Namespace = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )
    uvicorn.run(create_app(), host=args.host, port=args.port, log_level=args.log_level)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "GenerateRequest",
    "ParseRequest",
    "create_app",
    "main",
]

logger.debug("diagramgen.service loaded.")
