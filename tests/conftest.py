"""
tests/conftest.py
Shared fixtures for the diagramgen test suite.

Fixtures return raw dicts (the shape the canvas editor sends) so every test
goes through normalisation exactly like a real request.  Real file I/O is
performed inside pytest's ``tmp_path``; no external mocking libraries.
"""

from __future__ import annotations

import copy
import json
import pathlib
from typing import Any, Dict

import pytest
import yaml

from diagramgen.models import Diagram, GenerationConfig
from diagramgen.resolver import RelationshipResolver, ResolvedModel
from diagramgen.validators import normalize_diagram


# ---------------------------------------------------------------------------
# Raw diagram fixtures
# ---------------------------------------------------------------------------

_USUARIO_POST: Dict[str, Any] = {
    "tables": [
        {
            "id": "t-usuario",
            "name": "Usuario",
            "top": 120,
            "left": 80,
            "columns": [
                {"id": "c1", "name": "id", "type": "INT", "constraints": ["PK"]},
                {"id": "c2", "name": "nombre", "type": "VARCHAR(100)", "constraints": ["NOT NULL"]},
                {"id": "c3", "name": "email", "type": "VARCHAR(255)", "constraints": []},
                {"id": "c4", "name": "fecha_alta", "type": "DATE", "constraints": []},
            ],
        },
        {
            "id": "t-post",
            "name": "Post",
            "columns": [
                {"id": "c5", "name": "id", "type": "INT", "constraints": ["PK"]},
                {"id": "c6", "name": "titulo", "type": "VARCHAR(200)"},
                {"id": "c7", "name": "contenido", "type": "TEXT"},
                {"id": "c8", "name": "publicado", "type": "BOOLEAN"},
            ],
        },
    ],
    "relationships": [
        {"id": "r1", "type": "one-to-many", "fromTableId": "t-usuario", "toTableId": "t-post"},
    ],
}

_SHOP: Dict[str, Any] = {
    "tables": [
        {
            "id": "t-persona",
            "name": "Persona",
            "columns": [
                {"id": "p1", "name": "id", "type": "BIGINT", "constraints": ["PK"]},
                {"id": "p2", "name": "nombre", "type": "VARCHAR(80)"},
            ],
        },
        {
            "id": "t-cliente",
            "name": "Cliente",
            "columns": [
                {"id": "k1", "name": "telefono", "type": "VARCHAR(20)"},
            ],
        },
        {
            "id": "t-producto",
            "name": "Producto",
            "columns": [
                {"id": "d1", "name": "sku", "type": "VARCHAR(32)"},
                {"id": "d2", "name": "precio", "type": "DECIMAL(10,2)"},
            ],
        },
        {
            "id": "t-categoria",
            "name": "Categoria",
            "columns": [
                {"id": "g1", "name": "id", "type": "INT", "constraints": ["PK"]},
                {"id": "g2", "name": "nombre", "type": "VARCHAR(60)"},
            ],
        },
        {
            "id": "t-pedido",
            "name": "Pedido",
            "columns": [
                {"id": "e1", "name": "id", "type": "INT", "constraints": ["PK"]},
                {"id": "e2", "name": "fecha", "type": "TIMESTAMP"},
            ],
        },
        {
            "id": "t-linea",
            "name": "linea_pedido",
            "columns": [
                {"id": "l1", "name": "id", "type": "INT", "constraints": ["PK"]},
                {"id": "l2", "name": "cantidad", "type": "INT"},
            ],
        },
    ],
    "relationships": [
        {"id": "r-inh", "type": "inheritance", "fromTableId": "t-cliente", "toTableId": "t-persona"},
        {"id": "r-m2m", "type": "many-to-many", "fromTableId": "t-producto", "toTableId": "t-categoria"},
        {"id": "r-comp", "type": "composition", "fromTableId": "t-pedido", "toTableId": "t-linea"},
        {"id": "r-m2o", "type": "many-to-one", "fromTableId": "t-linea", "toTableId": "t-producto"},
        {"id": "r-o2m", "type": "one-to-many", "fromTableId": "t-cliente", "toTableId": "t-pedido"},
        {"id": "r-orbit", "type": "orbits", "fromTableId": "t-producto", "toTableId": "t-categoria"},
        {"id": "r-ghost", "type": "one-to-many", "fromTableId": "t-pedido", "toTableId": "t-ghost"},
    ],
}


@pytest.fixture()
def usuario_post_dict() -> Dict[str, Any]:
    """Two tables, one one-to-many relationship."""
    return copy.deepcopy(_USUARIO_POST)


@pytest.fixture()
def shop_dict() -> Dict[str, Any]:
    """Every relationship kind plus one unknown type and one dangling endpoint."""
    return copy.deepcopy(_SHOP)


@pytest.fixture()
def empty_dict() -> Dict[str, Any]:
    return {"tables": [], "relationships": []}


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def blog_config() -> GenerationConfig:
    return GenerationConfig(project_name="Blog")


@pytest.fixture()
def usuario_post_diagram(usuario_post_dict: Dict[str, Any]) -> Diagram:
    return normalize_diagram(usuario_post_dict)


@pytest.fixture()
def usuario_post_resolved(usuario_post_diagram: Diagram) -> ResolvedModel:
    return RelationshipResolver().resolve(usuario_post_diagram)


@pytest.fixture()
def shop_resolved(shop_dict: Dict[str, Any]) -> ResolvedModel:
    return RelationshipResolver().resolve(normalize_diagram(shop_dict))


# ---------------------------------------------------------------------------
# File fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def diagram_json_path(usuario_post_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Request envelope written as JSON."""
    path = tmp_path / "diagram.json"
    envelope = {"projectName": "Mi Blog", "target": "server", "diagram": usuario_post_dict}
    path.write_text(json.dumps(envelope), encoding="utf-8")
    return path


@pytest.fixture()
def diagram_yaml_path(usuario_post_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Bare diagram written as YAML."""
    path = tmp_path / "diagram.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(usuario_post_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


@pytest.fixture()
def work_root(tmp_path: pathlib.Path) -> pathlib.Path:
    """Parent of per-request working directories; created lazily by the generator."""
    return tmp_path / "work"
