# File: diagramgen/resolver.py
"""
diagramgen - Relationship Resolver
====================================
Turns a normalised ``Diagram`` into one ``EntityDescriptor`` per table.  The
descriptors are the only thing emitters read: field declarations, JPA
annotations, by-parent query edges, Flutter form dropdowns and detail
sub-lists are all decided here, once, and consumed by both ecosystems.

Resolution order inside ``RelationshipResolver.resolve``:

    1. one bare descriptor per table (unique entity names)
    2. inheritance edges (so every table knows its root)
    3. id fields (roots only) and scalar fields, in column order, superclasses
       before subclasses; a subclass column repeating an inherited member is
       dropped
    4. every other relationship, in diagram order
    5. display field per entity

Relationships that cannot be resolved are skipped: a
``RelationshipResolutionWarning`` is recorded and logged and no descriptor
is touched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

from diagramgen.errors import RelationshipResolutionWarning
from diagramgen.models import Column, Diagram, Relationship, RelationshipKind, Table
from diagramgen.typemap import STRING, classify_type, java_type_import, map_types
from diagramgen.utils import (
    safe_member_name,
    to_camel_case,
    to_pascal_case,
    to_snake_case,
)
from diagramgen.validators import synthesize_table_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("diagramgen.resolver")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

FIELD_ID: str = "id"
FIELD_SCALAR: str = "scalar"
FIELD_REFERENCE: str = "reference"
FIELD_COLLECTION: str = "collection"

EDGE_MANY_TO_ONE: str = "many-to-one"
EDGE_MANY_TO_MANY: str = "many-to-many"
EDGE_OWNED_COLLECTION: str = "owned-collection"

# Column names preferred as a human label, in order
_DISPLAY_PRIMARY: tuple = ("nombre", "name")
_DISPLAY_SECONDARY: tuple = (
    "titulo",
    "title",
    "descripcion",
    "description",
    "texto",
    "username",
    "codigo",
    "sku",
)

# Class names that would shadow a JPA annotation, a java.lang/java.util type
# or a Flutter widget imported by the generated pages
_RESERVED_TYPE_NAMES: frozenset = frozenset({
    # javax.persistence / Spring
    "Entity", "Table", "Id", "Column", "Query", "Param", "Inheritance",
    "JoinColumn", "JoinTable", "Repository", "Service",
    # java.lang / java.util
    "Object", "String", "Long", "Integer", "Double", "Boolean", "Class",
    "List", "Map", "Set", "Optional", "ArrayList", "System", "Math",
    # Dart / Flutter
    "Text", "Image", "Icon", "Icons", "State", "Row", "Card", "Container",
    "Form", "Scaffold", "Center", "Padding", "Widget", "Colors", "Theme",
    "Navigator", "Future", "DateTime", "Duration", "MyApp", "HomePage",
})


# ---------------------------------------------------------------------------
# Descriptor types
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class FieldSpec:
    """
    One generated member.  Declarations and accessors on both ecosystems are
    rendered from this structure.
    """

    name: str
    java_type: str
    dart_type: str
    kind: str = FIELD_SCALAR
    column_name: str = ""
    type_category: str = STRING
    target_entity: str = ""
    target_table_id: str = ""
    join_column: str = ""
    mapped_by: str = ""
    cascade: bool = False
    json_ignore: bool = False
    initializer: str = ""
    relationship_id: str = ""
    annotations: List[str] = field(default_factory=list)

    @property
    def accessor_suffix(self) -> str:
        return self.name[0].upper() + self.name[1:]

    @property
    def getter_name(self) -> str:
        return f"get{self.accessor_suffix}"

    @property
    def setter_name(self) -> str:
        return f"set{self.accessor_suffix}"

    @property
    def is_collection(self) -> bool:
        return self.kind == FIELD_COLLECTION

    @property
    def is_reference(self) -> bool:
        return self.kind == FIELD_REFERENCE


@dataclass(slots=True)
class ParentEdge:
    """
    "Find children by parent id" query hanging off the child entity.

    ``parent_field_name`` names the finder (``findByUsuarioId``) and the
    endpoint (``/by-usuario/{usuarioId}``).  ``property_path`` is the JPA
    path used in the query: the child's reference or collection for
    many-to-one / many-to-many edges, the parent's collection for owned
    collections.
    """

    parent_entity_name: str
    parent_table_id: str
    parent_field_name: str
    property_path: str
    parent_pk_name: str
    kind: str = EDGE_MANY_TO_ONE
    relationship_id: str = ""

    @property
    def finder_name(self) -> str:
        return f"findBy{self.parent_field_name[0].upper()}{self.parent_field_name[1:]}Id"

    @property
    def path_variable(self) -> str:
        return f"{self.parent_field_name}Id"

    @property
    def url_segment(self) -> str:
        return f"by-{self.parent_field_name}"


@dataclass(slots=True)
class FormRelation:
    """A dropdown on the Flutter form selecting the referenced entity."""

    field_name: str
    target_entity: str
    target_table_id: str
    target_file: str


@dataclass(slots=True)
class DetailSubList:
    """A child list on the Flutter detail page, fetched by parent id."""

    target_entity: str
    target_table_id: str
    target_file: str
    parent_field_name: str
    kind: str = EDGE_MANY_TO_ONE


@dataclass(slots=True)
class EntityDescriptor:
    """Everything emitters need to know about one table."""

    table_id: str
    entity_name: str
    table_name: str
    file_name: str
    api_path: str
    imports: List[str] = field(default_factory=list)
    id_field: Optional[FieldSpec] = None
    scalar_fields: List[FieldSpec] = field(default_factory=list)
    relation_fields: List[FieldSpec] = field(default_factory=list)
    extends_class: str = ""
    extends_table_id: str = ""
    is_extended: bool = False
    parent_edges: List[ParentEdge] = field(default_factory=list)
    form_relations: List[FormRelation] = field(default_factory=list)
    detail_sub_lists: List[DetailSubList] = field(default_factory=list)
    display_field: str = ""
    _taken_names: Set[str] = field(default_factory=set, repr=False)
    _edge_names: Set[str] = field(default_factory=set, repr=False)
    _parent: Optional[EntityDescriptor] = field(default=None, repr=False, compare=False)
    _children: List[EntityDescriptor] = field(default_factory=list, repr=False, compare=False)

    def ancestors(self) -> Iterator[EntityDescriptor]:
        """Superclasses, nearest first."""
        seen: Set[str] = {self.table_id}
        current: Optional[EntityDescriptor] = self._parent
        while current is not None and current.table_id not in seen:
            yield current
            seen.add(current.table_id)
            current = current._parent

    def descendants(self) -> Iterator[EntityDescriptor]:
        seen: Set[str] = {self.table_id}
        pending: List[EntityDescriptor] = list(self._children)
        while pending:
            child: EntityDescriptor = pending.pop()
            if child.table_id in seen:
                continue
            seen.add(child.table_id)
            yield child
            pending.extend(child._children)

    def inherits_name(self, name: str) -> bool:
        return any(name in ancestor._taken_names for ancestor in self.ancestors())

    def name_in_use(self, name: str) -> bool:
        """
        Taken on this entity, on an ancestor or on a descendant.  Siblings do
        not see each other.
        """
        if name in self._taken_names or self.inherits_name(name):
            return True
        return any(name in child._taken_names for child in self.descendants())

    def claim_name(self, base: str) -> str:
        """
        Reserve a member name; ``usuario`` becomes ``usuario2``, ``usuario3``...
        when already in use.
        """
        candidate: str = base
        counter: int = 2
        while self.name_in_use(candidate):
            candidate = f"{base}{counter}"
            counter += 1
        self._taken_names.add(candidate)
        return candidate

    def claim_edge_name(self, base: str) -> str:
        candidate: str = base
        counter: int = 2
        while candidate in self._edge_names:
            candidate = f"{base}{counter}"
            counter += 1
        self._edge_names.add(candidate)
        return candidate

    def add_import(self, qualified_name: Optional[str]) -> None:
        """Ordered-set insert; ``None`` is ignored."""
        if qualified_name and qualified_name not in self.imports:
            self.imports.append(qualified_name)

    @property
    def all_fields(self) -> List[FieldSpec]:
        """Declared fields: id (when not inherited), scalars, relations."""
        fields: List[FieldSpec] = []
        if self.id_field is not None:
            fields.append(self.id_field)
        fields.extend(self.scalar_fields)
        fields.extend(self.relation_fields)
        return fields

    @property
    def reference_fields(self) -> List[FieldSpec]:
        return [f for f in self.relation_fields if f.is_reference]

    @property
    def collection_fields(self) -> List[FieldSpec]:
        return [f for f in self.relation_fields if f.is_collection]

    @property
    def many_to_one_edges(self) -> List[ParentEdge]:
        return [e for e in self.parent_edges if e.kind == EDGE_MANY_TO_ONE]

    @property
    def many_to_many_edges(self) -> List[ParentEdge]:
        return [e for e in self.parent_edges if e.kind == EDGE_MANY_TO_MANY]

    @property
    def member_name(self) -> str:
        """camelCase form of the entity name: ``DetallePedido`` → ``detallePedido``."""
        return safe_member_name(self.entity_name)

    def __repr__(self) -> str:
        parent: str = f" extends {self.extends_class}" if self.extends_class else ""
        return (
            f"<EntityDescriptor {self.entity_name}{parent}: "
            f"{len(self.scalar_fields)} scalars, "
            f"{len(self.relation_fields)} relations, "
            f"{len(self.parent_edges)} edges>"
        )


@dataclass(slots=True)
class ResolvedModel:
    """Ordered descriptors (diagram table order) plus resolution diagnostics."""

    descriptors: List[EntityDescriptor] = field(default_factory=list)
    diagnostics: List[RelationshipResolutionWarning] = field(default_factory=list)
    _by_table_id: Dict[str, EntityDescriptor] = field(default_factory=dict, repr=False)

    def add(self, descriptor: EntityDescriptor) -> None:
        self.descriptors.append(descriptor)
        self._by_table_id[descriptor.table_id] = descriptor

    def get(self, table_id: str) -> Optional[EntityDescriptor]:
        return self._by_table_id.get(table_id)

    def by_entity_name(self, entity_name: str) -> Optional[EntityDescriptor]:
        for descriptor in self.descriptors:
            if descriptor.entity_name == entity_name:
                return descriptor
        return None

    def lineage(self, descriptor: EntityDescriptor) -> List[EntityDescriptor]:
        """Inheritance chain, root first, ending with *descriptor*."""
        chain: List[EntityDescriptor] = [descriptor]
        seen: Set[str] = {descriptor.table_id}
        current: EntityDescriptor = descriptor
        while current.extends_table_id:
            parent: Optional[EntityDescriptor] = self.get(current.extends_table_id)
            if parent is None or parent.table_id in seen:
                break
            chain.append(parent)
            seen.add(parent.table_id)
            current = parent
        chain.reverse()
        return chain

    def root(self, descriptor: EntityDescriptor) -> EntityDescriptor:
        return self.lineage(descriptor)[0]

    def id_field_for(self, descriptor: EntityDescriptor) -> FieldSpec:
        """Effective id: the descriptor's own, or the inheritance root's."""
        root: EntityDescriptor = self.root(descriptor)
        if root.id_field is None:
            raise LookupError(f"Entity {root.entity_name!r} has no id field.")
        return root.id_field

    def inherited_fields(self, descriptor: EntityDescriptor) -> List[FieldSpec]:
        """Every field visible on *descriptor*, ancestors first."""
        fields: List[FieldSpec] = []
        for member in self.lineage(descriptor):
            fields.extend(member.all_fields)
        return fields

    @property
    def entity_count(self) -> int:
        return len(self.descriptors)

    def __iter__(self) -> Iterator[EntityDescriptor]:
        return iter(self.descriptors)

    def __len__(self) -> int:
        return len(self.descriptors)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


def _entity_base_name(table: Table) -> str:
    name: str = to_pascal_case(table.name)
    if not name:
        name = to_pascal_case(synthesize_table_name(table.id)) or "Entity"
    if name[0].isdigit():
        name = f"T{name}"
    if name in _RESERVED_TYPE_NAMES:
        name = f"{name}Entity"
    return name


class RelationshipResolver:
    """
    Stateless between calls: every ``resolve`` builds fresh descriptors, so
    one resolver can be shared by concurrent requests.
    """

    def resolve(self, diagram: Diagram) -> ResolvedModel:
        model: ResolvedModel = ResolvedModel()
        derived_names: Set[str] = set()
        join_tables: Set[str] = set()

        for table in diagram.tables:
            model.add(self._new_descriptor(table, derived_names))

        inheritance: List[Relationship] = []
        others: List[Relationship] = []
        for rel in diagram.relationships:
            (inheritance if rel.kind == RelationshipKind.INHERITANCE else others).append(rel)

        for rel in inheritance:
            ends = self._endpoints(rel, model)
            if ends is not None:
                self._apply_inheritance(rel, ends[0], ends[1], model)

        # Superclasses first, so a subclass sees every inherited member name
        for table in sorted(diagram.tables, key=lambda t: len(model.lineage(model.get(t.id)))):
            descriptor: EntityDescriptor = model.get(table.id)  # type: ignore[assignment]
            self._build_columns(table, descriptor, model)

        for rel in others:
            ends = self._endpoints(rel, model)
            if ends is None:
                continue
            a, b = ends
            kind: Optional[RelationshipKind] = rel.kind
            if kind is None:
                self._diagnose(
                    model,
                    "UNKNOWN_RELATIONSHIP_TYPE",
                    f"Relationship '{rel.id}' has unknown type '{rel.type}'; skipped.",
                    rel.id,
                )
                continue
            if kind == RelationshipKind.ONE_TO_ONE:
                self._apply_one_to_one(rel, a, b)
            elif kind == RelationshipKind.ONE_TO_MANY:
                self._apply_one_to_many(rel, one=a, many=b, model=model)
            elif kind == RelationshipKind.MANY_TO_ONE:
                self._apply_one_to_many(rel, one=b, many=a, model=model)
            elif kind == RelationshipKind.MANY_TO_MANY:
                self._apply_many_to_many(rel, a, b, model, join_tables)
            elif kind == RelationshipKind.COMPOSITION:
                self._apply_owned_collection(rel, a, b, model, composition=True)
            else:
                self._apply_owned_collection(rel, a, b, model, composition=False)

        for descriptor in model.descriptors:
            descriptor.display_field = self._pick_display_field(descriptor, model)

        logger.info(
            "Resolved %d entities (%d diagnostics).",
            model.entity_count,
            len(model.diagnostics),
        )
        return model

    # -- Building blocks ------------------------------------------------------

    @staticmethod
    def _new_descriptor(table: Table, derived_names: Set[str]) -> EntityDescriptor:
        base: str = _entity_base_name(table)
        entity_name: str = base
        counter: int = 2
        # Class, URL path, Dart file and table names derive from the entity
        # name and must all stay unique, case-insensitively
        while (
            entity_name.lower() in derived_names
            or to_snake_case(entity_name) in derived_names
        ):
            entity_name = f"{base}{counter}"
            counter += 1
        derived_names.add(entity_name.lower())
        derived_names.add(to_snake_case(entity_name))
        descriptor: EntityDescriptor = EntityDescriptor(
            table_id=table.id,
            entity_name=entity_name,
            table_name=to_snake_case(entity_name),
            file_name=to_snake_case(entity_name),
            api_path=f"/api/{entity_name.lower()}",
        )
        descriptor.add_import("javax.persistence.*")
        return descriptor

    @staticmethod
    def _diagnose(
        model: ResolvedModel,
        code: str,
        message: str,
        relationship_id: str = "",
    ) -> None:
        warning: RelationshipResolutionWarning = RelationshipResolutionWarning(
            code, message, relationship_id
        )
        model.diagnostics.append(warning)
        logger.warning("%s", warning)

    def _endpoints(
        self,
        rel: Relationship,
        model: ResolvedModel,
    ) -> Optional[Tuple[EntityDescriptor, EntityDescriptor]]:
        a: Optional[EntityDescriptor] = model.get(rel.from_table_id)
        b: Optional[EntityDescriptor] = model.get(rel.to_table_id)
        if a is None or b is None:
            self._diagnose(
                model,
                "DANGLING_ENDPOINT",
                f"Relationship '{rel.id}' ({rel.type or '?'}) references a missing "
                f"table (from={rel.from_table_id or '∅'}, to={rel.to_table_id or '∅'}); "
                f"skipped.",
                rel.id,
            )
            return None
        return a, b

    def _build_columns(
        self,
        table: Table,
        descriptor: EntityDescriptor,
        model: ResolvedModel,
    ) -> None:
        pk_column: Optional[Column] = table.primary_key_column
        if descriptor.extends_table_id:
            if pk_column is not None:
                self._diagnose(
                    model,
                    "SUBCLASS_PK_DROPPED",
                    f"'{descriptor.entity_name}' inherits its id from "
                    f"'{model.root(descriptor).entity_name}'; PK column "
                    f"'{pk_column.name}' is not generated.",
                )
        else:
            id_name: str = descriptor.claim_name(
                (safe_member_name(pk_column.name) if pk_column is not None else "")
                or "id"
            )
            descriptor.id_field = FieldSpec(
                name=id_name,
                java_type="Long",
                dart_type="int",
                kind=FIELD_ID,
                column_name=pk_column.name if pk_column is not None else "id",
                annotations=["@Id", "@GeneratedValue(strategy = GenerationType.IDENTITY)"],
            )

        for position, column in enumerate(table.columns, start=1):
            if column is pk_column:
                continue
            base: str = safe_member_name(column.name) or f"field{position}"
            if descriptor.inherits_name(base):
                self._diagnose(
                    model,
                    "SUBCLASS_COLUMN_DROPPED",
                    f"'{descriptor.entity_name}' inherits '{base}'; column "
                    f"'{column.name}' is not generated.",
                )
                continue

            java_type, dart_type = map_types(column.type)
            descriptor.scalar_fields.append(
                FieldSpec(
                    name=descriptor.claim_name(base),
                    java_type=java_type,
                    dart_type=dart_type,
                    kind=FIELD_SCALAR,
                    column_name=column.name,
                    type_category=classify_type(column.type),
                )
            )
            descriptor.add_import(java_type_import(java_type))

    @staticmethod
    def _use_collections(descriptor: EntityDescriptor) -> None:
        descriptor.add_import("java.util.List")
        descriptor.add_import("java.util.ArrayList")
        descriptor.add_import("com.fasterxml.jackson.annotation.JsonIgnore")

    @staticmethod
    def _reference(
        owner: EntityDescriptor,
        target: EntityDescriptor,
        relation_annotation: str,
        rel: Relationship,
    ) -> FieldSpec:
        name: str = owner.claim_name(target.member_name)
        join_column: str = f"{to_snake_case(name)}_id"
        reference: FieldSpec = FieldSpec(
            name=name,
            java_type=target.entity_name,
            dart_type=target.entity_name,
            kind=FIELD_REFERENCE,
            target_entity=target.entity_name,
            target_table_id=target.table_id,
            join_column=join_column,
            relationship_id=rel.id,
            annotations=[relation_annotation, f'@JoinColumn(name = "{join_column}")'],
        )
        owner.relation_fields.append(reference)
        return reference

    @staticmethod
    def _collection(
        owner: EntityDescriptor,
        target: EntityDescriptor,
        name: str,
        annotations: List[str],
        rel: Relationship,
        mapped_by: str = "",
        join_column: str = "",
        cascade: bool = False,
    ) -> FieldSpec:
        collection: FieldSpec = FieldSpec(
            name=name,
            java_type=f"List<{target.entity_name}>",
            dart_type=f"List<{target.entity_name}>",
            kind=FIELD_COLLECTION,
            target_entity=target.entity_name,
            target_table_id=target.table_id,
            join_column=join_column,
            mapped_by=mapped_by,
            cascade=cascade,
            json_ignore=True,
            initializer="new ArrayList<>()",
            relationship_id=rel.id,
            annotations=["@JsonIgnore"] + annotations,
        )
        owner.relation_fields.append(collection)
        RelationshipResolver._use_collections(owner)
        return collection

    # -- Relationship kinds ---------------------------------------------------

    def _apply_inheritance(
        self,
        rel: Relationship,
        child: EntityDescriptor,
        parent: EntityDescriptor,
        model: ResolvedModel,
    ) -> None:
        if child.extends_table_id:
            self._diagnose(
                model,
                "MULTIPLE_INHERITANCE",
                f"'{child.entity_name}' already extends '{child.extends_class}'; "
                f"relationship '{rel.id}' to '{parent.entity_name}' skipped.",
                rel.id,
            )
            return
        if child.table_id in {d.table_id for d in model.lineage(parent)}:
            self._diagnose(
                model,
                "INHERITANCE_CYCLE",
                f"'{child.entity_name}' extends '{parent.entity_name}' would close "
                f"an inheritance cycle; skipped.",
                rel.id,
            )
            return
        child.extends_class = parent.entity_name
        child.extends_table_id = parent.table_id
        child._parent = parent
        parent._children.append(child)
        parent.is_extended = True
        logger.debug("%s extends %s", child.entity_name, parent.entity_name)

    def _apply_one_to_one(
        self,
        rel: Relationship,
        a: EntityDescriptor,
        b: EntityDescriptor,
    ) -> None:
        reference: FieldSpec = self._reference(a, b, "@OneToOne", rel)
        a.form_relations.append(
            FormRelation(reference.name, b.entity_name, b.table_id, b.file_name)
        )

    def _apply_one_to_many(
        self,
        rel: Relationship,
        one: EntityDescriptor,
        many: EntityDescriptor,
        model: ResolvedModel,
    ) -> None:
        # Back-reference first: mappedBy must name its final spelling
        back: FieldSpec = self._reference(many, one, "@ManyToOne", rel)
        self._collection(
            one,
            many,
            one.claim_name(f"{many.member_name}List"),
            [f'@OneToMany(mappedBy = "{back.name}")'],
            rel,
            mapped_by=back.name,
        )
        edge_name: str = many.claim_edge_name(back.name)
        many.parent_edges.append(
            ParentEdge(
                parent_entity_name=one.entity_name,
                parent_table_id=one.table_id,
                parent_field_name=edge_name,
                property_path=back.name,
                parent_pk_name=model.id_field_for(one).name,
                kind=EDGE_MANY_TO_ONE,
                relationship_id=rel.id,
            )
        )
        many.form_relations.append(
            FormRelation(back.name, one.entity_name, one.table_id, one.file_name)
        )
        one.detail_sub_lists.append(
            DetailSubList(many.entity_name, many.table_id, many.file_name, edge_name)
        )

    def _apply_many_to_many(
        self,
        rel: Relationship,
        a: EntityDescriptor,
        b: EntityDescriptor,
        model: ResolvedModel,
        join_tables: Set[str],
    ) -> None:
        snake_a: str = to_snake_case(a.entity_name)
        snake_b: str = to_snake_case(b.entity_name)
        join_table: str = f"{snake_a}_{snake_b}"
        counter: int = 2
        while join_table in join_tables:
            join_table = f"{snake_a}_{snake_b}{counter}"
            counter += 1
        join_tables.add(join_table)
        inverse_column: str = f"{snake_b}_id" if a is not b else f"related_{snake_b}_id"

        owner: FieldSpec = self._collection(
            a,
            b,
            a.claim_name(f"{b.member_name}List"),
            [
                "@ManyToMany",
                f'@JoinTable(name = "{join_table}", '
                f'joinColumns = @JoinColumn(name = "{snake_a}_id"), '
                f'inverseJoinColumns = @JoinColumn(name = "{inverse_column}"))',
            ],
            rel,
        )
        inverse: FieldSpec = self._collection(
            b,
            a,
            b.claim_name(f"{a.member_name}List"),
            [f'@ManyToMany(mappedBy = "{owner.name}")'],
            rel,
            mapped_by=owner.name,
        )

        # Each side can list its partners by the other side's id
        for child, parent, path in ((b, a, inverse.name), (a, b, owner.name)):
            edge_name: str = child.claim_edge_name(parent.member_name)
            child.parent_edges.append(
                ParentEdge(
                    parent_entity_name=parent.entity_name,
                    parent_table_id=parent.table_id,
                    parent_field_name=edge_name,
                    property_path=path,
                    parent_pk_name=model.id_field_for(parent).name,
                    kind=EDGE_MANY_TO_MANY,
                    relationship_id=rel.id,
                )
            )
            parent.detail_sub_lists.append(
                DetailSubList(
                    child.entity_name,
                    child.table_id,
                    child.file_name,
                    edge_name,
                    kind=EDGE_MANY_TO_MANY,
                )
            )

    def _apply_owned_collection(
        self,
        rel: Relationship,
        a: EntityDescriptor,
        b: EntityDescriptor,
        model: ResolvedModel,
        composition: bool,
    ) -> None:
        name: str = a.claim_name(f"{b.member_name}List")
        if composition:
            join_column: str = f"{to_snake_case(a.entity_name)}_id"
            self._collection(
                a,
                b,
                name,
                [
                    "@OneToMany(cascade = CascadeType.ALL, orphanRemoval = true)",
                    f'@JoinColumn(name = "{join_column}")',
                ],
                rel,
                join_column=join_column,
                cascade=True,
            )
        else:
            self._collection(a, b, name, ["@OneToMany"], rel)

        edge_name: str = b.claim_edge_name(a.member_name)
        b.parent_edges.append(
            ParentEdge(
                parent_entity_name=a.entity_name,
                parent_table_id=a.table_id,
                parent_field_name=edge_name,
                property_path=name,
                parent_pk_name=model.id_field_for(a).name,
                kind=EDGE_OWNED_COLLECTION,
                relationship_id=rel.id,
            )
        )
        a.detail_sub_lists.append(
            DetailSubList(
                b.entity_name,
                b.table_id,
                b.file_name,
                edge_name,
                kind=EDGE_OWNED_COLLECTION,
            )
        )

    # -- Display field --------------------------------------------------------

    @staticmethod
    def _pick_display_field(
        descriptor: EntityDescriptor,
        model: ResolvedModel,
    ) -> str:
        scalars: List[FieldSpec] = []
        for member in reversed(model.lineage(descriptor)):
            scalars.extend(member.scalar_fields)

        def _find(candidates: tuple) -> Optional[str]:
            for spec in scalars:
                if to_camel_case(spec.column_name).lower() in candidates:
                    return spec.name
            return None

        chosen: Optional[str] = _find(_DISPLAY_PRIMARY) or _find(_DISPLAY_SECONDARY)
        if chosen:
            return chosen
        for spec in scalars:
            if spec.java_type == "String":
                return spec.name
        return model.id_field_for(descriptor).name


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FIELD_ID",
    "FIELD_SCALAR",
    "FIELD_REFERENCE",
    "FIELD_COLLECTION",
    "EDGE_MANY_TO_ONE",
    "EDGE_MANY_TO_MANY",
    "EDGE_OWNED_COLLECTION",
    "FieldSpec",
    "ParentEdge",
    "FormRelation",
    "DetailSubList",
    "EntityDescriptor",
    "ResolvedModel",
    "RelationshipResolver",
]

logger.debug("diagramgen.resolver loaded — %d public symbols.", len(__all__))
