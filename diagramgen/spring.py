# File: diagramgen/spring.py
"""
diagramgen - Spring Boot Template Generator
=============================================
Produces the server project: one JPA entity, repository, service and REST
controller per resolved entity, plus the Maven build, application
properties and the ``@SpringBootApplication`` entry point.

Every ``generate_*`` method returns the complete content of one file.  The
generator reads ``EntityDescriptor`` instances only; it never looks at the
raw diagram.

Layout of the emitted tree (``<pkg>`` is ``GenerationConfig.package_path``)::

    pom.xml
    README.md
    .gitignore
    src/main/resources/application.properties
    src/main/java/<pkg>/<Name>Application.java
    src/main/java/<pkg>/entities/<Entity>.java
    src/main/java/<pkg>/repositories/<Entity>Repository.java
    src/main/java/<pkg>/services/<Entity>Service.java
    src/main/java/<pkg>/controllers/<Entity>Controller.java
"""

from __future__ import annotations

import logging
from typing import Dict, List

from diagramgen.models import GenerationConfig
from diagramgen.resolver import (
    EDGE_MANY_TO_MANY,
    EDGE_MANY_TO_ONE,
    FIELD_REFERENCE,
    FIELD_SCALAR,
    EntityDescriptor,
    FieldSpec,
    ParentEdge,
    ResolvedModel,
)
from diagramgen.utils import build_java_import_block, quote_java, to_title_human

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("diagramgen.spring")

_INDENT: str = " " * 4

SPRING_SOURCE_ROOT: str = "src/main/java"
SPRING_RESOURCE_ROOT: str = "src/main/resources"

# Layer subpackages under the application package
ENTITY_PACKAGE: str = "entities"
REPOSITORY_PACKAGE: str = "repositories"
SERVICE_PACKAGE: str = "services"
CONTROLLER_PACKAGE: str = "controllers"


class SpringTemplateGenerator:
    """
    Code-generation engine for the Spring Boot target.

    Holds the config and the resolved model; no state changes after
    construction, so one instance can render files in any order.
    """

    def __init__(self, config: GenerationConfig, resolved: ResolvedModel) -> None:
        self._config: GenerationConfig = config
        self._resolved: ResolvedModel = resolved
        self._package: str = config.package_name
        self._source_dir: str = f"{SPRING_SOURCE_ROOT}/{config.package_path}"
        logger.debug(
            "SpringTemplateGenerator initialised (package=%s, entities=%d).",
            self._package,
            resolved.entity_count,
        )

    # ===================================================================
    # Layout
    # ===================================================================

    def directories(self) -> List[str]:
        """Every directory the project needs, parents before children."""
        return [
            SPRING_SOURCE_ROOT,
            self._source_dir,
            f"{self._source_dir}/{ENTITY_PACKAGE}",
            f"{self._source_dir}/{REPOSITORY_PACKAGE}",
            f"{self._source_dir}/{SERVICE_PACKAGE}",
            f"{self._source_dir}/{CONTROLLER_PACKAGE}",
            SPRING_RESOURCE_ROOT,
        ]

    def entity_path(self, desc: EntityDescriptor) -> str:
        return f"{self._source_dir}/{ENTITY_PACKAGE}/{desc.entity_name}.java"

    def repository_path(self, desc: EntityDescriptor) -> str:
        return f"{self._source_dir}/{REPOSITORY_PACKAGE}/{desc.entity_name}Repository.java"

    def service_path(self, desc: EntityDescriptor) -> str:
        return f"{self._source_dir}/{SERVICE_PACKAGE}/{desc.entity_name}Service.java"

    def controller_path(self, desc: EntityDescriptor) -> str:
        return f"{self._source_dir}/{CONTROLLER_PACKAGE}/{desc.entity_name}Controller.java"

    # ===================================================================
    # 1. JPA entity
    # ===================================================================

    def generate_entity(self, desc: EntityDescriptor) -> str:
        """
        JPA entity with fields, a no-arg constructor and one getter/setter
        pair per declared field.  A subclass declares no id of its own.
        """
        lines: List[str] = []
        lines.append(f"package {self._package}.{ENTITY_PACKAGE};")
        lines.append("")
        lines.append(build_java_import_block(desc.imports))
        lines.append("")
        lines.append("@Entity")
        lines.append(f"@Table(name = {quote_java(desc.table_name)})")
        if desc.is_extended:
            lines.append("@Inheritance(strategy = InheritanceType.JOINED)")
        extends: str = f" extends {desc.extends_class}" if desc.extends_class else ""
        lines.append(f"public class {desc.entity_name}{extends} {{")

        for spec in desc.all_fields:
            lines.append("")
            lines.extend(self._render_field(spec))

        lines.append("")
        lines.append(f"{_INDENT}public {desc.entity_name}() {{")
        lines.append(f"{_INDENT}}}")

        for spec in desc.all_fields:
            lines.append("")
            lines.extend(self._render_accessors(spec))

        lines.append("}")
        lines.append("")
        return "\n".join(lines)

    @staticmethod
    def _render_field(spec: FieldSpec) -> List[str]:
        lines: List[str] = [f"{_INDENT}{annotation}" for annotation in spec.annotations]
        initializer: str = f" = {spec.initializer}" if spec.initializer else ""
        lines.append(f"{_INDENT}private {spec.java_type} {spec.name}{initializer};")
        return lines

    @staticmethod
    def _render_accessors(spec: FieldSpec) -> List[str]:
        return [
            f"{_INDENT}public {spec.java_type} {spec.getter_name}() {{",
            f"{_INDENT * 2}return {spec.name};",
            f"{_INDENT}}}",
            "",
            f"{_INDENT}public void {spec.setter_name}({spec.java_type} {spec.name}) {{",
            f"{_INDENT * 2}this.{spec.name} = {spec.name};",
            f"{_INDENT}}}",
        ]

    # ===================================================================
    # 2. Repository
    # ===================================================================

    @staticmethod
    def edge_query(desc: EntityDescriptor, edge: ParentEdge) -> str:
        """JPQL selecting *desc* rows that belong to one parent row."""
        if edge.kind == EDGE_MANY_TO_ONE:
            return (
                f"SELECT e FROM {desc.entity_name} e "
                f"WHERE e.{edge.property_path}.{edge.parent_pk_name} = :parentId"
            )
        if edge.kind == EDGE_MANY_TO_MANY:
            return (
                f"SELECT e FROM {desc.entity_name} e JOIN e.{edge.property_path} p "
                f"WHERE p.{edge.parent_pk_name} = :parentId"
            )
        return (
            f"SELECT c FROM {edge.parent_entity_name} p JOIN p.{edge.property_path} c "
            f"WHERE p.{edge.parent_pk_name} = :parentId"
        )

    def generate_repository(self, desc: EntityDescriptor) -> str:
        name: str = desc.entity_name
        imports: List[str] = [
            f"{self._package}.{ENTITY_PACKAGE}.{name}",
            "org.springframework.data.jpa.repository.JpaRepository",
        ]
        if desc.parent_edges:
            imports.extend([
                "org.springframework.data.jpa.repository.Query",
                "org.springframework.data.repository.query.Param",
            ])
        imports.append("org.springframework.stereotype.Repository")

        lines: List[str] = []
        lines.append(f"package {self._package}.{REPOSITORY_PACKAGE};")
        lines.append("")
        lines.append(build_java_import_block(imports))
        if desc.parent_edges:
            lines.append("")
            lines.append("import java.util.List;")
        lines.append("")
        lines.append("@Repository")
        lines.append(
            f"public interface {name}Repository extends JpaRepository<{name}, Long> {{"
        )
        for edge in desc.parent_edges:
            lines.append("")
            lines.append(f"{_INDENT}@Query({quote_java(self.edge_query(desc, edge))})")
            lines.append(
                f"{_INDENT}List<{name}> {edge.finder_name}"
                f'(@Param("parentId") Long parentId);'
            )
        lines.append("}")
        lines.append("")
        return "\n".join(lines)

    # ===================================================================
    # 3. Service
    # ===================================================================

    def updatable_fields(self, desc: EntityDescriptor) -> List[FieldSpec]:
        """Scalars and references copied by ``update``, ancestors first."""
        return [
            spec
            for spec in self._resolved.inherited_fields(desc)
            if spec.kind in (FIELD_SCALAR, FIELD_REFERENCE)
        ]

    def generate_service(self, desc: EntityDescriptor) -> str:
        """
        CRUD service.  ``update`` loads the stored row and copies the scalar
        and reference fields onto it, leaving collections untouched.
        ``update`` returns ``Optional.empty()`` and ``deleteById`` returns
        ``false`` for an unknown id.
        """
        name: str = desc.entity_name
        var: str = desc.member_name
        stored: str = "stored" if var != "stored" else "storedRow"
        id_field: FieldSpec = self._resolved.id_field_for(desc)

        lines: List[str] = []
        lines.append(f"package {self._package}.{SERVICE_PACKAGE};")
        lines.append("")
        lines.append(build_java_import_block([
            f"{self._package}.{ENTITY_PACKAGE}.{name}",
            f"{self._package}.{REPOSITORY_PACKAGE}.{name}Repository",
            "org.springframework.stereotype.Service",
        ]))
        lines.append("")
        lines.append("import java.util.List;")
        lines.append("import java.util.Optional;")
        lines.append("")
        lines.append("@Service")
        lines.append(f"public class {name}Service {{")
        lines.append("")
        lines.append(f"{_INDENT}private final {name}Repository repository;")
        lines.append("")
        lines.append(f"{_INDENT}public {name}Service({name}Repository repository) {{")
        lines.append(f"{_INDENT * 2}this.repository = repository;")
        lines.append(f"{_INDENT}}}")
        lines.append("")
        lines.append(f"{_INDENT}public List<{name}> findAll() {{")
        lines.append(f"{_INDENT * 2}return repository.findAll();")
        lines.append(f"{_INDENT}}}")
        lines.append("")
        lines.append(f"{_INDENT}public Optional<{name}> findById(Long id) {{")
        lines.append(f"{_INDENT * 2}return repository.findById(id);")
        lines.append(f"{_INDENT}}}")
        lines.append("")
        lines.append(f"{_INDENT}public {name} create({name} {var}) {{")
        lines.append(f"{_INDENT * 2}{var}.{id_field.setter_name}(null);")
        lines.append(f"{_INDENT * 2}return repository.save({var});")
        lines.append(f"{_INDENT}}}")
        lines.append("")
        lines.append(f"{_INDENT}public Optional<{name}> update(Long id, {name} {var}) {{")
        lines.append(f"{_INDENT * 2}return repository.findById(id).map({stored} -> {{")
        for spec in self.updatable_fields(desc):
            lines.append(
                f"{_INDENT * 3}{stored}.{spec.setter_name}({var}.{spec.getter_name}());"
            )
        lines.append(f"{_INDENT * 3}return repository.save({stored});")
        lines.append(f"{_INDENT * 2}}});")
        lines.append(f"{_INDENT}}}")
        lines.append("")
        lines.append(f"{_INDENT}public boolean deleteById(Long id) {{")
        lines.append(f"{_INDENT * 2}if (!repository.existsById(id)) {{")
        lines.append(f"{_INDENT * 3}return false;")
        lines.append(f"{_INDENT * 2}}}")
        lines.append(f"{_INDENT * 2}repository.deleteById(id);")
        lines.append(f"{_INDENT * 2}return true;")
        lines.append(f"{_INDENT}}}")

        for edge in desc.parent_edges:
            lines.append("")
            lines.append(
                f"{_INDENT}public List<{name}> {edge.finder_name}(Long {edge.path_variable}) {{"
            )
            lines.append(f"{_INDENT * 2}return repository.{edge.finder_name}({edge.path_variable});")
            lines.append(f"{_INDENT}}}")

        lines.append("}")
        lines.append("")
        return "\n".join(lines)

    # ===================================================================
    # 4. REST controller
    # ===================================================================

    def generate_controller(self, desc: EntityDescriptor) -> str:
        name: str = desc.entity_name
        var: str = desc.member_name

        lines: List[str] = []
        lines.append(f"package {self._package}.{CONTROLLER_PACKAGE};")
        lines.append("")
        lines.append(build_java_import_block([
            f"{self._package}.{ENTITY_PACKAGE}.{name}",
            f"{self._package}.{SERVICE_PACKAGE}.{name}Service",
            "org.springframework.http.HttpStatus",
            "org.springframework.http.ResponseEntity",
            "org.springframework.web.bind.annotation.*",
        ]))
        lines.append("")
        lines.append("import java.util.List;")
        lines.append("")
        lines.append("@RestController")
        lines.append(f"@RequestMapping({quote_java(desc.api_path)})")
        lines.append('@CrossOrigin(origins = "*")')
        lines.append(f"public class {name}Controller {{")
        lines.append("")
        lines.append(f"{_INDENT}private final {name}Service service;")
        lines.append("")
        lines.append(f"{_INDENT}public {name}Controller({name}Service service) {{")
        lines.append(f"{_INDENT * 2}this.service = service;")
        lines.append(f"{_INDENT}}}")

        # GET list
        lines.append("")
        lines.append(f"{_INDENT}@GetMapping")
        lines.append(f"{_INDENT}public List<{name}> getAll() {{")
        lines.append(f"{_INDENT * 2}return service.findAll();")
        lines.append(f"{_INDENT}}}")

        # GET one
        lines.append("")
        lines.append(f'{_INDENT}@GetMapping("/{{id}}")')
        lines.append(f"{_INDENT}public ResponseEntity<{name}> getById(@PathVariable Long id) {{")
        lines.append(f"{_INDENT * 2}return service.findById(id)")
        lines.append(f"{_INDENT * 4}.map(ResponseEntity::ok)")
        lines.append(f"{_INDENT * 4}.orElse(ResponseEntity.notFound().build());")
        lines.append(f"{_INDENT}}}")

        # POST
        lines.append("")
        lines.append(f"{_INDENT}@PostMapping")
        lines.append(
            f"{_INDENT}public ResponseEntity<{name}> create(@RequestBody {name} {var}) {{"
        )
        lines.append(
            f"{_INDENT * 2}return ResponseEntity.status(HttpStatus.CREATED)"
            f".body(service.create({var}));"
        )
        lines.append(f"{_INDENT}}}")

        # PUT
        lines.append("")
        lines.append(f'{_INDENT}@PutMapping("/{{id}}")')
        lines.append(
            f"{_INDENT}public ResponseEntity<{name}> update(@PathVariable Long id, "
            f"@RequestBody {name} {var}) {{"
        )
        lines.append(f"{_INDENT * 2}return service.update(id, {var})")
        lines.append(f"{_INDENT * 4}.map(ResponseEntity::ok)")
        lines.append(f"{_INDENT * 4}.orElse(ResponseEntity.notFound().build());")
        lines.append(f"{_INDENT}}}")

        # DELETE
        lines.append("")
        lines.append(f'{_INDENT}@DeleteMapping("/{{id}}")')
        lines.append(f"{_INDENT}public ResponseEntity<Void> delete(@PathVariable Long id) {{")
        lines.append(f"{_INDENT * 2}if (!service.deleteById(id)) {{")
        lines.append(f"{_INDENT * 3}return ResponseEntity.notFound().build();")
        lines.append(f"{_INDENT * 2}}}")
        lines.append(f"{_INDENT * 2}return ResponseEntity.noContent().build();")
        lines.append(f"{_INDENT}}}")

        # GET by parent
        for edge in desc.parent_edges:
            lines.append("")
            lines.append(
                f'{_INDENT}@GetMapping("/{edge.url_segment}/{{{edge.path_variable}}}")'
            )
            method: str = f"getBy{edge.finder_name[len('findBy'):]}"
            lines.append(
                f"{_INDENT}public List<{name}> {method}"
                f"(@PathVariable Long {edge.path_variable}) {{"
            )
            lines.append(f"{_INDENT * 2}return service.{edge.finder_name}({edge.path_variable});")
            lines.append(f"{_INDENT}}}")

        lines.append("}")
        lines.append("")
        return "\n".join(lines)

    # ===================================================================
    # 5. Build & bootstrap files
    # ===================================================================

    def generate_pom(self) -> str:
        cfg: GenerationConfig = self._config
        artifact: str = cfg.package_name.rsplit(".", 1)[-1]
        lines: List[str] = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<project xmlns="http://maven.apache.org/POM/4.0.0" '
            'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"',
            f'{_INDENT}xsi:schemaLocation="http://maven.apache.org/POM/4.0.0 '
            'https://maven.apache.org/xsd/maven-4.0.0.xsd">',
            f"{_INDENT}<modelVersion>4.0.0</modelVersion>",
            f"{_INDENT}<parent>",
            f"{_INDENT * 2}<groupId>org.springframework.boot</groupId>",
            f"{_INDENT * 2}<artifactId>spring-boot-starter-parent</artifactId>",
            f"{_INDENT * 2}<version>{cfg.spring_boot_version}</version>",
            f"{_INDENT * 2}<relativePath/>",
            f"{_INDENT}</parent>",
            f"{_INDENT}<groupId>{cfg.base_package}</groupId>",
            f"{_INDENT}<artifactId>{artifact}</artifactId>",
            f"{_INDENT}<version>0.0.1-SNAPSHOT</version>",
            f"{_INDENT}<name>{cfg.sanitized_project_name}</name>",
            f"{_INDENT}<description>Spring Boot API for {cfg.sanitized_project_name}</description>",
            f"{_INDENT}<properties>",
            f"{_INDENT * 2}<java.version>{cfg.java_version}</java.version>",
            f"{_INDENT}</properties>",
            f"{_INDENT}<dependencies>",
        ]
        for scope, artifact_id, group_id in (
            ("", "spring-boot-starter-data-jpa", "org.springframework.boot"),
            ("", "spring-boot-starter-web", "org.springframework.boot"),
            ("runtime", "h2", "com.h2database"),
            ("test", "spring-boot-starter-test", "org.springframework.boot"),
        ):
            lines.append(f"{_INDENT * 2}<dependency>")
            lines.append(f"{_INDENT * 3}<groupId>{group_id}</groupId>")
            lines.append(f"{_INDENT * 3}<artifactId>{artifact_id}</artifactId>")
            if scope:
                lines.append(f"{_INDENT * 3}<scope>{scope}</scope>")
            lines.append(f"{_INDENT * 2}</dependency>")
        lines.extend([
            f"{_INDENT}</dependencies>",
            f"{_INDENT}<build>",
            f"{_INDENT * 2}<plugins>",
            f"{_INDENT * 3}<plugin>",
            f"{_INDENT * 4}<groupId>org.springframework.boot</groupId>",
            f"{_INDENT * 4}<artifactId>spring-boot-maven-plugin</artifactId>",
            f"{_INDENT * 3}</plugin>",
            f"{_INDENT * 2}</plugins>",
            f"{_INDENT}</build>",
            "</project>",
            "",
        ])
        return "\n".join(lines)

    def generate_application_properties(self) -> str:
        # Quoted identifiers keep tables/columns named "user", "order", "value"... legal in H2
        return "\n".join([
            f"spring.application.name={self._config.sanitized_project_name}",
            "spring.datasource.url=jdbc:h2:mem:testdb",
            "spring.datasource.driverClassName=org.h2.Driver",
            "spring.datasource.username=sa",
            "spring.datasource.password=",
            "spring.h2.console.enabled=true",
            "spring.jpa.database-platform=org.hibernate.dialect.H2Dialect",
            "spring.jpa.hibernate.ddl-auto=create-drop",
            "spring.jpa.show-sql=true",
            "spring.jpa.properties.hibernate.globally_quoted_identifiers=true",
            "",
        ])

    def generate_application_class(self) -> str:
        app: str = self._config.application_class
        return "\n".join([
            f"package {self._package};",
            "",
            "import org.springframework.boot.SpringApplication;",
            "import org.springframework.boot.autoconfigure.SpringBootApplication;",
            "",
            "@SpringBootApplication",
            f"public class {app} {{",
            "",
            f"{_INDENT}public static void main(String[] args) {{",
            f"{_INDENT * 2}SpringApplication.run({app}.class, args);",
            f"{_INDENT}}}",
            "}",
            "",
        ])

    def generate_readme(self) -> str:
        cfg: GenerationConfig = self._config
        lines: List[str] = [
            f"# {cfg.sanitized_project_name}",
            "",
            f"Spring Boot {cfg.spring_boot_version} (Java {cfg.java_version}) REST API "
            "backed by an in-memory H2 database.",
            "",
            "## Run",
            "",
            "```bash",
            "mvn spring-boot:run",
            "```",
            "",
            "H2 console: http://localhost:8080/h2-console (JDBC URL `jdbc:h2:mem:testdb`).",
            "",
            "## Endpoints",
            "",
        ]
        for desc in self._resolved:
            lines.append(f"### {to_title_human(desc.entity_name)}")
            lines.append("")
            lines.append(f"- `GET {desc.api_path}`")
            lines.append(f"- `GET {desc.api_path}/{{id}}`")
            lines.append(f"- `POST {desc.api_path}`")
            lines.append(f"- `PUT {desc.api_path}/{{id}}`")
            lines.append(f"- `DELETE {desc.api_path}/{{id}}`")
            for edge in desc.parent_edges:
                lines.append(
                    f"- `GET {desc.api_path}/{edge.url_segment}/{{{edge.path_variable}}}`"
                )
            lines.append("")
        return "\n".join(lines)

    def generate_gitignore(self) -> str:
        return "\n".join([
            "target/",
            "!.mvn/wrapper/maven-wrapper.jar",
            "*.class",
            "*.log",
            ".idea/",
            "*.iml",
            ".vscode/",
            ".DS_Store",
            "",
        ])

    # ===================================================================
    # 6. Aggregate generation
    # ===================================================================

    def generate_all_for_entity(self, desc: EntityDescriptor) -> Dict[str, str]:
        return {
            self.repository_path(desc): self.generate_repository(desc),
            self.service_path(desc): self.generate_service(desc),
            self.controller_path(desc): self.generate_controller(desc),
        }

    def generate_all(self) -> Dict[str, str]:
        """
        Every file of the server project as relative path → content.
        Entities come first so the entities package is complete before anything
        that references it.
        """
        result: Dict[str, str] = {}
        for desc in self._resolved:
            result[self.entity_path(desc)] = self.generate_entity(desc)
        for desc in self._resolved:
            result.update(self.generate_all_for_entity(desc))

        result["pom.xml"] = self.generate_pom()
        result[f"{SPRING_RESOURCE_ROOT}/application.properties"] = (
            self.generate_application_properties()
        )
        result[f"{self._source_dir}/{self._config.application_class}.java"] = (
            self.generate_application_class()
        )
        result["README.md"] = self.generate_readme()
        result[".gitignore"] = self.generate_gitignore()

        logger.info(
            "Spring generation complete: %d files for %d entities.",
            len(result),
            self._resolved.entity_count,
        )
        return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SPRING_SOURCE_ROOT",
    "SPRING_RESOURCE_ROOT",
    "ENTITY_PACKAGE",
    "REPOSITORY_PACKAGE",
    "SERVICE_PACKAGE",
    "CONTROLLER_PACKAGE",
    "SpringTemplateGenerator",
]

logger.debug("diagramgen.spring loaded.")
