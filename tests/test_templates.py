"""
tests/test_templates.py
Unit tests for the emitters: diagramgen.spring, diagramgen.flutter and the
strategy lookup in diagramgen.templates.

Tests cover:
- JPA entity, repository, service and controller generation
- Maven/bootstrap files
- Flutter model, service and page generation
- Full generate_all pipeline per target
- Structural sanity (balanced braces in every Java/Dart file)
"""

from __future__ import annotations

from typing import Dict

import pytest

from diagramgen.flutter import FlutterTemplateGenerator
from diagramgen.models import GenerationConfig, TargetEcosystem
from diagramgen.resolver import RelationshipResolver, ResolvedModel
from diagramgen.spring import SpringTemplateGenerator
from diagramgen.templates import ClientEmitter, ServerEmitter, get_emitter
from diagramgen.validators import normalize_diagram


_SOURCE_DIR: str = "src/main/java/com/example/blog"


@pytest.fixture()
def spring(blog_config: GenerationConfig, usuario_post_resolved: ResolvedModel) -> SpringTemplateGenerator:
    return SpringTemplateGenerator(blog_config, usuario_post_resolved)


@pytest.fixture()
def flutter(blog_config: GenerationConfig, usuario_post_resolved: ResolvedModel) -> FlutterTemplateGenerator:
    return FlutterTemplateGenerator(blog_config, usuario_post_resolved)


@pytest.fixture()
def shop_spring(shop_resolved: ResolvedModel) -> SpringTemplateGenerator:
    return SpringTemplateGenerator(GenerationConfig(project_name="Shop"), shop_resolved)


@pytest.fixture()
def shop_flutter(shop_resolved: ResolvedModel) -> FlutterTemplateGenerator:
    return FlutterTemplateGenerator(GenerationConfig(project_name="Shop", target="client"), shop_resolved)


@pytest.fixture()
def school_resolved() -> ResolvedModel:
    """Estudiante repeats the ``nombre`` column of its superclass Persona."""
    return RelationshipResolver().resolve(normalize_diagram({
        "tables": [
            {
                "id": "t-persona",
                "name": "Persona",
                "columns": [
                    {"name": "id", "type": "INT", "constraints": ["PK"]},
                    {"name": "nombre", "type": "VARCHAR(80)"},
                ],
            },
            {
                "id": "t-estudiante",
                "name": "Estudiante",
                "columns": [
                    {"name": "nombre", "type": "VARCHAR(80)"},
                    {"name": "carrera", "type": "VARCHAR(80)"},
                ],
            },
        ],
        "relationships": [
            {"id": "r1", "type": "inheritance", "fromTableId": "t-estudiante", "toTableId": "t-persona"},
        ],
    }))



def _assert_balanced(files: Dict[str, str]) -> None:
    for path, content in files.items():
        if path.endswith((".java", ".dart")):
            assert content.count("{") == content.count("}"), path
            assert content.count("(") == content.count(")"), path


# ===========================================================================
# Spring: entities
# ===========================================================================


class TestSpringEntities:
    def test_entity_header(self, spring: SpringTemplateGenerator, usuario_post_resolved: ResolvedModel) -> None:
        code = spring.generate_entity(usuario_post_resolved.get("t-usuario"))
        assert code.startswith("package com.example.blog.entities;")
        assert "@Entity" in code
        assert '@Table(name = "usuario")' in code
        assert "public class Usuario {" in code
        assert "public Usuario() {" in code

    def test_entity_imports(self, spring: SpringTemplateGenerator, usuario_post_resolved: ResolvedModel) -> None:
        code = spring.generate_entity(usuario_post_resolved.get("t-usuario"))
        assert "import javax.persistence.*;" in code
        assert "import java.time.LocalDate;" in code
        assert "import java.util.List;" in code
        assert "import com.fasterxml.jackson.annotation.JsonIgnore;" in code

    def test_id_and_scalars(self, spring: SpringTemplateGenerator, usuario_post_resolved: ResolvedModel) -> None:
        code = spring.generate_entity(usuario_post_resolved.get("t-usuario"))
        assert "@Id" in code
        assert "@GeneratedValue(strategy = GenerationType.IDENTITY)" in code
        assert "private Long id;" in code
        assert "private LocalDate fechaAlta;" in code
        assert "public LocalDate getFechaAlta() {" in code
        assert "public void setFechaAlta(LocalDate fechaAlta) {" in code

    def test_collection_side(self, spring: SpringTemplateGenerator, usuario_post_resolved: ResolvedModel) -> None:
        code = spring.generate_entity(usuario_post_resolved.get("t-usuario"))
        assert "@JsonIgnore" in code
        assert '@OneToMany(mappedBy = "usuario")' in code
        assert "private List<Post> postList = new ArrayList<>();" in code

    def test_reference_side(self, spring: SpringTemplateGenerator, usuario_post_resolved: ResolvedModel) -> None:
        code = spring.generate_entity(usuario_post_resolved.get("t-post"))
        assert "@ManyToOne" in code
        assert '@JoinColumn(name = "usuario_id")' in code
        assert "private Usuario usuario;" in code
        assert "java.time" not in code

    def test_inheritance(self, shop_spring: SpringTemplateGenerator, shop_resolved: ResolvedModel) -> None:
        persona = shop_spring.generate_entity(shop_resolved.get("t-persona"))
        cliente = shop_spring.generate_entity(shop_resolved.get("t-cliente"))
        assert "@Inheritance(strategy = InheritanceType.JOINED)" in persona
        assert "public class Cliente extends Persona {" in cliente
        assert "@Id" not in cliente
        assert "private String telefono;" in cliente

    def test_many_to_many_and_composition(
        self, shop_spring: SpringTemplateGenerator, shop_resolved: ResolvedModel
    ) -> None:
        producto = shop_spring.generate_entity(shop_resolved.get("t-producto"))
        pedido = shop_spring.generate_entity(shop_resolved.get("t-pedido"))
        assert '@JoinTable(name = "producto_categoria"' in producto
        assert "private List<Categoria> categoriaList = new ArrayList<>();" in producto
        assert "private Double precio;" in producto
        assert "@OneToMany(cascade = CascadeType.ALL, orphanRemoval = true)" in pedido
        assert '@JoinColumn(name = "pedido_id")' in pedido
        assert "private LocalDateTime fecha;" in pedido


# ===========================================================================
# Spring: repository / service / controller
# ===========================================================================


class TestSpringLayers:
    def test_repository_without_edges(self, spring: SpringTemplateGenerator, usuario_post_resolved: ResolvedModel) -> None:
        code = spring.generate_repository(usuario_post_resolved.get("t-usuario"))
        assert "public interface UsuarioRepository extends JpaRepository<Usuario, Long> {" in code
        assert "@Query" not in code

    def test_repository_finder(self, spring: SpringTemplateGenerator, usuario_post_resolved: ResolvedModel) -> None:
        code = spring.generate_repository(usuario_post_resolved.get("t-post"))
        assert '@Query("SELECT e FROM Post e WHERE e.usuario.id = :parentId")' in code
        assert 'List<Post> findByUsuarioId(@Param("parentId") Long parentId);' in code
        assert "import org.springframework.data.repository.query.Param;" in code

    def test_many_to_many_and_owned_queries(
        self, shop_spring: SpringTemplateGenerator, shop_resolved: ResolvedModel
    ) -> None:
        categoria = shop_spring.generate_repository(shop_resolved.get("t-categoria"))
        linea = shop_spring.generate_repository(shop_resolved.get("t-linea"))
        assert (
            "SELECT e FROM Categoria e JOIN e.productoList p WHERE p.id = :parentId" in categoria
        )
        assert (
            "SELECT c FROM Pedido p JOIN p.lineaPedidoList c WHERE p.id = :parentId" in linea
        )
        assert "findByPedidoId" in linea
        assert "findByProductoId" in linea

    def test_service(self, spring: SpringTemplateGenerator, usuario_post_resolved: ResolvedModel) -> None:
        code = spring.generate_service(usuario_post_resolved.get("t-post"))
        assert "@Service" in code
        assert "public Optional<Post> update(Long id, Post post) {" in code
        assert "return repository.findById(id).map(stored -> {" in code
        assert "public boolean deleteById(Long id) {" in code
        assert "post.setId(null);" in code
        assert "public List<Post> findByUsuarioId(Long usuarioId) {" in code

    def test_subclass_service_uses_root_id(
        self, shop_spring: SpringTemplateGenerator, shop_resolved: ResolvedModel
    ) -> None:
        code = shop_spring.generate_service(shop_resolved.get("t-cliente"))
        assert "cliente.setId(null);" in code

    def test_update_copies_scalars_and_references_only(
        self, shop_spring: SpringTemplateGenerator, shop_resolved: ResolvedModel
    ) -> None:
        pedido = shop_spring.generate_service(shop_resolved.get("t-pedido"))
        assert "return repository.findById(id).map(stored -> {" in pedido
        assert "stored.setFecha(pedido.getFecha());" in pedido
        assert "stored.setCliente(pedido.getCliente());" in pedido
        assert "return repository.save(stored);" in pedido
        assert "LineaPedidoList" not in pedido

        producto = shop_spring.generate_service(shop_resolved.get("t-producto"))
        assert "stored.setPrecio(producto.getPrecio());" in producto
        assert "CategoriaList" not in producto

    def test_subclass_update_copies_inherited_fields(
        self, shop_spring: SpringTemplateGenerator, shop_resolved: ResolvedModel
    ) -> None:
        code = shop_spring.generate_service(shop_resolved.get("t-cliente"))
        assert "stored.setNombre(cliente.getNombre());" in code
        assert "stored.setTelefono(cliente.getTelefono());" in code
        assert "PedidoList" not in code

    def test_subclass_entity_does_not_redeclare_parent_field(
        self, school_resolved: ResolvedModel
    ) -> None:
        generator = SpringTemplateGenerator(GenerationConfig(project_name="School"), school_resolved)
        code = generator.generate_entity(school_resolved.get("t-estudiante"))
        assert "nombre" not in code
        assert "private String carrera;" in code

    def test_controller(self, spring: SpringTemplateGenerator, usuario_post_resolved: ResolvedModel) -> None:
        code = spring.generate_controller(usuario_post_resolved.get("t-post"))
        assert '@RequestMapping("/api/post")' in code
        assert '@CrossOrigin(origins = "*")' in code
        assert "ResponseEntity.status(HttpStatus.CREATED)" in code
        assert "ResponseEntity.noContent().build()" in code
        assert '@GetMapping("/by-usuario/{usuarioId}")' in code
        assert "public List<Post> getByUsuarioId(@PathVariable Long usuarioId) {" in code


# ===========================================================================
# Spring: project files
# ===========================================================================


class TestSpringProject:
    def test_generate_all_paths(self, spring: SpringTemplateGenerator) -> None:
        files = spring.generate_all()
        assert f"{_SOURCE_DIR}/entities/Usuario.java" in files
        assert f"{_SOURCE_DIR}/repositories/PostRepository.java" in files
        assert f"{_SOURCE_DIR}/services/PostService.java" in files
        assert f"{_SOURCE_DIR}/controllers/UsuarioController.java" in files
        assert f"{_SOURCE_DIR}/BlogApplication.java" in files
        assert "src/main/resources/application.properties" in files
        assert {"pom.xml", "README.md", ".gitignore"} <= set(files)
        assert len(files) == 2 * 4 + 5

    def test_pom(self, spring: SpringTemplateGenerator) -> None:
        pom = spring.generate_pom()
        assert "<version>2.7.5</version>" in pom
        assert "<artifactId>spring-boot-starter-data-jpa</artifactId>" in pom
        assert "<artifactId>h2</artifactId>" in pom
        assert "<artifactId>blog</artifactId>" in pom

    def test_application_class(self, spring: SpringTemplateGenerator) -> None:
        code = spring.generate_application_class()
        assert "package com.example.blog;" in code
        assert "public class BlogApplication {" in code
        assert "SpringApplication.run(BlogApplication.class, args);" in code

    def test_properties(self, spring: SpringTemplateGenerator) -> None:
        props = spring.generate_application_properties()
        assert "spring.datasource.url=jdbc:h2:mem:testdb" in props
        assert "spring.jpa.properties.hibernate.globally_quoted_identifiers=true" in props

    def test_readme_lists_endpoints(self, spring: SpringTemplateGenerator) -> None:
        readme = spring.generate_readme()
        assert "- `GET /api/post/by-usuario/{usuarioId}`" in readme

    def test_balanced(self, spring: SpringTemplateGenerator, shop_spring: SpringTemplateGenerator) -> None:
        _assert_balanced(spring.generate_all())
        _assert_balanced(shop_spring.generate_all())


# ===========================================================================
# Flutter
# ===========================================================================


class TestFlutterModel:
    def test_reference_model(self, flutter: FlutterTemplateGenerator, usuario_post_resolved: ResolvedModel) -> None:
        code = flutter.generate_model(usuario_post_resolved.get("t-post"))
        assert "import 'usuario.dart';" in code
        assert "final Usuario? usuario;" in code
        assert "usuario: json['usuario'] != null ? Usuario.fromJson(json['usuario']) : null," in code
        assert "'usuario': usuario == null ? null : {'id': usuario!.id}," in code
        assert "publicado: json['publicado'] as bool?," in code

    def test_collections_are_not_serialised(
        self, flutter: FlutterTemplateGenerator, usuario_post_resolved: ResolvedModel
    ) -> None:
        code = flutter.generate_model(usuario_post_resolved.get("t-usuario"))
        assert "postList" not in code
        assert "import " not in code
        assert "'fechaAlta': fechaAlta?.toIso8601String().split('T').first," in code
        assert "fechaAlta: json['fechaAlta'] != null ? DateTime.parse(json['fechaAlta']) : null," in code

    def test_subclass_model_is_flattened(
        self, shop_flutter: FlutterTemplateGenerator, shop_resolved: ResolvedModel
    ) -> None:
        code = shop_flutter.generate_model(shop_resolved.get("t-cliente"))
        assert "final int? id;" in code
        assert "final String? nombre;" in code
        assert "final String? telefono;" in code
        assert "extends" not in code

    def test_repeated_parent_column_declared_once(self, school_resolved: ResolvedModel) -> None:
        cfg = GenerationConfig(project_name="School", target="client")
        code = FlutterTemplateGenerator(cfg, school_resolved).generate_model(
            school_resolved.get("t-estudiante")
        )
        assert code.count("final String? nombre;") == 1
        assert code.count("this.nombre,") == 1
        assert code.count("'nombre': nombre,") == 1
        assert "final String? carrera;" in code



class TestFlutterServiceAndPages:
    def test_service(self, flutter: FlutterTemplateGenerator, usuario_post_resolved: ResolvedModel) -> None:
        code = flutter.generate_service(usuario_post_resolved.get("t-post"))
        assert "final String _baseUrl = 'http://localhost:8080/api/post';" in code
        assert "Future<List<Post>> fetchAllPosts() async {" in code
        assert "Future<List<Post>> fetchPostsByUsuarioId(int usuarioId) async {" in code
        assert "Uri.parse('$_baseUrl/by-usuario/$usuarioId')" in code
        assert "body.removeWhere((key, value) => key == 'id' && value == null);" in code

    def test_custom_base_url(self, usuario_post_resolved: ResolvedModel) -> None:
        cfg = GenerationConfig(project_name="Blog", target="client", api_base_url="http://10.0.2.2:8080")
        code = FlutterTemplateGenerator(cfg, usuario_post_resolved).generate_service(
            usuario_post_resolved.get("t-usuario")
        )
        assert "'http://10.0.2.2:8080/api/usuario'" in code

    def test_list_page(self, flutter: FlutterTemplateGenerator, usuario_post_resolved: ResolvedModel) -> None:
        usuario = flutter.generate_list_page(usuario_post_resolved.get("t-usuario"))
        post = flutter.generate_list_page(usuario_post_resolved.get("t-post"))
        assert "class UsuarioListPage extends StatefulWidget {" in usuario
        assert "title: Text(item.nombre?.toString() ?? 'N/A')," in usuario
        assert "title: Text(item.titulo?.toString() ?? 'N/A')," in post

    def test_detail_page_sub_list(self, flutter: FlutterTemplateGenerator, usuario_post_resolved: ResolvedModel) -> None:
        code = flutter.generate_detail_page(usuario_post_resolved.get("t-usuario"))
        assert "import 'package:blog/services/post_service.dart';" in code
        assert "final PostService _postService = PostService();" in code
        assert "_subList0Future = _postService.fetchPostsByUsuarioId(widget.id);" in code

    def test_detail_page_reference_label(
        self, flutter: FlutterTemplateGenerator, usuario_post_resolved: ResolvedModel
    ) -> None:
        code = flutter.generate_detail_page(usuario_post_resolved.get("t-post"))
        assert "item.usuario?.nombre?.toString() ?? 'N/A'" in code

    def test_form_page_dropdown(self, flutter: FlutterTemplateGenerator, usuario_post_resolved: ResolvedModel) -> None:
        code = flutter.generate_form_page(usuario_post_resolved.get("t-post"))
        assert "_usuarioOptions = _usuarioService.fetchAllUsuarios();" in code
        assert "int? _selectedUsuarioId;" in code
        assert "DropdownButtonFormField<int>(" in code
        assert "usuario: _selectedUsuarioId != null ? Usuario(id: _selectedUsuarioId) : null," in code
        assert "keyboardType: TextInputType.text," in code

    def test_owned_sub_list(self, shop_flutter: FlutterTemplateGenerator, shop_resolved: ResolvedModel) -> None:
        code = shop_flutter.generate_detail_page(shop_resolved.get("t-pedido"))
        assert "_lineaPedidoService.fetchLineaPedidosByPedidoId(widget.id)" in code


class TestFlutterProject:
    def test_generate_all_paths(self, flutter: FlutterTemplateGenerator) -> None:
        files = flutter.generate_all()
        for name in ("pubspec.yaml", "analysis_options.yaml", "lib/main.dart", "lib/pages/home_page.dart"):
            assert name in files
        assert "lib/models/post.dart" in files
        assert "lib/services/usuario_service.dart" in files
        assert "lib/pages/usuario_form_page.dart" in files
        assert len(files) == 6 + 2 * 5

    def test_pubspec(self, flutter: FlutterTemplateGenerator) -> None:
        pubspec = flutter.generate_pubspec()
        assert pubspec.startswith("name: blog")
        assert "http: ^0.13.5" in pubspec

    def test_home_page_links_every_list(self, flutter: FlutterTemplateGenerator) -> None:
        code = flutter.generate_home_page()
        assert "const UsuarioListPage()" in code
        assert "const PostListPage()" in code

    def test_snake_case_files(self, shop_flutter: FlutterTemplateGenerator) -> None:
        files = shop_flutter.generate_all()
        assert "lib/models/linea_pedido.dart" in files
        assert "import 'producto.dart';" in files["lib/models/linea_pedido.dart"]

    def test_balanced(self, flutter: FlutterTemplateGenerator, shop_flutter: FlutterTemplateGenerator) -> None:
        _assert_balanced(flutter.generate_all())
        _assert_balanced(shop_flutter.generate_all())


# ===========================================================================
# Strategy lookup
# ===========================================================================


class TestGetEmitter:
    def test_server(self, blog_config: GenerationConfig, usuario_post_resolved: ResolvedModel) -> None:
        emitter = get_emitter("server", blog_config, usuario_post_resolved)
        assert isinstance(emitter, ServerEmitter)
        assert "pom.xml" in emitter.generate_all()
        assert emitter.directories()[0] == "src/main/java"

    def test_client_from_enum(self, blog_config: GenerationConfig, usuario_post_resolved: ResolvedModel) -> None:
        emitter = get_emitter(TargetEcosystem.CLIENT, blog_config, usuario_post_resolved)
        assert isinstance(emitter, ClientEmitter)
        assert emitter.directories() == ["lib", "lib/models", "lib/services", "lib/pages"]

    def test_unknown_target(self, blog_config: GenerationConfig, usuario_post_resolved: ResolvedModel) -> None:
        with pytest.raises(ValueError):
            get_emitter("desktop", blog_config, usuario_post_resolved)
