# File: diagramgen/flutter.py
"""
diagramgen - Flutter Template Generator
=========================================
Produces the mobile client: per entity a model, an HTTP service and three
pages (list, detail, form), plus ``pubspec.yaml``, ``main.dart`` and a home
page whose drawer links every list page.

Services call ``<api_base_url>/api/<entitylower>``, the exact path the
Spring controllers are mapped to.  Sub-lists on detail pages and dropdowns
on form pages come from the resolver's ``detail_sub_lists`` and
``form_relations``; nothing is re-derived from the diagram here.

Subclasses are flattened: a Dart model carries every field of its
inheritance chain, matching the JSON the server returns.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from diagramgen.models import GenerationConfig
from diagramgen.resolver import (
    DetailSubList,
    EntityDescriptor,
    FieldSpec,
    FormRelation,
    ResolvedModel,
)
from diagramgen.typemap import (
    dart_from_json_expression,
    dart_parse_expression,
    dart_to_json_expression,
    keyboard_type,
)
from diagramgen.utils import quote_dart, to_title_human, upper_first

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("diagramgen.flutter")

_I: str = "  "


class FlutterTemplateGenerator:
    """
    Code-generation engine for the Flutter target.

    Each ``generate_*`` method returns a complete Dart/YAML file.
    """

    def __init__(self, config: GenerationConfig, resolved: ResolvedModel) -> None:
        self._config: GenerationConfig = config
        self._resolved: ResolvedModel = resolved
        self._package: str = config.dart_package
        logger.debug(
            "FlutterTemplateGenerator initialised (package=%s, entities=%d).",
            self._package,
            resolved.entity_count,
        )

    # ===================================================================
    # Layout & shared lookups
    # ===================================================================

    @staticmethod
    def directories() -> List[str]:
        return ["lib", "lib/models", "lib/services", "lib/pages"]

    def base_url(self, desc: EntityDescriptor) -> str:
        return f"{self._config.api_base_url}{desc.api_path}"

    def _import(self, folder: str, file_name: str) -> str:
        return f"import 'package:{self._package}/{folder}/{file_name}.dart';"

    def _pk(self, desc: EntityDescriptor) -> str:
        return self._resolved.id_field_for(desc).name

    def _target(self, table_id: str) -> EntityDescriptor:
        target = self._resolved.get(table_id)
        if target is None:
            raise LookupError(f"No entity for table id {table_id!r}.")
        return target

    def _model_fields(self, desc: EntityDescriptor) -> List[FieldSpec]:
        """JSON-visible fields of the flattened model (collections are ignored)."""
        return [
            spec
            for spec in self._resolved.inherited_fields(desc)
            if not spec.is_collection
        ]

    def _scalar_fields(self, desc: EntityDescriptor) -> List[FieldSpec]:
        fields: List[FieldSpec] = []
        for member in self._resolved.lineage(desc):
            fields.extend(member.scalar_fields)
        return fields

    def _form_relations(self, desc: EntityDescriptor) -> List[FormRelation]:
        relations: List[FormRelation] = []
        for member in self._resolved.lineage(desc):
            relations.extend(member.form_relations)
        return relations

    def _detail_sub_lists(self, desc: EntityDescriptor) -> List[DetailSubList]:
        sub_lists: List[DetailSubList] = []
        for member in self._resolved.lineage(desc):
            sub_lists.extend(member.detail_sub_lists)
        return sub_lists

    @staticmethod
    def plural_method(desc: EntityDescriptor) -> str:
        return f"fetchAll{desc.entity_name}s"

    @staticmethod
    def by_parent_method(entity_name: str, parent_field_name: str) -> str:
        return f"fetch{entity_name}sBy{upper_first(parent_field_name)}Id"

    # ===================================================================
    # 1. Project files
    # ===================================================================

    def generate_pubspec(self) -> str:
        return "\n".join([
            f"name: {self._package}",
            "description: A Flutter client generated from a diagram.",
            "publish_to: 'none'",
            "version: 1.0.0+1",
            "",
            "environment:",
            "  sdk: '>=2.19.0 <3.0.0'",
            "",
            "dependencies:",
            "  flutter:",
            "    sdk: flutter",
            "  http: ^0.13.5",
            "  provider: ^6.0.5",
            "",
            "dev_dependencies:",
            "  flutter_test:",
            "    sdk: flutter",
            "  flutter_lints: ^2.0.0",
            "",
            "flutter:",
            "  uses-material-design: true",
            "",
        ])

    @staticmethod
    def generate_analysis_options() -> str:
        return "include: package:flutter_lints/flutter.yaml\n"

    def generate_main(self) -> str:
        title: str = quote_dart(self._config.sanitized_project_name)
        return "\n".join([
            "import 'package:flutter/material.dart';",
            self._import("pages", "home_page"),
            "",
            "void main() {",
            f"{_I}runApp(const MyApp());",
            "}",
            "",
            "class MyApp extends StatelessWidget {",
            f"{_I}const MyApp({{super.key}});",
            "",
            f"{_I}@override",
            f"{_I}Widget build(BuildContext context) {{",
            f"{_I * 2}return MaterialApp(",
            f"{_I * 3}title: {title},",
            f"{_I * 3}theme: ThemeData(",
            f"{_I * 4}primarySwatch: Colors.blue,",
            f"{_I * 4}useMaterial3: true,",
            f"{_I * 3}),",
            f"{_I * 3}home: const HomePage(),",
            f"{_I * 3}debugShowCheckedModeBanner: false,",
            f"{_I * 2});",
            f"{_I}}}",
            "}",
            "",
        ])

    def generate_home_page(self) -> str:
        lines: List[str] = ["import 'package:flutter/material.dart';"]
        for desc in self._resolved:
            lines.append(self._import("pages", f"{desc.file_name}_list_page"))
        lines.extend([
            "",
            "class HomePage extends StatelessWidget {",
            f"{_I}const HomePage({{super.key}});",
            "",
            f"{_I}@override",
            f"{_I}Widget build(BuildContext context) {{",
            f"{_I * 2}return Scaffold(",
            f"{_I * 3}appBar: AppBar(",
            f"{_I * 4}title: Text({quote_dart(self._config.sanitized_project_name)}),",
            f"{_I * 3}),",
            f"{_I * 3}drawer: Drawer(",
            f"{_I * 4}child: ListView(",
            f"{_I * 5}padding: EdgeInsets.zero,",
            f"{_I * 5}children: [",
            f"{_I * 6}const DrawerHeader(",
            f"{_I * 7}decoration: BoxDecoration(color: Colors.blue),",
            f"{_I * 7}child: Text(",
            f"{_I * 8}'Navigation',",
            f"{_I * 8}style: TextStyle(color: Colors.white, fontSize: 24),",
            f"{_I * 7}),",
            f"{_I * 6}),",
        ])
        for desc in self._resolved:
            lines.extend([
                f"{_I * 6}ListTile(",
                f"{_I * 7}leading: const Icon(Icons.list_alt),",
                f"{_I * 7}title: Text({quote_dart(to_title_human(desc.entity_name))}),",
                f"{_I * 7}onTap: () {{",
                f"{_I * 8}Navigator.pop(context);",
                f"{_I * 8}Navigator.push(",
                f"{_I * 9}context,",
                f"{_I * 9}MaterialPageRoute(builder: (context) => "
                f"const {desc.entity_name}ListPage()),",
                f"{_I * 8});",
                f"{_I * 7}}},",
                f"{_I * 6}),",
            ])
        lines.extend([
            f"{_I * 5}],",
            f"{_I * 4}),",
            f"{_I * 3}),",
            f"{_I * 3}body: const Center(",
            f"{_I * 4}child: Text('Welcome. Pick an entity from the menu.'),",
            f"{_I * 3}),",
            f"{_I * 2});",
            f"{_I}}}",
            "}",
            "",
        ])
        return "\n".join(lines)

    def generate_readme(self) -> str:
        cfg: GenerationConfig = self._config
        return "\n".join([
            f"# {cfg.sanitized_project_name}",
            "",
            "Flutter client for the generated Spring Boot API.",
            "",
            "## Run",
            "",
            "```bash",
            "flutter create .",
            "flutter pub get",
            "flutter run",
            "```",
            "",
            f"Services call `{cfg.api_base_url}/api/<entity>`; change `_baseUrl` in",
            "`lib/services/` when the server runs elsewhere (the Android emulator",
            "reaches the host as `10.0.2.2`).",
            "",
        ])

    @staticmethod
    def generate_gitignore() -> str:
        return "\n".join([
            ".dart_tool/",
            ".packages",
            "build/",
            ".flutter-plugins",
            ".flutter-plugins-dependencies",
            ".idea/",
            ".DS_Store",
            "",
        ])

    # ===================================================================
    # 2. Model
    # ===================================================================

    def generate_model(self, desc: EntityDescriptor) -> str:
        name: str = desc.entity_name
        fields: List[FieldSpec] = self._model_fields(desc)

        lines: List[str] = []
        imported: List[str] = []
        for spec in fields:
            if spec.is_reference:
                target: EntityDescriptor = self._target(spec.target_table_id)
                if target.file_name != desc.file_name and target.file_name not in imported:
                    imported.append(target.file_name)
        for file_name in imported:
            lines.append(f"import '{file_name}.dart';")
        if imported:
            lines.append("")

        lines.append(f"class {name} {{")
        for spec in fields:
            lines.append(f"{_I}final {spec.dart_type}? {spec.name};")
        lines.append("")
        if fields:
            lines.append(f"{_I}{name}({{")
            for spec in fields:
                lines.append(f"{_I * 2}this.{spec.name},")
            lines.append(f"{_I}}});")
        else:
            lines.append(f"{_I}{name}();")
        lines.append("")

        lines.append(f"{_I}factory {name}.fromJson(Map<String, dynamic> json) {{")
        lines.append(f"{_I * 2}return {name}(")
        for spec in fields:
            lookup: str = f"json[{quote_dart(spec.name)}]"
            if spec.is_reference:
                expr: str = (
                    f"{lookup} != null ? {spec.dart_type}.fromJson({lookup}) : null"
                )
            else:
                expr = dart_from_json_expression(spec.dart_type, lookup)
            lines.append(f"{_I * 3}{spec.name}: {expr},")
        lines.append(f"{_I * 2});")
        lines.append(f"{_I}}}")
        lines.append("")

        lines.append(f"{_I}Map<String, dynamic> toJson() {{")
        lines.append(f"{_I * 2}return {{")
        for spec in fields:
            if spec.is_reference:
                target_pk: str = self._pk(self._target(spec.target_table_id))
                value: str = (
                    f"{spec.name} == null ? null : "
                    f"{{{quote_dart(target_pk)}: {spec.name}!.{target_pk}}}"
                )
            else:
                value = dart_to_json_expression(
                    spec.dart_type, spec.name, spec.type_category
                )
            lines.append(f"{_I * 3}{quote_dart(spec.name)}: {value},")
        lines.append(f"{_I * 2}}};")
        lines.append(f"{_I}}}")
        lines.append("}")
        lines.append("")
        return "\n".join(lines)

    # ===================================================================
    # 3. Service
    # ===================================================================

    def generate_service(self, desc: EntityDescriptor) -> str:
        """
        HTTP service: fetchAll, fetchById, create (drops a null id), update,
        delete and one ``fetch<Model>sBy<Parent>Id`` per parent edge.
        """
        name: str = desc.entity_name
        var: str = desc.member_name
        pk: str = self._pk(desc)

        lines: List[str] = [
            "import 'dart:convert';",
            "",
            "import 'package:http/http.dart' as http;",
            "",
            f"import '../models/{desc.file_name}.dart';",
            "",
            f"class {name}Service {{",
            f"{_I}final String _baseUrl = {quote_dart(self.base_url(desc))};",
            f"{_I}final Map<String, String> _headers = {{",
            f"{_I * 2}'Content-Type': 'application/json; charset=UTF-8',",
            f"{_I}}};",
            "",
            f"{_I}List<{name}> _decodeList(http.Response response) {{",
            f"{_I * 2}final List<dynamic> body = jsonDecode(utf8.decode(response.bodyBytes));",
            f"{_I * 2}return body.map((dynamic item) => {name}.fromJson(item)).toList();",
            f"{_I}}}",
            "",
            f"{_I}Future<List<{name}>> {self.plural_method(desc)}() async {{",
            f"{_I * 2}final response = await http.get(Uri.parse(_baseUrl));",
            f"{_I * 2}if (response.statusCode == 200) {{",
            f"{_I * 3}return _decodeList(response);",
            f"{_I * 2}}}",
            f"{_I * 2}throw Exception('Failed to load {name} list (${{response.statusCode}})');",
            f"{_I}}}",
            "",
            f"{_I}Future<{name}> fetch{name}ById(int id) async {{",
            f"{_I * 2}final response = await http.get(Uri.parse('$_baseUrl/$id'));",
            f"{_I * 2}if (response.statusCode == 200) {{",
            f"{_I * 3}return {name}.fromJson(jsonDecode(utf8.decode(response.bodyBytes)));",
            f"{_I * 2}}}",
            f"{_I * 2}throw Exception('Failed to load {name} $id (${{response.statusCode}})');",
            f"{_I}}}",
            "",
            f"{_I}Future<{name}> create{name}({name} {var}) async {{",
            f"{_I * 2}final body = {var}.toJson();",
            f"{_I * 2}body.removeWhere((key, value) => key == {quote_dart(pk)} && value == null);",
            f"{_I * 2}final response = await http.post(",
            f"{_I * 3}Uri.parse(_baseUrl),",
            f"{_I * 3}headers: _headers,",
            f"{_I * 3}body: jsonEncode(body),",
            f"{_I * 2});",
            f"{_I * 2}if (response.statusCode == 201 || response.statusCode == 200) {{",
            f"{_I * 3}return {name}.fromJson(jsonDecode(utf8.decode(response.bodyBytes)));",
            f"{_I * 2}}}",
            f"{_I * 2}throw Exception('Failed to create {name} (${{response.statusCode}}): "
            f"${{response.body}}');",
            f"{_I}}}",
            "",
            f"{_I}Future<{name}> update{name}(int id, {name} {var}) async {{",
            f"{_I * 2}final response = await http.put(",
            f"{_I * 3}Uri.parse('$_baseUrl/$id'),",
            f"{_I * 3}headers: _headers,",
            f"{_I * 3}body: jsonEncode({var}.toJson()),",
            f"{_I * 2});",
            f"{_I * 2}if (response.statusCode == 200) {{",
            f"{_I * 3}return {name}.fromJson(jsonDecode(utf8.decode(response.bodyBytes)));",
            f"{_I * 2}}}",
            f"{_I * 2}throw Exception('Failed to update {name} $id (${{response.statusCode}})');",
            f"{_I}}}",
            "",
            f"{_I}Future<void> delete{name}(int id) async {{",
            f"{_I * 2}final response = await http.delete(Uri.parse('$_baseUrl/$id'));",
            f"{_I * 2}if (response.statusCode != 200 && response.statusCode != 204) {{",
            f"{_I * 3}throw Exception('Failed to delete {name} $id (${{response.statusCode}})');",
            f"{_I * 2}}}",
            f"{_I}}}",
        ]

        for edge in desc.parent_edges:
            param: str = edge.path_variable
            lines.extend([
                "",
                f"{_I}Future<List<{name}>> {self.by_parent_method(name, edge.parent_field_name)}"
                f"(int {param}) async {{",
                f"{_I * 2}final response = await http.get("
                f"Uri.parse('$_baseUrl/{edge.url_segment}/${param}'));",
                f"{_I * 2}if (response.statusCode == 200) {{",
                f"{_I * 3}return _decodeList(response);",
                f"{_I * 2}}}",
                f"{_I * 2}throw Exception('Failed to load {name} list for "
                f"{edge.parent_entity_name} ${param} (${{response.statusCode}})');",
                f"{_I}}}",
            ])

        lines.append("}")
        lines.append("")
        return "\n".join(lines)

    # ===================================================================
    # 4. List page
    # ===================================================================

    def generate_list_page(self, desc: EntityDescriptor) -> str:
        name: str = desc.entity_name
        pk: str = self._pk(desc)
        display: str = desc.display_field or pk
        title: str = quote_dart(to_title_human(name))

        return "\n".join([
            "import 'package:flutter/material.dart';",
            self._import("models", desc.file_name),
            self._import("services", f"{desc.file_name}_service"),
            self._import("pages", f"{desc.file_name}_detail_page"),
            self._import("pages", f"{desc.file_name}_form_page"),
            "",
            f"class {name}ListPage extends StatefulWidget {{",
            f"{_I}const {name}ListPage({{super.key}});",
            "",
            f"{_I}@override",
            f"{_I}State<{name}ListPage> createState() => _{name}ListPageState();",
            "}",
            "",
            f"class _{name}ListPageState extends State<{name}ListPage> {{",
            f"{_I}final {name}Service _service = {name}Service();",
            f"{_I}late Future<List<{name}>> _future;",
            "",
            f"{_I}@override",
            f"{_I}void initState() {{",
            f"{_I * 2}super.initState();",
            f"{_I * 2}_load();",
            f"{_I}}}",
            "",
            f"{_I}void _load() {{",
            f"{_I * 2}setState(() {{",
            f"{_I * 3}_future = _service.{self.plural_method(desc)}();",
            f"{_I * 2}}});",
            f"{_I}}}",
            "",
            f"{_I}Future<void> _openDetail(int id) async {{",
            f"{_I * 2}final changed = await Navigator.push(",
            f"{_I * 3}context,",
            f"{_I * 3}MaterialPageRoute(builder: (context) => {name}DetailPage(id: id)),",
            f"{_I * 2});",
            f"{_I * 2}if (changed == true) {{",
            f"{_I * 3}_load();",
            f"{_I * 2}}}",
            f"{_I}}}",
            "",
            f"{_I}Future<void> _openForm() async {{",
            f"{_I * 2}final changed = await Navigator.push(",
            f"{_I * 3}context,",
            f"{_I * 3}MaterialPageRoute(builder: (context) => const {name}FormPage()),",
            f"{_I * 2});",
            f"{_I * 2}if (changed == true) {{",
            f"{_I * 3}_load();",
            f"{_I * 2}}}",
            f"{_I}}}",
            "",
            f"{_I}@override",
            f"{_I}Widget build(BuildContext context) {{",
            f"{_I * 2}return Scaffold(",
            f"{_I * 3}appBar: AppBar(title: const Text({title})),",
            f"{_I * 3}body: FutureBuilder<List<{name}>>(",
            f"{_I * 4}future: _future,",
            f"{_I * 4}builder: (context, snapshot) {{",
            f"{_I * 5}if (snapshot.connectionState == ConnectionState.waiting) {{",
            f"{_I * 6}return const Center(child: CircularProgressIndicator());",
            f"{_I * 5}}}",
            f"{_I * 5}if (snapshot.hasError) {{",
            f"{_I * 6}return Center(child: Text('${{snapshot.error}}'));",
            f"{_I * 5}}}",
            f"{_I * 5}final items = snapshot.data ?? [];",
            f"{_I * 5}if (items.isEmpty) {{",
            f"{_I * 6}return const Center(child: Text('Nothing here yet.'));",
            f"{_I * 5}}}",
            f"{_I * 5}return ListView.builder(",
            f"{_I * 6}itemCount: items.length,",
            f"{_I * 6}itemBuilder: (context, index) {{",
            f"{_I * 7}final item = items[index];",
            f"{_I * 7}return ListTile(",
            f"{_I * 8}title: Text(item.{display}?.toString() ?? 'N/A'),",
            f"{_I * 8}subtitle: Text('ID: ${{item.{pk}?.toString() ?? 'N/A'}}'),",
            f"{_I * 8}onTap: item.{pk} == null ? null : () => _openDetail(item.{pk}!),",
            f"{_I * 7});",
            f"{_I * 6}}},",
            f"{_I * 5});",
            f"{_I * 4}}},",
            f"{_I * 3}),",
            f"{_I * 3}floatingActionButton: FloatingActionButton(",
            f"{_I * 4}onPressed: _openForm,",
            f"{_I * 4}tooltip: {quote_dart('New ' + to_title_human(name))},",
            f"{_I * 4}child: const Icon(Icons.add),",
            f"{_I * 3}),",
            f"{_I * 2});",
            f"{_I}}}",
            "}",
            "",
        ])

    # ===================================================================
    # 5. Detail page
    # ===================================================================

    def generate_detail_page(self, desc: EntityDescriptor) -> str:
        """
        Field values, one sub-list per ``DetailSubList`` (fetched through the
        child service's by-parent call) and edit/delete actions.
        """
        name: str = desc.entity_name
        sub_lists: List[DetailSubList] = self._detail_sub_lists(desc)

        imports: List[str] = [
            "import 'package:flutter/material.dart';",
            self._import("models", desc.file_name),
            self._import("services", f"{desc.file_name}_service"),
            self._import("pages", f"{desc.file_name}_form_page"),
        ]
        services: Dict[str, str] = {}
        for sub in sub_lists:
            target: EntityDescriptor = self._target(sub.target_table_id)
            if target.entity_name == name:
                services.setdefault(target.entity_name, "_service")
                continue
            if target.entity_name not in services:
                services[target.entity_name] = f"_{target.member_name}Service"
                imports.append(self._import("models", target.file_name))
                imports.append(self._import("services", f"{target.file_name}_service"))

        lines: List[str] = list(dict.fromkeys(imports))
        lines.extend([
            "",
            f"class {name}DetailPage extends StatefulWidget {{",
            f"{_I}final int id;",
            f"{_I}const {name}DetailPage({{super.key, required this.id}});",
            "",
            f"{_I}@override",
            f"{_I}State<{name}DetailPage> createState() => _{name}DetailPageState();",
            "}",
            "",
            f"class _{name}DetailPageState extends State<{name}DetailPage> {{",
            f"{_I}final {name}Service _service = {name}Service();",
        ])
        for entity, service_var in services.items():
            if service_var != "_service":
                lines.append(f"{_I}final {entity}Service {service_var} = {entity}Service();")
        lines.append(f"{_I}late Future<{name}> _future;")
        for index, sub in enumerate(sub_lists):
            lines.append(f"{_I}late Future<List<{sub.target_entity}>> _subList{index}Future;")

        lines.extend([
            "",
            f"{_I}@override",
            f"{_I}void initState() {{",
            f"{_I * 2}super.initState();",
            f"{_I * 2}_load();",
            f"{_I}}}",
            "",
            f"{_I}void _load() {{",
            f"{_I * 2}setState(() {{",
            f"{_I * 3}_future = _service.fetch{name}ById(widget.id);",
        ])
        for index, sub in enumerate(sub_lists):
            method: str = self.by_parent_method(sub.target_entity, sub.parent_field_name)
            lines.append(
                f"{_I * 3}_subList{index}Future = "
                f"{services[sub.target_entity]}.{method}(widget.id);"
            )
        lines.extend([
            f"{_I * 2}}});",
            f"{_I}}}",
            "",
            f"{_I}Future<void> _delete() async {{",
            f"{_I * 2}final bool? confirmed = await showDialog<bool>(",
            f"{_I * 3}context: context,",
            f"{_I * 3}builder: (BuildContext context) {{",
            f"{_I * 4}return AlertDialog(",
            f"{_I * 5}title: const Text('Confirm deletion'),",
            f"{_I * 5}content: const Text('Delete this item?'),",
            f"{_I * 5}actions: <Widget>[",
            f"{_I * 6}TextButton(",
            f"{_I * 7}onPressed: () => Navigator.of(context).pop(false),",
            f"{_I * 7}child: const Text('Cancel'),",
            f"{_I * 6}),",
            f"{_I * 6}TextButton(",
            f"{_I * 7}onPressed: () => Navigator.of(context).pop(true),",
            f"{_I * 7}child: const Text('Delete', style: TextStyle(color: Colors.red)),",
            f"{_I * 6}),",
            f"{_I * 5}],",
            f"{_I * 4});",
            f"{_I * 3}}},",
            f"{_I * 2});",
            f"{_I * 2}if (confirmed != true) {{",
            f"{_I * 3}return;",
            f"{_I * 2}}}",
            f"{_I * 2}try {{",
            f"{_I * 3}await _service.delete{name}(widget.id);",
            f"{_I * 3}if (!mounted) return;",
            f"{_I * 3}ScaffoldMessenger.of(context).showSnackBar(",
            f"{_I * 4}const SnackBar(content: Text({quote_dart(to_title_human(name) + ' deleted')})),",
            f"{_I * 3});",
            f"{_I * 3}Navigator.of(context).pop(true);",
            f"{_I * 2}}} catch (e) {{",
            f"{_I * 3}if (!mounted) return;",
            f"{_I * 3}ScaffoldMessenger.of(context).showSnackBar(",
            f"{_I * 4}SnackBar(content: Text('Delete failed: $e')),",
            f"{_I * 3});",
            f"{_I * 2}}}",
            f"{_I}}}",
            "",
            f"{_I}Future<void> _edit() async {{",
            f"{_I * 2}final changed = await Navigator.push(",
            f"{_I * 3}context,",
            f"{_I * 3}MaterialPageRoute(builder: (context) => {name}FormPage(id: widget.id)),",
            f"{_I * 2});",
            f"{_I * 2}if (changed == true) {{",
            f"{_I * 3}_load();",
            f"{_I * 2}}}",
            f"{_I}}}",
            "",
            f"{_I}@override",
            f"{_I}Widget build(BuildContext context) {{",
            f"{_I * 2}return Scaffold(",
            f"{_I * 3}appBar: AppBar(",
            f"{_I * 4}title: Text({quote_dart(to_title_human(name))}),",
            f"{_I * 4}actions: [",
            f"{_I * 5}IconButton(icon: const Icon(Icons.edit), onPressed: _edit, tooltip: 'Edit'),",
            f"{_I * 5}IconButton(icon: const Icon(Icons.delete), onPressed: _delete, tooltip: 'Delete'),",
            f"{_I * 4}],",
            f"{_I * 3}),",
            f"{_I * 3}body: FutureBuilder<{name}>(",
            f"{_I * 4}future: _future,",
            f"{_I * 4}builder: (context, snapshot) {{",
            f"{_I * 5}if (snapshot.connectionState == ConnectionState.waiting) {{",
            f"{_I * 6}return const Center(child: CircularProgressIndicator());",
            f"{_I * 5}}}",
            f"{_I * 5}if (snapshot.hasError) {{",
            f"{_I * 6}return Center(child: Text('${{snapshot.error}}'));",
            f"{_I * 5}}}",
            f"{_I * 5}if (!snapshot.hasData) {{",
            f"{_I * 6}return const Center(child: Text('Not found.'));",
            f"{_I * 5}}}",
            f"{_I * 5}final item = snapshot.data!;",
            f"{_I * 5}return ListView(",
            f"{_I * 6}padding: const EdgeInsets.all(16.0),",
            f"{_I * 6}children: [",
        ])

        for spec in self._model_fields(desc):
            label: str = to_title_human(spec.name)
            if spec.is_reference:
                target_display: str = self._target(spec.target_table_id).display_field
                value: str = f"item.{spec.name}?.{target_display}?.toString() ?? 'N/A'"
            else:
                value = f"item.{spec.name}?.toString() ?? 'N/A'"
            lines.extend([
                f"{_I * 7}Padding(",
                f"{_I * 8}padding: const EdgeInsets.symmetric(vertical: 8.0),",
                f"{_I * 8}child: Text(",
                f"{_I * 9}{quote_dart(label + ': ')} + ({value}),",
                f"{_I * 9}style: const TextStyle(fontSize: 18),",
                f"{_I * 8}),",
                f"{_I * 7}),",
            ])

        for index, sub in enumerate(sub_lists):
            target = self._target(sub.target_table_id)
            target_pk: str = self._pk(target)
            target_display = target.display_field or target_pk
            heading: str = quote_dart(
                f"{to_title_human(target.entity_name)} ({to_title_human(sub.parent_field_name)})"
            )
            lines.extend([
                f"{_I * 7}const Divider(height: 30, thickness: 2),",
                f"{_I * 7}Text({heading}, style: Theme.of(context).textTheme.headlineSmall),",
                f"{_I * 7}FutureBuilder<List<{target.entity_name}>>(",
                f"{_I * 8}future: _subList{index}Future,",
                f"{_I * 8}builder: (context, snapshot) {{",
                f"{_I * 9}if (snapshot.connectionState == ConnectionState.waiting) {{",
                f"{_I * 10}return const Center(child: CircularProgressIndicator());",
                f"{_I * 9}}}",
                f"{_I * 9}if (snapshot.hasError) {{",
                f"{_I * 10}return Text('${{snapshot.error}}');",
                f"{_I * 9}}}",
                f"{_I * 9}final children = snapshot.data ?? [];",
                f"{_I * 9}if (children.isEmpty) {{",
                f"{_I * 10}return const Text('None.');",
                f"{_I * 9}}}",
                f"{_I * 9}return Column(",
                f"{_I * 10}children: children",
                f"{_I * 11}.map((child) => ListTile(",
                f"{_I * 13}title: Text(child.{target_display}?.toString() ?? 'N/A'),",
                f"{_I * 13}subtitle: Text('ID: ${{child.{target_pk}?.toString() ?? 'N/A'}}'),",
                f"{_I * 12}))",
                f"{_I * 11}.toList(),",
                f"{_I * 9});",
                f"{_I * 8}}},",
                f"{_I * 7}),",
            ])

        lines.extend([
            f"{_I * 6}],",
            f"{_I * 5});",
            f"{_I * 4}}},",
            f"{_I * 3}),",
            f"{_I * 2});",
            f"{_I}}}",
            "}",
            "",
        ])
        return "\n".join(lines)

    # ===================================================================
    # 6. Form page
    # ===================================================================

    def generate_form_page(self, desc: EntityDescriptor) -> str:
        name: str = desc.entity_name
        pk: str = self._pk(desc)
        scalars: List[FieldSpec] = self._scalar_fields(desc)
        relations: List[FormRelation] = self._form_relations(desc)

        imports: List[str] = [
            "import 'package:flutter/material.dart';",
            self._import("models", desc.file_name),
            self._import("services", f"{desc.file_name}_service"),
        ]
        services: Dict[str, str] = {}
        for relation in relations:
            target: EntityDescriptor = self._target(relation.target_table_id)
            if target.entity_name == name:
                services.setdefault(target.entity_name, "_service")
                continue
            if target.entity_name not in services:
                services[target.entity_name] = f"_{target.member_name}Service"
                imports.append(self._import("models", target.file_name))
                imports.append(self._import("services", f"{target.file_name}_service"))

        lines: List[str] = list(dict.fromkeys(imports))
        lines.extend([
            "",
            f"class {name}FormPage extends StatefulWidget {{",
            f"{_I}final int? id;",
            f"{_I}const {name}FormPage({{super.key, this.id}});",
            "",
            f"{_I}@override",
            f"{_I}State<{name}FormPage> createState() => _{name}FormPageState();",
            "}",
            "",
            f"class _{name}FormPageState extends State<{name}FormPage> {{",
            f"{_I}final _formKey = GlobalKey<FormState>();",
            f"{_I}final {name}Service _service = {name}Service();",
        ])
        for entity, service_var in services.items():
            if service_var != "_service":
                lines.append(f"{_I}final {entity}Service {service_var} = {entity}Service();")
        lines.extend([
            f"{_I}bool _isLoading = false;",
            f"{_I}{name}? _existing;",
        ])
        for spec in scalars:
            lines.append(f"{_I}final _{spec.name}Controller = TextEditingController();")
        for relation in relations:
            lines.append(
                f"{_I}late Future<List<{relation.target_entity}>> "
                f"_{relation.field_name}Options;"
            )
            lines.append(f"{_I}int? _selected{upper_first(relation.field_name)}Id;")

        lines.extend([
            "",
            f"{_I}@override",
            f"{_I}void initState() {{",
            f"{_I * 2}super.initState();",
        ])
        for relation in relations:
            target = self._target(relation.target_table_id)
            lines.append(
                f"{_I * 2}_{relation.field_name}Options = "
                f"{services[target.entity_name]}.{self.plural_method(target)}();"
            )
        lines.extend([
            f"{_I * 2}if (widget.id != null) {{",
            f"{_I * 3}_load();",
            f"{_I * 2}}}",
            f"{_I}}}",
            "",
            f"{_I}@override",
            f"{_I}void dispose() {{",
        ])
        for spec in scalars:
            lines.append(f"{_I * 2}_{spec.name}Controller.dispose();")
        lines.extend([
            f"{_I * 2}super.dispose();",
            f"{_I}}}",
            "",
            f"{_I}Future<void> _load() async {{",
            f"{_I * 2}setState(() => _isLoading = true);",
            f"{_I * 2}try {{",
            f"{_I * 3}final item = await _service.fetch{name}ById(widget.id!);",
            f"{_I * 3}setState(() {{",
            f"{_I * 4}_existing = item;",
        ])
        for spec in scalars:
            lines.append(
                f"{_I * 4}_{spec.name}Controller.text = item.{spec.name}?.toString() ?? '';"
            )
        for relation in relations:
            target_pk: str = self._pk(self._target(relation.target_table_id))
            lines.append(
                f"{_I * 4}_selected{upper_first(relation.field_name)}Id = "
                f"item.{relation.field_name}?.{target_pk};"
            )
        lines.extend([
            f"{_I * 4}_isLoading = false;",
            f"{_I * 3}}});",
            f"{_I * 2}}} catch (e) {{",
            f"{_I * 3}setState(() => _isLoading = false);",
            f"{_I * 3}if (!mounted) return;",
            f"{_I * 3}ScaffoldMessenger.of(context).showSnackBar(",
            f"{_I * 4}SnackBar(content: Text('Load failed: $e')),",
            f"{_I * 3});",
            f"{_I * 2}}}",
            f"{_I}}}",
            "",
            f"{_I}Future<void> _save() async {{",
            f"{_I * 2}if (!(_formKey.currentState?.validate() ?? false)) {{",
            f"{_I * 3}return;",
            f"{_I * 2}}}",
            f"{_I * 2}setState(() => _isLoading = true);",
            f"{_I * 2}try {{",
            f"{_I * 3}final item = {name}(",
            f"{_I * 4}{pk}: _existing?.{pk},",
        ])
        for spec in scalars:
            parsed: str = dart_parse_expression(spec.dart_type, f"_{spec.name}Controller.text")
            lines.append(f"{_I * 4}{spec.name}: {parsed},")
        for relation in relations:
            target = self._target(relation.target_table_id)
            selected: str = f"_selected{upper_first(relation.field_name)}Id"
            lines.append(
                f"{_I * 4}{relation.field_name}: {selected} != null "
                f"? {target.entity_name}({self._pk(target)}: {selected}) : null,"
            )
        lines.extend([
            f"{_I * 3});",
            f"{_I * 3}if (widget.id == null) {{",
            f"{_I * 4}await _service.create{name}(item);",
            f"{_I * 3}}} else {{",
            f"{_I * 4}await _service.update{name}(widget.id!, item);",
            f"{_I * 3}}}",
            f"{_I * 3}if (!mounted) return;",
            f"{_I * 3}ScaffoldMessenger.of(context).showSnackBar(",
            f"{_I * 4}const SnackBar(content: Text({quote_dart(to_title_human(name) + ' saved')})),",
            f"{_I * 3});",
            f"{_I * 3}Navigator.of(context).pop(true);",
            f"{_I * 2}}} catch (e) {{",
            f"{_I * 3}setState(() => _isLoading = false);",
            f"{_I * 3}if (!mounted) return;",
            f"{_I * 3}ScaffoldMessenger.of(context).showSnackBar(",
            f"{_I * 4}SnackBar(content: Text('Save failed: $e')),",
            f"{_I * 3});",
            f"{_I * 2}}}",
            f"{_I}}}",
            "",
            f"{_I}@override",
            f"{_I}Widget build(BuildContext context) {{",
            f"{_I * 2}return Scaffold(",
            f"{_I * 3}appBar: AppBar(",
            f"{_I * 4}title: Text(widget.id == null "
            f"? {quote_dart('New ' + to_title_human(name))} "
            f": {quote_dart('Edit ' + to_title_human(name))}),",
            f"{_I * 3}),",
            f"{_I * 3}body: _isLoading",
            f"{_I * 5}? const Center(child: CircularProgressIndicator())",
            f"{_I * 5}: Form(",
            f"{_I * 6}key: _formKey,",
            f"{_I * 6}child: ListView(",
            f"{_I * 7}padding: const EdgeInsets.all(16.0),",
            f"{_I * 7}children: [",
        ])
        for spec in scalars:
            lines.extend([
                f"{_I * 8}TextFormField(",
                f"{_I * 9}controller: _{spec.name}Controller,",
                f"{_I * 9}decoration: const InputDecoration("
                f"labelText: {quote_dart(to_title_human(spec.name))}),",
                f"{_I * 9}keyboardType: {keyboard_type(spec.dart_type)},",
                f"{_I * 8}),",
            ])
        for relation in relations:
            target = self._target(relation.target_table_id)
            target_pk = self._pk(target)
            target_display: str = target.display_field or target_pk
            selected = f"_selected{upper_first(relation.field_name)}Id"
            lines.extend([
                f"{_I * 8}FutureBuilder<List<{target.entity_name}>>(",
                f"{_I * 9}future: _{relation.field_name}Options,",
                f"{_I * 9}builder: (context, snapshot) {{",
                f"{_I * 10}if (snapshot.connectionState == ConnectionState.waiting) {{",
                f"{_I * 11}return const LinearProgressIndicator();",
                f"{_I * 10}}}",
                f"{_I * 10}if (snapshot.hasError) {{",
                f"{_I * 11}return Text('${{snapshot.error}}');",
                f"{_I * 10}}}",
                f"{_I * 10}final options = snapshot.data ?? [];",
                f"{_I * 10}final current = options.any((o) => o.{target_pk} == {selected}) "
                f"? {selected} : null;",
                f"{_I * 10}return DropdownButtonFormField<int>(",
                f"{_I * 11}value: current,",
                f"{_I * 11}decoration: const InputDecoration("
                f"labelText: {quote_dart(to_title_human(relation.field_name))}),",
                f"{_I * 11}items: options",
                f"{_I * 13}.where((o) => o.{target_pk} != null)",
                f"{_I * 13}.map((o) => DropdownMenuItem<int>(",
                f"{_I * 15}value: o.{target_pk},",
                f"{_I * 15}child: Text(o.{target_display}?.toString() ?? 'N/A'),",
                f"{_I * 14}))",
                f"{_I * 13}.toList(),",
                f"{_I * 11}onChanged: (value) => setState(() => {selected} = value),",
                f"{_I * 10});",
                f"{_I * 9}}},",
                f"{_I * 8}),",
            ])
        lines.extend([
            f"{_I * 8}const SizedBox(height: 20),",
            f"{_I * 8}ElevatedButton(",
            f"{_I * 9}onPressed: _save,",
            f"{_I * 9}child: const Text('Save'),",
            f"{_I * 8}),",
            f"{_I * 7}],",
            f"{_I * 6}),",
            f"{_I * 5}),",
            f"{_I * 2});",
            f"{_I}}}",
            "}",
            "",
        ])
        return "\n".join(lines)

    # ===================================================================
    # 7. Aggregate generation
    # ===================================================================

    def generate_all_for_entity(self, desc: EntityDescriptor) -> Dict[str, str]:
        stem: str = desc.file_name
        return {
            f"lib/models/{stem}.dart": self.generate_model(desc),
            f"lib/services/{stem}_service.dart": self.generate_service(desc),
            f"lib/pages/{stem}_list_page.dart": self.generate_list_page(desc),
            f"lib/pages/{stem}_detail_page.dart": self.generate_detail_page(desc),
            f"lib/pages/{stem}_form_page.dart": self.generate_form_page(desc),
        }

    def generate_all(self) -> Dict[str, str]:
        result: Dict[str, str] = {
            "pubspec.yaml": self.generate_pubspec(),
            "analysis_options.yaml": self.generate_analysis_options(),
            "README.md": self.generate_readme(),
            ".gitignore": self.generate_gitignore(),
            "lib/main.dart": self.generate_main(),
            "lib/pages/home_page.dart": self.generate_home_page(),
        }
        for desc in self._resolved:
            result.update(self.generate_all_for_entity(desc))

        logger.info(
            "Flutter generation complete: %d files for %d entities.",
            len(result),
            self._resolved.entity_count,
        )
        return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FlutterTemplateGenerator",
]

logger.debug("diagramgen.flutter loaded.")
