"""JavaScriptAnalyzer: tree-sitter-based entity extraction."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from repograph.records import ClassRecord, CommentRecord, FileRecord, FunctionRecord

logger = logging.getLogger(__name__)

try:
    import tree_sitter
    from tree_sitter_javascript import language as _js_language
    from tree_sitter_typescript import language_tsx as _tsx_language
    from tree_sitter_typescript import language_typescript as _ts_language

    _HAS_TREESITTER = True
except ImportError:  # pragma: no cover
    _HAS_TREESITTER = False

_FUNCTION_VALUES = frozenset({"arrow_function", "function_expression", "function", "generator_function"})
_CLASS_DECLARATIONS = frozenset({"class_declaration", "abstract_class_declaration", "class"})
_QUOTES = "'\"`"


class JavaScriptAnalyzer:
    """Extracts entities from JavaScript source files using tree-sitter."""

    _warned: bool = False

    @property
    def language(self) -> str:
        return "javascript"

    @property
    def extensions(self) -> frozenset[str]:
        return frozenset({".js", ".jsx", ".mjs", ".cjs"})

    def analyze_file(self, path: str, content: str) -> FileRecord:
        if not _HAS_TREESITTER:
            if not JavaScriptAnalyzer._warned:
                logger.warning(
                    "tree-sitter not available; JavaScriptAnalyzer returning empty results"
                )
                JavaScriptAnalyzer._warned = True
            return FileRecord(path=path, language=self.language, raw=content)
        if not content.strip():
            return FileRecord(path=path, language=self.language, raw=content)

        lang = tree_sitter.Language(_js_language())
        return _analyze_js_tree(path, content, lang, self.language)


class TypeScriptAnalyzer:
    """Extracts entities from TypeScript source files using tree-sitter.

    Reuses the JavaScript walk: the TypeScript grammar shares its
    declaration node types, adding ``implements`` clauses and type names.
    """

    _warned: bool = False

    @property
    def language(self) -> str:
        return "typescript"

    @property
    def extensions(self) -> frozenset[str]:
        return frozenset({".ts", ".tsx"})

    def analyze_file(self, path: str, content: str) -> FileRecord:
        if not _HAS_TREESITTER:
            if not TypeScriptAnalyzer._warned:
                logger.warning(
                    "tree-sitter not available; TypeScriptAnalyzer returning empty results"
                )
                TypeScriptAnalyzer._warned = True
            return FileRecord(path=path, language=self.language, raw=content)
        if not content.strip():
            return FileRecord(path=path, language=self.language, raw=content)

        if path.endswith(".tsx"):
            lang = tree_sitter.Language(_tsx_language())
        else:
            lang = tree_sitter.Language(_ts_language())
        return _analyze_js_tree(path, content, lang, self.language)


@dataclass
class _Collected:
    functions: list[FunctionRecord] = field(default_factory=list)
    classes: list[ClassRecord] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)
    comments: list[CommentRecord] = field(default_factory=list)


def _analyze_js_tree(
    path: str,
    content: str,
    lang: tree_sitter.Language,
    language: str,
) -> FileRecord:
    """Shared analysis logic for JS/TS syntax trees."""
    parser = tree_sitter.Parser(lang)
    tree = parser.parse(content.encode())

    found = _Collected()
    _walk(tree.root_node, found, in_class=False)
    return FileRecord(
        path=path,
        language=language,
        raw=content,
        functions=tuple(found.functions),
        classes=tuple(found.classes),
        imports=tuple(found.imports),
        exports=tuple(found.exports),
        comments=tuple(found.comments),
    )


def _walk(node: tree_sitter.Node, found: _Collected, *, in_class: bool) -> None:
    """Depth-first walk collecting declarations, imports, exports and comments."""
    for child in node.children:
        kind = child.type
        if kind in ("function_declaration", "generator_function_declaration"):
            _add_function(child, child, found, "regular")
        elif kind in _CLASS_DECLARATIONS:
            _add_class(child, found)
            body = child.child_by_field_name("body")
            if body is not None:
                _walk(body, found, in_class=True)
            continue
        elif kind == "method_definition" and in_class:
            _add_function(child, child, found, "method")
        elif kind in ("lexical_declaration", "variable_declaration"):
            _add_declared_functions(child, found)
        elif kind == "import_statement":
            source = _string_value(child.child_by_field_name("source"))
            if source:
                found.imports.append(source)
        elif kind == "export_statement":
            _add_exports(child, found)
        elif kind == "call_expression":
            _add_require(child, found)
        elif kind == "comment":
            found.comments.append(
                CommentRecord(
                    text=_text(child),
                    line=child.start_point.row + 1,
                    kind="single" if _text(child).startswith("//") else "multi",
                )
            )
        _walk(child, found, in_class=in_class and kind == "class_body")


def _text(node: tree_sitter.Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode()


def _string_value(node: tree_sitter.Node | None) -> str:
    return _text(node).strip(_QUOTES)


def _add_function(
    name_owner: tree_sitter.Node,
    position: tree_sitter.Node,
    found: _Collected,
    kind: str,
) -> None:
    name = _text(name_owner.child_by_field_name("name"))
    if name:
        found.functions.append(
            FunctionRecord(name=name, line=position.start_point.row + 1, kind=kind)
        )


def _add_declared_functions(node: tree_sitter.Node, found: _Collected) -> None:
    """``const f = () => ...`` / ``const f = function () {}`` declarations."""
    for child in node.children:
        if child.type != "variable_declarator":
            continue
        value = child.child_by_field_name("value")
        if value is None or value.type not in _FUNCTION_VALUES:
            continue
        kind = "arrow" if value.type == "arrow_function" else "regular"
        # Line of the whole declaration, so the body resolver starts at ``const``.
        _add_function(child, node, found, kind)


def _add_class(node: tree_sitter.Node, found: _Collected) -> None:
    name = _text(node.child_by_field_name("name"))
    if not name:
        return
    extends: str | None = None
    implements: list[str] = []
    for child in node.children:
        if child.type != "class_heritage":
            continue
        for clause in child.children:
            if clause.type == "extends_clause":
                value = clause.child_by_field_name("value")
                extends = _text(value) if value is not None else _first_named_text(clause)
            elif clause.type == "implements_clause":
                implements.extend(_text(c) for c in clause.named_children)
            elif clause.is_named and extends is None:
                # JavaScript grammar: ``extends`` keyword followed by the expression
                extends = _text(clause)
    found.classes.append(
        ClassRecord(
            name=name,
            line=node.start_point.row + 1,
            extends=extends or None,
            implements=tuple(i for i in implements if i),
        )
    )


def _first_named_text(node: tree_sitter.Node) -> str | None:
    for child in node.named_children:
        return _text(child)
    return None


def _add_exports(node: tree_sitter.Node, found: _Collected) -> None:
    """``export function f``, ``export { a, b }``, ``export default x``."""
    declaration = node.child_by_field_name("declaration")
    if declaration is not None:
        name = _text(declaration.child_by_field_name("name"))
        if name:
            found.exports.append(name)
            return
        for child in declaration.children:
            if child.type == "variable_declarator":
                name = _text(child.child_by_field_name("name"))
                if name:
                    found.exports.append(name)
        return

    for child in node.children:
        if child.type == "export_clause":
            for spec in child.named_children:
                alias = spec.child_by_field_name("alias")
                name = _text(alias) if alias is not None else _text(spec.child_by_field_name("name"))
                if name:
                    found.exports.append(name)

    value = node.child_by_field_name("value")
    if value is not None and value.type == "identifier":
        found.exports.append(_text(value))

    source = _string_value(node.child_by_field_name("source"))
    if source:
        found.imports.append(source)


def _add_require(node: tree_sitter.Node, found: _Collected) -> None:
    """CommonJS ``require('x')`` calls."""
    function = node.child_by_field_name("function")
    if function is None or _text(function) != "require":
        return
    arguments = node.child_by_field_name("arguments")
    if arguments is None:
        return
    for arg in arguments.named_children:
        if arg.type in ("string", "template_string"):
            found.imports.append(_string_value(arg))
            return
