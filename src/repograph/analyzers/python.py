"""PythonAnalyzer: stdlib ast-based entity extraction."""

from __future__ import annotations

import ast
import io
import tokenize

from repograph.records import ClassRecord, CommentRecord, FileRecord, FunctionRecord


class PythonAnalyzer:
    """Extracts entities from Python source files using the stdlib ``ast`` module."""

    @property
    def language(self) -> str:
        return "python"

    @property
    def extensions(self) -> frozenset[str]:
        return frozenset({".py", ".pyi"})

    def analyze_file(self, path: str, content: str) -> FileRecord:
        """Parse *content* as Python and extract functions, classes, imports, docs."""
        if not content.strip():
            return FileRecord(path=path, language=self.language, raw=content)
        try:
            tree = ast.parse(content, filename=path)
        except (SyntaxError, ValueError):
            return FileRecord(path=path, language=self.language, raw=content)

        functions: list[FunctionRecord] = []
        classes: list[ClassRecord] = []
        comments: list[CommentRecord] = []
        self._visit_body(tree.body, functions, classes, comments, in_class=False)

        module_doc = ast.get_docstring(tree, clean=False)
        if module_doc is not None and tree.body:
            comments.append(CommentRecord(text=module_doc, line=tree.body[0].lineno, kind="docstring"))
        comments.extend(self._collect_comments(content))
        comments.sort(key=lambda c: c.line)

        return FileRecord(
            path=path,
            language=self.language,
            raw=content,
            functions=tuple(functions),
            classes=tuple(classes),
            imports=tuple(self._collect_imports(tree.body)),
            exports=tuple(self._collect_exports(tree.body)),
            comments=tuple(comments),
        )

    def _visit_body(
        self,
        body: list[ast.stmt],
        functions: list[FunctionRecord],
        classes: list[ClassRecord],
        comments: list[CommentRecord],
        *,
        in_class: bool,
    ) -> None:
        """Recursively visit a body of statements, extracting functions and classes."""
        for node in body:
            if isinstance(node, ast.FunctionDef | ast.AsyncFunctionDef):
                kind = "method" if in_class else "regular"
                if isinstance(node, ast.AsyncFunctionDef):
                    kind = f"async_{kind}"
                functions.append(FunctionRecord(name=node.name, line=node.lineno, kind=kind))
                self._add_docstring(node, comments)
                self._visit_body(node.body, functions, classes, comments, in_class=False)
            elif isinstance(node, ast.ClassDef):
                bases = [name for name in map(self._resolve_base_name, node.bases) if name]
                classes.append(
                    ClassRecord(
                        name=node.name,
                        line=node.lineno,
                        extends=bases[0] if bases else None,
                        implements=tuple(bases[1:]),
                    )
                )
                self._add_docstring(node, comments)
                self._visit_body(node.body, functions, classes, comments, in_class=True)

    @staticmethod
    def _add_docstring(
        node: ast.FunctionDef | ast.AsyncFunctionDef | ast.ClassDef,
        comments: list[CommentRecord],
    ) -> None:
        doc = ast.get_docstring(node, clean=False)
        if doc is not None:
            comments.append(CommentRecord(text=doc, line=node.body[0].lineno, kind="docstring"))

    @staticmethod
    def _collect_imports(body: list[ast.stmt]) -> list[str]:
        """Top-level imports as dotted specifiers (``pkg.mod`` / ``..pkg.name``)."""
        imports: list[str] = []
        for node in body:
            if isinstance(node, ast.Import):
                imports.extend(alias.name for alias in node.names)
            elif isinstance(node, ast.ImportFrom):
                prefix = "." * (node.level or 0) + (node.module or "")
                for alias in node.names:
                    if not node.module:
                        imports.append(prefix + alias.name)
                    else:
                        imports.append(f"{prefix}.{alias.name}")
        return imports

    @staticmethod
    def _collect_exports(body: list[ast.stmt]) -> list[str]:
        """Names listed in a literal ``__all__``."""
        for node in body:
            if not isinstance(node, ast.Assign | ast.AnnAssign):
                continue
            targets = node.targets if isinstance(node, ast.Assign) else [node.target]
            if not any(isinstance(t, ast.Name) and t.id == "__all__" for t in targets):
                continue
            if isinstance(node.value, ast.List | ast.Tuple):
                return [
                    elt.value
                    for elt in node.value.elts
                    if isinstance(elt, ast.Constant) and isinstance(elt.value, str)
                ]
        return []

    @staticmethod
    def _collect_comments(content: str) -> list[CommentRecord]:
        """``#`` comments via the tokenizer (ignores ``#`` inside strings)."""
        comments: list[CommentRecord] = []
        try:
            for tok in tokenize.generate_tokens(io.StringIO(content).readline):
                if tok.type == tokenize.COMMENT:
                    comments.append(CommentRecord(text=tok.string, line=tok.start[0]))
        except (tokenize.TokenError, SyntaxError):
            # Keep what was tokenized before the error.
            return comments
        return comments

    @staticmethod
    def _resolve_base_name(node: ast.expr) -> str | None:
        """Extract a base class name from an AST node."""
        if isinstance(node, ast.Subscript):
            node = node.value
        if isinstance(node, ast.Name):
            return node.id
        if isinstance(node, ast.Attribute):
            # e.g. module.ClassName: keep the full dotted name
            parts: list[str] = []
            current: ast.expr = node
            while isinstance(current, ast.Attribute):
                parts.append(current.attr)
                current = current.value
            if isinstance(current, ast.Name):
                parts.append(current.id)
            return ".".join(reversed(parts))
        return None
