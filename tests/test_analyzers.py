"""Tests for analyzers: Python, JavaScript/TypeScript, Markdown, and the registry."""

from __future__ import annotations

import textwrap

from repograph.analyzers import (
    Analyzer,
    AnalyzerRegistry,
    GenericAnalyzer,
    MarkdownAnalyzer,
    PythonAnalyzer,
    analyze_file,
    get_analyzer,
    line_of,
)
from repograph.records import FileRecord

# ===================================================================
# Helpers
# ===================================================================


def _function_names(record: FileRecord) -> list[str]:
    return [f.name for f in record.functions]


class TestLineOf:
    def test_first_line(self):
        assert line_of("abc\ndef", 0) == 1

    def test_later_line(self):
        assert line_of("abc\ndef\nghi", 8) == 3


# ===================================================================
# TestPythonAnalyzer
# ===================================================================


class TestPythonFunctions:
    def test_top_level_function(self):
        record = PythonAnalyzer().analyze_file("a.py", "def foo():\n    return 1\n")
        assert record.language == "python"
        assert record.functions[0].name == "foo"
        assert record.functions[0].line == 1
        assert record.functions[0].kind == "regular"

    def test_async_function(self):
        record = PythonAnalyzer().analyze_file("a.py", "async def fetch():\n    pass\n")
        assert record.functions[0].kind == "async_regular"

    def test_methods_and_nested(self):
        code = textwrap.dedent("""\
            class Greeter:
                def greet(self):
                    def inner():
                        pass
                    return inner

                async def wait(self):
                    pass
        """)
        record = PythonAnalyzer().analyze_file("g.py", code)
        kinds = {f.name: (f.kind, f.line) for f in record.functions}
        assert kinds["greet"] == ("method", 2)
        assert kinds["inner"] == ("regular", 3)
        assert kinds["wait"] == ("async_method", 7)

    def test_raw_is_kept(self):
        code = "x = 1\n"
        assert PythonAnalyzer().analyze_file("a.py", code).raw == code


class TestPythonClasses:
    def test_bases(self):
        code = textwrap.dedent("""\
            class Admin(base.User, Mixin, Generic[T]):
                pass
        """)
        cls = PythonAnalyzer().analyze_file("a.py", code).classes[0]
        assert cls.name == "Admin"
        assert cls.extends == "base.User"
        assert cls.implements == ("Mixin", "Generic")

    def test_no_bases(self):
        cls = PythonAnalyzer().analyze_file("a.py", "class A:\n    pass\n").classes[0]
        assert cls.extends is None
        assert cls.implements == ()


class TestPythonImportsExports:
    def test_imports(self):
        code = textwrap.dedent("""\
            import os
            import a.b as ab
            from pathlib import Path
            from . import sibling
            from ..pkg import thing

            def f():
                import json
        """)
        record = PythonAnalyzer().analyze_file("m.py", code)
        assert record.imports == ("os", "a.b", "pathlib.Path", ".sibling", "..pkg.thing")

    def test_dunder_all_exports(self):
        code = '__all__ = ["a", "b"]\n\ndef a(): pass\n\ndef b(): pass\n'
        assert PythonAnalyzer().analyze_file("m.py", code).exports == ("a", "b")


class TestPythonComments:
    def test_comments_and_docstrings(self):
        code = textwrap.dedent('''\
            """Module doc."""
            # a comment
            x = "# not a comment"

            def f():
                """Function doc."""
        ''')
        comments = PythonAnalyzer().analyze_file("m.py", code).comments
        assert [(c.text, c.line, c.kind) for c in comments] == [
            ("Module doc.", 1, "docstring"),
            ("# a comment", 2, "single"),
            ("Function doc.", 6, "docstring"),
        ]


class TestPythonEdgeCases:
    def test_syntax_error_degrades(self):
        record = PythonAnalyzer().analyze_file("bad.py", "def broken(:\n")
        assert record.raw == "def broken(:\n"
        assert record.functions == ()
        assert record.classes == ()

    def test_empty_file(self):
        record = PythonAnalyzer().analyze_file("empty.py", "")
        assert record.functions == ()


# ===================================================================
# TestJSStructures
# ===================================================================


class TestJSStructures:
    def test_functions(self):
        from repograph.analyzers.javascript import JavaScriptAnalyzer

        code = textwrap.dedent("""\
            function login(user) {
              return true;
            }

            const add = (a, b) => a + b;

            const legacy = function () {};
        """)
        record = JavaScriptAnalyzer().analyze_file("/src/app.js", code)
        funcs = {f.name: (f.kind, f.line) for f in record.functions}
        assert funcs["login"] == ("regular", 1)
        assert funcs["add"] == ("arrow", 5)
        assert funcs["legacy"] == ("regular", 7)
        assert record.language == "javascript"

    def test_class_with_methods(self):
        from repograph.analyzers.javascript import JavaScriptAnalyzer

        code = textwrap.dedent("""\
            class Admin extends User {
              greet() {
                return 'hi';
              }
            }
        """)
        record = JavaScriptAnalyzer().analyze_file("/src/admin.js", code)
        assert record.classes[0].name == "Admin"
        assert record.classes[0].extends == "User"
        assert record.classes[0].line == 1
        method = record.functions[0]
        assert (method.name, method.kind, method.line) == ("greet", "method", 2)

    def test_imports_and_require(self):
        from repograph.analyzers.javascript import JavaScriptAnalyzer

        code = textwrap.dedent("""\
            import React from 'react';
            import { join } from "path";
            const fs = require('fs');
        """)
        record = JavaScriptAnalyzer().analyze_file("/src/app.js", code)
        assert record.imports == ("react", "path", "fs")

    def test_exports(self):
        from repograph.analyzers.javascript import JavaScriptAnalyzer

        code = textwrap.dedent("""\
            export function handler(req, res) {}
            export const limit = 10;
            function a() {}
            export { a };
        """)
        record = JavaScriptAnalyzer().analyze_file("/src/api.js", code)
        assert record.exports == ("handler", "limit", "a")
        assert "handler" in _function_names(record)

    def test_comments(self):
        from repograph.analyzers.javascript import JavaScriptAnalyzer

        code = "// single\n/* multi\n line */\nconst x = 1;\n"
        comments = JavaScriptAnalyzer().analyze_file("/a.js", code).comments
        assert [(c.line, c.kind) for c in comments] == [(1, "single"), (2, "multi")]

    def test_empty_content(self):
        from repograph.analyzers.javascript import JavaScriptAnalyzer

        record = JavaScriptAnalyzer().analyze_file("/a.js", "   \n")
        assert record.functions == ()


# ===================================================================
# TestJSGraceful
# ===================================================================


class TestJSGraceful:
    def test_returns_empty_without_treesitter(self):
        from repograph.analyzers import javascript

        orig = javascript._HAS_TREESITTER
        javascript._HAS_TREESITTER = False
        javascript.JavaScriptAnalyzer._warned = False
        try:
            record = javascript.JavaScriptAnalyzer().analyze_file("/src/app.js", "function foo() {}")
            assert record.functions == ()
            assert record.raw == "function foo() {}"
        finally:
            javascript._HAS_TREESITTER = orig
            javascript.JavaScriptAnalyzer._warned = False

    def test_logs_warning_once(self, caplog):
        from repograph.analyzers import javascript

        orig = javascript._HAS_TREESITTER
        javascript._HAS_TREESITTER = False
        javascript.JavaScriptAnalyzer._warned = False
        try:
            analyzer = javascript.JavaScriptAnalyzer()
            with caplog.at_level("WARNING", logger="repograph.analyzers.javascript"):
                analyzer.analyze_file("/a.js", "x")
                analyzer.analyze_file("/b.js", "y")
            warnings = [r for r in caplog.records if r.levelname == "WARNING"]
            assert len(warnings) == 1
        finally:
            javascript._HAS_TREESITTER = orig
            javascript.JavaScriptAnalyzer._warned = False


# ===================================================================
# TestTSAnalyzer
# ===================================================================


class TestTSAnalyzer:
    def test_extensions(self):
        from repograph.analyzers.javascript import TypeScriptAnalyzer

        assert TypeScriptAnalyzer().extensions == frozenset({".ts", ".tsx"})

    def test_class_heritage(self):
        from repograph.analyzers.javascript import TypeScriptAnalyzer

        code = textwrap.dedent("""\
            class Service extends Base implements Runnable, Disposable {
              run(): void {}
            }
        """)
        record = TypeScriptAnalyzer().analyze_file("/src/service.ts", code)
        cls = record.classes[0]
        assert cls.name == "Service"
        assert cls.extends == "Base"
        assert cls.implements == ("Runnable", "Disposable")
        assert record.language == "typescript"
        assert _function_names(record) == ["run"]

    def test_tsx(self):
        from repograph.analyzers.javascript import TypeScriptAnalyzer

        code = "export function App() { return <div />; }\n"
        record = TypeScriptAnalyzer().analyze_file("/src/App.tsx", code)
        assert record.exports == ("App",)


# ===================================================================
# TestMarkdownAnalyzer
# ===================================================================


class TestMarkdownAnalyzer:
    def test_headings_and_code_blocks(self):
        doc = textwrap.dedent("""\
            # Title

            Intro.

            ## Usage

            ```python
            # not a heading
            print("hi")
            ```

            ```
            plain text
            ```
        """)
        record = MarkdownAnalyzer().analyze_file("README.md", doc)
        assert [(h.text, h.level, h.line) for h in record.headings] == [
            ("Title", 1, 1),
            ("Usage", 2, 5),
        ]
        assert [(b.language, b.line) for b in record.code_blocks] == [("python", 7), ("plain", 12)]
        assert record.code_blocks[0].code == '# not a heading\nprint("hi")'

    def test_no_structure(self):
        record = MarkdownAnalyzer().analyze_file("notes.md", "just text")
        assert record.headings == ()
        assert record.code_blocks == ()


# ===================================================================
# TestRegistry
# ===================================================================


class TestRegistry:
    def test_builtins_registered(self):
        registry = AnalyzerRegistry()
        exts = registry.supported_extensions()
        assert {".py", ".md", ".js", ".ts", ".tsx"} <= exts

    def test_get_case_insensitive(self):
        assert isinstance(AnalyzerRegistry().get("/src/MAIN.PY"), PythonAnalyzer)

    def test_get_unsupported(self):
        assert AnalyzerRegistry().get("/src/main.rs") is None

    def test_unsupported_falls_back_to_generic(self):
        record = AnalyzerRegistry().analyze_file("notes.txt", "hello")
        assert record.language == "generic"
        assert record.raw == "hello"

    def test_register_custom(self):
        class ToyAnalyzer:
            @property
            def language(self):
                return "toy"

            @property
            def extensions(self):
                return frozenset({".TOY"})

            def analyze_file(self, path, content):
                return FileRecord(path=path, language="toy", raw=content)

        registry = AnalyzerRegistry()
        registry.register(ToyAnalyzer())
        assert registry.analyze_file("x.toy", "").language == "toy"

    def test_protocol_conformance(self):
        assert isinstance(PythonAnalyzer(), Analyzer)
        assert isinstance(MarkdownAnalyzer(), Analyzer)
        assert isinstance(GenericAnalyzer(), Analyzer)


class TestModuleHelpers:
    def test_get_analyzer(self):
        assert isinstance(get_analyzer("README.md"), MarkdownAnalyzer)

    def test_analyze_file(self):
        record = analyze_file("a.py", "def f():\n    pass\n")
        assert [f.name for f in record.functions] == ["f"]
