"""Unit tests for toolkernel.validation.syntax module."""

import pytest

from toolkernel.validation.syntax import (
    FileReference,
    candidate_paths,
    check_css,
    check_html,
    check_script,
    check_source,
    extract_references,
    file_type_for,
)


def errors(diagnostics):
    return [d.message for d in diagnostics if d.severity == "error"]


def warnings(diagnostics):
    return [d.message for d in diagnostics if d.severity == "warning"]


@pytest.mark.unit
@pytest.mark.validation
class TestFileType:
    """Tests for extension dispatch."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/w/index.html", "html"),
            ("/w/page.HTM", "html"),
            ("/w/styles.css", "css"),
            ("/w/app.tsx", "script"),
            ("/w/lib.mjs", "script"),
            ("/w/main.py", None),
            ("/w/Makefile", None),
        ],
    )
    def test_file_type_for(self, path, expected):
        assert file_type_for(path) == expected

    def test_check_source_rejects_unsupported(self):
        with pytest.raises(ValueError, match="Unsupported file type: .py"):
            check_source("print()", "/w/main.py")


@pytest.mark.unit
@pytest.mark.validation
class TestCheckHtml:
    """Tests for the HTML tag-balance check."""

    def test_balanced_document(self):
        html = (
            "<!DOCTYPE html>\n"
            "<html>\n"
            "<head><meta charset=\"utf-8\"><title>Demo</title></head>\n"
            "<body><br><img src=\"a.png\" alt=\"A\"/></body>\n"
            "</html>\n"
        )
        assert check_html(html, "/w/index.html") == []

    def test_unclosed_tag(self):
        diagnostics = check_html("<div>\n<p>text</p>\n", "/w/index.html")

        assert errors(diagnostics) == ["Unclosed tag: <div>"]
        assert diagnostics[0].line == 1
        assert diagnostics[0].kind == "syntax"

    def test_mismatched_closing_tag(self):
        diagnostics = check_html("<div>\n</span>\n", "/w/index.html")

        assert errors(diagnostics) == ["Mismatched closing tag: </span>"]
        assert diagnostics[0].line == 2

    def test_warnings(self):
        diagnostics = check_html('<button onclick="go()">Go</button>\n<img src="a.png">\n', "/w/i.html")

        assert warnings(diagnostics) == [
            "Inline event handlers should be avoided for security and maintainability",
            "Image tags should include alt attributes for accessibility",
        ]
        assert {d.kind for d in diagnostics} == {"best_practice"}


@pytest.mark.unit
@pytest.mark.validation
class TestCheckCss:
    """Tests for the CSS brace check."""

    def test_valid_stylesheet(self):
        css = "/* theme */\nbody {\n  color: red;\n}\n"
        assert check_css(css, "/w/styles.css") == []

    def test_missing_closing_brace(self):
        diagnostics = check_css("body {\n  color: red;\n", "/w/styles.css")

        assert errors(diagnostics) == ["Mismatched braces: missing closing braces"]
        assert diagnostics[0].line is None

    def test_extra_closing_brace(self):
        assert errors(check_css("a { color: red; }\n}\n", "/w/s.css")) == [
            "Mismatched braces: extra closing braces"
        ]

    def test_braces_inside_comments_ignored(self):
        css = "/* a {\n still comment } } */\nbody { margin: 0; }\n"
        assert errors(check_css(css, "/w/s.css")) == []

    def test_style_warnings(self):
        css = "a {\n  color: red\n  -webkit-transition: none;\n  margin: 0 !important;\n}\n"

        diagnostics = check_css(css, "/w/s.css")

        assert warnings(diagnostics) == [
            "CSS property should end with semicolon",
            "Consider using autoprefixer instead of manual vendor prefixes",
            "Avoid using !important, consider improving CSS specificity instead",
        ]
        assert [d.line for d in diagnostics] == [2, 3, 4]
        assert diagnostics[0].kind == "style"


@pytest.mark.unit
@pytest.mark.validation
class TestCheckScript:
    """Tests for the JavaScript/TypeScript bracket scanner."""

    def test_balanced_source(self):
        source = (
            "export function add(a: number[], b = { x: 1 }) {\n"
            "  const s = '}' + \")\" + `${a[0]}`;\n"
            "  // stray ) in a comment\n"
            "  /* and { in a block */\n"
            "  return a.length === 0;\n"
            "}\n"
        )
        assert check_script(source, "/w/src/add.ts") == []

    @pytest.mark.parametrize(
        "source,message",
        [
            ("function f() {\n", "Mismatched braces: missing closing braces"),
            ("f());\n", "Mismatched parentheses: extra closing parentheses"),
            ("const a = [1, 2;\n", "Mismatched brackets: missing closing brackets"),
        ],
    )
    def test_unbalanced(self, source, message):
        assert errors(check_script(source, "/w/a.js")) == [message]

    def test_escaped_quote_stays_in_string(self):
        assert errors(check_script("const s = 'it\\'s (';\n", "/w/a.js")) == []

    def test_template_literal_spans_lines(self):
        source = "const t = `line one {\nline two (`;\n"
        assert errors(check_script(source, "/w/a.js")) == []

    def test_warnings(self):
        source = "var x = 1;\nif (x == 2) console.log(x);\nif (x === 2 || x != 3) {}\n"

        assert warnings(check_script(source, "/w/src/a.js")) == [
            "Use let or const instead of var",
            "console.log statements should be removed from production code",
            "Use === instead of == for strict equality",
        ]

    def test_console_log_allowed_in_tests(self):
        assert warnings(check_script("console.log(1);\n", "/w/src/a.test.ts")) == []


@pytest.mark.unit
@pytest.mark.validation
class TestReferences:
    """Tests for reference extraction and resolution."""

    def test_extracts_local_references(self):
        content = (
            '<link rel="stylesheet" href="styles.css">\n'
            '<script src="./app.js"></script>\n'
            "import { Button } from './components/Button';\n"
            "import React from 'react';\n"
            "import './global.css';\n"
            "const data = require('../data.json');\n"
            "body { background: url('/img/bg.png'); }\n"
        )

        references = extract_references(content)

        assert [(r.line, r.target, r.is_module) for r in references] == [
            (1, "styles.css", False),
            (2, "./app.js", False),
            (3, "./components/Button", True),
            (5, "./global.css", True),
            (6, "../data.json", True),
            (7, "/img/bg.png", False),
        ]

    def test_skips_external_references(self):
        content = (
            '<a href="https://example.com">x</a>\n'
            '<script src="//cdn.example.com/lib.js"></script>\n'
            '<img src="data:image/png;base64,AAAA" alt="">\n'
            '<a href="#top">top</a>\n'
            '<a href="mailto:a@example.com">mail</a>\n'
        )
        assert extract_references(content) == []

    def test_relative_candidate(self):
        reference = FileReference(line=1, target="../assets/logo.png?v=2")
        assert candidate_paths(reference, "/workspace/src/index.html", "/workspace") == [
            "/workspace/assets/logo.png"
        ]

    def test_root_relative_candidate(self):
        reference = FileReference(line=1, target="/img/bg.png")
        assert candidate_paths(reference, "/workspace/src/a.css", "/workspace/site") == [
            "/workspace/site/img/bg.png"
        ]

    def test_module_candidates_try_extensions(self):
        reference = FileReference(line=1, target="./components/Button", is_module=True)

        candidates = candidate_paths(reference, "/workspace/src/App.tsx", "/workspace")

        assert candidates[0] == "/workspace/src/components/Button"
        assert "/workspace/src/components/Button.tsx" in candidates
        assert "/workspace/src/components/Button/index.ts" in candidates
