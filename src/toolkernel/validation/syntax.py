"""Static checks for single web source files.

These run without a toolchain: a tag-balance check for HTML, a brace check
for CSS, and a bracket/string scanner for JavaScript and TypeScript, plus a
handful of style and best-practice warnings. They catch broken edits early;
the type-check pipeline remains the authority for whole projects.

Local file references (``src=``, ``href=``, ``url()``, ``@import``, relative
``import``/``require``) are extracted here and resolved to candidate sandbox
paths; checking that they exist is left to the caller, which owns the
filesystem.
"""

import posixpath
import re
from collections.abc import Callable
from dataclasses import dataclass

from toolkernel.validation.parsers import Diagnostic

HTML_EXTENSIONS = (".html", ".htm")
CSS_EXTENSIONS = (".css",)
SCRIPT_EXTENSIONS = (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx")

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# Suffixes tried for extensionless module imports, in resolution order
MODULE_SUFFIXES = (
    "",
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
    ".json",
    "/index.ts",
    "/index.tsx",
    "/index.js",
    "/index.jsx",
)

HTML_TAG = re.compile(r"</?[^>]+>")
HTML_TAG_NAME = re.compile(r"</?(\w+)")
VAR_DECLARATION = re.compile(r"\bvar\s")
LOOSE_EQUALITY = re.compile(r"(?<![=!])==(?!=)")

ASSET_REFERENCE = re.compile(r"""(?:url\(\s*['"]?|src="|href="|@import\s+")([^"')\s]+)""")
TAG_REFERENCE = re.compile(r"""<(?:script|link|img)[^>]*?\s(?:src|href)=["']([^"']+)["']""")
MODULE_REFERENCE = re.compile(
    r"""(?:\bimport\b[^'"]*?\bfrom\s+|\bimport\s+|\brequire\(\s*)['"]([^'"]+)['"]"""
)

EXTERNAL_PREFIXES = ("http:", "https:", "//", "data:", "mailto:", "tel:", "#", "javascript:")


@dataclass(frozen=True)
class FileReference:
    """A local path referenced from a source file."""

    line: int
    target: str
    is_module: bool = False


def file_type_for(path: str) -> str | None:
    """Return "html", "css" or "script" for a supported path, otherwise None."""
    extension = posixpath.splitext(path)[1].lower()
    if extension in HTML_EXTENSIONS:
        return "html"
    if extension in CSS_EXTENSIONS:
        return "css"
    if extension in SCRIPT_EXTENSIONS:
        return "script"
    return None


def _warning(file_path: str, line: int, message: str, kind: str = "best_practice") -> Diagnostic:
    return Diagnostic(message=message, file=file_path, line=line, kind=kind, severity="warning")


def _balance_error(file_path: str, name: str, count: int) -> Diagnostic:
    side = "missing closing" if count > 0 else "extra closing"
    return Diagnostic(message=f"Mismatched {name}: {side} {name}", file=file_path)


def check_html(content: str, file_path: str) -> list[Diagnostic]:
    """Check tag balance and flag inline handlers and images without alt text."""
    diagnostics: list[Diagnostic] = []
    open_tags: list[tuple[str, int]] = []

    for number, line in enumerate(content.split("\n"), start=1):
        for tag in HTML_TAG.findall(line):
            name_match = HTML_TAG_NAME.match(tag)
            if name_match is None:
                # Comments, doctype and processing instructions
                continue
            name = name_match.group(1).lower()

            if tag.startswith("</"):
                last = open_tags.pop() if open_tags else None
                if last is None or last[0] != name:
                    diagnostics.append(
                        Diagnostic(message=f"Mismatched closing tag: {tag}", file=file_path, line=number)
                    )
            elif not tag.endswith("/>") and name not in VOID_ELEMENTS:
                open_tags.append((name, number))

        if "onclick=" in line or "onload=" in line:
            diagnostics.append(
                _warning(
                    file_path,
                    number,
                    "Inline event handlers should be avoided for security and maintainability",
                )
            )
        if "<img" in line and "alt=" not in line:
            diagnostics.append(
                _warning(file_path, number, "Image tags should include alt attributes for accessibility")
            )

    for name, number in open_tags:
        diagnostics.append(Diagnostic(message=f"Unclosed tag: <{name}>", file=file_path, line=number))

    return diagnostics


def _strip_css_comments(line: str, in_comment: bool) -> tuple[str, bool]:
    """Remove /* */ comment text from one line, tracking multi-line comments."""
    kept = []
    position = 0
    while position < len(line):
        if in_comment:
            end = line.find("*/", position)
            if end == -1:
                return "".join(kept), True
            position = end + 2
            in_comment = False
        else:
            start = line.find("/*", position)
            if start == -1:
                kept.append(line[position:])
                break
            kept.append(line[position:start])
            position = start + 2
            in_comment = True
    return "".join(kept), in_comment


def check_css(content: str, file_path: str) -> list[Diagnostic]:
    """Check brace balance and flag missing semicolons, vendor prefixes and !important."""
    diagnostics: list[Diagnostic] = []
    brace_count = 0
    in_comment = False

    for number, raw_line in enumerate(content.split("\n"), start=1):
        line, in_comment = _strip_css_comments(raw_line, in_comment)
        brace_count += line.count("{") - line.count("}")
        stripped = line.strip()

        if (
            ":" in stripped
            and ";" not in stripped
            and "{" not in stripped
            and "}" not in stripped
            and not stripped.endswith(",")
            and not stripped.startswith("@")
        ):
            diagnostics.append(
                _warning(file_path, number, "CSS property should end with semicolon", kind="style")
            )
        if any(prefix in line for prefix in ("-webkit-", "-moz-", "-ms-")):
            diagnostics.append(
                _warning(file_path, number, "Consider using autoprefixer instead of manual vendor prefixes")
            )
        if "!important" in line:
            diagnostics.append(
                _warning(
                    file_path,
                    number,
                    "Avoid using !important, consider improving CSS specificity instead",
                )
            )

    if brace_count != 0:
        diagnostics.append(_balance_error(file_path, "braces", brace_count))

    return diagnostics


def check_script(content: str, file_path: str) -> list[Diagnostic]:
    """Check bracket balance outside strings and comments, and flag common slips."""
    diagnostics: list[Diagnostic] = []
    counts = {"braces": 0, "parentheses": 0, "brackets": 0}
    deltas = {
        "{": ("braces", 1),
        "}": ("braces", -1),
        "(": ("parentheses", 1),
        ")": ("parentheses", -1),
        "[": ("brackets", 1),
        "]": ("brackets", -1),
    }
    quote: str | None = None
    in_comment = False
    lowered_path = file_path.lower()
    is_test_file = "test" in lowered_path or "spec" in lowered_path

    for number, line in enumerate(content.split("\n"), start=1):
        index = 0
        while index < len(line):
            char = line[index]
            pair = line[index : index + 2]

            if in_comment:
                if pair == "*/":
                    in_comment = False
                    index += 2
                else:
                    index += 1
                continue

            if quote is None:
                if pair == "/*":
                    in_comment = True
                    index += 2
                    continue
                if pair == "//":
                    break
                if char in "\"'`":
                    quote = char
                elif char in deltas:
                    name, delta = deltas[char]
                    counts[name] += delta
            elif char == "\\":
                # Skip the escaped character
                index += 1
            elif char == quote:
                quote = None

            index += 1

        # Plain quotes end at the line break; template literals may span lines
        if quote in ("'", '"'):
            quote = None

        stripped = line.strip()
        if "console.log" in stripped and not is_test_file:
            diagnostics.append(
                _warning(file_path, number, "console.log statements should be removed from production code")
            )
        if VAR_DECLARATION.search(stripped):
            diagnostics.append(_warning(file_path, number, "Use let or const instead of var"))
        if LOOSE_EQUALITY.search(stripped):
            diagnostics.append(_warning(file_path, number, "Use === instead of == for strict equality"))

    for name, count in counts.items():
        if count != 0:
            diagnostics.append(_balance_error(file_path, name, count))

    return diagnostics


CHECKERS: dict[str, Callable[[str, str], list[Diagnostic]]] = {
    "html": check_html,
    "css": check_css,
    "script": check_script,
}


def check_source(content: str, file_path: str) -> list[Diagnostic]:
    """Run the checker matching the file's extension.

    Raises:
        ValueError: If the extension is not a supported web source type
    """
    file_type = file_type_for(file_path)
    if file_type is None:
        raise ValueError(f"Unsupported file type: {posixpath.splitext(file_path)[1] or file_path}")
    return CHECKERS[file_type](content, file_path)


def _is_external(target: str) -> bool:
    return target.lower().startswith(EXTERNAL_PREFIXES)


def extract_references(content: str) -> list[FileReference]:
    """Find local file references, one per distinct target per line.

    Bare module specifiers (``react``, ``@scope/pkg``) name packages, not
    files, and are not returned.
    """
    references: list[FileReference] = []

    for number, line in enumerate(content.split("\n"), start=1):
        seen: set[str] = set()
        for pattern, is_module in (
            (ASSET_REFERENCE, False),
            (TAG_REFERENCE, False),
            (MODULE_REFERENCE, True),
        ):
            for match in pattern.finditer(line):
                target = match.group(1)
                if target in seen or _is_external(target):
                    continue
                if is_module and not target.startswith((".", "/")):
                    continue
                seen.add(target)
                references.append(FileReference(line=number, target=target, is_module=is_module))

    return references


def candidate_paths(reference: FileReference, file_path: str, project_root: str) -> list[str]:
    """Absolute sandbox paths that would satisfy a reference, most specific first.

    Root-relative targets (``/logo.png``) resolve against ``project_root``;
    everything else resolves against the referencing file's directory.
    Query strings and fragments are ignored.
    """
    target = re.split(r"[?#]", reference.target, maxsplit=1)[0]
    if target.startswith("/"):
        base = posixpath.join(project_root, target.lstrip("/"))
    else:
        base = posixpath.join(posixpath.dirname(file_path), target)
    base = posixpath.normpath(base)

    if not reference.is_module:
        return [base]
    return [base + suffix for suffix in MODULE_SUFFIXES]
