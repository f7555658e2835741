"""Tests for declaration detection and function-context expansion.

Covers:
- Declaration patterns (JS/TS and Python)
- Control-flow keywords are not methods
- Brace-balanced and indentation-based boundaries
- Line budget fallback
- Expansion of an aligned pair into function ranges
"""

from __future__ import annotations

import pytest

from diffpane.core.full_content_aligner import align_full_content
from diffpane.core.function_boundary import (
    detect_declaration,
    expand_to_functions,
    find_function_boundaries,
)
from diffpane.core.line_model import AlignedPair, CollapsedRange, LineKind


# =============================================================================
#  Detection
# =============================================================================


class TestDetectDeclaration:
    @pytest.mark.parametrize(
        "line,decl_type,name",
        [
            ("export async function load(id) {", "function", "load"),
            ("function total(items) {", "function", "total"),
            ("const handle = (event) => {", "arrow-function", "handle"),
            ("export const fetchAll = async () => {", "arrow-function", "fetchAll"),
            ("export class Cart extends Base {", "class", "Cart"),
            ("interface Props {", "interface", "Props"),
            ("export enum Color {", "enum", "Color"),
            ("  private render(): void {", "method", "render"),
            ("def compute(a, b):", "function", "compute"),
            ("    async def fetch(self) -> str:", "function", "fetch"),
            ("class Parser(Base):", "class", "Parser"),
        ],
    )
    def test_recognized(self, line: str, decl_type: str, name: str) -> None:
        declaration = detect_declaration(line)
        assert declaration is not None
        assert (declaration.type, declaration.name) == (decl_type, name)

    @pytest.mark.parametrize(
        "line",
        ["if (ready) {", "  for (const x of xs) {", "while (true) {", "return value;", "", "x = 1"],
    )
    def test_not_declarations(self, line: str) -> None:
        assert detect_declaration(line) is None

    def test_indent_recorded(self) -> None:
        assert detect_declaration("    def inner():").indent == 4

    def test_label(self) -> None:
        assert detect_declaration("function total(items) {").label == "total (function)"


# =============================================================================
#  Boundaries
# =============================================================================


JS_LINES = [
    "import x from 'x';",
    "",
    "function a() {",
    "  let y = 1;",
    "  return y;",
    "}",
    "",
    "function b() {",
    "  return 2;",
    "}",
]

PY_LINES = [
    "def f(x):",
    "    y = x",
    "",
    "    return y",
    "",
    "def g():",
    "    pass",
]


class TestFindFunctionBoundaries:
    def test_brace_balanced(self) -> None:
        boundary = find_function_boundaries(JS_LINES, 4)
        assert (boundary.start, boundary.end) == (2, 5)
        assert boundary.declaration.name == "a"

    def test_declaration_line_itself(self) -> None:
        boundary = find_function_boundaries(JS_LINES, 7)
        assert (boundary.start, boundary.end) == (7, 9)

    def test_nothing_above(self) -> None:
        assert find_function_boundaries(JS_LINES, 0) is None

    def test_out_of_range(self) -> None:
        assert find_function_boundaries(JS_LINES, 99) is None
        assert find_function_boundaries([], 0) is None

    def test_indentation_block(self) -> None:
        boundary = find_function_boundaries(PY_LINES, 3)
        assert (boundary.start, boundary.end) == (0, 3)

    def test_indentation_block_at_end_of_file(self) -> None:
        boundary = find_function_boundaries(PY_LINES, 6)
        assert (boundary.start, boundary.end) == (5, 6)

    def test_stops_before_sibling_declaration(self) -> None:
        lines = ["function a() {", "  work();", "function b() {", "}"]
        boundary = find_function_boundaries(lines, 1)
        assert (boundary.start, boundary.end) == (0, 1)

    def test_line_budget_fallback(self) -> None:
        lines = ["function a() {"] + ["  x;"] * 100
        boundary = find_function_boundaries(lines, 5, max_lines=10)
        assert (boundary.start, boundary.end) == (0, 10)


# =============================================================================
#  Expansion
# =============================================================================


BEFORE = "function a() {\n  return 1;\n}\n\nfunction b() {\n  return 2;\n}\n"
AFTER = "function a() {\n  return 1;\n}\n\nfunction b() {\n  return 3;\n}\n"


class TestExpandToFunctions:
    @pytest.fixture()
    def expanded(self) -> AlignedPair:
        return expand_to_functions(align_full_content(BEFORE, AFTER))

    def test_header_and_separator(self, expanded) -> None:
        assert expanded.original_lines[0].kind is LineKind.FUNCTION_HEADER
        assert expanded.original_lines[0].content == "b (function)"
        assert expanded.original_lines[-1].kind is LineKind.FUNCTION_SEPARATOR

    def test_only_enclosing_function(self, expanded) -> None:
        contents = [l.content for l in expanded.original_lines]
        assert "function a() {" not in contents
        assert len(expanded) == 6

    def test_sides_stay_aligned(self, expanded) -> None:
        assert len(expanded.original_lines) == len(expanded.modified_lines)
        assert [l.kind for l in expanded.modified_lines][2:4] == [LineKind.EMPTY, LineKind.ADDED]

    def test_change_outside_declarations_keeps_context(self) -> None:
        pair = expand_to_functions(align_full_content("x\ny\nz\n", "x\nY\nz\n"), context_lines=3)
        kinds = [l.kind for l in pair.original_lines]
        assert LineKind.FUNCTION_HEADER not in kinds
        assert kinds[-1] is LineKind.FUNCTION_SEPARATOR
        assert len(pair) == 5

    def test_no_changes_folds_to_one_row(self) -> None:
        pair = expand_to_functions(align_full_content("a\nb\nc\n", "a\nb\nc\n"))
        assert len(pair) == 1
        assert pair.original_lines[0].kind is LineKind.COLLAPSED
        assert pair.original_lines[0].collapsed == CollapsedRange(1, 3, 1, 3)

    def test_empty_pair_stays_empty(self) -> None:
        assert len(expand_to_functions(AlignedPair())) == 0

    def test_two_functions_two_ranges(self) -> None:
        after = BEFORE.replace("return 1", "return 10").replace("return 2", "return 20")
        pair = expand_to_functions(align_full_content(BEFORE, after))
        headers = [l.content for l in pair.original_lines if l.kind is LineKind.FUNCTION_HEADER]
        assert headers == ["a (function)", "b (function)"]
