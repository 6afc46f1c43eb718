"""
Pytest configuration and shared fixtures for kvformat tests.

Provides immutable per-dialect document corpora and an on-disk tree
builder for inclusion tests.
"""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

import kvformat


@dataclass(frozen=True)
class KVTestCase:
    """
    Immutable container for one document and its expected outcome.

    ``error`` names the exception a failing case must raise.
    """

    description: str
    input_data: str
    should_fail: bool = False
    expected_output: Any = None
    error: type[Exception] | None = None


@pytest.fixture
def brace_pass_cases() -> list[KVTestCase]:
    """
    Provides Brace-dialect documents that must decode in map mode.
    """
    return [
        KVTestCase("empty document", "", False, {}),
        KVTestCase("equals separator", 'name = "example"', False, {"name": "example"}),
        KVTestCase("missing separator", 'name "example"', False, {"name": "example"}),
        KVTestCase("colon separator", "name: example", False, {"name": "example"}),
        KVTestCase(
            "numbers in value position",
            "size 3\nneg = -1.5\nexp = 2e3",
            False,
            {"size": 3.0, "neg": -1.5, "exp": 2000.0},
        ),
        KVTestCase("numeric key stays text", "10 = ten", False, {"10": "ten"}),
        KVTestCase(
            "bracket array with trailing comma",
            "tags = [ red, green, ]",
            False,
            {"tags": ["red", "green"]},
        ),
        KVTestCase(
            "nested object",
            "outer { inner = 1 }",
            False,
            {"outer": {"inner": 1.0}},
        ),
        KVTestCase("braced root", "{ a = 1 }", False, {"a": 1.0}),
        KVTestCase(
            "comment markers",
            "<!-- header --> a = 1 <!-- x --><!-- y --> b = 2",
            False,
            {"a": 1.0, "b": 2.0},
        ),
        KVTestCase("commas between pairs", "a=1, b=2,", False, {"a": 1.0, "b": 2.0}),
        KVTestCase(
            "backslash runs become slashes",
            "path = materials\\\\dev\\grid",
            False,
            {"path": "materials/dev/grid"},
        ),
        KVTestCase(
            "drive letter kept in values",
            "path = C:\\temp",
            False,
            {"path": "C:/temp"},
        ),
        KVTestCase(
            "nested typed document wrapper",
            "root { { a = 1 } }",
            False,
            {"root": {"a": 1.0}},
        ),
        KVTestCase(
            "literals stay strings",
            "flag = true\nnothing = null",
            False,
            {"flag": "true", "nothing": "null"},
        ),
        KVTestCase(
            "quoted escapes",
            'text = "tab\\there \\"quoted\\""',
            False,
            {"text": 'tab\there "quoted"'},
        ),
    ]


@pytest.fixture
def brace_fail_cases() -> list[KVTestCase]:
    """
    Provides Brace-dialect documents that must fail, with their error type.
    """
    return [
        KVTestCase(
            "separator inside array",
            "a = [ 1 = 2 ]",
            True,
            error=kvformat.StructuralError,
        ),
        KVTestCase(
            "missing comma in array",
            "a = [ 1 2 ]",
            True,
            error=kvformat.StructuralError,
        ),
        KVTestCase(
            "doubly nested wrapper",
            "a = { { { b = 1 } } }",
            True,
            error=kvformat.StructuralError,
        ),
        KVTestCase(
            "wrapper not closed by outer brace",
            "a = { { b = 1 } c = 2 }",
            True,
            error=kvformat.StructuralError,
        ),
        KVTestCase(
            "unterminated string", 'a = "open', True, error=kvformat.TokenError
        ),
        KVTestCase(
            "leading zero", "a = 01", True, error=kvformat.TokenError
        ),
        KVTestCase("leading plus", "a = +1", True, error=kvformat.TokenError),
        KVTestCase("hex number", "a = 0x10", True, error=kvformat.TokenError),
        KVTestCase(
            "stray closing brace",
            "a = 1 }",
            True,
            error=kvformat.StructuralError,
        ),
        KVTestCase(
            "unclosed object",
            "{ a = 1",
            True,
            error=kvformat.StructuralError,
        ),
        KVTestCase(
            "unterminated comment marker",
            "a = 1 <!-- never closed",
            True,
            error=kvformat.TokenError,
        ),
        KVTestCase(
            "invalid escape", 'a = "\\q"', True, error=kvformat.TokenError
        ),
        KVTestCase("invalid byte", "a = @", True, error=kvformat.TokenError),
        KVTestCase(
            "trailing backslash", "a = path\\", True, error=kvformat.TokenError
        ),
        KVTestCase(
            "key without value", "a =", True, error=kvformat.StructuralError
        ),
        KVTestCase(
            "double comma", "a = 1,, b = 2", True, error=kvformat.StructuralError
        ),
    ]


@pytest.fixture
def map_pass_cases() -> list[KVTestCase]:
    """
    Provides Map-dialect documents that must decode in map mode.
    """
    return [
        KVTestCase("empty document", "", False, {}),
        KVTestCase("scalar root", '"root" "value"', False, {"root": "value"}),
        KVTestCase(
            "object root",
            '"root" { "key" "value" }',
            False,
            {"root": {"key": "value"}},
        ),
        KVTestCase(
            "numbers",
            '"root" { "n" 1.5 "neg" -2 "e" 1E2 }',
            False,
            {"root": {"n": 1.5, "neg": -2.0, "e": 100.0}},
        ),
        KVTestCase(
            "literals",
            '"root" { "t" true "f" false "z" null }',
            False,
            {"root": {"t": True, "f": False, "z": None}},
        ),
        KVTestCase(
            "line comments",
            '// leading\n"root" // after key\n{ "a" "b" } // trailing',
            False,
            {"root": {"a": "b"}},
        ),
        KVTestCase(
            "nested objects",
            '"root"\n{\n\t"a"\n\t{\n\t\t"b"\t"c"\n\t}\n}\n',
            False,
            {"root": {"a": {"b": "c"}}},
        ),
        KVTestCase(
            "unicode escape",
            '"root" "\\u0041\\u00e9"',
            False,
            {"root": "A\u00e9"},
        ),
    ]


@pytest.fixture
def map_fail_cases() -> list[KVTestCase]:
    """
    Provides Map-dialect documents that must fail, with their error type.
    """
    return [
        KVTestCase(
            "key without value",
            '"root" { "a" }',
            True,
            error=kvformat.StructuralError,
        ),
        KVTestCase(
            "numeric key",
            '"root" { 1 "a" }',
            True,
            error=kvformat.StructuralError,
        ),
        KVTestCase(
            "second root pair",
            '"a" "b" "c" "d"',
            True,
            error=kvformat.StructuralError,
        ),
        KVTestCase(
            "unclosed object",
            '"root" { "a" "b"',
            True,
            error=kvformat.StructuralError,
        ),
        KVTestCase(
            "lone slash", '"root" / "x"', True, error=kvformat.TokenError
        ),
        KVTestCase(
            "square brackets", '"root" [ ]', True, error=kvformat.TokenError
        ),
        KVTestCase(
            "hex number",
            '"root" { "a" 0x10 }',
            True,
            error=kvformat.TokenError,
        ),
        KVTestCase(
            "bare word", '"root" { "a" word }', True, error=kvformat.TokenError
        ),
    ]


@pytest.fixture
def typed_pass_cases() -> list[KVTestCase]:
    """
    Provides Typed-array documents that must decode.
    """
    return [
        KVTestCase("empty document", "", False, {}),
        KVTestCase(
            "typed array",
            '"origin" "vector3" [ 0, 0, 64 ]',
            False,
            {"origin": ["vector3", [0.0, 0.0, 64.0]]},
        ),
        KVTestCase(
            "typed scalar",
            '"scale" "float" 1.5',
            False,
            {"scale": ["float", 1.5]},
        ),
        KVTestCase(
            "untyped container",
            '"children" { "name" "string" "leaf" }',
            False,
            {"children": {"name": ["string", "leaf"]}},
        ),
        KVTestCase(
            "typed elements",
            '"list" "array" [ "int" 1, "int" = 2, 3, ]',
            False,
            {"list": ["array", [["int", 1.0], ["int", 2.0], 3.0]]},
        ),
        KVTestCase(
            "commas between entries",
            '"a" "int" 1, "b" "int" 2',
            False,
            {"a": ["int", 1.0], "b": ["int", 2.0]},
        ),
        KVTestCase(
            "header comment",
            '<!-- kv3 encoding:text -->\n"a" "string" "x"',
            False,
            {"a": ["string", "x"]},
        ),
        KVTestCase(
            "typed container element",
            '"m" [ "vector2" [ 1, 2 ] ]',
            False,
            {"m": [["vector2", [1.0, 2.0]]]},
        ),
    ]


@pytest.fixture
def typed_fail_cases() -> list[KVTestCase]:
    """
    Provides Typed-array documents that must fail, with their error type.
    """
    return [
        KVTestCase(
            "key followed by comma",
            '"a" ,',
            True,
            error=kvformat.StructuralError,
        ),
        KVTestCase(
            "number cannot be a type",
            '"a" "int" [ 1 2 ]',
            True,
            error=kvformat.StructuralError,
        ),
        KVTestCase(
            "unclosed array",
            '"a" "int" [ 1,',
            True,
            error=kvformat.StructuralError,
        ),
        KVTestCase(
            "missing payload",
            '"a" "int"',
            True,
            error=kvformat.StructuralError,
        ),
    ]


@pytest.fixture
def write_tree(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """
    Writes ``{relative_path: text}`` under a temporary directory.

    Returns a function that creates the files and returns the root.
    """

    def write(files: dict[str, str]) -> Path:
        for name, text in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        return tmp_path

    return write
