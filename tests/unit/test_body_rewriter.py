"""
Unit tests for Kotlin -> Dart expression and statement rewriting.
"""

import pytest

from composeport.translator.body_rewriter import (
    format_block,
    rewrite_block,
    rewrite_expression,
    rewrite_iterable,
    rewrite_statement,
)


@pytest.mark.parametrize(
    "kotlin,dart",
    [
        ("listOf(1, 2, 3)", "[1, 2, 3]"),
        ("listOf(listOf(1), listOf(2))", "[[1], [2]]"),
        ('mapOf("a" to 1, "b" to 2)', '{"a": 1, "b": 2}'),
        ("setOf(1)", "{1}"),
        ("emptyList<String>()", "[]"),
        ('user?.name ?: ""', 'user?.name ?? ""'),
        ("name!!.trim()", "name!.trim()"),
        ("items.size", "items.length"),
        ("println(total)", "print(total)"),
        ("list.isNotEmpty()", "list.isNotEmpty"),
        ("padding + 4.dp", "padding + 4"),
    ],
)
def test_rewrite_expression(kotlin, dart):
    assert rewrite_expression(kotlin) == dart


def test_unknown_text_is_left_alone():
    assert rewrite_expression("repository.load(id)") == "repository.load(id)"
    assert rewrite_expression("") == ""


def test_local_declarations():
    assert rewrite_statement("val total = items.size") == "final total = items.length"
    assert rewrite_statement("var count: Int = 0") == "int count = 0"
    assert rewrite_statement("val name: String?") == "final String? name"


def test_for_headers_use_final_and_ranges():
    assert rewrite_statement("for (i in 0 until n) {") == "for (final i in List.generate(n, (i) => i)) {"
    assert rewrite_statement("for (item in items)") == "for (final item in items)"


@pytest.mark.parametrize(
    "kotlin,dart",
    [
        ("0 until count", "List.generate(count, (i) => i)"),
        ("2 until count", "List.generate(count - 2, (i) => 2 + i)"),
        ("1..5", "List.generate(5 - 1 + 1, (i) => 1 + i)"),
        ("10 downTo 1", "List.generate(10 - 1 + 1, (i) => 10 - i)"),
        ("items.indices", "List.generate(items.length, (i) => i)"),
        ("users", "users"),
    ],
)
def test_rewrite_iterable(kotlin, dart):
    assert rewrite_iterable(kotlin) == dart


def test_rewrite_block_adds_semicolons_and_keeps_nesting():
    lines = rewrite_block(
        """
        val user = repo.find(id)
        if (user != null) {
            println(user.name)
        }
        a++; b++
        """
    )

    assert lines == [
        "final user = repo.find(id);",
        "if (user != null) {",
        "    print(user.name);",
        "}",
        "a++;",
        "b++;",
    ]


def test_format_block():
    assert format_block([]) == "{}"
    assert format_block(["return 1;"]) == "{\n  return 1;\n}"
