"""Tests for context assembly."""

from dossier.context import SNIPPET_CHAR_LIMIT, SNIPPET_SEPARATOR, assemble_context, format_snippet
from dossier.models import SearchResult


def _results(*names: str) -> list[SearchResult]:
    return [SearchResult(title=name, url=f"https://example.com/{name}", content=f"{name} content") for name in names]


class TestAssembleContext:
    """Tests for assemble_context."""

    def test__ids__run_across_all_sets(self) -> None:
        context = assemble_context([_results("a", "b"), _results("c"), []])
        assert [source.id for source in context.sources] == [1, 2, 3]
        assert [source.title for source in context.sources] == ["a", "b", "c"]

    def test__ids__skip_nothing_when_first_sets_empty(self) -> None:
        context = assemble_context([[], [], _results("x", "y", "z")])
        assert [source.id for source in context.sources] == [1, 2, 3]

    def test__sources__keep_title_and_url(self) -> None:
        context = assemble_context([_results("a")])
        assert context.sources[0].url == "https://example.com/a"

    def test__raw_context__joins_snippets_with_separator(self) -> None:
        context = assemble_context([_results("a", "b"), _results("c"), []])
        snippets = context.raw_context.split(SNIPPET_SEPARATOR)
        assert snippets == [
            "[1] Source: a\nContent: a content",
            "[2] Source: b\nContent: b content",
            "[3] Source: c\nContent: c content",
        ]

    def test__no_results__gives_empty_context(self) -> None:
        context = assemble_context([[], [], []])
        assert context.raw_context == ""
        assert context.sources == []

    def test__single_result__has_no_separator(self) -> None:
        context = assemble_context([_results("only")])
        assert SNIPPET_SEPARATOR not in context.raw_context


class TestFormatSnippet:
    """Tests for snippet formatting and truncation."""

    def test__long_content__cut_at_character_limit(self) -> None:
        result = SearchResult(title="T", url="u", content="word " * 300)
        snippet = format_snippet(7, result)
        assert snippet.startswith("[7] Source: T\nContent: ")
        assert snippet.removeprefix("[7] Source: T\nContent: ") == ("word " * 300)[:SNIPPET_CHAR_LIMIT]

    def test__short_content__kept_whole(self) -> None:
        snippet = format_snippet(1, SearchResult(title="T", url="u", content="short"))
        assert snippet == "[1] Source: T\nContent: short"

    def test__title__not_truncated(self) -> None:
        title = "x" * 600
        snippet = format_snippet(1, SearchResult(title=title, url="u", content=""))
        assert title in snippet
