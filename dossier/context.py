"""Flatten fanned-out search results into numbered LLM context."""

from collections.abc import Sequence

from dossier.models import AssembledContext, SearchResult, SourceEntry

SNIPPET_CHAR_LIMIT = 500
SNIPPET_SEPARATOR = "\n\n---\n\n"


def format_snippet(source_id: int, result: SearchResult) -> str:
    return f"[{source_id}] Source: {result.title}\nContent: {result.content[:SNIPPET_CHAR_LIMIT]}"


def assemble_context(result_sets: Sequence[Sequence[SearchResult]]) -> AssembledContext:
    """Number every result across all sets, in fanout order then API order.

    Ids start at 1 and run across the sets combined, so ``[n]`` in the context
    always matches ``sources[n - 1]``. Empty input gives an empty context.
    """
    snippets: list[str] = []
    sources: list[SourceEntry] = []

    for result_set in result_sets:
        for result in result_set:
            source_id = len(sources) + 1
            snippets.append(format_snippet(source_id, result))
            sources.append(SourceEntry(id=source_id, title=result.title, url=result.url))

    return AssembledContext(raw_context=SNIPPET_SEPARATOR.join(snippets), sources=sources)
