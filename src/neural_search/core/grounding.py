"""Grounding metadata types and the source deduplication map."""

from dataclasses import dataclass, field


@dataclass
class GroundingChunk:
    """A web page the model may cite, addressed by its index in the reply."""

    uri: str | None = None
    title: str | None = None


@dataclass
class GroundingSupport:
    """An excerpt of the answer attributed to one or more chunks by index."""

    chunk_indices: list[int] = field(default_factory=list)
    text: str = ""


@dataclass
class GroundingMetadata:
    """Citations attached to a model reply."""

    chunks: list[GroundingChunk] = field(default_factory=list)
    supports: list[GroundingSupport] = field(default_factory=list)


@dataclass
class ModelReply:
    """Text of a model turn plus its grounding, if the model cited anything."""

    text: str
    grounding: GroundingMetadata | None = None


@dataclass
class SourceRecord:
    """A deduplicated web source returned to the caller."""

    title: str
    url: str
    snippet: str


def snippet_for_chunk(index: int, supports: list[GroundingSupport]) -> str:
    """Join the text of every support that cites the chunk at ``index``."""
    return " ".join(
        support.text for support in supports if index in support.chunk_indices
    )


def dedupe_sources(grounding: GroundingMetadata | None) -> list[SourceRecord]:
    """Collapse grounding chunks into one source record per URL.

    The first chunk seen for a URL fixes its title and snippet; later chunks
    with the same URL are ignored. Chunks missing a URL or title are skipped.

    Args:
        grounding: Grounding metadata from the model, or None.

    Returns:
        Source records in first-seen order.
    """
    if grounding is None:
        return []

    sources: dict[str, SourceRecord] = {}
    for index, chunk in enumerate(grounding.chunks):
        if not chunk.uri or not chunk.title:
            continue
        if chunk.uri in sources:
            continue
        sources[chunk.uri] = SourceRecord(
            title=chunk.title,
            url=chunk.uri,
            snippet=snippet_for_chunk(index, grounding.supports),
        )

    return list(sources.values())
