"""
Reciprocal Rank Fusion of the vector and lexical candidate lists.

Vector distance and lexical relevance live on incompatible scales, so
instead of combining scores we combine positions:

    fused(id) = 1/(k + vector_rank(id)) + 1/(k + fts_rank(id))

with k = 60. A chunk missing from one list contributes 0 for that term
(rank = infinity) but is never dropped for being single-signal: the merge
is a full outer join on chunk id.

The fused list is sorted by score descending, ties broken by chunk id
ascending, and truncated to the fused pool size (10 by default).
Everything here is pure: the same two lists always give the same result.
"""

from typing import Optional

from study_rag.models.document import Candidate, Chunk, RankedLists

RRF_K = 60


def rrf_term(rank: Optional[int], k: int = RRF_K) -> float:
    """One signal's contribution; an absent rank contributes exactly 0."""
    if rank is None:
        return 0.0
    return 1.0 / (k + rank)


def fused_score(vector_rank: Optional[int], fts_rank: Optional[int], k: int = RRF_K) -> float:
    """RRF score of a chunk from its rank in each list."""
    return rrf_term(vector_rank, k) + rrf_term(fts_rank, k)


def reciprocal_rank_fusion(
    lists: RankedLists,
    k: int = RRF_K,
    limit: Optional[int] = 10,
) -> list[Candidate]:
    """
    Merge the two ranked lists into one fused candidate pool.

    Args:
        lists: Vector and lexical lists with 1-based ranks.
        k: RRF damping constant.
        limit: Fused pool size; None keeps every candidate.

    Returns:
        Candidates sorted by fused_score descending, then chunk id ascending.
    """
    chunks: dict[int, Chunk] = {}
    vector_ranks: dict[int, int] = {}
    fts_ranks: dict[int, int] = {}

    for ranked in lists.vector:
        chunks.setdefault(ranked.chunk.id, ranked.chunk)
        vector_ranks.setdefault(ranked.chunk.id, ranked.rank)
    for ranked in lists.lexical:
        chunks.setdefault(ranked.chunk.id, ranked.chunk)
        fts_ranks.setdefault(ranked.chunk.id, ranked.rank)

    candidates = [
        Candidate(
            chunk=chunk,
            vector_rank=vector_ranks.get(chunk_id),
            fts_rank=fts_ranks.get(chunk_id),
            fused_score=fused_score(vector_ranks.get(chunk_id), fts_ranks.get(chunk_id), k),
        )
        for chunk_id, chunk in chunks.items()
    ]
    candidates.sort(key=lambda c: (-c.fused_score, c.chunk.id))

    if limit is not None:
        candidates = candidates[:limit]
    return candidates
