"""
Reranking of the fused pool, with a deterministic fallback.

Reranking takes the fused candidates and lets an LLM judge which ones best
answer the query. The typical pattern is:
    1. Fuse vector + lexical results into a pool of 10
    2. Ask the reranker for the best 3, each scored 0-100

The reranker is a third-party call that can time out, error, or answer
with something that is not the JSON we asked for. None of that is allowed
to fail the query: RerankSelector validates the response and, on any
failure, falls back to the top 3 of the fused pool scored by
min(fused_score * 100, 100).

Usage:
    from study_rag.retrieval.reranking import LLMReranker, RerankSelector

    selector = RerankSelector(reranker=LLMReranker(llm_config), top_k=3)
    outcome = selector.select(query, fused_candidates)
    outcome.results          # ≤ 3 RankedResults
    outcome.used_fallback    # True if the reranker output was not used
"""

import logging
from typing import Any, Optional

from langchain_core.prompts import PromptTemplate

from study_rag.base.reranker import BaseReranker
from study_rag.config import LLMConfig, RerankConfig
from study_rag.errors import RerankError
from study_rag.models.document import Candidate, RankedResult
from study_rag.models.result import RerankOutcome
from study_rag.retrieval.parsing import parse_rankings
from study_rag.utils.helpers import extract_text, get_llm

logger = logging.getLogger(__name__)


class LLMReranker(BaseReranker):
    """
    Uses one LLM call to pick and score the best candidates.

    All candidates go into a single prompt, numbered from 0, and the model
    is asked for a JSON array of {"index", "relevanceScore"}. The raw text
    comes back unparsed: parsing and validation belong to RerankSelector,
    which treats this output as untrusted.
    """

    def __init__(self, llm_config: LLMConfig = None, rerank_config: RerankConfig = None):
        self._llm = get_llm(llm_config or LLMConfig())
        self._config = rerank_config or RerankConfig()
        self._prompt = PromptTemplate(
            input_variables=["query", "documents", "top_k"],
            template=(
                "You are an expert at evaluating document relevance. Given a query and a "
                "list of documents, identify the {top_k} most relevant documents that best "
                "answer the query.\n\n"
                "Query: {query}\n\n"
                "Documents:\n{documents}\n\n"
                "Instructions:\n"
                "1. Carefully evaluate each document's relevance to the query\n"
                "2. Select the {top_k} most relevant documents\n"
                "3. For each selected document, give its index and a relevance score (0-100)\n"
                "4. Return ONLY a JSON array in this exact format:\n"
                '[{{"index": 0, "relevanceScore": 95}}, {{"index": 4, "relevanceScore": 87}}]\n\n'
                "Important: Return ONLY the JSON array, no other text or explanation."
            ),
        )

    def rerank(self, query: str, candidates: list[Candidate], top_k: int) -> str:
        documents = "\n\n---\n\n".join(
            f"Document {i}:\n{candidate.chunk.content[: self._config.max_document_chars]}"
            for i, candidate in enumerate(candidates)
        )
        chain = self._prompt | self._llm
        response = chain.invoke({"query": query, "documents": documents, "top_k": top_k})
        return extract_text(response)


def fallback_selection(candidates: list[Candidate], top_k: int) -> list[RankedResult]:
    """
    Deterministic selection used whenever the reranker output is unusable.

    Takes the first top_k candidates of the fused pool (already sorted by
    fused score) and scores each min(fused_score * 100, 100). Never raises;
    returns an empty list only for an empty pool.
    """
    return [
        RankedResult(
            candidate=candidate,
            relevance_score=min(max(candidate.fused_score * 100.0, 0.0), 100.0),
            origin="fallback",
        )
        for candidate in candidates[: max(top_k, 0)]
    ]


class RerankSelector:
    """
    Reranker adapter: calls the reranker, validates, falls back.

    Failure modes that trigger the fallback:
        - no reranker configured, or reranking disabled
        - the reranker raises
        - the response is not a JSON array, or no entry survives validation
        - fewer valid entries than needed while accept_partial is False

    With accept_partial=True (the default) a response with some valid
    entries is used as-is even if it has fewer than top_k; e.g. indices
    [7, -1, 2] against a pool of 5 keep only index 2.
    """

    def __init__(
        self,
        reranker: Optional[BaseReranker] = None,
        config: RerankConfig = None,
        top_k: int = 3,
    ):
        self._reranker = reranker
        self._config = config or RerankConfig()
        self._top_k = top_k

    def select(self, query: str, candidates: list[Candidate]) -> RerankOutcome:
        """
        Pick the final result set from the fused pool.

        Args:
            query: The user's question.
            candidates: Fused pool, sorted by fused score.

        Returns:
            RerankOutcome with at most top_k results, all scored in [0, 100].
        """
        if not candidates:
            return RerankOutcome(results=[])

        try:
            results = self._rerank(query, candidates)
        except RerankError as exc:
            logger.warning("Reranking failed, using fused-score fallback: %s", exc)
            return RerankOutcome(
                results=fallback_selection(candidates, self._top_k),
                used_fallback=True,
                fallback_reason=str(exc),
            )

        return RerankOutcome(results=results)

    def _rerank(self, query: str, candidates: list[Candidate]) -> list[RankedResult]:
        """Call the reranker and turn its validated output into results, or raise RerankError."""
        if self._reranker is None or not self._config.enabled:
            raise RerankError("reranker disabled")

        raw = self._call(query, candidates)
        parsed = parse_rankings(raw, pool_size=len(candidates), top_k=self._top_k)
        if not parsed.ok:
            raise RerankError(parsed.error)

        if parsed.discarded:
            logger.info("Discarded %d invalid reranker entries", parsed.discarded)

        required = min(self._top_k, len(candidates))
        if len(parsed.rankings) < required and not self._config.accept_partial:
            raise RerankError(
                f"reranker returned {len(parsed.rankings)} valid entries, expected {required}"
            )

        return [
            RankedResult(
                candidate=candidates[entry.index],
                relevance_score=entry.relevance_score,
                origin="reranker",
            )
            for entry in parsed.rankings
        ]

    def _call(self, query: str, candidates: list[Candidate]) -> Any:
        try:
            return self._reranker.rerank(query, candidates, self._top_k)
        except Exception as exc:
            raise RerankError(f"reranker call failed: {exc}") from exc
