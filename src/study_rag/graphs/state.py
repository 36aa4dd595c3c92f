"""
LangGraph state definition for the query state machine.

LangGraph graphs pass a state dict between nodes. Each node receives the
full state, reads what it needs, and returns updates. TypedDict gives us
type safety without the overhead of Pydantic (LangGraph requires
TypedDict, not BaseModel).

Flow:
    retrieve → (empty | fuse → rerank → score → generate → persist)

Usage:
    from study_rag.graphs.state import QueryState
"""

import operator
from typing import Annotated, Optional

from typing_extensions import TypedDict

from study_rag.models.document import Candidate, RankedLists, RankedResult
from study_rag.models.result import SourceDocument


class QueryState(TypedDict, total=False):
    """
    State for the query graph.

    Fields are populated by different nodes:
        - question, owner_id, allow_list, session_id:  set at start
        - lists:                                       set by retrieve_node
        - candidates:                                  set by fuse_node
        - results, used_fallback:                      set by rerank_node
        - confidence, sources, context:                set by score_node
        - answer:                                      set by generate_node / empty_node
        - session_id, persisted:                       set by persist_node
        - trace:                                       appended by every node
    """

    # Input
    question: str
    owner_id: str
    allow_list: Optional[list[int]]
    session_id: Optional[int]

    # After retrieval
    lists: RankedLists

    # After fusion
    candidates: list[Candidate]

    # After reranking (or the fallback)
    results: list[RankedResult]
    used_fallback: bool

    # After scoring
    confidence: int
    sources: list[SourceDocument]
    context: list[str]

    # After generation / persistence
    answer: str
    persisted: bool

    # Visited states, in order
    trace: Annotated[list[str], operator.add]
