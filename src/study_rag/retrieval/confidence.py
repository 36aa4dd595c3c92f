"""
Confidence estimation for the final result set.

The confidence score is derived, never computed independently: it is the
mean relevance score of the results that became the answer's context,
rounded half up to an integer. No results means confidence 0.
"""

import math

from study_rag.models.document import RankedResult


def estimate_confidence(results: list[RankedResult]) -> int:
    """
    Reduce the final results to a single 0-100 confidence value.

    Rounds half up (86.5 → 87) rather than Python's round-half-even.
    """
    if not results:
        return 0
    mean = sum(r.relevance_score for r in results) / len(results)
    return min(max(math.floor(mean + 0.5), 0), 100)
