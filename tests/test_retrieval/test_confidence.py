"""Tests for the confidence estimator."""

import pytest

from study_rag.models.document import Candidate, RankedResult
from study_rag.retrieval.confidence import estimate_confidence


def _results(make_chunk, scores):
    return [
        RankedResult(candidate=Candidate(chunk=make_chunk(i + 1), fused_score=0.01), relevance_score=s)
        for i, s in enumerate(scores)
    ]


class TestEstimateConfidence:

    def test_empty_is_zero(self):
        assert estimate_confidence([]) == 0

    def test_mean_of_scores(self, make_chunk):
        assert estimate_confidence(_results(make_chunk, [95, 80, 60])) == 78

    def test_rounds_half_up(self, make_chunk):
        assert estimate_confidence(_results(make_chunk, [86, 87])) == 87
        assert estimate_confidence(_results(make_chunk, [0.5])) == 1
        assert estimate_confidence(_results(make_chunk, [2.5])) == 3

    @pytest.mark.parametrize("scores", [[0, 0, 0], [100, 100, 100], [3.2, 3.0, 1.63]])
    def test_always_in_range(self, make_chunk, scores):
        assert 0 <= estimate_confidence(_results(make_chunk, scores)) <= 100

    def test_returns_int(self, make_chunk):
        assert isinstance(estimate_confidence(_results(make_chunk, [33.3])), int)
