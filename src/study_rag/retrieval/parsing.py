"""
Strict validation of reranker output.

The reranker is an LLM, so its output is untrusted text. Parsing never
raises; it returns a RankingParse that is either a usable ranking list or
an error description:

    1. Strip a markdown code fence (```json ... ```) if present. A reply cut
       off before the closing fence keeps everything after the opening one.
    2. Parse JSON; anything other than a list is an error.
    3. Drop entries that are not {index: int, relevanceScore: number}
       or whose index falls outside [0, pool_size).
    4. Drop repeated indices, keeping the first occurrence.
    5. Keep at most top_k entries.

Zero surviving entries is an error too. Scores are clamped into [0, 100].
"""

import json
import re
from typing import Any

from pydantic import ValidationError

from study_rag.models.result import RankingEntry, RankingParse

_FENCE = re.compile(r"```[\w-]*[ \t]*\n?(.*?)(?:```|\Z)", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Return the body of the first fenced block (closing fence optional), or the trimmed text."""
    text = text.strip()
    match = _FENCE.search(text)
    if match:
        return match.group(1).strip()
    return text


def parse_rankings(raw: Any, pool_size: int, top_k: int) -> RankingParse:
    """
    Validate a raw reranker payload against the fused pool.

    Args:
        raw: JSON text (possibly fenced) or an already-decoded list.
        pool_size: Number of candidates the indices refer to.
        top_k: Maximum entries to keep.

    Returns:
        RankingParse with the surviving entries in response order, or an error.
    """
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")

    if isinstance(raw, str):
        body = strip_code_fence(raw)
        if not body:
            return RankingParse(error="empty reranker response")
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            return RankingParse(error=f"reranker response is not valid JSON: {exc.msg}")
    else:
        payload = raw

    if not isinstance(payload, list):
        return RankingParse(error=f"expected a JSON array, got {type(payload).__name__}")

    rankings: list[RankingEntry] = []
    seen: set[int] = set()
    discarded = 0

    for item in payload:
        if len(rankings) >= top_k:
            break
        try:
            entry = RankingEntry.model_validate(item)
        except ValidationError:
            discarded += 1
            continue
        if not 0 <= entry.index < pool_size or entry.index in seen:
            discarded += 1
            continue
        seen.add(entry.index)
        rankings.append(entry)

    if not rankings:
        return RankingParse(error="no usable ranking entries", discarded=discarded)
    return RankingParse(rankings=rankings, discarded=discarded)
