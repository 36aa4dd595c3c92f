"""
Grouping of stored chunks into per-file document summaries.

Ingestion tags every chunk with the source file name under the
"fileName" metadata key. A "document" is therefore just the set of an
owner's chunks sharing a file name; its upload date is the earliest chunk
creation time.
"""

from datetime import datetime
from typing import Any, Iterable, Optional

from study_rag.models.document import DocumentSummary

UNKNOWN_FILE = "Unknown"


def summarize_documents(
    rows: Iterable[tuple[int, dict[str, Any], Optional[datetime]]],
) -> list[DocumentSummary]:
    """
    Group (chunk_id, metadata, created_at) rows by file name.

    Returns:
        One DocumentSummary per file, newest upload first; files without
        any dated chunk go last, sorted by name. chunk_ids are ascending.
    """
    files: dict[str, DocumentSummary] = {}
    for chunk_id, metadata, created_at in rows:
        file_name = str((metadata or {}).get("fileName") or UNKNOWN_FILE)
        summary = files.setdefault(file_name, DocumentSummary(file_name=file_name))
        summary.chunk_count += 1
        summary.chunk_ids.append(chunk_id)
        if created_at is not None and (
            summary.upload_date is None or created_at < summary.upload_date
        ):
            summary.upload_date = created_at

    for summary in files.values():
        summary.chunk_ids.sort()

    dated = sorted(
        (s for s in files.values() if s.upload_date is not None),
        key=lambda s: s.upload_date,
        reverse=True,
    )
    undated = sorted((s for s in files.values() if s.upload_date is None), key=lambda s: s.file_name)
    return dated + undated
