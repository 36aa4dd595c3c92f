"""
Basic query example: ask questions over your uploaded study materials.

This script:
    1. Connects to Postgres (DATABASE_URL) and prepares the search indexes
    2. Lists the documents owned by a user
    3. Asks questions, first across everything, then scoped to one document
    4. Prints answers, sources and the confidence score

Run:
    pip install -e ".[postgres]"
    python examples/basic_query.py user_123
"""

import sys

from study_rag import EngineConfig, HybridRAG
from study_rag.utils import setup_logging


def main(owner_id: str):
    config = EngineConfig()
    setup_logging(config.log_level)

    rag = HybridRAG.from_config(config)
    rag.initialize()
    print(rag.health())

    documents = rag.list_documents(owner_id)
    for doc in documents:
        print(f"- {doc.file_name}: {doc.chunk_count} chunks (uploaded {doc.upload_date})")

    outcome = rag.query("What are the key concepts in my notes?", owner_id)
    print(f"\nA: {outcome.answer}")
    print(f"   Confidence: {outcome.confidence_score}")
    for source in outcome.sources:
        print(f"   [{source.relevance_score:.0f}] {source.text}")

    if documents:
        # Continue the same chat, restricted to the first document
        follow_up = rag.query(
            "Summarize this document.",
            owner_id,
            document_ids=documents[0].chunk_ids,
            session_id=outcome.session_id,
        )
        print(f"\nA: {follow_up.answer}")
        print(f"   Confidence: {follow_up.confidence_score}")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else "demo-user")
