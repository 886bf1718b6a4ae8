"""
SQLite FTS5 full-text index over document chunk text.

The index is an external-content FTS5 table keyed by rag_documents.seq
(the INTEGER PRIMARY KEY, so it is the rowid itself) and kept in sync
by triggers. It is created and dropped together with the documents table.

Dependencies: sqlalchemy
System role: Keyword search primitive for hybrid retrieval
"""

import re

from sqlalchemy import DDL, Column, Integer, MetaData, Table, Text, event

from recall.boundary.db.models.document_model import RAGDocumentModel

FTS_TABLE = "rag_documents_fts"

# Separate metadata so create_all never tries to build the virtual table itself
fts_metadata = MetaData()
fts_table = Table(
    FTS_TABLE,
    fts_metadata,
    Column("rowid", Integer, primary_key=True),
    Column("chunk_text", Text),
    Column("rank"),
)

_CREATE_STATEMENTS = (
    f"CREATE VIRTUAL TABLE IF NOT EXISTS {FTS_TABLE} "
    f"USING fts5(chunk_text, content='rag_documents', content_rowid='seq')",
    f"CREATE TRIGGER IF NOT EXISTS rag_documents_ai AFTER INSERT ON rag_documents BEGIN "
    f"INSERT INTO {FTS_TABLE}(rowid, chunk_text) VALUES (new.seq, new.chunk_text); END",
    f"CREATE TRIGGER IF NOT EXISTS rag_documents_ad AFTER DELETE ON rag_documents BEGIN "
    f"INSERT INTO {FTS_TABLE}({FTS_TABLE}, rowid, chunk_text) "
    f"VALUES ('delete', old.seq, old.chunk_text); END",
)

for _statement in _CREATE_STATEMENTS:
    event.listen(
        RAGDocumentModel.__table__,
        "after_create",
        DDL(_statement).execute_if(dialect="sqlite"),
    )

event.listen(
    RAGDocumentModel.__table__,
    "before_drop",
    DDL(f"DROP TABLE IF EXISTS {FTS_TABLE}").execute_if(dialect="sqlite"),
)

_TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)


def build_match_query(query: str) -> str | None:
    """
    Turn free text into an FTS5 MATCH expression.

    Each word becomes a quoted term and terms are OR-ed, so any shared
    word makes a document a candidate and bm25 decides the order.
    FTS5 operators and punctuation in the input are neutralised.

    Args:
        query: Natural-language query

    Returns:
        str | None: MATCH expression, or None if the query has no words
    """
    tokens = _TOKEN_PATTERN.findall(query.lower())
    if not tokens:
        return None
    unique = list(dict.fromkeys(tokens))
    return " OR ".join(f'"{token}"' for token in unique)
