"""Application layer: indexing pipeline and the RAG service facade."""
