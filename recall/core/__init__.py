"""Core retrieval logic: chunking, gating, similarity, search and context assembly."""
