"""
Similarity engine primitives.

Cosine similarity and brute-force ranking over in-memory vectors. The
corpus is expected to hold thousands of chunks, so a linear scan per
query is used instead of an approximate nearest-neighbour index.

Dependencies: math (stdlib), recall.models
System role: Single scoring primitive for semantic and hybrid search
"""

import math
from collections.abc import Sequence

from recall.models.document import EmbeddedDocument, RankedResult


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity between two vectors.

    Args:
        a: First vector
        b: Second vector

    Returns:
        float: dot(a, b) / (|a| * |b|); 0.0 when dimensions differ, either
        vector is empty or has zero magnitude, or the result is not finite
    """
    if len(a) != len(b) or not a:
        return 0.0

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    score = dot / math.sqrt(norm_a * norm_b)
    if not math.isfinite(score):
        return 0.0
    # Rounding can push identical vectors a hair past 1.0
    return max(-1.0, min(1.0, score))


def average_embedding(vectors: Sequence[Sequence[float]]) -> list[float]:
    """
    Component-wise mean of vectors sharing the first vector's dimension.

    Vectors of another dimension are ignored.

    Args:
        vectors: Vectors to average

    Returns:
        list[float]: Mean vector; empty for no input
    """
    if not vectors:
        return []

    dimension = len(vectors[0])
    total = [0.0] * dimension
    count = 0
    for vector in vectors:
        if len(vector) != dimension:
            continue
        for i, value in enumerate(vector):
            total[i] += value
        count += 1

    return [value / count for value in total]


def rank_by_similarity(
    query_vector: Sequence[float],
    candidates: Sequence[EmbeddedDocument],
    top_k: int,
) -> list[RankedResult]:
    """
    Score every candidate against the query and keep the best top_k.

    Args:
        query_vector: Query embedding
        candidates: Documents with stored vectors
        top_k: Number of results to keep

    Returns:
        list[RankedResult]: Highest cosine first; ties keep input order
    """
    scored = [
        (cosine_similarity(query_vector, candidate.vector), candidate)
        for candidate in candidates
    ]
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [
        RankedResult(document=candidate.document, relevance_score=score)
        for score, candidate in scored[:top_k]
    ]
