"""
Cosine-similarity ranking over a vendor-scoped candidate pool.

Pure functions: no storage access and no network. Candidates whose embedding
has zero magnitude (or a mismatched dimension) score 0 so the ordering stays
total.
"""

from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from draftsmith.exceptions import InvalidConfiguration
from draftsmith.models import EmbeddedChunkRecord


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 when either vector has zero magnitude, never NaN.

    Raises:
        InvalidConfiguration: If the vectors have different dimensions
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise InvalidConfiguration(
            f"Cannot compare vectors of dimension {va.shape} and {vb.shape}"
        )

    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0.0:
        return 0.0
    return float(np.dot(va, vb) / norm)


def _score_candidates(
    query: NDArray[np.float64], candidates: Sequence[EmbeddedChunkRecord]
) -> NDArray[np.float64]:
    query_norm = np.linalg.norm(query)
    scores = np.zeros(len(candidates), dtype=np.float64)
    if query_norm == 0.0:
        return scores

    for i, record in enumerate(candidates):
        vector = np.asarray(record.embedding, dtype=np.float64)
        # Records from another model revision can carry a different dimension
        if vector.shape != query.shape:
            continue
        norm = np.linalg.norm(vector)
        if norm == 0.0:
            continue
        scores[i] = np.dot(query, vector) / (query_norm * norm)

    return scores


def rank(
    query_vector: Sequence[float],
    candidates: Sequence[EmbeddedChunkRecord],
    k: int,
) -> list[tuple[EmbeddedChunkRecord, float]]:
    """
    Select the top-k candidates by descending cosine similarity.

    Ties keep the original candidate order. `k` larger than the pool returns
    every candidate.

    Args:
        query_vector: Query embedding from the same vendor as the candidates
        candidates: Candidate records, typically a vendor-scoped full scan
        k: Number of results to return

    Returns:
        List of (record, similarity_score) tuples, sorted by score descending

    Raises:
        InvalidConfiguration: If k is negative
    """
    if k < 0:
        raise InvalidConfiguration(f"k must be non-negative, got {k}")
    if not candidates or k == 0:
        return []

    query = np.asarray(query_vector, dtype=np.float64)
    scores = _score_candidates(query, candidates)

    # Stable sort on negated scores keeps ties in input order
    order = np.argsort(-scores, kind="stable")[: min(k, len(candidates))]

    return [(candidates[int(i)], float(scores[int(i)])) for i in order]
