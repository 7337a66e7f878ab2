from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence, Set, Tuple
import json
import logging
import os

import numpy as np

logger = logging.getLogger("semantic_ranker")

DEFAULT_THRESHOLD = 0.25
DEFAULT_LIMIT = 10


@dataclass(frozen=True)
class EmbeddingRecord:
    grade: str
    subject: str
    code: str
    standard_text: str
    vector: np.ndarray

    @classmethod
    def from_json(cls, row: Dict[str, Any]) -> "EmbeddingRecord":
        """Accepts both the builder's field names (tek/standard/embedding) and the long form."""
        vector = row.get("embedding", row.get("vector"))
        if not isinstance(vector, list) or not vector:
            raise ValueError("record has no embedding vector")
        vec = np.asarray(vector, dtype=np.float32)
        vec.setflags(write=False)
        return cls(
            grade=str(row.get("grade") or "").strip(),
            subject=str(row.get("subject") or "").strip(),
            code=str(row.get("tek") or row.get("code") or "").strip(),
            standard_text=str(row.get("standard") or row.get("standard_text") or row.get("standardText") or "").strip(),
            vector=vec,
        )


@dataclass
class RankedStandard:
    grade: str
    subject: str
    code: str
    standard: str
    similarity: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "grade": self.grade,
            "subject": self.subject,
            "code": self.code,
            "standard": self.standard,
            "similarity": self.similarity,
        }


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity; zero-magnitude or mismatched vectors score 0."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape or va.size == 0:
        return 0.0
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(np.dot(va, vb) / denom)


def rank_similar(
    query_vector: Sequence[float],
    corpus: Iterable[EmbeddingRecord],
    grade: str,
    subject: str,
    threshold: float = DEFAULT_THRESHOLD,
    limit: int = DEFAULT_LIMIT,
) -> List[RankedStandard]:
    candidates = [r for r in corpus if r.grade == grade and r.subject == subject]
    logger.info("Found %d standards for grade=%r subject=%r", len(candidates), grade, subject)
    if not candidates:
        return []

    scored = [(cosine_similarity(query_vector, r.vector), r) for r in candidates]
    kept = [(score, r) for score, r in scored if score >= threshold]
    # stable sort keeps corpus order among equal scores
    kept.sort(key=lambda pair: pair[0], reverse=True)
    return [
        RankedStandard(grade=r.grade, subject=r.subject, code=r.code, standard=r.standard_text, similarity=score)
        for score, r in kept[:limit]
    ]


class EmbeddingCorpus:
    """Precomputed standards embeddings, loaded once and read-only afterwards."""

    def __init__(self, records: Iterable[EmbeddingRecord] = ()):
        self.records: Tuple[EmbeddingRecord, ...] = tuple(records)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    @classmethod
    def from_file(cls, path: str) -> "EmbeddingCorpus":
        if not os.path.exists(path):
            logger.error("Embeddings file %s not found; semantic search will return no results", path)
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            rows = json.load(f)
        records = []
        for i, row in enumerate(rows if isinstance(rows, list) else []):
            try:
                records.append(EmbeddingRecord.from_json(row))
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning("Skipping embeddings row %d: %s", i, e)
        logger.info("Loaded %d standard embeddings from %s", len(records), path)
        return cls(records)

    def combinations(self) -> List[Tuple[str, str]]:
        seen: Set[Tuple[str, str]] = {(r.grade or "(missing)", r.subject or "(missing)") for r in self.records}
        return sorted(seen)
