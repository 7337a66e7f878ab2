"""Build the standards embeddings corpus from a TEKS CSV export.

Usage: python scripts/build_embeddings.py standards.csv [teks_embeddings.json]

The CSV needs the columns ``Grade Level``, ``Subject``, ``TEK`` and ``STANDARD``.
Each row is embedded through the configured LLM provider (``LLM_PROVIDER``) and
written out in the format ``EmbeddingCorpus.from_file`` reads at startup.
"""
import csv
import json
import logging
import os
import sys

from tqdm import tqdm

repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from teachgen.services.errors import GenerationFailed
from teachgen.services.llm_adapter import get_llm_adapter
from teachgen.utils.env import ensure_env_loaded

logger = logging.getLogger("build_embeddings")


def embedding_text(row: dict) -> str:
    return f"{row['Grade Level']} {row['Subject']} {row['TEK']}: {row['STANDARD']}"


def build(csv_path: str, out_path: str) -> int:
    llm = get_llm_adapter()
    with open(csv_path, newline="", encoding="utf-8-sig") as f:
        rows = list(csv.DictReader(f))

    records = []
    for i, row in enumerate(tqdm(rows, desc="Embedding standards")):
        try:
            vector = llm.embed(embedding_text(row))
        except (KeyError, GenerationFailed) as e:
            logger.warning("Skipping row %d: %s", i, e)
            continue
        records.append({
            "grade": row["Grade Level"].strip(),
            "subject": row["Subject"].strip(),
            "tek": row["TEK"].strip(),
            "standard": row["STANDARD"].strip(),
            "embedding": vector,
        })

    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(records, f)
    logger.info("Wrote %d of %d standards to %s", len(records), len(rows), out_path)
    return len(records)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)
    ensure_env_loaded()
    build(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else "teks_embeddings.json")
