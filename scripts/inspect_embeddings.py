import os
import sys

repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from teachgen.services.semantic_ranker import EmbeddingCorpus
from teachgen.utils.env import StudioConfig, ensure_env_loaded

ensure_env_loaded()
path = sys.argv[1] if len(sys.argv) > 1 else StudioConfig.from_env().embeddings_path
corpus = EmbeddingCorpus.from_file(path)

print('Records:', len(corpus))
if len(corpus):
    print('Vector dimensions:', len(corpus.records[0].vector))
print('Grade / subject combinations:')
for grade, subject in corpus.combinations():
    count = sum(1 for r in corpus if (r.grade or "(missing)", r.subject or "(missing)") == (grade, subject))
    print(f'  {grade!r:>12}  {subject!r:<40} {count}')
