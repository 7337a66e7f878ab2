import sys
import os

print('Python', sys.version)
# Ensure the project root is on sys.path so 'import teachgen.*' works reliably.
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)
print('Added to sys.path:', repo_root)
try:
    from teachgen.services.llm_adapter import get_llm_adapter
    from teachgen.services.generation_service import service
    from teachgen.main import app
    print('Imports OK')
    print('Routes:', sorted(r.path for r in app.routes if r.path.startswith('/api')))
    print('Provider:', type(get_llm_adapter()).__name__)
except Exception as e:
    print('Import error', e)
    raise
