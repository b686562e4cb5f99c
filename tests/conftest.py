import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# backend/ modules import each other as top-level names; the CLIs in scripts/
# are imported directly by test_scripts.py.
for _subdir in ("backend", "scripts"):
    sys.path.insert(0, os.path.join(REPO_ROOT, _subdir))
