import sys
from pathlib import Path

import pytest

# Import catacomb from the source tree without installing it
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path_factory, monkeypatch):
    """Stores created without an explicit root write under a throwaway directory."""
    path = tmp_path_factory.mktemp("catacomb-data")
    monkeypatch.setenv("CATACOMB_DATA_DIR", str(path))
    return path
