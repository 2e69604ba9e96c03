import shutil
from pathlib import Path

import pytest

SCAFFOLD = Path(__file__).resolve().parent.parent / "teaser" / "scaffold"


@pytest.fixture
def blog(tmp_path):
    """A copy of the starter blog."""
    root = tmp_path / "blog"
    shutil.copytree(SCAFFOLD, root)
    return root


@pytest.fixture
def write_file():
    def _write(path: Path, text: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write
