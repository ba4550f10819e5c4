from __future__ import annotations

from pathlib import Path

import pytest

# Five unit vectors after compaction (row 5 is empty, column 5 is unused).
# Similarities: (0,1)=1.0, (2,4)=0.707, (0,3)=(1,3)=(2,3)=0.5, all others 0.
TOY_CLUTO = """\
% toy dataset
6 5 9
1 1 2 1
1 2 2 2
3 1 4 1
1 1 3 1

4 3
"""

TOY_PAIRS_AT_0_6 = {(0, 1), (2, 4)}
TOY_PAIRS_AT_0_3 = {(0, 1), (2, 4), (0, 3), (1, 3), (2, 3)}


@pytest.fixture
def toy_path(tmp_path: Path) -> Path:
    path = tmp_path / "toy.clu"
    path.write_text(TOY_CLUTO, encoding="utf-8")
    return path
