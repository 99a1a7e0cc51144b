# tests/conftest.py

import pytest

CHAPTER = """# Cell Transport

Osmosis is a process where molecules move across a membrane. Osmosis depends on the concentration gradient across the membrane.

## Diffusion

Diffusion is the movement of particles from high to low concentration. Diffusion and osmosis are both passive transport. The concentration gradient drives passive transport in every living cell.
"""


@pytest.fixture
def chapter_text() -> str:
    return CHAPTER
