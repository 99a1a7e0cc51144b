# kg_chapters/models/section.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class Section:
    heading: str
    content: str = ""
    start_position: int = 0
    end_position: int = 0
    id: Optional[str] = None
    level: int = 1

    @property
    def word_count(self) -> int:
        return len(self.content.split())
