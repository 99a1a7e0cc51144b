# kg_chapters/documents.py

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from kg_chapters.models.section import Section


@dataclass
class ChapterDocument:
    """
    High-level representation of a chapter handed to the analysis engine.

    The text is expected to be plain text already; format conversion
    (DOCX/PDF/HTML) happens upstream.

    Attributes:
        chapter_id: Stable id of the chapter (used in the report).
        text: Full plain text of the chapter.
        title: Optional chapter title.
        sections: Ordered sections; headings feed candidate discovery.
        metadata: Extra caller metadata, passed through untouched.
    """
    chapter_id: str
    text: str
    title: Optional[str] = None
    sections: List[Section] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def word_count(self) -> int:
        return len(self.text.split())


_HEADING_LINE = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$", re.MULTILINE)


def sections_from_markdown(text: str) -> List[Section]:
    """
    Split text into Sections at Markdown ATX headings ("# Title", "## Sub").

    Content before the first heading is not a section. Offsets refer to
    the original text.
    """
    matches = list(_HEADING_LINE.finditer(text or ""))
    sections: List[Section] = []
    for i, m in enumerate(matches):
        body_start = m.end()
        body_end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        sections.append(
            Section(
                heading=m.group(2).strip(),
                content=text[body_start:body_end].strip(),
                start_position=m.start(),
                end_position=body_end,
                id=f"section-{i + 1}",
                level=len(m.group(1)),
            )
        )
    return sections
