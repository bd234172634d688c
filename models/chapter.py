"""Chapter data model."""

from dataclasses import dataclass
from typing import Optional

from models.enums import ChapterStatus, Pov
from tools.text_utils import count_words

# Fields the backend accepts in a chapter patch
PATCHABLE_FIELDS = frozenset({"title", "content", "status", "pov"})


@dataclass(frozen=True)
class Chapter:
    """A single chapter record as last confirmed by the backend.

    ``words`` is derived from ``content`` on every access; the count the
    backend sends is ignored.
    """
    number: int
    title: str = ""
    content: str = ""
    status: ChapterStatus = ChapterStatus.EMPTY
    pov: Optional[Pov] = None  # explicit override, never the resolved POV
    id: Optional[str] = None

    @property
    def words(self) -> int:
        return count_words(self.content)

    @property
    def has_override(self) -> bool:
        return self.pov is not None

    @classmethod
    def from_dict(cls, data: dict) -> "Chapter":
        """Build a Chapter from a backend JSON record."""
        pov = data.get("pov")
        chapter_id = data.get("id")
        return cls(
            number=int(data["number"]),
            title=data.get("title") or "",
            content=data.get("content") or "",
            status=ChapterStatus(data.get("status") or ChapterStatus.EMPTY.value),
            pov=Pov(pov) if pov else None,
            id=str(chapter_id) if chapter_id is not None else None,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "number": self.number,
            "title": self.title,
            "content": self.content,
            "words": self.words,
            "status": self.status.value,
            "pov": self.pov.value if self.pov else None,
        }
