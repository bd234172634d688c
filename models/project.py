"""Project data model."""

from dataclasses import dataclass, field
from typing import Optional

from models.enums import Pov, PovMode

MIN_CHAPTERS = 3
MAX_CHAPTERS = 6

# Generation rules sent with every new project unless the caller supplies its own
DEFAULT_GENERATION_RULES: tuple[str, ...] = (
    "Each chapter must be strictly between 1400 and 1800 words. Do not write less than "
    "1400 words, and do not exceed 1800 words. Ensure the chapter feels complete and "
    "cohesive while staying within this word count.",
    "Write in immersive first-person POV matching selected POV settings. Use full "
    "sentences and personal pronouns like I, my, and me. Avoid fragmented, dramatic lines.",
    "Dialogue must sound natural and reveal emotion through tone, pauses, and body "
    "language. Do not name emotions directly.",
    "Avoid metaphors, similes, purple prose, and dash-separated adjective lists. Keep "
    "tone grounded and human.",
    "Start each chapter with tension, action, or dialogue; end with a hook or strong "
    "emotional beat. Maintain continuity across chapters.",
)


def default_pov_for_mode(pov_mode: PovMode | str) -> Pov:
    """Single-POV projects default to their own mode; everything else to female."""
    return Pov.MALE if PovMode(pov_mode) == PovMode.MALE else Pov.FEMALE


@dataclass(frozen=True)
class Project:
    """A story project as confirmed by the backend."""
    id: str
    name: str = ""
    outline: str = ""
    chapter_count: int = MIN_CHAPTERS
    pov_mode: PovMode = PovMode.FEMALE
    default_pov: Optional[Pov] = None
    rules: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        """Build a Project from a backend JSON record."""
        default_pov = data.get("default_pov")
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            outline=data.get("outline") or "",
            chapter_count=int(data.get("chapter_count") or MIN_CHAPTERS),
            pov_mode=PovMode(data.get("pov_mode") or PovMode.FEMALE.value),
            default_pov=Pov(default_pov) if default_pov else None,
            rules=tuple(data.get("rules") or ()),
            tags=tuple(data.get("tags") or ()),
        )


@dataclass
class ProjectDraft:
    """Setup input for a project that does not exist on the backend yet."""
    name: str
    outline: str
    chapter_count: int = MIN_CHAPTERS
    pov_mode: PovMode = PovMode.FEMALE
    default_pov: Optional[Pov] = None
    rules: list[str] = field(default_factory=lambda: list(DEFAULT_GENERATION_RULES))
    tags: list[str] = field(default_factory=list)

    def to_payload(self) -> dict:
        """Request body for the create-project call."""
        pov_mode = PovMode(self.pov_mode)
        default_pov = Pov(self.default_pov) if self.default_pov else default_pov_for_mode(pov_mode)
        return {
            "name": self.name,
            "outline": self.outline,
            "chapter_count": self.chapter_count,
            "pov_mode": pov_mode.value,
            "default_pov": default_pov.value,
            "rules": list(self.rules),
            "tags": list(self.tags),
        }
