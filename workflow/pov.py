"""Point-of-view resolution for chapters."""

from typing import Optional

from models.enums import Pov, PovMode


def resolve_pov(
    pov_mode: PovMode | str,
    chapter_number: int,
    default_pov: Optional[Pov | str] = None,
    override: Optional[Pov | str] = None,
) -> Pov:
    """Return the effective POV for a chapter.

    A manual override always wins. In dual mode odd chapters are female and
    even chapters male, by parity alone. Single-POV projects use their
    default, falling back to female.
    """
    if override:
        return Pov(override)
    if pov_mode == PovMode.DUAL:
        return Pov.FEMALE if chapter_number % 2 == 1 else Pov.MALE
    if default_pov:
        return Pov(default_pov)
    return Pov.FEMALE
