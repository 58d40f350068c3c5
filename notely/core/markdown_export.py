"""Markdown export of note sections."""

from notely.core.schemas_sections import LanguageVariant


def to_markdown(sections: list[LanguageVariant], heading: str = "Notes") -> str:
    """
    Render sections as a Markdown document.

    Blank bullets are dropped; a section without summary or bullets still gets
    its heading.
    """
    if not sections:
        return f"# {heading}\n\nNo sections available.\n"

    parts = [f"# {heading}\n\n"]
    for section in sections:
        title = section.title.strip() or "Untitled Section"
        parts.append(f"## {title}\n\n")

        if section.summary.strip():
            parts.append(f"{section.summary.strip()}\n\n")

        bullets = [b.strip() for b in section.bullets if b and b.strip()]
        for bullet in bullets:
            parts.append(f"- {bullet}\n")
        parts.append("\n")

    return "".join(parts)
