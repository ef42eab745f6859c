"""Finds section headings in resume text and splits the text at them.

Extracted text arrives with its line breaks collapsed, so headings are found
by their wording and capitalization rather than by sitting on a line of
their own. Every heading ends the section before it, and a section whose
heading repeats (a heading printed on every page) keeps all of its parts.
"""

import re
from dataclasses import dataclass, field
from enum import Enum


class SectionType(str, Enum):
    CONTACT = "contact"
    SUMMARY = "summary"
    OBJECTIVE = "objective"
    EXPERIENCE = "experience"
    EDUCATION = "education"
    SKILLS = "skills"
    PROJECTS = "projects"
    CERTIFICATIONS = "certifications"
    LANGUAGES = "languages"
    VOLUNTEER = "volunteer"
    PUBLICATIONS = "publications"
    AWARDS = "awards"
    REFERENCES = "references"


HEADINGS: dict[SectionType, tuple[str, ...]] = {
    SectionType.CONTACT: (
        "Contact",
        "Contact Info",
        "Contact Information",
        "Contact Details",
        "Personal Info",
        "Personal Information",
    ),
    SectionType.SUMMARY: (
        "Summary",
        "Professional Summary",
        "Career Summary",
        "Executive Summary",
        "Profile",
        "Professional Profile",
        "Career Profile",
        "Overview",
        "Professional Overview",
        "Career Overview",
    ),
    SectionType.OBJECTIVE: (
        "Objective",
        "Career Objective",
        "Professional Objective",
        "Career Goal",
    ),
    SectionType.EXPERIENCE: (
        "Experience",
        "Professional Experience",
        "Work Experience",
        "Working Experience",
        "Career Experience",
        "Job Experience",
        "Employment",
        "Employment History",
        "Work History",
        "Career History",
        "Professional Background",
    ),
    SectionType.EDUCATION: (
        "Education",
        "Academics",
        "Academic Background",
        "Educational Background",
    ),
    SectionType.SKILLS: (
        "Skills",
        "Technical Skills",
        "Core Skills",
        "Key Skills",
        "Relevant Skills",
        "Competencies",
        "Core Competencies",
        "Expertise",
        "Technical Expertise",
        "Technologies",
        "Proficiencies",
    ),
    SectionType.PROJECTS: (
        "Projects",
        "Personal Projects",
        "Professional Projects",
        "Key Projects",
        "Notable Projects",
    ),
    SectionType.CERTIFICATIONS: (
        "Certifications",
        "Certificates",
        "Professional Certifications",
        "Licenses",
        "Credentials",
    ),
    SectionType.LANGUAGES: ("Languages", "Language Skills", "Foreign Languages"),
    SectionType.VOLUNTEER: (
        "Volunteer",
        "Volunteer Experience",
        "Volunteer Work",
        "Community Service",
        "Community Involvement",
    ),
    SectionType.PUBLICATIONS: ("Publications", "Published Works", "Research Papers"),
    SectionType.AWARDS: (
        "Awards",
        "Honors",
        "Honors and Awards",
        "Achievements",
        "Recognition",
    ),
    SectionType.REFERENCES: ("References", "Professional References", "Referees"),
}

ESSENTIAL_SECTIONS = (SectionType.EXPERIENCE, SectionType.EDUCATION)
# shorter than this a section is reported as insufficient
MIN_SECTION_LENGTH = 10

_SECTION_BY_HEADING = {
    " ".join(heading.lower().split()): section
    for section, headings in HEADINGS.items()
    for heading in headings
}
# longest first so "Work Experience" wins over "Experience" at the same offset
_HEADING_RE = re.compile(
    r"(?<![\w&/-])(?:\d{1,2}\.\s*)?("
    + "|".join(
        r"\s+".join(re.escape(word) for word in heading.split())
        for heading in sorted(_SECTION_BY_HEADING, key=len, reverse=True)
    )
    + r")(?![\w&/-])\s*:?",
    re.IGNORECASE,
)
_JOINERS = frozenset({"and", "of", "&"})
_EDGE_PUNCTUATION = " \n:;,|-–—•"


@dataclass(frozen=True)
class Heading:
    section: SectionType
    text: str
    start: int
    end: int


@dataclass(frozen=True)
class ClassifiedText:
    preamble: str
    headings: tuple[Heading, ...] = ()
    parts: dict[SectionType, tuple[str, ...]] = field(default_factory=dict)

    def first(self, section: SectionType) -> str:
        """Content under the first heading of the section, or ""."""
        parts = self.parts.get(section, ())
        return parts[0] if parts else ""

    def joined(self, section: SectionType) -> str:
        """Content under every heading of the section, one part per line."""
        return "\n".join(self.parts.get(section, ()))

    @property
    def sections(self) -> list[SectionType]:
        return list(self.parts)

    @property
    def warnings(self) -> list[str]:
        return [
            f"Missing or insufficient {section.value} section"
            for section in ESSENTIAL_SECTIONS
            if len(self.joined(section)) < MIN_SECTION_LENGTH
        ]


def _is_heading_case(text: str) -> bool:
    words = text.split()
    if all(word.isupper() for word in words if word not in _JOINERS):
        return True
    return all(word[0].isupper() or word.lower() in _JOINERS for word in words)


def find_headings(text: str) -> list[Heading]:
    headings: list[Heading] = []
    for match in _HEADING_RE.finditer(text):
        heading_text = match.group(1)
        if not _is_heading_case(heading_text):
            continue
        section = _SECTION_BY_HEADING[" ".join(heading_text.lower().split())]
        headings.append(Heading(section, heading_text, match.start(), match.end()))
    return headings


def classify_sections(text: str) -> ClassifiedText:
    """Split text into the part before any heading and the content of each section."""
    headings = find_headings(text)
    if not headings:
        return ClassifiedText(preamble=text.strip())

    parts: dict[SectionType, list[str]] = {}
    bounds = [h.start for h in headings[1:]] + [len(text)]
    for heading, end in zip(headings, bounds):
        content = text[heading.end : end].strip(_EDGE_PUNCTUATION)
        section_parts = parts.setdefault(heading.section, [])
        if content:
            section_parts.append(content)
    return ClassifiedText(
        preamble=text[: headings[0].start].strip(_EDGE_PUNCTUATION),
        headings=tuple(headings),
        parts={section: tuple(contents) for section, contents in parts.items()},
    )
