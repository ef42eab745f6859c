from resume_ingest.structuring.sections import SectionType, classify_sections, find_headings

RESUME_TEXT = (
    "Jane Doe PROFESSIONAL SUMMARY Builds things. WORK EXPERIENCE Engineer at Acme "
    "2019 - 2021 EDUCATION BSc Physics SKILLS Python"
)


class TestFindHeadings:
    def test_longest_heading_wins(self) -> None:
        headings = find_headings(RESUME_TEXT)
        assert [h.text for h in headings] == [
            "PROFESSIONAL SUMMARY",
            "WORK EXPERIENCE",
            "EDUCATION",
            "SKILLS",
        ]

    def test_lowercase_words_are_prose(self) -> None:
        assert find_headings("Jane Doe has experience with skills in Python") == []

    def test_heading_must_be_a_whole_word(self) -> None:
        assert find_headings("Experienced engineer and Educational consultant") == []

    def test_joined_heading(self) -> None:
        headings = find_headings("Honors and Awards Dean's List")
        assert [(h.section, h.text) for h in headings] == [
            (SectionType.AWARDS, "Honors and Awards")
        ]


class TestClassifySections:
    def test_splits_at_headings(self) -> None:
        classified = classify_sections(RESUME_TEXT)
        assert classified.preamble == "Jane Doe"
        assert classified.sections == [
            SectionType.SUMMARY,
            SectionType.EXPERIENCE,
            SectionType.EDUCATION,
            SectionType.SKILLS,
        ]
        assert classified.first(SectionType.SUMMARY) == "Builds things."
        assert classified.first(SectionType.EXPERIENCE) == "Engineer at Acme 2019 - 2021"
        assert classified.first(SectionType.SKILLS) == "Python"
        assert classified.warnings == []

    def test_numbered_heading_and_colon(self) -> None:
        classified = classify_sections("Jane Doe 1. Skills: Python, SQL 2. Education: MIT")
        assert classified.first(SectionType.SKILLS) == "Python, SQL"
        assert classified.first(SectionType.EDUCATION) == "MIT"

    def test_repeated_heading_keeps_every_part(self) -> None:
        classified = classify_sections(
            "Experience A Co 2019 - 2020 Skills Python Experience B Co 2020 - 2021"
        )
        assert classified.parts[SectionType.EXPERIENCE] == (
            "A Co 2019 - 2020",
            "B Co 2020 - 2021",
        )
        assert classified.joined(SectionType.EXPERIENCE) == "A Co 2019 - 2020\nB Co 2020 - 2021"

    def test_text_without_headings(self) -> None:
        classified = classify_sections("  Jane Doe, engineer  ")
        assert classified.preamble == "Jane Doe, engineer"
        assert classified.headings == ()
        assert classified.first(SectionType.SKILLS) == ""

    def test_missing_essential_section_warns(self) -> None:
        classified = classify_sections("Experience Engineer at Acme Corp since 2019")
        assert classified.warnings == ["Missing or insufficient education section"]

    def test_short_essential_section_warns(self) -> None:
        classified = classify_sections(
            "Experience Acme Education BSc Physics, State University"
        )
        assert classified.warnings == ["Missing or insufficient experience section"]
