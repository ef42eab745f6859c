"""Pattern rules that pull contact details, jobs, schooling and skills out of resume text.

Each rule works on flattened text (no line breaks) and on the parts the
section classifier joins with newlines.
"""

import re

from resume_ingest.structuring.models import ContactInfo, Education, WorkExperience

MAX_WORK_EXPERIENCES = 50
MAX_SKILLS = 200
# a list item longer than this is prose, not a skill
MAX_SKILL_WORDS = 4
MAX_SKILL_LENGTH = 40
# a job header without a recognizable title longer than this is description text
MAX_HEADER_WORDS = 10

_SEPARATORS = " \n,;:|-–—•()"

# ----------------------------------------------------------------------
# Contact
# ----------------------------------------------------------------------

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_US_PHONE_RE = re.compile(
    r"(?<![\d+])(?:\+?1[-.\s]?)?\(?(\d{3})\)?[-.\s]?(\d{3})[-.\s]?(\d{4})(?!\d)"
)
_INTL_PHONE_RE = re.compile(
    r"(?<![\w+])\+\d{1,3}[-.\s]?\(?\d{1,4}\)?(?:[-.\s]?\d{2,4}){1,4}(?!\d)"
)
_LINKEDIN_RE = re.compile(r"(?:https?://)?(?:www\.)?linkedin\.com/in/[A-Za-z0-9_-]+/?", re.I)
_WEBSITE_RE = re.compile(r"(?:https?://|www\.)[^\s,;|]+|\bgithub\.com/[A-Za-z0-9_-]+", re.I)
_LEADING_LABEL_RE = re.compile(r"^(?:resume|curriculum\s+vitae|cv)\b[\s:-]*", re.I)
_NAME_RE = re.compile(r"([A-Z][A-Za-z'-]+)\s+(?:[A-Z]\.\s+)?([A-Z][A-Za-z'-]+)(?![\w@.])")
_CITY_STATE_RE = re.compile(
    r"\b([A-Z][a-zA-Z]+(?:\s[A-Z][a-zA-Z]+)?),\s*([A-Z]{2})\b(?:\s+\d{5})?"
)
_REMOTE_RE = re.compile(r"\bremote\b", re.I)

# ----------------------------------------------------------------------
# Work experience
# ----------------------------------------------------------------------

_MONTH = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?"
    r"|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)\.?"
)
_DATE = rf"(?:\b{_MONTH}\s+(?:19|20)\d{{2}}|\d{{1,2}}/(?:19|20)\d{{2}}|(?:19|20)\d{{2}})"
_DATE_RANGE_RE = re.compile(
    rf"(?<![\d/])(?P<start>{_DATE})\s*(?:-|–|—|\bto\b|\buntil\b)\s*"
    rf"(?P<end>{_DATE}|\b(?:Present|Current|Now|Today)\b)(?!\d)",
    re.IGNORECASE,
)
_OPEN_ENDED = frozenset({"present", "current", "now", "today"})
TITLE_WORDS = (
    "Engineer",
    "Developer",
    "Programmer",
    "Architect",
    "Designer",
    "Scientist",
    "Analyst",
    "Manager",
    "Director",
    "Lead",
    "Specialist",
    "Coordinator",
    "Consultant",
    "Advisor",
    "Administrator",
    "Supervisor",
    "Assistant",
    "Associate",
    "Technician",
    "Accountant",
    "Representative",
    "Officer",
    "Executive",
    "Intern",
    "Trainee",
    "Founder",
    "President",
    "VP",
    "CEO",
    "CTO",
    "CFO",
    "COO",
)
_TITLE_RE = re.compile(
    r"(?:\b[A-Z][\w&/+.'-]*\s+){0,3}\b(?:" + "|".join(TITLE_WORDS) + r")\b"
)
_TITLE_WORD_SET = frozenset(word.lower() for word in TITLE_WORDS)
_BREAK_RE = re.compile(r"(?<=\w)[.!?;]\s+|[•▪●]\s*|\s*\n\s*")
_ABBREVIATIONS = frozenset({"inc", "corp", "co", "ltd", "llc", "jr", "sr", "st", "dr"})
_HEADER_SPLIT_RE = re.compile(r"\s*(?:,|\||\s@\s|\sat\s|\s[-–—]\s)\s*")
_COMPANY_LEAD_RE = re.compile(r"^(?:at|@|with)\s+", re.I)
_UNDATED_COMPANY_RE = re.compile(
    r"\s*(?:,|\||@|at\b|with\b)?\s*([A-Z][\w&'.-]*(?:\s+(?:[A-Z][\w&'.-]*|&|of|and)){0,3})"
)

# ----------------------------------------------------------------------
# Education
# ----------------------------------------------------------------------

_SCHOOL_WORDS = r"(?:University|College|Institute|School|Academy|Polytechnic)\b"
# a capitalized word of the field of study, stopping at the institution name
_FIELD_WORD = rf"(?!{_SCHOOL_WORDS})[A-Z][\w&]*"
_DEGREE_RE = re.compile(
    r"(?<![\w.])(?<!,\s)"
    r"(?:Bachelor(?:'s)?|Master(?:'s)?|Doctorate|Associate(?:'s)?|Diploma|MBA|Ph\.?\s?D\.?"
    r"|[BM]\.?\s?(?:Sc|Eng|S|A)\.?)(?!\w)"
    r"(?:\s+(?:of|in)\s+(?:Science|Arts|Engineering|Fine\s+Arts|Business\s+Administration)\b)?"
    rf"(?:\s+(?:in\s+)?{_FIELD_WORD}(?:\s+(?:and\s+|&\s+)?{_FIELD_WORD})*)?"
)
_INSTITUTION_RE = re.compile(
    r"(?:[A-Z][\w&'.-]*\s+(?:(?:of|and|for|at)\s+)?){0,4}"
    + _SCHOOL_WORDS
    + r"(?:\s+of\s+[A-Z][\w&'-]*(?:\s+(?:and\s+)?[A-Z][\w&'-]*){0,3})?"
)
_YEAR_RE = re.compile(r"(?<!\d)(?:19|20)\d{2}(?!\d)")
_GPA_RE = re.compile(
    r"GPA\s*:?\s*(\d\.\d{1,2})|(\d\.\d{1,2})\s*/\s*4\.0|(\d\.\d{1,2})\s+GPA", re.I
)

# ----------------------------------------------------------------------
# Skills
# ----------------------------------------------------------------------

KNOWN_SKILLS = (
    "JavaScript",
    "TypeScript",
    "Python",
    "Java",
    "C++",
    "C#",
    "PHP",
    "Ruby",
    "Rust",
    "Kotlin",
    "Scala",
    "MATLAB",
    "Perl",
    "Bash",
    "React",
    "Angular",
    "Vue.js",
    "Node.js",
    "Django",
    "Flask",
    "Laravel",
    "Ruby on Rails",
    "ASP.NET",
    "jQuery",
    "Bootstrap",
    "Tailwind",
    "SQL",
    "MySQL",
    "PostgreSQL",
    "MongoDB",
    "Redis",
    "SQLite",
    "Oracle",
    "SQL Server",
    "DynamoDB",
    "Cassandra",
    "AWS",
    "Azure",
    "Google Cloud",
    "Docker",
    "Kubernetes",
    "Jenkins",
    "GitLab CI",
    "GitHub Actions",
    "Terraform",
    "Ansible",
    "Git",
    "Jira",
    "Confluence",
    "Figma",
    "Photoshop",
    "Illustrator",
    "Leadership",
    "Communication",
    "Problem Solving",
    "Project Management",
    "Time Management",
    "Critical Thinking",
    "Public Speaking",
    "Customer Service",
    "AWS Certified",
    "PMP",
    "Scrum Master",
    "Agile",
)


def _skill_key(skill: str) -> str:
    return "".join(skill.split()).lower()


def _skill_pattern(skill: str) -> str:
    # the text cleaner splits "JavaScript" into "Java Script"
    return r"\s?".join(
        re.escape(part) for part in re.split(r"(?<=[a-z])(?=[A-Z])", skill)
    ).replace(r"\ ", r"\s+")


_CANONICAL_SKILLS = {_skill_key(skill): skill for skill in KNOWN_SKILLS}
_KNOWN_SKILL_RE = re.compile(
    r"(?<![\w+#.])("
    + "|".join(_skill_pattern(s) for s in sorted(KNOWN_SKILLS, key=len, reverse=True))
    + r")(?![\w+#])",
    re.IGNORECASE,
)
_SKILL_SPLIT_RE = re.compile(r"[,;|•▪●·\n]|\s[-–—]\s|\s/\s")


# ----------------------------------------------------------------------
# Contact rules
# ----------------------------------------------------------------------


def split_name(text: str) -> tuple[str, str, str]:
    """Split a leading "First Last" off text: (first, last, rest)."""
    body = _LEADING_LABEL_RE.sub("", text.lstrip())
    match = _NAME_RE.match(body)
    if match is None:
        return "", "", body
    first, last = match.group(1), match.group(2)
    if first.lower() in _TITLE_WORD_SET or last.lower() in _TITLE_WORD_SET:
        return "", "", body
    if first.isupper() and last.isupper():
        first, last = first.title(), last.title()
    return first, last, body[match.end() :].strip(_SEPARATORS)


def _find_phone(text: str) -> str:
    match = _US_PHONE_RE.search(text)
    if match:
        area, exchange, line = match.groups()
        return f"({area}) {exchange}-{line}"
    match = _INTL_PHONE_RE.search(text)
    return match.group().strip() if match else ""


def _find_website(text: str) -> str:
    for match in _WEBSITE_RE.finditer(text):
        if "linkedin.com" not in match.group().lower():
            return match.group().rstrip(".")
    return ""


def _find(pattern: re.Pattern[str], text: str) -> str:
    match = pattern.search(text)
    return match.group().rstrip(".") if match else ""


def extract_contact(header: str, full_text: str) -> ContactInfo:
    """Contact details from the header (text before the first heading plus any
    contact section), falling back to the whole text for everything but the name."""
    first, last, rest = split_name(header)
    city_state = _CITY_STATE_RE.search(rest)
    return ContactInfo(
        first_name=first,
        last_name=last,
        email=_find(_EMAIL_RE, header) or _find(_EMAIL_RE, full_text),
        phone=_find_phone(header) or _find_phone(full_text),
        location=city_state.group().strip() if city_state else "",
        linkedin=_find(_LINKEDIN_RE, header) or _find(_LINKEDIN_RE, full_text),
        website=_find_website(header) or _find_website(full_text),
    )


# ----------------------------------------------------------------------
# Work experience rules
# ----------------------------------------------------------------------


def _header_start(segment: str) -> int:
    """Offset where the last sentence of the segment begins."""
    start = 0
    for match in _BREAK_RE.finditer(segment):
        if segment[match.start()] == ".":
            words = segment[: match.start()].split()
            if words and words[-1].lower() in _ABBREVIATIONS:
                continue
        start = match.end()
    return start


def _company_and_location(text: str) -> tuple[str, str | None]:
    location = None
    city_state = _CITY_STATE_RE.search(text)
    if city_state:
        location = city_state.group().strip()
        text = text[: city_state.start()] + text[city_state.end() :]
    elif _REMOTE_RE.search(text):
        location = "Remote"
        text = _REMOTE_RE.sub("", text)
    company = _COMPANY_LEAD_RE.sub("", text.strip(_SEPARATORS)).strip(_SEPARATORS)
    return company, location


def _split_header(header: str) -> tuple[str, str, str | None]:
    """Job header text before a date range: (title, company, location)."""
    header = header.strip(_SEPARATORS)
    title_match = _TITLE_RE.search(header)
    if title_match:
        title = title_match.group().strip()
        rest = header[title_match.end() :]
        if not rest.strip(_SEPARATORS):
            rest = header[: title_match.start()]
    elif header and len(header.split()) <= MAX_HEADER_WORDS:
        title, rest = (_HEADER_SPLIT_RE.split(header, maxsplit=1) + [""])[:2]
    else:
        return "", "", None
    company, location = _company_and_location(rest)
    return title.strip(_SEPARATORS), company, location


def _format_date(value: str) -> str:
    value = " ".join(value.split())
    return "Present" if value.lower() in _OPEN_ENDED else value


def _undated_experience(text: str) -> WorkExperience | None:
    title_match = _TITLE_RE.search(text)
    if title_match is None:
        return None
    rest = text[title_match.end() :]
    company_match = _UNDATED_COMPANY_RE.match(rest)
    company = company_match.group(1) if company_match else ""
    description = rest[company_match.end() :] if company_match else rest
    return WorkExperience(
        job_title=title_match.group().strip(),
        company=company,
        description=description.strip(_SEPARATORS),
    )


def _unique_experiences(experiences: list[WorkExperience]) -> list[WorkExperience]:
    seen: set[tuple[str, str, str, str]] = set()
    unique: list[WorkExperience] = []
    for exp in experiences:
        key = (exp.job_title.lower(), exp.company.lower(), exp.start_date, exp.end_date)
        if key not in seen:
            seen.add(key)
            unique.append(exp)
    return unique


def extract_work_experiences(text: str) -> list[WorkExperience]:
    """One entry per date range; the title and company precede the range and
    the description follows it up to the next entry's header."""
    ranges = list(_DATE_RANGE_RE.finditer(text))
    if not ranges:
        entry = _undated_experience(text)
        return [entry] if entry is not None else []

    header_starts: list[int] = []
    previous_end = 0
    for date_range in ranges:
        segment = text[previous_end : date_range.start()]
        header_starts.append(previous_end + _header_start(segment))
        previous_end = date_range.end()

    experiences: list[WorkExperience] = []
    for i, date_range in enumerate(ranges):
        title, company, location = _split_header(text[header_starts[i] : date_range.start()])
        if not title and not company:
            continue
        description_end = header_starts[i + 1] if i + 1 < len(ranges) else len(text)
        experiences.append(
            WorkExperience(
                job_title=title,
                company=company,
                start_date=_format_date(date_range.group("start")),
                end_date=_format_date(date_range.group("end")),
                description=text[date_range.end() : description_end].strip(_SEPARATORS),
                location=location,
            )
        )
    return _unique_experiences(experiences)[:MAX_WORK_EXPERIENCES]


# ----------------------------------------------------------------------
# Education rules
# ----------------------------------------------------------------------


def _mask(text: str, matches: list[re.Match[str]]) -> str:
    chars = list(text)
    for match in matches:
        chars[match.start() : match.end()] = "," * (match.end() - match.start())
    return "".join(chars)


def _gpa(text: str) -> str | None:
    match = _GPA_RE.search(text)
    if match is None:
        return None
    return next(group for group in match.groups() if group)


def extract_education(text: str) -> list[Education]:
    """One entry per institution, or per degree when degrees come first."""
    degrees = list(_DEGREE_RE.finditer(text))
    institutions = list(_INSTITUTION_RE.finditer(_mask(text, degrees)))
    if institutions and (not degrees or institutions[0].start() < degrees[0].start()):
        anchors = [m.start() for m in institutions]
    else:
        anchors = [m.start() for m in degrees]
    if not anchors:
        return []

    starts = [0] + anchors[1:]
    ends = anchors[1:] + [len(text)]
    entries: list[Education] = []
    seen: set[tuple[str, str, str]] = set()
    for start, end in zip(starts, ends):
        degree = next((m.group().strip() for m in degrees if start <= m.start() < end), "")
        school = next(
            (m.group().strip() for m in institutions if start <= m.start() < end), ""
        )
        if not degree and not school:
            continue
        chunk = text[start:end]
        years = _YEAR_RE.findall(chunk)
        entry = Education(
            school=school,
            degree=degree,
            grad_year=years[-1] if years else "",
            gpa=_gpa(chunk),
        )
        key = (entry.school.lower(), entry.degree.lower(), entry.grad_year)
        if key not in seen:
            seen.add(key)
            entries.append(entry)
    return entries


# ----------------------------------------------------------------------
# Skill rules
# ----------------------------------------------------------------------


def _known_skills(text: str) -> list[str]:
    return [
        _CANONICAL_SKILLS[_skill_key(match.group())]
        for match in _KNOWN_SKILL_RE.finditer(text)
    ]


def _looks_like_skill(item: str) -> bool:
    if not 1 < len(item) <= MAX_SKILL_LENGTH or len(item.split()) > MAX_SKILL_WORDS:
        return False
    if "@" in item or _YEAR_RE.search(item):
        return False
    return sum(ch.isdigit() for ch in item) * 2 < len(item)


def extract_skills(text: str, *, listed: bool = True) -> list[str]:
    """Skills from a skills section split into list items, or, when the
    text is not a list, only the well-known skills mentioned in it."""
    found: list[str] = []
    if listed:
        for item in _SKILL_SPLIT_RE.split(text):
            # "React Tools: Git" is the end of one group and the start of the next
            label, _, item = item.rpartition(":")
            found.extend(_known_skills(label))
            item = item.strip(_SEPARATORS)
            if _looks_like_skill(item):
                found.append(_CANONICAL_SKILLS.get(_skill_key(item), item))
            else:
                found.extend(_known_skills(item))
    else:
        found = _known_skills(text)

    seen: set[str] = set()
    skills: list[str] = []
    for skill in found:
        key = _skill_key(skill)
        if key not in seen:
            seen.add(key)
            skills.append(skill)
    return skills[:MAX_SKILLS]
