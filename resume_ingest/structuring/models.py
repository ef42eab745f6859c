from dataclasses import dataclass, field


@dataclass(frozen=True)
class ContactInfo:
    """Candidate contact details. Empty string means not found."""

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    linkedin: str = ""
    website: str = ""

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


@dataclass(frozen=True)
class WorkExperience:
    job_title: str
    company: str
    start_date: str = ""
    end_date: str = ""
    description: str = ""
    location: str | None = None


@dataclass(frozen=True)
class Education:
    school: str
    degree: str = ""
    grad_year: str = ""
    gpa: str | None = None
    location: str | None = None


@dataclass(frozen=True)
class ResumeData:
    """Structured resume produced from extracted text."""

    contact: ContactInfo = field(default_factory=ContactInfo)
    work_experiences: list[WorkExperience] = field(default_factory=list)
    education: list[Education] = field(default_factory=list)
    skills: list[str] = field(default_factory=list)
    summary: str = ""
