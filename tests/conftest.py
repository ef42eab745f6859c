import io
import zipfile

import docx
import pytest
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

RESUME_LINES = [
    "Jane Doe",
    "jane.doe@example.com, +1 555 0100, Berlin",
    "Summary",
    "Backend engineer building document processing services.",
    "Experience",
    "Senior Engineer, Acme Corp, 2019 - Present",
    "Built ingestion pipelines for scanned and digital documents.",
    "Engineer, Initech, 2015 - 2019",
    "Maintained billing services and reporting jobs.",
    "Education",
    "BSc Computer Science, Technical University, 2015",
    "Skills",
    "Python, SQL, Docker, Kubernetes",
]


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def resume_pdf_bytes() -> bytes:
    """Generate a single-column resume PDF with 60 evenly spaced lines."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    y = 740
    for i in range(60):
        c.drawString(72, y, RESUME_LINES[i % len(RESUME_LINES)])
        y -= 12
    c.save()
    return buf.getvalue()


@pytest.fixture()
def encrypted_pdf_bytes() -> bytes:
    """Generate a PDF that cannot be opened without the user password."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter, encrypt="secret")
    c.drawString(72, 720, "Confidential resume")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def docx_bytes() -> bytes:
    """Generate a word-processor resume with paragraphs and a table."""
    document = docx.Document()
    document.add_paragraph("Jane Doe")
    document.add_paragraph("Senior Engineer at Acme Corp")
    table = document.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Skill"
    table.cell(0, 1).text = "Years"
    table.cell(1, 0).text = "Python"
    table.cell(1, 1).text = "8"
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


@pytest.fixture()
def damaged_docx_bytes() -> bytes:
    """A zip that carries a document body but none of the package parts python-docx needs."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        archive.writestr(
            "word/document.xml",
            '<w:document><w:body><w:p><w:r><w:t>Jane Doe</w:t></w:r></w:p>'
            "<w:p><w:r><w:t>Platform Engineer</w:t></w:r></w:p></w:body></w:document>",
        )
    return buf.getvalue()


@pytest.fixture()
def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (200, 100), "white").save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def table_pdf_bytes() -> bytes:
    """A title line above a five-row, three-column skills table."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 740, "Technical Skills")
    rows = [
        ("Python", "8 years", "Expert"),
        ("SQL", "6 years", "Advanced"),
        ("Docker", "5 years", "Advanced"),
        ("Go", "2 years", "Intermediate"),
        ("Rust", "1 year", "Beginner"),
    ]
    y = 700
    for row in rows:
        for x, cell in zip((72, 222, 372), row):
            c.drawString(x, y, cell)
        y -= 20
    c.save()
    return buf.getvalue()


@pytest.fixture()
def two_column_pdf_bytes() -> bytes:
    """A two-column resume page with indented bullet lines in each column."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    y = 740
    for i in range(40):
        indent = 18 if i % 3 else 0
        c.drawString(72 + indent, y, "Experience" if not indent else "Built data pipelines")
        c.drawString(320 + indent, y, "Projects" if not indent else "Led platform team")
        y -= 14
    c.save()
    return buf.getvalue()
