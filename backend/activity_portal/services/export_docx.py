"""
Export a student portfolio to .docx: title block, then Approved Activities, one numbered entry each.
Same content as the PDF; footer carries the generation date and Word page fields.
"""
from datetime import date
from io import BytesIO

from docx import Document as DocxDocument
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt

from activity_portal.services.export_pdf import format_date


def _add_field(paragraph, instr: str) -> None:
    """Append a simple field (PAGE, NUMPAGES) that Word fills in when rendering."""
    fld = OxmlElement("w:fldSimple")
    fld.set(qn("w:instr"), instr)
    run = OxmlElement("w:r")
    text = OxmlElement("w:t")
    text.text = "1"
    run.append(text)
    fld.append(run)
    paragraph._p.append(fld)


def build_portfolio_docx(user, activities: list, generated_on: date | None = None) -> BytesIO:
    """Return a BytesIO containing the .docx portfolio for `user` and their approved `activities`."""
    doc = DocxDocument()
    style = doc.styles["Normal"]
    style.font.size = Pt(11)

    title = doc.add_heading("Student Portfolio", level=0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER
    for text, size in ((user.name or "", 16), (user.email or "", 12)):
        p = doc.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        p.add_run(text).font.size = Pt(size)

    doc.add_heading("Approved Activities", level=1)
    if not activities:
        doc.add_paragraph("No approved activities yet.")
    for i, a in enumerate(activities, start=1):
        doc.add_heading(f"{i}. {a.title}", level=2)
        meta = doc.add_paragraph()
        meta.add_run("Category: ").bold = True
        meta.add_run(a.category or "")
        meta.add_run("    Date: ").bold = True
        meta.add_run(format_date(a.created_at))
        doc.add_paragraph(a.description or "")
        if a.remarks:
            p = doc.add_paragraph()
            p.add_run("Faculty Remarks: ").italic = True
            p.add_run(a.remarks)

    footer = doc.sections[0].footer.paragraphs[0]
    footer.alignment = WD_ALIGN_PARAGRAPH.CENTER
    footer.add_run(f"Generated on {format_date(generated_on or date.today())} - Page ")
    _add_field(footer, "PAGE")
    footer.add_run(" of ")
    _add_field(footer, "NUMPAGES")

    buf = BytesIO()
    doc.save(buf)
    buf.seek(0)
    return buf
