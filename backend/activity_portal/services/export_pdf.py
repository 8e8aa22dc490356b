"""
Student portfolio as PDF (reportlab).
Layout: title block (name, email), "Approved Activities", one numbered entry per activity
(title, category, date, description, faculty remarks), flowing across pages, and a footer
"Generated on <date> - Page X of Y" on every page.
"""
import re
from datetime import date, datetime
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import HRFlowable, KeepTogether, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

MARGIN = 20 * mm
_WHITESPACE = re.compile(r"\s+")


def portfolio_filename(name: str, extension: str = "pdf") -> str:
    stem = _WHITESPACE.sub("_", (name or "Student").strip())
    return f"{stem}_Portfolio.{extension}"


def format_date(value: datetime | date | None) -> str:
    if value is None:
        return ""
    return value.strftime("%d %b %Y")


def _numbered_canvas(generated_on: str):
    """Canvas class that defers page output so every footer knows the total page count."""

    class NumberedCanvas(canvas.Canvas):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self._saved_page_states = []

        def showPage(self):
            self._saved_page_states.append(dict(self.__dict__))
            self._startPage()

        def save(self):
            total = len(self._saved_page_states)
            for state in self._saved_page_states:
                self.__dict__.update(state)
                self._draw_footer(total)
                super().showPage()
            super().save()

        def _draw_footer(self, total: int):
            width, _ = self._pagesize
            self.setFont("Helvetica", 8)
            self.setFillColor(colors.black)
            self.drawCentredString(
                width / 2,
                10 * mm,
                f"Generated on {generated_on} - Page {self._pageNumber} of {total}",
            )

    return NumberedCanvas


def _styles():
    styles = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("PortfolioTitle", parent=styles["Title"], fontSize=24, leading=28,
                                alignment=TA_CENTER, fontName="Helvetica-Bold"),
        "name": ParagraphStyle("PortfolioName", parent=styles["Normal"], fontSize=16, leading=20,
                               alignment=TA_CENTER),
        "email": ParagraphStyle("PortfolioEmail", parent=styles["Normal"], fontSize=12, leading=16,
                                alignment=TA_CENTER),
        "section": ParagraphStyle("PortfolioSection", parent=styles["Normal"], fontSize=18, leading=22,
                                  fontName="Helvetica-Bold", spaceAfter=10),
        "entry": ParagraphStyle("EntryTitle", parent=styles["Normal"], fontSize=14, leading=18,
                                fontName="Helvetica-Bold", spaceAfter=4),
        "body": ParagraphStyle("EntryBody", parent=styles["Normal"], fontSize=10, leading=13, leftIndent=10),
        "remarks_label": ParagraphStyle("RemarksLabel", parent=styles["Normal"], fontSize=10, leading=13,
                                        leftIndent=10, fontName="Helvetica-Oblique", spaceBefore=4),
        "empty": ParagraphStyle("Empty", parent=styles["Normal"], fontSize=11, textColor=colors.grey),
    }


def _entry(index: int, activity, st, usable_width: float) -> list:
    meta = Table(
        [[Paragraph(f"Category: {escape(activity.category or '')}", st["body"]),
          Paragraph(f"Date: {format_date(activity.created_at)}", st["body"])]],
        colWidths=[usable_width * 0.65, usable_width * 0.35],
    )
    meta.setStyle(TableStyle([
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("RIGHTPADDING", (0, 0), (-1, -1), 0),
        ("ALIGN", (1, 0), (1, 0), "RIGHT"),
    ]))
    block = [
        Paragraph(f"{index}. {escape(activity.title or '')}", st["entry"]),
        meta,
        Spacer(1, 3 * mm),
        Paragraph(escape(activity.description or "").replace("\n", "<br/>"), st["body"]),
    ]
    if activity.remarks:
        block.append(Paragraph("Faculty Remarks:", st["remarks_label"]))
        block.append(Paragraph(escape(activity.remarks).replace("\n", "<br/>"), st["body"]))
    # Title and metadata stay together; long descriptions may still split across pages
    return [KeepTogether(block[:2]), *block[2:]]


def build_portfolio_pdf(user, activities: list, generated_on: date | None = None) -> BytesIO:
    """Return a BytesIO containing the portfolio PDF for `user` and their approved `activities`."""
    st = _styles()
    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN + 5 * mm,
        title=f"{user.name} - Student Portfolio",
        author=user.name,
    )
    usable_width = doc.width

    story = [
        Paragraph("Student Portfolio", st["title"]),
        Spacer(1, 4 * mm),
        Paragraph(escape(user.name or ""), st["name"]),
        Paragraph(escape(user.email or ""), st["email"]),
        Spacer(1, 8 * mm),
        HRFlowable(width="100%", thickness=0.5, color=colors.black),
        Spacer(1, 8 * mm),
        Paragraph("Approved Activities", st["section"]),
    ]
    if not activities:
        story.append(Paragraph("No approved activities yet.", st["empty"]))
    for i, activity in enumerate(activities, start=1):
        story.extend(_entry(i, activity, st, usable_width))
        story.append(Spacer(1, 4 * mm))
        if i < len(activities):
            story.append(HRFlowable(width="95%", thickness=0.1, color=colors.HexColor("#C8C8C8")))
            story.append(Spacer(1, 4 * mm))

    stamp = format_date(generated_on or date.today())
    doc.build(story, canvasmaker=_numbered_canvas(stamp))
    buf.seek(0)
    return buf
