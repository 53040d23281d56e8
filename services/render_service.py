"""
Document rendering: on-screen HTML preview and the printable PDF.

Both read practitioner data from the document's snapshot only, never from the
live profile, so a document renders the same way years later.
"""

import datetime
import html
import io
import re
from dataclasses import dataclass, field

from core.errors import RenderError
from core.logger import get_logger
from core.time_utils import pretty_date
from models import DOCUMENT_LABELS

log = get_logger(__name__)

_PDF_AVAILABLE = True
try:
    from reportlab.lib.pagesizes import A4
    from reportlab.lib.units import mm
    from reportlab.lib.utils import simpleSplit
    from reportlab.pdfgen import canvas
except ImportError:
    _PDF_AVAILABLE = False

# Types whose footer may carry the practitioner's phone
PHONE_TYPES = {"receipt", "estimate", "clinical-record"}

BODY_FONT = "Helvetica"
BODY_SIZE = 11


@dataclass
class RenderRequest:
    type: str
    body: str = ""
    patient_name: str = ""
    date: datetime.date | None = None
    snapshot: dict = field(default_factory=dict)

    @classmethod
    def from_document(cls, document) -> "RenderRequest":
        return cls(
            type=document.type,
            body=document.body or "",
            patient_name=document.patient_name or "",
            date=document.date,
            snapshot=dict(document.snapshot or {}),
        )

    @property
    def label(self) -> str:
        return DOCUMENT_LABELS.get(self.type, "Documento")


# ------------------------------------------
# Content shared by preview and PDF
# ------------------------------------------
def header_lines(snap: dict) -> list[str]:
    return [
        snap.get("name") or "",
        snap.get("cro") or "",
        snap.get("title") or "",
        snap.get("specialty") or "",
    ]


def footer_lines(request: RenderRequest) -> list[str]:
    snap = request.snapshot
    lines = []
    address = snap.get("address") or ""
    if address:
        lines.extend(str(address).split("\n"))
    phone = snap.get("phone") or ""
    if request.type in PHONE_TYPES and snap.get("show_phone_in_pdf") and phone:
        lines.append(f"Contato: {phone}")
    lines.append(pretty_date(request.date))
    return lines


def pdf_filename(request: RenderRequest) -> str:
    safe = re.sub(r"[^a-zA-Z0-9\-_ ]", "", request.patient_name or "").strip()
    safe = re.sub(r"\s+", "_", safe) or "Paciente"
    day = request.date.isoformat() if request.date else ""
    return f"{request.label}_{safe}_{day}.pdf"


# ------------------------------------------
# HTML preview
# ------------------------------------------
def preview_html(request: RenderRequest) -> str:
    esc = html.escape
    name, cro, title, specialty = header_lines(request.snapshot)
    footer = "<br>".join(esc(line) for line in footer_lines(request))
    body = esc(request.body or "").replace("\n", "<br>")

    return f"""
<div style="max-width:560px;margin:auto;border:1px solid rgba(0,0,0,.14);border-radius:12px;padding:14px;background:#fff;color:#141414;font-family:Helvetica,Arial,sans-serif;">
  <div style="text-align:center;">
    <div style="font-weight:700;font-size:1.05em;">{esc(name)}</div>
    <div>{esc(cro)}</div>
    <div>{esc(title)}</div>
    <div>{esc(specialty)}</div>
  </div>
  <div style="font-weight:800;text-align:center;margin:10px 0 6px;">{esc(request.label)}</div>
  <div style="border:1px solid rgba(0,0,0,.3);border-radius:6px;min-height:220px;padding:10px;">{body}</div>
  <div style="text-align:center;font-size:.85em;margin-top:10px;">{footer}</div>
</div>
"""


# ------------------------------------------
# PDF
# ------------------------------------------
# Lines of any PDF comment or string that names the generating library.
# Blanked byte-for-byte so xref offsets stay valid. Strings may carry
# escaped parentheses, e.g. (ReportLab PDF Library - \(opensource\)).
_SIGNATURE_COMMENT = re.compile(rb"^(%[^\r\n]*?)([Rr]eport[Ll]ab[^\r\n]*)", re.M)
_SIGNATURE_STRING = re.compile(rb"\(((?:[^()\\\r\n]|\\.)*?[Rr]eport[Ll]ab(?:[^()\\\r\n]|\\.)*)\)")


def _scrub(data: bytes) -> bytes:
    data = _SIGNATURE_COMMENT.sub(lambda m: m.group(1) + b" " * len(m.group(2)), data)
    return _SIGNATURE_STRING.sub(lambda m: b"(" + b" " * len(m.group(1)) + b")", data)


def _wrap_body(text: str, width: float) -> list[str]:
    lines = []
    for raw in (text or "").split("\n"):
        wrapped = simpleSplit(raw, BODY_FONT, BODY_SIZE, width)
        lines.extend(wrapped or [""])
    return lines


def _draw_page(pdf, request: RenderRequest, lines: list[str]) -> None:
    page_w, page_h = A4
    margin = 14 * mm
    inner_w = page_w - 2 * margin
    center = page_w / 2

    # Frame
    pdf.setStrokeColorRGB(60 / 255, 60 / 255, 60 / 255)
    pdf.setLineWidth(0.3 * mm)
    pdf.line(margin, page_h - margin, page_w - margin, page_h - margin)
    pdf.line(margin, page_h - margin, margin, margin)
    pdf.line(page_w - margin, page_h - margin, page_w - margin, margin)
    pdf.setStrokeColorRGB(90 / 255, 90 / 255, 90 / 255)
    pdf.line(margin, margin, page_w - margin, margin)

    # Header, measured from the top edge
    name, cro, title, specialty = header_lines(request.snapshot)
    y = margin + 10 * mm
    pdf.setFillColorRGB(20 / 255, 20 / 255, 20 / 255)
    pdf.setFont("Helvetica-Bold", 13)
    pdf.drawCentredString(center, page_h - y, name)
    y += 6 * mm
    pdf.setFont("Helvetica", 11)
    pdf.drawCentredString(center, page_h - y, cro)
    y += 5 * mm
    pdf.setFont("Helvetica", 10.5)
    pdf.drawCentredString(center, page_h - y, title)
    y += 5 * mm
    pdf.drawCentredString(center, page_h - y, specialty)
    y += 8 * mm
    pdf.setFont("Helvetica-Bold", 12)
    pdf.drawCentredString(center, page_h - y, request.label)

    # Body box
    y += 6 * mm
    box_h = 165 * mm
    pdf.setStrokeColorRGB(120 / 255, 120 / 255, 120 / 255)
    pdf.setLineWidth(0.2 * mm)
    pdf.roundRect(margin + 2 * mm, page_h - y - box_h, inner_w - 4 * mm, box_h, 2 * mm)

    text = pdf.beginText(margin + 6 * mm, page_h - y - 8 * mm)
    text.setFont(BODY_FONT, BODY_SIZE)
    text.setLeading(BODY_SIZE * 1.15)
    text.setFillColorRGB(10 / 255, 10 / 255, 10 / 255)
    for line in lines:
        text.textLine(line)
    pdf.drawText(text)

    # Footer, bottom aligned
    footer = footer_lines(request)
    pdf.setFont("Helvetica", 9.5)
    pdf.setFillColorRGB(40 / 255, 40 / 255, 40 / 255)
    fy = page_h - margin - len(footer) * 4 * mm
    for line in footer:
        pdf.drawCentredString(center, page_h - fy, line)
        fy += 4.2 * mm


def _lines_per_page() -> int:
    # Box height minus the top padding, divided by the line leading
    return int((165 * mm - 10 * mm) // (BODY_SIZE * 1.15))


def render_pdf(request: RenderRequest) -> bytes:
    """A4 PDF bytes. Bodies longer than one box continue on further pages."""
    if not _PDF_AVAILABLE:
        raise RenderError("Não foi possível gerar o documento: gerador de PDF indisponível.")

    try:
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)
        pdf.setTitle(f"{request.label} - {request.patient_name}".strip(" -"))
        pdf.setAuthor(request.snapshot.get("name") or "")
        pdf.setCreator("")
        pdf.setProducer("")

        inner_w = A4[0] - 2 * 14 * mm
        lines = _wrap_body(request.body, inner_w - 12 * mm)
        per_page = _lines_per_page()
        chunks = [lines[i:i + per_page] for i in range(0, len(lines), per_page)] or [[]]

        for chunk in chunks:
            _draw_page(pdf, request, chunk)
            pdf.showPage()
        pdf.save()
    except Exception as exc:
        log.error("PDF rendering failed for %s: %s", request.label, exc)
        raise RenderError("Falha ao gerar PDF.") from exc

    return _scrub(buffer.getvalue())


def render_document_pdf(document) -> tuple[str, bytes]:
    """(file name, PDF bytes) for a stored document."""
    request = RenderRequest.from_document(document)
    return pdf_filename(request), render_pdf(request)
