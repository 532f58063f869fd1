from __future__ import annotations

import io
import json
import logging
import re
import zipfile
from datetime import datetime
from typing import Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..auth.tokens import AdminIdentity
from ..common.datetime_utils import now_local
from ..common.uploads import UploadStore
from ..leaving.model import LeavingRequest
from ..leaving.repository import LeavingRequestRepository
from ..members.model import Member, age_on
from ..members.service import MemberService
from ..payments.model import Payment
from ..payments.repository import PaymentRepository

logger = logging.getLogger(__name__)

PAYMENT_HISTORY_LIMIT = 240


def _styles():
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "title", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=20, alignment=1, leading=24
        ),
        "section": ParagraphStyle(
            "section", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=13, leading=18, spaceBefore=8
        ),
        "meta": ParagraphStyle("meta", parent=base["Normal"], fontName="Helvetica", fontSize=9, alignment=1),
        "cell": ParagraphStyle("cell", parent=base["Normal"], fontName="Helvetica", fontSize=9, leading=11),
    }


def _grid(rows: list[list], col_widths: list[float], *, header: bool = True) -> Table:
    t = Table(rows, colWidths=col_widths, repeatRows=1 if header else 0)
    style = [
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]
    if header:
        style += [
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1F3B73")),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ]
    t.setStyle(TableStyle(style))
    return t


def _text(value) -> str:
    if value is None:
        return "-"
    if hasattr(value, "strftime"):
        return value.strftime("%d-%m-%Y")
    return str(value)


def render_member_pdf(
    member: Member,
    payments: Sequence[Payment],
    leaving: Sequence[LeavingRequest],
    *,
    generated_at: datetime,
) -> bytes:
    s = _styles()
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=1.5 * cm,
        rightMargin=1.5 * cm,
        topMargin=1.5 * cm,
        bottomMargin=1.5 * cm,
        title=f"Member report {member.member_id}",
    )
    elements = [
        Paragraph("Member Report", s["title"]),
        Spacer(1, 4),
        Paragraph(f"Generated on {generated_at.strftime('%d-%m-%Y %H:%M')}", s["meta"]),
        Spacer(1, 10),
        Paragraph("Profile", s["section"]),
    ]

    profile = [
        ["Member ID", member.member_id, "Name", member.name],
        ["Email", member.email, "Phone", member.phone],
        ["Gender", member.gender.value, "Age", str(age_on(member.dob, generated_at.date()))],
        ["Work", member.work, "Location", member.location],
        ["PG", member.pg_name or "-", "Room", member.room_no or "-"],
        ["Rent type", member.rent_type.value, "Advance", f"{member.advance_amount:.2f}"],
        ["Joined", _text(member.date_of_joining), "Relieving", _text(member.date_of_relieving)],
        ["Status", "Active" if member.is_active else "Inactive", "Price/day", _text(member.price_per_day)],
    ]
    elements.append(_grid(profile, [3 * cm, 5.5 * cm, 3 * cm, 5.5 * cm], header=False))

    elements.append(Paragraph("Payments", s["section"]))
    if payments:
        rows = [["Period", "Attempt", "Amount", "Due", "Paid", "Payment", "Approval"]]
        for p in payments:
            rows.append(
                [
                    f"{p.month:02d}/{p.year}",
                    str(p.attempt_number),
                    f"{p.amount:.2f}",
                    _text(p.due_date),
                    _text(p.paid_date),
                    p.payment_status.value,
                    p.approval_status.value,
                ]
            )
        elements.append(_grid(rows, [2.2 * cm, 1.6 * cm, 2.4 * cm, 2.6 * cm, 2.6 * cm, 2.8 * cm, 2.8 * cm]))
    else:
        elements.append(Paragraph("No payments recorded.", s["cell"]))

    elements.append(Paragraph("Leaving requests", s["section"]))
    if leaving:
        rows = [["Requested", "Leave date", "Status", "Pending dues", "Final amount", "Settled"]]
        for r in leaving:
            rows.append(
                [
                    _text(r.created_at),
                    _text(r.requested_leave_date),
                    r.status.value,
                    _text(r.pending_dues),
                    _text(r.final_amount),
                    _text(r.settled_date),
                ]
            )
        elements.append(_grid(rows, [2.9 * cm, 2.9 * cm, 2.9 * cm, 2.9 * cm, 2.9 * cm, 2.5 * cm]))
    else:
        elements.append(Paragraph("No leaving requests.", s["cell"]))

    doc.build(elements)
    return buf.getvalue()


def report_filename(member: Member) -> str:
    return f"{member.member_id}_{re.sub(r'[^a-z0-9]', '_', member.name, flags=re.I)}_complete_report.zip"


class MemberReportService:
    """ZIP download: PDF summary, the member's uploaded files and a JSON manifest."""

    def __init__(
        self,
        member_service: MemberService,
        payments: PaymentRepository,
        leaving: LeavingRequestRepository,
        *,
        uploads: Optional[UploadStore] = None,
    ):
        self._members = member_service
        self._payments = payments
        self._leaving = leaving
        self._uploads = uploads

    def _files(self, member: Member, payments: Sequence[Payment], leaving: Sequence[LeavingRequest]) -> dict:
        groups = {
            "profile": [member.photo_url, member.digital_signature],
            "documents": [member.document_url],
            "payments": [url for p in payments for url in p.screenshots()],
            "settlements": [r.settlement_proof for r in leaving],
        }
        return {folder: [u for u in urls if u] for folder, urls in groups.items()}

    def build(self, admin: AdminIdentity, member_pk: int, *, now: Optional[datetime] = None) -> tuple[str, io.BytesIO]:
        now = now or now_local()
        member = self._members.get_scoped(admin, member_pk)
        payments = list(self._payments.recent_for_member(member_id=member.id, limit=PAYMENT_HISTORY_LIMIT))
        leaving = list(self._leaving.list_for_member(member.id))

        manifest = {
            "memberId": member.member_id,
            "name": member.name,
            "generatedAt": now.isoformat(),
            "report": "report.pdf",
            "files": [],
            "missing": [],
        }

        output = io.BytesIO()
        with zipfile.ZipFile(output, "w", zipfile.ZIP_DEFLATED) as z:
            z.writestr("report.pdf", render_member_pdf(member, payments, leaving, generated_at=now))
            for folder, urls in self._files(member, payments, leaving).items():
                for url in urls:
                    path = self._uploads.path_for(url) if self._uploads else None
                    if path is None or not path.is_file():
                        logger.warning("Member %s file missing from report: %s", member.member_id, url)
                        manifest["missing"].append(url)
                        continue
                    arcname = f"{folder}/{path.name}"
                    z.write(path, arcname)
                    manifest["files"].append({"source": url, "path": arcname})
            z.writestr("manifest.json", json.dumps(manifest, indent=2))

        output.seek(0)
        logger.info("Member report built for %s (%s files)", member.member_id, len(manifest["files"]))
        return report_filename(member), output
