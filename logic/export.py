"""Printable PDF rendering of a case."""
import io
import logging
import os
import subprocess
import sys
from datetime import datetime
from typing import List

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfgen import canvas

from logic.attachments import format_size
from model.models import Case

logger = logging.getLogger(__name__)

FONT = "STSong-Light"
MARGIN = 40

pdfmetrics.registerFont(UnicodeCIDFont(FONT))


def wrap(text: str, size: float, max_width: float) -> List[str]:
    """Break text into lines by character width; CJK text has no spaces to split on."""
    lines: List[str] = []
    for para in (text or "").splitlines() or [""]:
        line = ""
        for ch in para:
            if line and pdfmetrics.stringWidth(line + ch, FONT, size) > max_width:
                lines.append(line)
                line = ch
            else:
                line += ch
        lines.append(line)
    return lines


def case_to_pdf(case: Case) -> io.BytesIO:
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    text_width = width - 2 * MARGIN
    state = {"y": height - 50, "page": 1}

    def footer():
        c.setFont(FONT, 8)
        c.setFillColor(colors.gray)
        c.drawString(MARGIN, 30, f"打印时间 {datetime.now().strftime('%Y-%m-%d %H:%M')}")
        c.drawRightString(width - MARGIN, 30, f"第 {state['page']} 页")

    def ensure_room(needed: float):
        if state["y"] - needed < 60:
            footer()
            c.showPage()
            state["page"] += 1
            state["y"] = height - 50

    def paragraph(text: str, size: float = 10, indent: float = 0, color=colors.black):
        for line in wrap(text, size, text_width - indent):
            ensure_room(size + 4)
            c.setFont(FONT, size)
            c.setFillColor(color)
            c.drawString(MARGIN + indent, state["y"], line)
            state["y"] -= size + 4

    def section(header: str):
        ensure_room(40)
        state["y"] -= 10
        c.setFillColor(colors.darkblue)
        c.setFont(FONT, 13)
        c.drawString(MARGIN, state["y"], header)
        c.line(MARGIN, state["y"] - 5, width - MARGIN, state["y"] - 5)
        state["y"] -= 24

    # Header
    paragraph(case.title, size=18)
    meta = f"作者 {case.author or '-'}    创建 {case.create_date or '-'}    更新 {case.update_date or '-'}"
    paragraph(meta, size=9, color=colors.gray)
    if case.tags:
        paragraph("标签: " + "、".join(case.tags), size=9, color=colors.gray)

    section("一、案件记录")
    paragraph(case.case_record)

    section("二、法律规定与风险")
    for p in case.legal_provisions:
        paragraph(p.law_name, size=11)
        paragraph(p.content, indent=12)
        state["y"] -= 4
    if case.risk_summary:
        paragraph("风险提示: " + case.risk_summary, color=colors.darkred)

    section("三、防控措施")
    for i, m in enumerate(case.prevention_measures, start=1):
        paragraph(f"{i}. {m}")

    if case.attachments:
        section("附件资料")
        for a in case.attachments:
            paragraph(f"• {a.file_name}  ({format_size(a.file_size)})")

    footer()
    c.save()
    buffer.seek(0)
    return buffer


def export_case(case: Case, path: str) -> str:
    with open(path, "wb") as f:
        f.write(case_to_pdf(case).getvalue())
    logger.info("Exported case %s to %s", case.id, path)
    return path


def open_with_system(path: str) -> None:
    """Hand a file to the OS default viewer (which offers printing)."""
    if sys.platform.startswith("win"):
        os.startfile(path)
    elif sys.platform == "darwin":
        subprocess.Popen(["open", path])
    else:
        subprocess.Popen(["xdg-open", path])
