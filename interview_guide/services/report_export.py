"""PDF export of interview reports using reportlab."""

import logging
from io import BytesIO

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfgen import canvas

from interview_guide.schemas.interview import InterviewReportResponse

logger = logging.getLogger(__name__)

MARGIN_X = 40
TOP_MARGIN = 50
BOTTOM_MARGIN = 40
LINE_HEIGHT = 15
FONT_SIZE = 10
TITLE_SIZE = 15


def report_to_lines(report: InterviewReportResponse) -> list[str]:
    """Plain-text layout of a report, one entry per paragraph."""
    lines = [
        f"Session: {report.session_id}",
        f"Generated: {report.created_at}",
        f"Overall score: {report.overall_score} / 100 ({report.total_questions} questions)",
        "",
        "Category scores:",
        *[
            f"- {c.category}: {c.score} ({c.question_count} questions)"
            for c in report.category_scores
        ],
        "",
        "Overall feedback:",
        report.overall_feedback,
        "",
        "Strengths:",
        *[f"- {item}" for item in report.strengths],
        "",
        "Areas to improve:",
        *[f"- {item}" for item in report.improvements],
    ]

    references = {r.question_index: r for r in report.reference_answers}
    for detail in report.question_details:
        lines += [
            "",
            f"Q{detail.question_index + 1} [{detail.category}] score {detail.score}",
            detail.question,
            f"Your answer: {detail.user_answer or '(no answer)'}",
            f"Feedback: {detail.feedback}",
        ]
        reference = references.get(detail.question_index)
        if reference is not None:
            lines.append(f"Reference answer: {reference.reference_answer}")
            lines += [f"  * {point}" for point in reference.key_points]
    return lines


def _font_name() -> str:
    # CID font keeps non-Latin answers readable; Helvetica otherwise
    try:
        pdfmetrics.registerFont(UnicodeCIDFont("STSong-Light"))
        return "STSong-Light"
    except Exception as e:
        logger.debug(f"CID font unavailable, using Helvetica: {e}")
        return "Helvetica"


def render_report_pdf(report: InterviewReportResponse) -> bytes:
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(f"Interview report {report.session_id}")
    width, height = A4
    font_name = _font_name()
    max_width = width - 2 * MARGIN_X

    y = height - TOP_MARGIN
    pdf.setFont(font_name, TITLE_SIZE)
    pdf.drawString(MARGIN_X, y, "Mock Interview Report")
    y -= LINE_HEIGHT * 2
    pdf.setFont(font_name, FONT_SIZE)

    for paragraph in report_to_lines(report):
        chunks = simpleSplit(paragraph, font_name, FONT_SIZE, max_width) or [""]
        for chunk in chunks:
            if y < BOTTOM_MARGIN:
                pdf.showPage()
                pdf.setFont(font_name, FONT_SIZE)
                y = height - TOP_MARGIN
            pdf.drawString(MARGIN_X, y, chunk)
            y -= LINE_HEIGHT

    pdf.save()
    return buffer.getvalue()
