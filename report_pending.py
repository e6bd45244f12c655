import io
import logging
from datetime import datetime
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle

from config import REPORT_FOOTER, REPORT_INSTITUTION
from qce.models import AcademicYear
from qce.services.code_service import list_active_codes

logger = logging.getLogger(__name__)


def pending_assignments(academic_year_id=None, college_id=None):
    """Issued codes that nobody has submitted an evaluation against."""
    codes = list_active_codes(academic_year_id=academic_year_id, college_id=college_id)
    pending = [code for code in codes if code['submissions'] == 0]
    logger.info(f"Pending evaluations: {len(pending)} of {len(codes)} active codes")
    return codes, pending


def generate_pending_report(academic_year_id=None, college_id=None):
    """
    Generate a PDF listing evaluation codes with no submitted evaluation.

    Args:
        academic_year_id: limit to one academic period (default: the active one)
        college_id: limit to one college's faculty

    Returns:
        PDF bytes
    """
    if academic_year_id is None:
        active = AcademicYear.get_active()
        academic_year_id = active['id'] if active else None
    period = AcademicYear.get_by_id(academic_year_id) if academic_year_id is not None else None

    codes, pending = pending_assignments(academic_year_id, college_id)

    def add_watermark(canvas, doc):
        canvas.saveState()
        canvas.setFont("Helvetica-Oblique", 7)
        canvas.setFillColor(colors.grey)
        canvas.drawCentredString(doc.pagesize[0] / 2, doc.bottomMargin / 3, REPORT_FOOTER)
        canvas.restoreState()

    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        rightMargin=36,
        leftMargin=36,
        topMargin=36,
        bottomMargin=36
    )

    styles = getSampleStyleSheet()
    centered = ParagraphStyle('Centered', parent=styles['Normal'], alignment=1)
    content = []

    content.append(Paragraph(REPORT_INSTITUTION, ParagraphStyle('PendingTitle', parent=styles['Heading1'], alignment=1)))
    content.append(Spacer(1, 12))
    content.append(Paragraph("Pending Faculty Evaluations", ParagraphStyle('PendingSub', parent=styles['Heading2'], alignment=1)))
    content.append(Spacer(1, 12))

    if period:
        content.append(Paragraph(f"Academic Year: {period['year_label']} | Semester: {period['semester']}", centered))
    content.append(Paragraph(f"Generated on: {datetime.now().strftime('%d-%m-%Y %H:%M:%S')}", centered))
    content.append(Spacer(1, 18))

    content.append(Paragraph(
        f"Active Codes: {len(codes)} | With Submissions: {len(codes) - len(pending)} | Pending: {len(pending)}",
        centered
    ))
    content.append(Spacer(1, 18))

    if pending:
        table_data = [['#', 'Code', 'Faculty', 'Evaluator', 'Subject', 'Section']]
        for i, code in enumerate(pending, 1):
            table_data.append([
                i,
                code['code'],
                code['evaluatee_name'],
                code['evaluator_role'],
                code['subject_code'] or '-',
                code['section'] or '-',
            ])

        table = Table(table_data, repeatRows=1)
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.lightblue),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 8),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
        ]))
        content.append(table)
    else:
        content.append(Paragraph("Every issued code has at least one submitted evaluation.",
                                 ParagraphStyle('Done', parent=styles['Heading3'], alignment=1)))

    try:
        doc.build(content, onFirstPage=add_watermark, onLaterPages=add_watermark)
    except Exception as e:
        logger.error(f"Pending report generation failed: {e}")
        raise
    logger.info("Pending evaluations report generated")
    return buf.getvalue()


if __name__ == "__main__":
    import sys

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )
    output = sys.argv[1] if len(sys.argv) > 1 else 'pending_evaluations.pdf'
    with open(output, 'wb') as f:
        f.write(generate_pending_report())
    logger.info(f"Report written to {output}")
