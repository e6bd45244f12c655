import io
import logging
from xml.sax.saxutils import escape
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, Image

from config import REPORT_FOOTER, REPORT_INSTITUTION
from qce.services.scoring import format_score

logger = logging.getLogger(__name__)

NA = 'N/A'


def create_category_graph(categories):
    """
    Bar graph of category averages (0-5). Categories without data are drawn
    at zero height and labelled N/A.
    """
    labels = [c['code'] for c in categories]
    values = [c['average'] or 0 for c in categories]

    fig, ax = plt.subplots(figsize=(8, 3), dpi=300)
    try:
        bars = ax.bar(labels, values, color='#1f4e79')

        ax.set_xlabel('')
        ax.set_ylabel('Average rating')
        ax.set_title('')
        ax.set_ylim(0, 5)
        ax.tick_params(axis='both', labelsize=9)

        for bar, category in zip(bars, categories):
            ax.text(bar.get_x() + bar.get_width()/2.0, bar.get_height(),
                    format_score(category['average']),
                    ha='center', va='bottom',
                    fontsize=9)

        ax.grid(True, axis='y', linestyle='--', alpha=0.7)
        fig.tight_layout()

        buf = io.BytesIO()
        fig.savefig(buf, format='png', bbox_inches='tight', dpi=300)
    finally:
        plt.close(fig)
    buf.seek(0)
    return buf


class FooterCanvas:
    def __init__(self, canvas, doc):
        self.canvas = canvas
        self.doc = doc

    def draw_footer(self):
        self.canvas.saveState()
        self.canvas.setFont("Helvetica", 7)
        self.canvas.setFillColor(colors.gray)

        self.canvas.drawString(25, 20, REPORT_FOOTER)

        page = f"Page {self.doc.page}"
        right_text_width = self.canvas.stringWidth(page, "Helvetica", 7)
        self.canvas.drawString(self.doc.pagesize[0] - right_text_width - 25, 20, page)

        self.canvas.restoreState()


def _styles():
    styles = getSampleStyleSheet()
    return {
        'title': ParagraphStyle('AnnexTitle', parent=styles['Heading1'], fontSize=12, alignment=1, spaceAfter=2),
        'subtitle': ParagraphStyle('AnnexSubTitle', parent=styles['Normal'], fontSize=10, alignment=1, spaceAfter=2),
        'info': ParagraphStyle('AnnexInfo', parent=styles['Normal'], fontSize=9, spaceAfter=2),
        'heading': ParagraphStyle('AnnexHeading', parent=styles['Normal'], fontSize=9, leading=11,
                                  fontName='Helvetica-Bold', spaceBefore=6, spaceAfter=2),
        'cell': ParagraphStyle('AnnexCell', parent=styles['Normal'], fontSize=8, leading=9),
        'body': ParagraphStyle('AnnexBody', parent=styles['Normal'], fontSize=9, leading=12),
    }


GRID_STYLE = [
    ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
    ('FONTSIZE', (0, 0), (-1, -1), 8),
    ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
    ('BACKGROUND', (0, 0), (-1, 0), colors.lightgrey),
    ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
    ('ALIGN', (1, 0), (-1, -1), 'CENTER'),
    ('TOPPADDING', (0, 0), (-1, -1), 2),
    ('BOTTOMPADDING', (0, 0), (-1, -1), 2),
]


def _header(elements, styles, title, data):
    faculty = data['faculty']
    elements.append(Paragraph(REPORT_INSTITUTION, styles['title']))
    elements.append(Paragraph(title, styles['subtitle']))
    elements.append(Spacer(1, 6))
    elements.append(Paragraph(f"Name of Faculty: <b>{escape(faculty['full_name'])}</b>", styles['info']))
    elements.append(Paragraph(f"Academic Rank: {faculty['position'] or NA}", styles['info']))
    elements.append(Paragraph(f"College: {faculty.get('college_name') or NA}", styles['info']))
    elements.append(Spacer(1, 6))


def _category_tables(elements, styles, categories, width):
    for category in categories:
        elements.append(Paragraph(category['label'], styles['heading']))
        rows = [['Item', 'Indicator', 'Average']]
        for indicator in category['indicators']:
            rows.append([
                str(indicator['number']),
                Paragraph(indicator['text'], styles['cell']),
                format_score(indicator['average']),
            ])
        rows.append(['', 'Category average', format_score(category['average'])])
        table = Table(rows, colWidths=[0.5 * inch, width - 1.5 * inch, 1.0 * inch])
        table.setStyle(TableStyle(GRID_STYLE + [('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold')]))
        elements.append(table)


def _version_tables(elements, styles, data, width):
    """Category tables, one set per criteria version when several were used."""
    versions = data.get('versions') or []
    if len(versions) <= 1:
        _category_tables(elements, styles, data['categories'], width)
        return
    for version in versions:
        elements.append(Paragraph(
            f"{version['criteria_type'].capitalize()} criteria: {version['evaluations']} evaluation(s), "
            f"average {format_score(version['overall_average'])}",
            styles['subtitle']))
        _category_tables(elements, styles, version['categories'], width)


def _card_rows(label, card):
    if not card['applicable']:
        return [label, 'Not Applicable', '', '']
    return [
        label,
        format_score(card['average']),
        format_score(card['percentage']),
        format_score(card['points']),
    ]


def _build(build_elements, title):
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        rightMargin=30,
        leftMargin=30,
        topMargin=30,
        bottomMargin=40,
        title=title,
    )
    elements = build_elements(doc)

    def footer_func(canvas, doc):
        FooterCanvas(canvas, doc).draw_footer()

    try:
        doc.build(elements, onFirstPage=footer_func, onLaterPages=footer_func)
    except Exception as e:
        logger.error(f"PDF generation failed: {str(e)}")
        raise
    logger.info(f"Report generated: {title}")
    return buf.getvalue()


def generate_annex_a(data):
    """ANNEX A: itemized student evaluation of teachers."""
    styles = _styles()

    def elements(doc):
        out = []
        _header(out, styles, "ANNEX A - STUDENT EVALUATION OF TEACHERS (SET)", data)
        out.append(Paragraph(f"Number of student evaluations: {data['evaluations']}", styles['info']))
        _version_tables(out, styles, data, doc.width)
        out.append(Spacer(1, 6))
        out.append(Paragraph(f"Overall average: <b>{format_score(data['overall_average'])}</b>", styles['info']))

        if any(c['average'] is not None for c in data['categories']):
            img = Image(create_category_graph(data['categories']))
            img.drawWidth = doc.width
            img.drawHeight = 2.2 * inch
            out.append(img)

        out.append(Paragraph("Scoring", styles['heading']))
        rows = [
            ['Component', 'Average', 'Percentage', 'Points'],
            _card_rows('Student (x 0.36)', data['student_card']),
            _card_rows('Supervisor (x 0.24)', data['supervisor_card']),
            ['Total', '', '', f"{format_score(data['total_points'])} / {data['maximum_points']}"],
        ]
        table = Table(rows, colWidths=[doc.width / 4.0] * 4)
        table.setStyle(TableStyle(GRID_STYLE))
        out.append(table)
        return out

    return _build(elements, f"Annex A - {data['faculty']['full_name']}")


def generate_annex_b(data):
    """ANNEX B: computation summary across the projected academic years."""
    styles = _styles()

    def elements(doc):
        out = []
        _header(out, styles, "ANNEX B - SUMMARY OF COMPUTATION", data)

        rows = [['Academic Year', 'Semester', 'SET', 'SEF']]
        for period in data['periods']:
            rows.append([
                period['year'],
                period['semester'],
                NA if data['supervisor_only'] else format_score(period['student']),
                format_score(period['supervisor']),
            ])
        table = Table(rows, colWidths=[doc.width / 4.0] * 4)
        table.setStyle(TableStyle(GRID_STYLE))
        out.append(table)
        out.append(Spacer(1, 8))

        rows = [['Component', 'Total', 'Divisor', 'Average', 'Percentage', 'Points']]
        for label, component in (('SET (x 0.36)', data['student']), ('SEF (x 0.24)', data['supervisor'])):
            if not component['applicable']:
                rows.append([label, 'Not Applicable', '', '', '', ''])
                continue
            rows.append([
                label,
                format_score(component['total']),
                str(component['divisor']),
                format_score(component['average']),
                format_score(component['percentage']),
                format_score(component['points']),
            ])
        rows.append(['Total Points', '', '', '', '',
                     f"{format_score(data['total_points'])} / {data['maximum_points']}"])
        table = Table(rows, colWidths=[doc.width / 6.0] * 6)
        table.setStyle(TableStyle(GRID_STYLE))
        out.append(table)

        if data['performance']:
            out.append(Spacer(1, 6))
            out.append(Paragraph(f"Performance rating: <b>{data['performance']}</b>", styles['info']))
        return out

    return _build(elements, f"Annex B - {data['faculty']['full_name']}")


def generate_annex_c(data):
    """ANNEX C: individual performance report with comments."""
    styles = _styles()

    def elements(doc):
        out = []
        _header(out, styles, "ANNEX C - INDIVIDUAL FACULTY PERFORMANCE REPORT", data)
        _version_tables(out, styles, data, doc.width)
        out.append(Spacer(1, 6))
        out.append(Paragraph(
            f"Supervisor rating: <b>{format_score(data['overall_average'])}</b>"
            f"  ({format_score(data['percentage'])}%, {format_score(data['points'])} points)",
            styles['info']))

        if data['supervisors']:
            out.append(Paragraph("Rated by", styles['heading']))
            rows = [['Name', 'Position', 'Date', 'Score (%)']]
            for supervisor in data['supervisors']:
                rows.append([supervisor['name'] or NA, supervisor['position'] or NA,
                             supervisor['date'] or NA, format_score(supervisor['total_score'])])
            table = Table(rows, colWidths=[doc.width / 4.0] * 4)
            table.setStyle(TableStyle(GRID_STYLE))
            out.append(table)

        out.append(Paragraph("Comments", styles['heading']))
        if not data['comments']:
            out.append(Paragraph("No comments were submitted.", styles['body']))
        for comment in data['comments']:
            source = comment['evaluator'] or comment['evaluator_role']
            out.append(Paragraph(f"<i>{escape(source)}:</i> {escape(comment['comment'])}", styles['body']))
        return out

    return _build(elements, f"Annex C - {data['faculty']['full_name']}")


def generate_annex_d(data):
    """ANNEX D: acknowledgement form."""
    styles = _styles()

    def elements(doc):
        out = []
        _header(out, styles, "ANNEX D - ACKNOWLEDGEMENT FORM", data)
        period = f"{data['semester'] or NA} Semester, A.Y. {data['academic_year'] or NA}"
        out.append(Paragraph(f"Rating Period: {period}", styles['info']))
        out.append(Spacer(1, 6))

        rows = [
            ['Instrument', 'Rating (%)'],
            ['Student Evaluation of Teachers (SET)',
             'Not Applicable' if data['supervisor_only'] else format_score(data['set_percentage'])],
            ["Supervisor's Evaluation of Faculty (SEF)", format_score(data['sef_percentage'])],
        ]
        table = Table(rows, colWidths=[doc.width * 0.7, doc.width * 0.3])
        table.setStyle(TableStyle(GRID_STYLE))
        out.append(table)
        out.append(Spacer(1, 12))
        out.append(Paragraph(data['acknowledgement'], styles['body']))
        out.append(Spacer(1, 30))

        blocks = []
        for signature in data['signatures']:
            lines = [[signature['role']]]
            for field in signature['fields']:
                lines.append([f"{field}: ______________________"])
            blocks.append(Table(lines, style=TableStyle([
                ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
                ('FONTSIZE', (0, 0), (-1, -1), 8),
                ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
            ])))
        out.append(Table([blocks], colWidths=[doc.width / 2.0] * 2))
        return out

    return _build(elements, f"Annex D - {data['faculty']['full_name']}")


GENERATORS = {
    'A': generate_annex_a,
    'B': generate_annex_b,
    'C': generate_annex_c,
    'D': generate_annex_d,
}


def generate_annex_pdf(data):
    """Render annex data (from qce.services.annex_service) as PDF bytes."""
    return GENERATORS[data['annex']](data)
