"""
Utils module - small text helpers shared by the routes, services and reports
"""
import re
import logging

from config import ALLOWED_EXTENSIONS

logger = logging.getLogger(__name__)

YEAR_LABEL = re.compile(r'^\s*(\d{4})\s*-\s*(\d{4})\s*$')


def normalize_student_number(student_number):
    """Normalize a student number: trimmed, uppercase, no inner spaces."""
    if student_number is None:
        return ''
    return re.sub(r'\s+', '', str(student_number)).upper()


def allowed_file(filename):
    """Check if file has an allowed extension."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def parse_year_label(label):
    """Return (start, end) for a 'YYYY-YYYY' label, or None."""
    if not label:
        return None
    match = YEAR_LABEL.match(str(label))
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def projected_years(label, count=3):
    """The active academic year followed by the next ones.

    '2025-2026' -> ['2025-2026', '2026-2027', '2027-2028']. An unparsable
    label yields 'N/A' for every slot.
    """
    parsed = parse_year_label(label)
    if parsed is None:
        logger.warning(f"Cannot project academic years from label: {label!r}")
        return ['N/A'] * count
    start, end = parsed
    return [f"{start + i}-{end + i}" for i in range(count)]


def normalize_semester(semester):
    """Map '1st Semester', 'First', '2nd' and the like to '1st' or '2nd'."""
    if not semester:
        return None
    text = str(semester).strip().lower()
    if text.startswith("semester"):
        text = text[len("semester"):].strip()
    if '1st' in text or 'first' in text or text == '1':
        return '1st'
    if '2nd' in text or 'second' in text or text == '2':
        return '2nd'
    return None


def full_name(first_name, last_name):
    return f"{first_name or ''} {last_name or ''}".strip()
