"""
Service for handling Excel roster uploads (students and faculty).
"""

import pandas as pd
import logging
from typing import Tuple, List, Optional
from qce.models import Faculty, Student

logger = logging.getLogger(__name__)

# Required and optional headers per roster
STUDENT_HEADERS = ['student_number', 'full_name']
STUDENT_OPTIONAL = ['program', 'year_level', 'section']

FACULTY_HEADERS = ['first_name', 'last_name', 'position']
FACULTY_OPTIONAL = ['email']


def _clean(value) -> Optional[str]:
    if pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def validate_excel_file(file_path: str, required: List[str],
                        optional: List[str] = ()) -> Tuple[bool, str, pd.DataFrame]:
    """
    Validate an uploaded roster file.

    Returns:
        Tuple of (is_valid, error_message, dataframe)
    """
    try:
        df = pd.read_excel(file_path)

        if df.empty:
            return False, "Excel file is empty", None

        # Headers are matched case-insensitively, spaces read as underscores
        df.columns = df.columns.astype(str).str.strip().str.lower().str.replace(' ', '_')

        missing_headers = [h for h in required if h not in df.columns]
        if missing_headers:
            return False, f"Missing required columns: {', '.join(missing_headers)}. Required: {', '.join(required)}", None

        if df[required].isnull().any().any():
            return False, "Excel file contains empty values in required columns", None

        for header in required:
            df[header] = df[header].astype(str).str.strip()
        for header in optional:
            if header in df.columns:
                df[header] = df[header].apply(_clean)
            else:
                df[header] = None

        # Remove any rows where a required value is blank after stripping
        df = df[(df[required] != '').all(axis=1)]

        if df.empty:
            return False, "No valid records found after cleaning", None

        return True, "", df

    except Exception as e:
        logger.error(f"Error validating Excel file: {e}")
        return False, f"Error reading Excel file: {str(e)}", None


def _summary(noun, total, added_count, duplicate_count, duplicates):
    stats = {
        'total': total,
        'added': added_count,
        'duplicates': duplicate_count,
        'duplicate_list': duplicates[:20]  # Limit to first 20 for display
    }

    if added_count > 0:
        message = f"Successfully added {added_count} {noun}. "
        if duplicate_count > 0:
            message += f"{duplicate_count} duplicates were skipped."
        logger.info(message.strip())
        return True, message.strip(), stats
    return False, f"No new {noun} added. All {duplicate_count} records were duplicates.", stats


def process_student_excel(file_path: str) -> Tuple[bool, str, dict]:
    """
    Process an uploaded student roster and add the students to the database.

    Returns:
        Tuple of (success, message, stats_dict)
    """
    is_valid, error_msg, df = validate_excel_file(file_path, STUDENT_HEADERS, STUDENT_OPTIONAL)
    if not is_valid:
        return False, error_msg, {}

    students_data = []
    for _, row in df.iterrows():
        students_data.append((
            row['student_number'],
            row['full_name'],
            row['program'],
            row['year_level'],
            row['section'],
        ))

    added_count, duplicate_count, duplicates = Student.bulk_add(students_data)
    return _summary('students', len(students_data), added_count, duplicate_count, duplicates)


def process_faculty_excel(file_path: str) -> Tuple[bool, str, dict]:
    """
    Process an uploaded faculty roster. Rows whose email is already on
    file are skipped.

    Returns:
        Tuple of (success, message, stats_dict)
    """
    is_valid, error_msg, df = validate_excel_file(file_path, FACULTY_HEADERS, FACULTY_OPTIONAL)
    if not is_valid:
        return False, error_msg, {}

    faculty_data = []
    for _, row in df.iterrows():
        faculty_data.append((
            row['first_name'],
            row['last_name'],
            row['email'],
            row['position'],
        ))

    added_count, duplicate_count, duplicates = Faculty.bulk_add(faculty_data)
    return _summary('faculty members', len(faculty_data), added_count, duplicate_count, duplicates)


SAMPLES = {
    'students': {
        'student_number': ['2025-00001', '2025-00002', '2025-00003'],
        'full_name': ['Juan Dela Cruz', 'Maria Santos', 'Jose Reyes'],
        'program': ['BSIT', 'BSIT', 'BSIT'],
        'year_level': ['1', '1', '1'],
        'section': ['A', 'A', 'B'],
    },
    'faculty': {
        'first_name': ['Ana', 'Ramon', 'Liza'],
        'last_name': ['Garcia', 'Villanueva', 'Mendoza'],
        'position': ['Instructor I', 'Assistant Professor II', 'Dean'],
        'email': ['ana.garcia@example.edu', 'ramon.villanueva@example.edu', 'liza.mendoza@example.edu'],
    },
}


def create_sample_excel(output_path: str = 'sample_students.xlsx', kind: str = 'students'):
    """
    Create a sample Excel file with the correct format.
    """
    if kind not in SAMPLES:
        raise ValueError(f"Unknown roster kind: {kind}")
    df = pd.DataFrame(SAMPLES[kind])
    df.to_excel(output_path, index=False)
    logger.info(f"Sample Excel file created: {output_path}")
    return output_path
