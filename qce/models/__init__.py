from .database import init_db, get_db, get_db_path
from .migrations import run_migrations
from .user import User
from .college import College, Department
from .faculty import Faculty
from .student import Student
from .subject import Subject
from .academic_year import AcademicYear
from .evaluation_code import EvaluationCode
from .evaluation import Evaluation

__all__ = ['init_db', 'get_db', 'get_db_path', 'run_migrations', 'User', 'College', 'Department',
           'Faculty', 'Student', 'Subject', 'AcademicYear', 'EvaluationCode', 'Evaluation']
