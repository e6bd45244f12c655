import os

# Database configuration
DATABASE_PATH = os.environ.get('QCE_DATABASE_PATH', os.path.join('data', 'qce.db'))

# Upload configuration
UPLOAD_FOLDER = os.environ.get('QCE_UPLOAD_FOLDER', 'uploads')
ALLOWED_EXTENSIONS = {'xlsx', 'xls'}
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB

# Session configuration
SESSION_TIMEOUT_MINUTES = int(os.environ.get('QCE_SESSION_TIMEOUT_MINUTES', '30'))

# Roles
ROLE_ZONAL_ADMIN = 'Zonal Admin'
ROLE_QCE_MANAGER = 'QCE Manager'
ROLE_STUDENT = 'Student'
ROLE_FACULTY = 'Faculty'
ROLE_DEAN = 'Dean'
ROLE_DEPT_CHAIR = 'Department Chair'
ROLE_VPAA = 'VPAA'
ROLE_PRESIDENT = 'President'

SUPERVISOR_ROLES = (ROLE_DEAN, ROLE_DEPT_CHAIR, ROLE_VPAA, ROLE_PRESIDENT)
ALL_ROLES = (ROLE_ZONAL_ADMIN, ROLE_QCE_MANAGER, ROLE_STUDENT, ROLE_FACULTY) + SUPERVISOR_ROLES

# Evaluator role recorded on evaluations and codes
EVALUATOR_STUDENT = 'Student'
EVALUATOR_SUPERVISOR = 'Supervisor'

# NBC 461 scoring
STUDENT_WEIGHT = 0.36
SUPERVISOR_WEIGHT = 0.24
RATING_SCALE_MAX = 5
RATING_SCALE_MIN = 1
FIXED_DIVISOR = 6  # 3 years x 2 semesters
DUAL_COMPONENT_MAX_POINTS = 60
SUPERVISOR_ONLY_MAX_POINTS = 24

# Titles that receive supervisor ratings only
SUPERVISOR_ONLY_TITLES = ['dean', 'president', 'vpaa', 'department chair', 'chairman']

# (minimum percentage, label), highest first
PERFORMANCE_BANDS = [
    (90, 'OUTSTANDING'),
    (80, 'VERY SATISFACTORY'),
    (70, 'SATISFACTORY'),
    (60, 'FAIR'),
    (0, 'NEEDS IMPROVEMENT'),
]

# Evaluation codes
CODE_ALPHABET = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789'
CODE_GROUP_LENGTH = 3
CODE_MAX_ATTEMPTS = 5

SEMESTERS = ['1st', '2nd']
DEFAULT_ACADEMIC_YEAR = '2025-2026'

# Rubric versions: category code -> (title, description, indicators)
OLD_CRITERIA = {
    'A': ('Commitment', '', [
        "Demonstrates sensitivity to students' ability to attend and absorb content information.",
        "Integrates sensitively his/her learning objectives with those of the students in a collaborative process.",
        "Makes self available to students beyond official time.",
        "Regularly comes to class on time, well-groomed and well-prepared to complete assigned responsibilities.",
        "Keeps accurate records of students' performance and prompt submission of the same.",
    ]),
    'B': ('Knowledge of Subject', '', [
        "Demonstrates mastery of the subject matter (explains the subject matter without relying solely on the prescribed textbook).",
        "Draws and shares information on the state of the art of theory and practice in his/her discipline.",
        "Integrates subject to practical circumstances and learning intents/purposes of students.",
        "Explains the relevance of the present topic to the previous lessons and relates the subject matter to relevant current issues or daily life activities.",
        "Demonstrates up-to-date knowledge and/or awareness on current trends and issues of the subject.",
    ]),
    'C': ('Teaching for Independent Learning', '', [
        "Creates teaching strategies that allow students to practice using concepts they need to understand (interactive discussion).",
        "Enhances student self-esteem and/or gives due recognition to students' performance/potentials.",
        "Allows students to create their own course with objectives and realistically defined student-professor rules and makes them accountable for them.",
        "Allows students to think independently and make their own decisions and holds them accountable for their performance based largely on their success in executing decisions.",
        "Encourages students to learn beyond what is required and helps/guides the students how to apply the concepts learned.",
    ]),
    'D': ('Management of Learning', '', [
        "Creates opportunities for intensive and/or extensive contribution of the students in class activities (e.g., breaks class into dyads, triads, or buzz/task groups).",
        "Assumes roles of facilitator, resource person, coach, inquisitor, integrator, referee in drawing students to contribute to knowledge and understanding of concepts at hand.",
        "Designs and implements learning conditions and experiences that promote healthy exchange and/or confrontations.",
        "Structures/re-structures learning and teaching-learning context to enhance attainment of collective learning objectives.",
        "Uses instructional materials (audio-visual materials, field trips, film showing, computer-aided instruction, etc.) to reinforce learning processes.",
    ]),
}

NEW_CRITERIA = {
    'A': ('Management of Teaching and Learning',
          "Management of Teaching and Learning refers to the standard and organized planning of instructional "
          "activities, clear communication of academic expectations, efficient use of time, and the successful "
          "use of student-centered activities that promote critical thinking, collaborative learning, individual "
          "decision making, and continuous academic improvement through constructive feedback.", [
              "Comes to class on time.",
              "Explains learning outcomes, expectations, grading system, and various requirements of the subject/course.",
              "Maximizes the allocated teaching hours effectively.",
              "Facilitates students to think critically and creatively by providing appropriate learning activities.",
              "Guides students to learn on their own, reflect on their learning and monitor their own progress.",
              "Provides timely and constructive feedback on student performance to improve learning.",
          ]),
    'B': ('Content Knowledge, Pedagogy, and Technology',
          "Content knowledge, pedagogy, and technology refer to teachers' ability to demonstrate a strong grasp "
          "of subject matter, present concepts in a clear and accessible way, relate content to relevant and "
          "current developments, engage students through appropriate instructional strategies and digital tools, "
          "and apply assessment methods aligned with intended learning outcomes.", [
              "Demonstrates extensive and broad knowledge of the subject/course.",
              "Simplifies complex ideas in the lesson for ease of understanding.",
              "Relates the subject matter to contemporary issues and developments in the discipline and daily life activities.",
              "Promotes active learning and student engagement by using appropriate teaching and learning resources, including ICT tools and platforms.",
              "Uses appropriate assessments (projects, exams, quizzes, assignments, etc.) aligned with the learning outcomes.",
          ]),
    'C': ('Commitment and Transparency',
          "Commitment and transparency refer to the teacher's consistent dedication to supporting student "
          "learning by demonstrating professionalism, providing timely academic support and feedback, and "
          "upholding fairness and accountability through the use of clear and openly communicated performance "
          "criteria.", [
              "Recognizes and values the unique diversity and individual differences among students.",
              "Assists students with their learning challenges during consultation hours.",
              "Provides immediate feedback on student outputs and performance.",
              "Provides transparent and clear criteria in rating student performance.",
          ]),
}

CRITERIA_VERSIONS = {
    'old': OLD_CRITERIA,
    'new': NEW_CRITERIA,
}
DEFAULT_CRITERIA_TYPE = 'new'

# Score columns on the evaluations table, keyed by category code
SCORE_COLUMNS = {
    'A': 'score_commitment',
    'B': 'score_knowledge',
    'C': 'score_teaching',
    'D': 'score_management',
}

# Report footer
REPORT_INSTITUTION = os.environ.get('QCE_INSTITUTION', 'STATE UNIVERSITY')
REPORT_FOOTER = "Faculty Performance Evaluation      QCE of the NBC No. 461"
