"""
Test: faculty results and the Annex A-D data built from stored evaluations.
"""
import pytest

from config import EVALUATOR_STUDENT, EVALUATOR_SUPERVISOR
from qce.errors import NotFoundError
from qce.models import AcademicYear, get_db
from qce.services.annex_service import (
    annex_a,
    annex_b,
    annex_c,
    annex_d,
    build_annex,
    college_results,
    faculty_summary,
)
from qce.services.code_service import issue_code
from qce.services.evaluation_service import submit_evaluation


@pytest.fixture
def rated(world, ratings):
    """Instructor rated 4 by a student (with a comment) and 5 by the dean."""
    student_code = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'A')
    submit_evaluation(world.student, student_code['code'], ratings('new', 4),
                      comments='Explains topics well.')

    supervisor_code = issue_code(EVALUATOR_SUPERVISOR, world.instructor)
    submit_evaluation(world.dean, supervisor_code['code'], ratings('new', 5),
                      comments='Reliable colleague.', evaluator_name='Liza Mendoza',
                      evaluation_date='2025-10-01')
    return world


@pytest.fixture
def rated_dean(world, ratings):
    """The dean, rated 4 by the VPAA."""
    code = issue_code(EVALUATOR_SUPERVISOR, world.dean_faculty)
    submit_evaluation(world.vpaa, code['code'], ratings('new', 4),
                      evaluator_name='Rosa Lim', evaluation_date='2025-10-03')
    return world


class TestFacultySummary:
    def test_dual_component_total(self, rated):
        summary = faculty_summary(rated.instructor)
        assert summary['supervisor_only'] is False
        assert summary['student_evaluations'] == 1
        assert summary['supervisor_evaluations'] == 1
        assert summary['score']['student_points'] == pytest.approx(28.8)
        assert summary['score']['supervisor_points'] == pytest.approx(24.0)
        assert summary['score']['total_points'] == pytest.approx(52.8)
        assert summary['percentage'] == pytest.approx(88.0)
        assert summary['performance'] == 'VERY SATISFACTORY'

    def test_no_evaluations_is_none(self, world):
        summary = faculty_summary(world.instructor)
        assert summary['score']['total_points'] is None
        assert summary['percentage'] is None
        assert summary['performance'] is None

    def test_supervisor_only_dean(self, rated_dean):
        summary = faculty_summary(rated_dean.dean_faculty)
        assert summary['supervisor_only'] is True
        assert summary['score']['student_points'] is None
        assert summary['score']['total_points'] == pytest.approx(19.2)
        assert summary['score']['maximum_points'] == 24
        assert summary['percentage'] == pytest.approx(80.0)

    def test_unknown_faculty(self, db):
        with pytest.raises(NotFoundError):
            faculty_summary(77)

    def test_college_results(self, rated):
        results = college_results(rated.college)
        names = [row['faculty']['full_name'] for row in results]
        assert 'Ana Garcia' in names
        assert 'Pedro Cruz' not in names
        assert len(college_results()) == 3


class TestAnnexA:
    def test_itemized_student_breakdown(self, rated):
        data = annex_a(rated.instructor)
        assert data['criteria_type'] == 'new'
        assert data['evaluations'] == 1
        assert [c['code'] for c in data['categories']] == ['A', 'B', 'C']
        numbers = [i['number'] for c in data['categories'] for i in c['indicators']]
        assert numbers == list(range(1, 16))
        assert data['categories'][0]['indicators'][0]['average'] == pytest.approx(4.0)
        assert data['overall_average'] == pytest.approx(4.0)
        assert data['student_card']['maximum_points'] == 36
        assert data['supervisor_card']['maximum_points'] == 24
        assert data['total_points'] == pytest.approx(52.8)

    def test_supervisor_only_card_not_applicable(self, rated_dean):
        data = annex_a(rated_dean.dean_faculty)
        assert data['student_card']['applicable'] is False
        assert data['student_card']['points'] is None
        assert data['supervisor_card']['points'] == pytest.approx(19.2)

    def test_empty_indicators_stay_none(self, world):
        data = annex_a(world.instructor)
        assert data['overall_average'] is None
        assert all(i['average'] is None for c in data['categories'] for i in c['indicators'])


class TestAnnexB:
    def test_projected_years_and_fixed_divisor(self, rated):
        data = annex_b(rated.instructor)
        assert data['academic_years'] == ['2025-2026', '2026-2027', '2027-2028']
        assert len(data['periods']) == 6
        assert data['periods'][0] == {'year': '2025-2026', 'semester': '1st',
                                      'student': pytest.approx(4.0), 'supervisor': pytest.approx(5.0)}
        assert data['periods'][1]['student'] is None

        assert data['student']['divisor'] == 6
        assert data['student']['average'] == pytest.approx(4.0 / 6)
        assert data['supervisor']['divisor'] == 6
        assert data['supervisor']['average'] == pytest.approx(5.0 / 6)
        assert data['total_points'] == pytest.approx(4.0 / 6 * 20 * 0.36 + 5.0 / 6 * 20 * 0.24)

    def test_supervisor_only_uses_semesters_with_data(self, rated_dean):
        data = annex_b(rated_dean.dean_faculty)
        assert data['student']['applicable'] is False
        assert data['supervisor']['divisor'] == 1
        assert data['supervisor']['average'] == pytest.approx(4.0)
        assert data['total_points'] == pytest.approx(19.2)
        assert data['maximum_points'] == 24

    def test_semester_spelling_is_normalized(self, rated):
        with get_db() as conn:
            conn.execute("UPDATE academic_years SET semester = '1st Semester' WHERE id = ?", (rated.year,))
        data = annex_b(rated.instructor)
        assert data['periods'][0]['student'] == pytest.approx(4.0)

    def test_no_active_year_uses_default(self, rated):
        with get_db() as conn:
            conn.execute("UPDATE academic_years SET status = 'inactive'")
        assert AcademicYear.get_active() is None
        assert annex_b(rated.instructor)['academic_years'][0] == '2025-2026'

    def test_missing_student_data_gives_no_total(self, world, ratings):
        code = issue_code(EVALUATOR_SUPERVISOR, world.instructor)
        submit_evaluation(world.vpaa, code['code'], ratings('new', 5),
                          evaluator_name='Rosa Lim', evaluation_date='2025-10-03')
        data = annex_b(world.instructor)
        assert data['student']['average'] is None
        assert data['total_points'] is None
        assert data['performance'] is None


class TestAnnexC:
    def test_supervisor_breakdown(self, rated):
        data = annex_c(rated.instructor)
        assert data['evaluations'] == 1
        assert data['overall_average'] == pytest.approx(5.0)
        assert data['points'] == pytest.approx(24.0)
        assert data['supervisors'] == [{'name': 'Liza Mendoza', 'position': 'Dean',
                                        'date': '2025-10-01', 'total_score': pytest.approx(100.0)}]

    def test_student_comments_are_anonymous(self, rated):
        comments = {c['comment']: c for c in annex_c(rated.instructor)['comments']}
        assert comments['Explains topics well.']['evaluator'] is None
        assert comments['Reliable colleague.']['evaluator'] == 'Liza Mendoza'


class TestAnnexD:
    def test_acknowledgement_fields(self, rated):
        data = annex_d(rated.instructor)
        assert data['faculty_name'] == 'Ana Garcia'
        assert data['college'] == 'College of Computing'
        assert data['rank'] == 'Assistant Professor'
        assert data['academic_year'] == '2025-2026'
        assert data['semester'] == '1st'
        assert data['set_percentage'] == pytest.approx(80.0)
        assert data['sef_percentage'] == pytest.approx(100.0)
        assert [s['role'] for s in data['signatures']] == ['SUPERVISOR', 'FACULTY']

    def test_supervisor_only_has_no_set(self, rated_dean):
        data = annex_d(rated_dean.dean_faculty)
        assert data['set_percentage'] is None
        assert data['sef_percentage'] == pytest.approx(80.0)


class TestMixedCriteria:
    @pytest.fixture
    def mixed(self, world, ratings):
        """One old-form student evaluation rated 1, one new-form evaluation rated 5."""
        old_code = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'B', criteria_type='old')
        submit_evaluation(world.student, old_code['code'], ratings('old', 1))
        new_code = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'A')
        submit_evaluation(world.second_student, new_code['code'], ratings('new', 5))
        return world

    def test_versions_are_averaged_separately(self, mixed):
        data = annex_a(mixed.instructor)
        versions = {v['criteria_type']: v for v in data['versions']}
        assert set(versions) == {'old', 'new'}
        assert versions['old']['evaluations'] == 1
        assert versions['new']['evaluations'] == 1

        old = {c['code']: c for c in versions['old']['categories']}
        assert list(old) == ['A', 'B', 'C', 'D']
        assert old['D']['average'] == pytest.approx(1.0)
        assert all(i['average'] == pytest.approx(1.0) for c in old.values() for i in c['indicators'])
        assert versions['old']['overall_average'] == pytest.approx(1.0)

        new = versions['new']['categories']
        assert all(i['average'] == pytest.approx(5.0) for c in new for i in c['indicators'])
        assert versions['new']['overall_average'] == pytest.approx(5.0)

    def test_overall_weighs_each_evaluation(self, mixed):
        data = annex_a(mixed.instructor)
        assert data['evaluations'] == 2
        assert data['overall_average'] == pytest.approx(3.0)
        # tie on evaluation count: the current form leads the itemized table
        assert data['criteria_type'] == 'new'
        assert [c['average'] for c in data['categories']] == [pytest.approx(5.0)] * 3

        summary = faculty_summary(mixed.instructor)
        assert summary['score']['student_points'] == pytest.approx(21.6)

    def test_majority_version_leads(self, mixed, ratings):
        code = issue_code(EVALUATOR_STUDENT, mixed.instructor, mixed.subject, 'C', criteria_type='old')
        submit_evaluation(mixed.student, code['code'], ratings('old', 2))
        data = annex_a(mixed.instructor)
        assert data['criteria_type'] == 'old'
        assert [v['criteria_type'] for v in data['versions']] == ['old', 'new']
        assert data['categories'][3]['average'] == pytest.approx(1.5)
        assert data['overall_average'] == pytest.approx((1.5 * 2 + 5.0) / 3)

    def test_single_version_lists_one_breakdown(self, rated):
        data = annex_a(rated.instructor)
        assert len(data['versions']) == 1
        assert data['versions'][0]['categories'] == data['categories']


def test_build_annex_dispatch(rated):
    assert build_annex('B', rated.instructor)['annex'] == 'B'
    with pytest.raises(NotFoundError):
        build_annex('E', rated.instructor)
