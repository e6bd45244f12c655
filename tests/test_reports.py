"""
Test: Annex A-D and pending-evaluation PDFs render for rated and unrated faculty.
"""
import matplotlib.pyplot as plt
import pytest
from matplotlib.figure import Figure

from config import EVALUATOR_STUDENT, EVALUATOR_SUPERVISOR
from qce.services.annex_service import build_annex
from qce.services.code_service import issue_code
from qce.services.evaluation_service import submit_evaluation
from report_generator import create_category_graph, generate_annex_pdf
from report_pending import generate_pending_report, pending_assignments


@pytest.fixture
def rated(world, ratings):
    code = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'A')
    submit_evaluation(world.student, code['code'], ratings('new', lambda c, i: 3 + i % 3),
                      comments='Uses <b>real</b> examples & cases.')
    code = issue_code(EVALUATOR_SUPERVISOR, world.instructor)
    submit_evaluation(world.dean, code['code'], ratings('new', 4),
                      evaluator_name='Liza Mendoza', evaluation_date='2025-10-01')
    return world


class TestAnnexPdf:
    @pytest.mark.parametrize('letter', ['a', 'b', 'c', 'd'])
    def test_rated_faculty(self, rated, letter):
        pdf = generate_annex_pdf(build_annex(letter, rated.instructor))
        assert pdf.startswith(b'%PDF')

    @pytest.mark.parametrize('letter', ['a', 'b', 'c', 'd'])
    def test_no_data_renders(self, world, letter):
        pdf = generate_annex_pdf(build_annex(letter, world.dean_faculty))
        assert pdf.startswith(b'%PDF')

    def test_mixed_criteria_versions(self, world, ratings):
        code = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'B', criteria_type='old')
        submit_evaluation(world.student, code['code'], ratings('old', 1))
        code = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'A')
        submit_evaluation(world.second_student, code['code'], ratings('new', 5))
        data = build_annex('a', world.instructor)
        assert len(data['versions']) == 2
        assert generate_annex_pdf(data).startswith(b'%PDF')


class TestCategoryGraph:
    def test_returns_png_buffer(self, rated):
        categories = build_annex('a', rated.instructor)['categories']
        buffer = create_category_graph(categories)
        assert buffer.getvalue().startswith(b'\x89PNG')

    def test_empty_categories_still_draw(self, world):
        categories = build_annex('a', world.instructor)['categories']
        assert all(c['average'] is None for c in categories)
        assert create_category_graph(categories).getvalue().startswith(b'\x89PNG')

    def test_leaves_no_state_behind(self, rated):
        dpi = plt.rcParams['figure.dpi']
        open_figures = plt.get_fignums()
        create_category_graph(build_annex('a', rated.instructor)['categories'])
        assert plt.rcParams['figure.dpi'] == dpi
        assert plt.get_fignums() == open_figures

    def test_figure_closed_when_saving_fails(self, rated, monkeypatch):
        categories = build_annex('a', rated.instructor)['categories']
        open_figures = plt.get_fignums()

        def broken_savefig(self, *args, **kwargs):
            raise RuntimeError('disk full')

        monkeypatch.setattr(Figure, 'savefig', broken_savefig)
        with pytest.raises(RuntimeError):
            create_category_graph(categories)
        assert plt.get_fignums() == open_figures


class TestPendingReport:
    def test_lists_codes_without_submissions(self, rated):
        waiting = issue_code(EVALUATOR_STUDENT, rated.instructor, rated.subject, 'B')
        codes, pending = pending_assignments(rated.year)
        assert [c['id'] for c in pending] == [waiting['id']]
        assert len(codes) == 2

    def test_college_filter(self, world):
        issue_code(EVALUATOR_STUDENT, world.outsider)
        _, pending = pending_assignments(world.year, world.college)
        assert pending == []

    def test_pdf(self, rated):
        issue_code(EVALUATOR_STUDENT, rated.instructor, rated.subject, 'B')
        assert generate_pending_report().startswith(b'%PDF')
        assert generate_pending_report(college_id=rated.other_college).startswith(b'%PDF')
