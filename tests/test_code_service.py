"""
Test: evaluation code generation, issuing and redemption rules.
"""
import random
import re

import pytest

from config import EVALUATOR_STUDENT, EVALUATOR_SUPERVISOR
from qce.errors import (
    AlreadyEvaluatedError,
    DuplicateError,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)
from qce.models import EvaluationCode
from qce.services import code_service
from qce.services.code_service import (
    expire_code,
    generate_code,
    issue_code,
    list_active_codes,
    mark_used,
    redeem_code,
)
from qce.services.evaluation_service import submit_evaluation

CODE_PATTERN = re.compile(r'^[A-Z0-9]{3}-[A-Z0-9]{3}$')


class TestGenerateCode:
    def test_format(self):
        for _ in range(50):
            assert CODE_PATTERN.match(generate_code())

    def test_seeded_rng_is_reproducible(self):
        assert generate_code(random.Random(7)) == generate_code(random.Random(7))


class TestIssueCode:
    def test_issue_uses_active_year(self, world):
        code = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'A')
        assert CODE_PATTERN.match(code['code'])
        assert code['academic_year_id'] == world.year
        assert code['status'] == 'active'
        assert code['criteria_type'] == 'new'

    def test_same_assignment_reuses_code(self, world):
        first = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'A')
        second = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'A')
        assert first['code'] == second['code']

    def test_different_section_gets_new_code(self, world):
        first = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'A')
        second = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'B')
        assert first['code'] != second['code']

    def test_collision_retries(self, world, monkeypatch):
        taken = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'A')['code']
        sequence = iter([taken, taken, 'ZZZ-999'])
        monkeypatch.setattr(code_service, 'generate_code', lambda rng=None: next(sequence))
        code = issue_code(EVALUATOR_SUPERVISOR, world.instructor)
        assert code['code'] == 'ZZZ-999'

    def test_gives_up_after_max_attempts(self, world, monkeypatch):
        taken = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'A')['code']
        monkeypatch.setattr(code_service, 'generate_code', lambda rng=None: taken)
        with pytest.raises(DuplicateError):
            issue_code(EVALUATOR_SUPERVISOR, world.instructor)

    def test_unknown_faculty(self, world):
        with pytest.raises(NotFoundError):
            issue_code(EVALUATOR_STUDENT, 9999)

    def test_bad_role_and_criteria(self, world):
        with pytest.raises(ValidationError):
            issue_code('Parent', world.instructor)
        with pytest.raises(ValidationError):
            issue_code(EVALUATOR_STUDENT, world.instructor, criteria_type='2019')


class TestRedeemCode:
    def test_student_redeems_student_code(self, world):
        code = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'a')
        entry = redeem_code(code['code'].lower(), world.student)
        assert entry['evaluatee_name'] == 'Ana Garcia'
        assert entry['subject_code'] == 'IT101'
        assert entry['section'] == 'a'

    def test_unknown_code(self, world):
        with pytest.raises(NotFoundError):
            redeem_code('AAA-AAA', world.student)

    def test_blank_code(self, world):
        with pytest.raises(ValidationError):
            redeem_code('  ', world.student)

    def test_wrong_population(self, world):
        code = issue_code(EVALUATOR_SUPERVISOR, world.instructor)
        with pytest.raises(PermissionDenied):
            redeem_code(code['code'], world.student)

    def test_dean_cannot_rate_other_college(self, world):
        code = issue_code(EVALUATOR_SUPERVISOR, world.outsider)
        with pytest.raises(PermissionDenied, match='own college'):
            redeem_code(code['code'], world.dean)

    def test_vpaa_is_not_college_scoped(self, world):
        code = issue_code(EVALUATOR_SUPERVISOR, world.outsider)
        assert redeem_code(code['code'], world.vpaa)['evaluatee_id'] == world.outsider

    def test_no_self_evaluation(self, world):
        code = issue_code(EVALUATOR_SUPERVISOR, world.dean_faculty)
        with pytest.raises(PermissionDenied, match='yourself'):
            redeem_code(code['code'], world.dean)

    def test_already_evaluated(self, world, ratings):
        code = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'A')
        submit_evaluation(world.student, code['code'], ratings('new', 4))
        with pytest.raises(AlreadyEvaluatedError):
            redeem_code(code['code'], world.student)
        # the code stays open for the rest of the section
        assert redeem_code(code['code'], world.second_student)['code_id'] == code['id']

    def test_expired_code(self, world):
        code = issue_code(EVALUATOR_STUDENT, world.instructor)
        expire_code(code['id'])
        with pytest.raises(ValidationError, match='expired'):
            redeem_code(code['code'], world.student)


class TestCodeStatus:
    def test_mark_used_removes_from_active_list(self, world):
        code = issue_code(EVALUATOR_SUPERVISOR, world.instructor)
        assert [c['id'] for c in list_active_codes()] == [code['id']]
        mark_used(code['id'])
        assert list_active_codes() == []
        assert EvaluationCode.get_by_id(code['id'])['status'] == 'used'

    def test_unknown_code_id(self, world):
        with pytest.raises(NotFoundError):
            expire_code(424242)

    def test_active_list_counts_submissions(self, world, ratings):
        code = issue_code(EVALUATOR_STUDENT, world.instructor, world.subject, 'A')
        submit_evaluation(world.student, code['code'], ratings('new', 4))
        listed = list_active_codes(evaluator_role=EVALUATOR_STUDENT)
        assert listed[0]['submissions'] == 1
