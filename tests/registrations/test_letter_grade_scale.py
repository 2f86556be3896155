from decimal import Decimal

import pytest

from university_erp.registrations.grading import LetterGradeScale


@pytest.fixture
def scale():
    return LetterGradeScale()


def test_points_follow_letter_table(scale):
    assert scale.points("A") == Decimal("4.0")
    assert scale.points("b+") == Decimal("3.3")
    assert scale.points(" D- ") == Decimal("0.7")
    assert scale.points("F") == Decimal("0.0")


def test_non_gpa_grades_have_no_points(scale):
    assert scale.points("PASS") is None
    assert scale.points("WITHDRAW") is None
    assert scale.points(None) is None


def test_validity(scale):
    assert scale.is_valid("a-")
    assert scale.is_valid("INCOMPLETE")
    assert not scale.is_valid("E")
    assert not scale.is_valid("")


def test_passing_and_failing(scale):
    assert scale.is_passing("D-")
    assert scale.is_passing("P")
    assert not scale.is_passing("F")
    assert not scale.is_passing("INCOMPLETE")
    assert scale.is_failing("FAIL")
    assert not scale.is_failing("C")


def test_meets_minimum_grade(scale):
    assert scale.meets_minimum("B", "C")
    assert scale.meets_minimum("C", "C")
    assert not scale.meets_minimum("C-", "C")
    assert not scale.meets_minimum("F", None)
    assert scale.meets_minimum("D", None)


def test_pass_counts_as_c_against_a_minimum(scale):
    assert scale.meets_minimum("PASS", "C")
    assert not scale.meets_minimum("PASS", "B")
