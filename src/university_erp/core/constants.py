"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_SESSION_DAYS = 7

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Academic progress
MINIMUM_GRADUATION_GPA = Decimal("2.0")
DEANS_LIST_GPA = Decimal("3.5")
GOOD_STANDING_GPA = Decimal("2.0")
PROBATION_GPA = Decimal("1.5")
CREDITS_PER_SEMESTER = 15
MONTHS_PER_SEMESTER = 4
MAX_CREDITS_PER_SEMESTER = 21
ON_TRACK_COMPLETION_PERCENT = Decimal("50")
MIN_COURSE_CREDITS = 0
MAX_COURSE_CREDITS = 30
DEFAULT_PASSING_GRADE = "D"

# Class level thresholds on earned credits
SOPHOMORE_CREDITS = 30
JUNIOR_CREDITS = 60
SENIOR_CREDITS = 90

# Billing
STATEMENT_DUE_DAYS = 30
DEFAULT_CREDIT_LIMIT = Decimal("1000.00")
DEFAULT_COURSE_FEE = Decimal("500.00")
SEMESTER_TUITION = Decimal("2500.00")
SEMESTER_FEES = (
    ("Technology Fee", Decimal("100.00")),
    ("Student Activity Fee", Decimal("50.00")),
    ("Library Fee", Decimal("25.00")),
    ("Health Services Fee", Decimal("75.00")),
)
LATE_FEE_RATE = Decimal("0.015")

# Transcripts
TRANSCRIPT_FEE = Decimal("10.00")
OFFICIAL_TRANSCRIPT_FEE = Decimal("15.00")
EXPEDITED_FEE = Decimal("25.00")
RUSH_FEE = Decimal("50.00")
TRANSCRIPT_VERIFY_URL = "https://university.edu/verify/transcript/{number}"
