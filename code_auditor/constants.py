"""
Centralized constants for the code auditor.

Fixed thresholds used by the duplicate detection engine, the violation
builders and the health score. Organized by domain into namespace classes.
Tunable algorithm knobs live in similarity/config.py instead.
"""


class SeverityThresholds:
    CRITICAL_OCCURRENCES = 4
    CRITICAL_DUPLICATED_LINES = 50
    WARNING_DUPLICATED_LINES = 10


class HealthScoreWeights:
    CRITICAL = 10
    WARNING = 2
    SUGGESTION = 0
    MAX_SCORE = 100
    MIN_SCORE = 0


class ExtractionDefaults:
    MIN_STRING_LENGTH = 20
    MIN_STRING_LENGTH_FLOOR = 3
    MIN_STRING_OCCURRENCES = 2
    MIN_LINE_THRESHOLD = 5
    PREVIEW_LENGTH = 50
    MAX_LISTED_LOCATIONS = 5


class NormalizationDefaults:
    IDENTIFIER_PLACEHOLDER = 'ID'
    ANONYMOUS_FUNCTION = '<anonymous>'


class FingerprintDefaults:
    WIDTH = 16
    GROUP_ID_WIDTH = 12
