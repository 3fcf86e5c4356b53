# students/scoring.py
"""
Assessment scoring engine.

Pure functions only: every score is computed from the raw teacher/parent
input handed in, nothing is read from or written to the database. All
arithmetic is Decimal with half-up rounding so stored values and stage
boundaries compare exactly.
"""
import uuid
from decimal import Decimal, ROUND_HALF_UP

from core.exceptions import ValidationError
from shared.constants import (
    ASSESSMENT_DAYS,
    MAX_RAW_SCORE,
    MIN_RAW_SCORE,
    SCORE_AREAS,
    SELF_CARE_ITEM_IDS,
    THINKING_TASKS,
)
from shared.constants.assessment import (
    ABC_NEGATIVE_POINTS,
    ABC_NEUTRAL_SCORE,
    ABC_POSITIVE_POINTS,
    SELF_CARE_POINTS,
    THINKING_POINTS,
)

TWO_PLACES = Decimal('0.01')
MAX_SCORE = Decimal(MAX_RAW_SCORE)


def round_score(value):
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _normalize_response(response, allow_unset=False):
    if response is None or response == '':
        if allow_unset:
            return ''
        raise ValidationError("A response is required.")
    response = str(response)
    if response not in THINKING_POINTS:
        raise ValidationError(
            f"Unknown response '{response}'. Expected one of: {', '.join(THINKING_POINTS)}.",
            details={'response': response}
        )
    return response


# ============ THINKING TASK ============

def thinking_task_for_day(day):
    """Day N always uses task N."""
    validate_day(day)
    return THINKING_TASKS[day - 1]


def thinking_score(response):
    """Yes -> 5, Yes with help -> 2.5, No or unset -> 0."""
    response = _normalize_response(response, allow_unset=True)
    if not response:
        return Decimal('0')
    return THINKING_POINTS[response]


# ============ ABC BEHAVIOUR ============

def normalize_abc_log(entry):
    """Fill defaults for one ABC entry; behaviour text is required."""
    behaviour = (entry.get('behaviour') or '').strip()
    if not behaviour:
        raise ValidationError("Each behaviour log needs a description of the behaviour.")
    is_positive = entry.get('is_positive')
    if is_positive is None:
        is_positive = False
    elif not isinstance(is_positive, bool):
        raise ValidationError(
            "A behaviour log's is_positive must be true or false.",
            details={'is_positive': repr(is_positive)}
        )
    return {
        'id': str(entry.get('id') or uuid.uuid4()),
        'antecedent': (entry.get('antecedent') or '').strip() or 'N/A',
        'behaviour': behaviour,
        'consequence': (entry.get('consequence') or '').strip() or 'N/A',
        'is_positive': is_positive,
        'time': entry.get('time') or '',
    }


def abc_score(abc_logs):
    """
    Mean polarity of the day's logs: 5 per positive entry, 0 per negative.
    A day with no logs scores a neutral 3.
    """
    if not abc_logs:
        return ABC_NEUTRAL_SCORE
    total = sum(
        (ABC_POSITIVE_POINTS if log.get('is_positive') else ABC_NEGATIVE_POINTS for log in abc_logs),
        Decimal('0')
    )
    return round_score(total / len(abc_logs))


# ============ DAILY TOTAL ============

def validate_day(day):
    if isinstance(day, bool) or not isinstance(day, int) or not 1 <= day <= ASSESSMENT_DAYS:
        raise ValidationError(
            f"Assessment day must be between 1 and {ASSESSMENT_DAYS}.",
            details={'day': day}
        )


def validate_scores(scores):
    """Five area scores, each an integer 0-5."""
    missing = [area for area in SCORE_AREAS if area not in scores]
    if missing:
        raise ValidationError(
            f"Missing scores: {', '.join(missing)}.",
            details={'missing': missing}
        )

    cleaned = {}
    for area in SCORE_AREAS:
        value = scores[area]
        if isinstance(value, bool) or not isinstance(value, int) or not MIN_RAW_SCORE <= value <= MAX_RAW_SCORE:
            raise ValidationError(
                f"Score for {area} must be a whole number from {MIN_RAW_SCORE} to {MAX_RAW_SCORE}.",
                details={area: value}
            )
        cleaned[area] = value
    return cleaned


def daily_total_score(scores, thinking, abc):
    """Equal-weight mean of the five area scores, the thinking score and the ABC score."""
    inputs = [Decimal(scores[area]) for area in SCORE_AREAS] + [Decimal(thinking), Decimal(abc)]
    total = round_score(sum(inputs, Decimal('0')) / len(inputs))
    return min(max(total, Decimal('0')), MAX_SCORE)


def day_percentage(total):
    """Presentation helper: daily total as a whole percentage of 5."""
    if total is None:
        return 0
    percentage = Decimal(total) / MAX_SCORE * 100
    return int(percentage.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def score_assessment_day(day, raw):
    """
    Build a complete, scored day record from the teacher's raw input.

    ``raw`` carries ``scores`` (five areas), ``thinking_response`` and
    ``abc_logs``. Returns a dict ready to be stored for that day.
    """
    validate_day(day)
    scores = validate_scores(raw.get('scores') or {})
    response = _normalize_response(raw.get('thinking_response'), allow_unset=True)
    logs = [normalize_abc_log(entry) for entry in (raw.get('abc_logs') or [])]

    task = thinking_task_for_day(day)
    thinking = thinking_score(response)
    abc = abc_score(logs)

    return {
        'day': day,
        **scores,
        'thinking_task_id': task['id'],
        'thinking_task_description': task['description'],
        'thinking_response': response,
        'thinking_score': thinking,
        'abc_logs': logs,
        'abc_score': abc,
        'daily_total_score': daily_total_score(scores, thinking, abc),
        'completed': True,
    }


# ============ PARENT SELF-CARE ============

def self_care_score(responses):
    """Yes -> 1, Yes with help -> 0.5, No -> 0; sum out of 9 rescaled to 0-5."""
    points = sum((SELF_CARE_POINTS[_normalize_response(responses[item])] for item in SELF_CARE_ITEM_IDS), Decimal('0'))
    return round_score(points / len(SELF_CARE_ITEM_IDS) * MAX_SCORE)


def score_self_care(raw):
    """Validate the nine questionnaire answers and compute the parent score."""
    missing = [item for item in SELF_CARE_ITEM_IDS if not raw.get(item)]
    if missing:
        raise ValidationError(
            f"Please answer every self-care question. Missing: {', '.join(missing)}.",
            details={'missing': missing}
        )

    responses = {item: _normalize_response(raw[item]) for item in SELF_CARE_ITEM_IDS}
    return {
        'responses': responses,
        'comments': (raw.get('comments') or '').strip(),
        'calculated_score': self_care_score(responses),
    }
