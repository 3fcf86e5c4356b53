# shared/constants/assessment.py

"""
Fixed vocabulary of the 14-day special-needs observation.
"""
from decimal import Decimal

from django.db import models


ASSESSMENT_DAYS = 14
MIN_RAW_SCORE = 0
MAX_RAW_SCORE = 5

# Area scores a teacher enters each day
SCORE_AREAS = ('numbers', 'reading', 'self_care', 'behaviour', 'senses')


class AssessmentResponse(models.TextChoices):
    YES = 'Yes', 'Yes'
    NO = 'No', 'No'
    YES_WITH_HELP = 'Yes with help', 'Yes with help'


THINKING_TASKS = (
    {'id': 'T1', 'description': 'Pile objects on top of one another'},
    {'id': 'T2', 'description': 'Place shapes correctly into a form board'},
    {'id': 'T3', 'description': 'Search for an object that is hidden'},
    {'id': 'T4', 'description': 'Sort objects into big and small'},
    {'id': 'T5', 'description': 'Arrange sticks in order of length'},
    {'id': 'T6', 'description': 'Sort objects by colour'},
    {'id': 'T7', 'description': 'Identify the odd-one-out from set of pictures'},
    {'id': 'T8', 'description': 'Remember where to find objects around the classroom'},
    {'id': 'T9', 'description': 'Arrange pictures into a correct sequence'},
    {'id': 'T10', 'description': 'Follow instructions to bring three objects from another room'},
    {'id': 'T11', 'description': 'Play a memory game to see how many can be recalled'},
    {'id': 'T12', 'description': 'Review: General cognitive observation'},
    {'id': 'T13', 'description': 'Review: Problem solving observation'},
    {'id': 'T14', 'description': 'Final Review: Overall readiness'},
)

SELF_CARE_ITEMS = (
    {'id': 's1', 'text': 'Drink from a cup'},
    {'id': 's2', 'text': 'Feed self with a spoon'},
    {'id': 's3', 'text': 'Wash hands'},
    {'id': 's4', 'text': 'Wash and dry him/herself'},
    {'id': 's5', 'text': 'Dress and undress him/herself'},
    {'id': 's6', 'text': 'Brush teeth and hair by him/herself'},
    {'id': 's7', 'text': 'Go to the toilet by him/herself'},
    {'id': 's8', 'text': 'Assist with simple tasks around the home'},
    {'id': 's9', 'text': 'Can be sent around with messages'},
)
SELF_CARE_ITEM_IDS = tuple(item['id'] for item in SELF_CARE_ITEMS)

# Scoring tables
THINKING_POINTS = {
    AssessmentResponse.YES.value: Decimal('5'),
    AssessmentResponse.YES_WITH_HELP.value: Decimal('2.5'),
    AssessmentResponse.NO.value: Decimal('0'),
}
SELF_CARE_POINTS = {
    AssessmentResponse.YES.value: Decimal('1'),
    AssessmentResponse.YES_WITH_HELP.value: Decimal('0.5'),
    AssessmentResponse.NO.value: Decimal('0'),
}
ABC_POSITIVE_POINTS = Decimal('5')
ABC_NEGATIVE_POINTS = Decimal('0')
ABC_NEUTRAL_SCORE = Decimal('3')

# Placement weighting
TEACHER_WEIGHT = Decimal('0.6')
PARENT_WEIGHT = Decimal('0.4')
STAGE_THRESHOLDS = (
    (Decimal('3.8'), 3),
    (Decimal('2.4'), 2),
)
DEFAULT_STAGE = 1
