# admissions/serializers.py
from rest_framework import serializers

from shared.constants import ASSESSMENT_DAYS, MAX_RAW_SCORE, MIN_RAW_SCORE, AssessmentResponse

from .models import Application


class ApplicationSerializer(serializers.ModelSerializer):
    learner_name = serializers.CharField(read_only=True)
    age_at_application = serializers.IntegerField(read_only=True)

    class Meta:
        model = Application
        fields = '__all__'
        read_only_fields = ['id', 'status', 'submitted_at', 'updated_at'] + list(Application.OFFICE_FIELDS)


class OfficeReviewSerializer(serializers.Serializer):
    office_reviewer = serializers.CharField(required=False, allow_blank=True)
    office_review_date = serializers.DateField(required=False)
    office_status = serializers.CharField(required=False, allow_blank=True)
    office_response_method = serializers.CharField(required=False, allow_blank=True)
    office_response_date = serializers.DateField(required=False, allow_null=True)


# ============ ENROLLMENT ACTIONS ============

class VersionedActionSerializer(serializers.Serializer):
    expected_version = serializers.IntegerField(required=False, min_value=0)


class ParentActionSerializer(VersionedActionSerializer):
    # Required for parents; staff may omit it
    parent_pin = serializers.CharField(required=False, allow_blank=True, write_only=True)


class SubmitReceiptSerializer(ParentActionSerializer):
    receipt_number = serializers.CharField(max_length=50)


class VerifyReceiptSerializer(VersionedActionSerializer):
    receipt_number = serializers.CharField(max_length=50, required=False, allow_blank=True)


class RejectPaymentSerializer(VersionedActionSerializer):
    reason = serializers.CharField(required=False, allow_blank=True)


class AreaScoresSerializer(serializers.Serializer):
    numbers = serializers.IntegerField(min_value=MIN_RAW_SCORE, max_value=MAX_RAW_SCORE)
    reading = serializers.IntegerField(min_value=MIN_RAW_SCORE, max_value=MAX_RAW_SCORE)
    self_care = serializers.IntegerField(min_value=MIN_RAW_SCORE, max_value=MAX_RAW_SCORE)
    behaviour = serializers.IntegerField(min_value=MIN_RAW_SCORE, max_value=MAX_RAW_SCORE)
    senses = serializers.IntegerField(min_value=MIN_RAW_SCORE, max_value=MAX_RAW_SCORE)


class ABCLogSerializer(serializers.Serializer):
    id = serializers.CharField(required=False, allow_blank=True)
    antecedent = serializers.CharField(required=False, allow_blank=True)
    behaviour = serializers.CharField()
    consequence = serializers.CharField(required=False, allow_blank=True)
    is_positive = serializers.BooleanField(default=False)
    time = serializers.CharField(required=False, allow_blank=True)


class AssessmentDayInputSerializer(VersionedActionSerializer):
    day = serializers.IntegerField(min_value=1, max_value=ASSESSMENT_DAYS)
    scores = AreaScoresSerializer()
    thinking_response = serializers.ChoiceField(
        choices=AssessmentResponse.choices, required=False, allow_blank=True
    )
    abc_logs = ABCLogSerializer(many=True, required=False)


class SelfCareInputSerializer(ParentActionSerializer):
    responses = serializers.DictField(child=serializers.ChoiceField(choices=AssessmentResponse.choices))
    comments = serializers.CharField(required=False, allow_blank=True)
    amend = serializers.BooleanField(default=False)


class FinalizeAssessmentSerializer(VersionedActionSerializer):
    teacher_class = serializers.CharField(required=False, allow_blank=True)
