# students/serializers.py
from rest_framework import serializers

from .models import AssessmentDay, SelfCareAssessment, Student
from .scoring import day_percentage


class StudentSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    base_class = serializers.CharField(read_only=True)

    class Meta:
        model = Student
        exclude = ['parent_pin']
        read_only_fields = [field.name for field in Student._meta.concrete_fields if field.name != 'parent_pin']


class AssessmentDaySerializer(serializers.ModelSerializer):
    percentage = serializers.SerializerMethodField()

    class Meta:
        model = AssessmentDay
        exclude = ['id']

    def get_percentage(self, obj):
        return day_percentage(obj.daily_total_score)


class SelfCareAssessmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = SelfCareAssessment
        fields = ['student', 'responses', 'comments', 'calculated_score', 'completed_date', 'amended_at']
