from rest_framework import serializers

from .grading import SKILLS
from .models import (
    AttendanceRecord, ClassSchedule, Classroom, GradingRecord, ProficiencyLevel, Quarter, Student, Teacher, User
)
from .schedule import parse_break_dates


class UserSerializer(serializers.ModelSerializer):
    has_profile = serializers.BooleanField(source='is_registered', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'full_name', 'role', 'has_profile', 'date_joined']
        read_only_fields = ['role', 'date_joined']


class RoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES)


class QuarterSerializer(serializers.ModelSerializer):
    class Meta:
        model = Quarter
        fields = ['id', 'name', 'start_date', 'end_date', 'break_dates', 'active']
        read_only_fields = ['active']

    def validate_name(self, value):
        if len(value.strip()) < 3:
            raise serializers.ValidationError('Name must be at least 3 characters')
        return value.strip()

    def validate_break_dates(self, value):
        try:
            return parse_break_dates(','.join(str(v) for v in value or []))
        except ValueError:
            raise serializers.ValidationError('Break dates must be YYYY-MM-DD values.')

    def validate(self, attrs):
        start_date = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end_date = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError({'end_date': 'End date must be on or after the start date.'})
        return attrs


class ProficiencyLevelSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProficiencyLevel
        fields = ['id', 'name']


class TeacherSerializer(serializers.ModelSerializer):
    class Meta:
        model = Teacher
        fields = '__all__'


class StudentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Student
        fields = '__all__'


class ClassScheduleSerializer(serializers.ModelSerializer):
    days = serializers.ListField(child=serializers.ChoiceField(choices=ClassSchedule.DAY_CHOICES), allow_empty=False)

    class Meta:
        model = ClassSchedule
        fields = ['days', 'start_time', 'end_time']


class ClassroomSerializer(serializers.ModelSerializer):
    schedule = ClassScheduleSerializer(required=False)
    teacher_name = serializers.CharField(source='teacher.full_name', read_only=True, default=None)
    proficiency_level_name = serializers.CharField(source='proficiency_level.name', read_only=True)

    class Meta:
        model = Classroom
        fields = [
            'id', 'name', 'proficiency_level', 'proficiency_level_name', 'teacher', 'teacher_name',
            'zoom_link', 'students', 'schedule',
        ]

    def create(self, validated_data):
        schedule = validated_data.pop('schedule', None)
        classroom = super().create(validated_data)
        if schedule:
            ClassSchedule.objects.create(classroom=classroom, **schedule)
        return classroom

    def update(self, instance, validated_data):
        schedule = validated_data.pop('schedule', None)
        classroom = super().update(instance, validated_data)
        if schedule:
            ClassSchedule.objects.update_or_create(classroom=classroom, defaults=schedule)
        return classroom


class AttendanceRecordSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source='student.full_name', read_only=True)

    class Meta:
        model = AttendanceRecord
        fields = ['id', 'classroom', 'student', 'student_name', 'quarter', 'class_date', 'status', 'comment']


class AttendanceEntrySerializer(serializers.Serializer):
    student = serializers.IntegerField()
    status = serializers.ChoiceField(choices=AttendanceRecord.STATUS_CHOICES)
    comment = serializers.CharField(required=False, allow_blank=True, default='')


class AttendanceBulkSerializer(serializers.Serializer):
    classroom = serializers.PrimaryKeyRelatedField(queryset=Classroom.objects.all())
    class_date = serializers.DateField()
    records = AttendanceEntrySerializer(many=True)


class GradingRecordSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source='student.full_name', read_only=True)
    average = serializers.FloatField(read_only=True)

    class Meta:
        model = GradingRecord
        fields = ['id', 'student', 'student_name', 'classroom', 'quarter', *SKILLS, 'comment', 'average']


class GradeUpsertSerializer(serializers.Serializer):
    student = serializers.PrimaryKeyRelatedField(queryset=Student.objects.all())
    classroom = serializers.PrimaryKeyRelatedField(queryset=Classroom.objects.all())
    comment = serializers.CharField(required=False, allow_blank=True, default='')

    def get_fields(self):
        fields = super().get_fields()
        for skill in SKILLS:
            # Out-of-range values are clamped by the grading service
            fields[skill] = serializers.IntegerField(required=False, default=0)
        return fields
