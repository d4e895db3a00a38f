"""
REST API for the dashboard.

Viewsets share the web views' services, so the same invariants hold for
both surfaces.
"""
import logging

from django.db import IntegrityError
from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from authentication.permissions import IsActiveMember, IsManager, IsManagerOrReadOnly, IsStaffMember, user_role

from . import attendance as attendance_service
from . import grading as grading_service
from .exceptions import DashboardError, NoActiveQuarter
from .mixins import ActiveQuarterMixin, StandardViewSet, error_response
from .models import AttendanceRecord, Classroom, GradingRecord, ProficiencyLevel, Quarter, Student, Teacher, User
from .quarters import activate_quarter, require_active_quarter
from .reports import build_report
from .schedule import months_between, quarter_class_dates
from .serializers import (
    AttendanceBulkSerializer, AttendanceRecordSerializer, ClassroomSerializer, GradeUpsertSerializer,
    GradingRecordSerializer, ProficiencyLevelSerializer, QuarterSerializer, RoleSerializer, StudentSerializer,
    TeacherSerializer, UserSerializer,
)

logger = logging.getLogger(__name__)


class QuarterViewSet(StandardViewSet):
    queryset = Quarter.objects.all()
    serializer_class = QuarterSerializer
    permission_classes = [IsManagerOrReadOnly]
    search_fields = ('name',)

    @action(detail=True, methods=['post'])
    def activate(self, request, pk=None):
        quarter = activate_quarter(self.get_object())
        return Response(QuarterSerializer(quarter).data)

    @action(detail=False, methods=['get'], permission_classes=[IsActiveMember])
    def active(self, request):
        """The active quarter, readable by every activated user."""
        try:
            quarter = require_active_quarter()
        except NoActiveQuarter as e:
            return error_response(e, status.HTTP_404_NOT_FOUND)
        return Response(QuarterSerializer(quarter).data)


class ProficiencyLevelViewSet(StandardViewSet):
    queryset = ProficiencyLevel.objects.all()
    serializer_class = ProficiencyLevelSerializer
    permission_classes = [IsManagerOrReadOnly]


class TeacherViewSet(StandardViewSet):
    queryset = Teacher.objects.all()
    serializer_class = TeacherSerializer
    permission_classes = [IsStaffMember]
    search_fields = ('first_name', 'last_name', 'email')


class StudentViewSet(StandardViewSet):
    queryset = Student.objects.all()
    serializer_class = StudentSerializer
    permission_classes = [IsStaffMember]
    search_fields = ('first_name', 'last_name', 'preferred_name', 'email')
    filter_fields = ('classrooms',)


class ClassroomViewSet(StandardViewSet):
    queryset = Classroom.objects.select_related('proficiency_level', 'teacher', 'schedule').prefetch_related('students')
    serializer_class = ClassroomSerializer
    permission_classes = [IsStaffMember]
    search_fields = ('name',)
    filter_fields = ('teacher', 'proficiency_level')


class UserViewSet(StandardViewSet):
    queryset = User.objects.all().order_by('-date_joined')
    serializer_class = UserSerializer
    permission_classes = [IsManager]
    search_fields = ('username', 'email', 'full_name')
    filter_fields = ('role',)
    http_method_names = ['get', 'post', 'delete', 'head', 'options']

    def create(self, request, *args, **kwargs):
        # Accounts come from sign-up; managers only assign roles
        return error_response('Users register through the sign-up page.', status.HTTP_405_METHOD_NOT_ALLOWED)

    @action(detail=True, methods=['post'])
    def set_role(self, request, pk=None):
        user = self.get_object()
        serializer = RoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        role = serializer.validated_data['role']
        if role == 'admin' and user_role(request.user) != 'admin':
            return error_response('Only admins can grant the admin role.', status.HTTP_403_FORBIDDEN)

        user.role = role
        user.save(update_fields=['role', 'updated_at'])
        logger.info("User %s role set to %s by %s", user.username, role, request.user.username)
        return Response(UserSerializer(user).data)


class AttendanceViewSet(ActiveQuarterMixin, StandardViewSet):
    queryset = AttendanceRecord.objects.select_related('student')
    serializer_class = AttendanceRecordSerializer
    permission_classes = [IsStaffMember]
    filter_fields = ('classroom', 'student', 'class_date', 'status')
    http_method_names = ['get', 'post', 'delete', 'head', 'options']

    def get_queryset(self):
        queryset = super().get_queryset()
        quarter = self.get_quarter()
        if quarter is None:
            return queryset.none()
        return queryset.filter(quarter=quarter)

    def create(self, request, *args, **kwargs):
        return self.bulk(request)

    @action(detail=False, methods=['post'])
    def bulk(self, request):
        quarter = self.get_quarter()
        if quarter is None:
            return error_response(NoActiveQuarter())

        serializer = AttendanceBulkSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        statuses = {entry['student']: entry['status'] for entry in data['records']}
        comments = {entry['student']: entry['comment'] for entry in data['records']}

        try:
            saved = attendance_service.save_statuses(data['classroom'], data['class_date'], quarter, statuses, comments)
        except DashboardError as e:
            return error_response(e)
        except IntegrityError:
            logger.exception("Attendance bulk save failed")
            return error_response('Could not save attendance.')

        return Response({'saved': saved}, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def dates(self, request):
        """Class dates of ``?classroom=`` inside the quarter."""
        quarter = self.get_quarter()
        if quarter is None:
            return error_response(NoActiveQuarter())
        classroom = get_object_or_404(Classroom, pk=request.query_params.get('classroom'))
        return Response({
            'classroom': classroom.pk,
            'quarter': quarter.pk,
            'dates': [day.isoformat() for day in quarter_class_dates(quarter, classroom)],
        })


class GradingViewSet(ActiveQuarterMixin, StandardViewSet):
    queryset = GradingRecord.objects.select_related('student')
    serializer_class = GradingRecordSerializer
    permission_classes = [IsStaffMember]
    filter_fields = ('classroom', 'student')
    http_method_names = ['get', 'post', 'delete', 'head', 'options']

    def get_queryset(self):
        queryset = super().get_queryset()
        quarter = self.get_quarter()
        if quarter is None:
            return queryset.none()
        return queryset.filter(quarter=quarter)

    def create(self, request, *args, **kwargs):
        return self.upsert(request)

    @action(detail=False, methods=['post'])
    def upsert(self, request):
        quarter = self.get_quarter()
        if quarter is None:
            return error_response(NoActiveQuarter())

        serializer = GradeUpsertSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        if not data['classroom'].students.filter(pk=data['student'].pk).exists():
            return error_response(f"{data['student'].full_name} is not in {data['classroom'].name}.")

        record = grading_service.save_grade(
            data['student'], data['classroom'], quarter, data, data.get('comment', '')
        )
        return Response(GradingRecordSerializer(record).data)


class ReportViewSet(ActiveQuarterMixin, viewsets.ViewSet):
    """Pivoted report tables as JSON"""

    permission_classes = [IsStaffMember]

    def _table(self, request, report_type):
        quarter = self.get_quarter()
        if quarter is None:
            return error_response(NoActiveQuarter())

        classroom = None
        if request.query_params.get('classroom'):
            classroom = get_object_or_404(Classroom, pk=request.query_params['classroom'])
        month = request.query_params.get('month') or None
        if month and month not in months_between(quarter.start_date, quarter.end_date):
            return error_response(f"{month} is not a month of {quarter.name}.")

        table = build_report(report_type, quarter, classroom, month)
        return Response({
            'report_type': table.report_type,
            'columns': table.columns,
            'headers': table.headers,
            'rows': [
                {
                    'student_id': row.student_id,
                    'student_name': row.student_name,
                    'cells': [
                        {'kind': cell.kind, 'text': cell.text, **_cell_payload(cell)}
                        for cell in row.cells_in(table.columns)
                    ],
                }
                for row in table.rows
            ],
        })

    @action(detail=False, methods=['get'])
    def attendance(self, request):
        return self._table(request, 'attendance')

    @action(detail=False, methods=['get'])
    def grading(self, request):
        return self._table(request, 'grading')


def _cell_payload(cell):
    if cell.kind == 'status':
        glyph, tone = cell.display
        return {'status': cell.status, 'tone': tone}
    if cell.kind == 'score':
        return {'score': cell.score, 'low': cell.low}
    return {}
