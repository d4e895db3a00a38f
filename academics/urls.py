from django.urls import path, include

from rest_framework.routers import DefaultRouter

from .views import (
    dashboard_view,
    user_list, user_set_role, register_student, register_teacher,
    quarter_list, quarter_create, quarter_update, quarter_delete, quarter_activate,
    classroom_list, classroom_create, classroom_detail, classroom_update, classroom_delete,
    classroom_add_student, classroom_remove_student,
    student_list, student_detail, student_update, student_delete,
    attendance_view, grading_view, reports_view, report_export,
)
from .api_views import (
    QuarterViewSet, ProficiencyLevelViewSet, TeacherViewSet, StudentViewSet, ClassroomViewSet,
    UserViewSet, AttendanceViewSet, GradingViewSet, ReportViewSet,
)

router = DefaultRouter()
router.register(r'quarters', QuarterViewSet)
router.register(r'proficiency-levels', ProficiencyLevelViewSet)
router.register(r'teachers', TeacherViewSet)
router.register(r'students', StudentViewSet)
router.register(r'classrooms', ClassroomViewSet)
router.register(r'users', UserViewSet)
router.register(r'attendance', AttendanceViewSet)
router.register(r'grading', GradingViewSet)
router.register(r'reports', ReportViewSet, basename='report')

api_urlpatterns = [
    path('', include(router.urls)),
]

urlpatterns = [
    path('', dashboard_view, name='dashboard'),

    # Users
    path('users/', user_list, name='user_list'),
    path('users/<int:pk>/role/', user_set_role, name='user_set_role'),
    path('users/register-student/<int:user_id>/', register_student, name='register_student'),
    path('users/register-teacher/<int:user_id>/', register_teacher, name='register_teacher'),

    # Quarters
    path('quarters/', quarter_list, name='quarter_list'),
    path('quarters/create/', quarter_create, name='quarter_create'),
    path('quarters/<int:pk>/update/', quarter_update, name='quarter_update'),
    path('quarters/<int:pk>/delete/', quarter_delete, name='quarter_delete'),
    path('quarters/<int:pk>/activate/', quarter_activate, name='quarter_activate'),

    # Classrooms
    path('classrooms/', classroom_list, name='classroom_list'),
    path('classrooms/create/', classroom_create, name='classroom_create'),
    path('classrooms/<int:pk>/', classroom_detail, name='classroom_detail'),
    path('classrooms/<int:pk>/update/', classroom_update, name='classroom_update'),
    path('classrooms/<int:pk>/delete/', classroom_delete, name='classroom_delete'),
    path('classrooms/<int:pk>/students/add/', classroom_add_student, name='classroom_add_student'),
    path('classrooms/<int:pk>/students/<int:student_id>/remove/', classroom_remove_student,
         name='classroom_remove_student'),

    # Students
    path('students/', student_list, name='student_list'),
    path('students/<int:pk>/', student_detail, name='student_detail'),
    path('students/<int:pk>/update/', student_update, name='student_update'),
    path('students/<int:pk>/delete/', student_delete, name='student_delete'),

    # Attendance, grading and reports
    path('attendance/', attendance_view, name='attendance'),
    path('grading/', grading_view, name='grading'),
    path('reports/', reports_view, name='reports'),
    path('reports/export/', report_export, name='report_export'),
]
