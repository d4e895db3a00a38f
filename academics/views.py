import logging
from urllib.parse import urlencode

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.db import IntegrityError
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.views.decorators.http import require_POST

from authentication.permissions import MANAGER_ROLES, STAFF_ROLES

from . import attendance as attendance_service
from . import grading as grading_service
from .analytics import dashboard_statistics
from .exceptions import DashboardError
from .exports import export_report
from .forms import (
    AddStudentForm, ClassroomForm, GradingForm, QuarterForm, ReportFilterForm, RoleAssignmentForm, StudentForm,
    TeacherForm,
)
from .models import AttendanceRecord, Classroom, GradingRecord, Quarter, Student, Teacher, User
from .profiles import check_registrable, register_profile
from .quarters import activate_quarter, get_active_quarter
from .reports import build_report
from .schedule import quarter_class_dates, to_date

logger = logging.getLogger(__name__)


def _denied(request, message='Access denied. Insufficient privileges.'):
    messages.error(request, message)
    return redirect('dashboard')


def _form_errors(request, form):
    for field, errors in form.errors.items():
        for error in errors:
            if field == '__all__':
                messages.error(request, str(error))
            else:
                messages.error(request, f"{field.replace('_', ' ').title()}: {error}")


# Home
@login_required
def dashboard_view(request):
    """Statistics for the active quarter."""
    quarter = get_active_quarter()
    context = {
        'quarter': quarter,
        'role': request.user.effective_role,
        'title': 'Dashboard',
        'classrooms_count': Classroom.objects.count(),
        'students_count': Student.objects.count(),
        'teachers_count': Teacher.objects.count(),
        'pending_count': User.objects.filter(role='pending', is_superuser=False).count(),
    }
    if quarter is not None:
        context.update(dashboard_statistics(quarter))
    return render(request, 'dashboard/home.html', context)


# User Management Views
@login_required
def user_list(request):
    if request.user.effective_role not in MANAGER_ROLES:
        return _denied(request, 'Access denied. Admin privileges required.')

    users = User.objects.filter(is_superuser=False).select_related('student_profile', 'teacher_profile')
    return render(request, 'users/user_list.html', {
        'pending_users': users.filter(role='pending').order_by('-date_joined'),
        'student_users': users.filter(role='student').order_by('username'),
        'teacher_users': users.filter(role='teacher').order_by('username'),
        'coordinator_users': users.filter(role='coordinator').order_by('username'),
        'role_form': RoleAssignmentForm(request=request),
        'title': 'Manage Users',
    })


@login_required
@require_POST
def user_set_role(request, pk):
    if request.user.effective_role not in MANAGER_ROLES:
        return _denied(request, 'Access denied. Admin privileges required.')

    user_obj = get_object_or_404(User, pk=pk)
    form = RoleAssignmentForm(request.POST, request=request)
    if form.is_valid():
        user_obj.role = form.cleaned_data['role']
        user_obj.save(update_fields=['role', 'updated_at'])
        logger.info("User %s role set to %s by %s", user_obj.username, user_obj.role, request.user.username)
        messages.success(request, f'{user_obj.username} is now a {user_obj.get_role_display().lower()}.')
    else:
        _form_errors(request, form)
    return redirect('user_list')


def _register_profile(request, user_id, kind, form_class):
    if request.user.effective_role not in MANAGER_ROLES:
        return _denied(request, 'Access denied. Admin privileges required.')

    user_obj = get_object_or_404(User, pk=user_id)
    try:
        check_registrable(user_obj, kind)
    except DashboardError as e:
        messages.error(request, str(e))
        return redirect('user_list')

    if request.method == 'POST':
        form = form_class(request.POST, request=request)
        if form.is_valid():
            try:
                register_profile(user_obj, form, kind)
            except (DashboardError, IntegrityError) as e:
                messages.error(request, f'Could not register {kind}: {e}')
            else:
                messages.success(request, f'{kind.title()} profile created for {user_obj.username}.')
                return redirect('user_list')
    else:
        form = form_class(request=request, initial={'email': user_obj.email})

    return render(request, 'users/register_profile.html', {
        'form': form,
        'user_obj': user_obj,
        'kind': kind,
        'title': f'Register {kind.title()}',
    })


@login_required
def register_student(request, user_id):
    return _register_profile(request, user_id, 'student', StudentForm)


@login_required
def register_teacher(request, user_id):
    return _register_profile(request, user_id, 'teacher', TeacherForm)


# Quarter Views
@login_required
def quarter_list(request):
    if request.user.effective_role not in STAFF_ROLES:
        return _denied(request)

    return render(request, 'quarters/quarter_list.html', {
        'quarters': Quarter.objects.all(),
        'can_edit': request.user.effective_role in MANAGER_ROLES,
        'title': 'Quarters',
    })


@login_required
def quarter_create(request):
    if request.user.effective_role not in MANAGER_ROLES:
        return _denied(request, 'Access denied. Admin privileges required.')

    if request.method == 'POST':
        form = QuarterForm(request.POST, request=request)
        if form.is_valid():
            form.save()
            messages.success(request, 'Quarter created successfully.')
            return redirect('quarter_list')
    else:
        form = QuarterForm(request=request)
    return render(request, 'quarters/quarter_form.html', {'form': form, 'title': 'Create Quarter'})


@login_required
def quarter_update(request, pk):
    if request.user.effective_role not in MANAGER_ROLES:
        return _denied(request, 'Access denied. Admin privileges required.')

    quarter = get_object_or_404(Quarter, pk=pk)
    if request.method == 'POST':
        form = QuarterForm(request.POST, instance=quarter, request=request)
        if form.is_valid():
            form.save()
            messages.success(request, 'Quarter updated successfully.')
            return redirect('quarter_list')
    else:
        form = QuarterForm(instance=quarter, request=request)
    return render(request, 'quarters/quarter_form.html', {
        'form': form,
        'quarter': quarter,
        'title': 'Edit Quarter',
    })


@login_required
def quarter_delete(request, pk):
    if request.user.effective_role not in MANAGER_ROLES:
        return _denied(request, 'Access denied. Admin privileges required.')

    quarter = get_object_or_404(Quarter, pk=pk)
    if request.method == 'POST':
        quarter.delete()
        messages.success(request, 'Quarter deleted successfully.')
        return redirect('quarter_list')
    return render(request, 'confirm_delete.html', {
        'object': quarter,
        'cancel_url': reverse('quarter_list'),
        'title': 'Delete Quarter',
    })


@login_required
@require_POST
def quarter_activate(request, pk):
    if request.user.effective_role not in MANAGER_ROLES:
        return _denied(request, 'Access denied. Admin privileges required.')

    quarter = get_object_or_404(Quarter, pk=pk)
    try:
        activate_quarter(quarter)
    except IntegrityError:
        logger.exception("Activating quarter %s failed", quarter.pk)
        messages.error(request, 'Could not activate the quarter. Please try again.')
    else:
        messages.success(request, f'{quarter.name} is now the active quarter.')
    return redirect('quarter_list')


# Classroom Views
@login_required
def classroom_list(request):
    if request.user.effective_role not in STAFF_ROLES:
        return _denied(request)

    classrooms = Classroom.objects.select_related('proficiency_level', 'teacher', 'schedule').annotate(
        student_count=Count('students')
    )
    return render(request, 'classrooms/classroom_list.html', {
        'classrooms': classrooms,
        'title': 'Classrooms',
    })


@login_required
def classroom_create(request):
    if request.user.effective_role not in STAFF_ROLES:
        return _denied(request)

    if request.method == 'POST':
        form = ClassroomForm(request.POST, request=request)
        if form.is_valid():
            classroom = form.save()
            messages.success(request, 'Classroom created successfully.')
            return redirect('classroom_detail', pk=classroom.pk)
    else:
        form = ClassroomForm(request=request)
    return render(request, 'classrooms/classroom_form.html', {'form': form, 'title': 'Create Classroom'})


@login_required
def classroom_detail(request, pk):
    if request.user.effective_role not in STAFF_ROLES:
        return _denied(request)

    classroom = get_object_or_404(
        Classroom.objects.select_related('proficiency_level', 'teacher', 'schedule'), pk=pk
    )
    return render(request, 'classrooms/classroom_detail.html', {
        'classroom': classroom,
        'students': classroom.students.all(),
        'add_student_form': AddStudentForm(classroom=classroom),
        'title': classroom.name,
    })


@login_required
def classroom_update(request, pk):
    if request.user.effective_role not in STAFF_ROLES:
        return _denied(request)

    classroom = get_object_or_404(Classroom, pk=pk)
    if request.method == 'POST':
        form = ClassroomForm(request.POST, instance=classroom, request=request)
        if form.is_valid():
            form.save()
            messages.success(request, 'Classroom updated successfully.')
            return redirect('classroom_detail', pk=classroom.pk)
    else:
        form = ClassroomForm(instance=classroom, request=request)
    return render(request, 'classrooms/classroom_form.html', {
        'form': form,
        'classroom': classroom,
        'title': 'Edit Classroom',
    })


@login_required
def classroom_delete(request, pk):
    if request.user.effective_role not in STAFF_ROLES:
        return _denied(request)

    classroom = get_object_or_404(Classroom, pk=pk)
    if request.method == 'POST':
        classroom.delete()
        messages.success(request, 'Classroom deleted successfully.')
        return redirect('classroom_list')
    return render(request, 'confirm_delete.html', {
        'object': classroom,
        'cancel_url': reverse('classroom_detail', args=[classroom.pk]),
        'title': 'Delete Classroom',
    })


@login_required
@require_POST
def classroom_add_student(request, pk):
    if request.user.effective_role not in STAFF_ROLES:
        return _denied(request)

    classroom = get_object_or_404(Classroom, pk=pk)
    form = AddStudentForm(request.POST, classroom=classroom)
    if form.is_valid():
        classroom.students.add(form.cleaned_data['student'])
        messages.success(request, f"{form.cleaned_data['student'].full_name} added to {classroom.name}.")
    else:
        _form_errors(request, form)
    return redirect('classroom_detail', pk=classroom.pk)


@login_required
@require_POST
def classroom_remove_student(request, pk, student_id):
    if request.user.effective_role not in STAFF_ROLES:
        return _denied(request)

    classroom = get_object_or_404(Classroom, pk=pk)
    student = get_object_or_404(Student, pk=student_id)
    classroom.students.remove(student)
    messages.success(request, f'{student.full_name} removed from {classroom.name}.')
    return redirect('classroom_detail', pk=classroom.pk)


# Student Views
@login_required
def student_list(request):
    if request.user.effective_role not in STAFF_ROLES:
        return _denied(request)

    students = Student.objects.prefetch_related('classrooms')
    search = request.GET.get('search', '').strip()
    if search:
        students = students.filter(
            Q(first_name__icontains=search) | Q(last_name__icontains=search) | Q(email__icontains=search)
        )
    return render(request, 'students/student_list.html', {
        'students': students,
        'search': search,
        'title': 'Students',
    })


@login_required
def student_detail(request, pk):
    if request.user.effective_role not in STAFF_ROLES:
        return _denied(request)

    student = get_object_or_404(Student, pk=pk)
    quarter = get_active_quarter()
    grades = GradingRecord.objects.filter(student=student).select_related('classroom', 'quarter')
    attendance = AttendanceRecord.objects.none()
    if quarter is not None:
        attendance = AttendanceRecord.objects.filter(student=student, quarter=quarter).select_related('classroom')
    return render(request, 'students/student_detail.html', {
        'student': student,
        'classrooms': student.classrooms.all(),
        'grades': grades,
        'attendance': attendance,
        'quarter': quarter,
        'title': student.full_name,
    })


@login_required
def student_update(request, pk):
    if request.user.effective_role not in STAFF_ROLES:
        return _denied(request)

    student = get_object_or_404(Student, pk=pk)
    if request.method == 'POST':
        form = StudentForm(request.POST, instance=student, request=request)
        if form.is_valid():
            form.save()
            messages.success(request, 'Student updated successfully.')
            return redirect('student_detail', pk=student.pk)
    else:
        form = StudentForm(instance=student, request=request)
    return render(request, 'students/student_form.html', {
        'form': form,
        'student': student,
        'title': 'Edit Student',
    })


@login_required
def student_delete(request, pk):
    if request.user.effective_role not in STAFF_ROLES:
        return _denied(request)

    student = get_object_or_404(Student, pk=pk)
    if request.method == 'POST':
        student.delete()
        messages.success(request, 'Student deleted successfully.')
        return redirect('student_list')
    return render(request, 'confirm_delete.html', {
        'object': student,
        'cancel_url': reverse('student_detail', args=[student.pk]),
        'title': 'Delete Student',
    })


# Attendance
@login_required
def attendance_view(request):
    """Pick a classroom and class date, then mark each student."""
    if request.user.effective_role not in STAFF_ROLES:
        return _denied(request)

    quarter = get_active_quarter()
    context = {
        'quarter': quarter,
        'classrooms': Classroom.objects.select_related('schedule'),
        'status_choices': AttendanceRecord.STATUS_CHOICES,
        'title': 'Attendance',
    }
    if quarter is None:
        return render(request, 'attendance/attendance.html', context)

    classroom_id = request.POST.get('classroom') or request.GET.get('classroom')
    class_date = request.POST.get('class_date') or request.GET.get('date')
    classroom = get_object_or_404(Classroom, pk=classroom_id) if classroom_id else None

    if request.method == 'POST' and classroom is not None and class_date:
        students = classroom.students.all()
        statuses = {student.pk: request.POST.get(f'status_{student.pk}', '') for student in students}
        comments = {student.pk: request.POST.get(f'comment_{student.pk}', '').strip() for student in students}
        try:
            saved = attendance_service.save_statuses(classroom, class_date, quarter, statuses, comments)
        except (DashboardError, ValueError) as e:
            messages.error(request, str(e))
        except IntegrityError:
            logger.exception("Saving attendance for classroom %s failed", classroom.pk)
            messages.error(request, 'Could not save attendance. Please try again.')
        else:
            messages.success(request, f'Attendance saved for {saved} students.')
        return redirect(f"{reverse('attendance')}?{urlencode({'classroom': classroom.pk, 'date': class_date})}")

    if classroom is not None:
        dates = quarter_class_dates(quarter, classroom)
        context.update({'classroom': classroom, 'class_dates': dates})
        if class_date:
            try:
                selected = to_date(class_date)
            except ValueError:
                messages.error(request, 'Invalid date.')
                selected = None
            if selected is not None:
                statuses = attendance_service.load_statuses(classroom, selected, quarter)
                comments = attendance_service.load_comments(classroom, selected, quarter)
                context.update({
                    'class_date': selected,
                    'is_class_date': selected in dates,
                    'rows': [
                        {
                            'student': student,
                            'status': statuses.get(student.pk, ''),
                            'comment': comments.get(student.pk, ''),
                        }
                        for student in classroom.students.all()
                    ],
                })
    return render(request, 'attendance/attendance.html', context)


# Grading
@login_required
def grading_view(request):
    """Grade one student of a classroom for the active quarter."""
    if request.user.effective_role not in STAFF_ROLES:
        return _denied(request)

    quarter = get_active_quarter()
    context = {
        'quarter': quarter,
        'classrooms': Classroom.objects.all(),
        'title': 'Grading',
    }
    if quarter is None:
        return render(request, 'grading/grading.html', context)

    classroom_id = request.POST.get('classroom') or request.GET.get('classroom')
    student_id = request.POST.get('student') or request.GET.get('student')
    classroom = get_object_or_404(Classroom, pk=classroom_id) if classroom_id else None
    student = None
    if classroom is not None:
        context.update({'classroom': classroom, 'students': classroom.students.all()})
        if student_id:
            student = get_object_or_404(classroom.students.all(), pk=student_id)

    if student is None:
        return render(request, 'grading/grading.html', context)

    if request.method == 'POST':
        form = GradingForm(request.POST)
        if form.is_valid():
            try:
                grading_service.save_grade(student, classroom, quarter, form.scores(), form.cleaned_data['comment'])
            except IntegrityError:
                logger.exception("Saving grade for student %s failed", student.pk)
                messages.error(request, 'Could not save grades. Please try again.')
            else:
                messages.success(request, f'Grades saved for {student.full_name}.')
                query = urlencode({'classroom': classroom.pk, 'student': student.pk})
                return redirect(f"{reverse('grading')}?{query}")
        else:
            _form_errors(request, form)
    else:
        record = grading_service.load_grade(student, classroom, quarter)
        form = GradingForm(initial=grading_service.initial_for(record))
        context['record'] = record

    context.update({'student': student, 'form': form})
    return render(request, 'grading/grading.html', context)


# Reports
def _report_selection(request, quarter):
    form = ReportFilterForm(request.GET or None, quarter=quarter)
    if not form.is_bound or not form.is_valid():
        return form, None
    return form, form.cleaned_data


@login_required
def reports_view(request):
    if request.user.effective_role not in STAFF_ROLES:
        return _denied(request)

    quarter = get_active_quarter()
    context = {'quarter': quarter, 'title': 'Reports'}
    if quarter is None:
        return render(request, 'reports/reports.html', context)

    form, selection = _report_selection(request, quarter)
    context['form'] = form
    if selection:
        try:
            context['table'] = build_report(
                selection['report_type'], quarter, selection.get('classroom'), selection.get('month') or None
            )
        except Exception:
            logger.exception("Building %s report failed", selection['report_type'])
            messages.error(request, 'Could not load the report. Please try again.')
        context['export_query'] = request.GET.urlencode()
    return render(request, 'reports/reports.html', context)


@login_required
def report_export(request):
    """Download the selected report as PDF or Excel."""
    if request.user.effective_role not in STAFF_ROLES:
        return _denied(request)

    back = f"{reverse('reports')}?{request.GET.urlencode()}"
    quarter = get_active_quarter()
    if quarter is None:
        messages.info(request, 'Activate a quarter before exporting reports.')
        return redirect('reports')

    form, selection = _report_selection(request, quarter)
    if not selection:
        _form_errors(request, form)
        return redirect(back)

    classroom = selection.get('classroom')
    month = selection.get('month') or None
    report_type = selection['report_type']
    try:
        table = build_report(report_type, quarter, classroom, month)
        return export_report(
            table,
            title=f"{report_type.title()} Report - {quarter.name}",
            classroom_name=classroom.name if classroom else None,
            month=month,
            fmt=selection.get('format') or 'pdf',
            strategy=selection.get('strategy') or 'table',
        )
    except Exception:
        logger.exception("Exporting %s report failed", report_type)
        messages.error(request, 'Failed to generate the report. Please try again.')
        return redirect(back)
