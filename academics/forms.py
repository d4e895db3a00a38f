"""
Forms for quarters, classrooms, profiles, grading and reports.

Sign-up and sign-in forms live in authentication.forms.
"""
from django import forms
from django.db import transaction

from .base_forms import BaseDashboardForm, BaseProfileForm, BaseTeacherFilterForm
from .grading import SKILL_LABELS, SKILLS
from .models import Classroom, ClassSchedule, Quarter, Student, Teacher, User
from .schedule import months_between, parse_break_dates


class QuarterForm(BaseDashboardForm):
    break_dates_text = forms.CharField(
        required=False,
        label='Break dates',
        help_text='Comma separated dates, e.g. 2024-01-08, 2024-02-19',
    )

    class Meta:
        model = Quarter
        fields = ['name', 'start_date', 'end_date']
        widgets = {
            'start_date': forms.DateInput(attrs={'type': 'date'}),
            'end_date': forms.DateInput(attrs={'type': 'date'}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.instance.pk and not self.is_bound:
            self.fields['break_dates_text'].initial = ', '.join(self.instance.break_dates or [])

    def clean_name(self):
        name = (self.cleaned_data.get('name') or '').strip()
        if len(name) < 3:
            raise forms.ValidationError('Name must be at least 3 characters')
        return name

    def clean_break_dates_text(self):
        try:
            return parse_break_dates(self.cleaned_data.get('break_dates_text'))
        except ValueError:
            raise forms.ValidationError('Break dates must be YYYY-MM-DD values separated by commas.')

    def clean(self):
        cleaned_data = super().clean()
        start_date = cleaned_data.get('start_date')
        end_date = cleaned_data.get('end_date')
        if start_date and end_date and end_date < start_date:
            self.add_error('end_date', 'End date must be on or after the start date.')
        return cleaned_data

    def save(self, commit=True):
        quarter = super().save(commit=False)
        quarter.break_dates = self.cleaned_data.get('break_dates_text', [])
        if commit:
            quarter.save()
        return quarter


class ClassroomForm(BaseTeacherFilterForm):
    days = forms.MultipleChoiceField(
        choices=ClassSchedule.DAY_CHOICES[:5],
        widget=forms.CheckboxSelectMultiple,
    )
    start_time = forms.TimeField(widget=forms.TimeInput(attrs={'type': 'time'}))
    end_time = forms.TimeField(widget=forms.TimeInput(attrs={'type': 'time'}))

    class Meta:
        model = Classroom
        fields = ['name', 'proficiency_level', 'teacher', 'zoom_link', 'students']
        widgets = {
            'students': forms.CheckboxSelectMultiple,
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['teacher'].required = True
        schedule = getattr(self.instance, 'schedule', None) if self.instance.pk else None
        if schedule and not self.is_bound:
            self.fields['days'].initial = schedule.days
            self.fields['start_time'].initial = schedule.start_time
            self.fields['end_time'].initial = schedule.end_time

    def clean_name(self):
        name = (self.cleaned_data.get('name') or '').strip()
        if len(name) < 3:
            raise forms.ValidationError('Name must be at least 3 characters')
        return name

    def clean(self):
        cleaned_data = super().clean()
        start_time = cleaned_data.get('start_time')
        end_time = cleaned_data.get('end_time')
        if start_time and end_time and end_time <= start_time:
            self.add_error('end_time', 'End time must be after the start time.')
        return cleaned_data

    def save(self, commit=True):
        with transaction.atomic():
            classroom = super().save(commit=True)
            ClassSchedule.objects.update_or_create(
                classroom=classroom,
                defaults={
                    'days': list(self.cleaned_data['days']),
                    'start_time': self.cleaned_data['start_time'],
                    'end_time': self.cleaned_data['end_time'],
                },
            )
        return classroom


class AddStudentForm(forms.Form):
    student = forms.ModelChoiceField(queryset=Student.objects.none())

    def __init__(self, *args, classroom=None, **kwargs):
        super().__init__(*args, **kwargs)
        queryset = Student.objects.all()
        if classroom is not None:
            queryset = queryset.exclude(classrooms=classroom)
        self.fields['student'].queryset = queryset
        self.fields['student'].widget.attrs['class'] = 'form-control'


class StudentForm(BaseProfileForm):
    required_fields = BaseProfileForm.required_fields + ('address', 'parent_full_name', 'parent_phone')

    class Meta:
        model = Student
        fields = [
            'first_name', 'last_name', 'preferred_name', 'email', 'phone', 'gender',
            'birth_date', 'country', 'address', 'parent_full_name', 'parent_phone',
        ]

    def clean_address(self):
        address = (self.cleaned_data.get('address') or '').strip()
        if len(address) < 5:
            raise forms.ValidationError('Address must be at least 5 characters long.')
        return address

    def clean_parent_full_name(self):
        name = (self.cleaned_data.get('parent_full_name') or '').strip()
        if len(name) < 5:
            raise forms.ValidationError("Parent's full name must be at least 5 characters long.")
        if len(name) > 100:
            raise forms.ValidationError("Parent's full name must not exceed 100 characters.")
        return name

    def clean_parent_phone(self):
        return self._clean_phone('parent_phone', "Parent's phone number")


class TeacherForm(BaseProfileForm):
    class Meta:
        model = Teacher
        fields = ['first_name', 'last_name', 'email', 'phone', 'gender', 'birth_date', 'country']


class RoleAssignmentForm(forms.Form):
    ASSIGNABLE_ROLES = [choice for choice in User.ROLE_CHOICES if choice[0] in User.ACTIVE_ROLES]

    role = forms.ChoiceField(choices=ASSIGNABLE_ROLES)

    def __init__(self, *args, **kwargs):
        self.request = kwargs.pop('request', None)
        super().__init__(*args, **kwargs)
        # Only admins may promote to admin
        if self.request and self.request.user.effective_role == 'admin':
            self.fields['role'].choices = self.ASSIGNABLE_ROLES + [('admin', 'Admin')]


class GradingForm(forms.Form):
    comment = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 3, 'class': 'form-control'}))

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for skill in SKILLS:
            self.fields[skill] = forms.IntegerField(
                label=SKILL_LABELS[skill],
                min_value=0,
                max_value=100,
                initial=0,
                widget=forms.NumberInput(attrs={'class': 'form-control', 'min': 0, 'max': 100}),
            )
        # Keep the comment last
        self.fields['comment'] = self.fields.pop('comment')

    def scores(self):
        return {skill: self.cleaned_data[skill] for skill in SKILLS}


class ReportFilterForm(forms.Form):
    REPORT_CHOICES = (
        ('attendance', 'Attendance'),
        ('grading', 'Grading'),
    )
    FORMAT_CHOICES = (
        ('pdf', 'PDF'),
        ('xlsx', 'Excel'),
    )
    STRATEGY_CHOICES = (
        ('table', 'Table layout'),
        ('image', 'Snapshot image'),
    )

    report_type = forms.ChoiceField(choices=REPORT_CHOICES, initial='attendance')
    classroom = forms.ModelChoiceField(queryset=Classroom.objects.all(), required=False, empty_label='All classrooms')
    month = forms.ChoiceField(required=False)
    format = forms.ChoiceField(choices=FORMAT_CHOICES, required=False, initial='pdf')
    strategy = forms.ChoiceField(choices=STRATEGY_CHOICES, required=False, initial='table')

    def __init__(self, *args, quarter=None, **kwargs):
        super().__init__(*args, **kwargs)
        months = months_between(quarter.start_date, quarter.end_date) if quarter else []
        self.fields['month'].choices = [('', 'All months')] + [(month, month) for month in months]
        for field in self.fields.values():
            field.widget.attrs.setdefault('class', 'form-control')
