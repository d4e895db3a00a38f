"""
Base form classes shared by the dashboard forms.
"""
import re

from django import forms
from django.utils import timezone

from .models import Teacher

NAME_PATTERN = re.compile(r'^[A-Za-z\s]+$')
PHONE_PATTERN = re.compile(r'^\+?[0-9\s-]+$')


class BaseDashboardForm(forms.ModelForm):
    """Base form taking the current request and applying widget styling"""

    def __init__(self, *args, **kwargs):
        self.request = kwargs.pop('request', None)
        super().__init__(*args, **kwargs)
        for field in self.fields.values():
            if not isinstance(field.widget, (forms.CheckboxInput, forms.CheckboxSelectMultiple)):
                field.widget.attrs.setdefault('class', 'form-control')


class BaseTeacherFilterForm(BaseDashboardForm):
    """Teachers may only pick themselves in the teacher field"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if not self.request or 'teacher' not in self.fields:
            return

        if self.request.user.role == 'teacher':
            self.fields['teacher'].queryset = Teacher.objects.filter(user=self.request.user)
            profile = getattr(self.request.user, 'teacher_profile', None)
            if profile and not self.instance.pk:
                self.fields['teacher'].initial = profile


class BaseProfileForm(BaseDashboardForm):
    """Validation rules shared by student and teacher profiles"""

    required_fields = ('first_name', 'last_name', 'email', 'phone', 'birth_date', 'country')

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for name in self.required_fields:
            if name in self.fields:
                self.fields[name].required = True
        if 'birth_date' in self.fields:
            self.fields['birth_date'].widget = forms.DateInput(attrs={'type': 'date', 'class': 'form-control'})

    def _clean_name(self, field, label):
        value = (self.cleaned_data.get(field) or '').strip()
        if len(value) < 2:
            raise forms.ValidationError(f'{label} must be at least 2 characters long.')
        if len(value) > 50:
            raise forms.ValidationError(f'{label} must not exceed 50 characters.')
        if not NAME_PATTERN.match(value):
            raise forms.ValidationError(f'{label} must contain only letters and spaces.')
        return value

    def _clean_phone(self, field, label='Phone number'):
        value = (self.cleaned_data.get(field) or '').strip()
        if len(value) < 7:
            raise forms.ValidationError(f'{label} must be at least 7 digits long.')
        if len(value) > 15:
            raise forms.ValidationError(f'{label} must not exceed 15 digits.')
        if not PHONE_PATTERN.match(value):
            raise forms.ValidationError(
                "Phone number can only contain numbers, spaces, hyphens, and an optional '+'."
            )
        return value

    def clean_first_name(self):
        return self._clean_name('first_name', 'First name')

    def clean_last_name(self):
        return self._clean_name('last_name', 'Last name')

    def clean_phone(self):
        return self._clean_phone('phone')

    def clean_birth_date(self):
        birth_date = self.cleaned_data.get('birth_date')
        if birth_date and birth_date >= timezone.localdate():
            raise forms.ValidationError('Birth date must be a valid past date.')
        return birth_date

    def clean_country(self):
        country = (self.cleaned_data.get('country') or '').strip()
        if len(country) < 2:
            raise forms.ValidationError('Country must be at least 2 characters long.')
        return country
