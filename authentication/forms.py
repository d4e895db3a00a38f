"""
Authentication forms for sign-up and sign-in.
"""

from django import forms
from django.contrib.auth import authenticate

from academics.models import User


class SignInForm(forms.Form):
    """
    Sign-in with email (or username) and password.
    """
    email = forms.CharField(
        label='Email',
        max_length=254,
        widget=forms.TextInput(attrs={
            'class': 'form-control',
            'placeholder': 'Enter your email',
            'autofocus': True,
        })
    )
    password = forms.CharField(
        widget=forms.PasswordInput(attrs={
            'class': 'form-control',
            'placeholder': 'Enter your password',
        })
    )

    def __init__(self, *args, **kwargs):
        self.request = kwargs.pop('request', None)
        self.user_cache = None
        super().__init__(*args, **kwargs)

    def clean(self):
        cleaned_data = super().clean()
        identifier = (cleaned_data.get('email') or '').strip()
        password = cleaned_data.get('password')
        if not identifier or not password:
            return cleaned_data

        username = identifier
        if '@' in identifier:
            match = User.objects.filter(email__iexact=identifier).order_by('pk').first()
            if match is not None:
                username = match.get_username()

        self.user_cache = authenticate(self.request, username=username, password=password)
        if self.user_cache is None:
            raise forms.ValidationError('Invalid email or password.')
        if not self.user_cache.is_active:
            raise forms.ValidationError('This account is inactive.')
        return cleaned_data

    def get_user(self):
        return self.user_cache


class SignUpForm(forms.ModelForm):
    """
    New accounts start with the pending role until an administrator assigns one.
    """
    password1 = forms.CharField(
        label='Password',
        min_length=6,
        widget=forms.PasswordInput(attrs={'class': 'form-control', 'placeholder': 'Enter password'})
    )
    password2 = forms.CharField(
        label='Confirm Password',
        widget=forms.PasswordInput(attrs={'class': 'form-control', 'placeholder': 'Confirm password'})
    )

    class Meta:
        model = User
        fields = ['full_name', 'email']
        widgets = {
            'full_name': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Full name'}),
            'email': forms.EmailInput(attrs={'class': 'form-control', 'placeholder': 'Email'}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['full_name'].required = True
        self.fields['email'].required = True

    def clean_email(self):
        email = self.cleaned_data.get('email', '').strip().lower()
        if User.objects.filter(email__iexact=email).exists() or User.objects.filter(username__iexact=email).exists():
            raise forms.ValidationError('An account with this email already exists.')
        return email

    def clean(self):
        cleaned_data = super().clean()
        password1 = cleaned_data.get('password1')
        password2 = cleaned_data.get('password2')
        if password1 and password2 and password1 != password2:
            self.add_error('password2', "Passwords don't match")
        return cleaned_data

    def save(self, commit=True):
        user = super().save(commit=False)
        user.username = self.cleaned_data['email']
        user.role = 'pending'
        user.set_password(self.cleaned_data['password1'])
        if commit:
            user.save()
        return user
