from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q


class User(AbstractUser):
    ROLE_CHOICES = (
        ('pending', 'Pending'),
        ('student', 'Student'),
        ('teacher', 'Teacher'),
        ('coordinator', 'Coordinator'),
        ('admin', 'Admin'),
    )
    ACTIVE_ROLES = ('student', 'teacher', 'coordinator')

    full_name = models.CharField(max_length=150, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='pending', db_index=True)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    def __str__(self):
        return f"{self.username} ({self.role})"

    @property
    def effective_role(self):
        # Superusers always act as admins
        if self.is_superuser:
            return 'admin'
        return self.role

    @property
    def is_registered(self):
        if self.role == 'student':
            return hasattr(self, 'student_profile')
        if self.role == 'teacher':
            return hasattr(self, 'teacher_profile')
        return False


class Quarter(models.Model):
    name = models.CharField(max_length=100)
    start_date = models.DateField(db_index=True)
    end_date = models.DateField(db_index=True)
    break_dates = models.JSONField(default=list, blank=True)  # list of 'YYYY-MM-DD' strings
    active = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        ordering = ['-start_date']
        constraints = [
            models.UniqueConstraint(
                fields=['active'],
                condition=Q(active=True),
                name='single_active_quarter'
            )
        ]

    def __str__(self):
        return f"{self.name} ({self.start_date} - {self.end_date})"

    def save(self, *args, **kwargs):
        # Only one quarter may be active at a time
        if self.active:
            Quarter.objects.filter(active=True).exclude(pk=self.pk).update(active=False)
        super().save(*args, **kwargs)


class ProficiencyLevel(models.Model):
    name = models.CharField(max_length=100, unique=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class Teacher(models.Model):
    GENDER_CHOICES = (
        ('male', 'Male'),
        ('female', 'Female'),
    )

    user = models.OneToOneField(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='teacher_profile')
    first_name = models.CharField(max_length=50)
    last_name = models.CharField(max_length=50)
    email = models.EmailField()
    phone = models.CharField(max_length=15, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    birth_date = models.DateField(null=True, blank=True)
    country = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        ordering = ['last_name', 'first_name']

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"


class Student(models.Model):
    user = models.OneToOneField(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='student_profile')
    first_name = models.CharField(max_length=50)
    last_name = models.CharField(max_length=50)
    preferred_name = models.CharField(max_length=50, blank=True)
    email = models.EmailField()
    phone = models.CharField(max_length=15, blank=True)
    gender = models.CharField(max_length=10, choices=Teacher.GENDER_CHOICES, blank=True)
    birth_date = models.DateField(null=True, blank=True)
    country = models.CharField(max_length=100, blank=True)
    address = models.CharField(max_length=255, blank=True)
    parent_full_name = models.CharField(max_length=100, blank=True)
    parent_phone = models.CharField(max_length=15, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        ordering = ['last_name', 'first_name']

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"


class Classroom(models.Model):
    name = models.CharField(max_length=100)
    proficiency_level = models.ForeignKey(ProficiencyLevel, on_delete=models.PROTECT, related_name='classrooms')
    teacher = models.ForeignKey(Teacher, on_delete=models.SET_NULL, null=True, blank=True, related_name='classrooms', db_index=True)
    students = models.ManyToManyField(Student, related_name='classrooms', blank=True)
    zoom_link = models.URLField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def schedule_days(self):
        schedule = getattr(self, 'schedule', None)
        return list(schedule.days) if schedule else []


class ClassSchedule(models.Model):
    WEEKDAYS = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')
    DAY_CHOICES = tuple((day, day) for day in WEEKDAYS)

    classroom = models.OneToOneField(Classroom, on_delete=models.CASCADE, related_name='schedule')
    days = models.JSONField(default=list)  # weekday names, e.g. ['Monday', 'Wednesday']
    start_time = models.TimeField()
    end_time = models.TimeField()

    def __str__(self):
        return f"{self.classroom.name}: {', '.join(self.days)} {self.start_time:%H:%M}-{self.end_time:%H:%M}"


class AttendanceRecord(models.Model):
    STATUS_CHOICES = (
        ('present', 'Present'),
        ('absent', 'Absent'),
        ('tardy', 'Tardy'),
    )

    classroom = models.ForeignKey(Classroom, on_delete=models.CASCADE, related_name='attendance_records', db_index=True)
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='attendance_records', db_index=True)
    quarter = models.ForeignKey(Quarter, on_delete=models.CASCADE, related_name='attendance_records', db_index=True)
    class_date = models.DateField(db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES)
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        ordering = ['class_date', 'student__last_name']
        constraints = [
            models.UniqueConstraint(
                fields=['classroom', 'student', 'quarter', 'class_date'],
                name='unique_attendance_per_class_date'
            )
        ]

    def __str__(self):
        return f"{self.student} - {self.classroom.name} - {self.class_date}: {self.status}"


class GradingRecord(models.Model):
    SKILLS = ('listening', 'reading', 'writing', 'speaking', 'grammar_vocab', 'project', 'conversation')
    SCORE_VALIDATORS = [MinValueValidator(0), MaxValueValidator(100)]

    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='grades', db_index=True)
    classroom = models.ForeignKey(Classroom, on_delete=models.CASCADE, related_name='grades', db_index=True)
    quarter = models.ForeignKey(Quarter, on_delete=models.CASCADE, related_name='grades', db_index=True)
    listening = models.PositiveSmallIntegerField(default=0, validators=SCORE_VALIDATORS)
    reading = models.PositiveSmallIntegerField(default=0, validators=SCORE_VALIDATORS)
    writing = models.PositiveSmallIntegerField(default=0, validators=SCORE_VALIDATORS)
    speaking = models.PositiveSmallIntegerField(default=0, validators=SCORE_VALIDATORS)
    grammar_vocab = models.PositiveSmallIntegerField(default=0, validators=SCORE_VALIDATORS)
    project = models.PositiveSmallIntegerField(default=0, validators=SCORE_VALIDATORS)
    conversation = models.PositiveSmallIntegerField(default=0, validators=SCORE_VALIDATORS)
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'classroom', 'quarter'],
                name='unique_grade_per_quarter'
            )
        ]

    def __str__(self):
        return f"{self.student} - {self.classroom.name} - {self.quarter.name}"

    @property
    def scores(self):
        return {skill: getattr(self, skill) for skill in self.SKILLS}

    @property
    def average(self):
        return sum(self.scores.values()) / len(self.SKILLS)
