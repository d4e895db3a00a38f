from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import (
    AttendanceRecord,
    ClassSchedule,
    Classroom,
    GradingRecord,
    ProficiencyLevel,
    Quarter,
    Student,
    Teacher,
    User,
)


@admin.register(User)
class CustomUserAdmin(UserAdmin):
    list_display = ('username', 'full_name', 'email', 'role', 'is_active')
    list_filter = ('role', 'is_active', 'is_staff')
    search_fields = ('username', 'full_name', 'email')
    ordering = ('username',)

    fieldsets = UserAdmin.fieldsets + (
        ('Dashboard', {'fields': ('full_name', 'role')}),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Dashboard', {'fields': ('email', 'full_name', 'role')}),
    )


@admin.register(Quarter)
class QuarterAdmin(admin.ModelAdmin):
    list_display = ('name', 'start_date', 'end_date', 'active')
    list_filter = ('active',)
    search_fields = ('name',)
    ordering = ('-start_date',)


@admin.register(ProficiencyLevel)
class ProficiencyLevelAdmin(admin.ModelAdmin):
    list_display = ('name',)
    search_fields = ('name',)


@admin.register(Teacher)
class TeacherAdmin(admin.ModelAdmin):
    list_display = ('first_name', 'last_name', 'email', 'country', 'user')
    search_fields = ('first_name', 'last_name', 'email')
    ordering = ('last_name', 'first_name')


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ('first_name', 'last_name', 'preferred_name', 'email', 'country', 'user')
    search_fields = ('first_name', 'last_name', 'preferred_name', 'email')
    ordering = ('last_name', 'first_name')


class ClassScheduleInline(admin.StackedInline):
    model = ClassSchedule
    can_delete = False


@admin.register(Classroom)
class ClassroomAdmin(admin.ModelAdmin):
    list_display = ('name', 'proficiency_level', 'teacher')
    list_filter = ('proficiency_level',)
    search_fields = ('name', 'teacher__first_name', 'teacher__last_name')
    filter_horizontal = ('students',)
    inlines = [ClassScheduleInline]


@admin.register(AttendanceRecord)
class AttendanceRecordAdmin(admin.ModelAdmin):
    list_display = ('student', 'classroom', 'quarter', 'class_date', 'status')
    list_filter = ('quarter', 'classroom', 'status')
    search_fields = ('student__first_name', 'student__last_name')
    date_hierarchy = 'class_date'


@admin.register(GradingRecord)
class GradingRecordAdmin(admin.ModelAdmin):
    list_display = ('student', 'classroom', 'quarter', 'listening', 'reading', 'writing', 'speaking',
                    'grammar_vocab', 'project', 'conversation')
    list_filter = ('quarter', 'classroom')
    search_fields = ('student__first_name', 'student__last_name')
