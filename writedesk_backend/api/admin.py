from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Activity, Comment, File, Task, Team, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("id", "username", "full_name", "role", "status", "team", "is_active")
    list_filter = ("role", "status", "is_active")
    search_fields = ("username", "full_name", "email")
    fieldsets = BaseUserAdmin.fieldsets + (("WriteDesk", {"fields": ("full_name", "role", "status", "team")}),)


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "team_lead", "created_at")
    search_fields = ("name", "description")
    list_filter = ("created_at",)


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "status", "assigned_to", "assigned_by", "deadline", "created_at")
    search_fields = ("title", "description", "client_name")
    list_filter = ("status", "created_at")
    ordering = ("-created_at",)


@admin.register(File)
class FileAdmin(admin.ModelAdmin):
    list_display = ("id", "task", "file_name", "category", "is_submission", "uploaded_by", "created_at")
    list_filter = ("category", "is_submission")
    search_fields = ("file_name", "task__title")


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ("id", "task", "author", "created_at")
    search_fields = ("content", "task__title", "author__username")
    list_filter = ("created_at",)


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    list_display = ("id", "action", "user", "task", "created_at")
    list_filter = ("action", "created_at")
    search_fields = ("description", "user__username")
    ordering = ("-created_at",)
