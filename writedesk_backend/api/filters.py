from __future__ import annotations

import django_filters
from django.db.models import Q

from .models import Activity, Task, Team, User


class TeamFilter(django_filters.FilterSet):
    q = django_filters.CharFilter(method="filter_q")

    def filter_q(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(Q(name__icontains=value) | Q(description__icontains=value))

    class Meta:
        model = Team
        fields = ["q"]


class UserFilter(django_filters.FilterSet):
    role = django_filters.ChoiceFilter(field_name="role", choices=User.Role.choices)
    status = django_filters.ChoiceFilter(field_name="status", choices=User.Availability.choices)
    team = django_filters.NumberFilter(field_name="team_id", lookup_expr="exact")

    class Meta:
        model = User
        fields = ["role", "status", "team"]


class TaskFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name="status", lookup_expr="exact")
    assigned_to = django_filters.NumberFilter(field_name="assigned_to_id", lookup_expr="exact")
    assigned_by = django_filters.NumberFilter(field_name="assigned_by_id", lookup_expr="exact")
    deadline_before = django_filters.IsoDateTimeFilter(field_name="deadline", lookup_expr="lte")
    deadline_after = django_filters.IsoDateTimeFilter(field_name="deadline", lookup_expr="gte")
    q = django_filters.CharFilter(method="filter_q")

    def filter_q(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(
            Q(title__icontains=value) | Q(description__icontains=value) | Q(client_name__icontains=value)
        )

    class Meta:
        model = Task
        fields = ["status", "assigned_to", "assigned_by", "deadline_before", "deadline_after", "q"]


class ActivityFilter(django_filters.FilterSet):
    class Meta:
        model = Activity
        fields = ["task", "user", "action"]
