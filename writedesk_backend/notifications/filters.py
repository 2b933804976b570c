from __future__ import annotations

import django_filters

from .models import Notification


class NotificationFilter(django_filters.FilterSet):
    is_read = django_filters.BooleanFilter(field_name="is_read")
    type = django_filters.ChoiceFilter(field_name="type", choices=Notification.Type.choices)

    class Meta:
        model = Notification
        fields = ["is_read", "type", "task"]
