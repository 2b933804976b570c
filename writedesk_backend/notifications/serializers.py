from __future__ import annotations

from rest_framework import serializers

from api.serializers import UserPublicSerializer

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    triggered_by = UserPublicSerializer(read_only=True)

    class Meta:
        model = Notification
        fields = ["id", "type", "title", "message", "task", "triggered_by", "is_read", "read_at", "created_at"]
        read_only_fields = fields


class UnreadCountSerializer(serializers.Serializer):
    count = serializers.IntegerField(min_value=0)


class MarkAllReadSerializer(serializers.Serializer):
    updated = serializers.IntegerField(min_value=0)
