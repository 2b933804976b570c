from __future__ import annotations

from rest_framework import serializers

from .models import Activity, Comment, File, Task, Team, User
from .permissions import is_assignable


class UserPublicSerializer(serializers.ModelSerializer):
    """A minimal user representation safe for API exposure."""

    class Meta:
        model = User
        fields = ["id", "username", "full_name", "email", "role", "status", "team"]


class UserWriteSerializer(serializers.ModelSerializer):
    """Create or edit an account. The password is hashed and never echoed."""

    password = serializers.CharField(write_only=True, required=False, allow_blank=True, style={"input_type": "password"})
    team_id = serializers.IntegerField(required=False, allow_null=True)

    class Meta:
        model = User
        fields = ["id", "username", "password", "full_name", "email", "role", "status", "team_id"]

    def validate_team_id(self, value: int | None) -> int | None:
        if value is not None and not Team.objects.filter(id=value).exists():
            raise serializers.ValidationError("Team not found.")
        return value

    def validate(self, attrs):
        if self.instance is None and not attrs.get("password"):
            raise serializers.ValidationError({"password": "This field is required."})
        return attrs

    def create(self, validated_data):
        password = validated_data.pop("password")
        return User.objects.create_user(password=password, **validated_data)

    def update(self, instance, validated_data):
        # A blank password leaves the current one in place.
        password = validated_data.pop("password", "")
        if password:
            instance.set_password(password)
        return super().update(instance, validated_data)

    def to_representation(self, instance):
        return UserPublicSerializer(instance, context=self.context).data


class LoginSerializer(serializers.Serializer):
    """Login payload."""
    username = serializers.CharField()
    password = serializers.CharField(write_only=True)


class TeamSerializer(serializers.ModelSerializer):
    team_lead = UserPublicSerializer(read_only=True)
    team_lead_id = serializers.IntegerField(required=False, allow_null=True, write_only=True)

    class Meta:
        model = Team
        fields = ["id", "name", "description", "team_lead", "team_lead_id", "created_at", "updated_at"]

    def validate_team_lead_id(self, value: int | None) -> int | None:
        if value is None:
            return None
        if not User.objects.filter(id=value, role=User.Role.TEAM_LEAD).exists():
            raise serializers.ValidationError("Team lead must be an existing TEAM_LEAD user.")
        return value


def _validate_assignable(value: int | None, label: str) -> int | None:
    if value is None:
        return None
    user = User.objects.filter(id=value).first()
    if not user:
        raise serializers.ValidationError(f"{label} user not found.")
    if not is_assignable(user):
        raise serializers.ValidationError(f"Users with role {user.role} cannot be assigned tasks.")
    return value


class TaskSerializer(serializers.ModelSerializer):
    assigned_by = UserPublicSerializer(read_only=True)
    assigned_to = UserPublicSerializer(read_only=True)
    proofreader = UserPublicSerializer(read_only=True)
    assigned_to_id = serializers.IntegerField(required=False, allow_null=True, write_only=True)
    proofreader_id = serializers.IntegerField(required=False, allow_null=True, write_only=True)

    class Meta:
        model = Task
        fields = [
            "id",
            "title",
            "description",
            "word_count",
            "client_name",
            "budget",
            "status",
            "assigned_by",
            "assigned_to",
            "assigned_to_id",
            "proofreader",
            "proofreader_id",
            "deadline",
            "submission_date",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["assigned_by", "assigned_to", "proofreader", "submission_date", "created_at", "updated_at"]

    def validate_assigned_to_id(self, value: int | None) -> int | None:
        return _validate_assignable(value, "Assignee")

    def validate_proofreader_id(self, value: int | None) -> int | None:
        if value is None:
            return None
        if not User.objects.filter(id=value, role=User.Role.PROOFREADER).exists():
            raise serializers.ValidationError("Proofreader must be an existing PROOFREADER user.")
        return value


class CommentSerializer(serializers.ModelSerializer):
    author = UserPublicSerializer(read_only=True)

    class Meta:
        model = Comment
        fields = ["id", "task", "author", "content", "created_at"]
        read_only_fields = ["task", "author", "created_at"]


class FileSerializer(serializers.ModelSerializer):
    uploaded_by = UserPublicSerializer(read_only=True)

    class Meta:
        model = File
        fields = [
            "id",
            "task",
            "uploaded_by",
            "file_name",
            "file_size",
            "file_type",
            "category",
            "is_submission",
            "content",
            "created_at",
        ]
        read_only_fields = ["task", "uploaded_by", "created_at"]


class ActivitySerializer(serializers.ModelSerializer):
    user = UserPublicSerializer(read_only=True)

    class Meta:
        model = Activity
        fields = ["id", "user", "task", "action", "description", "metadata", "created_at"]
        read_only_fields = ["id", "created_at"]
