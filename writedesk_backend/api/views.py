from __future__ import annotations

from django.contrib.auth import authenticate
from django.utils import timezone
from drf_yasg.utils import swagger_auto_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken

from notifications.services import NotificationService, get_notification_service

from .filters import ActivityFilter, TaskFilter, TeamFilter, UserFilter
from .models import Activity, Comment, File, Task, Team, User
from .permissions import (
    CanCreateTask,
    CanManageUsers,
    CanViewDirectory,
    CanViewTask,
    can_create_team,
    can_delete_team,
    can_manage_role,
    can_update_team,
    task_update_scope,
    visible_tasks,
)
from .serializers import (
    ActivitySerializer,
    CommentSerializer,
    FileSerializer,
    LoginSerializer,
    TaskSerializer,
    TeamSerializer,
    UserPublicSerializer,
    UserWriteSerializer,
)
from .services import (
    record_assignment,
    record_comment,
    record_status_change,
    record_task_created,
    record_task_updated,
    record_upload,
)


@swagger_auto_schema(method="get", operation_summary="Health check", tags=["health"])
@api_view(["GET"])
@permission_classes([AllowAny])
# PUBLIC_INTERFACE
def health(request):
    """Simple health check endpoint."""
    return Response({"message": "Server is up!"})


class AuthViewSet(viewsets.ViewSet):
    """Authentication endpoints: login returning JWT tokens, and the current user."""

    permission_classes = [AllowAny]

    @swagger_auto_schema(
        request_body=LoginSerializer,
        responses={200: "Tokens", 401: "Invalid credentials"},
        operation_summary="Login user",
        tags=["auth"],
    )
    @action(detail=False, methods=["post"], url_path="login")
    # PUBLIC_INTERFACE
    def login(self, request):
        """Login with username/password and return JWT tokens."""
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = authenticate(
            request=request,
            username=serializer.validated_data["username"],
            password=serializer.validated_data["password"],
        )
        if not user:
            return Response({"detail": "Invalid credentials."}, status=status.HTTP_401_UNAUTHORIZED)

        refresh = RefreshToken.for_user(user)
        return Response(
            {
                "user": UserPublicSerializer(user).data,
                "refresh": str(refresh),
                "access": str(refresh.access_token),
            }
        )

    @swagger_auto_schema(responses={200: UserPublicSerializer}, operation_summary="Current user", tags=["auth"])
    @action(detail=False, methods=["get"], url_path="me", permission_classes=[IsAuthenticated])
    # PUBLIC_INTERFACE
    def me(self, request):
        """Return the authenticated user."""
        return Response(UserPublicSerializer(request.user).data)


class UserViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Account management.

    Super-admins manage every role; team leads manage writers and
    proofreaders only. Deleting an account deactivates it, so the tasks,
    files and comments that reference it stay intact.
    """

    permission_classes = [IsAuthenticated, CanManageUsers]
    filterset_class = UserFilter
    search_fields = ["username", "full_name", "email"]
    ordering_fields = ["username", "full_name", "role"]
    ordering = ["username"]

    def get_queryset(self):
        return User.objects.filter(is_active=True)

    def get_serializer_class(self):
        if self.action in ("create", "update", "partial_update"):
            return UserWriteSerializer
        return UserPublicSerializer

    def _check_role(self, target_role: str) -> None:
        if not can_manage_role(self.request.user, target_role):
            raise PermissionDenied(f"Not allowed to manage {target_role} accounts.")

    def perform_create(self, serializer):
        self._check_role(serializer.validated_data.get("role", User.Role.WRITER))
        serializer.save()

    def perform_update(self, serializer):
        self._check_role(serializer.instance.role)
        if "role" in serializer.validated_data:
            self._check_role(serializer.validated_data["role"])
        serializer.save()

    def perform_destroy(self, instance):
        if instance.pk == self.request.user.pk:
            raise ValidationError({"detail": "Cannot delete your own account."})
        instance.is_active = False
        instance.save(update_fields=["is_active"])


class TeamViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Teams and their leads. Super-admins manage all teams; a lead may edit their own."""

    serializer_class = TeamSerializer
    permission_classes = [IsAuthenticated, CanViewDirectory]
    filterset_class = TeamFilter
    search_fields = ["name", "description"]
    ordering_fields = ["created_at", "name"]
    ordering = ["name"]

    def get_queryset(self):
        return Team.objects.select_related("team_lead")

    def perform_create(self, serializer):
        if not can_create_team(self.request.user):
            raise PermissionDenied("Only superadmin can create teams.")
        serializer.save()

    def perform_update(self, serializer):
        if not can_update_team(self.request.user, serializer.instance):
            raise PermissionDenied("Unauthorized to update this team.")
        serializer.save()

    def perform_destroy(self, instance):
        if not can_delete_team(self.request.user):
            raise PermissionDenied("Only superadmin can delete teams.")
        instance.delete()


class TaskViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """Tasks with their comments and files.

    Every successful mutation writes an activity row and then fans out
    notifications; a notification failure never fails the request.
    """

    serializer_class = TaskSerializer
    permission_classes = [IsAuthenticated, CanCreateTask, CanViewTask]
    filterset_class = TaskFilter
    ordering_fields = ["created_at", "deadline", "status"]
    ordering = ["-created_at"]

    notification_service: NotificationService | None = None

    def get_queryset(self):
        queryset = Task.objects.select_related("assigned_to", "assigned_by", "proofreader")
        if getattr(self, "swagger_fake_view", False):
            return queryset.none()
        if self.action == "list":
            return visible_tasks(self.request.user, queryset)
        return queryset

    @property
    def notifications(self) -> NotificationService:
        return self.notification_service or get_notification_service()

    def perform_create(self, serializer):
        user = self.request.user
        task = serializer.save(assigned_by=user)
        record_task_created(user, task)

        self.notifications.notify_task_created(task, user)
        if task.assigned_to_id is not None:
            self.notifications.notify_task_assigned(task, user)

    def perform_update(self, serializer):
        user = self.request.user
        task: Task = serializer.instance
        old_status = task.status
        old_assignee_id = task.assigned_to_id

        allowed, reason = task_update_scope(user, task).permits(serializer.validated_data)
        if not allowed:
            raise PermissionDenied(reason)

        extra = {}
        new_status = serializer.validated_data.get("status", old_status)
        if new_status != old_status and new_status == Task.Status.COMPLETED:
            extra["submission_date"] = timezone.now()

        task = serializer.save(**extra)
        record_task_updated(user, task, serializer.validated_data.keys())

        if task.assigned_to_id != old_assignee_id and task.assigned_to_id is not None:
            record_assignment(user, task, old_assignee_id)
            self.notifications.notify_task_assigned(task, user)

        if task.status != old_status:
            record_status_change(user, task, old_status)
            self.notifications.notify_status_changed(task, task.status, user)

    @swagger_auto_schema(responses={200: CommentSerializer(many=True)}, operation_summary="List task comments", tags=["comments"])
    @action(detail=True, methods=["get"], url_path="comments")
    # PUBLIC_INTERFACE
    def comments(self, request, pk=None):
        """List comments for a task, oldest first."""
        task = self.get_object()
        comments = Comment.objects.filter(task=task).select_related("author").order_by("created_at", "id")
        return Response(CommentSerializer(comments, many=True).data)

    @comments.mapping.post
    @swagger_auto_schema(request_body=CommentSerializer, operation_summary="Add task comment", tags=["comments"])
    # PUBLIC_INTERFACE
    def add_comment(self, request, pk=None):
        """Create a comment for a task."""
        task = self.get_object()
        serializer = CommentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        comment = serializer.save(task=task, author=request.user)
        record_comment(request.user, task, comment)
        self.notifications.notify_comment_added(task, request.user)
        return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)

    @swagger_auto_schema(responses={200: FileSerializer(many=True)}, operation_summary="List task files", tags=["files"])
    @action(detail=True, methods=["get"], url_path="files")
    # PUBLIC_INTERFACE
    def files(self, request, pk=None):
        """List files attached to a task."""
        task = self.get_object()
        files = File.objects.filter(task=task).select_related("uploaded_by").order_by("created_at", "id")
        return Response(FileSerializer(files, many=True).data)

    @files.mapping.post
    @swagger_auto_schema(request_body=FileSerializer, operation_summary="Upload task file", tags=["files"])
    # PUBLIC_INTERFACE
    def upload_file(self, request, pk=None):
        """Attach a file to a task."""
        task = self.get_object()
        serializer = FileSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        file = serializer.save(task=task, uploaded_by=request.user)
        record_upload(request.user, task, file)
        self.notifications.notify_file_uploaded(task, file.file_name, request.user)
        return Response(FileSerializer(file).data, status=status.HTTP_201_CREATED)


class ActivityViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Read-only audit trail, filterable by task, user and action."""

    serializer_class = ActivitySerializer
    permission_classes = [IsAuthenticated]
    filterset_class = ActivityFilter
    ordering_fields = ["created_at", "action"]
    ordering = ["-created_at"]

    def get_queryset(self):
        return Activity.objects.select_related("user")
