from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ActivityViewSet, AuthViewSet, TaskViewSet, TeamViewSet, UserViewSet, health

router = DefaultRouter()
# Accept both "/api/tasks" and "/api/tasks/".
router.trailing_slash = "/?"
router.register(r"auth", AuthViewSet, basename="auth")
router.register(r"users", UserViewSet, basename="users")
router.register(r"teams", TeamViewSet, basename="teams")
router.register(r"tasks", TaskViewSet, basename="tasks")
router.register(r"activities", ActivityViewSet, basename="activities")

urlpatterns = [
    path("health/", health, name="Health"),
    path("", include(router.urls)),
]
