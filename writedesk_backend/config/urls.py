"""
URL configuration for the WriteDesk project.

HTTP API under /api/, Django admin under /admin/, and drf-yasg docs at
/docs/, /redoc/ and /swagger.json. The WebSocket route lives in
``notifications.routing`` and is mounted by ``config.asgi``.
"""
from django.contrib import admin
from django.urls import include, path, re_path
from django.views.decorators.csrf import csrf_exempt
from drf_yasg import openapi
from drf_yasg.views import get_schema_view
from rest_framework import permissions

API_DESCRIPTION = (
    "WriteDesk manages writing tasks from creation through review and delivery.\n\n"
    "Auth: Use JWT. Obtain tokens via /api/auth/login/ and pass:\n"
    "Authorization: Bearer <access_token>\n\n"
    "Live updates: open a WebSocket to /ws and send "
    '{"type": "auth", "userId": <id>, "token": <access_token>}.'
)


def schema_info(description: str = API_DESCRIPTION) -> openapi.Info:
    return openapi.Info(title="WriteDesk API", default_version="v1", description=description)


def build_schema_view(url: str | None = None):
    return get_schema_view(schema_info(), public=True, url=url, permission_classes=(permissions.AllowAny,))


def public_base_url(request) -> str:
    """Scheme and host as the browser sees them, honouring X-Forwarded-Port."""
    host = request.get_host()
    port = request.META.get("HTTP_X_FORWARDED_PORT")
    if port and ":" not in host:
        host = f"{host}:{port}"
    return f"{request.scheme}://{host}"


@csrf_exempt
def swagger_ui(request, *args, **kwargs):
    view = build_schema_view(url=public_base_url(request))
    return view.with_ui("swagger", cache_timeout=0)(request)


schema_view = build_schema_view()

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("api.urls")),
    path("api/", include("notifications.urls")),
    re_path(r"^docs/$", swagger_ui, name="schema-swagger-ui"),
    re_path(r"^redoc/$", schema_view.with_ui("redoc", cache_timeout=0), name="schema-redoc"),
    re_path(r"^swagger\.json$", schema_view.without_ui(cache_timeout=0), name="schema-json"),
]
