from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("django-rq/", include("django_rq.urls")),
    path("accounts/", include("allauth.urls")),
    # app URLs
    path("", include("accounts.urls")),
    path("students/", include("students.urls")),
    path("messages/", include("messaging.urls")),
    path("contact/", include("contact.urls")),
    path("notifications/", include("notifications.urls")),
    # home feed, posts, comments
    path("", include("content.urls")),
]
