from django.urls import path
from . import views

app_name = "accounts"

urlpatterns = [
    path("auth/pending-approval/", views.pending_approval, name="pending_approval"),
    # user administration
    path("users/", views.user_list, name="users"),
    path("users/new/", views.user_create, name="user_create"),
    path("users/email/", views.broadcast, name="broadcast"),
    path("users/<int:pk>/", views.user_detail, name="user_detail"),
    path("users/<int:pk>/edit/", views.user_edit, name="user_edit"),
    path("users/<int:pk>/delete/", views.user_delete, name="user_delete"),
    path("users/<int:pk>/approve/", views.user_approve, name="user_approve"),
]
