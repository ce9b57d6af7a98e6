from django.urls import path
from . import views

app_name = "contact"

urlpatterns = [
    path("", views.index, name="index"),
    path("messages/", views.inbox, name="inbox"),
    path("messages/<int:pk>/", views.detail, name="detail"),
    path("messages/<int:pk>/status/", views.update_status, name="update_status"),
    path("messages/<int:pk>/delete/", views.delete, name="delete"),
]
