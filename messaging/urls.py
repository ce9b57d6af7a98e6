from django.urls import path
from . import views

app_name = "messaging"

urlpatterns = [
    path("", views.inbox, name="inbox"),
    path("conversation/<int:user_id>/", views.conversation, name="conversation"),
    path("send/", views.send, name="send"),
    path("new/", views.new, name="new"),
    path("delete/<int:pk>/", views.delete, name="delete"),
]
