from django.urls import path
from . import views

app_name = "students"

urlpatterns = [
    path("", views.list_students, name="list"),
    path("new/", views.create_student, name="create"),
    path("<int:pk>/edit/", views.edit_student, name="edit"),
    path("<int:pk>/approve/", views.approve_student, name="approve"),
    path("<int:pk>/reject/", views.reject_student, name="reject"),
    path("<int:pk>/delete/", views.delete_student, name="delete"),
    path("add-my-children/", views.add_my_children, name="add_my_children"),
    path("my-children/", views.my_children, name="my_children"),
    path("my-children/add/", views.add_child, name="add_child"),
    path("my-children/<int:pk>/edit/", views.edit_child, name="edit_child"),
    path("my-children/<int:pk>/delete/", views.delete_child, name="delete_child"),
    path("api/classes/<str:grade>/", views.classes_for_grade, name="classes_for_grade"),
]
