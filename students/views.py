import logging

from django.contrib import messages
from django.core.exceptions import ValidationError
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from accounts.authorization import Action, Decision, authorize, check_authorization, deny
from accounts.errors import ConflictError, DependencyFailure
from .forms import AdminGuardianLinkForm, DecisionForm, GuardianLinkForm
from .models import VALID_GRADES, SchoolClass, Student
from .serializers import SchoolClassSerializer
from . import services

logger = logging.getLogger(__name__)


def _initial(student):
    return {
        "index_no": student.index_no,
        "first_name": student.first_name,
        "last_name": student.last_name,
        "grade": student.grade,
        "school_class": student.school_class_id,
        "parent": student.parent_id,
    }


def _run(form, func, *args, **kwargs):
    """Call a service and fold its recoverable failures into ``form``."""
    try:
        return func(*args, **kwargs)
    except ConflictError as e:
        form.add_error("index_no", e.message)
    except ValidationError as e:
        form.add_error(None, e)
    except DependencyFailure as e:
        form.add_error(None, e.message)
    return None


# -- admin roster ---------------------------------------------------------

@authorize(Action.MANAGE_STUDENTS)
def list_students(request):
    students = Student.objects.select_related("parent", "school_class")
    status_filter = request.GET.get("status")
    if status_filter == "pending":
        students = students.pending()
    elif status_filter == "approved":
        students = students.approved()
    return render(
        request,
        "students/index.html",
        {"students": students, "status": status_filter or "all", "active_nav": "students"},
    )


@authorize(Action.MANAGE_STUDENTS)
def create_student(request):
    form = AdminGuardianLinkForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        student = _run(
            form,
            services.create_guardian_link,
            request.user,
            form.cleaned_data["parent"],
            form.cleaned_data,
        )
        if student:
            messages.success(request, "Student created.")
            return redirect("students:list")
    return render(request, "students/form.html", {"form": form, "active_nav": "students"})


@authorize(Action.MANAGE_STUDENTS)
def edit_student(request, pk: int):
    student = services.get_owned_link(request.actor, pk)
    form = AdminGuardianLinkForm(
        request.POST or None,
        initial=_initial(student),
        current_parent_id=student.parent_id,
    )
    if request.method == "POST" and form.is_valid():
        updated = _run(
            form,
            services.update_guardian_link,
            request.actor,
            pk,
            form.cleaned_data,
            parent=form.cleaned_data["parent"],
        )
        if updated:
            messages.success(request, "Student updated.")
            return redirect("students:list")
    return render(
        request,
        "students/form.html",
        {"form": form, "student": student, "active_nav": "students"},
    )


@require_POST
@authorize(Action.MANAGE_STUDENTS)
def approve_student(request, pk: int):
    form = DecisionForm(request.POST)
    notes = form.cleaned_data.get("notes", "") if form.is_valid() else ""
    try:
        services.decide_guardian_link(request.user, pk, services.APPROVE, notes)
    except DependencyFailure as e:
        messages.error(request, e.message)
        return redirect("students:list")
    messages.success(request, "Student approved.")
    return redirect("students:list")


@require_POST
@authorize(Action.MANAGE_STUDENTS)
def reject_student(request, pk: int):
    form = DecisionForm(request.POST)
    notes = form.cleaned_data.get("notes", "") if form.is_valid() else ""
    try:
        services.decide_guardian_link(request.user, pk, services.REJECT, notes)
    except (ConflictError, DependencyFailure) as e:
        messages.error(request, e.message)
        return redirect("students:list")
    messages.success(request, "Student rejected.")
    return redirect("students:list")


@require_POST
@authorize(Action.MANAGE_STUDENTS)
def delete_student(request, pk: int):
    services.delete_guardian_link(request.actor, pk)
    messages.success(request, "Student deleted.")
    return redirect("students:list")


# -- parent self-service --------------------------------------------------

def _own_children(user):
    return Student.objects.select_related("school_class").filter(parent=user)


@authorize(Action.SUBMIT_CHILDREN_PENDING)
def add_my_children(request):
    form = GuardianLinkForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        if _run(form, services.submit_guardian_link, request.user, form.cleaned_data):
            return redirect("students:add_my_children")
    return render(
        request,
        "students/add_my_children.html",
        {"form": form, "children": _own_children(request.user)},
    )


@authorize(Action.MANAGE_OWN_CHILDREN)
def my_children(request):
    return render(
        request,
        "students/my_children.html",
        {"children": _own_children(request.user), "active_nav": "children"},
    )


@authorize(Action.MANAGE_OWN_CHILDREN)
def add_child(request):
    form = GuardianLinkForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        if _run(form, services.submit_guardian_link, request.user, form.cleaned_data):
            messages.success(request, "Child added. An administrator will review it shortly.")
            return redirect("students:my_children")
    return render(request, "students/child_form.html", {"form": form, "active_nav": "children"})


@authorize(Action.MANAGE_OWN_CHILDREN)
def edit_child(request, pk: int):
    student = Student.objects.filter(pk=pk).first()
    decision = check_authorization(request.actor, Action.EDIT_OWN_CHILD, student)
    if decision is not Decision.ALLOW:
        return deny(request, decision)
    form = GuardianLinkForm(request.POST or None, initial=_initial(student))
    if request.method == "POST" and form.is_valid():
        if _run(form, services.update_guardian_link, request.actor, pk, form.cleaned_data):
            messages.success(request, "Child updated.")
            return redirect("students:my_children")
    return render(
        request,
        "students/child_form.html",
        {"form": form, "student": student, "active_nav": "children"},
    )


@require_POST
@authorize(Action.MANAGE_OWN_CHILDREN)
def delete_child(request, pk: int):
    student = Student.objects.filter(pk=pk).first()
    decision = check_authorization(request.actor, Action.EDIT_OWN_CHILD, student)
    if decision is not Decision.ALLOW:
        return deny(request, decision)
    services.delete_guardian_link(request.actor, pk)
    messages.success(request, "Child removed.")
    return redirect("students:my_children")


@api_view(["GET"])
def classes_for_grade(request, grade: str):
    if not request.user.is_authenticated:
        return Response({"error": "Authentication required"}, status=status.HTTP_401_UNAUTHORIZED)
    if grade not in VALID_GRADES:
        return Response({"error": "Invalid grade"}, status=status.HTTP_400_BAD_REQUEST)
    classes = SchoolClass.objects.filter(grade=grade).order_by("section", "name")
    return Response(SchoolClassSerializer(classes, many=True).data)
