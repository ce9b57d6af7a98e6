from django import forms
from django.db.models import Q

from accounts.models import Role, User
from .models import GRADE_CHOICES, SchoolClass


class GuardianLinkForm(forms.Form):
    index_no = forms.CharField(max_length=32, label="Index number")
    first_name = forms.CharField(max_length=64)
    last_name = forms.CharField(max_length=64)
    grade = forms.ChoiceField(choices=GRADE_CHOICES)
    school_class = forms.ModelChoiceField(
        queryset=SchoolClass.objects.all(), required=False, label="Class"
    )


class AdminGuardianLinkForm(GuardianLinkForm):
    parent = forms.ModelChoiceField(
        queryset=User.objects.filter(role=Role.PARENT, is_approved=True).order_by("name")
    )

    def __init__(self, *args, current_parent_id=None, **kwargs):
        super().__init__(*args, **kwargs)
        if current_parent_id is not None:
            self.fields["parent"].queryset = User.objects.filter(
                Q(role=Role.PARENT, is_approved=True) | Q(pk=current_parent_id)
            ).order_by("name")


class DecisionForm(forms.Form):
    notes = forms.CharField(widget=forms.Textarea, required=False)
