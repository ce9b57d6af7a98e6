from django import forms

from students.models import GRADE_CHOICES, VALID_GRADES
from .models import Announcement, Target


class AnnouncementForm(forms.ModelForm):
    target_grade = forms.ChoiceField(
        choices=[("", "---------")] + list(GRADE_CHOICES), required=False
    )

    class Meta:
        model = Announcement
        fields = [
            "title",
            "content",
            "category",
            "visibility",
            "target",
            "target_grade",
            "target_class",
            "is_pinned",
        ]
        widgets = {"content": forms.Textarea(attrs={"rows": 8})}

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["category"].required = False

    def clean(self):
        data = super().clean()
        target = data.get("target")
        if target == Target.GRADE:
            if data.get("target_grade") not in VALID_GRADES:
                self.add_error("target_grade", "Choose one of the school grades")
            data["target_class"] = None
        elif target == Target.CLASS:
            if data.get("target_class") is None:
                self.add_error("target_class", "Choose a class")
            data["target_grade"] = ""
        else:
            data["target_grade"] = ""
            data["target_class"] = None
        return data


class CommentForm(forms.Form):
    content = forms.CharField(widget=forms.Textarea(attrs={"rows": 3}))
    parent_id = forms.IntegerField(required=False, widget=forms.HiddenInput)
