from allauth.account.forms import SignupForm as AllauthSignupForm
from django import forms

from .models import Role, User


class SignupForm(AllauthSignupForm):
    name = forms.CharField(max_length=150, label="Full name")

    def save(self, request):
        user = super().save(request)
        user.name = self.cleaned_data["name"].strip()
        user.save(update_fields=["name"])
        return user


class UserCreateForm(forms.Form):
    name = forms.CharField(max_length=150)
    email = forms.EmailField()
    password = forms.CharField(min_length=6, widget=forms.PasswordInput)
    role = forms.ChoiceField(choices=Role.choices)


class UserEditForm(forms.Form):
    name = forms.CharField(max_length=150)
    email = forms.EmailField()
    role = forms.ChoiceField(choices=Role.choices)
    password = forms.CharField(
        required=False,
        widget=forms.PasswordInput,
        help_text="Leave blank to keep the current password",
    )

    def clean_password(self):
        pwd = self.cleaned_data.get("password") or ""
        if pwd and len(pwd) < 6:
            raise forms.ValidationError(
                "Password must be at least 6 characters long"
            )
        return pwd


class BroadcastForm(forms.Form):
    recipients = forms.ModelMultipleChoiceField(
        queryset=User.objects.order_by("name", "email")
    )
    subject = forms.CharField(max_length=200)
    message = forms.CharField(widget=forms.Textarea)
