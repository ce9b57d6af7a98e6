from django import forms

from accounts.models import User


class MessageForm(forms.Form):
    receiver = forms.ModelChoiceField(queryset=User.objects.order_by("name", "email"))
    subject = forms.CharField(max_length=200)
    message = forms.CharField(widget=forms.Textarea(attrs={"rows": 4}))

    def __init__(self, *args, sender=None, **kwargs):
        super().__init__(*args, **kwargs)
        if sender is not None:
            self.fields["receiver"].queryset = (
                User.objects.exclude(pk=sender.pk).order_by("name", "email")
            )
