from django import forms

from .models import ContactMessage


class ContactForm(forms.ModelForm):
    class Meta:
        model = ContactMessage
        fields = ["name", "email", "subject", "message"]
        widgets = {"message": forms.Textarea(attrs={"rows": 6})}


class StatusForm(forms.Form):
    status = forms.ChoiceField(choices=ContactMessage.STATUS_CHOICES)
