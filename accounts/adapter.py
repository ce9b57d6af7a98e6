from allauth.account.adapter import DefaultAccountAdapter

from .models import Role


class PortalAccountAdapter(DefaultAccountAdapter):
    def save_user(self, request, user, form, commit=True):
        # self-service registration always yields a pending parent account
        user = super().save_user(request, user, form, commit=False)
        user.role = Role.PARENT
        user.is_approved = False
        if commit:
            user.save()
        return user
