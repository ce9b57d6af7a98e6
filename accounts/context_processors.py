from django.conf import settings

from .identity import actor_for


def actor(request):
    return {
        "actor": actor_for(request),
        "site_name": getattr(settings, "SITE_NAME", ""),
    }
