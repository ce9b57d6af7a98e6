import logging
from urllib.parse import urlparse

from allauth.account.signals import user_signed_up
from django.conf import settings
from django.contrib.sites.models import Site
from django.db import DatabaseError
from django.db.models.signals import post_migrate
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(user_signed_up)
def on_user_signed_up(sender, request, user, **kwargs):
    logger.info("Parent registered, awaiting approval: id=%s", user.pk)


@receiver(post_migrate)
def sync_site_domain(sender, **kwargs):
    if sender.name != "accounts":
        return
    site_url = getattr(settings, "SITE_URL", "")
    if not site_url:
        return
    host = urlparse(site_url).hostname or "example.com"
    try:
        Site.objects.update_or_create(
            id=getattr(settings, "SITE_ID", 1),
            defaults={"domain": host, "name": host},
        )
    except DatabaseError as e:
        # best-effort; never block migrations
        logger.warning("Could not sync site domain: %s", str(e))
