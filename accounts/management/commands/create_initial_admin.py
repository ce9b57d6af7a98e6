import os

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from accounts.models import Role, User


class Command(BaseCommand):
    help = "Create the first admin account unless one already exists"

    def add_arguments(self, parser):
        parser.add_argument("--email", default=settings.INITIAL_ADMIN_EMAIL)
        parser.add_argument("--name", default=settings.INITIAL_ADMIN_NAME)
        parser.add_argument(
            "--password",
            default=os.environ.get("INITIAL_ADMIN_PASSWORD", ""),
            help="Defaults to $INITIAL_ADMIN_PASSWORD",
        )

    def handle(self, *args, **options):
        if User.objects.filter(role=Role.ADMIN).exists():
            self.stdout.write("Admin account already exists. Skipping setup.")
            return
        password = options["password"]
        if len(password) < 6:
            raise CommandError(
                "Provide --password (or INITIAL_ADMIN_PASSWORD) of at least 6 characters"
            )
        User.objects.create_superuser(
            email=options["email"],
            password=password,
            name=options["name"],
        )
        self.stdout.write(
            self.style.SUCCESS(f"Initial admin account created: {options['email']}")
        )
