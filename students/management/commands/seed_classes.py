from django.core.management.base import BaseCommand
from students.models import GRADE_CHOICES, SchoolClass

SECTIONS = ("A", "B")


class Command(BaseCommand):
    help = "Create the default classes (one per grade and section) if missing"

    def add_arguments(self, parser):
        parser.add_argument(
            "--sections",
            default=",".join(SECTIONS),
            help="Comma separated section letters (default: A,B)",
        )

    def handle(self, *args, **options):
        sections = [s.strip() for s in options["sections"].split(",") if s.strip()]
        created = 0
        for grade, _ in GRADE_CHOICES:
            for section in sections:
                _, was_created = SchoolClass.objects.get_or_create(
                    grade=grade,
                    section=section,
                    defaults={"name": f"{grade} {section}"},
                )
                created += int(was_created)
        self.stdout.write(self.style.SUCCESS(f"Created {created} classes"))
