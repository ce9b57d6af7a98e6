from accounts.models import Role, User
from students.models import SchoolClass, Student


class PortalFixturesMixin:
    """Shared helpers to create accounts, classes and guardian links."""

    password = "testpass123"

    def make_user(self, email, role=Role.PARENT, approved=None, name=""):
        extra = {}
        if approved is not None:
            extra["is_approved"] = approved
        return User.objects.create_user(
            email=email,
            password=self.password,
            name=name or email.split("@")[0].title(),
            role=role,
            **extra,
        )

    def make_admin(self, email="admin@example.com"):
        return self.make_user(email, role=Role.ADMIN)

    def make_teacher(self, email="teacher@example.com"):
        return self.make_user(email, role=Role.TEACHER)

    def make_parent(self, email="parent@example.com", approved=True):
        return self.make_user(email, role=Role.PARENT, approved=approved)

    def make_class(self, grade="Form II", section="A"):
        return SchoolClass.objects.create(
            name=f"{grade} {section}", grade=grade, section=section
        )

    def make_child(self, parent, index_no="S-001", grade="Form II", school_class=None, approved=True):
        return Student.objects.create(
            index_no=index_no,
            first_name="Amina",
            last_name="Juma",
            grade=grade,
            school_class=school_class,
            parent=parent,
            is_approved=approved,
        )
