import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="SchoolClass",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=64)),
                ("grade", models.CharField(choices=[("Form I", "Form I"), ("Form II", "Form II"), ("Form III", "Form III"), ("Form IV", "Form IV")], max_length=16)),
                ("section", models.CharField(blank=True, max_length=16)),
            ],
            options={
                "ordering": ["grade", "name"],
                "unique_together": {("grade", "section")},
            },
        ),
        migrations.CreateModel(
            name="Student",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("index_no", models.CharField(max_length=32, unique=True)),
                ("first_name", models.CharField(max_length=64)),
                ("last_name", models.CharField(max_length=64)),
                ("grade", models.CharField(choices=[("Form I", "Form I"), ("Form II", "Form II"), ("Form III", "Form III"), ("Form IV", "Form IV")], max_length=16)),
                ("is_approved", models.BooleanField(db_index=True, default=False)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("approval_notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("approved_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="approved_students", to=settings.AUTH_USER_MODEL)),
                ("parent", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="children", to=settings.AUTH_USER_MODEL)),
                ("school_class", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="students", to="students.schoolclass")),
            ],
            options={
                "ordering": ["grade", "first_name", "last_name"],
            },
        ),
    ]
