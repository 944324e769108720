import django.db.models.deletion
from django.db import migrations, models

from guarded_rbac.conf import get_table_name


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("contenttypes", "0002_remove_content_type_name"),
    ]

    operations = [
        migrations.CreateModel(
            name="Permission",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("guard_name", models.CharField(max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": get_table_name("permissions"),
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Role",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("guard_name", models.CharField(max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": get_table_name("roles"),
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="RoleHasPermission",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "permission",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="role_links",
                        to="guarded_rbac.permission",
                    ),
                ),
                (
                    "role",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="permission_links",
                        to="guarded_rbac.role",
                    ),
                ),
            ],
            options={
                "db_table": get_table_name("role_has_permissions"),
            },
        ),
        migrations.AddField(
            model_name="role",
            name="permissions",
            field=models.ManyToManyField(
                blank=True,
                related_name="roles",
                through="guarded_rbac.RoleHasPermission",
                to="guarded_rbac.permission",
            ),
        ),
        migrations.CreateModel(
            name="ModelHasRole",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("object_id", models.CharField(db_index=True, max_length=255)),
                (
                    "content_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to="contenttypes.contenttype",
                    ),
                ),
                (
                    "role",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="model_links",
                        to="guarded_rbac.role",
                    ),
                ),
            ],
            options={
                "db_table": get_table_name("model_has_roles"),
            },
        ),
        migrations.CreateModel(
            name="ModelHasPermission",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("object_id", models.CharField(db_index=True, max_length=255)),
                (
                    "content_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to="contenttypes.contenttype",
                    ),
                ),
                (
                    "permission",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="model_links",
                        to="guarded_rbac.permission",
                    ),
                ),
            ],
            options={
                "db_table": get_table_name("model_has_permissions"),
            },
        ),
        migrations.AddConstraint(
            model_name="permission",
            constraint=models.UniqueConstraint(fields=("name", "guard_name"), name="unique_permission_name_guard"),
        ),
        migrations.AddConstraint(
            model_name="role",
            constraint=models.UniqueConstraint(fields=("name", "guard_name"), name="unique_role_name_guard"),
        ),
        migrations.AddConstraint(
            model_name="rolehaspermission",
            constraint=models.UniqueConstraint(fields=("role", "permission"), name="unique_role_permission"),
        ),
        migrations.AddConstraint(
            model_name="modelhasrole",
            constraint=models.UniqueConstraint(
                fields=("role", "content_type", "object_id"), name="unique_model_role"
            ),
        ),
        migrations.AddConstraint(
            model_name="modelhaspermission",
            constraint=models.UniqueConstraint(
                fields=("permission", "content_type", "object_id"), name="unique_model_permission"
            ),
        ),
    ]
