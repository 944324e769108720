"""Test cases for user role and permission assignments and checks.

The test settings configure two guards: "web" for ``auth.User`` and "api" for
``stubs.ApiClient``. ``stubs.ArchivedUser`` is mapped to "web" explicitly.
"""

from ddt import data as ddt_data
from ddt import ddt, unpack
from django.db import transaction

from guarded_rbac.exceptions import GuardDoesNotMatch, PermissionDoesNotExist, RoleDoesNotExist
from guarded_rbac.models import ModelHasPermission, ModelHasRole
from guarded_rbac.tests.stubs.models import ArchivedUser
from guarded_rbac.tests.test_utils import AuthorizationTestCase, make_api_client, make_user


class UserAuthorizationTestCase(AuthorizationTestCase):
    """Base test case with a small set of roles and permissions under both guards."""

    def setUp(self):
        super().setUp()
        self.user = make_user()
        self.client_record = make_api_client()

        self.edit = self.permissions.create("edit-articles", "web")
        self.publish = self.permissions.create("publish-articles", "web")
        self.delete = self.permissions.create("delete-articles", "web")
        self.api_edit = self.permissions.create("edit-articles", "api")

        self.writer = self.roles.create("writer", "web")
        self.editor = self.roles.create("editor", "web")
        self.api_writer = self.roles.create("writer", "api")

        self.roles.give_permission_to(self.writer, self.edit)
        self.roles.give_permission_to(self.editor, self.edit, self.publish)
        self.roles.give_permission_to(self.api_writer, self.api_edit)


@ddt
class TestRoleAssignments(UserAuthorizationTestCase):
    """Test cases for assigning, removing and checking user roles."""

    @ddt_data(True, False)
    def test_assign_role(self, by_name):
        role = "writer" if by_name else self.writer

        result = self.authz.assign_role(self.user, role)

        self.assertIs(result, self.user)
        self.assertEqual(self.authz.get_role_names(self.user), ["writer"])
        self.assertTrue(self.authz.has_role(self.user, role))

    def test_assign_role_is_idempotent(self):
        self.authz.assign_role(self.user, self.writer)
        self.authz.assign_role(self.user, "writer")

        self.assertEqual(ModelHasRole.objects.for_model(self.user).count(), 1)

    def test_assign_role_of_other_guard_raises(self):
        with self.assertRaises(GuardDoesNotMatch):
            self.authz.assign_role(self.user, self.api_writer)

        self.assertFalse(ModelHasRole.objects.exists())

    def test_assign_unknown_role_raises(self):
        with self.assertRaises(RoleDoesNotExist):
            self.authz.assign_role(self.user, "writer", "reviewer")

        self.assertFalse(ModelHasRole.objects.exists())

    def test_same_role_name_resolves_per_guard(self):
        """The role name "writer" resolves under the guard of whoever receives it."""
        self.authz.assign_role(self.user, "writer")
        self.authz.assign_role(self.client_record, "writer")

        self.assertEqual(self.authz.get_roles(self.user), [self.writer])
        self.assertEqual(self.authz.get_roles(self.client_record), [self.api_writer])

    def test_remove_role(self):
        self.authz.assign_role(self.user, self.writer, self.editor)

        self.authz.remove_role(self.user, "writer")

        self.assertEqual(self.authz.get_role_names(self.user), ["editor"])

        self.authz.remove_role(self.user, self.editor, "unknown")

        self.assertEqual(self.authz.get_role_names(self.user), [])

    def test_sync_roles(self):
        self.authz.assign_role(self.user, self.writer)

        self.authz.sync_roles(self.user, "editor")

        self.assertEqual(self.authz.get_role_names(self.user), ["editor"])

    def test_sync_roles_with_nothing_clears(self):
        self.authz.assign_role(self.user, self.writer, self.editor)

        self.authz.sync_roles(self.user)

        self.assertEqual(self.authz.get_roles(self.user), [])

    def test_roles_are_per_user(self):
        bob = make_user("bob")
        self.authz.assign_role(self.user, self.writer)

        self.assertFalse(self.authz.has_role(bob, "writer"))
        self.assertEqual(list(self.roles.get_users(self.writer)), [self.user])

    @ddt_data(
        (["writer"], True),
        (["editor"], False),
        (["editor", "writer"], True),
        (["reviewer"], False),
        ([], False),
    )
    @unpack
    def test_has_role_with_collection(self, roles, expected):
        self.authz.assign_role(self.user, self.writer)

        self.assertEqual(self.authz.has_role(self.user, roles), expected)
        self.assertEqual(self.authz.has_any_role(self.user, *roles), expected)

    def test_has_role_of_other_guard_is_false(self):
        self.authz.assign_role(self.client_record, self.api_writer)

        self.assertTrue(self.authz.has_role(self.client_record, self.api_writer))
        self.assertFalse(self.authz.has_role(self.user, self.api_writer))

    @ddt_data(
        (("writer",), True),
        (("writer", "editor"), True),
        (("writer", "reviewer"), False),
        ((), False),
    )
    @unpack
    def test_has_all_roles(self, roles, expected):
        self.authz.assign_role(self.user, self.writer, self.editor)

        self.assertEqual(self.authz.has_all_roles(self.user, *roles), expected)

    def test_archived_user_uses_mapped_guard(self):
        """A model mapped to "web" receives "web" roles even though it is not the guard's user model."""
        archived = ArchivedUser.objects.create(username="carol")

        self.authz.assign_role(archived, "writer")

        self.assertEqual(self.authz.guard_for(archived), "web")
        self.assertEqual(self.authz.get_roles(archived), [self.writer])
        self.assertTrue(self.authz.has_permission(archived, "edit-articles"))


@ddt
class TestDirectPermissions(UserAuthorizationTestCase):
    """Test cases for permissions granted directly to users."""

    @ddt_data(True, False)
    def test_give_and_revoke(self, by_name):
        permission = "delete-articles" if by_name else self.delete

        self.authz.give_permission_to(self.user, permission)
        self.assertTrue(self.authz.has_direct_permission(self.user, permission))
        self.assertTrue(self.authz.has_permission(self.user, permission))

        self.authz.revoke_permission_to(self.user, permission)
        self.assertFalse(self.authz.has_direct_permission(self.user, permission))
        self.assertFalse(self.authz.has_permission(self.user, permission))

    def test_give_unknown_permission_raises(self):
        with self.assertRaises(PermissionDoesNotExist):
            self.authz.give_permission_to(self.user, "archive-articles")

        self.assertFalse(ModelHasPermission.objects.exists())

    def test_give_permission_of_other_guard_raises(self):
        with self.assertRaises(GuardDoesNotMatch):
            self.authz.give_permission_to(self.user, self.api_edit)

        self.assertFalse(ModelHasPermission.objects.exists())

    def test_revoke_keeps_role_permissions(self):
        """Revoking a direct permission leaves the same permission granted through a role."""
        self.authz.assign_role(self.user, self.writer)
        self.authz.give_permission_to(self.user, self.edit)

        self.authz.revoke_permission_to(self.user, self.edit)

        self.assertFalse(self.authz.has_direct_permission(self.user, self.edit))
        self.assertTrue(self.authz.has_permission(self.user, self.edit))

    def test_sync_permissions(self):
        self.authz.give_permission_to(self.user, self.edit, self.publish)

        self.authz.sync_permissions(self.user, "delete-articles")

        self.assertEqual(self.authz.get_direct_permissions(self.user), [self.delete])

    def test_permissions_of_api_client(self):
        self.authz.give_permission_to(self.client_record, "edit-articles")

        self.assertEqual(self.authz.get_direct_permissions(self.client_record), [self.api_edit])
        self.assertFalse(self.authz.has_permission(self.user, "edit-articles"))


@ddt
class TestPermissionChecks(UserAuthorizationTestCase):
    """Test cases for ``has_permission`` and the permission listings."""

    @ddt_data(
        ("edit-articles", True),
        ("publish-articles", False),
        ("delete-articles", False),
        ("archive-articles", False),
    )
    @unpack
    def test_has_permission_via_role(self, name, expected):
        self.authz.assign_role(self.user, self.writer)

        self.assertEqual(self.authz.has_permission(self.user, name), expected)

    def test_permission_follows_role_changes(self):
        """A permission given to a role after assignment is visible to its holders."""
        self.authz.assign_role(self.user, self.writer)
        self.assertFalse(self.authz.has_permission(self.user, self.delete))

        self.roles.give_permission_to(self.writer, self.delete)
        self.assertTrue(self.authz.has_permission(self.user, self.delete))

        self.roles.revoke_permission_to(self.writer, self.delete)
        self.assertFalse(self.authz.has_permission(self.user, self.delete))

    def test_removing_role_removes_its_permissions(self):
        self.authz.assign_role(self.user, self.editor)
        self.assertTrue(self.authz.has_permission(self.user, "publish-articles"))

        self.authz.remove_role(self.user, self.editor)

        self.assertFalse(self.authz.has_permission(self.user, "publish-articles"))

    def test_permission_of_other_guard_is_false(self):
        """The "api" permission is invisible to a "web" user even with a matching name."""
        self.authz.assign_role(self.user, self.writer)

        self.assertTrue(self.authz.has_permission(self.user, "edit-articles"))
        self.assertFalse(self.authz.has_permission(self.user, self.api_edit))
        self.assertFalse(self.authz.has_permission(self.user, "edit-articles", guard_name="api"))
        self.assertTrue(self.authz.has_permission(self.user, "edit-articles", guard_name="web"))

    def test_api_client_checks(self):
        self.authz.assign_role(self.client_record, "writer")

        self.assertTrue(self.authz.has_permission(self.client_record, "edit-articles"))
        self.assertFalse(self.authz.has_permission(self.client_record, self.edit))
        self.assertFalse(self.authz.has_permission(self.client_record, "publish-articles"))

    def test_has_any_and_all_permissions(self):
        self.authz.assign_role(self.user, self.writer)
        self.authz.give_permission_to(self.user, self.delete)

        self.assertTrue(self.authz.has_any_permission(self.user, "publish-articles", "edit-articles"))
        self.assertFalse(self.authz.has_any_permission(self.user, "publish-articles"))
        self.assertTrue(self.authz.has_all_permissions(self.user, "edit-articles", self.delete))
        self.assertFalse(self.authz.has_all_permissions(self.user, "edit-articles", "publish-articles"))
        self.assertFalse(self.authz.has_all_permissions(self.user))

    def test_get_all_permissions(self):
        self.authz.assign_role(self.user, self.writer, self.editor)
        self.authz.give_permission_to(self.user, self.edit, self.delete)

        self.assertEqual(self.authz.get_direct_permissions(self.user), [self.delete, self.edit])
        self.assertEqual(self.authz.get_permissions_via_roles(self.user), [self.edit, self.publish])
        self.assertEqual(
            self.authz.get_permission_names(self.user),
            ["delete-articles", "edit-articles", "publish-articles"],
        )

    def test_user_without_links_has_nothing(self):
        self.assertEqual(self.authz.get_all_permissions(self.user), [])
        self.assertEqual(self.authz.get_roles(self.user), [])
        self.assertFalse(self.authz.has_permission(self.user, "edit-articles"))

    def test_forget_user(self):
        self.authz.assign_role(self.user, self.writer, self.editor)
        self.authz.give_permission_to(self.user, self.delete)

        removed = self.authz.forget_user(self.user)

        self.assertEqual(removed, 3)
        self.assertEqual(self.authz.get_all_permissions(self.user), [])

    def test_rolled_back_grant_is_forgotten(self):
        """A role grant checked inside a transaction that rolls back does not outlive it."""
        self.authz.assign_role(self.user, self.writer)

        with self.assertRaises(RuntimeError):
            with transaction.atomic():
                self.roles.give_permission_to(self.writer, self.delete)
                self.assertTrue(self.authz.has_permission(self.user, self.delete))
                raise RuntimeError("rollback")

        self.assertFalse(self.writer.permissions.filter(pk=self.delete.pk).exists())
        self.assertFalse(self.authz.has_permission(self.user, self.delete))
        self.assertFalse(self.roles.has_permission_to(self.writer, self.delete))
        self.assertTrue(self.authz.has_permission(self.user, self.edit))
