"""Tests for guard resolution."""

from ddt import data as ddt_data
from ddt import ddt, unpack
from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, override_settings

from guarded_rbac.guards import get_default_guard_name, get_guard_names, get_model_for_guard, model_label
from guarded_rbac.models import Permission, Role
from guarded_rbac.tests.stubs.models import ApiClient, ArchivedUser

User = get_user_model()


@ddt
class TestGetDefaultGuardName(SimpleTestCase):
    """Test cases for ``get_default_guard_name``."""

    @ddt_data(
        (User, "web"),
        (ApiClient, "api"),
        (ArchivedUser, "web"),
        (Permission, "web"),
        (Role, "web"),
        ("auth.User", "web"),
        ("stubs.apiclient", "api"),
    )
    @unpack
    def test_resolves_guard_from_configuration(self, model, expected_guard):
        """Configured user models map to their guard, anything else to the default.

        Expected Result:
        - The resolved guard matches the configuration in the test settings.
        """
        self.assertEqual(get_default_guard_name(model), expected_guard)

    def test_accepts_instances(self):
        """A model instance resolves like its class."""
        self.assertEqual(get_default_guard_name(ApiClient(name="svc")), "api")

    @override_settings(GUARDED_RBAC_MODEL_GUARDS={"stubs.ApiClient": "internal"})
    def test_explicit_mapping_wins_over_guard_models(self):
        """An explicit model mapping takes precedence over the guards' user models."""
        self.assertEqual(get_default_guard_name(ApiClient), "internal")

    @override_settings(GUARDED_RBAC_DEFAULT_GUARD="admin", GUARDED_RBAC_GUARDS={"admin": "auth.User"})
    def test_falls_back_to_default_guard(self):
        """Models unknown to the configuration get the default guard."""
        self.assertEqual(get_default_guard_name(ApiClient), "admin")
        self.assertEqual(get_default_guard_name(Permission), "admin")

    def test_is_deterministic(self):
        """Repeated calls return the same guard."""
        results = {get_default_guard_name(ApiClient) for _ in range(5)}
        self.assertEqual(results, {"api"})


class TestGuardHelpers(SimpleTestCase):
    """Test cases for the remaining guard helpers."""

    def test_get_guard_names(self):
        self.assertEqual(get_guard_names(), ["web", "api"])

    def test_get_model_for_guard(self):
        self.assertIs(get_model_for_guard("web"), User)
        self.assertIs(get_model_for_guard("api"), ApiClient)

    def test_get_model_for_unknown_guard(self):
        self.assertIsNone(get_model_for_guard("unknown"))

    @override_settings(GUARDED_RBAC_GUARDS=None)
    def test_default_guards_use_auth_user_model(self):
        """Without explicit guards the default guard maps to AUTH_USER_MODEL."""
        self.assertEqual(get_guard_names(), ["web"])
        self.assertIs(get_model_for_guard("web"), User)

    def test_model_label(self):
        self.assertEqual(model_label(User), "auth.user")
        self.assertEqual(model_label("Stubs.ApiClient"), "stubs.apiclient")
