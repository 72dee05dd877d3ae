# users/tests/test_commands.py
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from bookkeeping.tests.factories import UserFactory
from users.models import AppRole, UserRole


@pytest.mark.django_db
class TestAssignRoleCommand:
    def test_defaults_to_first_superuser(self):
        root = UserFactory(is_superuser=True, is_staff=True)
        UserFactory(email="dg@example.com")
        out = StringIO()

        call_command("assign_role", "dg@example.com", "super_admin", stdout=out)

        user_role = UserRole.objects.get(user__email="dg@example.com")
        assert user_role.role == AppRole.SUPER_ADMIN
        assert user_role.assigned_by == root
        assert "Super Admin" in out.getvalue()

    def test_explicit_assigner(self):
        UserFactory(email="admin@example.com", role=AppRole.ADMIN)
        UserFactory(email="raf@example.com")

        call_command("assign_role", "raf@example.com", "raf", "--by", "admin@example.com", stdout=StringIO())

        assert UserRole.objects.get(user__email="raf@example.com").role == AppRole.RAF

    def test_unknown_user(self):
        with pytest.raises(CommandError, match="No user"):
            call_command("assign_role", "ghost@example.com", "raf")

    def test_no_superuser(self):
        UserFactory(email="raf@example.com")
        with pytest.raises(CommandError, match="superuser"):
            call_command("assign_role", "raf@example.com", "raf")

    def test_permission_error_reported(self):
        UserFactory(email="clerk@example.com", role=AppRole.COMPTABLE)
        UserFactory(email="raf@example.com")
        with pytest.raises(CommandError, match="administrators"):
            call_command("assign_role", "raf@example.com", "raf", "--by", "clerk@example.com")
