# bookkeeping/tests/unit/test_permissions.py
from unittest.mock import Mock, patch

import pytest

from bookkeeping.permissions import CanWriteTransactions, HasAssignedRole
from users.models import AppRole
from users.services.identity_service import Actor


def make_request(method="GET", actor=None):
    request = Mock()
    request.method = method
    request.user = Mock(id=actor.id if actor else 99)
    request.actor = actor
    return request


def make_view(action="list"):
    view = Mock()
    view.action = action
    view.workflow_actions = ("transition",)
    return view


class TestHasAssignedRole:
    def test_actor_with_role(self):
        request = make_request(actor=Actor(id=1, role=AppRole.AUDITEUR))
        assert HasAssignedRole().has_permission(request, make_view()) is True

    @patch("bookkeeping.permissions.logger")
    def test_actor_without_role(self, mock_logger):
        request = make_request(actor=Actor(id=1, role=None))
        assert HasAssignedRole().has_permission(request, make_view()) is False
        assert mock_logger.warning.call_args.kwargs["extra"]["action"] == "bookkeeping_access_denied_no_role"

    def test_missing_actor(self):
        request = make_request(actor=None)
        assert HasAssignedRole().has_permission(request, make_view()) is False


class TestCanWriteTransactions:
    @pytest.mark.parametrize("role", list(AppRole))
    def test_safe_methods_for_everyone(self, role):
        request = make_request("GET", Actor(id=1, role=role))
        assert CanWriteTransactions().has_permission(request, make_view()) is True

    @pytest.mark.parametrize(
        "role,expected",
        [
            (AppRole.SUPER_ADMIN, True),
            (AppRole.ADMIN, True),
            (AppRole.COMPTABLE, True),
            (AppRole.RAF, True),
            (AppRole.CABINET, False),
            (AppRole.AUDITEUR, False),
        ],
    )
    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE"])
    def test_unsafe_methods_need_write_capability(self, role, expected, method):
        request = make_request(method, Actor(id=1, role=role))
        assert CanWriteTransactions().has_permission(request, make_view("create")) is expected

    def test_workflow_action_deferred_to_service(self):
        request = make_request("POST", Actor(id=1, role=AppRole.AUDITEUR))
        assert CanWriteTransactions().has_permission(request, make_view("transition")) is True
