from __future__ import annotations

import pytest

from sehra_realtime.application.exceptions import ForbiddenError
from sehra_realtime.application.policies.permissions import assert_admin, can_chat_with
from tests.conftest import BRIDE_ID, make_user


def _visible(identity, users, assigned=frozenset()):
    return {u.id for u in users if can_chat_with(identity, u, assigned)}


@pytest.fixture
def everyone(admin, supervisor, vendor, bride, groom, family):
    return [admin, supervisor, vendor, bride, groom, family]


def test_client_sees_staff_only(identity_of, everyone, bride, admin, supervisor, vendor):
    assert _visible(identity_of(bride), everyone) == {admin.id, supervisor.id, vendor.id}


def test_supervisor_sees_assigned_clients_vendors_admins(identity_of, everyone, supervisor, admin, vendor):
    visible = _visible(identity_of(supervisor), everyone, {BRIDE_ID})
    assert visible == {admin.id, vendor.id, BRIDE_ID}


def test_vendor_sees_clients_supervisors_admins(identity_of, everyone, vendor):
    other_vendor = make_user(30, "vendor")
    visible = _visible(identity_of(vendor), everyone + [other_vendor])
    assert other_vendor.id not in visible
    assert vendor.id not in visible
    assert len(visible) == 5


def test_admin_sees_everyone_but_self(identity_of, everyone, admin):
    assert _visible(identity_of(admin), everyone) == {u.id for u in everyone} - {admin.id}


def test_assert_admin(identity_of, admin, supervisor):
    assert_admin(identity_of(admin))
    with pytest.raises(ForbiddenError):
        assert_admin(identity_of(supervisor))
