"""Tests for the user state machine."""

from __future__ import annotations

import pytest

from conftest import InMemoryRecordStore, build_machine
from minio_operator.constants import USER_FINALIZER
from minio_operator.models import ResourceState
from minio_operator.reconciler.engine import Outcome
from minio_operator.reconciler.user import UserAdapter


def user_spec(**overrides):
    spec = {"accessKey": "alice", "secretKey": "s3cr3tpassw0rd", "policies": ["readonly"]}
    spec.update(overrides)
    return spec


@pytest.fixture
def store():
    return InMemoryRecordStore("User")


class TestUserCreation:
    """Test cases for user creation."""

    def test_creates_user_and_attaches_policies(self, store, admin, provider, operator_settings):
        ref = store.add("u1", user_spec(policies=["readonly", "diagnostics", ""]), state="Creating")
        machine = build_machine(UserAdapter(provider, operator_settings), store)

        result = machine.reconcile(ref)

        record = store.get(ref)
        assert result.outcome == Outcome.REQUEUE
        assert record.state == ResourceState.READY
        assert record.has_finalizer(USER_FINALIZER)
        assert admin.users["alice"]["enabled"] is True
        assert admin.users["alice"]["policies"] == {"readonly", "diagnostics"}

    def test_disabled_user_gets_no_policies(self, store, admin, provider, operator_settings):
        ref = store.add("u1", user_spec(accountStatus="disabled"), state="Creating")
        machine = build_machine(UserAdapter(provider, operator_settings), store)

        machine.reconcile(ref)

        assert admin.users["alice"]["enabled"] is False
        assert admin.called("attach_policies") == 0

    def test_repeat_creation_is_idempotent(self, store, admin, provider, operator_settings):
        admin.users["alice"] = {"secret_key": "old", "enabled": True, "policies": {"readonly"}}
        ref = store.add("u1", user_spec(), state="Creating")
        machine = build_machine(UserAdapter(provider, operator_settings), store)

        machine.reconcile(ref)
        store.bodies[ref]["status"]["state"] = "Creating"
        result = machine.reconcile(ref)

        assert result.outcome == Outcome.REQUEUE
        assert store.get(ref).state == ResourceState.READY
        assert admin.users["alice"]["secret_key"] == "s3cr3tpassw0rd"

    def test_finalizer_registered_before_attach(self, store, admin, provider, operator_settings):
        admin.fail("attach_policies", "policy readonly does not exist")
        ref = store.add("u1", user_spec(), state="Creating")
        machine = build_machine(UserAdapter(provider, operator_settings), store)

        result = machine.reconcile(ref)

        record = store.get(ref)
        assert result.outcome == Outcome.ERROR
        assert record.has_finalizer(USER_FINALIZER)
        assert record.message == "policy readonly does not exist"

    def test_missing_access_key_is_reported(self, store, provider, operator_settings):
        ref = store.add("u1", {"secretKey": "x"}, state="Creating")
        machine = build_machine(UserAdapter(provider, operator_settings), store)

        assert machine.reconcile(ref).outcome == Outcome.ERROR
        assert store.get(ref).message == "user accessKey is required"


class TestUserConvergence:
    """Test cases for perpetual convergence while Ready."""

    def test_policy_diff_converges(self, store, admin, provider, operator_settings):
        admin.users["alice"] = {"secret_key": "x", "enabled": True, "policies": {"diagnostics", "writeonly"}}
        ref = store.add(
            "u1", user_spec(policies=["readonly", "diagnostics"]), state="Ready", finalizers=[USER_FINALIZER]
        )
        machine = build_machine(UserAdapter(provider, operator_settings), store)

        result = machine.reconcile(ref)

        assert result.outcome == Outcome.DONE
        assert store.get(ref).state == ResourceState.READY
        assert ("detach_policies", ("alice", ["writeonly"])) in admin.calls
        assert ("attach_policies", ("alice", ["readonly"])) in admin.calls
        assert admin.users["alice"]["policies"] == {"readonly", "diagnostics"}

    def test_credentials_are_always_resubmitted(self, store, admin, provider, operator_settings):
        admin.users["alice"] = {"secret_key": "old", "enabled": True, "policies": {"readonly"}}
        ref = store.add("u1", user_spec(), state="Ready", finalizers=[USER_FINALIZER])
        machine = build_machine(UserAdapter(provider, operator_settings), store)

        machine.reconcile(ref)
        machine.reconcile(ref)

        assert admin.called("upsert_user") == 2
        assert admin.users["alice"]["secret_key"] == "s3cr3tpassw0rd"
        assert admin.called("attach_policies") == 0

    def test_disabled_account_policies_untouched(self, store, admin, provider, operator_settings):
        admin.users["alice"] = {"secret_key": "x", "enabled": True, "policies": {"writeonly"}}
        ref = store.add("u1", user_spec(accountStatus="disabled"), state="Ready", finalizers=[USER_FINALIZER])
        machine = build_machine(UserAdapter(provider, operator_settings), store)

        result = machine.reconcile(ref)

        assert result.outcome == Outcome.DONE
        assert admin.users["alice"]["enabled"] is False
        assert admin.users["alice"]["policies"] == {"writeonly"}

    def test_error_recovers_in_place(self, store, admin, provider, operator_settings):
        admin.users["alice"] = {"secret_key": "x", "enabled": True, "policies": set()}
        ref = store.add(
            "u1", user_spec(), state="Error", message="earlier failure", finalizers=[USER_FINALIZER]
        )
        machine = build_machine(UserAdapter(provider, operator_settings), store)

        result = machine.reconcile(ref)

        record = store.get(ref)
        assert result.outcome == Outcome.DONE
        assert record.state == ResourceState.READY
        assert record.message == ""
        assert admin.users["alice"]["policies"] == {"readonly"}


class TestUserDeletion:
    """Test cases for user removal."""

    def test_removes_user(self, store, admin, provider, operator_settings, events):
        admin.users["alice"] = {"secret_key": "x", "enabled": True, "policies": set()}
        ref = store.add("u1", user_spec(), state="Ready", finalizers=[USER_FINALIZER], deleting=True)
        machine = build_machine(UserAdapter(provider, operator_settings), store)

        assert machine.reconcile(ref).outcome == Outcome.DONE
        assert "alice" not in admin.users
        assert store.get(ref) is None
        assert events[0]["message"] == "Custom Resource u1 is being deleted from the namespace default"

    def test_missing_secret_does_not_block_deletion(self, store, admin, provider, operator_settings, events):
        admin.users["alice"] = {"secret_key": "x", "enabled": True, "policies": set()}
        spec = user_spec(secretKey="", accountStatus="paused")
        ref = store.add("u1", spec, state="Ready", finalizers=[USER_FINALIZER], deleting=True)
        machine = build_machine(UserAdapter(provider, operator_settings), store)

        assert machine.reconcile(ref).outcome == Outcome.DONE
        assert "alice" not in admin.users
        assert store.get(ref) is None
