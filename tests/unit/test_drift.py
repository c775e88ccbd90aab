"""Tests for the drift detectors."""

from __future__ import annotations

import pytest

from minio_operator.reconciler.drift import (
    PolicyDiff,
    canonical_json,
    compact_json,
    diff_policies,
    policies_equivalent,
    quota_drifted,
)


class TestQuotaDrift:
    def test_equal_quota(self):
        assert not quota_drifted(10_000_000, 10_000_000)

    def test_different_quota(self):
        assert quota_drifted(10_000_000, 0)


class TestPolicyEquivalence:
    """Test cases for canonical JSON comparison."""

    def test_whitespace_and_key_order_ignored(self):
        assert policies_equivalent('{ "a":1 , "b":2 }', '{"b":2,"a":1}')

    def test_missing_key_is_drift(self):
        assert not policies_equivalent('{ "a":1 , "b":2 }', '{"a":1}')

    def test_nested_documents(self):
        desired = '{"Statement": [{"Effect": "Allow", "Action": ["s3:*"]}], "Version": "2012-10-17"}'
        observed = '{"Version":"2012-10-17","Statement":[{"Action":["s3:*"],"Effect":"Allow"}]}'
        assert policies_equivalent(desired, observed)

    def test_list_order_matters(self):
        assert not policies_equivalent('{"a":[1,2]}', '{"a":[2,1]}')

    def test_absent_observed_is_drift(self):
        assert not policies_equivalent("{}", None)

    def test_unparseable_observed_is_drift(self):
        assert not policies_equivalent("{}", "<xml/>")

    def test_canonical_json_sorts_and_compacts(self):
        assert canonical_json('{ "b": 1, "a": [ 1, 2 ] }') == '{"a":[1,2],"b":1}'

    def test_compact_json_keeps_key_order(self):
        assert compact_json('{ "b": 1, "a": 2 }') == '{"b":1,"a":2}'


class TestPolicyDiff:
    """Test cases for user policy attachment differences."""

    def test_symmetric_difference(self):
        diff = diff_policies(["readonly", "diagnostics"], ["diagnostics", "writeonly"])

        assert diff.to_detach == ("writeonly",)
        assert diff.to_attach == ("readonly",)
        assert diff

    def test_converged_is_falsy(self):
        assert not diff_policies(["a", "b"], {"b", "a"})

    @pytest.mark.parametrize("desired,actual", [(["a", ""], ["a"]), (["a"], ["a", " "]), ([""], [])])
    def test_blank_entries_ignored(self, desired, actual):
        assert diff_policies(desired, actual) == PolicyDiff()
