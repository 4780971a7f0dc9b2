"""Unit tests for docvault.engine.errors - Error hierarchy & serialization."""

import json

import pytest

from docvault.engine.errors import (
    DocVaultConfigError,
    DocVaultError,
    DocVaultNotImplementedError,
    DocVaultSecurityError,
)


class TestDocVaultError:

    def test_basic_creation(self):
        err = DocVaultError("something broke")
        assert err.message == "something broke"
        assert str(err) == "something broke"
        assert err.error_type == "DocVaultError"
        assert err.object_ref is None

    def test_to_dict_splits_context(self):
        err = DocVaultError("fail", object_ref="a.txt", execution_id="exec_1", extra=5)
        d = err.to_dict()
        assert d["object_ref"] == "a.txt"
        assert d["execution_id"] == "exec_1"
        assert d["context"] == {"extra": "5"}

    def test_to_json_round_trips(self):
        err = DocVaultError("fail", object_ref="a.txt")
        assert json.loads(err.to_json())["message"] == "fail"

    def test_repr(self):
        err = DocVaultError("fail", object_ref="a.txt")
        assert repr(err) == "DocVaultError: fail | object_ref=a.txt"


class TestSubclasses:

    @pytest.mark.parametrize("cls", [
        DocVaultConfigError,
        DocVaultSecurityError,
        DocVaultNotImplementedError,
    ])
    def test_all_inherit_base(self, cls):
        err = cls("x")
        assert isinstance(err, DocVaultError)
        assert err.error_type == cls.__name__

    def test_not_implemented_carries_operation(self):
        err = DocVaultNotImplementedError("nope", operation="rename")
        assert err.operation == "rename"
        assert err.to_dict()["operation"] == "rename"

    def test_config_error_path(self):
        err = DocVaultConfigError("bad", config_path="/x/docvault.yaml")
        assert err.to_dict()["config_path"] == "/x/docvault.yaml"
