"""Tests for the error types."""

from s2i_operator.errors import errors


def test_field_required_message_names_the_field():
    err = errors.FieldRequiredError(field="defaultBaseImage")
    assert err.message == "Required value: defaultBaseImage is required"
    assert err.status_code == 422


def test_field_required_keeps_explicit_message():
    err = errors.FieldRequiredError(field="username", message="could not get username in secret git")
    assert err.message == "could not get username in secret git"
    assert err.field == "username"


def test_empty_auth_map_is_a_malformed_secret():
    err = errors.EmptyAuthMapError()
    assert isinstance(err, errors.MalformedSecretError)
    assert err.message == "docker config auth len should not be 0"


def test_missing_resource():
    namespaced = errors.missing_resource("Secret", "ns1", "docker")
    cluster_scoped = errors.missing_resource("S2iBuilderTemplate", None, "java")
    assert namespaced.status_code == 404
    assert "ns1/docker" in namespaced.message
    assert "S2iBuilderTemplate java " in cluster_scoped.message


def test_str_and_repr():
    err = errors.BranchMismatchError(message="branch main is not matched")
    assert str(err) == "BranchMismatchError: branch main is not matched"
    assert repr(err) == str(err)
