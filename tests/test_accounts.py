import logging
from unittest.mock import MagicMock

import pytest
import requests

from mcp_github_multi.accounts import AccountClient, AccountRegistry, AccountSession, normalize_owner
from mcp_github_multi.config import Account
from mcp_github_multi.errors import ConfigError, InvalidOwner, NoOwnerSelected, UnknownOwner


def test_registry_requires_accounts(client_factory):
    with pytest.raises(ConfigError, match="No GitHub accounts configured"):
        AccountRegistry([], client_factory)


def test_registry_rejects_case_insensitive_duplicates(client_factory):
    with pytest.raises(ConfigError, match="Duplicate"):
        AccountRegistry([Account("Alice", "a"), Account("alice", "b")], client_factory)


def test_list_accounts_keeps_configuration_order(client_factory):
    registry = AccountRegistry(
        [Account("zed", "z"), Account("Alice", "a"), Account("bob", "b")], client_factory
    )
    assert registry.list_accounts() == ["zed", "Alice", "bob"]


def test_resolve_without_selection_fails(registry):
    session = AccountSession(registry)

    with pytest.raises(NoOwnerSelected) as excinfo:
        session.resolve_owner()

    assert "alice, bob" in excinfo.value.message


def test_select_then_resolve(registry):
    session = AccountSession(registry)

    session.select_account("bob")
    assert session.resolve_owner() == "bob"

    session.select_account("bob")
    assert session.resolve_owner() == "bob"


def test_select_unknown_owner_keeps_selection(registry):
    session = AccountSession(registry)

    with pytest.raises(InvalidOwner, match="Available owners: alice, bob"):
        session.select_account("carol")
    assert session.selected_owner is None

    session.select_account("alice")
    with pytest.raises(InvalidOwner):
        session.select_account("carol")
    assert session.resolve_owner() == "alice"


def test_selection_is_case_insensitive(registry, clients):
    session = AccountSession(registry)

    session.select_account("BOB")

    assert session.client_for() is clients["bob"]


def test_selection_stores_configured_spelling(registry):
    session = AccountSession(registry)

    assert session.select_account("BOB") == "bob"
    assert session.selected_owner == "bob"
    assert AccountSession(registry, default_owner=" Alice ").selected_owner == "alice"


def test_explicit_owner_wins_over_selection(registry, clients):
    session = AccountSession(registry, default_owner="alice")

    assert session.resolve_owner("bob") == "bob"
    assert session.client_for("Bob") is clients["bob"]


def test_explicit_unknown_owner(registry):
    session = AccountSession(registry, default_owner="alice")

    with pytest.raises(UnknownOwner, match="No GitHub token configured for owner: carol"):
        session.client_for("carol")


def test_default_owner_applied(registry):
    assert AccountSession(registry, default_owner="Bob").resolve_owner() == "Bob"


def test_unknown_default_owner_only_warns(registry, caplog):
    with caplog.at_level(logging.WARNING):
        session = AccountSession(registry, default_owner="carol")

    assert session.selected_owner is None
    assert "carol" in caplog.text


def test_sessions_do_not_share_selection(registry):
    first = AccountSession(registry)
    second = AccountSession(registry)

    first.select_account("alice")

    assert second.selected_owner is None


def test_normalize_owner():
    assert normalize_owner("  Alice ") == "alice"


def test_account_client_post_returns_json():
    client = AccountClient(Account("alice", "tok"))
    response = MagicMock()
    response.json.return_value = {"sha": "abc"}
    client._session.post = MagicMock(return_value=response)

    assert client.post("/repos/alice/demo/git/commits", {"message": "m"}) == {"sha": "abc"}
    client._session.post.assert_called_once_with(
        "https://api.github.com/repos/alice/demo/git/commits", json={"message": "m"}
    )
    assert client._session.headers["Authorization"] == "Bearer tok"


def test_account_client_post_raises_http_errors():
    client = AccountClient(Account("alice", "tok"))
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError("422 Client Error")
    client._session.post = MagicMock(return_value=response)

    with pytest.raises(requests.HTTPError):
        client.post("/repos/alice/demo/git/commits", {})


def test_account_client_repr_hides_token():
    assert "tok-secret" not in repr(Account("alice", "tok-secret"))


def test_isolated_repo_has_its_own_requester():
    client = AccountClient(Account("alice", "tok"))

    first = client.isolated_repo("alice", "demo")
    second = client.isolated_repo("alice", "demo")

    assert first._requester is not second._requester
    assert "/repos/alice/demo" in first.url
