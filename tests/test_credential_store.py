"""Unit tests for auth/store.py -- CredentialStore.

Covers:
- register() stores a bcrypt hash, never the plaintext
- register() rejects empty / absent fields with InvalidInput
- register() rejects duplicate username or duplicate email with Conflict
- authenticate() succeeds with the right password
- authenticate() fails identically for unknown email and wrong password
"""

import pytest

from auth.store import CredentialStore
from core.errors import Conflict, InvalidCredentials, InvalidInput


class TestRegister:
    def test_register_stores_hash_not_plaintext(self, store: CredentialStore) -> None:
        identity = store.register("ana", "ana@x.com", "secret")
        assert identity.username == "ana"
        assert identity.email == "ana@x.com"
        assert identity.password_hash != "secret"
        assert identity.password_hash.startswith("$2")
        assert store.count() == 1

    def test_register_uses_configured_cost(self) -> None:
        s = CredentialStore(bcrypt_rounds=5)
        try:
            identity = s.register("ana", "ana@x.com", "secret")
            # bcrypt hashes encode the cost as "$2b$05$..."
            assert identity.password_hash.split("$")[2] == "05"
        finally:
            s.close()

    @pytest.mark.parametrize(
        "username,email,password",
        [
            ("", "ana@x.com", "secret"),
            ("ana", "", "secret"),
            ("ana", "ana@x.com", ""),
            (None, "ana@x.com", "secret"),
            ("ana", None, "secret"),
            ("ana", "ana@x.com", None),
        ],
    )
    def test_register_missing_field(self, store: CredentialStore, username, email, password) -> None:
        with pytest.raises(InvalidInput):
            store.register(username, email, password)
        assert store.count() == 0

    def test_duplicate_username_conflicts(self, store: CredentialStore) -> None:
        store.register("ana", "ana@x.com", "secret")
        with pytest.raises(Conflict):
            store.register("ana", "other@x.com", "secret")
        assert store.count() == 1

    def test_duplicate_email_conflicts(self, store: CredentialStore) -> None:
        store.register("ana", "ana@x.com", "secret")
        with pytest.raises(Conflict):
            store.register("bob", "ana@x.com", "secret")
        assert store.count() == 1

    def test_uniqueness_is_case_sensitive(self, store: CredentialStore) -> None:
        store.register("ana", "ana@x.com", "secret")
        store.register("Ana", "Ana@x.com", "secret")
        assert store.count() == 2


class TestAuthenticate:
    def test_correct_password(self, store: CredentialStore) -> None:
        store.register("ana", "ana@x.com", "secret")
        identity = store.authenticate("ana@x.com", "secret")
        assert identity.username == "ana"
        assert identity.email == "ana@x.com"

    def test_wrong_password_and_unknown_email_are_indistinguishable(self, store: CredentialStore) -> None:
        store.register("ana", "ana@x.com", "secret")

        with pytest.raises(InvalidCredentials) as wrong_password:
            store.authenticate("ana@x.com", "wrong")
        with pytest.raises(InvalidCredentials) as unknown_email:
            store.authenticate("nobody@x.com", "secret")

        assert wrong_password.value.message == unknown_email.value.message
        assert wrong_password.value.status_code == unknown_email.value.status_code == 401

    def test_lookup_helpers(self, store: CredentialStore) -> None:
        store.register("ana", "ana@x.com", "secret")
        assert store.get_by_username("ana").email == "ana@x.com"
        assert store.get_by_email("ana@x.com").username == "ana"
        assert store.get_by_email("missing@x.com") is None
        assert store.get_by_username("missing") is None
