"""Unit tests for auth/store.py and auth/passwords.py -- the credential store.

Covers:
- register() normalizes and persists users with a bcrypt hash, never plaintext
- validation: reserved "admin", username charset, email format, password policy
- duplicate email / username are reported as DuplicateError with the field
- failed registrations leave no record behind
- verify() distinguishes NotFound from InvalidCredential and always runs bcrypt
"""

import pytest

from auth import passwords, store as store_module
from auth.errors import DuplicateError, ErrorKind, InvalidCredentialError, NotFoundError, ValidationError
from auth.passwords import check_password_strength, hash_password, is_strong_password, verify_password

STRONG_PASSWORD = "Str0ng!Pass"


class TestRegister:
    def test_register_returns_opaque_id_and_stores_hash(self, user_store):
        user_id = user_store.register("Alice Smith", "Alice@Example.com", STRONG_PASSWORD)

        user = user_store.get_by_id(user_id)
        assert user is not None
        assert user.username == "alice smith"
        assert user.email == "alice@example.com"
        assert user.hashed_password != STRONG_PASSWORD
        assert user.hashed_password.startswith("$2")
        assert verify_password(STRONG_PASSWORD, user.hashed_password)
        assert user.created_at and user.updated_at

    def test_ids_are_random_not_sequential(self, user_store):
        first = user_store.register("first", "first@example.com", STRONG_PASSWORD)
        second = user_store.register("second", "second@example.com", STRONG_PASSWORD)
        assert first != second
        assert not first.isdigit()
        assert len(first) >= 10

    @pytest.mark.parametrize("name", ["admin", "ADMIN", "Admin", "  admin  "])
    def test_reserved_admin_name_rejected(self, user_store, name):
        with pytest.raises(ValidationError) as exc_info:
            user_store.register(name, "someone@example.com", STRONG_PASSWORD)
        assert exc_info.value.kind is ErrorKind.validation
        assert "admin is reserved" in exc_info.value.message
        assert user_store.count_users() == 0

    @pytest.mark.parametrize("name", ["bob!", "bob-smith", "bob.smith", "b@b"])
    def test_username_charset_enforced(self, user_store, name):
        with pytest.raises(ValidationError) as exc_info:
            user_store.register(name, "bob@example.com", STRONG_PASSWORD)
        assert exc_info.value.field == "username"

    def test_underscores_spaces_and_digits_allowed(self, user_store):
        user_id = user_store.register("bob_the builder 2", "bob@example.com", STRONG_PASSWORD)
        assert user_store.get_by_id(user_id).username == "bob_the builder 2"

    @pytest.mark.parametrize("email", ["not-an-email", "missing@", "@example.com", "two@@example.com"])
    def test_invalid_email_rejected(self, user_store, email):
        with pytest.raises(ValidationError) as exc_info:
            user_store.register("carol", email, STRONG_PASSWORD)
        assert "Enter a valid Email" in exc_info.value.message
        assert user_store.count_users() == 0

    @pytest.mark.parametrize("password", ["short", "alllowercase1!", "NOLOWER123!", "NoDigits!!", "NoSymbol123"])
    def test_weak_passwords_rejected_and_nothing_persisted(self, user_store, password):
        with pytest.raises(ValidationError) as exc_info:
            user_store.register("dave", "dave@example.com", password)
        assert exc_info.value.kind is ErrorKind.validation
        assert user_store.count_users() == 0
        assert user_store.get_by_username("dave") is None

    def test_all_validation_messages_are_reported(self, user_store):
        with pytest.raises(ValidationError) as exc_info:
            user_store.register("bad!", "nope", "weak")
        message = exc_info.value.message
        assert "letters, numbers, space or _" in message
        assert "Enter a valid Email" in message
        assert "Password must be" in message

    def test_duplicate_email_rejected_even_with_different_username(self, user_store):
        user_store.register("erin", "erin@example.com", STRONG_PASSWORD)
        with pytest.raises(DuplicateError) as exc_info:
            user_store.register("erin2", "ERIN@example.com", STRONG_PASSWORD)
        assert exc_info.value.kind is ErrorKind.duplicate
        assert exc_info.value.field == "email"
        assert exc_info.value.message == "Email already exists"
        assert user_store.count_users() == 1

    def test_duplicate_username_is_case_insensitive(self, user_store):
        user_store.register("frank", "frank@example.com", STRONG_PASSWORD)
        with pytest.raises(DuplicateError) as exc_info:
            user_store.register("FRANK", "other@example.com", STRONG_PASSWORD)
        assert exc_info.value.field == "username"
        assert user_store.count_users() == 1

    def test_racing_insert_translated_to_duplicate(self, user_store, monkeypatch):
        """A registration that loses the race after the pre-check still gets DuplicateError."""
        user_store.register("gina", "gina@example.com", STRONG_PASSWORD)
        checks = iter([None, DuplicateError("Email already exists", field="email")])

        def fake_check(username, email):
            outcome = next(checks)
            if outcome is not None:
                raise outcome

        monkeypatch.setattr(user_store, "_raise_if_taken", fake_check)
        with pytest.raises(DuplicateError):
            user_store.register("gina", "gina@example.com", STRONG_PASSWORD)
        assert user_store.count_users() == 1


class TestVerify:
    def test_verify_success_is_case_insensitive(self, user_store):
        user_id = user_store.register("henry", "henry@example.com", STRONG_PASSWORD)
        user = user_store.verify("HENRY", STRONG_PASSWORD)
        assert user.id == user_id

    def test_unknown_user_raises_not_found(self, user_store):
        with pytest.raises(NotFoundError) as exc_info:
            user_store.verify("nobody", STRONG_PASSWORD)
        assert exc_info.value.kind is ErrorKind.not_found

    def test_wrong_password_raises_invalid_credential(self, user_store):
        user_store.register("irene", "irene@example.com", STRONG_PASSWORD)
        with pytest.raises(InvalidCredentialError) as exc_info:
            user_store.verify("irene", "Wr0ng!Pass")
        assert exc_info.value.kind is ErrorKind.invalid_credential

    def test_unknown_user_still_runs_bcrypt(self, user_store, monkeypatch):
        """Timing equalization: the miss path must check against the dummy hash."""
        calls = []

        def spy(plain, hashed):
            calls.append(hashed)
            return False

        monkeypatch.setattr(store_module, "verify_password", spy)
        with pytest.raises(NotFoundError):
            user_store.verify("ghost", STRONG_PASSWORD)
        assert calls == [passwords.DUMMY_HASH]


class TestPasswords:
    def test_hash_is_salted(self):
        assert hash_password(STRONG_PASSWORD) != hash_password(STRONG_PASSWORD)

    def test_verify_rejects_corrupt_hash(self):
        assert verify_password(STRONG_PASSWORD, "not-a-bcrypt-hash") is False

    def test_strength_policy(self):
        assert is_strong_password(STRONG_PASSWORD)
        assert not is_strong_password("Sh0rt!")
        assert not is_strong_password("A1!" + "a" * 80)  # beyond bcrypt's 72-byte limit
        with pytest.raises(ValidationError):
            check_password_strength("alllowercase1!")
