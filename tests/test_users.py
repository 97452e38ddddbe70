"""Tests for password hashing and the user directory."""

import pytest

from storefront.core import passwords
from storefront.core.errors import DuplicateEmail, NotFound, Unauthorized
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.user import UserCreateData, UserUpdate

PASSWORD = "secret123"


class TestPasswords:
    def test_verify_matching_password(self):
        hashed = passwords.hash_password("correct horse", rounds=4)
        assert passwords.verify_password("correct horse", hashed) is True

    def test_verify_wrong_password(self):
        hashed = passwords.hash_password("correct horse", rounds=4)
        assert passwords.verify_password("battery staple", hashed) is False

    def test_hash_is_salted(self):
        assert passwords.hash_password("same", rounds=4) != passwords.hash_password("same", rounds=4)

    @pytest.mark.parametrize("bad_hash", ["", "not-a-bcrypt-hash", "$2b$12$short"])
    def test_malformed_hash_is_false_not_error(self, bad_hash):
        assert passwords.verify_password("anything", bad_hash) is False

    def test_default_work_factor_is_at_least_12(self):
        from storefront.core.config import Settings

        assert Settings.model_fields["BCRYPT_ROUNDS"].default >= 12


class TestUserService:
    def test_create_hashes_password(self, session, user_service):
        user = user_service.create(
            session, UserCreateData(email="Alice@Gmail.com", password=PASSWORD)
        )
        assert user.email == "alice@gmail.com"
        assert user.password_hash != PASSWORD
        assert user_service.verify_password(PASSWORD, user.password_hash)
        assert user.name == "alice"
        assert user.roles == "User"

    def test_ids_increase(self, make_user):
        first = make_user(email="a@gmail.com")
        second = make_user(email="b@gmail.com")
        assert second.id > first.id

    def test_repository_pages_oldest_first(self, session, make_user):
        first = make_user(email="a@gmail.com")
        second = make_user(email="b@gmail.com")
        make_user(email="c@gmail.com")
        users = UserRepository().list_users(session, skip=0, limit=2)
        assert [u.id for u in users] == [first.id, second.id]

    def test_duplicate_email_rejected(self, session, user_service, make_user):
        make_user(email="dup@gmail.com")
        with pytest.raises(DuplicateEmail) as exc:
            user_service.create(
                session, UserCreateData(email="DUP@gmail.com", password=PASSWORD)
            )
        assert exc.value.status_code == 422
        assert exc.value.data == {"email": "Email already exists"}

    def test_authenticate(self, session, user_service, customer):
        assert user_service.authenticate(session, customer.email, PASSWORD).id == customer.id
        with pytest.raises(Unauthorized):
            user_service.authenticate(session, customer.email, "wrong-password")
        with pytest.raises(Unauthorized):
            user_service.authenticate(session, "nobody@gmail.com", PASSWORD)

    def test_change_password(self, session, user_service, customer):
        before = customer.updated_at
        user = user_service.change_password(session, customer.id, "new-secret")
        assert user_service.verify_password("new-secret", user.password_hash)
        assert not user_service.verify_password(PASSWORD, user.password_hash)
        assert user.updated_at >= before

    def test_change_password_unknown_user(self, session, user_service):
        with pytest.raises(NotFound):
            user_service.change_password(session, 9999, "new-secret")

    def test_update_role(self, session, user_service, customer):
        assert user_service.update_role(session, customer.id, "Admin").roles == "Admin"

    def test_update_role_unknown_user(self, session, user_service):
        with pytest.raises(NotFound):
            user_service.update_role(session, 9999, "Admin")

    def test_change_own_password_requires_current(self, session, user_service, customer):
        with pytest.raises(Unauthorized):
            user_service.change_own_password(session, customer, "wrong", "new-secret")

    def test_update_profile_only_touches_sent_fields(self, session, user_service, make_user):
        user = make_user(email="p@gmail.com", name="Before")
        user = user_service.update_profile(session, user, UserUpdate(phone="0901234567"))
        assert user.phone == "0901234567"
        assert user.name == "Before"

    def test_ensure_default_admin_is_idempotent(self, session, user_service):
        first = user_service.ensure_default_admin(session, "root@shop.vn", PASSWORD)
        second = user_service.ensure_default_admin(session, "root@shop.vn", PASSWORD)
        assert first.id == second.id
        assert first.roles == "Admin"
