"""
Unit tests for the user repository and model.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from models.repository import UserRepository
from models.user import User


@pytest.fixture
def repository(db_session):
    return UserRepository(db_session)


class TestUserRepository:

    def test_exists_by_email(self, repository, user_factory):
        user_factory(email="taken@example.com")

        assert repository.exists_by_email("taken@example.com") is True
        assert repository.exists_by_email("free@example.com") is False

    def test_email_lookup_is_exact(self, repository, user_factory):
        user_factory(email="taken@example.com")

        assert repository.exists_by_email("TAKEN@example.com") is False

    def test_find_by_email(self, repository, user_factory):
        user = user_factory(email="li@example.com")

        assert repository.find_by_email("li@example.com").id == user.id
        assert repository.find_by_email("nobody@example.com") is None

    def test_save_flushes_without_committing(self, repository, db_session):
        user = User(name="Zhao Liu", email="zhao@example.com", age=40, password_hash="x")

        repository.save(user)

        assert user.id is not None
        db_session.rollback()
        assert repository.count() == 0

    def test_unique_email_is_enforced(self, repository, user_factory, db_session):
        user_factory(email="dup@example.com")

        with pytest.raises(IntegrityError):
            repository.save(User(name="Copy", email="dup@example.com", age=30, password_hash="x"))
        db_session.rollback()

    def test_find_all_paginates_in_id_order(self, repository, user_factory):
        users = user_factory.create_batch(5)

        page = repository.find_all(limit=2, offset=1)

        assert [u.id for u in page] == [users[1].id, users[2].id]
        assert repository.count() == 5

    def test_delete(self, repository, user_factory, db_session):
        user = user_factory()
        user_id = user.id

        repository.delete(user)
        db_session.commit()

        assert repository.find_by_id(user_id) is None

    @pytest.mark.parametrize("user_id", [2 ** 63, -(2 ** 63) - 1])
    def test_id_outside_column_range_finds_nothing(self, repository, user_id):
        assert repository.find_by_id(user_id) is None

    def test_exists_by_needs_criteria(self, repository):
        with pytest.raises(ValueError):
            repository.exists_by()

    def test_falls_back_to_scoped_session(self, app, db_session):
        assert UserRepository().session is db_session


class TestUserModel:

    def test_password_is_hashed(self, user_factory):
        user = user_factory(password="correct horse")

        assert user.check_password("correct horse")
        assert not user.check_password("wrong")

    def test_to_dict_hides_password_hash(self, user_factory):
        data = user_factory(name="Qian Qi").to_dict()

        assert data['name'] == "Qian Qi"
        assert 'password_hash' not in data
        assert data['created_at'] is not None
