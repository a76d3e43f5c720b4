"""Unit tests for TokenRepository."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.orm.exc import StaleDataError

from tests.factories.token import TokenRecordFactory
from tokenstore.models.token import TokenRecord
from tokenstore.repositories.token import TokenRepository
from tokenstore.services._shared.errors import InvalidArgumentError
from tokenstore.services.tokens.dto import TokenData, TokenId, TokenType

T1000 = datetime.fromtimestamp(1000, tz=UTC)
T2000 = datetime.fromtimestamp(2000, tz=UTC)


def _data(token_id="a" * 40, token_type=TokenType.ACCESS, **overrides) -> TokenData:
    fields = {
        "client_id": "c1",
        "user_id": "u1",
        "expires": T1000,
        "scope": "read",
    }
    fields.update(overrides)
    return TokenData(token_id=TokenId(token_id), type=token_type, **fields)


def _count(session, token_id) -> int:
    stmt = select(func.count()).select_from(TokenRecord).where(TokenRecord.token_id == token_id)
    return session.execute(stmt).scalar_one()


class FixedIdGenerator:
    def __init__(self, value: str) -> None:
        self.value = value
        self.calls: list[TokenType] = []

    def generate_token_id(self, token_type):
        self.calls.append(token_type)
        return TokenId(self.value)


class TestTokenRepository:
    """Ensure ``TokenRepository`` honours the store contract."""

    @pytest.fixture()
    def repo(self):
        return TokenRepository()

    # ---------------------------- save / load ----------------------------

    def test_save_then_load(self, repo, session):
        """A saved token is returned field-for-field by ``load_token``."""
        saved = repo.save_token(_data())
        session.commit()

        loaded = repo.load_token("a" * 40, TokenType.ACCESS)
        assert loaded is saved
        assert loaded.client_id == "c1"
        assert loaded.user_id == "u1"
        assert loaded.expires == T1000
        assert loaded.scope == "read"
        assert loaded.version_id == 1

    def test_save_existing_updates_in_place(self, repo, session):
        """Saving an existing id overwrites the mutable fields, no duplicate row."""
        repo.save_token(_data())
        session.commit()

        updated = repo.save_token(_data(expires=T2000, scope="read write"))
        session.commit()

        assert _count(session, "a" * 40) == 1
        assert updated.expires == T2000
        assert updated.scope == "read write"
        assert updated.version_id == 2

    def test_save_preserves_arbitrary_client_and_user(self, repo, session, faker):
        """Free-form client/user identifiers round-trip unchanged."""
        client_id = faker.uuid4()
        user_id = faker.email()
        scope = " ".join(faker.words(nb=3))

        repo.save_token(_data(token_id="9" * 40, client_id=client_id, user_id=user_id, scope=scope))
        session.commit()

        loaded = repo.load_token("9" * 40, TokenType.ACCESS)
        assert (loaded.client_id, loaded.user_id, loaded.scope) == (client_id, user_id, scope)
        assert repo.load_token_by_user_id(user_id, TokenType.ACCESS) is loaded

    def test_load_unknown_returns_none(self, repo):
        """Unknown identifiers are simply absent."""
        assert repo.load_token("f" * 40, TokenType.ACCESS) is None

    def test_partitions_are_independent(self, repo, session):
        """The same id saved as access and refresh yields two records."""
        repo.save_token(_data(client_id="access-client"))
        repo.save_token(_data(token_type=TokenType.REFRESH, client_id="refresh-client"))
        session.commit()

        assert _count(session, "a" * 40) == 2
        assert repo.load_token("a" * 40, TokenType.ACCESS).client_id == "access-client"
        assert repo.load_token("a" * 40, "refresh").client_id == "refresh-client"

    def test_load_in_other_partition_is_none(self, repo, session):
        """An access token is never visible through the refresh partition."""
        repo.save_token(_data())
        session.commit()

        assert repo.load_token("a" * 40, TokenType.REFRESH) is None

    # ---------------------------- by user ----------------------------

    def test_load_by_user_returns_furthest_expiry(self, repo, session):
        """With several tokens for a user the greatest expiry wins."""
        now = datetime.now(UTC)
        TokenRecordFactory(user_id="u1", expires=now + timedelta(minutes=5))
        best = TokenRecordFactory(user_id="u1", expires=now + timedelta(hours=2))
        TokenRecordFactory(user_id="u1", expires=now + timedelta(hours=1))
        TokenRecordFactory(user_id="u1", type=TokenType.REFRESH, expires=now + timedelta(days=9))
        TokenRecordFactory(user_id="u2", expires=now + timedelta(days=1))
        session.commit()

        found = repo.load_token_by_user_id("u1", TokenType.ACCESS)
        assert found is not None
        assert found.token_id == best.token_id

    def test_load_by_user_unknown_returns_none(self, repo, session):
        TokenRecordFactory(user_id="u1")
        session.commit()

        assert repo.load_token_by_user_id("nobody", TokenType.ACCESS) is None

    # ---------------------------- parameters ----------------------------

    def test_parameters_are_and_combined(self, repo, session):
        """Every filter must match for a record to be returned."""
        TokenRecordFactory(client_id="c1", user_id="u1", scope="read")
        match = TokenRecordFactory(client_id="c1", user_id="u1", scope="write")
        session.commit()

        found = repo.get_token_by_parameters({"client_id": "c1", "scope": "write"})
        assert found.token_id == match.token_id
        assert repo.get_token_by_parameters({"client_id": "c1", "scope": "admin"}) is None

    def test_zero_parameters_match_whole_partition(self, repo, session):
        """No filters returns the furthest-expiring record of the partition."""
        now = datetime.now(UTC)
        TokenRecordFactory(expires=now + timedelta(hours=1))
        latest = TokenRecordFactory(expires=now + timedelta(hours=3))
        session.commit()

        assert repo.get_token_by_parameters({}).token_id == latest.token_id
        assert repo.get_token_by_parameters(None, TokenType.REFRESH) is None

    def test_unknown_filter_key_rejected(self, repo):
        """Unknown keys raise before any SQL is emitted."""
        with pytest.raises(InvalidArgumentError, match="Unknown filter fields"):
            repo.get_token_by_parameters({"password": "x"})

    def test_parameters_accept_token_id_values(self, repo, session):
        """``TokenId`` filter values match like their string form."""
        repo.save_token(_data())
        session.commit()

        found = repo.get_token_by_parameters({"token_id": TokenId("a" * 40)})
        assert found is not None
        assert found.token_id == "a" * 40

    def test_parameters_filter_on_aware_expiry(self, repo, session):
        repo.save_token(_data(expires=T2000))
        session.commit()

        assert repo.get_token_by_parameters({"expires": T2000}).token_id == "a" * 40
        assert repo.get_token_by_parameters({"expires": T1000}) is None

    def test_naive_expiry_filter_rejected(self, repo):
        """Naive datetimes are refused before any SQL is emitted."""
        with pytest.raises(InvalidArgumentError, match="timezone-aware"):
            repo.get_token_by_parameters({"expires": datetime(2030, 1, 1)})

    def test_unknown_token_type_rejected(self, repo):
        with pytest.raises(InvalidArgumentError):
            repo.load_token("a" * 40, "bearer")

    # ---------------------------- update ----------------------------

    def test_update_never_touches_id_or_type(self, repo, session):
        """Identifier and partition of the target record stay as they were."""
        record = TokenRecordFactory(token_id="1" * 40, type=TokenType.ACCESS)
        session.commit()

        other = _data(token_id="2" * 40, token_type=TokenType.REFRESH, client_id="c9")
        updated = repo.update_token(record, other)
        session.commit()

        assert updated.token_id == "1" * 40
        assert updated.type is TokenType.ACCESS
        assert updated.client_id == "c9"
        assert repo.load_token("2" * 40, TokenType.REFRESH) is None

    def test_concurrent_modification_raises_stale_data(self, repo, session):
        """A write against an outdated version is rejected, not merged."""
        record = TokenRecordFactory()
        session.commit()
        assert record.version_id == 1

        # Another writer bumps the row behind the ORM's back
        session.execute(
            update(TokenRecord.__table__)
            .where(TokenRecord.__table__.c.token_id == record.token_id)
            .values(version_id=2, scope="other")
        )

        with pytest.raises(StaleDataError):
            repo.update_token(record, _data(token_id=record.token_id, scope="mine"))
        session.rollback()

    # ---------------------------- ids ----------------------------

    def test_generate_token_id_delegates(self, session):
        generator = FixedIdGenerator("e" * 40)
        repo = TokenRepository(id_generator=generator)

        assert repo.generate_token_id(TokenType.REFRESH) == TokenId("e" * 40)
        assert generator.calls == [TokenType.REFRESH]

    def test_generate_token_id_without_generator(self, repo):
        with pytest.raises(RuntimeError, match="no id generator"):
            repo.generate_token_id(TokenType.ACCESS)
