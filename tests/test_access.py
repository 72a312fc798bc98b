"""
Unit Tests for Access Control
=============================
Access levels, JWT sessions and the access-level evaluator.
"""

import pytest

from conftest import JWT_SECRET


class TestAccessLevel:
    """Tests for the ordered access tiers."""

    def test_ordering(self):
        """Should order PUBLIC below AUTHENTICATED."""
        from signgate_core.access import AccessLevel

        assert AccessLevel.PUBLIC < AccessLevel.AUTHENTICATED
        assert AccessLevel.AUTHENTICATED.satisfies(AccessLevel.PUBLIC)
        assert AccessLevel.PUBLIC.satisfies(AccessLevel.PUBLIC)
        assert not AccessLevel.PUBLIC.satisfies(AccessLevel.AUTHENTICATED)


class TestJWTSessionManager:
    """Tests for session token issuance and verification."""

    def test_issue_and_verify(self):
        """Should round-trip claims and add iat/exp."""
        from signgate_core.access import JWTSessionManager

        sessions = JWTSessionManager(JWT_SECRET, ttl_seconds=60)

        claims = sessions.verify(sessions.issue({"sub": "user@example.com"}))

        assert claims["sub"] == "user@example.com"
        assert claims["exp"] - claims["iat"] == 60

    def test_expired_token(self):
        """Should reject tokens past their expiry."""
        from signgate_core.access import JWTSessionManager

        issued_long_ago = JWTSessionManager(JWT_SECRET, ttl_seconds=60, clock=lambda: 1_000_000)
        token = issued_long_ago.issue({"sub": "user"})

        assert JWTSessionManager(JWT_SECRET).verify(token) is None

    def test_expiry_follows_injected_clock(self):
        """Should judge expiry by the manager's clock, not wall time."""
        from signgate_core.access import JWTSessionManager

        from conftest import FakeClock

        clock = FakeClock()
        sessions = JWTSessionManager(JWT_SECRET, ttl_seconds=60, clock=clock)
        token = sessions.issue({"sub": "user"})

        assert sessions.verify(token)["sub"] == "user"
        clock.advance(59)
        assert sessions.verify(token) is not None
        clock.advance(1)
        assert sessions.verify(token) is None

    def test_token_without_expiry(self):
        """Should reject tokens that carry no exp claim."""
        import jwt

        from signgate_core.access import JWTSessionManager

        token = jwt.encode({"sub": "user", "iat": 0}, JWT_SECRET, algorithm="HS256")

        assert JWTSessionManager(JWT_SECRET).verify(token) is None

    def test_wrong_secret(self):
        """Should reject tokens signed with another key."""
        from signgate_core.access import JWTSessionManager

        token = JWTSessionManager("another-secret-0123456789abcdefghijkl").issue({"sub": "user"})

        assert JWTSessionManager(JWT_SECRET).verify(token) is None

    def test_garbage_token(self):
        """Should reject tokens that are not JWTs."""
        from signgate_core.access import JWTSessionManager

        assert JWTSessionManager(JWT_SECRET).verify("not-a-token") is None

    def test_empty_secret(self):
        """Should refuse to sign with an empty key."""
        from signgate_core.access import JWTSessionManager

        with pytest.raises(ValueError):
            JWTSessionManager("")


class TestAccessLevelEvaluator:
    """Tests for request classification."""

    def _evaluator(self):
        from signgate_core.access import AccessLevelEvaluator, JWTSessionManager

        sessions = JWTSessionManager(JWT_SECRET)
        return AccessLevelEvaluator(sessions), sessions

    def test_no_token_is_public(self):
        """Should classify requests without a token as PUBLIC."""
        from signgate_core.access import AccessLevel

        evaluator, _ = self._evaluator()

        grant = evaluator.evaluate({})

        assert grant.level == AccessLevel.PUBLIC
        assert grant.subject is None

    def test_valid_token_is_authenticated(self):
        """Should classify a verified bearer token as AUTHENTICATED."""
        from signgate_core.access import AccessLevel

        evaluator, sessions = self._evaluator()
        token = sessions.issue({"sub": "user@example.com"})

        grant = evaluator.evaluate({"Authorization": f"Bearer {token}"})

        assert grant.level == AccessLevel.AUTHENTICATED
        assert grant.subject == "user@example.com"

    def test_invalid_token_is_public(self):
        """Should fall back to PUBLIC for tokens that fail verification."""
        from signgate_core.access import AccessLevel

        evaluator, _ = self._evaluator()

        assert evaluator.evaluate({"Authorization": "Bearer forged"}).level == AccessLevel.PUBLIC

    def test_malformed_header_is_public(self):
        """Should require the Bearer scheme."""
        from signgate_core.access import AccessLevel

        evaluator, sessions = self._evaluator()
        token = sessions.issue({"sub": "user"})

        assert evaluator.evaluate({"Authorization": token}).level == AccessLevel.PUBLIC

    def test_without_session_manager(self):
        """Should classify everything as PUBLIC without sessions."""
        from signgate_core.access import AccessLevel, AccessLevelEvaluator

        grant = AccessLevelEvaluator().evaluate({"Authorization": "Bearer anything"})

        assert grant.level == AccessLevel.PUBLIC
