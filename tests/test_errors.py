"""Tests for agentdir error handling."""

from agentdir.errors import (
    AgentDirError,
    BlockedDomainError,
    ClaimNotFoundError,
    DnsTimeoutError,
    InvalidClaimIdError,
    InvalidDomainError,
    InvalidQueryError,
    SnapshotLoadError,
    UnresolvableDomainError,
)


class TestAgentDirError:
    """Test AgentDirError base class."""

    def test_basic_error_creation(self) -> None:
        """Test creating a basic AgentDirError."""
        error = AgentDirError(code="agentdir:test/error", message="Test error message")

        assert error.code == "agentdir:test/error"
        assert error.message == "Test error message"
        assert error.details == {}
        assert str(error) == "Test error message"

    def test_error_details_not_shared(self) -> None:
        """Test that details dict is not shared between instances."""
        error1 = AgentDirError("code", "msg", {"key": "value1"})
        error2 = AgentDirError("code", "msg", {"key": "value2"})

        assert error1.details["key"] == "value1"
        assert error2.details["key"] == "value2"

    def test_to_dict(self) -> None:
        error = AgentDirError("agentdir:test/error", "boom", {"n": 1})
        assert error.to_dict() == {
            "code": "agentdir:test/error",
            "message": "boom",
            "details": {"n": 1},
        }


class TestInputErrors:
    """Input errors carry the rejected value and a stable code."""

    def test_invalid_domain(self) -> None:
        error = InvalidDomainError("localhost", "hostname must contain a dot")
        assert error.code == "agentdir:input/invalid_domain"
        assert error.value == "localhost"
        assert str(error) == "Invalid domain 'localhost': hostname must contain a dot"
        assert error.details == {"value": "localhost", "reason": "hostname must contain a dot"}

    def test_blocked_domain_merges_details(self) -> None:
        error = BlockedDomainError(
            "intranet.example", "10.0.0.1", details={"resolved_ips": ["10.0.0.1"]}
        )
        assert error.code == "agentdir:input/blocked_domain"
        assert error.details["address"] == "10.0.0.1"
        assert error.details["resolved_ips"] == ["10.0.0.1"]
        assert isinstance(error, AgentDirError)

    def test_dns_errors(self) -> None:
        assert UnresolvableDomainError("x.invalid").code == "agentdir:input/unresolvable_domain"
        timeout = DnsTimeoutError("slow.example", 1.5)
        assert timeout.timeout_seconds == 1.5
        assert "1.5s" in timeout.message

    def test_invalid_query_joins_messages(self) -> None:
        error = InvalidQueryError(["limit: bad", "filters.status: bad"])
        assert error.message == "Invalid directory query: limit: bad; filters.status: bad"
        assert error.details["errors"] == ["limit: bad", "filters.status: bad"]


class TestClaimAndStoreErrors:
    def test_claim_errors(self) -> None:
        assert InvalidClaimIdError("nope").code == "agentdir:input/invalid_claim_id"
        not_found = ClaimNotFoundError("abc")
        assert not_found.code == "agentdir:claim/not_found"
        assert not_found.claim_id == "abc"

    def test_snapshot_load_error(self) -> None:
        error = SnapshotLoadError("data/dir.json", "2 validation error(s)")
        assert error.code == "agentdir:store/snapshot_corrupt"
        assert error.location == "data/dir.json"
        assert error.reason == "2 validation error(s)"
        assert "data/dir.json" in str(error)
