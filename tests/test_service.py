"""Tests for the MockService class."""

from unittest.mock import patch

import pytest

from grpc_automock.exceptions import (
    UnknownMethodError,
    UnknownServiceError,
    UnresolvableMethodType,
)
from grpc_automock.service import MockService

pytestmark = pytest.mark.timeout(30)


class TestMockService:
    """Test cases for MockService."""

    def test_init(self, mock_service):
        """Test every service is bound."""
        names = [service.full_name for service in mock_service.services()]
        assert names == ["automock.test.UserService", "automock.test.ArchiveService"]
        assert mock_service.failed == {}

    def test_from_proto(self, proto_path):
        """Test loading directly from a proto path."""
        service = MockService.from_proto(proto_path, max_depth=2)
        assert service.synthesizer.max_depth == 2
        assert len(service.services()) == 2

    def test_service_lookup(self, mock_service):
        """Test lookup by full and short name."""
        full = mock_service.service("automock.test.UserService")
        assert mock_service.service("UserService") is full
        with pytest.raises(UnknownServiceError):
            mock_service.service("NoSuchService")

    def test_mock_response(self, mock_service):
        """Test response mocks use the output type."""
        payload = mock_service.mock_response("UserService", "GetUser")
        assert payload.message.DESCRIPTOR.full_name == "automock.test.User"
        assert payload.plain["name"] == "Hello"

    def test_mock_request(self, mock_service):
        """Test request mocks use the input type."""
        payload = mock_service.mock_request("UserService", "UploadUsers")
        assert payload.message.DESCRIPTOR.full_name == "automock.test.User"

    def test_unknown_method(self, mock_service):
        """Test unknown methods raise UnknownMethodError."""
        with pytest.raises(UnknownMethodError):
            mock_service.mock_response("UserService", "DeleteUser")
        with pytest.raises(KeyError):
            mock_service.mock_request("UserService", "DeleteUser")

    def test_describe(self, mock_service):
        """Test the method description carries streaming flags."""
        described = mock_service.describe("UserService")
        chat = described["automock.test.UserService"]["Chat"]
        assert chat == {
            "request_type": "automock.test.User",
            "response_type": "automock.test.User",
            "client_streaming": True,
            "server_streaming": True,
        }
        assert set(mock_service.describe()) == {
            "automock.test.UserService",
            "automock.test.ArchiveService",
        }

    def test_unresolvable_service_is_skipped(self, root):
        """Test a service with unresolvable types does not stop the others."""
        original = MockService.bind

        def bind(self, service):
            if service.name == "ArchiveService":
                raise UnresolvableMethodType(service.full_name, "GetArchive", "x.Missing")
            original(self, service)

        with patch.object(MockService, "bind", bind):
            service = MockService(root)

        assert [s.name for s in service.services()] == ["UserService"]
        assert "automock.test.ArchiveService" in service.failed
        with pytest.raises(UnknownServiceError):
            service.mock_response("ArchiveService", "GetArchive")
