"""Tests for the gRPC server and the HTTP inspector."""

from unittest.mock import MagicMock

import grpc
import pytest
from fastapi.testclient import TestClient
from google.protobuf import descriptor_pool, message_factory

from grpc_automock.config import StreamConfig
from grpc_automock.loader import ProtoRoot
from grpc_automock.servers import MockGRPCServer, MockHTTPServer, create_app
from grpc_automock.service import MockService

pytestmark = pytest.mark.timeout(30)


@pytest.fixture
def client(mock_service):
    """Test client of the HTTP inspector."""
    with TestClient(MockHTTPServer(mock_service).app) as client:
        yield client


class TestMockHTTPServer:
    """Test the HTTP inspector endpoints."""

    def test_root(self, client):
        """Test the root endpoint."""
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"

    def test_health(self, client):
        """Test the health endpoint."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"] == 2
        assert data["proto"].endswith("mock.proto")

    def test_list_services(self, client):
        """Test listing services and methods."""
        response = client.get("/services")
        assert response.status_code == 200
        services = {s["name"]: s["methods"] for s in response.json()}
        assert set(services) == {
            "automock.test.UserService",
            "automock.test.ArchiveService",
        }
        watch = services["automock.test.UserService"]["WatchUsers"]
        assert watch["server_streaming"] is True
        assert watch["client_streaming"] is False

    def test_get_service(self, client):
        """Test describing one service by short name."""
        response = client.get("/services/ArchiveService")
        assert response.status_code == 200
        assert response.json()["name"] == "automock.test.ArchiveService"

    def test_mock_response(self, client):
        """Test the response payload endpoint."""
        response = client.get("/services/UserService/methods/GetUser/response")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "automock.test.UserService"
        assert data["type"] == "automock.test.User"
        assert data["payload"]["name"] == "Hello"
        assert data["payload"]["tags"] == ["Hello"]
        assert len(data["payload"]["userId"]) == 36

    def test_mock_request(self, client):
        """Test the request payload endpoint."""
        response = client.get("/services/UserService/methods/UploadUsers/request")
        assert response.status_code == 200
        assert response.json()["type"] == "automock.test.User"

    def test_unknown_names(self, client):
        """Test unknown services and methods return 404."""
        assert client.get("/services/Nope").status_code == 404
        assert client.get("/services/Nope/methods/GetUser/response").status_code == 404
        assert (
            client.get("/services/UserService/methods/Nope/request").status_code == 404
        )

    def test_openapi(self, client):
        """Test the OpenAPI schema lists the payload routes."""
        response = client.get("/openapi.json")
        assert response.status_code == 200
        assert "/services/{service}/methods/{method}/response" in response.json()["paths"]

    def test_well_known_types(self, wkt_service):
        """Test Any and FieldMask payloads render instead of failing."""
        with TestClient(MockHTTPServer(wkt_service).app) as client:
            envelope = client.get("/services/WellKnownService/methods/GetEnvelope/response")
            masked = client.get("/services/WellKnownService/methods/GetMasked/response")

        assert envelope.status_code == 200
        assert envelope.json()["payload"] == {
            "anything": {"type_url": "Hello", "value": "SGVsbG8="}
        }
        assert masked.status_code == 200
        assert masked.json()["payload"]["mask"] == {"paths": ["Hello"]}

    def test_create_app(self, proto_path):
        """Test the app factory."""
        app = create_app(proto_path, title="Custom")
        assert app.title == "Custom"

    def test_stop_when_not_started(self, mock_service):
        """Test stopping an idle inspector is a no-op."""
        server = MockHTTPServer(mock_service)
        server.stop()
        assert not server.is_alive()


class TestMockGRPCServer:
    """Test the gRPC mock server."""

    def test_init(self, mock_service):
        """Test default settings."""
        server = MockGRPCServer(mock_service)
        assert server.service is mock_service
        assert server.stream == StreamConfig()
        assert not server.tls.enabled
        assert not server.is_alive()

    def test_bind_services_logs(self, mock_service, caplog):
        """Test every service and method is announced."""
        server = MockGRPCServer(mock_service)
        grpc_server = MagicMock()
        with caplog.at_level("INFO"):
            assert server.bind_services(grpc_server) == 2
        assert grpc_server.add_generic_rpc_handlers.call_count == 2
        assert "[Service] automock.test.UserService detected" in caplog.text
        assert "[Method] WatchUsers registered" in caplog.text

    @pytest.mark.asyncio
    async def test_no_services(self, caplog):
        """Test nothing is served when the proto defines no service."""
        empty = MockService(ProtoRoot(path=MagicMock(), pool=descriptor_pool.DescriptorPool()))
        server = MockGRPCServer(empty)
        assert await server.create_server("127.0.0.1", 0) is None
        assert "No services found" in caplog.text

    def test_stop_when_not_started(self, mock_service):
        """Test stopping an idle server is a no-op."""
        server = MockGRPCServer(mock_service)
        server.stop()
        assert server._server is None

    @pytest.mark.asyncio
    async def test_end_to_end(self, mock_service, lookup):
        """Test unary and streaming calls over a real channel."""
        server = MockGRPCServer(mock_service, stream=StreamConfig(interval=0.05, timeout=0.5))
        grpc_server = await server.create_server("127.0.0.1", 0)
        await grpc_server.start()

        empty = message_factory.GetMessageClass(lookup("Empty"))
        user = message_factory.GetMessageClass(lookup("User"))
        directory = message_factory.GetMessageClass(lookup("Directory"))
        prefix = "/automock.test.UserService"

        try:
            async with grpc.aio.insecure_channel(f"127.0.0.1:{server.port}") as channel:
                get_user = channel.unary_unary(
                    f"{prefix}/GetUser",
                    request_serializer=empty.SerializeToString,
                    response_deserializer=user.FromString,
                )
                reply = await get_user(empty())
                assert reply.name == "Hello"
                assert list(reply.tags) == ["Hello"]

                upload = channel.stream_unary(
                    f"{prefix}/UploadUsers",
                    request_serializer=user.SerializeToString,
                    response_deserializer=directory.FromString,
                )
                summary = await upload(iter([user(name="a"), user(name="b")]))
                assert len(summary.nodes) == 1

                watch = channel.unary_stream(
                    f"{prefix}/WatchUsers",
                    request_serializer=empty.SerializeToString,
                    response_deserializer=user.FromString,
                )
                pushed = [message async for message in watch(empty())]
                assert 9 <= len(pushed) <= 10
                assert len({message.userId for message in pushed}) == len(pushed)
        finally:
            await grpc_server.stop(None)
