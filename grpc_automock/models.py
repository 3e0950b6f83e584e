"""Response models for the HTTP inspector."""

from typing import Any, Dict

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(description="Server status")
    proto: str = Field(description="Path of the loaded proto file")
    services: int = Field(description="Number of bound services")


class MethodInfo(BaseModel):
    """Description of one RPC method."""

    request_type: str = Field(description="Fully-qualified request message type")
    response_type: str = Field(description="Fully-qualified response message type")
    client_streaming: bool = Field(description="Whether the client streams requests")
    server_streaming: bool = Field(description="Whether the server streams responses")


class ServiceInfo(BaseModel):
    """Description of one bound service."""

    name: str = Field(description="Fully-qualified service name")
    methods: Dict[str, MethodInfo] = Field(
        default_factory=dict, description="Methods keyed by name"
    )


class PayloadResponse(BaseModel):
    """A synthesized message rendered as proto JSON."""

    service: str = Field(description="Fully-qualified service name")
    method: str = Field(description="Method name")
    type: str = Field(description="Fully-qualified message type of the payload")
    payload: Dict[str, Any] = Field(description="Message in proto JSON form")
