"""Service definition and intent routing models."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from service_intake.utils import service_key


class ServiceDefinition(BaseModel):
    """Immutable definition of a government service and its field schema."""

    model_config = ConfigDict(frozen=True)

    service_id: str
    service_name: str
    ministry: str
    description: str = ""
    required_fields: tuple[str, ...]
    optional_fields: tuple[str, ...]
    processing_time: Optional[str] = None
    fee: Optional[str] = None

    @field_validator("service_id", "service_name", "ministry")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("required_fields", "optional_fields")
    @classmethod
    def _unique_in_order(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(value))

    @model_validator(mode="after")
    def _disjoint_fields(self) -> "ServiceDefinition":
        overlap = [f for f in self.required_fields if f in self.optional_fields]
        if overlap:
            raise ValueError(
                f"Service {self.service_id}: overlapping fields {', '.join(overlap)}"
            )
        return self

    @property
    def service_key(self) -> str:
        return service_key(self.service_name)

    @property
    def vocabulary(self) -> frozenset[str]:
        """All field names this service may collect."""
        return frozenset(self.required_fields) | frozenset(self.optional_fields)

    def summary(self) -> dict[str, Any]:
        """Listing view without the field schema."""
        return {
            "service_id": self.service_id,
            "service_name": self.service_name,
            "ministry": self.ministry,
            "description": self.description,
            "processing_time": self.processing_time,
            "fee": self.fee,
        }


class RoutingInfo(BaseModel):
    """Selected service plus the user's original request."""

    service_name: str
    service_details: ServiceDefinition
    user_context: str = ""


class IntentResolution(BaseModel):
    """Result returned by an intent resolver on the first turn."""

    action: Literal["list_services", "route_to_service"]
    services: list[dict[str, Any]] = Field(default_factory=list)
    service_name: Optional[str] = None
    service_details: Optional[ServiceDefinition] = None
    user_context: str = ""

    @model_validator(mode="after")
    def _routing_needs_details(self) -> "IntentResolution":
        if self.action == "route_to_service" and self.service_details is None:
            raise ValueError("route_to_service requires service_details")
        return self
