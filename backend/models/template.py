"""Pydantic schemas for the endpoint test-data template file."""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict


class EndpointTemplate(BaseModel):
    """
    Request data for one endpoint. ``None`` leaves are placeholders to be
    synthesized; anything else is an operator override.
    """
    model_config = ConfigDict(extra="allow")

    path_params: Optional[dict[str, Any]] = None
    query_params: Optional[dict[str, Any]] = None
    body: Any = None
    headers: Optional[dict[str, Any]] = None

    def has(self, field: str) -> bool:
        """True when the field was present in the source document (even as null)."""
        return field in self.model_fields_set


class TestDataTemplate(BaseModel):
    __test__ = False   # not a pytest class

    model_config = ConfigDict(extra="allow")

    endpoints: dict[str, EndpointTemplate]

    def to_json_dict(self) -> dict:
        # exclude_unset keeps the written key set identical to the one read
        return self.model_dump(mode="json", exclude_unset=True)


def parse_endpoint_key(key: str) -> tuple[str, str]:
    """Split ``"GET /api/users"`` into ``("GET", "/api/users")``."""
    parts = key.strip().split(" ", 1)
    if len(parts) != 2:
        return "", key.strip()
    return parts[0].upper(), parts[1].strip()
