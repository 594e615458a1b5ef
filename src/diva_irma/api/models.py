"""Pydantic models for session start requests."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AttributeRequest(BaseModel):
    """Either a single attribute with a label or a full content list."""

    model_config = ConfigDict(populate_by_name=True)

    attribute: str | None = None
    attributes_label: str | None = Field(default=None, alias="attributesLabel")
    content: list[dict[str, object]] | None = None

    def requested(self) -> str | list[dict[str, object]] | None:
        """Return what should be passed on as the disclosure content."""
        if self.content:
            return self.content
        return self.attribute


class DisclosureSessionRequest(AttributeRequest):
    """Body of a disclosure session start request."""

    @model_validator(mode="after")
    def check_attributes(self) -> "DisclosureSessionRequest":
        if self.requested() is None:
            raise ValueError("Provide either attribute or content")
        return self


class SignatureSessionRequest(AttributeRequest):
    """Body of a signature session start request."""

    message: str

    @model_validator(mode="after")
    def check_attributes(self) -> "SignatureSessionRequest":
        if self.requested() is None:
            raise ValueError("Provide either attribute or content")
        return self


class IssueSessionRequest(AttributeRequest):
    """Body of an issuance session start request."""

    credentials: list[dict[str, object]]
