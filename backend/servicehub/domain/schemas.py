from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field, PlainSerializer

from .models import Listing, ListingFields


class AddServiceRequest(BaseModel):
    description: str = ""
    name: str
    perHourRate: Decimal = Field(ge=0)
    type: str

    def to_fields(self) -> ListingFields:
        return ListingFields(
            name=self.name,
            description=self.description,
            per_hour_rate=self.perHourRate,
            type=self.type,
        )


class UpdateServiceRequest(AddServiceRequest):
    id: str


# Rates go over the wire as JSON numbers, not strings.
JsonRate = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ServiceSummary(BaseModel):
    id: str
    name: str
    description: str
    perHourRate: JsonRate
    type: str
    providerId: str

    @classmethod
    def from_listing(cls, listing: Listing) -> ServiceSummary:
        return cls(
            id=listing.id,
            name=listing.name,
            description=listing.description,
            perHourRate=listing.per_hour_rate,
            type=listing.type,
            providerId=listing.provider_id,
        )


class GetServicesResponse(BaseModel):
    services: list[ServiceSummary] = Field(default_factory=list)


class FileUploadResponse(BaseModel):
    url: str


class SubscribeRequest(BaseModel):
    email: str = Field(min_length=3)
