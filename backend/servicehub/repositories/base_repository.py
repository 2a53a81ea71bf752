"""
Persistence seams used by the business components.

The DynamoDB implementations live next to this module; tests swap in
in-memory ones.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..domain.models import Listing, ListingFields, Provider


class ProvidersRepository(ABC):
    """Read-only view of the user store."""

    @abstractmethod
    def find_provider(self, provider_id: str) -> Provider | None:
        pass


class ListingsRepository(ABC):
    @abstractmethod
    def save(self, listing: Listing) -> Listing:
        pass

    @abstractmethod
    def find_by_id(self, listing_id: str) -> Listing | None:
        pass

    @abstractmethod
    def find_by_provider(self, provider_id: str) -> list[Listing]:
        """All listings owned by the provider, oldest first."""
        pass

    @abstractmethod
    def delete(self, listing_id: str) -> None:
        pass

    @abstractmethod
    def conditional_update(self, listing_id: str, owner_id: str, fields: ListingFields) -> bool:
        """
        Overwrite the descriptive fields of the listing with this id AND owner.

        Returns False when nothing matched (the write touched zero items).
        """
        pass

    def exists_by_id(self, listing_id: str) -> bool:
        return self.find_by_id(listing_id) is not None
