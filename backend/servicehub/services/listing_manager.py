from __future__ import annotations

from ..db.dynamodb.errors import DdbError
from ..domain.models import Listing, Provider
from ..domain.responses import ResponseBody
from ..domain.schemas import AddServiceRequest, GetServicesResponse, ServiceSummary, UpdateServiceRequest
from ..errors import ExternalServiceError, Forbidden, NotFound
from ..observability.logging import get_logger
from ..repositories.base_repository import ListingsRepository, ProvidersRepository
from ..repositories.outbox_repo import OutboxRepository
from ..settings import NOTIFY_MODES
from .notification_publisher import NotificationPublisher

log = get_logger("listing_manager")

LISTING_CREATED_EVENT = "sns.listing_created"


def listing_created_payload(listing: Listing, provider: Provider) -> dict[str, str]:
    return {
        "listingId": listing.id,
        "name": listing.name,
        "providerId": provider.id,
        "providerName": provider.username,
    }


class ListingManager:
    """
    Create, update, delete and list a provider's service listings.

    Persistence always commits first. What happens to the listing-created
    notification afterwards depends on ``notify_mode``:

    - ``outbox``: enqueue an event for the outbox worker
    - ``inline``: publish now, log and drop failures
    - ``strict``: publish now, failures propagate to the caller
    """

    def __init__(
        self,
        *,
        listings: ListingsRepository,
        providers: ProvidersRepository,
        publisher: NotificationPublisher,
        outbox: OutboxRepository | None = None,
        notify_mode: str = "outbox",
        strict_owner_update: bool = True,
    ):
        if notify_mode not in NOTIFY_MODES:
            raise ValueError(f"Unknown notify mode: {notify_mode}")
        if notify_mode == "outbox" and outbox is None:
            raise ValueError("outbox notify mode needs an outbox repository")
        self._listings = listings
        self._providers = providers
        self.publisher = publisher
        self._outbox = outbox
        self.notify_mode = notify_mode
        self.strict_owner_update = bool(strict_owner_update)

    def _require_provider(self, provider_id: str) -> Provider:
        pid = str(provider_id or "").strip()
        provider = self._providers.find_provider(pid) if pid else None
        if provider is None:
            raise NotFound(message=f"User not found for id: {pid}", operation="find_provider")
        return provider

    def create(self, request: AddServiceRequest, provider_id: str) -> ResponseBody[str]:
        provider = self._require_provider(provider_id)
        listing = Listing(
            name=request.name,
            description=request.description,
            per_hour_rate=request.perHourRate,
            type=request.type,
            provider_id=provider.id,
        )
        self._listings.save(listing)
        log.info("listing_created", listing_id=listing.id, provider_id=provider.id)

        self._notify_created(listing, provider)
        return ResponseBody(data=listing.id, message="Add service successful")

    def _notify_created(self, listing: Listing, provider: Provider) -> None:
        if self.notify_mode == "strict":
            self.publisher.publish_listing_created(listing, provider)
            return

        if self.notify_mode == "inline":
            try:
                self.publisher.publish_listing_created(listing, provider)
            except ExternalServiceError as e:
                log.warning(
                    "listing_notification_failed",
                    listing_id=listing.id,
                    error=str(e),
                    error_code=e.error_code,
                )
            return

        try:
            self._outbox.enqueue(
                event_type=LISTING_CREATED_EVENT,
                payload=listing_created_payload(listing, provider),
                dedupe_key=f"listing_created_{listing.id}",
            )
        except DdbError as e:
            log.error("listing_notification_enqueue_failed", listing_id=listing.id, error=str(e))

    def list_by_provider(self, provider_id: str) -> ResponseBody[GetServicesResponse]:
        provider = self._require_provider(provider_id)
        services = [ServiceSummary.from_listing(it) for it in self._listings.find_by_provider(provider.id)]
        return ResponseBody(
            data=GetServicesResponse(services=services),
            message="Fetched user services successfully",
        )

    def delete(self, listing_id: str) -> ResponseBody[str]:
        # Ownership is checked by the caller's authorization layer, not here.
        lid = str(listing_id or "").strip()
        if not lid or self._listings.find_by_id(lid) is None:
            raise NotFound(message=f"Service not found with ID: {listing_id}", operation="delete")
        self._listings.delete(lid)
        log.info("listing_deleted", listing_id=lid)
        return ResponseBody(data="", message="Service deleted successfully")

    def update(self, request: UpdateServiceRequest, provider_id: str) -> ResponseBody[str]:
        lid = str(request.id or "").strip()
        if not lid or not self._listings.exists_by_id(lid):
            raise NotFound(message=f"Service not found for id: {request.id}", operation="update")
        provider = self._require_provider(provider_id)

        matched = self._listings.conditional_update(lid, provider.id, request.to_fields())
        if not matched:
            if self.strict_owner_update:
                raise Forbidden(
                    message=f"Service {lid} is not owned by user {provider.id}",
                    operation="update",
                )
            # Legacy behaviour: nothing written, success reported.
            log.warning("listing_update_owner_mismatch", listing_id=lid, provider_id=provider.id)

        return ResponseBody(data="", message="Update service successful")
