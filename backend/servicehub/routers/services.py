from __future__ import annotations

from fastapi import APIRouter, Depends

from ..domain.schemas import AddServiceRequest, UpdateServiceRequest
from ..registry import ComponentRegistry
from ..services.listing_manager import ListingManager
from .deps import current_user_id, get_registry_dep

router = APIRouter(tags=["services"])


def _manager(registry: ComponentRegistry = Depends(get_registry_dep)) -> ListingManager:
    return registry.get(ListingManager)


@router.post("", status_code=201)
def add_service(
    body: AddServiceRequest,
    user_id: str = Depends(current_user_id),
    manager: ListingManager = Depends(_manager),
):
    return manager.create(body, user_id).to_dict()


@router.get("/provider/{provider_id}")
def get_services_by_provider(provider_id: str, manager: ListingManager = Depends(_manager)):
    return manager.list_by_provider(provider_id).to_dict()


@router.put("")
def update_service(
    body: UpdateServiceRequest,
    user_id: str = Depends(current_user_id),
    manager: ListingManager = Depends(_manager),
):
    return manager.update(body, user_id).to_dict()


@router.delete("/{service_id}")
def delete_service(service_id: str, manager: ListingManager = Depends(_manager)):
    return manager.delete(service_id).to_dict()
