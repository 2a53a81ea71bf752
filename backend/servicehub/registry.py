"""
Lazy, memoizing component registry.

Every business component is built on first ``get`` and cached for the life
of the process. Factories receive the registry and pull their own
dependencies from it, so a dependency shared by several consumers is built
exactly once and they all hold the same instance.
"""

from __future__ import annotations

import threading
from functools import lru_cache
from typing import Any, Callable, Hashable, Mapping, TypeVar, overload

from .errors import CyclicDependencyError, FatalInitializationError
from .observability.logging import get_logger
from .settings import Settings, get_settings

log = get_logger("component_registry")

T = TypeVar("T")
Factory = Callable[["ComponentRegistry"], Any]

# Keys for components that have no class of their own.
S3_CLIENT = "aws.s3"
SNS_CLIENT = "aws.sns"
MAIN_TABLE = "ddb.main_table"


def _key_name(key: Hashable) -> str:
    return str(getattr(key, "__name__", key))


class ComponentRegistry:
    def __init__(self) -> None:
        self._factories: dict[Hashable, Factory] = {}
        self._instances: dict[Hashable, Any] = {}
        # Re-entrant: a factory calls get() for its dependencies on the same thread.
        self._lock = threading.RLock()
        self._constructing: list[Hashable] = []

    def register(self, key: Hashable, factory: Factory) -> None:
        with self._lock:
            if key in self._instances:
                raise ValueError(f"{_key_name(key)} is already constructed")
            self._factories[key] = factory

    def register_instance(self, key: Hashable, instance: Any) -> None:
        """Pre-seed an entry (tests, or objects built outside the registry)."""
        with self._lock:
            if key in self._instances:
                raise ValueError(f"{_key_name(key)} is already constructed")
            self._instances[key] = instance

    def is_registered(self, key: Hashable) -> bool:
        return key in self._factories or key in self._instances

    def is_constructed(self, key: Hashable) -> bool:
        return key in self._instances

    @overload
    def get(self, key: type[T]) -> T: ...

    @overload
    def get(self, key: Hashable) -> Any: ...

    def get(self, key):
        # Fast path: entries are never evicted, so a hit needs no lock.
        try:
            return self._instances[key]
        except KeyError:
            pass

        with self._lock:
            if key in self._instances:
                return self._instances[key]

            if key in self._constructing:
                start = self._constructing.index(key)
                chain = tuple(_key_name(k) for k in self._constructing[start:]) + (_key_name(key),)
                raise CyclicDependencyError(
                    message="Cyclic component dependency: " + " -> ".join(chain),
                    operation="construct",
                    component=_key_name(key),
                    chain=chain,
                )

            factory = self._factories.get(key)
            if factory is None:
                raise FatalInitializationError(
                    message=f"No factory registered for {_key_name(key)}",
                    operation="construct",
                    component=_key_name(key),
                )

            self._constructing.append(key)
            try:
                instance = factory(self)
            except FatalInitializationError:
                raise
            except Exception as e:  # noqa: BLE001
                raise FatalInitializationError(
                    message=f"Failed to construct {_key_name(key)}: {e}",
                    operation="construct",
                    component=_key_name(key),
                    cause=e,
                ) from e
            finally:
                self._constructing.pop()

            self._instances[key] = instance
            log.debug("component_constructed", component=_key_name(key))
            return instance


def build_registry(
    settings: Settings | None = None,
    *,
    overrides: Mapping[Hashable, Any] | None = None,
) -> ComponentRegistry:
    """Registry with the default wiring for every ServiceHub component."""
    from .db.dynamodb.table import get_main_table
    from .infrastructure.aws_clients import s3_client, sns_client
    from .repositories.base_repository import ListingsRepository, ProvidersRepository
    from .repositories.listings_repo import DynamoListingsRepository
    from .repositories.outbox_repo import OutboxRepository
    from .repositories.providers_repo import DynamoProvidersRepository
    from .services.file_upload_service import FileUploadService
    from .services.listing_manager import ListingManager
    from .services.notification_publisher import NotificationPublisher
    from .services.storage_gateway import StorageGateway
    from .services.subscription_service import SubscriptionService
    from .services.topic_resolver import TopicResolver
    from .workers.outbox_worker import OutboxWorker

    s = settings or get_settings()
    reg = ComponentRegistry()

    # AWS / storage
    reg.register(S3_CLIENT, lambda r: s3_client())
    reg.register(SNS_CLIENT, lambda r: sns_client())
    reg.register(MAIN_TABLE, lambda r: get_main_table())

    # Repositories
    reg.register(ProvidersRepository, lambda r: DynamoProvidersRepository(r.get(MAIN_TABLE)))
    reg.register(ListingsRepository, lambda r: DynamoListingsRepository(r.get(MAIN_TABLE)))
    reg.register(OutboxRepository, lambda r: OutboxRepository(r.get(MAIN_TABLE)))

    # Uploads
    reg.register(
        StorageGateway,
        lambda r: StorageGateway(
            s3=r.get(S3_CLIENT),
            bucket=s.assets_bucket_name,
            region=s.aws_region,
            key_prefix=s.upload_key_prefix,
        ),
    )
    reg.register(FileUploadService, lambda r: FileUploadService(storage=r.get(StorageGateway)))

    # Notifications. TopicResolver is shared by the publisher and subscriptions.
    reg.register(
        TopicResolver,
        lambda r: TopicResolver(sns=r.get(SNS_CLIENT), region=s.aws_region, account_id=s.aws_account_id),
    )
    reg.register(
        NotificationPublisher,
        lambda r: NotificationPublisher(
            sns=r.get(SNS_CLIENT),
            topic_resolver=r.get(TopicResolver),
            topic_name=s.notification_topic_name,
        ),
    )
    reg.register(
        SubscriptionService,
        lambda r: SubscriptionService(
            sns=r.get(SNS_CLIENT),
            topic_resolver=r.get(TopicResolver),
            topic_name=s.notification_topic_name,
        ),
    )

    # Listings
    mode = s.normalized_notify_mode
    reg.register(
        ListingManager,
        lambda r: ListingManager(
            listings=r.get(ListingsRepository),
            providers=r.get(ProvidersRepository),
            publisher=r.get(NotificationPublisher),
            outbox=r.get(OutboxRepository) if mode == "outbox" else None,
            notify_mode=mode,
            strict_owner_update=s.strict_owner_update,
        ),
    )
    reg.register(
        OutboxWorker,
        lambda r: OutboxWorker(outbox=r.get(OutboxRepository), publisher=r.get(NotificationPublisher)),
    )

    for key, instance in (overrides or {}).items():
        reg.register_instance(key, instance)
    return reg


@lru_cache(maxsize=1)
def get_registry() -> ComponentRegistry:
    return build_registry()
