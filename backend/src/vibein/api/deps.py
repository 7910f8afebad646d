"""Service wiring for the API and CLI."""

from dataclasses import dataclass
from functools import lru_cache

from vibein.businesses import BusinessRegistry
from vibein.completion import CompletionWorkflow, ReviewExtractionClient
from vibein.domain import Clock, utc_now
from vibein.influencers.service import InfluencerService
from vibein.logging_config import get_logger
from vibein.messages import VibeMessageService
from vibein.notifications import EmailNotifier
from vibein.offers import OfferStore
from vibein.participation import ParticipationLedger
from vibein.places import PlacesClient
from vibein.redemption import RedemptionProtocol
from vibein.settings import settings
from vibein.storage import DocumentStore, MemoryDocumentStore, SqlDocumentStore
from vibein.storage.db import Database

logger = get_logger(__name__)


@dataclass
class Services:
    """Everything a request handler may need."""
    store: DocumentStore
    offers: OfferStore
    businesses: BusinessRegistry
    ledger: ParticipationLedger
    redemption: RedemptionProtocol
    completion: CompletionWorkflow
    influencers: InfluencerService
    messages: VibeMessageService
    places: PlacesClient
    notifier: object


def create_store() -> DocumentStore:
    """Build the document store named by ``settings.document_store``."""
    if settings.document_store == "memory":
        logger.info("document_store_selected", backend="memory")
        return MemoryDocumentStore(max_attempts=settings.transaction_max_attempts)

    database = Database(settings.database_url)
    database.create_tables()
    logger.info("document_store_selected", backend="sql")
    return SqlDocumentStore(database, max_attempts=settings.transaction_max_attempts)


def build_services(
    store: DocumentStore | None = None,
    *,
    clock: Clock = utc_now,
    extractor: ReviewExtractionClient | None = None,
    places: PlacesClient | None = None,
    notifier=None,
) -> Services:
    """Wire the components around one document store."""
    store = store or create_store()
    offers = OfferStore(store, clock=clock)
    ledger = ParticipationLedger(store, offers, clock=clock)
    return Services(
        store=store,
        offers=offers,
        businesses=BusinessRegistry(store, clock=clock),
        ledger=ledger,
        redemption=RedemptionProtocol(store, ledger, clock=clock),
        completion=CompletionWorkflow(store, ledger, extractor or ReviewExtractionClient(), clock=clock),
        influencers=InfluencerService(store, clock=clock),
        messages=VibeMessageService(store, clock=clock),
        places=places or PlacesClient(),
        notifier=notifier or EmailNotifier(),
    )


@lru_cache
def get_services() -> Services:
    """Process-wide services; override this dependency in tests."""
    return build_services()
