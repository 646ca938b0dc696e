"""
Application service container
Builds the record store, change notifier, AI service and offline router
from configuration, and ties their lifecycle to application start/stop.
"""

from typing import Dict, Optional, Tuple

import httpx

from ideatrium.config.loader import ConfigLoader, get_config
from ideatrium.core.db import DatabaseManager
from ideatrium.core.events import ChangeNotifier
from ideatrium.core.live import LiveCollection
from ideatrium.core.local_store import LocalStore
from ideatrium.core.logger import get_logger
from ideatrium.core.paths import get_db_path, get_local_storage_path
from ideatrium.core.protocols import RecordStoreProtocol
from ideatrium.core.records import RecordManager, UserSession
from ideatrium.llm.client import GeminiClient
from ideatrium.llm.prompt_manager import PromptManager
from ideatrium.offline.network import NetworkStatus
from ideatrium.offline.router import DEFAULT_STATIC_ASSETS, OfflineRouter, RouterTransport
from ideatrium.processing.bulk import BulkCoordinator
from ideatrium.services.ai_service import AIService

logger = get_logger(__name__)

STORAGE_MODES = ("auto", "database", "local")


def build_store(
    config: ConfigLoader, notifier: Optional[ChangeNotifier] = None
) -> RecordStoreProtocol:
    """Pick the store from storage.mode

    auto uses the database when database.path is set, the local JSON store
    otherwise.
    """
    mode = str(config.get("storage.mode", "auto")).lower()
    if mode not in STORAGE_MODES:
        raise ValueError(f"Unknown storage mode: {mode}")

    db_path = str(config.get("database.path", "") or "").strip()
    if mode == "database" or (mode == "auto" and db_path):
        return DatabaseManager(db_path or str(get_db_path()), notifier=notifier)

    local_path = str(config.get("storage.local_path", "") or "").strip()
    return LocalStore(local_path or str(get_local_storage_path()), notifier=notifier)


class AppServices:
    """Everything a request handler needs, constructed once per application"""

    def __init__(
        self,
        config: Optional[ConfigLoader] = None,
        store: Optional[RecordStoreProtocol] = None,
        notifier: Optional[ChangeNotifier] = None,
        ai_service: Optional[AIService] = None,
        offline_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or get_config()
        self.notifier = notifier or ChangeNotifier()
        self.store = store or build_store(self.config, self.notifier)
        self.network_status = NetworkStatus()

        host = self.config.get("server.host", "0.0.0.0")
        if host in ("0.0.0.0", "::"):
            host = "localhost"
        self.offline_router = OfflineRouter(
            transport=offline_transport,
            network_status=self.network_status,
            cache_version=self.config.get("offline.cache_version", "v1.0.0"),
            static_assets=self.config.get("offline.static_assets", DEFAULT_STATIC_ASSETS),
            base_url=f"http://{host}:{self.config.get('server.port', 8000)}",
        )
        # AI traffic goes through the router so /health reflects connectivity
        self.ai_service = ai_service or AIService(
            GeminiClient.from_config(transport=RouterTransport(self.offline_router)),
            PromptManager(),
        )
        self._live: Dict[Tuple[str, Optional[str]], LiveCollection] = {}
        self.is_running = False

    @property
    def storage_mode(self) -> str:
        return "database" if isinstance(self.store, DatabaseManager) else "local"

    def records_for(self, user_id: Optional[str]) -> RecordManager:
        return RecordManager(self.store, UserSession(user_id), self.notifier)

    def bulk_for(self, user_id: Optional[str]) -> BulkCoordinator:
        return BulkCoordinator(self.records_for(user_id))

    def _live_view(self, kind: str, user_id: Optional[str]) -> LiveCollection:
        if not self.store.requires_auth:
            # Single-user store: every caller shares one view
            user_id = None
        key = (kind, user_id)
        collection = self._live.get(key)
        if collection is None:
            records = self.records_for(user_id)
            if kind == "ideas":
                collection = LiveCollection(records.list_ideas).bind(records.subscribe_ideas)
            else:
                collection = LiveCollection(records.list_tasks).bind(records.subscribe_tasks)
            self._live[key] = collection
            logger.debug(f"Live {kind} view opened for {user_id or 'local'}")
        return collection

    def live_ideas(self, user_id: Optional[str]) -> LiveCollection:
        """The user's ideas, kept current by the change feed"""
        return self._live_view("ideas", user_id)

    def live_tasks(self, user_id: Optional[str]) -> LiveCollection:
        return self._live_view("tasks", user_id)

    def close_live_views(self) -> None:
        for collection in self._live.values():
            collection.close()
        self._live.clear()

    async def start(self) -> None:
        if self.is_running:
            return
        removed = self.offline_router.activate()
        self.is_running = True
        logger.info(
            f"✓ Services started (storage={self.storage_mode}, "
            f"ai={'configured' if self.ai_service.client.configured else 'fallback only'}, "
            f"stale caches removed={len(removed)})"
        )

    async def stop(self) -> None:
        if not self.is_running:
            return
        await self.offline_router.close()
        self.close_live_views()
        self.notifier.clear()
        self.is_running = False
        logger.info("✓ Services stopped")
