"""
ApplicationContainer - wires the watcher core together.

Everything is built from an AppConfig plus the external collaborators
(probe, connector, membership checker, owner notifier). Nothing is started
here; see lifespan.py for startup and shutdown.
"""

from ..caching import EligibilityCacheService, SubjectStatusCacheService
from ..collaborators import MembershipChecker, OwnerNotifier, StatusProbe, WatcherConnector
from ..config import AppConfig, get_config
from ..logging_config import get_logger
from ..persistence import ConfigRepository, EndpointRepository, RecordStore, UserRepository, VersionRepository
from ..realtime import ReconciliationSweeper, RestartScheduler, SessionManager, SessionTable
from ..services import AccessGate, CatalogResolver, EndpointService, UserService
from .task_registry import TaskRegistry

logger = get_logger(__name__)


class ApplicationContainer:  # pylint: disable=too-many-instance-attributes  # Reason: DI container holds every service instance
    """
    Dependency container for one Watchkeeper process.

    Attributes are public so a gateway adapter can reach the services it
    needs (container.endpoint_service, container.session_manager, ...).
    """

    def __init__(
        self,
        *,
        probe: StatusProbe,
        connector: WatcherConnector,
        membership_checker: MembershipChecker,
        notifier: OwnerNotifier | None = None,
        config: AppConfig | None = None,
    ) -> None:
        self.config = config or get_config()
        self.probe = probe
        self.connector = connector
        self.membership_checker = membership_checker
        self.notifier = notifier

        self.task_registry = TaskRegistry()

        # Persistence
        self.store = RecordStore(self.config.storage.data_path)
        self.users = UserRepository(self.store)
        self.endpoints = EndpointRepository(self.store)
        self.versions = VersionRepository(self.store)
        self.config_repository = ConfigRepository(self.store)

        # Caches
        cache_config = self.config.cache
        self.subject_status = SubjectStatusCacheService(self.users, cache_config.subject_status_ttl_seconds)
        self.eligibility = EligibilityCacheService(self.config_repository, membership_checker, cache_config)

        # Watcher sessions
        watcher_config = self.config.watcher
        self.catalog = CatalogResolver(self.versions)
        self.sessions = SessionTable()
        self.restart_scheduler = RestartScheduler(self.task_registry, watcher_config.restart_delay_seconds)
        self.session_manager = SessionManager(
            endpoints=self.endpoints,
            catalog=self.catalog,
            probe=probe,
            connector=connector,
            sessions=self.sessions,
            restart_scheduler=self.restart_scheduler,
            watcher_config=watcher_config,
            notifier=notifier,
            subject_status=self.subject_status,
        )
        self.sweeper = ReconciliationSweeper(
            session_manager=self.session_manager,
            endpoints=self.endpoints,
            task_registry=self.task_registry,
            interval_seconds=watcher_config.sweep_interval_seconds,
        )

        # Services
        self.endpoint_service = EndpointService(
            store=self.store,
            endpoints=self.endpoints,
            session_manager=self.session_manager,
            probe=probe,
            watcher_config=watcher_config,
        )
        self.user_service = UserService(
            users=self.users,
            endpoints=self.endpoints,
            session_manager=self.session_manager,
            subject_status=self.subject_status,
            eligibility=self.eligibility,
            admin_config=self.config.admin,
        )
        self.access_gate = AccessGate(
            config_repository=self.config_repository,
            subject_status=self.subject_status,
            eligibility=self.eligibility,
            admin_config=self.config.admin,
        )

        self.started = False
        logger.info("ApplicationContainer created", data_dir=str(self.config.storage.data_path))
