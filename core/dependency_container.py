from typing import Any, Callable, Dict, Mapping, Optional, TypeVar
from config.app_config import AppConfig
from config.profile_config import ProfileConfig, load_profiles
from core.clock import SystemClock
from core.server_manager import ServerManager
from data.db import Database
from data.user_repository import UserRepository
from data.certificate_repository import CertificateRepository
from data.connection_repository import ConnectionRepository
from data.message_repository import MessageRepository
from service.policy_service import PolicyEvaluator
from service.connection_service import ConnectionService
from service.capacity_service import CapacityReporter, ConnectionSource, StorageConnectionSource
from service.housekeeping_service import HousekeepingService
from service.message_service import MessageService
from service.user_service import UserService
from service.certificate_service import CertificateService
T = TypeVar('T')

class DependencyContainer:
    def __init__(self):
        self._instances: Dict[str, Any] = {}
        self._factories: Dict[str, Callable[[], Any]] = {}
        self._config: Optional[AppConfig] = None

    def register_config(self, config: AppConfig) -> None:
        self._config = config
        self._instances['config'] = config
    def register_instance(self, name: str, instance: Any) -> None:
        self._instances[name] = instance
    def register_singleton(self, name: str, factory: Callable[[], T]) -> None:
        self._factories[name] = factory

    def get(self, name: str) -> T:
        if name in self._instances:
            return self._instances[name]
        if name in self._factories:
            instance = self._factories[name]()
            self._instances[name] = instance
            return instance
        raise KeyError(f"Dependency '{name}' not registered")
    def register_core_dependencies(self) -> None:
        self.register_singleton('clock', SystemClock)
        self.register_singleton('profiles', self._create_profiles)
        self.register_singleton('database', self._create_database)
        self.register_singleton('user_repository', self._create_user_repository)
        self.register_singleton('certificate_repository', self._create_certificate_repository)
        self.register_singleton('connection_repository', self._create_connection_repository)
        self.register_singleton('message_repository', self._create_message_repository)
        self.register_singleton('server_manager', self._create_server_manager)
        self.register_singleton('connection_source', self._create_connection_source)
    def register_service_dependencies(self) -> None:
        self.register_singleton('policy_evaluator', self._create_policy_evaluator)
        self.register_singleton('connection_service', self._create_connection_service)
        self.register_singleton('capacity_reporter', self._create_capacity_reporter)
        self.register_singleton('housekeeping_service', self._create_housekeeping_service)
        self.register_singleton('message_service', self._create_message_service)
        self.register_singleton('user_service', self._create_user_service)
        self.register_singleton('certificate_service', self._create_certificate_service)
    def _create_profiles(self) -> Mapping[str, ProfileConfig]:
        return load_profiles(self._config.vpn.profiles_file)
    def _create_database(self) -> Database:
        database = Database(self._config.database.path, self._config.database.pool_size)
        database.initialize_schema()
        return database
    def _create_user_repository(self) -> UserRepository:
        return UserRepository(self.get('database'))
    def _create_certificate_repository(self) -> CertificateRepository:
        return CertificateRepository(self.get('database'))
    def _create_connection_repository(self) -> ConnectionRepository:
        return ConnectionRepository(self.get('database'))
    def _create_message_repository(self) -> MessageRepository:
        return MessageRepository(self.get('database'))
    def _create_server_manager(self) -> ServerManager:
        return ServerManager(self.get('profiles'), self._config.vpn.management_timeout)
    def _create_connection_source(self) -> ConnectionSource:
        # with vpn-daemon the connection log is authoritative, otherwise ask the processes
        if self._config.vpn.use_vpn_daemon:
            return StorageConnectionSource(self.get('profiles'), self.get('connection_repository'))
        return self.get('server_manager')
    def _create_policy_evaluator(self) -> PolicyEvaluator:
        return PolicyEvaluator(
            self.get('user_repository'),
            self.get('message_repository'),
            self.get('clock')
        )
    def _create_connection_service(self) -> ConnectionService:
        return ConnectionService(
            self.get('profiles'),
            self.get('certificate_repository'),
            self.get('connection_repository'),
            self.get('policy_evaluator')
        )
    def _create_capacity_reporter(self) -> CapacityReporter:
        return CapacityReporter(self.get('profiles'), self.get('connection_source'))
    def _create_housekeeping_service(self) -> HousekeepingService:
        return HousekeepingService(self.get('connection_repository'), self.get('user_repository'))
    def _create_message_service(self) -> MessageService:
        return MessageService(self.get('message_repository'), self.get('clock'))
    def _create_user_service(self) -> UserService:
        return UserService(
            self.get('user_repository'),
            self.get('certificate_repository'),
            self.get('message_repository'),
            self.get('server_manager')
        )
    def _create_certificate_service(self) -> CertificateService:
        return CertificateService(self.get('certificate_repository'), self.get('server_manager'))
    def cleanup(self) -> None:
        database = self._instances.get('database')
        if database:
            database.cleanup_pool()
        self._instances.clear()
def create_container(config: AppConfig, **instances: Any) -> DependencyContainer:
    """A fresh container, ``instances`` override registered factories (profiles, clock)."""
    container = DependencyContainer()
    container.register_config(config)
    container.register_core_dependencies()
    container.register_service_dependencies()
    for name, instance in instances.items():
        container.register_instance(name, instance)
    return container
