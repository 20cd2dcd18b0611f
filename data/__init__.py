# Data module exports
from .db import Database
from .user_repository import UserRepository
from .certificate_repository import CertificateRepository
from .connection_repository import ConnectionRepository
from .message_repository import MessageRepository

__all__ = [
    'Database',
    'UserRepository',
    'CertificateRepository',
    'ConnectionRepository',
    'MessageRepository'
]
