from .availability_service import AvailabilityService, BulkResult, CreationResult
from .invite_service import InviteService
from .messaging_service import MessagingService
from .notification_service import NotificationService

__all__ = [
    'AvailabilityService', 'BulkResult', 'CreationResult', 'InviteService',
    'MessagingService', 'NotificationService'
]
