from flask import Flask, jsonify
from config.config import settings
from courtside.database import init_db
from courtside.jobs import create_scheduler
from courtside.routes import availability, invites
from courtside.services import AvailabilityService, InviteService, MessagingService, NotificationService
from courtside.sql_repository import SqlAlchemyRepository
from courtside.utils.logger import get_logger

logger = get_logger(__name__)


def create_app(repository=None, notification_service=None, start_scheduler=None) -> Flask:
    """Application factory"""
    app = Flask(__name__)
    app.config.from_object(settings)

    if repository is None:
        init_db()
        repository = SqlAlchemyRepository()

    notification_service = notification_service or NotificationService(repository)
    invite_service = InviteService(
        repository,
        notification_service=notification_service,
        messaging_service=MessagingService(repository)
    )
    app.extensions['courtside'] = {
        'repository': repository,
        'availability': AvailabilityService(repository),
        'invites': invite_service,
    }

    app.register_blueprint(availability.bp, url_prefix='/api/availability')
    app.register_blueprint(invites.bp, url_prefix='/api/invites')

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'}), 200

    if start_scheduler is None:
        start_scheduler = settings.SCHEDULER_ENABLED
    if start_scheduler:
        app.extensions['courtside']['scheduler'] = create_scheduler(invite_service)

    logger.info("Courtside application created")
    return app
