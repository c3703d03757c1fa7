import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    DATABASE_URL = os.environ.get('DATABASE_URL') or 'sqlite:///courtside.db'
    TESTING = False

    # API Keys
    TWILIO_ACCOUNT_SID = os.environ.get('TWILIO_ACCOUNT_SID')
    TWILIO_AUTH_TOKEN = os.environ.get('TWILIO_AUTH_TOKEN')
    TWILIO_PHONE_NUMBER = os.environ.get('TWILIO_PHONE_NUMBER')
    SENDGRID_API_KEY = os.environ.get('SENDGRID_API_KEY')
    SENDGRID_FROM_EMAIL = os.environ.get('SENDGRID_FROM_EMAIL', 'noreply@courtside.app')

    # Application Settings
    APP_URL = os.environ.get('APP_URL', 'http://localhost:5001')

    # Scheduling
    RECURRENCE_HARD_CAP = int(os.environ.get('RECURRENCE_HARD_CAP', '366'))
    INVITE_EXPIRY_HOURS = int(os.environ.get('INVITE_EXPIRY_HOURS', '168'))  # 7 days
    INVITE_REMINDER_WINDOW_HOURS = int(os.environ.get('INVITE_REMINDER_WINDOW_HOURS', '24'))
    EXPIRY_SWEEP_MINUTES = int(os.environ.get('EXPIRY_SWEEP_MINUTES', '15'))
    SCHEDULER_ENABLED = os.environ.get('SCHEDULER_ENABLED', 'false').lower() == 'true'

    # Grid display window (hours, end exclusive)
    GRID_START_HOUR = int(os.environ.get('GRID_START_HOUR', '6'))
    GRID_END_HOUR = int(os.environ.get('GRID_END_HOUR', '22'))

    # Token Settings
    ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24 hours

    # Logging
    LOG_FILE = 'logs/courtside.log'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    DEBUG = True
    TESTING = True
    DATABASE_URL = 'sqlite:///test_courtside.db'
    SCHEDULER_ENABLED = False
    LOG_LEVEL = 'DEBUG'


class ProductionConfig(Config):
    DEBUG = False
    TESTING = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Resolve the active config class from COURTSIDE_ENV"""
    return config.get(os.environ.get('COURTSIDE_ENV', 'default'), DevelopmentConfig)


settings = get_config()
