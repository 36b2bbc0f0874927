"""
Application settings and configuration
"""
import os
from dotenv import load_dotenv

_is_production = os.getenv('FLASK_ENV', 'development') == 'production'
load_dotenv(override=(not _is_production))


class Config:
    """Base configuration"""
    SECRET_KEY = os.getenv('SECRET_KEY', 'qr-collect-admin-secret-key')

    # Appwrite project (document database, storage, users)
    APPWRITE_ENDPOINT = os.getenv('APPWRITE_ENDPOINT', 'https://cloud.appwrite.io/v1')
    APPWRITE_PROJECT_ID = os.getenv('APPWRITE_PROJECT_ID', '')
    APPWRITE_API_KEY = os.getenv('APPWRITE_API_KEY', '')

    APPWRITE_DATABASE_ID = os.getenv('APPWRITE_DATABASE_ID', '')
    APPWRITE_QRCODE_COLLECTION_ID = os.getenv('APPWRITE_QRCODE_COLLECTION_ID', '')
    APPWRITE_WEBHOOK_DATA_COLLECTION_ID = os.getenv('APPWRITE_WEBHOOK_DATA_COLLECTION_ID', '')
    APPWRITE_WITHDRAWAL_REQUEST_COLLECTION_ID = os.getenv('APPWRITE_WITHDRAWAL_REQUEST_COLLECTION_ID', '')
    APPWRITE_BUCKET_ID = os.getenv('APPWRITE_BUCKET_ID', '')

    # Razorpay webhook (Dashboard -> Settings -> Webhooks)
    RAZORPAY_WEBHOOK_SECRET = os.getenv('RAZORPAY_WEBHOOK_SECRET', '')
    RAZORPAY_ACCEPTED_EVENT = os.getenv('RAZORPAY_ACCEPTED_EVENT', 'qr_code.credited')

    # Listing limits
    QR_CODES_LIST_LIMIT = 100
    WITHDRAWALS_LIST_LIMIT = 100
    TRANSACTIONS_DEFAULT_LIMIT = 25
    TRANSACTIONS_MAX_LIMIT = 50

    # CORS Settings
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Application Settings
    APP_NAME = 'QR Code Admin API'
    APP_VERSION = '1.0.0'
    DEBUG = False
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DEBUG = True
    APPWRITE_DATABASE_ID = 'test-db'
    APPWRITE_QRCODE_COLLECTION_ID = 'qrcodes'
    APPWRITE_WEBHOOK_DATA_COLLECTION_ID = 'webhook-data'
    APPWRITE_WITHDRAWAL_REQUEST_COLLECTION_ID = 'withdrawals'
    APPWRITE_BUCKET_ID = 'qr-images'
    RAZORPAY_WEBHOOK_SECRET = 'test-webhook-secret'
    RAZORPAY_ACCEPTED_EVENT = 'qr_code.credited'


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Get configuration based on environment"""
    env = os.getenv('FLASK_ENV', 'development')
    return config.get(env, config['default'])
