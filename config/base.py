"""Base configuration for RailQual application."""

import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration class."""
    
    # Security
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    
    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///railqual.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }
    
    # JSON responses
    JSON_SORT_KEYS = False
    
    # Caching (qualification types are reference data)
    CACHE_TYPE = os.environ.get('CACHE_TYPE', 'SimpleCache')
    CACHE_DEFAULT_TIMEOUT = int(os.environ.get('CACHE_DEFAULT_TIMEOUT', 300))
    
    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_DIR = os.environ.get('LOG_DIR', 'logs')
    
    # Rate limiting
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_HEADERS_ENABLED = True
    BULK_UPDATE_RATE_LIMIT = os.environ.get('BULK_UPDATE_RATE_LIMIT', '30 per minute')
    
    # Qualification engine
    BULK_UPDATE_MAX = 500
    RECALC_CHUNK_SIZE = int(os.environ.get('RECALC_CHUNK_SIZE', 500))
    DEFAULT_PAGE_SIZE = 50
    
    # Background work
    AUDIT_ASYNC = os.environ.get('AUDIT_ASYNC', 'True').lower() == 'true'
    RECALC_CRON_HOUR = int(os.environ.get('RECALC_CRON_HOUR', 2))
    RECALC_CRON_MINUTE = int(os.environ.get('RECALC_CRON_MINUTE', 0))
