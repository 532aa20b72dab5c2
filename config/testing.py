"""Testing configuration for RailQual application."""

from .base import Config
import os


class TestingConfig(Config):
    """Testing configuration."""
    
    # Debug mode
    DEBUG = True
    TESTING = True
    
    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('TEST_DATABASE_URL') or 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    
    # Security
    SECRET_KEY = 'test-secret-key'
    
    # Caching
    CACHE_TYPE = 'NullCache'
    
    # Logging
    LOG_LEVEL = 'DEBUG'
    
    # Rate limiting
    RATELIMIT_ENABLED = False
    
    # History fan-out runs inline so tests can observe it
    AUDIT_ASYNC = False
