from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_caching import Cache
from dotenv import load_dotenv

# Setup logging first
from railqual.utils.logging_config import setup_logging
from railqual.utils.scheduler import ComplianceScheduler

load_dotenv()

# Initialize extensions
db = SQLAlchemy()
limiter = Limiter(key_func=get_remote_address)
cache = Cache()
scheduler = ComplianceScheduler()


def create_app(config_name='default'):
    app = Flask(__name__)
    
    # Load configuration
    if config_name == 'development':
        from config.development import DevelopmentConfig
        app.config.from_object(DevelopmentConfig)
    elif config_name == 'production':
        from config.production import ProductionConfig
        app.config.from_object(ProductionConfig)
    elif config_name == 'testing':
        from config.testing import TestingConfig
        app.config.from_object(TestingConfig)
    else:
        from config.base import Config
        app.config.from_object(Config)
    
    # Setup logging based on config
    setup_logging(app.config['LOG_LEVEL'], app.config['LOG_DIR'])
    
    # Initialize extensions with app
    db.init_app(app)
    limiter.init_app(app)
    cache.init_app(app)
    scheduler.init_app(app)
    
    # Initialize error handlers
    from railqual.utils.error_handler import init_error_handlers
    init_error_handlers(app)
    
    # Register blueprints
    from railqual.controllers.qualifications import qualifications_bp
    from railqual.controllers.alerts import alerts_bp
    from railqual.controllers.cars import cars_bp
    
    app.register_blueprint(alerts_bp)
    app.register_blueprint(qualifications_bp)
    app.register_blueprint(cars_bp)
    
    # Create tables
    with app.app_context():
        from railqual import models  # noqa: F401
        db.create_all()
    
    return app
