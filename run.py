import os
from railqual import create_app, db, scheduler
from railqual.models import QualificationType
from railqual.models.qualification_type import STANDARD_QUALIFICATION_TYPES
from railqual.utils.logging_config import get_logger

logger = get_logger(__name__)


def create_initial_data(app):
    """Seed the standard qualification types when the table is empty"""
    with app.app_context():
        if QualificationType.query.count():
            return

        for code, name, regulatory_body, interval in STANDARD_QUALIFICATION_TYPES:
            db.session.add(QualificationType(
                code=code,
                name=name,
                regulatory_body=regulatory_body,
                default_interval_months=interval
            ))
        db.session.commit()
        logger.info(f"Seeded {len(STANDARD_QUALIFICATION_TYPES)} qualification types")


if __name__ == '__main__':
    # Determine the environment
    env = os.getenv('FLASK_ENV', 'development')
    
    # Create the Flask app with appropriate configuration
    app = create_app(env)
    create_initial_data(app)
    
    # Start the daily status recalculation
    scheduler.start()
    
    logger.info(f"Starting RailQual application in {env} mode...")
    
    try:
        if env == 'development':
            app.run(debug=True, host='0.0.0.0', port=5000, use_reloader=False)
        else:
            # In production, use gunicorn with wsgi:app
            app.run(debug=False, host='0.0.0.0', port=5000)
    finally:
        scheduler.stop()
