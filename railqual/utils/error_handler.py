"""Error handling and custom exception classes for RailQual application."""

from flask import jsonify, request
from werkzeug.exceptions import HTTPException
from railqual.utils.logging_config import get_logger
from functools import wraps


# Custom exception classes
class RailQualException(Exception):
    """Base exception class for RailQual application."""
    pass


class ValidationError(RailQualException):
    """Raised when caller-supplied input fails validation."""
    pass


class InvalidDateError(ValidationError):
    """Raised when a date field does not parse as a calendar date."""

    def __init__(self, field):
        self.field = field
        super().__init__(f'Invalid {field}: must be a valid date string')


class BulkLimitError(ValidationError):
    """Raised when a bulk operation exceeds the per-request ceiling."""

    def __init__(self, limit, received):
        self.limit = limit
        self.received = received
        super().__init__(
            f'Bulk update limited to {limit} records per request. Received {received}.'
        )


class DuplicateRecordError(RailQualException):
    """Raised when a qualification already exists for a car and type."""
    pass


# Logger for error handling
logger = get_logger('railqual.errors')


def init_error_handlers(app):
    """Initialize error handlers for the Flask application."""

    @app.errorhandler(400)
    def bad_request(error):
        logger.error(f"Bad request: {request.url} - {str(error)}")
        return jsonify({
            'success': False,
            'error': str(error.description) if hasattr(error, 'description') else 'Invalid request'
        }), 400

    @app.errorhandler(404)
    def not_found(error):
        logger.info(f"Resource not found: {request.url}")
        return jsonify({
            'success': False,
            'error': 'The requested resource was not found'
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            'success': False,
            'error': 'The method is not allowed for this endpoint'
        }), 405

    @app.errorhandler(429)
    def rate_limit_exceeded(error):
        logger.warning(f"Rate limit exceeded: {request.url} from {request.remote_addr}")
        return jsonify({
            'success': False,
            'error': 'Too many requests. Please try again later.'
        }), 429

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {request.url} - {str(error)}", exc_info=True)
        return jsonify({
            'success': False,
            'error': 'An unexpected error occurred'
        }), 500

    @app.errorhandler(Exception)
    def handle_exception(error):
        if isinstance(error, HTTPException):
            return jsonify({
                'success': False,
                'error': error.description
            }), error.code

        logger.error(f"Unhandled exception: {str(error)}", exc_info=True)
        return jsonify({
            'success': False,
            'error': 'An unexpected error occurred'
        }), 500


def handle_error_response(error, status_code=500):
    """Helper function to create standardized error responses."""
    return jsonify({
        'success': False,
        'error': str(error)
    }), status_code


def error_handler(f):
    """Decorator to handle errors in route functions."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except ValidationError as e:
            logger.info(f"Validation error: {str(e)}")
            return handle_error_response(e, 400)
        except DuplicateRecordError as e:
            logger.info(f"Duplicate record: {str(e)}")
            return handle_error_response(e, 409)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Unexpected error in {f.__name__}: {str(e)}", exc_info=True)
            return handle_error_response("An unexpected error occurred", 500)
    return decorated_function
