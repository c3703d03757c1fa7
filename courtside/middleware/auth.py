from functools import wraps
from flask import request, jsonify
from courtside.utils.security import verify_token
from courtside.utils.logger import get_logger

logger = get_logger(__name__)


def require_auth(f):
    """Decorator to require authentication"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        # Get token from Authorization header
        auth_header = request.headers.get('Authorization')

        if not auth_header:
            return jsonify({'error': 'Authorization header missing', 'code': 'unauthenticated'}), 401

        # Check format
        parts = auth_header.split()
        if len(parts) != 2 or parts[0] != 'Bearer':
            return jsonify({'error': 'Invalid authorization header format', 'code': 'unauthenticated'}), 401

        # Verify token
        payload = verify_token(parts[1])
        if not payload or not payload.get('user_id'):
            logger.info("Rejected request with invalid or expired token")
            return jsonify({'error': 'Invalid or expired token', 'code': 'unauthenticated'}), 401

        # Add user info to kwargs
        return f(current_user=payload, *args, **kwargs)

    return decorated_function
