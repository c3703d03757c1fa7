from datetime import date
from flask import Blueprint, current_app, request, jsonify
from courtside.exceptions import SchedulingError
from courtside.middleware.auth import require_auth
from courtside.utils.logger import get_logger
from courtside.utils.recurrence import decode_rule, describe_rule
from courtside.utils.validators import validate_privacy_level, validate_required_fields, validate_scope

bp = Blueprint('availability', __name__)
logger = get_logger(__name__)


def _service():
    return current_app.extensions['courtside']['availability']


def _flag(name: str, default: bool) -> bool:
    value = request.args.get(name)
    if value is None:
        return default
    return value.lower() in ('1', 'true', 'yes')


def _slot_payload(slot) -> dict:
    data = slot.to_dict()
    rule = decode_rule(slot.recurrence_rule)
    data['recurrence_description'] = describe_rule(rule) if rule else None
    return data


@bp.route('', methods=['GET'])
@require_auth
def list_availability(current_user):
    """List the current player's availability, optionally within a date range"""
    try:
        slots = _service().list_availability(
            current_user['user_id'],
            start=request.args.get('start'),
            end=request.args.get('end')
        )
        return jsonify({'availability': [_slot_payload(slot) for slot in slots]}), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error listing availability: {str(e)}")
        return jsonify({'error': 'Failed to list availability', 'code': 'internal_error'}), 500


@bp.route('', methods=['POST'])
@require_auth
def create_availability(current_user):
    """Create a slot, or a recurring series of slots"""
    try:
        data = request.get_json(silent=True)

        valid, error = validate_required_fields(data, ['date', 'start_time', 'end_time'])
        if not valid:
            return jsonify({'error': error, 'code': 'invalid_request'}), 400

        valid, error = validate_privacy_level(data.get('privacy_level'))
        if not valid:
            return jsonify({'error': error, 'code': 'invalid_request'}), 400

        result = _service().create_availability(current_user['user_id'], data)
        return jsonify(result.to_dict()), 201

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error creating availability: {str(e)}")
        return jsonify({'error': 'Failed to create availability', 'code': 'internal_error'}), 500


@bp.route('/<slot_id>', methods=['PUT'])
@require_auth
def update_availability(slot_id, current_user):
    """Edit one slot, or every occurrence with ?scope=all"""
    try:
        scope = request.args.get('scope', 'single')
        valid, error = validate_scope(scope)
        if not valid:
            return jsonify({'error': error, 'code': 'invalid_request'}), 400

        data = request.get_json(silent=True) or {}
        valid, error = validate_privacy_level(data.get('privacy_level'))
        if not valid:
            return jsonify({'error': error, 'code': 'invalid_request'}), 400

        result = _service().update_availability(current_user['user_id'], slot_id, data, scope=scope)
        payload = result.to_dict()
        payload['availability'] = [_slot_payload(slot) for slot in result.records]
        return jsonify(payload), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error updating availability {slot_id}: {str(e)}")
        return jsonify({'error': 'Failed to update availability', 'code': 'internal_error'}), 500


@bp.route('/<slot_id>', methods=['DELETE'])
@require_auth
def delete_availability(slot_id, current_user):
    """Delete one slot, or every occurrence with ?scope=all"""
    try:
        scope = request.args.get('scope', 'single')
        valid, error = validate_scope(scope)
        if not valid:
            return jsonify({'error': error, 'code': 'invalid_request'}), 400

        result = _service().delete_availability(current_user['user_id'], slot_id, scope=scope)
        return jsonify(result.to_dict()), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error deleting availability {slot_id}: {str(e)}")
        return jsonify({'error': 'Failed to delete availability', 'code': 'internal_error'}), 500


@bp.route('/grid', methods=['GET'])
@require_auth
def get_grid(current_user):
    """Quarter-hour grid for a run of days"""
    try:
        try:
            days = int(request.args.get('days', 7))
        except ValueError:
            days = 0
        if not 1 <= days <= 31:
            return jsonify({'error': 'days must be between 1 and 31', 'code': 'invalid_request'}), 400

        start = request.args.get('start') or date.today()
        grid = _service().get_grid(
            current_user['user_id'],
            start,
            days=days,
            include_others=_flag('include_others', False),
            show_weekend=_flag('show_weekend', True),
            show_weekday=_flag('show_weekday', True)
        )
        return jsonify({'grid': grid}), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error building availability grid: {str(e)}")
        return jsonify({'error': 'Failed to build grid', 'code': 'internal_error'}), 500


@bp.route('/check-conflict', methods=['POST'])
@require_auth
def check_conflict(current_user):
    """Would this range collide with the player's schedule?"""
    try:
        data = request.get_json(silent=True)
        valid, error = validate_required_fields(data, ['date', 'start_time', 'end_time'])
        if not valid:
            return jsonify({'error': error, 'code': 'invalid_request'}), 400

        conflict = _service().check_conflict(
            current_user['user_id'], data['date'], data['start_time'], data['end_time'],
            exclude_id=data.get('exclude_id')
        )
        return jsonify({'conflict': conflict}), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error checking availability conflict: {str(e)}")
        return jsonify({'error': 'Failed to check conflict', 'code': 'internal_error'}), 500
