from flask import Blueprint, current_app, request, jsonify
from courtside.exceptions import SchedulingError, Unauthorized
from courtside.middleware.auth import require_auth
from courtside.utils.logger import get_logger, get_security_logger
from courtside.utils.validators import validate_required_fields

bp = Blueprint('invites', __name__)
logger = get_logger(__name__)
security_logger = get_security_logger()


def _service():
    return current_app.extensions['courtside']['invites']


@bp.route('', methods=['GET'])
@require_auth
def list_invites(current_user):
    """Invites sent and received, with participant profiles"""
    try:
        invites = _service().list_invites(current_user['user_id'])

        status = request.args.get('status')
        if status:
            invites = [invite for invite in invites if invite['status'] == status]

        return jsonify({'invites': invites}), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error listing invites: {str(e)}")
        return jsonify({'error': 'Failed to list invites', 'code': 'internal_error'}), 500


@bp.route('', methods=['POST'])
@require_auth
def send_invite(current_user):
    """Invite another player to a match"""
    try:
        data = request.get_json(silent=True)

        valid, error = validate_required_fields(data, ['receiver_id', 'date', 'start_time', 'end_time'])
        if not valid:
            return jsonify({'error': error, 'code': 'invalid_request'}), 400

        invite = _service().send_invite(current_user['user_id'], data)
        return jsonify(invite.to_dict()), 201

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error sending invite: {str(e)}")
        return jsonify({'error': 'Failed to send invite', 'code': 'internal_error'}), 500


@bp.route('/booked', methods=['GET'])
@require_auth
def is_slot_booked(current_user):
    """Does the caller have an accepted match overlapping the given range?"""
    try:
        args = request.args.to_dict()
        valid, error = validate_required_fields(args, ['date', 'start_time', 'end_time'])
        if not valid:
            return jsonify({'error': error, 'code': 'invalid_request'}), 400

        user_id = current_user['user_id']
        if args.get('user_id') and args['user_id'] != user_id:
            security_logger.warning(f"User {user_id} asked for the bookings of user {args['user_id']}")
            raise Unauthorized("You can only check your own bookings")

        booked = _service().is_slot_booked(
            user_id,
            args['date'], args['start_time'], args['end_time']
        )
        return jsonify({'booked': booked}), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error checking booking: {str(e)}")
        return jsonify({'error': 'Failed to check booking', 'code': 'internal_error'}), 500


@bp.route('/<invite_id>', methods=['GET'])
@require_auth
def get_invite(invite_id, current_user):
    try:
        invite = _service().get_invite(invite_id, current_user['user_id'])
        return jsonify(invite.to_dict()), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error getting invite {invite_id}: {str(e)}")
        return jsonify({'error': 'Failed to get invite', 'code': 'internal_error'}), 500


@bp.route('/<invite_id>/respond', methods=['POST'])
@require_auth
def respond_to_invite(invite_id, current_user):
    """Accept or decline a received invite"""
    try:
        data = request.get_json(silent=True)
        valid, error = validate_required_fields(data, ['decision'])
        if not valid:
            return jsonify({'error': error, 'code': 'invalid_request'}), 400

        invite = _service().respond(invite_id, current_user['user_id'], data['decision'])
        return jsonify(invite.to_dict()), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error responding to invite {invite_id}: {str(e)}")
        return jsonify({'error': 'Failed to respond to invite', 'code': 'internal_error'}), 500


@bp.route('/<invite_id>/propose', methods=['POST'])
@require_auth
def propose_new_time(invite_id, current_user):
    """Counter-propose a different time"""
    try:
        data = request.get_json(silent=True)
        valid, error = validate_required_fields(data, ['date', 'start_time', 'end_time'])
        if not valid:
            return jsonify({'error': error, 'code': 'invalid_request'}), 400

        invite = _service().propose_new_time(invite_id, current_user['user_id'], data)
        return jsonify(invite.to_dict()), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error proposing time for invite {invite_id}: {str(e)}")
        return jsonify({'error': 'Failed to propose new time', 'code': 'internal_error'}), 500


@bp.route('/<invite_id>/accept-proposal', methods=['POST'])
@require_auth
def accept_proposed_time(invite_id, current_user):
    try:
        invite = _service().accept_proposed_time(invite_id, current_user['user_id'])
        return jsonify(invite.to_dict()), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error accepting proposal for invite {invite_id}: {str(e)}")
        return jsonify({'error': 'Failed to accept proposed time', 'code': 'internal_error'}), 500


@bp.route('/<invite_id>/cancel', methods=['POST'])
@require_auth
def cancel_invite(invite_id, current_user):
    try:
        data = request.get_json(silent=True) or {}
        invite = _service().cancel(invite_id, current_user['user_id'], reason=data.get('reason'))
        return jsonify(invite.to_dict()), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error cancelling invite {invite_id}: {str(e)}")
        return jsonify({'error': 'Failed to cancel invite', 'code': 'internal_error'}), 500
