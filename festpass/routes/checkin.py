from functools import wraps

from flask import request, jsonify
from flask_login import login_required, current_user

from festpass.routes import checkin_bp
from festpass.models import Event
from festpass.redemption import RedemptionEngine
from festpass.scan_intake import classify_camera_error
from festpass import db


def staff_required(f):
    """Decorator to require a volunteer, staff or admin role"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated or not current_user.is_staff:
            return jsonify({'success': False, 'code': 'forbidden', 'error': 'Staff access required.'}), 403
        return f(*args, **kwargs)
    return decorated_function


def _to_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@checkin_bp.route('/redeem', methods=['POST'])
@login_required
@staff_required
def redeem():
    """Check a participant in from a scanned or typed pass code"""
    data = request.get_json(silent=True) or {}
    token = (data.get('qr_code') or '').strip()
    event_id = _to_int(data.get('event_id'))

    if not token or not event_id:
        return jsonify({'success': False, 'error': 'Please enter a QR code and select an event.'}), 400

    event = db.get_or_404(Event, event_id)
    result = RedemptionEngine().redeem(
        token,
        event.id,
        zone=(data.get('zone') or '').strip() or None,
        notes=(data.get('notes') or '').strip() or None,
        operator_id=current_user.id,
    )

    payload = result.to_dict()
    if result.is_fresh:
        payload['message'] = f'{result.name} has been checked in'
    else:
        payload['message'] = f'{result.name} was already checked in'
    return jsonify(payload)


@checkin_bp.route('/undo', methods=['POST'])
@login_required
@staff_required
def undo_checkin():
    """Undo a check-in; the client must send ``confirm: true``"""
    data = request.get_json(silent=True) or {}
    event_id = _to_int(data.get('event_id'))
    user_id = _to_int(data.get('user_id'))
    if not event_id or not user_id:
        return jsonify({'success': False, 'error': 'event_id and user_id are required.'}), 400

    RedemptionEngine().undo_check_in(event_id, user_id, confirmed=data.get('confirm') is True)
    return jsonify({'success': True, 'message': 'Check-in undone'})


@checkin_bp.route('/events/<int:event_id>/checked-in')
@login_required
@staff_required
def checked_in(event_id):
    event = db.get_or_404(Event, event_id)
    participants = RedemptionEngine().checked_in_participants(event.id)
    return jsonify({'success': True, 'event': event.to_dict(), 'participants': participants})


@checkin_bp.route('/camera-error', methods=['POST'])
@login_required
@staff_required
def camera_error():
    """Classify a browser camera failure and return remediation text"""
    data = request.get_json(silent=True) or {}
    error = classify_camera_error(data.get('name') or '', data.get('message'))
    return jsonify(error.to_dict())
