"""
Verification routes for participant passes
Public lookup: is this code a real pass?
"""

from flask import jsonify
from festpass.routes import verification_bp
from festpass.models import Profile
from festpass.redemption import RedemptionEngine
from festpass.exceptions import RedemptionError


@verification_bp.route('/verify/<path:token>')
def verify_pass(token):
    """
    Public verification of a pass code
    Does not check anyone in
    """
    try:
        owner_id = RedemptionEngine().resolve_owner(token)
    except RedemptionError:
        return jsonify({'valid': False, 'token': token}), 404

    profile = Profile.query.filter_by(user_id=owner_id).first()
    if profile is None:
        return jsonify({'valid': False, 'token': token}), 404

    return jsonify({
        'valid': True,
        'token': token,
        'participant_id': profile.participant_id,
        'name': profile.display_name,
    })
