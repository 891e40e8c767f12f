from flask import jsonify, current_app
from flask_login import login_required, current_user
from sqlalchemy.exc import IntegrityError

from festpass.routes import events_bp
from festpass.routes.passes import render_ticket_or_qr
from festpass.models import Event, EventRegistration
from festpass.issuer import CredentialIssuer
from festpass.notifications import get_notification_service
from festpass import db


@events_bp.route('/')
def list_events():
    events = Event.query.order_by(Event.start_date.asc()).all()
    return jsonify({'success': True, 'events': [e.to_dict() for e in events]})


@events_bp.route('/<int:event_id>/register', methods=['POST'])
@login_required
def register_for_event(event_id):
    event = db.get_or_404(Event, event_id)

    existing = EventRegistration.query.filter_by(event_id=event.id, user_id=current_user.id).first()
    if existing:
        return jsonify({'success': False, 'error': 'Already registered for this event.'}), 409

    registration = EventRegistration(event_id=event.id, user_id=current_user.id, status='registered')
    db.session.add(registration)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({'success': False, 'error': 'Already registered for this event.'}), 409

    credential = CredentialIssuer().load_or_issue(current_user.id)
    send_registration_email(event, credential)

    return jsonify({
        'success': True,
        'message': f'Registered for {event.title}',
        'registration_id': registration.id,
        'participant_id': credential.participant_id,
    }), 201


def send_registration_email(event, credential):
    """Fire-and-forget: a failed email never undoes the registration"""
    profile = current_user.profile
    name = profile.display_name if profile else 'Participant'
    try:
        pass_image, _artifact = render_ticket_or_qr(credential, name)
        result = get_notification_service().send_event_registration(
            event_details={
                'title': event.title,
                'date': event.start_date.strftime('%B %d, %Y at %I:%M %p') if event.start_date else None,
                'location': event.location,
            },
            user_details={'email': current_user.email, 'name': name},
            qr_data_url=pass_image,
            participant_id=credential.participant_id,
        )
    except Exception as e:
        current_app.logger.error(f"Registration email not sent to {current_user.email}: {e}")
        return {'success': False, 'error': str(e)}

    if not result.get('success'):
        current_app.logger.warning(f"Registration email not delivered to {current_user.email}: {result.get('error')}")
    return result
