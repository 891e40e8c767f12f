"""
Redemption Engine - the single authority that turns a scanned pass into a
check-in.

The check-in itself is one conditional UPDATE (``... WHERE checked_in =
false``) committed together with the audit row, so two volunteers scanning
the same badge at the same moment produce exactly one check-in; the loser
sees ``already_checked_in``.
"""

from datetime import datetime

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from festpass import db
from festpass.models import Profile, EventRegistration, CheckInLog
from festpass.exceptions import (
    UnknownCredential, OwnerNotFound, NotRegisteredForEvent,
    NotCheckedIn, ConfirmationRequired,
)
from festpass import token_codec

CHECKED_IN = 'checked_in'
ALREADY_CHECKED_IN = 'already_checked_in'


class RedemptionResult:
    def __init__(self, status, owner_id, event_id, name, email, participant_id, check_in_time, log_id=None):
        self.status = status
        self.owner_id = owner_id
        self.event_id = event_id
        self.name = name
        self.email = email
        self.participant_id = participant_id
        self.check_in_time = check_in_time
        self.log_id = log_id

    @property
    def is_fresh(self):
        return self.status == CHECKED_IN

    def to_dict(self):
        return {
            'success': True,
            'status': self.status,
            'owner_id': self.owner_id,
            'event_id': self.event_id,
            'name': self.name,
            'email': self.email,
            'participant_id': self.participant_id,
            'check_in_time': self.check_in_time.isoformat() if self.check_in_time else None,
        }

    def __repr__(self):
        return f'<RedemptionResult {self.status} {self.owner_id}@{self.event_id}>'


class RedemptionEngine:
    def resolve_owner(self, candidate_token):
        """Map scanned text onto an owner id, or raise UnknownCredential."""
        decoded = token_codec.decode(candidate_token)

        if decoded.kind == 'legacy':
            # bool is an int subclass; JSON true must not resolve to owner 1
            if isinstance(decoded.owner_id, bool) or not isinstance(decoded.owner_id, (int, str)):
                raise OwnerNotFound()
            try:
                return int(decoded.owner_id)
            except ValueError:
                raise OwnerNotFound()

        if decoded.kind == 'invalid':
            raise UnknownCredential()

        profile = Profile.query.filter_by(participant_id=decoded.token).first()
        if profile is None:
            profile = Profile.query.filter_by(qr_code=decoded.token).first()
        if profile is None:
            raise UnknownCredential()
        return profile.user_id

    def redeem(self, candidate_token, event_id, zone=None, notes=None, operator_id=None):
        owner_id = self.resolve_owner(candidate_token)

        profile = Profile.query.filter_by(user_id=owner_id).first()
        if profile is None:
            raise OwnerNotFound()

        registration = EventRegistration.query.filter_by(event_id=event_id, user_id=owner_id).first()
        if registration is None:
            raise NotRegisteredForEvent()

        email = profile.user.email if profile.user else None
        now = datetime.utcnow()
        try:
            updated = EventRegistration.query.filter_by(
                event_id=event_id, user_id=owner_id, checked_in=False
            ).update({'checked_in': True, 'check_in_time': now}, synchronize_session=False)

            if updated == 0:
                db.session.rollback()
                db.session.refresh(registration)
                current_app.logger.info(f"Duplicate redemption for owner {owner_id} at event {event_id}")
                return RedemptionResult(ALREADY_CHECKED_IN, owner_id, event_id, profile.display_name,
                                        email, profile.participant_id, registration.check_in_time)

            log = CheckInLog(
                event_id=event_id,
                user_id=owner_id,
                volunteer_id=operator_id,
                qr_code=candidate_token.strip(),
                zone=zone or None,
                notes=notes or None,
                check_in_time=now,
            )
            db.session.add(log)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Check-in failed to persist for owner {owner_id} at event {event_id}: {e}")
            raise

        current_app.logger.info(f"Checked in owner {owner_id} at event {event_id}")
        return RedemptionResult(CHECKED_IN, owner_id, event_id, profile.display_name,
                                email, profile.participant_id, now, log_id=log.id)

    def undo_check_in(self, event_id, owner_id, confirmed=False):
        """Staff override: remove the latest audit row and reset the registration."""
        if not confirmed:
            raise ConfirmationRequired()

        registration = EventRegistration.query.filter_by(event_id=event_id, user_id=owner_id).first()
        if registration is None:
            raise NotRegisteredForEvent()
        if not registration.checked_in:
            raise NotCheckedIn()

        latest_log = CheckInLog.query.filter_by(event_id=event_id, user_id=owner_id).order_by(
            CheckInLog.check_in_time.desc(), CheckInLog.id.desc()
        ).first()

        try:
            if latest_log:
                db.session.delete(latest_log)
            registration.checked_in = False
            registration.check_in_time = None
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Undo check-in failed for owner {owner_id} at event {event_id}: {e}")
            raise

        current_app.logger.info(f"Check-in undone for owner {owner_id} at event {event_id}")
        return registration

    def checked_in_participants(self, event_id):
        logs = CheckInLog.query.filter_by(event_id=event_id).order_by(
            CheckInLog.check_in_time.desc(), CheckInLog.id.desc()
        ).all()

        participants = []
        for log in logs:
            profile = Profile.query.filter_by(user_id=log.user_id).first()
            entry = log.to_dict()
            entry['name'] = profile.display_name if profile else 'Unknown participant'
            entry['participant_id'] = profile.participant_id if profile else None
            entry['email'] = log.user.email if log.user else None
            participants.append(entry)
        return participants
