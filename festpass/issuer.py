"""
Credential Issuer - the only place passes are created or refreshed.

A pass is issued to an owner holding at least one event registration. The
owner's participant ID is assigned on first issuance and kept across
refreshes; the QR symbol is rendered with high error correction so it
survives glare and scuffed screens at the gate.
"""

from datetime import datetime

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from festpass import db
from festpass.models import Profile, EventRegistration
from festpass.exceptions import NotEligible, OwnerNotFound, EncodingError
from festpass import token_codec
from festpass.qr_generator import QROptions, render


class Credential:
    def __init__(self, owner_id, participant_id, payload, symbol_image, issued_at):
        self.owner_id = owner_id
        self.participant_id = participant_id
        self.payload = payload
        self.symbol_image = symbol_image
        self.issued_at = issued_at

    @classmethod
    def from_profile(cls, profile):
        return cls(
            owner_id=profile.user_id,
            participant_id=profile.participant_id,
            payload=profile.qr_code or profile.participant_id,
            symbol_image=profile.qr_code_data,
            issued_at=profile.qr_code_generated_at or datetime.utcnow(),
        )

    @property
    def etag(self):
        return f'{self.participant_id}-{self.issued_at:%Y%m%d%H%M%S%f}'

    def to_dict(self):
        return {
            'owner_id': self.owner_id,
            'participant_id': self.participant_id,
            'qr_code_data': self.symbol_image,
            'generated_at': self.issued_at.isoformat(),
        }

    def __repr__(self):
        return f'<Credential {self.participant_id} for {self.owner_id}>'


class CredentialIssuer:
    def __init__(self, options=None, prefix=None):
        self.options = options or QROptions(
            pixel_size=current_app.config['QR_PIXEL_SIZE'],
            margin=current_app.config['QR_MARGIN'],
        )
        # Scan-critical: tolerate partial damage and glare
        self.options = self.options.replace(error_correction='H')
        self.prefix = prefix or current_app.config['PARTICIPANT_ID_PREFIX']

    def issue(self, owner_id):
        has_registration = EventRegistration.query.filter_by(user_id=owner_id).first() is not None
        if not has_registration:
            raise NotEligible()

        profile = Profile.query.filter_by(user_id=owner_id).first()
        if profile is None:
            raise OwnerNotFound(f'No profile found for owner {owner_id}.')

        participant_id = profile.participant_id or self._assign_participant_id()
        token = token_codec.mint_token(participant_id, owner_id, prefix=self.prefix)
        try:
            symbol_image = render(token, self.options)
        except EncodingError:
            current_app.logger.error(f"Pass symbol could not be encoded for owner {owner_id}")
            raise
        issued_at = datetime.utcnow()

        profile.participant_id = participant_id
        profile.qr_code = token
        profile.qr_code_data = symbol_image
        profile.qr_code_generated_at = issued_at
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.warning(f"Failed to save pass for owner {owner_id}: {e}")

        return Credential(owner_id, participant_id, token, symbol_image, issued_at)

    def refresh(self, owner_id):
        return self.issue(owner_id)

    def load_or_issue(self, owner_id):
        profile = Profile.query.filter_by(user_id=owner_id).first()
        if profile is not None and profile.has_credential():
            return Credential.from_profile(profile)
        return self.issue(owner_id)

    def issue_missing(self, regenerate=False):
        """Bulk-issue passes for every eligible owner.

        Without ``regenerate`` only owners lacking a stored pass are touched;
        with it every eligible owner gets a fresh symbol.
        """
        summary = {'issued': 0, 'failed': 0, 'skipped': 0}
        owner_ids = [row[0] for row in db.session.query(EventRegistration.user_id).distinct()]

        for owner_id in owner_ids:
            profile = Profile.query.filter_by(user_id=owner_id).first()
            if profile is None:
                summary['failed'] += 1
                current_app.logger.warning(f"Skipping owner {owner_id}: no profile")
                continue
            if profile.has_credential() and not regenerate:
                summary['skipped'] += 1
                continue
            try:
                self.issue(owner_id)
                summary['issued'] += 1
            except (NotEligible, OwnerNotFound, EncodingError) as e:
                summary['failed'] += 1
                current_app.logger.error(f"Failed to issue pass for owner {owner_id}: {e}")

        return summary

    def consolidate_legacy(self):
        """Move passes from the old single-column layout onto the current one.

        The older issuance path stored the rendered image (or a JSON blob) in
        ``qr_code``. Those rows are re-issued so ``qr_code`` holds the token
        and ``qr_code_data`` the image. Returns the number of profiles fixed.
        """
        fixed = 0
        legacy_profiles = Profile.query.filter(
            db.or_(Profile.qr_code.like('data:%'), Profile.qr_code.like('{%'))
        ).all()

        for profile in legacy_profiles:
            profile.qr_code = None
            db.session.commit()
            try:
                self.issue(profile.user_id)
                fixed += 1
            except NotEligible:
                # No registrations left: drop the stale image instead
                profile.qr_code_data = None
                profile.qr_code_generated_at = None
                db.session.commit()
                current_app.logger.info(f"Cleared legacy pass for ineligible owner {profile.user_id}")

        return fixed

    def _assign_participant_id(self):
        while True:
            candidate = token_codec.generate_participant_id(self.prefix)
            if not Profile.query.filter_by(participant_id=candidate).first():
                return candidate
