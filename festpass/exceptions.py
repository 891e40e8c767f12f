"""
Error taxonomy for pass issuance, rendering, scanning and redemption.

Every error carries a stable ``code`` and the HTTP status the JSON routes
answer with. Redemption validation failures are expected outcomes of someone
scanning the wrong badge and are kept apart from system errors.
"""


class PassError(Exception):
    code = 'pass_error'
    http_status = 400
    message = 'Something went wrong with this pass.'

    def __init__(self, message=None):
        super().__init__(message or self.message)

    def to_dict(self):
        return {'success': False, 'code': self.code, 'error': str(self)}


class NotEligible(PassError):
    code = 'not_eligible'
    http_status = 403
    message = 'You must register for at least one event to get a pass.'


class EncodingError(PassError):
    code = 'encoding_error'
    http_status = 500
    message = 'Failed to generate QR code.'


class AssetLoadError(PassError):
    code = 'asset_load_error'
    http_status = 502
    message = 'Failed to load ticket artwork.'


class RedemptionError(PassError):
    """Base for expected, user-facing check-in failures."""
    code = 'redemption_error'


class UnknownCredential(RedemptionError):
    code = 'unknown_credential'
    http_status = 404
    message = 'Invalid code: no participant found for this pass.'


class OwnerNotFound(RedemptionError):
    code = 'owner_not_found'
    http_status = 404
    message = 'Invalid code: the pass owner no longer exists.'


class NotRegisteredForEvent(RedemptionError):
    code = 'not_registered'
    http_status = 403
    message = 'This participant is not registered for the selected event.'


class NotCheckedIn(PassError):
    code = 'not_checked_in'
    http_status = 409
    message = 'Not checked in.'


class ConfirmationRequired(PassError):
    code = 'confirmation_required'
    http_status = 428
    message = 'Undoing a check-in requires explicit staff confirmation.'


class CameraAccessError(PassError):
    """Camera could not be used; ``kind`` says why."""
    code = 'camera_error'
    http_status = 400

    PERMISSION_DENIED = 'permission_denied'
    NO_CAMERA = 'no_camera'
    CAMERA_BUSY = 'camera_busy'
    UNSUPPORTED = 'unsupported'
    INSECURE_CONTEXT = 'insecure_context'

    REMEDIATION = {
        PERMISSION_DENIED: 'Camera permission was denied. Allow camera access in the browser '
                           'or device settings and try again, or enter the code manually.',
        NO_CAMERA: 'No camera was found. Connect a camera or enter the code manually.',
        CAMERA_BUSY: 'The camera is in use by another application. Close it and try again, '
                     'or enter the code manually.',
        UNSUPPORTED: 'Camera scanning is not supported here. Use an up-to-date browser '
                     'or enter the code manually.',
        INSECURE_CONTEXT: 'Camera access needs a secure (HTTPS) connection. Open the scanner '
                          'over HTTPS or enter the code manually.',
    }

    def __init__(self, kind, detail=None):
        self.kind = kind
        self.detail = detail
        self.remediation = self.REMEDIATION.get(kind, self.REMEDIATION[self.UNSUPPORTED])
        super().__init__(self.remediation)

    def to_dict(self):
        data = super().to_dict()
        data['kind'] = self.kind
        if self.detail:
            data['detail'] = self.detail
        return data
