from io import BytesIO

from flask import request, jsonify, current_app, send_file
from flask_login import login_required, current_user

from festpass.routes import pass_bp
from festpass.issuer import CredentialIssuer
from festpass.ticket import compose, ticket_filename
from festpass.qr_generator import data_url_to_bytes
from festpass.exceptions import AssetLoadError


def render_ticket_or_qr(credential, name):
    """Composite ticket as a data URL, falling back to the bare QR.

    Returns ``(data_url, artifact)`` where artifact is ``'ticket'`` or ``'pass'``.
    """
    try:
        ticket = compose(current_app.config['TICKET_BACKGROUND'], name,
                         credential.participant_id, credential.symbol_image)
        return ticket, 'ticket'
    except AssetLoadError as e:
        current_app.logger.warning(f"Ticket composition failed, offering raw QR instead: {e}")
        return credential.symbol_image, 'pass'


def _pass_response(credential):
    if request.if_none_match and credential.etag in request.if_none_match:
        return '', 304
    response = jsonify({'success': True, 'pass': credential.to_dict()})
    response.set_etag(credential.etag)
    return response


def _download(data_url, artifact, participant_id):
    filename = ticket_filename(current_app.config['PASS_PRODUCT_NAME'], artifact, participant_id)
    return send_file(
        BytesIO(data_url_to_bytes(data_url)),
        as_attachment=True,
        download_name=filename,
        mimetype='image/png'
    )


@pass_bp.route('/')
@login_required
def get_pass():
    """Current user's pass, issued on first request"""
    credential = CredentialIssuer().load_or_issue(current_user.id)
    return _pass_response(credential)


@pass_bp.route('/refresh', methods=['POST'])
@login_required
def refresh_pass():
    credential = CredentialIssuer().refresh(current_user.id)
    return _pass_response(credential)


@pass_bp.route('/download')
@login_required
def download_pass():
    """Download the bare QR symbol"""
    credential = CredentialIssuer().load_or_issue(current_user.id)
    return _download(credential.symbol_image, 'pass', credential.participant_id)


@pass_bp.route('/ticket')
@login_required
def download_ticket():
    """Download the composited ticket, or the bare QR if the artwork is unavailable"""
    credential = CredentialIssuer().load_or_issue(current_user.id)
    name = current_user.profile.display_name if current_user.profile else 'Participant'
    data_url, artifact = render_ticket_or_qr(credential, name)
    return _download(data_url, artifact, credential.participant_id)
