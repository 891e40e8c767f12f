"""
QR symbol rendering for participant passes.
"""

import base64
import logging
from io import BytesIO

import qrcode
from qrcode.exceptions import DataOverflowError
from PIL import Image

from festpass.exceptions import EncodingError

logger = logging.getLogger(__name__)

ERROR_CORRECTION_LEVELS = {
    'L': qrcode.constants.ERROR_CORRECT_L,
    'M': qrcode.constants.ERROR_CORRECT_M,
    'Q': qrcode.constants.ERROR_CORRECT_Q,
    'H': qrcode.constants.ERROR_CORRECT_H,
}

PNG_DATA_URL_PREFIX = 'data:image/png;base64,'


class QROptions:
    """Rendering parameters for a QR symbol"""

    def __init__(self, pixel_size=300, margin=2, error_correction='M',
                 dark_color='#000000', light_color='#FFFFFF'):
        if error_correction not in ERROR_CORRECTION_LEVELS:
            raise ValueError(f'Unknown error correction level: {error_correction!r}')
        if pixel_size <= 0:
            raise ValueError('pixel_size must be positive')
        if margin < 0:
            raise ValueError('margin cannot be negative')
        self.pixel_size = pixel_size
        self.margin = margin
        self.error_correction = error_correction
        self.dark_color = dark_color
        self.light_color = light_color

    def replace(self, **changes):
        values = dict(
            pixel_size=self.pixel_size,
            margin=self.margin,
            error_correction=self.error_correction,
            dark_color=self.dark_color,
            light_color=self.light_color,
        )
        values.update(changes)
        return QROptions(**values)

    def __repr__(self):
        return (f'<QROptions {self.pixel_size}px margin={self.margin} '
                f'ec={self.error_correction}>')


def render_image(token, options=None):
    """Render ``token`` into a square PIL image of ``options.pixel_size``."""
    options = options or QROptions()
    if not token:
        logger.error("Refusing to render an empty pass token")
        raise EncodingError('Cannot encode an empty token.')

    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECTION_LEVELS[options.error_correction],
        box_size=10,
        border=options.margin,
    )
    try:
        qr.add_data(token)
        qr.make(fit=True)
        qr_img = qr.make_image(fill_color=options.dark_color, back_color=options.light_color)
        qr_img = qr_img.convert('RGB')
    except (DataOverflowError, ValueError) as e:
        logger.error(f"QR encoding failed for token of length {len(token)}: {e}")
        raise EncodingError(f'Failed to generate QR code: {e}') from e

    # Nearest keeps module edges crisp for scanners
    return qr_img.resize((options.pixel_size, options.pixel_size), Image.Resampling.NEAREST)


def render(token, options=None):
    """Render ``token`` as a PNG data URL."""
    return image_to_data_url(render_image(token, options))


def image_to_data_url(img):
    buffer = BytesIO()
    img.save(buffer, format='PNG')
    return PNG_DATA_URL_PREFIX + base64.b64encode(buffer.getvalue()).decode('utf-8')


def data_url_to_bytes(data_url):
    """Decode the payload of a base64 data URL."""
    if not data_url or not data_url.startswith('data:') or ',' not in data_url:
        raise ValueError('Not a data URL')
    header, payload = data_url.split(',', 1)
    if ';base64' not in header:
        raise ValueError('Only base64 data URLs are supported')
    return base64.b64decode(payload)
