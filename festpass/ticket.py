"""
Ticket Compositor - burns the participant's name, participant ID and pass QR
onto the event ticket artwork.

Layout coordinates are calibrated against a 1080x720 reference artwork and
scaled proportionally to whatever background is supplied, so the canvas
always keeps the background's natural size.
"""

import logging
import os
from io import BytesIO

import requests
from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from festpass.exceptions import AssetLoadError
from festpass.qr_generator import image_to_data_url, data_url_to_bytes

logger = logging.getLogger(__name__)

REFERENCE_WIDTH = 1080
REFERENCE_HEIGHT = 720

LABEL_COLOR = (239, 197, 255)  # #EFC5FF
VALUE_COLOR = (255, 255, 255)

TEXT_X = 60
TEXT_COLUMN_WIDTH = 300
NAME_LABEL_Y = 112
NAME_VALUE_Y = 150
NAME_LINE_HEIGHT = 36
ID_LABEL_Y = 208
ID_VALUE_Y = 244
ID_LINE_HEIGHT = 34

# Light rounded square reserved for the QR in the artwork
QR_SLOT_X = 41
QR_SLOT_Y = 344
QR_SLOT_SIZE = 326
QR_TARGET_SIZE = 280

FONT_SIZES = {'label': 28, 'name': 34, 'id': 32}

FETCH_TIMEOUT = 10


def load_fonts(scale=1.0):
    """Load fonts with proper fallbacks"""
    font_configs = [
        # Arial fonts (Windows)
        {'label': "arialbd.ttf", 'name': "arial.ttf", 'id': "arial.ttf"},
        # Liberation fonts (Linux)
        {'label': "LiberationSans-Bold.ttf", 'name': "LiberationSans-Regular.ttf",
         'id': "LiberationSans-Regular.ttf"},
        # DejaVu fonts (Linux fallback)
        {'label': "DejaVuSans-Bold.ttf", 'name': "DejaVuSans.ttf", 'id': "DejaVuSans.ttf"},
    ]

    for config in font_configs:
        try:
            return {
                font_type: ImageFont.truetype(font_name, max(1, round(FONT_SIZES[font_type] * scale)))
                for font_type, font_name in config.items()
            }
        except (OSError, IOError):
            continue

    logger.info("Using default fonts as fallback")
    return {font_type: ImageFont.load_default() for font_type in FONT_SIZES}


def load_image(source):
    """Load a raster from a path, http(s) URL, data URL, bytes or PIL image."""
    if isinstance(source, Image.Image):
        return source
    try:
        if isinstance(source, (bytes, bytearray)):
            img = Image.open(BytesIO(source))
        elif isinstance(source, str) and source.startswith('data:'):
            img = Image.open(BytesIO(data_url_to_bytes(source)))
        elif isinstance(source, str) and source.startswith(('http://', 'https://')):
            response = requests.get(source, timeout=FETCH_TIMEOUT)
            response.raise_for_status()
            img = Image.open(BytesIO(response.content))
        elif isinstance(source, str) and os.path.exists(source):
            img = Image.open(source)
        else:
            raise AssetLoadError(f'Image not found: {str(source)[:80]}')
        img.load()
        return img
    except AssetLoadError:
        raise
    except (requests.exceptions.RequestException, UnidentifiedImageError, ValueError, OSError) as e:
        logger.warning(f"Ticket asset failed to load: {e}")
        raise AssetLoadError(f'Failed to load ticket image: {e}') from e


def wrap_text(text, font, max_width, draw):
    """Greedy word wrap; words are never truncated, overflow goes to new lines."""
    words = text.split()
    lines = []
    line = ''
    for word in words:
        candidate = f'{line} {word}' if line else word
        if line and draw.textlength(candidate, font=font) > max_width:
            lines.append(line)
            line = word
        else:
            line = candidate
    if line:
        lines.append(line)
    return lines


def draw_wrapped_text(draw, text, x, y, max_width, line_height, font, fill):
    lines = wrap_text(text, font, max_width, draw)
    for i, line in enumerate(lines):
        draw.text((x, y + i * line_height), line, fill=fill, font=font)
    return lines


def compose_image(background, name, participant_id, qr_image):
    bg = load_image(background).convert('RGBA')
    qr = load_image(qr_image).convert('RGBA')

    width, height = bg.size
    sx = width / REFERENCE_WIDTH
    sy = height / REFERENCE_HEIGHT

    img = bg.copy()
    draw = ImageDraw.Draw(img)
    fonts = load_fonts(scale=sy)

    # Participant name
    draw.text((TEXT_X * sx, NAME_LABEL_Y * sy), "Participant Name:", fill=LABEL_COLOR, font=fonts['label'])
    draw_wrapped_text(draw, name or 'Participant', TEXT_X * sx, NAME_VALUE_Y * sy,
                      TEXT_COLUMN_WIDTH * sx, NAME_LINE_HEIGHT * sy, fonts['name'], VALUE_COLOR)

    # Participant ID
    draw.text((TEXT_X * sx, ID_LABEL_Y * sy), "Participant ID:", fill=LABEL_COLOR, font=fonts['label'])
    draw_wrapped_text(draw, participant_id or '', TEXT_X * sx, ID_VALUE_Y * sy,
                      TEXT_COLUMN_WIDTH * sx, ID_LINE_HEIGHT * sy, fonts['id'], VALUE_COLOR)

    # QR inset and centred inside the reserved square
    qr_size = max(1, round(QR_TARGET_SIZE * min(sx, sy)))
    slot_size = QR_SLOT_SIZE * min(sx, sy)
    qr_x = round(QR_SLOT_X * sx + (slot_size - qr_size) / 2)
    qr_y = round(QR_SLOT_Y * sy + (slot_size - qr_size) / 2)
    qr = qr.resize((qr_size, qr_size), Image.Resampling.NEAREST)
    img.paste(qr, (qr_x, qr_y), qr)

    return img


def compose(background, name, participant_id, qr_image):
    """Compose the shareable ticket and return it as a PNG data URL."""
    return image_to_data_url(compose_image(background, name, participant_id, qr_image))


def ticket_filename(product, artifact, participant_id):
    return f'{product}-{artifact}-{participant_id}.png'
