"""
Scan Intake - turns camera frames or typed codes into one pass candidate at
a time for the Redemption Engine.

States::

    idle -> requesting-permission -> granted | denied
    granted -> scanning <-> paused -> idle

After a successful decode the camera track is released and intake sits in
``paused`` until ``resume()`` is called, so a steady badge in front of the
lens produces a single check-in attempt.
"""

import logging
import os
import threading
import time

from festpass.exceptions import CameraAccessError

logger = logging.getLogger(__name__)

IDLE = 'idle'
REQUESTING_PERMISSION = 'requesting-permission'
GRANTED = 'granted'
DENIED = 'denied'
SCANNING = 'scanning'
PAUSED = 'paused'

DEFAULT_DEDUP_SECONDS = 2.0

# getUserMedia error names reported by browser scanner clients
BROWSER_ERROR_KINDS = {
    'NotAllowedError': CameraAccessError.PERMISSION_DENIED,
    'PermissionDeniedError': CameraAccessError.PERMISSION_DENIED,
    'NotFoundError': CameraAccessError.NO_CAMERA,
    'DevicesNotFoundError': CameraAccessError.NO_CAMERA,
    'OverconstrainedError': CameraAccessError.NO_CAMERA,
    'NotReadableError': CameraAccessError.CAMERA_BUSY,
    'TrackStartError': CameraAccessError.CAMERA_BUSY,
    'AbortError': CameraAccessError.CAMERA_BUSY,
    'NotSupportedError': CameraAccessError.UNSUPPORTED,
    'TypeError': CameraAccessError.UNSUPPORTED,
    'SecurityError': CameraAccessError.INSECURE_CONTEXT,
}


def classify_camera_error(name, message=None):
    kind = BROWSER_ERROR_KINDS.get(name, CameraAccessError.UNSUPPORTED)
    return CameraAccessError(kind, detail=message or name)


class OpenCVCamera:
    """A local video device read through OpenCV."""

    def __init__(self, index=0):
        self.index = index
        self._capture = None

    @property
    def is_open(self):
        return self._capture is not None

    def open(self):
        if self._capture is not None:
            return
        try:
            import cv2
        except ImportError as e:
            raise CameraAccessError(CameraAccessError.UNSUPPORTED, detail=str(e)) from e

        device = f'/dev/video{self.index}'
        if os.path.exists(device) and not os.access(device, os.R_OK):
            raise CameraAccessError(CameraAccessError.PERMISSION_DENIED, detail=device)

        capture = cv2.VideoCapture(self.index)
        if not capture.isOpened():
            capture.release()
            kind = CameraAccessError.CAMERA_BUSY if os.path.exists(device) else CameraAccessError.NO_CAMERA
            raise CameraAccessError(kind, detail=f'camera {self.index}')
        self._capture = capture

    def read(self):
        if self._capture is None:
            return None
        ok, frame = self._capture.read()
        return frame if ok else None

    def close(self):
        if self._capture is not None:
            self._capture.release()
            self._capture = None


def decode_frame(frame):
    """Return the QR payload visible in ``frame``, or None."""
    if frame is None:
        return None
    import cv2
    detector = cv2.QRCodeDetector()
    try:
        data, _points, _ = detector.detectAndDecode(frame)
    except cv2.error as e:
        logger.debug(f"QR detection failed on frame: {e}")
        return None
    return data or None


class ScanIntake:
    def __init__(self, on_candidate, camera=None, decoder=decode_frame,
                 dedup_seconds=DEFAULT_DEDUP_SECONDS, clock=time.monotonic):
        self.on_candidate = on_candidate
        self.camera = camera
        self.decoder = decoder
        self.dedup_seconds = dedup_seconds
        self.clock = clock

        self.state = IDLE
        self.last_error = None
        self._last_payload = None
        self._last_emitted_at = None
        self._torn_down = False
        self._lock = threading.RLock()

    # Camera lifecycle

    def request_permission(self):
        """Explicit, operator-initiated camera acquisition."""
        with self._lock:
            if self._torn_down:
                return self.state
            if self.state in (GRANTED, SCANNING, PAUSED):
                return self.state
            if self.camera is None:
                self.state = DENIED
                self.last_error = CameraAccessError(CameraAccessError.NO_CAMERA)
                raise self.last_error

            self.state = REQUESTING_PERMISSION
            try:
                self.camera.open()
            except CameraAccessError as e:
                self._release_camera()
                self.state = DENIED
                self.last_error = e
                logger.warning(f"Camera access failed ({e.kind}): {e.detail}")
                raise
            self.last_error = None
            self.state = GRANTED
            return self.state

    def start(self):
        with self._lock:
            if self.state == SCANNING:
                return self.state
            if self.state == PAUSED:
                return self.resume()
            if self.state != GRANTED:
                raise RuntimeError(f'Cannot start scanning from state {self.state!r}; '
                                   'request camera permission first')
            self.state = SCANNING
            return self.state

    def pause(self):
        with self._lock:
            if self.state == SCANNING:
                self._release_camera()
                self.state = PAUSED
            return self.state

    def resume(self):
        with self._lock:
            if self._torn_down or self.state != PAUSED:
                return self.state
            try:
                self.camera.open()
            except CameraAccessError as e:
                self._release_camera()
                self.state = DENIED
                self.last_error = e
                raise
            self.state = SCANNING
            return self.state

    def stop(self):
        with self._lock:
            self._release_camera()
            self.state = IDLE
            return self.state

    def teardown(self):
        with self._lock:
            self._torn_down = True
            self.stop()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.teardown()
        return False

    # Candidates

    def handle_decode(self, payload):
        """Feed one decoder result; returns True when a candidate was emitted."""
        with self._lock:
            if self._torn_down or self.state != SCANNING:
                return False
            if not payload or not payload.strip():
                return False
            payload = payload.strip()

            now = self.clock()
            if (payload == self._last_payload and self._last_emitted_at is not None
                    and now - self._last_emitted_at < self.dedup_seconds):
                return False

            self._last_payload = payload
            self._last_emitted_at = now
            self.pause()

        self.on_candidate(payload)
        return True

    def submit_manual(self, text):
        """Typed entry bypasses the camera and duplicate suppression."""
        if self._torn_down:
            return False
        if not text or not text.strip():
            return False
        self.on_candidate(text.strip())
        return True

    def scan(self, max_frames=None):
        """Read frames until a candidate is emitted, scanning stops or ``max_frames`` run out."""
        frames = 0
        try:
            while self.state == SCANNING and not self._torn_down:
                if max_frames is not None and frames >= max_frames:
                    break
                frames += 1
                frame = self.camera.read()
                payload = self.decoder(frame)
                if payload and self.handle_decode(payload):
                    return True
        except Exception:
            self.stop()
            raise
        return False

    def _release_camera(self):
        if self.camera is not None:
            try:
                self.camera.close()
            except Exception as e:
                logger.warning(f"Error releasing camera: {e}")
