"""
Kiosk scan station
Reads passes from a local camera and checks participants in at one event.

Usage:
    python scripts/scan_station.py EVENT_ID [--zone "Gate A"] [--camera 0] [--operator USER_ID]

Press Enter after each check-in to scan the next pass, or type a code by
hand and press Enter to submit it without the camera. Type q to quit.
"""

import argparse

from festpass import create_app
from festpass.redemption import RedemptionEngine
from festpass.scan_intake import ScanIntake, OpenCVCamera, SCANNING, PAUSED
from festpass.exceptions import CameraAccessError, RedemptionError

app = create_app()


def report(result):
    if result.is_fresh:
        print(f"[OK] {result.name} ({result.participant_id}) checked in")
    else:
        print(f"[!!] {result.name} was ALREADY checked in at {result.check_in_time}")


def run_station(event_id, zone=None, camera_index=0, operator_id=None):
    engine = RedemptionEngine()

    def on_candidate(token):
        try:
            report(engine.redeem(token, event_id, zone=zone, operator_id=operator_id))
        except RedemptionError as e:
            print(f"[XX] {e}")

    with app.app_context():
        intake = ScanIntake(on_candidate, camera=OpenCVCamera(camera_index),
                            dedup_seconds=app.config['SCAN_DEDUP_SECONDS'])
        with intake:
            try:
                intake.request_permission()
                intake.start()
            except CameraAccessError as e:
                print(f"[XX] Camera unavailable: {e.remediation}")
                print("Manual entry only.")

            while True:
                if intake.state == SCANNING:
                    print("Scanning... hold a pass in front of the camera")
                    intake.scan()
                line = input("> ").strip()
                if line.lower() == 'q':
                    break
                if line:
                    intake.submit_manual(line)
                elif intake.state == PAUSED:
                    intake.resume()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Check participants in from a camera")
    parser.add_argument('event_id', type=int)
    parser.add_argument('--zone')
    parser.add_argument('--camera', type=int, default=0)
    parser.add_argument('--operator', type=int)
    args = parser.parse_args()
    run_station(args.event_id, zone=args.zone, camera_index=args.camera, operator_id=args.operator)
