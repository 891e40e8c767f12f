"""
Bulk pass generation
Issues a pass for every participant with at least one event registration.

Usage:
    python scripts/maintenance/generate_passes.py              # only missing passes
    python scripts/maintenance/generate_passes.py --regenerate # re-render every pass
"""

import sys

from festpass import create_app
from festpass.issuer import CredentialIssuer

app = create_app()


def generate_passes(regenerate=False):
    """Issue (or re-issue) passes for all eligible participants"""
    with app.app_context():
        print("Starting pass generation..." if not regenerate else "Starting pass regeneration...")

        summary = CredentialIssuer().issue_missing(regenerate=regenerate)

        print(f"[OK] Issued: {summary['issued']}")
        print(f"[--] Already had a pass: {summary['skipped']}")
        print(f"[!!] Failed: {summary['failed']}")
        print("\nPass generation completed.")
        return summary


if __name__ == "__main__":
    result = generate_passes(regenerate='--regenerate' in sys.argv[1:])
    sys.exit(1 if result['failed'] else 0)
