"""
Migration script to move passes issued by the old code path onto the
current schema.

Old passes kept the rendered image (or a JSON blob) in profile.qr_code. After
this runs, qr_code holds the lookup token and qr_code_data the image.
"""

from festpass import create_app, db
from festpass.issuer import CredentialIssuer

app = create_app()


def migrate_legacy_qr_codes():
    """Add missing pass columns and re-issue legacy passes"""
    with app.app_context():
        print("Starting legacy pass migration...")

        inspector = db.inspect(db.engine)
        columns = [col['name'] for col in inspector.get_columns('profile')]
        missing = [name for name in ('participant_id', 'qr_code_data', 'qr_code_generated_at')
                   if name not in columns]
        if missing:
            print(f"[!!] Profile table is missing columns {missing}; run `flask db upgrade` first.")
            return 0

        fixed = CredentialIssuer().consolidate_legacy()

        if not fixed:
            print("[OK] No legacy passes found")
        else:
            print(f"[OK] Re-issued {fixed} legacy passes")
        print("\nMigration completed successfully!")
        return fixed


if __name__ == "__main__":
    migrate_legacy_qr_codes()
