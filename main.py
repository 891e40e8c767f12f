from festpass import create_app, db
from festpass.models import User, Profile, Event
from datetime import datetime, timedelta
import os

app = create_app()


def init_db():
    """Initialize the database with a staff account and sample events (idempotent)."""
    admin_email = os.environ.get('ADMIN_EMAIL', 'admin@techfest.local')
    admin_user = User.query.filter_by(email=admin_email).first()
    if not admin_user:
        admin_user = User(email=admin_email, role="admin")
        admin_user.set_password(os.environ.get('ADMIN_PASSWORD', 'admin123'))
        db.session.add(admin_user)
        db.session.flush()
        db.session.add(Profile(user_id=admin_user.id, first_name="Techfest", last_name="Admin"))
        db.session.commit()
        app.logger.info(f"Admin user created: {admin_email}")

    add_sample_events()


def add_sample_events():
    """Add sample events for local testing (only if they do not already exist)."""
    events_data = [
        {
            "title": "Opening Keynote",
            "description": "Festival opening session",
            "start_date": datetime.utcnow() + timedelta(days=7),
            "location": "Main Auditorium",
        },
        {
            "title": "Robotics Arena",
            "description": "Robot combat and line-follower rounds",
            "start_date": datetime.utcnow() + timedelta(days=8),
            "location": "Sports Complex",
        },
    ]

    for event_data in events_data:
        if not Event.query.filter_by(title=event_data["title"]).first():
            db.session.add(Event(**event_data))
    db.session.commit()


# Ensure DB and admin user are initialized whenever the app starts (e.g. under Gunicorn)
with app.app_context():
    init_db()


if __name__ == "__main__":
    # Bind to 0.0.0.0 to accept connections from outside the container
    port = int(os.environ.get('PORT', 5051))
    app.run(host='0.0.0.0', port=port, debug=True)
