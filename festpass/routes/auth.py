from flask import request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from festpass.routes import auth_bp
from festpass.models import User, Profile
from festpass import db


@auth_bp.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password')
    first_name = (data.get('first_name') or '').strip()
    last_name = (data.get('last_name') or '').strip()

    # Validation
    if not all([email, password, first_name]):
        return jsonify({'success': False, 'error': 'Please fill in all required fields.'}), 400

    if User.query.filter_by(email=email).first():
        return jsonify({'success': False, 'error': 'Email already registered.'}), 409

    # Create user
    user = User(email=email, role='participant')
    user.set_password(password)
    db.session.add(user)
    db.session.flush()  # Get user ID

    # Create profile
    profile = Profile(user_id=user.id, first_name=first_name, last_name=last_name)
    db.session.add(profile)
    db.session.commit()

    login_user(user)
    return jsonify({'success': True, 'user_id': user.id}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        return jsonify({'success': False, 'error': 'Invalid email or password.'}), 401

    login_user(user, remember=bool(data.get('remember')))
    return jsonify({'success': True, 'user_id': user.id, 'role': user.role})


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})


@auth_bp.route('/me')
@login_required
def me():
    profile = current_user.profile
    return jsonify({
        'success': True,
        'user_id': current_user.id,
        'email': current_user.email,
        'role': current_user.role,
        'name': profile.display_name if profile else None,
        'participant_id': profile.participant_id if profile else None,
    })
