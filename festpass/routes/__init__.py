from flask import Blueprint

auth_bp = Blueprint('auth', __name__)
events_bp = Blueprint('events', __name__)
pass_bp = Blueprint('pass', __name__)
checkin_bp = Blueprint('checkin', __name__)
verification_bp = Blueprint('verification', __name__)
