import re

from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from wordtrail import db
from wordtrail.models import User

main = Blueprint('main', __name__)

USERNAME_PATTERN = re.compile(r'[A-Za-z0-9_-]{3,32}')


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Word Trail game server!'})


@main.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    username = data.get('username') or ''
    password = data.get('password') or ''
    if not username or not password:
        return jsonify({'error': 'Missing username or password'}), 400
    if not USERNAME_PATTERN.fullmatch(username):
        return jsonify({'error': 'Usernames use 3-32 letters, digits, - or _'}), 400

    if User.query.filter_by(username=username).first():
        return jsonify({'error': 'Username already exists'}), 400

    user = User(username=username)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    login_user(user)

    return jsonify({'success': True, 'user': user.to_dict()}), 201


@main.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user = User.query.filter_by(username=data.get('username')).first()
    if user and not user.deactivated and user.check_password(data.get('password') or ''):
        login_user(user, remember=True)
        return jsonify({'success': True, 'user': user.to_dict()})
    return jsonify({'error': 'Invalid username or password'}), 401


@main.route('/check_login', methods=['GET'])
@login_required
def check_login():
    return jsonify({'success': True, 'user': current_user.to_dict()})


@main.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})
