from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required
from wordtrail import redis_store, socketio
from wordtrail.services.categories import browse
from wordtrail.services.categories.lifecycle import (
    CategoryLifecycle, FORMED_CORRECTLY, NOT_FOUND, VALIDATION_FAILED, UNAVAILABLE,
)
from wordtrail.services.host import HostPlatform
from wordtrail.services.store.codes import is_valid_code
from wordtrail.services.store.errors import CategoryFormatError, LedgerFormatError


categories = Blueprint('categories', __name__)


def _lifecycle(host: HostPlatform) -> CategoryLifecycle:
    return CategoryLifecycle(redis_store.client, host, current_app.config)


def _requester():
    """Lifecycle over the host platform, and the signed-in account."""
    host = HostPlatform()
    return _lifecycle(host), host.current_user()


def _notify(code: str, reason: str) -> None:
    # Live clients refresh the listing and any open category view
    socketio.emit('category_update', {'category_code': code, 'reason': reason},
                  to=f"category:{code}", namespace='/ws')
    socketio.emit('categories_changed', {'category_code': code, 'reason': reason}, namespace='/ws')


@categories.errorhandler(LedgerFormatError)
@categories.errorhandler(CategoryFormatError)
def unreadable_record(exc):
    current_app.logger.error(f"[unreadable-record] path={request.path} error={exc}")
    return jsonify({'error': 'Stored game data could not be read'}), 409


@categories.route('/session', methods=['GET'])
@login_required
def session_data():
    lifecycle, user = _requester()
    ledger = lifecycle.ensure_ledger(user['id'], user['username'])
    return jsonify({
        'username': user['username'],
        'userID': user['id'],
        'userAllowedToCreate': lifecycle.creation_allowance(user['id'], user['is_moderator']) != 'false',
        'createdCount': len(ledger.created),
        'highScoreCount': len(ledger.high_scores),
    })


@categories.route('', methods=['GET'])
def list_categories():
    try:
        cursor = int(request.args.get('cursor', 0))
    except ValueError:
        return jsonify({'error': 'cursor must be a number'}), 400
    sort = request.args.get('sort', 'time')
    reversed_ = request.args.get('reversed', '').lower() in ('1', 'true', 'yes')
    page = browse.list_categories(
        redis_store.client, cursor=cursor, sort=sort, reversed_=reversed_,
        page_size=int(current_app.config.get('CATEGORY_PAGE_SIZE', 500)),
    )
    return jsonify(page)


@categories.route('/mine', methods=['GET'])
@login_required
def my_categories():
    user = HostPlatform().current_user()
    return jsonify({'createdCategories': browse.created_categories(redis_store.client, user['id'])})


@categories.route('/form', methods=['GET'])
@login_required
def form_allowance():
    lifecycle, user = _requester()
    return jsonify({'correctly': lifecycle.creation_allowance(user['id'], user['is_moderator'])})


@categories.route('', methods=['POST'])
@login_required
def create_category():
    data = request.get_json(silent=True) or {}
    lifecycle, user = _requester()
    result = lifecycle.create(
        user['id'],
        user['username'],
        data.get('title') or '',
        data.get('words') or '',
        is_moderator=user['is_moderator'],
    )
    if result.status == FORMED_CORRECTLY:
        _notify(result.code, 'created')
        return jsonify(result.to_dict()), 201
    if result.status == VALIDATION_FAILED:
        return jsonify(result.to_dict()), 400
    if result.status == UNAVAILABLE:
        return jsonify(result.to_dict()), 503
    return jsonify(result.to_dict()), 403


@categories.route('/<string:code>', methods=['GET'])
def get_category(code):
    category = browse.get_category(redis_store.client, code) if is_valid_code(code) else None
    if category is None:
        return jsonify({'error': 'Category not found'}), 404
    return jsonify(category)


@categories.route('/<string:code>/words', methods=['GET'])
def get_words(code):
    words = browse.get_words(redis_store.client, code) if is_valid_code(code) else None
    if words is None:
        return jsonify({'error': 'Category not found'}), 404
    return jsonify({'words': words})


@categories.route('/<string:code>/plays', methods=['POST'])
@login_required
def record_play(code):
    if not is_valid_code(code):
        return jsonify({'error': 'Category not found'}), 404
    data = request.get_json(silent=True) or {}
    lifecycle, user = _requester()
    result = lifecycle.record_play(
        code,
        data.get('newScore'),
        user['id'],
        user['username'],
        guessed_all=bool(data.get('guessedAll')),
    )
    if result.feedback == NOT_FOUND:
        return jsonify(result.to_dict()), 404
    if result.committed:
        _notify(code, 'played')
    return jsonify(result.to_dict())


@categories.route('/<string:code>', methods=['DELETE'])
@login_required
def delete_category(code):
    if not is_valid_code(code):
        return jsonify({'success': False, 'message': 'Category not found'}), 404
    lifecycle, user = _requester()
    result = lifecycle.delete(code, user['id'], is_moderator=user['is_moderator'])
    if result.success:
        _notify(code, 'deleted')
    return jsonify(result.to_dict())


@categories.route('/user-data', methods=['DELETE'])
@login_required
def delete_all_user_data():
    lifecycle, user = _requester()
    result = lifecycle.bulk_delete_user(user['id'])
    for code in result.removed:
        _notify(code, 'deleted')
    return jsonify(result.to_dict())


@categories.route('/posts/<string:post_id>/deleted', methods=['POST'])
@login_required
def post_deleted(post_id):
    lifecycle, user = _requester()
    if not user['is_moderator']:
        return jsonify({'error': 'Only moderators may report deleted posts'}), 403
    result = lifecycle.handle_post_deleted(post_id)
    if result.kind == 'category' and result.committed:
        _notify(result.code, 'deleted')
    return jsonify({'kind': result.kind, 'categoryCode': result.code, 'committed': result.committed})
