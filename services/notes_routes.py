from datetime import datetime

from flask import current_app, jsonify, request

from models import db, Event, Note, Task
from services.auth_service import get_current_user
from services.validation_service import normalize_tags, parse_positive_int, tags_to_string

RELATED_TYPES = {'event': Event, 'task': Task}


def _resolve_related(data, user_id):
    """Validate related_type/related_id. Returns (related_type, related_id, error_response)."""
    related_type = (data.get('related_type') or '').strip().lower() or None
    related_id = data.get('related_id')
    if not related_type and related_id in (None, ''):
        return None, None, None
    if related_type not in RELATED_TYPES:
        return None, None, (jsonify({'error': 'related_type must be event or task'}), 400)
    try:
        related_id_int = int(related_id)
    except (TypeError, ValueError):
        return None, None, (jsonify({'error': 'Invalid related_id'}), 400)
    model = RELATED_TYPES[related_type]
    if not model.query.filter_by(id=related_id_int, user_id=user_id).first():
        return None, None, (jsonify({'error': f'{related_type.title()} not found for this user'}), 404)
    return related_type, related_id_int, None


def notes_collection():
    """List or create notes for the current user."""
    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    if request.method == 'POST':
        data = request.json or {}
        content = (data.get('content') or '').strip()
        if not content:
            return jsonify({'error': 'Content is required'}), 400
        related_type, related_id, error = _resolve_related(data, user.id)
        if error:
            return error
        note = Note(
            user_id=user.id,
            content=content,
            tags=tags_to_string(data.get('tags')) or None,
            related_type=related_type,
            related_id=related_id
        )
        db.session.add(note)
        db.session.commit()
        return jsonify(note.to_dict()), 201

    notes = Note.query.filter_by(user_id=user.id).order_by(Note.updated_at.desc(), Note.id.desc()).all()
    tag = (request.args.get('tag') or '').strip().lower()
    if tag:
        notes = [n for n in notes if tag in {t.lower() for t in normalize_tags(n.tags)}]
    return jsonify([n.to_dict() for n in notes])


def recent_notes():
    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401
    limit = parse_positive_int(request.args.get('limit')) or current_app.config['RECENT_NOTES_LIMIT']
    notes = Note.query.filter_by(user_id=user.id).order_by(
        Note.updated_at.desc(), Note.id.desc()
    ).limit(limit).all()
    return jsonify([n.to_dict() for n in notes])


def note_detail(note_id):
    """CRUD operations for a single note."""
    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    note = Note.query.filter_by(id=note_id, user_id=user.id).first_or_404()

    if request.method == 'DELETE':
        db.session.delete(note)
        db.session.commit()
        return '', 204

    if request.method == 'PUT':
        data = request.json or {}
        if 'content' in data:
            content = (data.get('content') or '').strip()
            if not content:
                return jsonify({'error': 'Content is required'}), 400
            note.content = content
        if 'tags' in data:
            note.tags = tags_to_string(data.get('tags')) or None
        if 'related_type' in data or 'related_id' in data:
            related_type, related_id, error = _resolve_related(data, user.id)
            if error:
                return error
            note.related_type, note.related_id = related_type, related_id
        note.updated_at = datetime.utcnow()
        db.session.commit()
        return jsonify(note.to_dict())

    return jsonify(note.to_dict())
