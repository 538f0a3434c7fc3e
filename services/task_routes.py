from flask import jsonify, request

from models import db, Task
from services.auth_service import get_current_user
from services.validation_service import parse_choice, parse_day_value

ALLOWED_TASK_STATUSES = {'uncompleted', 'in_progress', 'completed'}
ALLOWED_IMPORTANCE = {'low', 'medium', 'high'}

STATUS_CYCLE = {
    'uncompleted': 'in_progress',
    'in_progress': 'completed',
    'completed': 'uncompleted',
}


def cycle_task_status(current_status):
    return STATUS_CYCLE.get(current_status, 'uncompleted')


def _normalize_status(raw):
    # Older clients send "in-progress".
    return parse_choice(str(raw or '').replace('-', '_'), ALLOWED_TASK_STATUSES, None)


def tasks_collection():
    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    if request.method == 'GET':
        query = Task.query.filter_by(user_id=user.id)
        status = request.args.get('status')
        if status:
            status = _normalize_status(status)
            if not status:
                return jsonify({'error': 'Invalid status'}), 400
            query = query.filter_by(status=status)
        category = (request.args.get('category') or '').strip()
        if category:
            query = query.filter_by(category=category)
        tasks = query.order_by(Task.created_at.desc(), Task.id.desc()).all()
        return jsonify([t.to_dict() for t in tasks])

    data = request.json or {}
    title = (data.get('title') or '').strip()
    if not title:
        return jsonify({'error': 'Title is required'}), 400
    due_date = None
    raw_due = data.get('due_date', data.get('dueDate'))
    if raw_due:
        due_date = parse_day_value(raw_due)
        if not due_date:
            return jsonify({'error': 'Invalid due_date'}), 400

    task = Task(
        user_id=user.id,
        title=title,
        description=(data.get('description') or '').strip(),
        status=_normalize_status(data.get('status')) or 'uncompleted',
        importance=parse_choice(data.get('importance'), ALLOWED_IMPORTANCE, 'medium'),
        due_date=due_date,
        category=(data.get('category') or '').strip() or None
    )
    db.session.add(task)
    db.session.commit()
    return jsonify(task.to_dict()), 201


def task_detail(task_id):
    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    task = Task.query.filter_by(id=task_id, user_id=user.id).first_or_404()

    if request.method == 'DELETE':
        db.session.delete(task)
        db.session.commit()
        return '', 204

    data = request.json or {}
    if 'title' in data:
        title = (data.get('title') or '').strip()
        if title:
            task.title = title
    if 'description' in data:
        task.description = (data.get('description') or '').strip()
    if 'status' in data:
        status = _normalize_status(data.get('status'))
        if not status:
            return jsonify({'error': 'Invalid status'}), 400
        task.status = status
    if 'importance' in data:
        importance = parse_choice(data.get('importance'), ALLOWED_IMPORTANCE, None)
        if importance:
            task.importance = importance
    if 'category' in data:
        task.category = (data.get('category') or '').strip() or None
    if 'due_date' in data or 'dueDate' in data:
        raw_due = data.get('due_date', data.get('dueDate'))
        if raw_due:
            due_date = parse_day_value(raw_due)
            if not due_date:
                return jsonify({'error': 'Invalid due_date'}), 400
            task.due_date = due_date
        else:
            task.due_date = None
    db.session.commit()
    return jsonify(task.to_dict())


def cycle_status(task_id):
    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401
    task = Task.query.filter_by(id=task_id, user_id=user.id).first_or_404()
    task.status = cycle_task_status(task.status)
    db.session.commit()
    return jsonify(task.to_dict())
