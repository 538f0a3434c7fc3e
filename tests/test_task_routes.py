from services.task_routes import cycle_task_status


def create_task(client, **fields):
    payload = {'title': 'Write report'}
    payload.update(fields)
    resp = client.post('/api/tasks', json=payload)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


def test_cycle_task_status():
    assert cycle_task_status('uncompleted') == 'in_progress'
    assert cycle_task_status('in_progress') == 'completed'
    assert cycle_task_status('completed') == 'uncompleted'
    assert cycle_task_status('bogus') == 'uncompleted'


def test_create_task_defaults(client):
    task = create_task(client, dueDate='2024-05-01', status='in-progress')
    assert task['status'] == 'in_progress'
    assert task['importance'] == 'medium'
    assert task['due_date'] == '2024-05-01'


def test_create_task_validation(client):
    assert client.post('/api/tasks', json={'title': ' '}).status_code == 400
    assert client.post('/api/tasks', json={'title': 'x', 'due_date': 'someday'}).status_code == 400


def test_list_filters(client):
    create_task(client, title='A', category='home')
    create_task(client, title='B', category='work', status='completed')
    assert [t['title'] for t in client.get('/api/tasks?category=home').get_json()] == ['A']
    assert [t['title'] for t in client.get('/api/tasks?status=completed').get_json()] == ['B']
    assert client.get('/api/tasks?status=later').status_code == 400


def test_cycle_status_route(client):
    task_id = create_task(client)['id']
    statuses = [client.post(f'/api/tasks/{task_id}/cycle-status').get_json()['status'] for _ in range(3)]
    assert statuses == ['in_progress', 'completed', 'uncompleted']


def test_update_and_delete(client, other_client):
    task_id = create_task(client)['id']
    resp = client.put(f'/api/tasks/{task_id}', json={'importance': 'high', 'due_date': None})
    assert resp.get_json()['importance'] == 'high'
    assert client.put(f'/api/tasks/{task_id}', json={'status': 'done-ish'}).status_code == 400
    assert other_client.delete(f'/api/tasks/{task_id}').status_code == 404
    assert client.delete(f'/api/tasks/{task_id}').status_code == 204
    assert client.get('/api/tasks').get_json() == []
