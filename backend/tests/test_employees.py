from feedbackdesk import get_db
from feedbackdesk.models.audit import AdminActionLog
from tests.test_utils_seed import make_employee
from tests.test_lifecycle_helpers import admin_headers, change_field


def test_employee_directory_lifecycle(app_context):
    client = app_context.test_client()
    headers = admin_headers('hr')
    resp = client.post('/admin/employees', json={'name': 'Bolat Ospan', 'department': 'hr', 'position': 'Engineer'},
                       headers=headers)
    assert resp.status_code == 201, resp.get_json()
    emp = resp.get_json()
    assert emp['is_active'] is True
    assert emp['email'] is None

    body = change_field(client, 'PATCH', f"/admin/employees/{emp['id']}", {'email': 'bolat@example.com'}, headers)
    assert body['email'] == 'bolat@example.com'
    change_field(client, 'PATCH', f"/admin/employees/{emp['id']}", {}, headers, expected_status=400)

    body = change_field(client, 'POST', f"/admin/employees/{emp['id']}/deactivate", {}, headers)
    assert body['is_active'] is False
    assert client.get('/admin/employees', headers=headers).get_json()['data'] == []
    listed = client.get('/admin/employees?include_inactive=true', headers=headers).get_json()['data']
    assert [e['name'] for e in listed] == ['Bolat Ospan']

    body = change_field(client, 'POST', f"/admin/employees/{emp['id']}/activate", {}, headers)
    assert body['is_active'] is True

    actions = [e.action for e in get_db().query(AdminActionLog).order_by(AdminActionLog.id).all()]
    assert actions == ['EMPLOYEE.CREATE', 'EMPLOYEE.UPDATE', 'EMPLOYEE.DEACTIVATE', 'EMPLOYEE.ACTIVATE']


def test_employees_are_department_scoped(app_context):
    sales_emp = make_employee('sales', 'Sales Rep')
    make_employee('hr', 'Hr Rep')
    client = app_context.test_client()
    hr = admin_headers('hr')
    assert [e['name'] for e in client.get('/admin/employees', headers=hr).get_json()['data']] == ['Hr Rep']
    assert client.post(f'/admin/employees/{sales_emp.id}/deactivate', headers=hr).status_code == 403
    assert client.post('/admin/employees', json={'name': 'X', 'department': 'sales'}, headers=hr).status_code == 403
    everyone = client.get('/admin/employees', headers=admin_headers('management')).get_json()['data']
    assert [e['name'] for e in everyone] == ['Hr Rep', 'Sales Rep']
    assert client.post('/admin/employees', json={'department': 'hr'}, headers=hr).status_code == 400
    assert client.post('/admin/employees/424242/activate', headers=hr).status_code == 404
