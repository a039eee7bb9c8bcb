import os, sys, pytest
# Ensure the backend directory is on path so 'feedbackdesk' and 'tests' can be imported
BACKEND = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if BACKEND not in sys.path:
    sys.path.insert(0, BACKEND)
from feedbackdesk import create_app, get_db, INTEGRATIONS_KEY
from feedbackdesk.models.authz import Base
from feedbackdesk.models.audit import AdminActionLog
from feedbackdesk.models.department_settings import DepartmentSettings
from feedbackdesk.models.employee import Employee
from feedbackdesk.models.task_status import TaskStatus, TaskSubstatus
from feedbackdesk.models.ticket import Ticket
from tests.fakes import FakeHttp

# Deleted in this order between tests; users, roles and permissions are kept (seed helpers are idempotent)
PER_TEST_TABLES = (Ticket, TaskSubstatus, TaskStatus, Employee, DepartmentSettings, AdminActionLog)


@pytest.fixture(scope='session')
def fake_http():
    return FakeHttp()


@pytest.fixture(scope='session', autouse=True)
def app_instance(fake_http):
    os.environ['DATABASE_URL'] = 'sqlite+pysqlite:///:memory:'
    app = create_app({
        'TESTING': True,
        'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
        'OVERSIGHT_DEPARTMENT': 'management',
    }, http_session=fake_http)
    # After app and blueprints are registered, ensure all tables exist
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app


@pytest.fixture(autouse=True)
def clean_state(app_instance, fake_http):
    fake_http.reset()
    app_instance.extensions[INTEGRATIONS_KEY].tokens.clear()
    session = get_db()
    session.rollback()
    for model in PER_TEST_TABLES:
        session.query(model).delete()
    session.commit()
    session.expunge_all()
    yield


@pytest.fixture()
def app_context(app_instance):
    with app_instance.app_context():
        yield app_instance


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()
