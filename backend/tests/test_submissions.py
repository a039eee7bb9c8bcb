from feedbackdesk import get_db
from feedbackdesk.models.ticket import Ticket
from feedbackdesk.integrations.telegram import URGENT_MARK
from tests.test_utils_seed import configure_department, sheet_id, chat_id, bot_token
from tests.test_lifecycle_helpers import submit_feedback, outcome_statuses


def test_options_lists_catalogues(client):
    body = client.get('/feedback/options').get_json()
    assert [r['code'] for r in body['roles']] == ['employee', 'client', 'contractor', 'resident']
    assert {t['code'] for t in body['types']} == {'remark', 'suggestion', 'safety', 'gratitude'}
    assert 'management' in [d['code'] for d in body['departments']]
    assert {'code': 'TKY', 'name': 'Tokyo residential complex'} in body['objects']
    assert [u['code'] for u in body['urgencies']] == ['normal', 'urgent']


def test_urgent_hr_remark_is_stored_notified_and_mirrored_twice(client, fake_http):
    configure_department('hr')
    configure_department('management')
    body = submit_feedback(client, type='remark', department='hr', urgency='urgent')
    ticket = body['ticket']
    assert ticket['status'] == 'new'
    assert ticket['urgency'] == 'urgent'
    assert ticket['urgency_level'] is None
    assert get_db().query(Ticket).count() == 1

    assert sorted(m['chat_id'] for m in fake_http.messages) == sorted([chat_id('hr'), chat_id('management')])
    assert {m['token'] for m in fake_http.messages} == {bot_token('hr'), bot_token('management')}
    assert all(URGENT_MARK in m['text'] for m in fake_http.messages)

    for dept in ('hr', 'management'):
        rows = fake_http.sheet(sheet_id(dept))
        assert len(rows) == 1
        row = rows[0]
        assert len(row) == 16
        assert row[0] == ticket['id']
        assert row[3] == 'Remark'
        assert row[8] == 'HR'
        assert row[9] == 'New'
        assert row[14] == ''

    assert body['integrations']['summary'] == 'synced'
    assert outcome_statuses(body['integrations'], 'sheets') == {'hr': 'ok', 'management': 'ok'}
    assert outcome_statuses(body['integrations'], 'chat') == {'hr': 'ok', 'management': 'ok'}
    # one service account, one scope: a single token exchange serves both sheets
    assert fake_http.token_requests == 1


def test_second_submission_appends_below_first(client, fake_http):
    configure_department('sales', chat=False)
    configure_department('management', chat=False)
    first = submit_feedback(client, department='sales')['ticket']
    second = submit_feedback(client, department='sales', type='gratitude')['ticket']
    rows = fake_http.sheet(sheet_id('sales'))
    assert [r[0] for r in rows] == [first['id'], second['id']]
    assert rows[1][3] == 'Gratitude'


def test_oversight_ticket_is_mirrored_once(client, fake_http):
    configure_department('management')
    body = submit_feedback(client, department='management')
    assert outcome_statuses(body['integrations'], 'sheets') == {'management': 'ok'}
    assert len(fake_http.messages) == 1


def test_anonymous_submission_drops_name(client, fake_http):
    configure_department('hr')
    body = submit_feedback(client, is_anonymous=True, name='Should Vanish')
    ticket = body['ticket']
    assert ticket['is_anonymous'] is True
    assert ticket['name'] is None
    assert get_db().query(Ticket).filter_by(id=ticket['id']).one().name is None
    assert fake_http.sheet(sheet_id('hr'))[0][4] == 'Anonymous'
    assert 'From: Anonymous' in fake_http.messages[0]['text']


def test_unconfigured_departments_store_only(client, fake_http):
    body = submit_feedback(client, department='reception')
    assert body['integrations']['summary'] == 'store_only'
    assert outcome_statuses(body['integrations'], 'sheets') == {'reception': 'disabled', 'management': 'disabled'}
    assert fake_http.calls == []
    assert get_db().query(Ticket).count() == 1


def test_failing_destination_gives_partial_sync(client, fake_http):
    configure_department('hr')
    configure_department('management')
    fake_http.failing_bots.add(bot_token('management'))
    fake_http.failing_sheets.add(sheet_id('hr'))
    body = submit_feedback(client)
    assert body['integrations']['summary'] == 'partial'
    assert outcome_statuses(body['integrations'], 'chat') == {'hr': 'ok', 'management': 'failed'}
    assert outcome_statuses(body['integrations'], 'sheets') == {'hr': 'failed', 'management': 'ok'}
    assert get_db().query(Ticket).count() == 1


def test_everything_failing_still_stores_ticket(client, fake_http):
    configure_department('hr', chat=False)
    configure_department('management', chat=False)
    fake_http.failing_sheets.update({sheet_id('hr'), sheet_id('management')})
    body = submit_feedback(client)
    assert body['integrations']['summary'] == 'store_only'
    assert get_db().query(Ticket).count() == 1


def test_invalid_submission_is_rejected_before_any_call(client, fake_http):
    configure_department('hr')
    for bad in ({'type': 'complaint'}, {'department': 'finance'}, {'user_role': 'guest'},
                {'message': '   '}, {'urgency': 'asap'}, {'object_code': 'NOPE'}, {'message': 'x' * 5001}):
        resp = client.post('/feedback', json={
            'user_role': 'employee', 'type': 'remark', 'department': 'hr', 'message': 'ok', **bad,
        })
        assert resp.status_code == 400, bad
        assert resp.get_json()['error']['status'] == 400
    assert fake_http.calls == []
    assert get_db().query(Ticket).count() == 0
