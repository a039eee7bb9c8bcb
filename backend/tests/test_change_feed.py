from feedbackdesk import get_change_feed
from feedbackdesk.services.events import (
    ChangeFeed, TicketListReducer, TABLE_STATUSES, TABLE_TICKETS, KIND_DELETE, KIND_INSERT, KIND_RESET, KIND_UPDATE,
)
from feedbackdesk.services.tickets import redirect_ticket, set_urgency_level
from tests.test_utils_seed import make_ticket
from tests.test_lifecycle_helpers import admin_headers


def test_feed_numbers_events_and_filters_by_department():
    feed = ChangeFeed(maxlen=10)
    feed.publish(TABLE_TICKETS, KIND_INSERT, 'a', 'hr', {'id': 'a'})
    feed.publish(TABLE_TICKETS, KIND_INSERT, 'b', 'sales', {'id': 'b'})
    feed.publish(TABLE_STATUSES, KIND_UPDATE, '3', None)
    assert feed.last_seq == 3
    assert [e.seq for e in feed.since(0)] == [1, 2, 3]
    assert [e.entity_id for e in feed.since(0, 'hr')] == ['a', '3']
    assert feed.since(3) == []


def test_gap_detected_after_eviction():
    feed = ChangeFeed(maxlen=2)
    for i in range(4):
        feed.publish(TABLE_TICKETS, KIND_DELETE, str(i), 'hr')
    assert [e.seq for e in feed.since(0)] == [3, 4]
    assert feed.has_gap(0) is True
    assert feed.has_gap(1) is True
    assert feed.has_gap(2) is False
    assert ChangeFeed().has_gap(0) is False


def test_subscribers_receive_events_and_can_leave():
    feed = ChangeFeed()
    seen = []
    unsubscribe = feed.subscribe(seen.append)
    feed.publish(TABLE_TICKETS, KIND_RESET)

    def broken(event):
        raise RuntimeError('listener bug')
    feed.subscribe(broken)
    feed.publish(TABLE_TICKETS, KIND_RESET)
    unsubscribe()
    feed.publish(TABLE_TICKETS, KIND_RESET)
    assert [e.seq for e in seen] == [1, 2]


def test_reducer_applies_deltas_or_asks_for_refetch():
    feed = ChangeFeed()
    reducer = TicketListReducer()
    state = [{'id': 'b', 'status': 'new'}, {'id': 'a', 'status': 'new'}]

    inserted = reducer.apply(state, feed.publish(TABLE_TICKETS, KIND_INSERT, 'c', 'hr', {'id': 'c', 'status': 'new'}))
    assert [t['id'] for t in inserted] == ['c', 'b', 'a']

    updated = reducer.apply(inserted, feed.publish(TABLE_TICKETS, KIND_UPDATE, 'a', 'hr', {'id': 'a', 'status': 'resolved'}))
    assert updated[-1] == {'id': 'a', 'status': 'resolved'}
    assert state[1]['status'] == 'new'

    deleted = reducer.apply(updated, feed.publish(TABLE_TICKETS, KIND_DELETE, 'b', 'hr'))
    assert [t['id'] for t in deleted] == ['c', 'a']

    # a ticket redirected into this view was never part of the list
    assert reducer.apply(deleted, feed.publish(TABLE_TICKETS, KIND_UPDATE, 'zz', 'hr', {'id': 'zz'})) is None
    assert reducer.apply(deleted, feed.publish(TABLE_TICKETS, KIND_RESET)) is None
    assert reducer.apply(deleted, feed.publish(TABLE_STATUSES, KIND_INSERT, '1')) is None
    assert reducer.needs_refetch(feed.since(4)) is True
    assert reducer.needs_refetch(feed.since(0)[:3]) is False


def test_store_writes_publish_full_rows(app_context):
    feed = get_change_feed()
    before = feed.last_seq
    t = make_ticket('hr')
    set_urgency_level(t, 2)
    events = feed.since(before)
    assert [(e.kind, e.entity_id, e.department) for e in events] == [(KIND_INSERT, t.id, 'hr'), (KIND_UPDATE, t.id, 'hr')]
    assert events[1].payload['urgency_level'] == 2


def test_events_endpoint_is_scoped_and_flags_gaps(app_context):
    feed = get_change_feed()
    before = feed.last_seq
    hr_ticket = make_ticket('hr')
    make_ticket('sales')
    client = app_context.test_client()
    body = client.get(f'/admin/events?since={before}', headers=admin_headers('hr')).get_json()
    assert body['last_seq'] == before + 2
    assert body['refetch'] is False
    assert [e['entity_id'] for e in body['events']] == [hr_ticket.id]
    assert body['events'][0]['payload']['department'] == 'hr'
    everything = client.get(f'/admin/events?since={before}', headers=admin_headers('management')).get_json()
    assert len(everything['events']) == 2
    assert client.get('/admin/events?since=abc', headers=admin_headers('hr')).status_code == 400


def test_redirect_removes_ticket_from_previous_department_feed(app_context):
    feed = get_change_feed()
    t = make_ticket('hr')
    before = feed.last_seq
    redirect_ticket(t, 'sales')
    client = app_context.test_client()

    hr = client.get(f'/admin/events?since={before}', headers=admin_headers('hr')).get_json()
    assert [(e['kind'], e['entity_id']) for e in hr['events']] == [(KIND_DELETE, t.id)]
    sales = client.get(f'/admin/events?since={before}', headers=admin_headers('sales')).get_json()
    assert [(e['kind'], e['entity_id']) for e in sales['events']] == [(KIND_UPDATE, t.id)]

    reducer = TicketListReducer()
    hr_view = [{'id': t.id, 'department': 'hr'}]
    assert reducer.apply(hr_view, feed.since(before, 'hr')[0]) == []
    assert reducer.apply([], feed.since(before, 'sales')[0]) is None
