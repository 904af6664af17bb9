"""
Tests for the Flask back office
"""
import time

import pytest

import web_app


@pytest.fixture
def client(gateway):
    web_app.app.config['TESTING'] = True
    web_app.app.config['STORE_GATEWAY'] = gateway
    with web_app.engines_lock:
        web_app.engines.clear()
    with web_app.app.test_client() as client:
        yield client
    web_app.app.config['STORE_GATEWAY'] = None


@pytest.fixture
def logged_in(client, store_id):
    resp = client.post('/login', json={'store_id': store_id, 'access_token': 'tok'})
    assert resp.status_code == 200
    return client


class TestWebApp:
    """JSON routes over the reconciliation engine"""

    def test_login_required(self, client):
        assert client.get('/orders').status_code == 401

    def test_login_requires_both_fields(self, client):
        assert client.post('/login', json={'store_id': 'store-1'}).status_code == 400

    def test_orders_tab(self, logged_in):
        body = logged_in.get('/orders?tab=waiting-payment').get_json()
        assert [r['order']['id'] for r in body['orders']] == ['o-1', 'o-2']
        assert body['orders'][0]['transaction']['id'] == 't-1'
        assert body['counts']['waitingPayment'] == 2
        assert body['counts']['badges']['waitingPayment'] == '2'

    def test_get_order(self, logged_in):
        assert logged_in.get('/orders/o-3').get_json()['order']['status'] == 'WAITING_DELIVERY'
        assert logged_in.get('/orders/nope').status_code == 404

    def test_update_order(self, logged_in):
        resp = logged_in.patch('/orders/o-2', json={'status': 'IN_DELIVERY'})
        body = resp.get_json()
        assert resp.status_code == 200
        assert body['order']['status'] == 'IN_DELIVERY'
        assert body['notifications'] == [{'level': 'success', 'message': 'Order updated successfully'}]
        assert body['counts']['inDelivery'] == 1

    def test_update_order_invalid(self, logged_in):
        resp = logged_in.patch('/orders/o-2', json={'customerAdds': ''})
        assert resp.status_code == 400
        assert resp.get_json()['notifications'][0]['level'] == 'error'

    def test_stage_confirm_payment(self, logged_in):
        transfers = logged_in.get('/transfers').get_json()['transfers']
        assert [t['transaction']['id'] for t in transfers] == ['t-1']

        staged = logged_in.post('/transfers/o-1/decision', json={'decision': 'accept'}).get_json()
        assert staged['staged']['decision'] == 'accept'

        resp = logged_in.post('/transfers/confirm')
        body = resp.get_json()
        assert resp.status_code == 200
        assert body['notifications'][-1]['message'] == 'Payment verified successfully'
        assert body['counts']['waitingDelivery'] == 2
        assert logged_in.get('/transfers').get_json()['transfers'] == []

    def test_cancel_stage(self, logged_in):
        logged_in.post('/transfers/o-1/decision', json={'decision': 'reject'})
        logged_in.post('/transfers/cancel')
        resp = logged_in.post('/transfers/confirm')
        assert resp.status_code == 400

    def test_stage_unknown_transaction(self, logged_in):
        assert logged_in.post('/transfers/o-2/decision', json={'decision': 'accept'}).status_code == 404

    def test_stats(self, logged_in):
        stats = logged_in.get('/stats').get_json()['stats']
        assert stats['totalOrders'] == 0
        assert stats['productStats'] == []

    def test_logout(self, logged_in):
        logged_in.post('/logout')
        assert logged_in.get('/orders').status_code == 401

    def test_logout_drops_engine(self, logged_in):
        assert len(web_app.engines) == 1
        logged_in.post('/logout')
        assert web_app.engines == {}


class TestEngineRegistry:
    """Engines of abandoned sessions do not pile up"""

    @staticmethod
    def _age(engine_id, seconds):
        engine, last_used = web_app.engines[engine_id]
        web_app.engines[engine_id] = (engine, last_used - seconds)

    def test_idle_engine_evicted_on_next_login(self, client, gateway, store_id):
        lifetime = web_app.app.config['PERMANENT_SESSION_LIFETIME'].total_seconds()
        stale = web_app.ReconciliationEngine(store_id, gateway)
        web_app.engines['abandoned'] = (stale, time.monotonic() - lifetime - 1)

        client.post('/login', json={'store_id': store_id, 'access_token': 'tok'})

        assert 'abandoned' not in web_app.engines
        assert len(web_app.engines) == 1

    def test_recent_engine_kept(self, logged_in, gateway, store_id):
        other = web_app.ReconciliationEngine(store_id, gateway)
        web_app.engines['other-tab'] = (other, time.monotonic() - 60)
        assert logged_in.get('/orders').status_code == 200
        assert 'other-tab' in web_app.engines

    def test_use_refreshes_last_used(self, logged_in):
        (engine_id,) = web_app.engines
        self._age(engine_id, 3600)
        before = web_app.engines[engine_id][1]
        logged_in.get('/orders')
        assert web_app.engines[engine_id][1] > before

    def test_evicted_session_engine_is_rebuilt(self, logged_in):
        (engine_id,) = web_app.engines
        old_engine = web_app.engines[engine_id][0]
        self._age(engine_id, web_app.app.config['PERMANENT_SESSION_LIFETIME'].total_seconds() + 1)

        resp = logged_in.get('/orders?tab=waiting-payment')

        assert resp.status_code == 200
        assert [r['order']['id'] for r in resp.get_json()['orders']] == ['o-1', 'o-2']
        assert web_app.engines[engine_id][0] is not old_engine
