"""
Storefront Admin - Web Application

A Flask JSON back office for one store: order tabs, payment verification
and order edits. Each logged-in session owns one ReconciliationEngine.
"""
from flask import Flask, request, session, jsonify
from functools import wraps
import os
import uuid
import logging
import threading
import time
from datetime import datetime, timedelta

from dotenv import load_dotenv

# Settings read the environment at import time
load_dotenv()

from adapters.store_api.client import RestStoreGateway
from config.settings import settings
from orchestrator.reconciliation import ReconciliationEngine
from services.order_store import ALL_VIEW, StatusCount
from services.report import store_stats
from services.transaction_store import NOT_VERIFIED_VIEW

app = Flask(__name__)

app.secret_key = settings.FLASK_SECRET_KEY
app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(hours=12)
app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
app.config['SESSION_COOKIE_SECURE'] = True if os.environ.get('RENDER') else False
# Set to a StoreGateway instance to bypass the REST backend (demos, tests)
app.config['STORE_GATEWAY'] = None

# Setup logging - logs to console (visible in Render)
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

# Also log to file if running locally
if not os.environ.get('RENDER'):
    file_handler = logging.FileHandler('store_admin.log')
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
    logger.addHandler(file_handler)

# engine_id -> (engine, last used on the monotonic clock); in memory only
engines = {}
engines_lock = threading.Lock()


def _build_gateway(access_token: str):
    gateway = app.config.get('STORE_GATEWAY')
    if gateway is not None:
        return gateway
    return RestStoreGateway(access_token=access_token)


def _create_engine(store_id: str, access_token: str) -> ReconciliationEngine:
    return ReconciliationEngine(store_id, _build_gateway(access_token))


def _evict_idle_engines(now: float) -> None:
    """Drop engines idle for longer than a session may live. Caller holds engines_lock."""
    max_idle = app.config['PERMANENT_SESSION_LIFETIME'].total_seconds()
    idle = [engine_id for engine_id, (_, last_used) in engines.items() if now - last_used > max_idle]
    for engine_id in idle:
        del engines[engine_id]
    if idle:
        logger.info(f"Evicted {len(idle)} idle engine(s)")


def _remember_engine(engine_id: str, engine: ReconciliationEngine) -> None:
    now = time.monotonic()
    with engines_lock:
        _evict_idle_engines(now)
        engines[engine_id] = (engine, now)


def _lookup_engine(engine_id):
    now = time.monotonic()
    with engines_lock:
        _evict_idle_engines(now)
        entry = engines.get(engine_id)
        if entry is None:
            return None
        engines[engine_id] = (entry[0], now)
        return entry[0]


def current_engine() -> ReconciliationEngine:
    """Engine of the logged-in session; rebuilt and loaded after a restart or eviction."""
    engine_id = session.get('engine_id')
    engine = _lookup_engine(engine_id)
    if engine is None:
        engine = _create_engine(session['store_id'], session['access_token'])
        engine.load()
        engine_id = engine_id or str(uuid.uuid4())
        _remember_engine(engine_id, engine)
        session['engine_id'] = engine_id
    return engine


def login_required(f):
    """Decorator to require login for certain routes"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'store_id' not in session or 'access_token' not in session:
            return jsonify({'error': 'Please login with your store id and access token first.'}), 401
        return f(*args, **kwargs)
    return decorated_function


def _form_value(name: str) -> str:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    value = data.get(name, request.form.get(name, ''))
    return str(value or '').strip()


def _counts_payload(counts: StatusCount) -> dict:
    payload = counts.to_dict()
    payload['badges'] = {k: StatusCount.badge(v) for k, v in counts.to_dict().items() if k != 'all'}
    return payload


def _respond(engine: ReconciliationEngine, status: int = 200, **data):
    """JSON body with the engine's pending notifications and fresh counts."""
    body = dict(data)
    body['counts'] = _counts_payload(engine.counts)
    body['notifications'] = [
        {'level': n.level, 'message': n.message} for n in engine.drain_notifications()
    ]
    return jsonify(body), status


def _staged_payload(engine: ReconciliationEngine):
    staged = engine.staged
    if staged is None:
        return None
    return {
        'orderId': staged.order_id,
        'transactionId': staged.transaction.id,
        'decision': staged.decision.value,
        'stagedAt': staged.staged_at.isoformat(),
    }


@app.route('/login', methods=['POST'])
def login():
    """Log in with a store id and bearer token; the first load checks both."""
    store_id = _form_value('store_id')
    access_token = _form_value('access_token')

    if not store_id or not access_token:
        return jsonify({'error': 'Please provide both Store ID and Access Token.'}), 400

    engine = _create_engine(store_id, access_token)
    if not engine.load():
        logger.warning(f"Login failed for store {store_id}")
        return _respond(engine, 401, error='Could not load store data with these credentials.')

    engine_id = str(uuid.uuid4())
    _remember_engine(engine_id, engine)

    session['store_id'] = store_id
    session['access_token'] = access_token
    session['engine_id'] = engine_id
    session['login_time'] = datetime.now().isoformat()
    session.permanent = True

    logger.info(f"Store {store_id} logged in")
    return _respond(engine, storeId=store_id)


@app.route('/logout', methods=['POST'])
def logout():
    """Logout and clear session"""
    with engines_lock:
        engines.pop(session.get('engine_id'), None)
    session.clear()
    return jsonify({'message': 'You have been logged out successfully.'})


@app.route('/refresh', methods=['POST'])
@login_required
def refresh():
    engine = current_engine()
    ok = engine.load()
    return _respond(engine, 200 if ok else 502)


@app.route('/orders', methods=['GET'])
@login_required
def list_orders():
    """Order tab: waiting-payment, waiting-delivery, in-delivery or all"""
    engine = current_engine()
    tab = request.args.get('tab', ALL_VIEW)
    rows = [
        {
            'order': row.order.to_dict(),
            'total': row.order.total,
            'statusLabel': row.order.status.label,
            'transaction': row.transaction.to_dict() if row.transaction else None,
        }
        for row in engine.order_rows(tab)
    ]
    return _respond(engine, tab=tab, orders=rows)


@app.route('/orders/<order_id>', methods=['GET'])
@login_required
def get_order(order_id):
    engine = current_engine()
    order = engine.orders.get(order_id)
    if order is None:
        return jsonify({'error': 'Order not found'}), 404
    transaction = engine.transactions.get_by_order_id(order_id)
    return _respond(
        engine,
        order=order.to_dict(),
        total=order.total,
        transaction=transaction.to_dict() if transaction else None,
    )


@app.route('/orders/<order_id>', methods=['PATCH', 'POST'])
@login_required
def update_order(order_id):
    """Edit status, customer name or customer address"""
    engine = current_engine()
    patch = request.get_json(silent=True)
    if patch is None:
        patch = request.form.to_dict()
    note = engine.update_order(order_id, patch)
    order = engine.orders.get(order_id)
    return _respond(
        engine,
        200 if note.ok else 400,
        order=order.to_dict() if order else None,
    )


@app.route('/transfers', methods=['GET'])
@login_required
def list_transfers():
    """Transfer tab: not-verified or all"""
    engine = current_engine()
    tab = request.args.get('tab', NOT_VERIFIED_VIEW)
    rows = [
        {
            'transaction': row.transaction.to_dict(),
            'order': row.order.to_dict() if row.order else None,
            'customerName': row.customer_name,
            'referenceMissing': row.reference_missing,
        }
        for row in engine.transfer_rows(tab)
    ]
    return _respond(engine, tab=tab, transfers=rows, staged=_staged_payload(engine))


@app.route('/transfers/<order_id>/decision', methods=['POST'])
@login_required
def stage_decision(order_id):
    """Stage accept/reject for the payment of an order; nothing is sent yet"""
    engine = current_engine()
    transaction = engine.transactions.get_by_order_id(order_id)
    if transaction is None:
        return jsonify({'error': 'Transaction not found'}), 404
    note = engine.request_transaction_decision(transaction, _form_value('decision'))
    return _respond(engine, 200 if note.ok else 400, staged=_staged_payload(engine))


@app.route('/transfers/confirm', methods=['POST'])
@login_required
def confirm_decision():
    engine = current_engine()
    note = engine.commit_transaction_decision()
    return _respond(engine, 200 if note.ok else 400, staged=None)


@app.route('/transfers/cancel', methods=['POST'])
@login_required
def cancel_decision():
    engine = current_engine()
    engine.cancel_transaction_decision()
    return _respond(engine, staged=None)


@app.route('/stats', methods=['GET'])
@login_required
def stats():
    """Sales figures over finished orders"""
    engine = current_engine()
    return _respond(
        engine,
        stats=store_stats(engine.orders.orders(), engine.transactions.transactions()),
    )


if __name__ == '__main__':
    logger.info("=" * 60)
    logger.info("Storefront Admin - Web Application")
    logger.info("=" * 60)
    logger.info(f"Backend: {settings.STORE_API_URL}")
    logger.info("Logs being written to: store_admin.log")
    app.run(debug=settings.DEBUG, host='0.0.0.0', port=int(os.environ.get('PORT', 5000)))
