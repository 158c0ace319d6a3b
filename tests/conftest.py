import pytest
import os
import tempfile
import uuid
from decimal import Decimal

# Use a throwaway SQLite file unless a database is provided (e.g. by Docker)
if 'DATABASE_URL' not in os.environ:
    _db_dir = tempfile.mkdtemp(prefix='backoffice-tests-')
    os.environ['DATABASE_URL'] = f"sqlite:///{os.path.join(_db_dir, 'test.sqlite3')}"
os.environ.setdefault('LOCK_TIMEOUT_SECONDS', '30')

from backoffice import create_app
from backoffice.database import Base, get_engine, new_session
from backoffice.models import User, Product, Inventory, Sale


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.Config')
    app.config['TESTING'] = True
    Base.metadata.create_all(get_engine())
    return app


@pytest.fixture(autouse=True)
def clean_tables(app):
    """Empty every table after each test."""
    yield
    with get_engine().begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Create database session for testing."""
    session = new_session()
    yield session
    session.rollback()
    session.close()


def persist(session, obj):
    """Commit obj and detach it so later rollbacks never reload it."""
    session.add(obj)
    session.commit()
    session.expunge(obj)
    return obj


def fetch(model, pk):
    """Load a row through a short-lived session so no transaction stays open."""
    s = new_session()
    try:
        return s.get(model, pk)
    finally:
        s.close()


@pytest.fixture(scope='function')
def user(session):
    """Create test user owning the sales."""
    suffix = str(uuid.uuid4())[:8]
    user = User(
        first_name='Ana',
        last_name='Seller',
        email=f'seller-{suffix}@test.com',
        role='seller'
    )
    user.set_password('password123')
    return persist(session, user)


@pytest.fixture(scope='function')
def product(session):
    """Create test product."""
    product = Product(
        product_name='Coffee Beans',
        description='1kg bag',
        unit_price=Decimal('5.00'),
        product_type='grocery',
        status='available'
    )
    return persist(session, product)


@pytest.fixture(scope='function')
def inventory(session, product):
    """Stock of 10 units for the test product."""
    inventory = Inventory(product_id=product.product_id, quantity_in_stock=10)
    return persist(session, inventory)


@pytest.fixture(scope='function')
def sale(session, user):
    """Empty sale with zero totals and no discount."""
    sale = Sale(
        user_id=user.user_id,
        subtotal=Decimal('0.00'),
        discount_percentage=Decimal('0.00'),
        discount_amount=Decimal('0.00'),
        total_amount=Decimal('0.00')
    )
    return persist(session, sale)


@pytest.fixture(scope='function')
def make_stocked_product(session):
    """Factory for extra products with an inventory row."""
    def _make(stock, price='5.00', name='Extra Product'):
        product = Product(
            product_name=name,
            description='test product',
            unit_price=Decimal(price),
            product_type='general',
            status='available'
        )
        session.add(product)
        session.flush()
        session.add(Inventory(product_id=product.product_id, quantity_in_stock=stock))
        session.commit()
        session.expunge_all()
        return product
    return _make


@pytest.fixture(scope='function')
def fetch_row(app):
    """Read a row without leaving a transaction open on the database."""
    return fetch
