"""
Flask CLI commands for database setup.

Commands:
- flask init-db: Create all tables
- flask seed-demo: Insert a demo user, product, inventory row and empty sale
"""

import click
from decimal import Decimal
from backoffice.database import Base, get_engine, new_session
from backoffice.models import User, Product, Inventory, Sale


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create database tables that do not exist yet."""
        Base.metadata.create_all(get_engine())
        click.echo(click.style('✅ Tables created', fg='green'))

    @app.cli.command('seed-demo')
    @click.option('--stock', default=10, show_default=True, help='Initial stock of the demo product')
    def seed_demo(stock):
        """Insert demo records to try the sale-item workflow."""
        session = new_session()
        try:
            user = User(first_name='Demo', last_name='Seller', email='demo.seller@example.com', role='seller')
            user.set_password('demo1234')
            product = Product(
                product_name='Demo Product',
                description='Product created by seed-demo',
                unit_price=Decimal('5.00'),
                product_type='general',
                status='available'
            )
            session.add_all([user, product])
            session.flush()

            session.add(Inventory(product_id=product.product_id, quantity_in_stock=stock))
            sale = Sale(user_id=user.user_id)
            session.add(sale)
            session.commit()

            click.echo(click.style('\n✅ Demo data created', fg='green', bold=True))
            click.echo(f'   User ID: {user.user_id}')
            click.echo(f'   Product ID: {product.product_id} (stock {stock})')
            click.echo(f'   Sale ID: {sale.sale_id}')
        except Exception as e:
            session.rollback()
            click.echo(click.style(f'❌ Error creating demo data: {str(e)}', fg='red'))
            raise SystemExit(1)
        finally:
            session.close()
