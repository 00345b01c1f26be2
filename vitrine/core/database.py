from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import inspect, text

# Shared ORM handle; bound to the app by Vitrine.init_app
db = SQLAlchemy()


class Database:

    @staticmethod
    def ping():
        """Run a trivial query. Raises on connection failure."""
        with db.engine.connect() as conn:
            return conn.execute(text('SELECT 1')).scalar()

    @staticmethod
    def table_exists(table_name):
        return inspect(db.engine).has_table(table_name)

    @staticmethod
    def column_names(table_name):
        """Column names of an existing table (empty list if the table is missing)"""
        if not Database.table_exists(table_name):
            return []
        return [col['name'] for col in inspect(db.engine).get_columns(table_name)]

    @staticmethod
    def add_column(table_name, column_name, column_type):
        """Add a column to an existing table"""
        with db.engine.begin() as conn:
            conn.execute(text(f'ALTER TABLE {table_name} ADD COLUMN {column_name} {column_type}'))

    @staticmethod
    def describe_url():
        """Database URL with the password masked, for diagnostics"""
        return db.engine.url.render_as_string(hide_password=True)
