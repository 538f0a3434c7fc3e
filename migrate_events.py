"""
Create the event and recurrence_exception tables if they do not exist, and
backfill recurrence columns on databases created before recurring events.
Usage:  python migrate_events.py
"""
from models import db, Event, RecurrenceException

EVENT_COLUMNS = [
    ("all_day", "BOOLEAN DEFAULT 0", "0"),
    ("location", "VARCHAR(200)", None),
    ("notes", "TEXT", None),
    ("color", "VARCHAR(20) DEFAULT 'blue'", "'blue'"),
    ("is_recurring", "BOOLEAN DEFAULT 0", "0"),
    ("recurring_pattern", "VARCHAR(20) DEFAULT 'none'", "'none'"),
    ("custom_recurring", "TEXT", None),
]


def ensure_event_schema(engine):
    """Idempotently bring the event tables up to date. Returns the columns that were added."""
    Event.__table__.create(engine, checkfirst=True)
    RecurrenceException.__table__.create(engine, checkfirst=True)
    added = []
    with engine.begin() as conn:
        cols = {row[1] for row in conn.execute(db.text("PRAGMA table_info(event)"))}
        for column, col_type, default_sql in EVENT_COLUMNS:
            if column in cols:
                continue
            conn.execute(db.text(f"ALTER TABLE event ADD COLUMN {column} {col_type}"))
            if default_sql is not None:
                conn.execute(db.text(f"UPDATE event SET {column} = {default_sql} WHERE {column} IS NULL"))
            print(f"Added event.{column} column")
            added.append(column)
    print("event tables are ensured.")
    return added


def main():
    from app import app

    with app.app_context():
        ensure_event_schema(db.engine)


if __name__ == '__main__':
    main()
