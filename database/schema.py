"""
Database schema definitions.
Table creation, indexes, and structure management.
"""


def drop_tables(db):
    """Drop all existing tables."""
    # Disable foreign key constraints before dropping
    db.execute('PRAGMA foreign_keys = OFF')

    tables = [
        'custody_calendar_tasks',
        'booking_status_history',
        'camera_bookings',
        'camera_units',
        'users'
    ]

    for table in tables:
        db.execute(f'DROP TABLE IF EXISTS {table}')

    # Re-enable foreign key constraints
    db.execute('PRAGMA foreign_keys = ON')


def create_tables(db):
    """Create all database tables."""

    # 1. Users (agents and administrators)
    db.execute('''
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT UNIQUE NOT NULL,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            first_name TEXT,
            last_name TEXT,
            phone TEXT,
            role TEXT NOT NULL DEFAULT 'agent'
                CHECK (role IN ('agent', 'admin')),
            active INTEGER DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            last_login TIMESTAMP
        )
    ''')

    # 2. Camera units
    db.execute('''
        CREATE TABLE camera_units (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'available'
                CHECK (status IN ('available', 'in_use', 'maintenance')),
            current_booking_id INTEGER REFERENCES camera_bookings(id),
            maintenance_notes TEXT,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            CHECK ((status = 'in_use') = (current_booking_id IS NOT NULL))
        )
    ''')

    # 3. Bookings
    db.execute('''
        CREATE TABLE camera_bookings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            camera_unit INTEGER NOT NULL REFERENCES camera_units(id),
            agent_id INTEGER NOT NULL REFERENCES users(id),
            property_address TEXT NOT NULL DEFAULT 'Sin dirección',
            mandate_id TEXT,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'approved', 'rejected',
                                  'completed', 'cancelled', 'waitlisted')),
            is_urgent INTEGER NOT NULL DEFAULT 0,
            notes TEXT,
            waitlist_for_booking_id INTEGER REFERENCES camera_bookings(id),

            -- Custody
            pickup_confirmed_at TEXT,
            pickup_condition TEXT,
            return_confirmed_at TEXT,
            return_condition TEXT,

            -- Administration
            approver_id INTEGER REFERENCES users(id),
            admin_notes TEXT,
            handoff_agent_id INTEGER REFERENCES users(id),
            handoff_location TEXT,

            -- Audit
            cancelled_at TEXT,
            is_late_cancellation INTEGER NOT NULL DEFAULT 0,
            calendar_task_id_agent INTEGER,
            calendar_task_id_admin INTEGER,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,

            CHECK (end_date >= start_date),
            CHECK ((status = 'waitlisted') = (waitlist_for_booking_id IS NOT NULL))
        )
    ''')

    # 4. Status history (audit trail)
    db.execute('''
        CREATE TABLE booking_status_history (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            booking_id INTEGER NOT NULL REFERENCES camera_bookings(id),
            from_status TEXT,
            to_status TEXT NOT NULL,
            action TEXT NOT NULL,
            changed_by INTEGER REFERENCES users(id),
            notes TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 5. Calendar tasks mirrored to the external calendar
    db.execute('''
        CREATE TABLE custody_calendar_tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            owner_id INTEGER NOT NULL REFERENCES users(id),
            booking_id INTEGER NOT NULL,
            title TEXT NOT NULL,
            description TEXT,
            location TEXT,
            starts_at TEXT NOT NULL,
            ends_at TEXT NOT NULL,
            completed INTEGER NOT NULL DEFAULT 0,
            external_event_id TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')


def create_indexes(db):
    """Create database indexes for performance and booking guards."""

    # Bookings
    db.execute('CREATE INDEX idx_bookings_unit_dates ON camera_bookings(camera_unit, start_date, end_date)')
    db.execute('CREATE INDEX idx_bookings_agent ON camera_bookings(agent_id)')
    db.execute('CREATE INDEX idx_bookings_status ON camera_bookings(status)')

    # At most one waiter per contested booking
    db.execute('''
        CREATE UNIQUE INDEX uq_bookings_one_waiter
        ON camera_bookings(waitlist_for_booking_id)
        WHERE status = 'waitlisted'
    ''')

    # At most one active custody per unit
    db.execute('''
        CREATE UNIQUE INDEX uq_bookings_active_custody
        ON camera_bookings(camera_unit)
        WHERE pickup_confirmed_at IS NOT NULL AND return_confirmed_at IS NULL
    ''')

    # A booking holds at most one unit
    db.execute('''
        CREATE UNIQUE INDEX uq_units_current_booking
        ON camera_units(current_booking_id)
        WHERE current_booking_id IS NOT NULL
    ''')

    # History
    db.execute('CREATE INDEX idx_history_booking ON booking_status_history(booking_id, created_at)')

    # Calendar tasks
    db.execute('CREATE INDEX idx_calendar_tasks_booking ON custody_calendar_tasks(booking_id)')
