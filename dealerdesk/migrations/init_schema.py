"""Database schema initialization.

Contains all CREATE TABLE and CREATE INDEX statements for the DealerDesk
database.

Called by database.init_db() at application startup.
"""


def create_schema(conn, cursor):
    """Create all database tables and indexes.

    Args:
        conn: Database connection (for commit/rollback)
        cursor: Database cursor from get_cursor(conn)
    """
    # ============== Accounts & profiles ==============
    # Credentials and profile are split: an account may outlive a failed
    # profile insert on duplicate-key errors (see UserService.create_user).
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS auth_accounts (
            id SERIAL PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            is_active BOOLEAN DEFAULT TRUE,
            last_login TIMESTAMP,
            last_seen TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS profiles (
            id INTEGER PRIMARY KEY REFERENCES auth_accounts(id) ON DELETE CASCADE,
            email TEXT NOT NULL UNIQUE,
            username TEXT NOT NULL UNIQUE,
            role TEXT NOT NULL DEFAULT 'seller'
                CHECK (role IN ('admin', 'seller', 'transporter')),
            status TEXT NOT NULL DEFAULT 'active'
                CHECK (status IN ('active', 'inactive')),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS user_events (
            id SERIAL PRIMARY KEY,
            user_id INTEGER REFERENCES profiles(id) ON DELETE SET NULL,
            user_email TEXT,
            event_type TEXT NOT NULL,
            event_description TEXT,
            entity_type TEXT,
            entity_id INTEGER,
            ip_address TEXT,
            user_agent TEXT,
            details JSONB DEFAULT '{}'::jsonb,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_user_events_created ON user_events(created_at DESC)')

    # ============== Inventory ==============
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS vehicles (
            id SERIAL PRIMARY KEY,
            vin TEXT UNIQUE,
            year INTEGER NOT NULL,
            make TEXT NOT NULL,
            model TEXT NOT NULL,
            trim TEXT,
            exterior_color TEXT,
            odometer INTEGER,
            status TEXT NOT NULL DEFAULT 'Inventory'
                CHECK (status IN ('Inventory', 'Sold', 'ARB', 'Withdrawn', 'Complete')),
            title_status TEXT NOT NULL DEFAULT 'Absent'
                CHECK (title_status IN ('Present', 'Absent', 'In Transit')),
            vehicle_location TEXT,
            bought_price NUMERIC(12,2),
            buy_fee NUMERIC(12,2),
            other_charges NUMERIC(12,2),
            sale_invoice NUMERIC(12,2),
            sale_date DATE,
            sale_invoice_status TEXT CHECK (sale_invoice_status IN ('PAID', 'UNPAID')),
            buyer_dealership TEXT,
            buyer_contact_name TEXT,
            buyer_aa_id TEXT,
            buyer_reference TEXT,
            created_by INTEGER REFERENCES profiles(id) ON DELETE SET NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_vehicles_status ON vehicles(status)')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS vehicle_expenses (
            id SERIAL PRIMARY KEY,
            vehicle_id INTEGER NOT NULL REFERENCES vehicles(id) ON DELETE CASCADE,
            expense_description TEXT NOT NULL,
            expense_date DATE NOT NULL DEFAULT CURRENT_DATE,
            cost NUMERIC(12,2) NOT NULL,
            notes TEXT,
            created_by INTEGER REFERENCES profiles(id) ON DELETE SET NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_vehicle_expenses_vehicle ON vehicle_expenses(vehicle_id)')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS vehicle_notes (
            id SERIAL PRIMARY KEY,
            vehicle_id INTEGER NOT NULL REFERENCES vehicles(id) ON DELETE CASCADE,
            note_text TEXT NOT NULL,
            created_by INTEGER REFERENCES profiles(id) ON DELETE SET NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_vehicle_notes_vehicle ON vehicle_notes(vehicle_id, created_at DESC)')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS vehicle_timeline (
            id SERIAL PRIMARY KEY,
            vehicle_id INTEGER NOT NULL REFERENCES vehicles(id) ON DELETE CASCADE,
            action TEXT NOT NULL,
            note TEXT,
            status TEXT,
            expense_value NUMERIC(12,2),
            user_id INTEGER REFERENCES profiles(id) ON DELETE SET NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_vehicle_timeline_vehicle ON vehicle_timeline(vehicle_id, created_at DESC)')

    # ============== Arbitration ==============
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS arb_records (
            id SERIAL PRIMARY KEY,
            vehicle_id INTEGER NOT NULL REFERENCES vehicles(id) ON DELETE CASCADE,
            arb_type TEXT NOT NULL CHECK (arb_type IN ('Sold ARB', 'Inventory ARB')),
            outcome TEXT NOT NULL DEFAULT 'Pending'
                CHECK (outcome IN ('Pending', 'Denied', 'Price Adjustment', 'Buyer Withdrew', 'Withdrawn')),
            adjustment_amount NUMERIC(12,2),
            transport_type TEXT,
            transport_location TEXT,
            transport_date DATE,
            transport_cost NUMERIC(12,2),
            notes TEXT,
            created_by INTEGER REFERENCES profiles(id) ON DELETE SET NULL,
            processed_by INTEGER REFERENCES profiles(id) ON DELETE SET NULL,
            processed_at TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            CHECK (NOT (arb_type = 'Sold ARB' AND outcome = 'Withdrawn')),
            CHECK (NOT (arb_type = 'Inventory ARB' AND outcome = 'Buyer Withdrew'))
        )
    ''')
    # At most one open case per vehicle
    cursor.execute('''
        CREATE UNIQUE INDEX IF NOT EXISTS uq_arb_records_one_pending
        ON arb_records(vehicle_id) WHERE outcome = 'Pending'
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_arb_records_vehicle ON arb_records(vehicle_id, created_at DESC)')

    # ============== Planning ==============
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS tasks (
            id SERIAL PRIMARY KEY,
            task_name TEXT NOT NULL,
            due_date DATE NOT NULL,
            category TEXT,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'in_progress', 'completed', 'cancelled')),
            notes TEXT,
            vehicle_id INTEGER REFERENCES vehicles(id) ON DELETE SET NULL,
            assigned_to INTEGER REFERENCES profiles(id) ON DELETE SET NULL,
            assigned_by INTEGER REFERENCES profiles(id) ON DELETE SET NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS calendar_events (
            id SERIAL PRIMARY KEY,
            title TEXT NOT NULL,
            event_date DATE NOT NULL,
            event_time TIME NOT NULL,
            notes TEXT,
            status TEXT NOT NULL DEFAULT 'scheduled'
                CHECK (status IN ('scheduled', 'completed', 'cancelled')),
            assigned_to INTEGER REFERENCES profiles(id) ON DELETE SET NULL,
            created_by INTEGER REFERENCES profiles(id) ON DELETE SET NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # ============== Chat ==============
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS messages (
            id SERIAL PRIMARY KEY,
            sender_id INTEGER NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            receiver_id INTEGER NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            is_read BOOLEAN DEFAULT FALSE,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_messages_receiver ON messages(receiver_id, id)')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_messages_pair ON messages(sender_id, receiver_id, created_at)')
