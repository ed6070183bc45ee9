"""Base Repository: shared connection handling for every entity repository.

query_one(), query_all(), execute(), execute_many() take care of
get_db()/get_cursor()/release_db() and commit/rollback.

Usage:
    class VehicleRepository(BaseRepository):
        def get_by_id(self, vehicle_id):
            return self.query_one('SELECT * FROM vehicles WHERE id = %s', (vehicle_id,))

        def create(self, make, model, year):
            return self.execute(
                'INSERT INTO vehicles (make, model, year) VALUES (%s, %s, %s) RETURNING *',
                (make, model, year), returning=True
            )

        def sell(self, vehicle_id, price):
            def _work(cursor):
                cursor.execute('UPDATE vehicles ...')
                cursor.execute('INSERT INTO vehicle_timeline ...')
                return cursor.fetchone()
            return self.execute_many(_work)
"""

from database import get_db, get_cursor, release_db, dict_from_row


class BaseRepository:

    def query_one(self, sql, params=None):
        """Execute a SELECT and return a single row as dict, or None."""
        conn = get_db()
        try:
            cursor = get_cursor(conn)
            cursor.execute(sql, params or ())
            row = cursor.fetchone()
            return dict_from_row(row) if row else None
        finally:
            release_db(conn)

    def query_all(self, sql, params=None):
        """Execute a SELECT and return all rows as list of dicts."""
        conn = get_db()
        try:
            cursor = get_cursor(conn)
            cursor.execute(sql, params or ())
            return [dict_from_row(r) for r in cursor.fetchall()]
        finally:
            release_db(conn)

    def query_page(self, sql, params=None, page=1, limit=10):
        """Run a SELECT with LIMIT/OFFSET and a matching COUNT(*).

        Returns (rows, total). `sql` must not carry its own LIMIT clause.
        """
        page = max(1, int(page))
        limit = max(1, int(limit))
        params = list(params or ())
        conn = get_db()
        try:
            cursor = get_cursor(conn)
            cursor.execute(f'SELECT COUNT(*) AS total FROM ({sql}) AS counted', params)
            total = cursor.fetchone()['total']
            cursor.execute(f'{sql} LIMIT %s OFFSET %s', params + [limit, (page - 1) * limit])
            return [dict_from_row(r) for r in cursor.fetchall()], total
        finally:
            release_db(conn)

    def execute(self, sql, params=None, returning=False):
        """Execute an INSERT/UPDATE/DELETE with auto-commit.

        Args:
            sql: SQL statement
            params: Query parameters
            returning: If True, fetchone() and return dict. If False, return rowcount.

        Returns:
            dict if returning=True, else int (rowcount)
        """
        conn = get_db()
        try:
            cursor = get_cursor(conn)
            cursor.execute(sql, params or ())
            if returning:
                result = cursor.fetchone()
                conn.commit()
                return dict_from_row(result) if result else None
            conn.commit()
            return cursor.rowcount
        except Exception:
            conn.rollback()
            raise
        finally:
            release_db(conn)

    def execute_many(self, callback):
        """Execute multiple statements in a single transaction.

        Args:
            callback: Function that receives (cursor) and returns a result.
                      All statements within callback share one connection/transaction.
                      Raising inside the callback rolls everything back.

        Returns:
            Whatever callback returns
        """
        conn = get_db()
        try:
            conn.autocommit = False
            cursor = get_cursor(conn)
            result = callback(cursor)
            conn.commit()
            return result
        except Exception:
            conn.rollback()
            raise
        finally:
            release_db(conn)
