"""User Repository - Data access layer for accounts and profiles.

Credentials live in auth_accounts, the user-facing record in profiles
(same id). Most reads join the two.
"""
from typing import Optional, Dict, Any, List

import psycopg2.errors
from werkzeug.security import generate_password_hash, check_password_hash

from core.base_repository import BaseRepository
from core.exceptions import ConflictError

_PROFILE_SELECT = '''
    SELECT p.id, p.email, p.username, p.role, p.status,
           p.created_at, p.updated_at,
           a.is_active, a.last_login, a.last_seen
    FROM profiles p
    JOIN auth_accounts a ON a.id = p.id
'''


def _is_unique_violation(e: Exception) -> bool:
    if isinstance(e, psycopg2.errors.UniqueViolation):
        return True
    msg = str(e).lower()
    return 'unique' in msg or 'duplicate' in msg


class UserRepository(BaseRepository):
    """Repository for account and profile data access."""

    def get_by_id(self, user_id: int) -> Optional[Dict[str, Any]]:
        """Get a profile by ID with account flags."""
        return self.query_one(_PROFILE_SELECT + ' WHERE p.id = %s', (user_id,))

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Get account + profile by email, including the password hash."""
        return self.query_one('''
            SELECT a.id, a.email, a.password_hash, a.is_active,
                   p.username, p.role, p.status
            FROM auth_accounts a
            LEFT JOIN profiles p ON p.id = a.id
            WHERE LOWER(a.email) = LOWER(%s)
        ''', (email,))

    def get_all(self) -> List[Dict[str, Any]]:
        """Get all profiles, newest first."""
        return self.query_all(_PROFILE_SELECT + ' ORDER BY p.created_at DESC')

    # --- Authentication ---

    def authenticate(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        """Authenticate user by email and password."""
        user = self.get_by_email(email)
        if not user or not user.get('is_active', False) or not user.get('password_hash'):
            return None
        if user.get('status') != 'active':
            return None
        if not check_password_hash(user['password_hash'], password):
            return None
        return user

    def update_password(self, user_id: int, password: str) -> bool:
        password_hash = generate_password_hash(password)
        return self.execute('''
            UPDATE auth_accounts SET password_hash = %s, updated_at = CURRENT_TIMESTAMP
            WHERE id = %s
        ''', (password_hash, user_id)) > 0

    def update_last_login(self, user_id: int) -> bool:
        return self.execute('''
            UPDATE auth_accounts SET last_login = CURRENT_TIMESTAMP WHERE id = %s
        ''', (user_id,)) > 0

    def update_last_seen(self, user_id: int) -> bool:
        return self.execute('''
            UPDATE auth_accounts SET last_seen = CURRENT_TIMESTAMP WHERE id = %s
        ''', (user_id,)) > 0

    # --- Account / profile lifecycle ---

    def create_account(self, email: str, password: str) -> int:
        """Create login credentials. Returns account ID.

        Raises:
            ConflictError: an account with this email already exists
        """
        try:
            result = self.execute('''
                INSERT INTO auth_accounts (email, password_hash)
                VALUES (%s, %s)
                RETURNING id
            ''', (email, generate_password_hash(password)), returning=True)
            return result['id']
        except Exception as e:
            if _is_unique_violation(e):
                raise ConflictError(f"Account with email '{email}' already exists")
            raise

    def delete_account(self, account_id: int) -> bool:
        """Delete credentials (cascades to the profile)."""
        return self.execute('DELETE FROM auth_accounts WHERE id = %s', (account_id,)) > 0

    def create_profile(self, user_id: int, email: str, username: str,
                       role: str, status: str = 'active') -> Dict[str, Any]:
        """Create the profile row for an existing account.

        Raises:
            ConflictError: duplicate email or username
        """
        try:
            self.execute('''
                INSERT INTO profiles (id, email, username, role, status)
                VALUES (%s, %s, %s, %s, %s)
            ''', (user_id, email, username, role, status))
        except Exception as e:
            if _is_unique_violation(e):
                raise ConflictError(
                    f"Profile with email '{email}' or username '{username}' already exists")
            raise
        return self.get_by_id(user_id)

    def update_profile(self, user_id: int, username: str = None, email: str = None,
                       role: str = None, status: str = None) -> Optional[Dict[str, Any]]:
        """Update profile fields. Returns the updated profile, or None if missing."""
        updates = []
        params = []
        if username is not None:
            updates.append('username = %s')
            params.append(username)
        if email is not None:
            updates.append('email = %s')
            params.append(email)
        if role is not None:
            updates.append('role = %s')
            params.append(role)
        if status is not None:
            updates.append('status = %s')
            params.append(status)
        if not updates:
            return self.get_by_id(user_id)
        updates.append('updated_at = CURRENT_TIMESTAMP')
        params.append(user_id)
        try:
            updated = self.execute(
                f"UPDATE profiles SET {', '.join(updates)} WHERE id = %s", params)
        except Exception as e:
            if _is_unique_violation(e):
                raise ConflictError('User with that email or username already exists')
            raise
        if not updated:
            return None
        if email is not None:
            self.execute('UPDATE auth_accounts SET email = %s WHERE id = %s', (email, user_id))
        return self.get_by_id(user_id)
