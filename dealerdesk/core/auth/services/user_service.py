"""User Service - Business logic for user management.

Routes call these methods instead of touching the repositories directly.
Admin-protection rules live here so every entry point enforces them:
an admin profile can never be modified or deleted through user management,
and no one can be promoted to admin.
"""
from typing import Optional, Dict, Any

from core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from core.utils.logging_config import get_logger
from ..models import ROLES, ROLE_ADMIN, ROLE_SELLER, ROLE_TRANSPORTER, STATUS_ACTIVE, STATUS_INACTIVE
from ..repositories.user_repository import UserRepository
from ..repositories.event_repository import EventRepository

logger = get_logger('dealerdesk.auth')

MIN_PASSWORD_LENGTH = 6
ASSIGNABLE_ROLES = (ROLE_SELLER, ROLE_TRANSPORTER)

_ACTIVE_VALUES = {'active', 'enabled', 'true', '1'}
_INACTIVE_VALUES = {'inactive', 'disabled', 'suspended', 'false', '0'}


def normalize_status(value) -> str:
    """Map the status spellings the UI sends onto 'active' / 'inactive'."""
    if isinstance(value, bool):
        return STATUS_ACTIVE if value else STATUS_INACTIVE
    text = str(value).strip().lower()
    if text in _ACTIVE_VALUES:
        return STATUS_ACTIVE
    if text in _INACTIVE_VALUES:
        return STATUS_INACTIVE
    raise ValidationError(f"Invalid status '{value}'. Must be active or inactive")


class UserService:
    """Service for user-management business logic."""

    def __init__(self):
        self.user_repo = UserRepository()
        self.event_repo = EventRepository()

    def list_users(self):
        return self.user_repo.get_all()

    def get_user(self, user_id: int) -> Dict[str, Any]:
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError('User', user_id)
        return user

    def create_user(self, email: str, password: str, role: str,
                    username: Optional[str] = None, actor_id: int = None) -> Dict[str, Any]:
        """Create login credentials and the matching profile.

        If the profile insert hits a duplicate key the account is kept and a
        ConflictError is raised; any other profile failure deletes the account
        again before re-raising.
        """
        email = (email or '').strip()
        password = password or ''
        role = (role or '').strip()

        if not email or not password or not role:
            raise ValidationError('Email, password, and role are required')
        if '@' not in email:
            raise ValidationError('Invalid email address')
        if role not in ROLES:
            raise ValidationError('Invalid role. Must be admin, seller, or transporter')
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')

        username = (username or '').strip() or email.split('@')[0]

        account_id = self.user_repo.create_account(email, password)
        try:
            profile = self.user_repo.create_profile(
                account_id, email, username, role, status=STATUS_ACTIVE)
        except ConflictError:
            logger.warning(f'Profile conflict for account {account_id} ({email}); account preserved')
            raise
        except Exception:
            logger.exception(f'Profile creation failed for account {account_id}; rolling back account')
            self.user_repo.delete_account(account_id)
            raise

        self.event_repo.log_event(
            'user_created', event_description=f'Created {role} user {email}',
            user_id=actor_id, entity_type='user', entity_id=account_id,
            details={'role': role, 'username': username},
        )
        logger.info(f'User {account_id} created with role {role}')
        return profile

    def _get_target(self, user_id: int) -> Dict[str, Any]:
        target = self.user_repo.get_by_id(user_id)
        if not target:
            raise NotFoundError('User', user_id)
        return target

    def update_user(self, user_id: int, changes: Dict[str, Any], actor_id: int = None,
                    ip_address: str = None, user_agent: str = None) -> Dict[str, Any]:
        """Update username/email/role/status of a non-admin user."""
        target = self._get_target(user_id)
        if target.get('role') == ROLE_ADMIN:
            raise ForbiddenError('Admin account cannot be modified')

        role = changes.get('role')
        if role is not None:
            if role == ROLE_ADMIN:
                raise ForbiddenError('Cannot change user role to admin via this endpoint')
            if role not in ASSIGNABLE_ROLES:
                raise ValidationError('Invalid role. Must be seller or transporter')

        status = changes.get('status')
        if status is not None:
            status = normalize_status(status)

        email = changes.get('email')
        if email is not None:
            email = email.strip()
            if '@' not in email:
                raise ValidationError('Invalid email address')

        username = changes.get('username')
        if username is not None:
            username = username.strip()
            if not username:
                raise ValidationError('Username cannot be empty')

        updated = self.user_repo.update_profile(
            user_id, username=username, email=email, role=role, status=status)
        if updated is None:
            raise NotFoundError('User', user_id)

        self.event_repo.log_event(
            'user_updated', event_description=f'Updated user {target["email"]}',
            user_id=actor_id, entity_type='user', entity_id=user_id,
            ip_address=ip_address, user_agent=user_agent,
            details={'changes': {'username': username, 'email': email,
                                 'role': role, 'status': status}},
        )
        return updated

    def delete_user(self, user_id: int, actor_id: int = None) -> None:
        """Delete a non-admin user (account + profile)."""
        target = self._get_target(user_id)
        if target.get('role') == ROLE_ADMIN:
            raise ForbiddenError('Admin account cannot be deleted')
        if actor_id is not None and user_id == actor_id:
            raise ValidationError('Cannot delete your own account')

        if not self.user_repo.delete_account(user_id):
            raise NotFoundError('User', user_id)

        self.event_repo.log_event(
            'user_deleted', event_description=f'Deleted user {target["email"]}',
            user_id=actor_id, entity_type='user', entity_id=user_id,
        )
        logger.info(f'User {user_id} deleted by {actor_id}')

    def change_password(self, user_id: int, email: str,
                        current_password: str, new_password: str) -> None:
        if not current_password or not new_password:
            raise ValidationError('Both current and new passwords are required')
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f'New password must be at least {MIN_PASSWORD_LENGTH} characters')
        if not self.user_repo.authenticate(email, current_password):
            raise ValidationError('Current password is incorrect')
        self.user_repo.update_password(user_id, new_password)
