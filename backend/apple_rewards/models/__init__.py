from .auth import User, SessionToken, ROLE_ADMIN, ROLE_ASSISTANT, USER_ROLES
from .students import Student
from .ledger import AppleTransaction, LoyaltyBonus

__all__ = [
    'User', 'SessionToken', 'ROLE_ADMIN', 'ROLE_ASSISTANT', 'USER_ROLES',
    'Student',
    'AppleTransaction', 'LoyaltyBonus',
]
