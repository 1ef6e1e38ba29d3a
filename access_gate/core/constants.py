from datetime import timedelta

ACCESS_REQUEST_COOLDOWN = timedelta(minutes=10)
MAX_LEN_NAME = 100
MAX_LEN_EMAIL = 255

MSG_ALREADY_APPROVED = 'Access already approved. Please sign in.'
MSG_ACCOUNT_BLOCKED = 'Account is blocked. Please contact an admin.'
MSG_ACCOUNT_PENDING = 'Your account is pending admin approval.'
MSG_DOMAIN_NOT_ALLOWED = 'Email domain is not allowed for access requests.'
MSG_REQUEST_NOT_FOUND = 'Request not found'
MSG_USER_NOT_FOUND = 'User not found'
MSG_BLOCKED_USER = (
    'User is blocked; unblock from User Management instead.'
)
MSG_SELF_LOCKOUT = 'You cannot remove your own admin access.'
