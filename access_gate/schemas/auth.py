from access_gate.schemas.user import UserBase


class IdentityLogin(UserBase):
    """Verified email handed over by the identity provider."""
