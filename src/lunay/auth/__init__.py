"""Authentication — who is making this request.

Learn: One authentication path:
    email/password → bcrypt check → signed session token (JWT)

The token travels either as the `token` cookie (browsers) or as
`Authorization: Bearer <token>` (API callers). Both resolve to an
Identity, which is passed explicitly into every service call.
"""
