"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields


class TokenResponseSchema(Schema):
    """Response payload containing an access token."""

    access_token = fields.String(required=True)
    token_type = fields.String(dump_default="bearer")
    expires_in = fields.Integer(required=True)


class WhoAmISchema(Schema):
    """Response payload exposing the verified claims of the access token."""

    user_id = fields.String(required=True)
    email = fields.String(required=True)
    role = fields.String(required=True)
    issued_at = fields.AwareDateTime(required=True)
    expires_at = fields.AwareDateTime(required=True)


class SessionSchema(Schema):
    """Operator view of an outstanding refresh session (id shortened)."""

    session = fields.Function(lambda rec: f"{rec.session_id[:8]}...")
    user_id = fields.String(required=True)
    created_at = fields.AwareDateTime(required=True)
    expires_at = fields.AwareDateTime(required=True)
