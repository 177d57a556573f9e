"""Authentication.

Learn: Users sign in with email-or-phone + password and receive a
short-lived JWT access token. Every protected request presents the token
as a Bearer credential; the verifier resolves it to a CurrentUser whose
user_id scopes every query the resource routers run.

Tokens are stateless: there is no server-side session table, no refresh
token and no revocation list. A token simply stops working at its expiry.
"""
