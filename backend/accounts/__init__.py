# accounts/__init__.py
"""
Accounts app - Users and role-based authorization for BuildLedger.

This app provides:
- User: Custom user model (email login, role)
- ROLE_DEFAULTS: Permission codes granted per role
- ActorContext: Authorization context passed to every command
"""
