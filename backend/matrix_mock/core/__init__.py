# matrix_mock/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Startup seeding of accounts (user, password digest, session row)
- db: Database configuration and connection management
- errors: Matrix error taxonomy rendered as {errcode, error}
- security: Password digesting and bearer token generation
"""
