"""
auth — User authentication module.

Provides:
  • JWT access / refresh token creation & verification
  • Password hashing (bcrypt)
  • AuthService: signup, signin, logout, refresh, profile, theme,
    password reset, Google login
  • ``/api/users`` API routes
  • ``get_current_user`` FastAPI dependency
"""
