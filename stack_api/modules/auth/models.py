# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - Email/password registration with confirmation email (auth.users table)
# - Phone sign-in with SMS one-time codes
# - Session management, refresh tokens and JWT validation

"""
Supabase Auth calls used here:
- auth.sign_up() / auth.sign_in_with_password() - email accounts
- auth.sign_in_with_otp() / auth.verify_otp() - phone accounts
- auth.resend() - resend the signup confirmation email
- auth.reset_password_for_email() - password reset email
- auth.get_user() - principal for a JWT (also used to reload verified state)
- auth.refresh_session() - exchange a refresh token
- auth.on_auth_state_change() - listener that drives AuthFlowCoordinator
- auth.admin.sign_out() / auth.admin.delete_user() - revoke / delete

A principal is "verified" when email_confirmed_at is set or it signed in by
phone (app_metadata.providers contains "phone").

The app profile lives in the user_profiles table (see users/models.py); a
principal without a profile row is routed to profile setup.
"""
