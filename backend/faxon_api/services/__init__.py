# Services package init
"""
Faxon Portal API — Services Layer
==================================

What:  Business logic between the routes (HTTP) and the database/providers.
How:   Services receive the request's session and, where they talk to a
       remote system, the provider client chosen by the route's dependency.

Service Inventory:
    - ActivityLogService: best-effort audit entries (savepoint per entry)
    - AuthService:        logout, profile, username check, OTP verification
    - DocumentService:    owner-scoped delete in one transaction
    - AssetService:       image validation + Supabase Storage upload/delete
    - run_best_effort:    background runner for post-response provider calls

Provider clients live in `services.providers`.
"""
