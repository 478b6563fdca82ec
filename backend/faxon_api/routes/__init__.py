# Routes package init
"""
Faxon Portal API — API Routes Package
======================================

Route Inventory:
    - auth.py:       POST /api/auth/logout, GET /api/auth/logout
                     GET  /api/auth/profile/{id}
                     POST /api/auth/check-username, POST /api/auth/resend-otp
                     POST /api/auth/verify-otp
    - documents.py:  DELETE /api/blog/products/delete?id=&userId=
    - storage.py:    POST /api/storage, DELETE /api/storage
    - health.py:     GET /health

Routes stay thin: read the request, call a service, return its model.
Business rules and error decisions live in the services.
"""
