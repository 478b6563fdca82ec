"""
Faxon Portal API — Application Package
======================================

What: Backend for the Faxon staff portal (authentication, documents, assets).
Who:  Imported by uvicorn (`faxon_api.main:app`) and by the test suite.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, SQL, audit trail
    ├──────────────────┬──────────────────┤
    │ Models & Schemas │ Storage Providers│  ← ORM + Pydantic │ Supabase, Zoho, Brevo
    ├──────────────────┴──────────────────┤
    │        Database (Persistence)       │  ← async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
