# Providers package init
"""
Faxon Portal API — External Provider Clients
=============================================

What:  Thin httpx clients for the three remote services the portal uses.

Provider Inventory:
    - SupabaseStorage: image assets (upload, public URL, delete by path)
    - ZohoWorkDrive:   uploaded documents (delete by WorkDrive file id)
    - BrevoMailer:     transactional e-mail carrying OTP codes

Each client opens a short-lived httpx.AsyncClient per call and translates
non-2xx responses into application exceptions. An optional `transport`
argument lets tests substitute httpx.MockTransport.
"""

from faxon_api.services.providers.brevo_mailer import BrevoMailer, mailer
from faxon_api.services.providers.supabase_storage import SupabaseStorage, asset_storage
from faxon_api.services.providers.zoho_workdrive import ZohoWorkDrive, document_storage


# ── FastAPI dependencies ──────────────────────────────────────────────────
# Routes depend on these instead of importing the singletons, so tests can
# swap a provider through app.dependency_overrides.

def get_asset_storage() -> SupabaseStorage:
    return asset_storage


def get_document_storage() -> ZohoWorkDrive:
    return document_storage


def get_mailer() -> BrevoMailer:
    return mailer
