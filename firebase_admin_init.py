import os
import json
import logging
import firebase_admin
from firebase_admin import credentials, firestore

logger = logging.getLogger(__name__)

_db = None


def firebase_configured():
    """True when any of the supported credential sources is available."""
    return (
        "FIREBASE_CREDENTIALS_JSON" in os.environ
        or "FIREBASE_ADMIN_JSON" in os.environ
        or os.path.exists(os.path.join("config", "firebase_credentials.json"))
    )


def init_firebase_app():
    """
    Initialize Firebase Admin SDK only if not already initialized.
    Handles both Railway (env var) and local (file) configurations.
    """
    if not firebase_admin._apps:
        try:
            if "FIREBASE_CREDENTIALS_JSON" in os.environ:
                logger.info("🔥 Loading Firebase credentials from FIREBASE_CREDENTIALS_JSON")
                service_account_info = json.loads(os.environ["FIREBASE_CREDENTIALS_JSON"])
                cred = credentials.Certificate(service_account_info)
            elif "FIREBASE_ADMIN_JSON" in os.environ:
                logger.info("🔥 Loading Firebase credentials from FIREBASE_ADMIN_JSON")
                service_account_info = json.loads(os.environ["FIREBASE_ADMIN_JSON"])
                cred = credentials.Certificate(service_account_info)
            else:
                logger.info("🔥 Loading Firebase credentials from local file")
                cred_path = os.path.join("config", "firebase_credentials.json")
                cred = credentials.Certificate(cred_path)

            firebase_admin.initialize_app(cred)
            logger.info("✅ Firebase initialized successfully")
        except Exception as e:
            logger.error(f"❌ Firebase initialization failed: {e}")
            raise


def get_db():
    """Return the shared Firestore client, initializing Firebase on first use."""
    global _db
    if _db is None:
        init_firebase_app()
        _db = firestore.client()
    return _db
