"""
Firebase admin initialization and helpers.

The frontend signs users in with Firebase Authentication and sends the
resulting ID token with every request. This module owns the single Firebase
Admin app used to verify those tokens, talk to Firestore and reach the
Storage bucket holding medical records.
"""

import logging
import os

import firebase_admin
from firebase_admin import credentials, firestore, storage

from smartcare.core.config import settings

logger = logging.getLogger(__name__)

# Global references to avoid re-initialization
_firebase_app = None
db = None


def init_firebase():
    """
    Initialize Firebase Admin SDK if not already initialized.

    Priority:
    1. FIREBASE_CREDENTIALS (env var or .env)
    2. Fallback to local dev file: smartcare/core/firebase_key.json
    """
    global _firebase_app, db

    # Prevent re-initialization (important for Uvicorn reload)
    if firebase_admin._apps:
        if db is None:
            db = firestore.client()
        return

    cred_path = settings.FIREBASE_CREDENTIALS
    if not os.path.exists(cred_path):
        raise RuntimeError(
            f"Firebase credentials not found at: {cred_path}\n"
            "Set FIREBASE_CREDENTIALS env var or place firebase_key.json correctly."
        )

    options = {}
    if settings.FIREBASE_STORAGE_BUCKET:
        options["storageBucket"] = settings.FIREBASE_STORAGE_BUCKET
    if settings.FIREBASE_PROJECT_ID:
        options["projectId"] = settings.FIREBASE_PROJECT_ID

    cred = credentials.Certificate(cred_path)
    _firebase_app = firebase_admin.initialize_app(cred, options or None)

    db = firestore.client()

    logger.info("Firebase Admin initialized (project=%s)", settings.FIREBASE_PROJECT_ID or "default")


def get_db():
    """Return the Firestore client, initializing Firebase on first use."""
    if db is None:
        init_firebase()
    return db


def get_bucket():
    """Return the default Storage bucket for record uploads."""
    get_db()
    return storage.bucket()


def run_transaction(fn, *args, **kwargs):
    """
    Run ``fn(transaction, *args, **kwargs)`` inside a Firestore transaction.

    Reads done with ``ref.get(transaction=transaction)`` are consistent with
    the writes queued on ``transaction``; the writes are committed together
    or not at all, and the body is retried on contention.
    """
    client = get_db()
    return firestore.transactional(fn)(client.transaction(), *args, **kwargs)
