import firebase_admin, json, logging
from firebase_admin import credentials, firestore, storage
from functools import lru_cache
from app.config.settings import settings

logger = logging.getLogger(__name__)


def init_firebase():
    """Initialise the default Firebase app once and return it."""
    if firebase_admin._apps:
        return firebase_admin.get_app()

    if settings.FIREBASE_JSON:
        # Running on a host that injects the service account as JSON
        cred = credentials.Certificate(json.loads(settings.FIREBASE_JSON))
    elif settings.FIREBASE_KEY_PATH:
        # Running LOCALLY → load from file
        cred = credentials.Certificate(settings.FIREBASE_KEY_PATH)
    else:
        cred = credentials.ApplicationDefault()

    options = {}
    if settings.FIREBASE_STORAGE_BUCKET:
        options["storageBucket"] = settings.FIREBASE_STORAGE_BUCKET

    app = firebase_admin.initialize_app(cred, options)
    logger.info("Firebase app initialized")
    return app


@lru_cache
def get_db():
    """Firestore client, created on first use."""
    init_firebase()
    return firestore.client()


@lru_cache
def get_bucket():
    """Default Cloud Storage bucket, created on first use."""
    init_firebase()
    return storage.bucket()
