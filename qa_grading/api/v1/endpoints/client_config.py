# qa_grading/api/v1/endpoints/client_config.py
from fastapi import APIRouter

from qa_grading.core.config import settings

router = APIRouter(prefix="/config", tags=["config"])


@router.get("/client")
def get_client_config():
    """Public settings the single-page frontend boots with."""
    return {
        "API_URL": settings.API_URL,
        "firebase": {
            "apiKey": settings.FIREBASE_API_KEY,
            "authDomain": settings.FIREBASE_AUTH_DOMAIN,
            "projectId": settings.FIREBASE_PROJECT_ID,
            "storageBucket": settings.FIREBASE_STORAGE_BUCKET,
            "messagingSenderId": settings.FIREBASE_MESSAGING_SENDER_ID,
            "appId": settings.FIREBASE_APP_ID,
        },
    }
