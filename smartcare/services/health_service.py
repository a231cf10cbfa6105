"""Daily health measures and uploaded medical records.

Daily measures live in ``users/{patientId}/dailyMeasures/{YYYY-MM-DD}``;
saving the same day twice merges into one document. Records are files in
Storage under ``records/{patientId}/`` with metadata in ``records/{id}``.
"""
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from firebase_admin import firestore
from google.cloud.firestore import FieldFilter

from smartcare.core.errors import NotFound
from smartcare.core.firebase import get_bucket, get_db
from smartcare.models.health_data import DailyMeasure, DailyMeasureIn, RecordFile

logger = logging.getLogger(__name__)


def upsert_daily_measure(patient_id: str, payload: DailyMeasureIn, session) -> Dict[str, Any]:
    """Save one day's measures for a patient, recording who entered them."""
    if session.is_caregiver:
        measure = DailyMeasure(
            **payload.model_dump(),
            addedBy="caregiver",
            caregiverId=session.uid,
            caregiverName=session.display_name,
        )
    else:
        measure = DailyMeasure(**payload.model_dump(), addedBy="patient")

    data = measure.model_dump(exclude_none=True)
    data["createdAt"] = datetime.now(timezone.utc)

    ref = (
        get_db()
        .collection("users")
        .document(patient_id)
        .collection("dailyMeasures")
        .document(measure.date)
    )
    ref.set(data, merge=True)
    return data


def get_daily_measures(patient_id: str, limit: int = 30) -> List[Dict[str, Any]]:
    docs = (
        get_db()
        .collection("users")
        .document(patient_id)
        .collection("dailyMeasures")
        .order_by("date", direction=firestore.Query.DESCENDING)
        .limit(limit)
        .stream()
    )
    return [d.to_dict() or {} for d in docs]


def download_url(bucket_name: str, path: str, token: str) -> str:
    """Tokenized download URL, as returned by the client SDK's getDownloadURL."""
    return (
        f"https://firebasestorage.googleapis.com/v0/b/{bucket_name}/o/{quote(path, safe='')}"
        f"?alt=media&token={token}"
    )


def upload_record(patient_id: str, file_name: str, content: bytes,
                  content_type: Optional[str], uploaded_by: str) -> RecordFile:
    ts = int(time.time() * 1000)
    path = f"records/{patient_id}/{ts}-{file_name}"

    bucket = get_bucket()
    blob = bucket.blob(path)
    # Same token scheme the client SDK uses; the blob itself stays private
    token = str(uuid.uuid4())
    blob.metadata = {"firebaseStorageDownloadTokens": token}
    blob.upload_from_string(content, content_type=content_type or "application/octet-stream")

    record = RecordFile(
        patientId=patient_id,
        fileName=file_name,
        fileUrl=download_url(bucket.name, path, token),
        storagePath=path,
        contentType=content_type,
        uploadedBy=uploaded_by,
        uploadedAt=ts,
        createdAt=ts,
    )
    try:
        _, ref = get_db().collection("records").add(record.model_dump(exclude={"id"}, exclude_none=True))
    except Exception:
        logger.error("Saving metadata for %s failed; removing the uploaded blob", path)
        blob.delete()
        raise
    record.id = ref.id
    logger.info("Record %s uploaded for patient %s (%s)", ref.id, patient_id, path)
    return record


def _created_ms(value) -> int:
    if isinstance(value, int):
        return value
    # Firestore timestamps come back as datetime
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    return int(time.time() * 1000)


def get_patient_records(patient_id: str) -> List[RecordFile]:
    docs = get_db().collection("records").where(filter=FieldFilter("patientId", "==", patient_id)).stream()
    out = []
    for d in docs:
        data = d.to_dict() or {}
        data["createdAt"] = _created_ms(data.get("createdAt"))
        data.setdefault("uploadedAt", data["createdAt"])
        out.append(RecordFile(id=d.id, **data))
    out.sort(key=lambda r: r.createdAt, reverse=True)
    return out


def get_record(record_id: str) -> RecordFile:
    snap = get_db().collection("records").document(record_id).get()
    if not snap.exists:
        raise NotFound("Record not found")
    data = snap.to_dict() or {}
    data["createdAt"] = _created_ms(data.get("createdAt"))
    data.setdefault("uploadedAt", data["createdAt"])
    return RecordFile(id=snap.id, **data)


def delete_record(record: RecordFile) -> None:
    """Delete metadata, then the blob. A blob failure is only logged."""
    get_db().collection("records").document(record.id).delete()
    if not record.storagePath:
        return
    try:
        get_bucket().blob(record.storagePath).delete()
    except Exception:
        logger.warning("Could not delete blob %s for record %s", record.storagePath, record.id, exc_info=True)
