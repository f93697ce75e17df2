# leaf_scanner/api/routes.py
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Header, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from leaf_scanner.config import Settings, get_settings
from leaf_scanner.db import get_db, is_db_available
from leaf_scanner.models.disease import DiseaseRecord
from leaf_scanner.models.scan_result import AnalyzeResponse, DetectionStats, RecentScan, ScanResult
from leaf_scanner.services.camera import capture_jpeg
from leaf_scanner.services.errors import CameraUnavailableError, ImageDecodeError, ScanValidationError
from leaf_scanner.services.health import assess_plant_health
from leaf_scanner.services.scanner import DiseaseScanner

router = APIRouter()
logger = logging.getLogger(__name__)

SIGN_IN_REQUIRED = "Please select an image and sign in to scan."
IMAGE_REQUIRED = "Please select an image to scan."
CAMERA_FALLBACK = "Unable to access camera. Please use image upload instead."


def get_scanner(request: Request) -> DiseaseScanner:
    return request.app.state.scanner


def require_user(x_user_id: Optional[str] = Header(None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail=SIGN_IN_REQUIRED)
    return x_user_id.strip()


async def read_image_upload(file: Optional[UploadFile], settings: Settings) -> bytes:
    """Validate an upload and return its bytes."""
    if file is None:
        raise HTTPException(status_code=400, detail=IMAGE_REQUIRED)

    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type {file.content_type!r}. Please upload an image."
        )

    if file.size is not None and file.size > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE // 1024 // 1024} MB."
        )

    image_bytes = await file.read()
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")
    return image_bytes


async def _run_scan(scanner: DiseaseScanner, user_id: str, image_bytes: bytes, db: Optional[Session]) -> ScanResult:
    try:
        return await scanner.scan(user_id, image_bytes, db)
    except ScanValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ImageDecodeError as e:
        logger.info(f"Rejected undecodable image: {e}")
        raise HTTPException(status_code=422, detail=f"Image analysis failed: {e}")
    except Exception as e:
        logger.error(f"Error during plant scan: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error during plant scan: {str(e)}")


@router.post(
    "/scan",
    response_model=ScanResult,
    summary="Scan a leaf photo for disease",
    description="Upload a leaf image; the result is analyzed, matched to a disease and saved to the user's history",
)
async def scan_plant_image(
        file: Optional[UploadFile] = File(None),
        user_id: str = Depends(require_user),
        settings: Settings = Depends(get_settings),
        scanner: DiseaseScanner = Depends(get_scanner),
        db: Optional[Session] = Depends(get_db),
) -> ScanResult:
    image_bytes = await read_image_upload(file, settings)
    return await _run_scan(scanner, user_id, image_bytes, db)


@router.post(
    "/scan/camera",
    response_model=ScanResult,
    summary="Capture a leaf photo from the attached camera and scan it",
)
async def scan_camera_capture(
        user_id: str = Depends(require_user),
        settings: Settings = Depends(get_settings),
        scanner: DiseaseScanner = Depends(get_scanner),
        db: Optional[Session] = Depends(get_db),
) -> ScanResult:
    try:
        image_bytes = await run_in_threadpool(capture_jpeg, settings.CAMERA_INDEX)
    except CameraUnavailableError as e:
        logger.warning(f"Camera capture failed: {e}")
        raise HTTPException(status_code=503, detail=CAMERA_FALLBACK)
    return await _run_scan(scanner, user_id, image_bytes, db)


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    summary="Analyze a leaf photo without saving it",
)
async def analyze_plant_image(
        file: Optional[UploadFile] = File(None),
        settings: Settings = Depends(get_settings),
        scanner: DiseaseScanner = Depends(get_scanner),
) -> AnalyzeResponse:
    image_bytes = await read_image_upload(file, settings)
    try:
        analysis = await scanner.analyzer.analyze_image(image_bytes)
    except ImageDecodeError as e:
        raise HTTPException(status_code=422, detail=f"Image analysis failed: {e}")
    except Exception as e:
        logger.error(f"Error during image analysis: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error during image analysis: {str(e)}")
    return AnalyzeResponse(analysis=analysis, health=assess_plant_health(analysis))


@router.get(
    "/scans/recent",
    response_model=List[RecentScan],
    summary="Most recent scans of the current user",
)
async def recent_scans(
        user_id: str = Depends(require_user),
        settings: Settings = Depends(get_settings),
        scanner: DiseaseScanner = Depends(get_scanner),
        db: Optional[Session] = Depends(get_db),
) -> List[RecentScan]:
    return scanner.recent_scans(db, user_id, limit=settings.RECENT_SCANS_LIMIT)


@router.get(
    "/scans/stats",
    response_model=DetectionStats,
    summary="Detection statistics of the current user",
)
async def scan_stats(
        user_id: str = Depends(require_user),
        scanner: DiseaseScanner = Depends(get_scanner),
        db: Optional[Session] = Depends(get_db),
) -> DetectionStats:
    return scanner.detection_stats(db, user_id)


@router.get(
    "/diseases",
    response_model=List[DiseaseRecord],
    summary="Static disease catalogue",
)
async def list_diseases(scanner: DiseaseScanner = Depends(get_scanner)) -> List[DiseaseRecord]:
    return scanner.catalogue.diseases + [scanner.catalogue.healthy]


@router.get(
    "/health",
    summary="API health status",
    description="Check if the scan service is available"
)
async def health_check() -> Dict[str, Any]:
    return {
        "status": "healthy",
        "service": "leaf-scanner",
        "version": "0.1.0",
        "database": "connected" if is_db_available() else "not configured",
    }
