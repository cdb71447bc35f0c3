from fastapi import APIRouter, File, UploadFile

from tradelog.schemas.market import ScreenshotUploadResponse
from tradelog.services.screenshot_service import ScreenshotService

router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.post("/screenshot", response_model=ScreenshotUploadResponse)
async def upload_screenshot(file: UploadFile = File(...)):
    """Push a chart screenshot to the image host and return its URL"""
    content = await file.read()
    result = await ScreenshotService().upload(content, file.filename or "", file.content_type)
    return ScreenshotUploadResponse(**result)
