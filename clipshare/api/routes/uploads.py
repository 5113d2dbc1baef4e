"""Upload API routes."""

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import JSONResponse

from ...app import IApplication
from ...protocol import FileDescriptorPayload
from ...uploads import UploadTooLargeError


def create_uploads_router(app: IApplication) -> APIRouter:
    """Create uploads router."""
    router = APIRouter(tags=["uploads"])

    @router.post(
        "/upload",
        response_model=FileDescriptorPayload,
        responses={400: {"description": "No file uploaded"}, 413: {"description": "File too large"}},
    )
    async def upload_file(file: UploadFile | None = File(None)):
        """Store one file and return its descriptor."""
        if file is None or not file.filename:
            return JSONResponse(status_code=400, content={"error": "No file uploaded"})

        try:
            descriptor = await app.uploads.save(file)
        except UploadTooLargeError:
            return JSONResponse(status_code=413, content={"error": "File too large"})
        finally:
            await file.close()

        return descriptor.to_wire()

    return router
