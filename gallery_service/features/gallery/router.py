"""Gallery pages: list, upload, delete, download and preview."""

import logging
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, File, Form, Request, UploadFile, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response
from starlette.background import BackgroundTask
from starlette.responses import StreamingResponse

from gallery_service.core.exceptions import PayloadTooLargeException
from gallery_service.infra.metrics.prometheus import gallery_uploads_rejected_total
from gallery_service.infra.storage.protocol import ObjectStream

from .dependencies import GalleryServiceDep
from .exceptions import NotAnImageError
from .templating import render_error, templates

logger = logging.getLogger(__name__)

router = APIRouter(tags=["gallery"])

LIST_FAILED = "Failed to list objects."
NO_FILE = "No file uploaded."
UPLOAD_FAILED = "Failed to upload file."
NAME_MISSING = "Object name is missing."
DELETE_FAILED = "Failed to delete object."
DOWNLOAD_FAILED = "Failed to download file or file not found."
IMAGE_NOT_FOUND = "Image not found."


def content_disposition(disposition: str, filename: str) -> str:
    """Build a Content-Disposition value carrying ``filename``.

    Names that cannot be sent as latin-1 header text get an ASCII fallback
    plus an RFC 5987 ``filename*`` parameter.
    """
    escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
    try:
        escaped.encode("latin-1")
    except UnicodeEncodeError:
        fallback = escaped.encode("ascii", "replace").decode("ascii").replace("?", "_")
        return f"{disposition}; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
    return f'{disposition}; filename="{escaped}"'


def stream_response(stream: ObjectStream, headers: dict[str, str] | None = None) -> StreamingResponse:
    """Forward an opened object body, releasing it once the response ends."""
    response_headers = {"Content-Type": stream.content_type or "application/octet-stream"}
    if stream.size is not None:
        response_headers["Content-Length"] = str(stream.size)
    response_headers.update(headers or {})
    return StreamingResponse(
        stream.iter_bytes(),
        headers=response_headers,
        background=BackgroundTask(stream.close),
    )


def _redirect_home() -> RedirectResponse:
    return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)


@router.get(
    "/",
    response_class=HTMLResponse,
    name="index",
    summary="List every object in the bucket",
)
async def index(request: Request, gallery: GalleryServiceDep) -> Response:
    try:
        entries = await gallery.list_entries()
    except Exception as e:
        logger.error(f"Failed to list objects: {e}")
        return render_error(request, LIST_FAILED, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return templates.TemplateResponse(
        request,
        "index.html",
        {"objects": entries, "bucket": gallery.bucket},
    )


@router.post("/upload", summary="Upload a file from a multipart form")
async def upload(
    request: Request,
    gallery: GalleryServiceDep,
    file: Annotated[UploadFile | None, File(description="File to store")] = None,
) -> Response:
    """Store the uploaded file under ``<unix-millis>-<filename>`` and go back to the index."""
    if file is None or not file.filename:
        gallery_uploads_rejected_total.labels(reason="missing_file").inc()
        return render_error(request, NO_FILE, status.HTTP_400_BAD_REQUEST)

    try:
        data = await file.read()
        await gallery.upload(file.filename, data, file.content_type)
    except PayloadTooLargeException as e:
        gallery_uploads_rejected_total.labels(reason="too_large").inc()
        logger.warning(f"Rejected upload of {file.filename}: {e.detail}")
        return render_error(request, e.detail, e.status_code)
    except Exception:
        logger.exception("Failed to upload file", extra={"upload_filename": file.filename})
        return render_error(request, UPLOAD_FAILED, status.HTTP_500_INTERNAL_SERVER_ERROR)
    finally:
        await file.close()

    return _redirect_home()


@router.post("/delete", summary="Delete an object by key")
async def delete(
    request: Request,
    gallery: GalleryServiceDep,
    object_name: Annotated[str | None, Form(alias="objectName")] = None,
) -> Response:
    if not object_name:
        return render_error(request, NAME_MISSING, status.HTTP_400_BAD_REQUEST)

    try:
        await gallery.delete(object_name)
    except Exception as e:
        logger.error(f"Failed to delete object {object_name}: {e}")
        return render_error(request, DELETE_FAILED, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return _redirect_home()


@router.get(
    "/download/{object_name:path}",
    summary="Download an object as an attachment",
)
async def download(request: Request, object_name: str, gallery: GalleryServiceDep) -> Response:
    """Stream the object with its stored content type.

    Missing objects and store failures both answer 500.
    """
    try:
        stream = await gallery.open_download(object_name)
    except Exception:
        logger.exception("Failed to download file", extra={"key": object_name})
        return render_error(request, DOWNLOAD_FAILED, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return stream_response(
        stream,
        headers={"Content-Disposition": content_disposition("attachment", object_name)},
    )


@router.get(
    "/preview/{object_name:path}",
    summary="Display an image object inline",
)
async def preview(object_name: str, gallery: GalleryServiceDep) -> Response:
    try:
        stream = await gallery.open_preview(object_name)
    except NotAnImageError as e:
        return PlainTextResponse(e.detail, status_code=status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.debug(f"Preview of {object_name} unavailable: {e}")
        return PlainTextResponse(IMAGE_NOT_FOUND, status_code=status.HTTP_404_NOT_FOUND)

    return stream_response(stream)
