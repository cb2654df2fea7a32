"""
api/routes/materials.py -- Study-material catalog REST endpoints.

Routes:
  POST   /upload               -- multipart: optional `file`, optional `link`; 201
  GET    /materials            -- full catalog, oldest first
  DELETE /materials/{id}       -- remove from catalog; backing file removed in background
  GET    /uploads/{filename}   -- serve a stored upload back

Auth policy: none of these routes are gated by the auth guard. Materials
have no owner; anyone who can reach the API can list, add and delete.

A file takes precedence over a link when a request carries both. Uploaded
files are written under a generated name (see materials.registry.stored_name);
the user-supplied filename is kept only as the catalog title.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, File, Form, Request, UploadFile
from fastapi.responses import FileResponse

from api.models import MaterialResponse, MessageResponse
from core.errors import NotFound
from materials.registry import MaterialRegistry

router = APIRouter()


@router.post("/upload", response_model=MaterialResponse, status_code=201)
def upload(
    request: Request,
    file: Optional[UploadFile] = File(default=None),
    link: Optional[str] = Form(default=None),
) -> MaterialResponse:
    """Catalog an uploaded file or an external link. 400 if neither is present."""
    registry: MaterialRegistry = request.app.state.material_registry

    original_name: Optional[str] = None
    stored_filename: Optional[str] = None
    size_bytes = 0
    # Browsers send an empty, unnamed part when the file input is left blank.
    if file is not None and file.filename:
        original_name = file.filename
        stored_filename, size_bytes = registry.store_upload(file.file, original_name)

    material = registry.add(
        original_name=original_name,
        size_bytes=size_bytes,
        stored_filename=stored_filename,
        link=link,
    )
    return MaterialResponse.from_material(material)


@router.get("/materials", response_model=list[MaterialResponse])
def list_materials(request: Request) -> list[MaterialResponse]:
    registry: MaterialRegistry = request.app.state.material_registry
    return [MaterialResponse.from_material(m) for m in registry.list()]


@router.delete("/materials/{material_id}", response_model=MessageResponse)
def delete_material(request: Request, material_id: str, background_tasks: BackgroundTasks) -> MessageResponse:
    """Remove a material. 404 if the id is unknown.

    The catalog entry is gone as soon as this returns; removal of the backing
    file runs after the response and its failure is only logged.
    """
    registry: MaterialRegistry = request.app.state.material_registry
    # A non-numeric id names no material; answer 404 rather than a validation error.
    if not material_id.isdigit():
        raise NotFound(f"Material {material_id} not found.")
    registry.delete(int(material_id), schedule=background_tasks.add_task)
    return MessageResponse(message="Material deleted successfully")


@router.get("/uploads/{filename}", include_in_schema=False)
def serve_upload(request: Request, filename: str) -> FileResponse:
    registry: MaterialRegistry = request.app.state.material_registry
    return FileResponse(registry.resolve_upload(filename))
