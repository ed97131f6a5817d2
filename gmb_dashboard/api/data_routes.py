"""GMB Dashboard: Collection CRUD Routes.

Insights, doctor profiles and location verification rows. Every read and
write goes through the caller's ScopedRepository.
"""

from typing import Any, Dict, List, Type, Union

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from sqlmodel import SQLModel

from gmb_dashboard.api.deps import get_repository, require_global
from gmb_dashboard.connectors.documents.transformer import coerce_fields, transform_documents
from gmb_dashboard.core.errors import ok
from gmb_dashboard.models.document_models import COLLECTIONS
from gmb_dashboard.repositories.scoped import ScopedRepository
from gmb_dashboard.core.logging import get_logger

logger = get_logger("api.data")

router = APIRouter(prefix="/api", tags=["Data"])


def _register(collection: str, model: Type[SQLModel]) -> None:
    path = f"/{collection}"

    @router.get(path, name=f"list_{collection}")
    async def list_rows(request: Request, repo: ScopedRepository = Depends(get_repository)):
        # Query parameters naming a column become equality filters
        equals = {k: v for k, v in request.query_params.items() if k in model.model_fields}
        rows = repo.find(model, **equals)
        return ok([r.model_dump() for r in rows], count=len(rows))

    @router.get(path + "/{row_id}", name=f"get_{collection}")
    async def get_row(row_id: int, repo: ScopedRepository = Depends(get_repository)):
        row = repo.find_one(model, row_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Record not found")
        return ok(row.model_dump())

    @router.post(path, status_code=201, name=f"create_{collection}")
    async def create_row(
        payload: Dict[str, Any] = Body(...),
        repo: ScopedRepository = Depends(get_repository),
    ):
        row = repo.save(model(**coerce_fields(model, payload)))
        return ok(row.model_dump())

    @router.put(path + "/{row_id}", name=f"update_{collection}")
    async def update_row(
        row_id: int,
        payload: Dict[str, Any] = Body(...),
        repo: ScopedRepository = Depends(get_repository),
    ):
        row = repo.update(model, row_id, coerce_fields(model, payload))
        if row is None:
            raise HTTPException(status_code=404, detail="Record not found")
        return ok(row.model_dump())

    @router.delete(path + "/{row_id}", name=f"delete_{collection}")
    async def delete_row(row_id: int, repo: ScopedRepository = Depends(get_repository)):
        if not repo.delete(model, row_id):
            raise HTTPException(status_code=404, detail="Record not found")
        return ok(message="Deleted successfully")


for _collection, _model in COLLECTIONS.items():
    _register(_collection, _model)


@router.post("/import/{collection}", dependencies=[Depends(require_global)])
async def import_documents(
    collection: str,
    payload: Union[List[Dict[str, Any]], Dict[str, Any]] = Body(...),
    repo: ScopedRepository = Depends(get_repository),
):
    """Bulk load raw reporting documents (sheet / document-store exports)."""
    if collection not in COLLECTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown collection: {collection}")

    documents = payload.get("documents", []) if isinstance(payload, dict) else payload
    if not isinstance(documents, list):
        raise HTTPException(status_code=400, detail="documents must be a list")

    rows = transform_documents(collection, documents)
    imported = repo.save_all(rows)
    logger.info(f"Imported {imported} {collection} rows", extra={"collection": collection})
    return ok({"collection": collection, "imported": imported, "skipped": len(documents) - imported})
