"""POST/GET/DELETE /api/datasets — upload, list and query parsed data files."""
import logging
from fastapi import APIRouter, File, HTTPException, UploadFile

from core.file_parser import parse_upload, query_rows
from core.data_quality import collect_column_names
from core.store import generate_id, get_store
from models.dataset import Dataset, DatasetSummary, DataQuery, QueryResult

router = APIRouter()
logger = logging.getLogger(__name__)

DATASETS_STORE = "datasets"


def get_dataset(dataset_id: str) -> Dataset:
    doc = get_store().get(DATASETS_STORE, dataset_id)
    if doc is None:
        raise HTTPException(404, detail=f"Dataset '{dataset_id}' not found. Please upload it first.")
    return Dataset.model_validate(doc)


def _summary(ds: Dataset) -> DatasetSummary:
    return DatasetSummary(
        id=ds.id,
        name=ds.name,
        file_type=ds.file_type,
        columns=ds.columns,
        row_count=ds.row_count,
        uploaded_at=ds.uploaded_at,
    )


@router.post("/datasets", response_model=DatasetSummary, status_code=201)
async def upload_dataset(file: UploadFile = File(...)):
    """
    1. Validate extension and size
    2. Parse CSV / JSON into rows
    3. Persist the dataset
    """
    raw = await file.read()
    file_type, rows = parse_upload(file.filename or "", raw)

    ds = Dataset(
        id=generate_id(),
        name=file.filename or "upload",
        file_type=file_type,
        columns=collect_column_names(rows),
        rows=rows,
        row_count=len(rows),
    )
    get_store().put(DATASETS_STORE, ds.id, ds.model_dump(mode="json"))
    logger.info("Stored dataset %s (%s, %d rows)", ds.id, ds.name, ds.row_count)
    return _summary(ds)


@router.get("/datasets", response_model=list[DatasetSummary])
def list_datasets():
    return [_summary(Dataset.model_validate(d)) for d in get_store().get_all(DATASETS_STORE)]


@router.get("/datasets/{dataset_id}", response_model=DatasetSummary)
def get_dataset_summary(dataset_id: str):
    return _summary(get_dataset(dataset_id))


@router.post("/datasets/{dataset_id}/query", response_model=QueryResult)
def query_dataset(dataset_id: str, query: DataQuery):
    ds = get_dataset(dataset_id)
    return query_rows(ds.rows, query)


@router.delete("/datasets/{dataset_id}")
def delete_dataset(dataset_id: str):
    if not get_store().delete(DATASETS_STORE, dataset_id):
        raise HTTPException(404, detail=f"Dataset '{dataset_id}' not found.")
    return {"message": f"Dataset '{dataset_id}' removed successfully."}
