from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from stock_analytics.dependencies import get_db, get_result_cache
from stock_analytics.schemas.snapshot import BatchRead, IngestResult, SnapshotUploadRequest
from stock_analytics.services import analytics_service

router = APIRouter(prefix="/inventory", tags=["Inventory"])


@router.get("/summary")
def inventory_summary(
    batch_id: Optional[List[str]] = Query(None, description="Upload id(s); omit for all processed uploads"),
    from_date: Optional[str] = Query(None, description="YYYY-MM-DD, inclusive"),
    to_date: Optional[str] = Query(None, description="YYYY-MM-DD, inclusive"),
    item_group: Optional[str] = Query(None),
    category: Optional[List[str]] = Query(None, description="Category value or label; repeatable"),
    warehouse: Optional[str] = Query(None),
    granularity: str = Query("day", description="day, week or month"),
    db: Session = Depends(get_db),
    cache=Depends(get_result_cache),
):
    return analytics_service.get_summary(
        db,
        batch_selector=batch_id,
        from_date=from_date,
        to_date=to_date,
        item_group=item_group,
        categories=category,
        warehouse=warehouse,
        granularity=granularity,
        cache=cache,
    )


@router.get("/fast-moving-skus")
def fast_moving_skus(
    warehouse: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    min_avg_qty: Optional[float] = Query(None, ge=0),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    cache=Depends(get_result_cache),
):
    return analytics_service.get_fast_moving_skus(
        db,
        warehouse=warehouse,
        category=category,
        min_avg_qty=min_avg_qty,
        limit=limit,
        cache=cache,
    )


@router.get("/zero-order-products")
def zero_order_products(
    warehouse: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    min_days_in_stock: Optional[int] = Query(None, ge=0),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    cache=Depends(get_result_cache),
):
    return analytics_service.get_zero_order_products(
        db,
        warehouse=warehouse,
        category=category,
        min_days_in_stock=min_days_in_stock,
        limit=limit,
        cache=cache,
    )


@router.get("/uploads", response_model=List[BatchRead])
def list_uploads(db: Session = Depends(get_db)):
    return analytics_service.list_batches(db)


@router.post("/uploads", response_model=IngestResult, status_code=201)
def create_upload(
    payload: SnapshotUploadRequest,
    db: Session = Depends(get_db),
    cache=Depends(get_result_cache),
):
    return analytics_service.ingest_snapshots(db, payload.file_name, payload.rows, cache=cache)


@router.delete("/uploads/{batch_id}", status_code=204)
def delete_upload(batch_id: str, db: Session = Depends(get_db), cache=Depends(get_result_cache)):
    analytics_service.delete_batch(db, batch_id, cache=cache)
    return Response(status_code=204)
