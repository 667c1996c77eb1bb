from datetime import date, timedelta

from stock_analytics.database import Base, build_engine
from stock_analytics.database.session import make_session_factory
from stock_analytics.models import import_all_models
from stock_analytics.schemas.snapshot import SaleRecordIn, SkuSnapshotIn
from stock_analytics.services.cache import ResultCache

DAY1 = date(2024, 3, 4)


def day(offset):
    return DAY1 + timedelta(days=offset)


def make_session():
    import_all_models()
    engine = build_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    Session = make_session_factory(engine)
    return engine, Session()


def make_cache():
    return ResultCache(max_entries=32, enabled=True)


def sku_row(item, quantities, *, warehouse="WH-1", item_group="Kitchen", cbm=1.0, total=False, category=None):
    """``quantities`` maps day offsets to values; a ``None`` value is a blank cell."""
    readings = [
        {"date": day(offset), "qty": qty}
        for offset, qty in sorted(quantities.items())
        if qty is not None
    ]
    payload = {
        "item": item,
        "warehouse": warehouse,
        "item_group": item_group,
        "cbm_per_unit": cbm,
        "is_total_row": total,
        "readings": readings,
    }
    if category is not None:
        payload["product_category"] = category
    return SkuSnapshotIn.model_validate(payload)


def sale(item, offset, quantity, cbm=0.0):
    return SaleRecordIn(item=item, shipment_date=day(offset), quantity=quantity, cbm=cbm)
