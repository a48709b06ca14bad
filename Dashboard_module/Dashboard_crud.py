"""
Dashboard read models - aggregate counts across animals, collars, fences and alerts
"""
from sqlalchemy.orm import Session

from Alert_module import Alert_crud
from Alert_module.Alert_model import ALERT_STATUS_ACTIVE
from Animal_module.Animal_model import Animal
from Fence_module import Fence_crud
from Location_module import Location_crud
from Login_module.Utils.datetime_utils import to_utc_isoformat

RECENT_ALERT_COUNT = 2


def build_summary(db: Session, farm_id: int) -> dict:
    total_animals = (
        db.query(Animal)
        .filter(Animal.farm_id == farm_id, Animal.is_active == True)
        .count()
    )
    recent_alerts = Alert_crud.list_alerts(db, farm_id, status=ALERT_STATUS_ACTIVE, limit=RECENT_ALERT_COUNT)

    return {
        "farm": {"id": farm_id},
        "summary": {
            "totalAnimals": total_animals,
            "totalCollars": Location_crud.count_reporting_collars(db),
            "totalTowers": Fence_crud.count_active_fences(db, farm_id),
            "totalAlerts": Alert_crud.count_active_alerts(db, farm_id),
        },
        "alerts": [
            {
                "id": a.id,
                "alert_type": a.alert_type,
                "severity": a.severity,
                "title": a.title,
                "message": a.message,
                "timestamp": to_utc_isoformat(a.triggered_at),
            }
            for a in recent_alerts
        ],
    }
