from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from vandra.database import get_db
from vandra.scheduler import get_scheduler_status
from vandra.services.ai_service import AIService

router = APIRouter()


@router.get("/health")
async def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"

    return {
        "status": "ok" if db_status == "healthy" else "degraded",
        "database": db_status,
        "ai_configured": AIService.is_configured(),
        "ai_provider": AIService.get_provider().value,
        "scheduler": get_scheduler_status(),
    }
