import asyncio
from uuid import UUID

from src.audit.models import AuditEventType
from src.cases.schemas import CaseData
from src.storage.persistence import PersistenceLayer

DEMO_CASE_ID = UUID("00000000-0000-0000-0000-000000000001")


async def seed_data():
    persistence = PersistenceLayer()
    await persistence.init()
    try:
        case = await persistence.get_case(DEMO_CASE_ID)
        if not case:
            print("Creating Demo Case...")
            case = await persistence.save_case(CaseData(
                id=DEMO_CASE_ID,
                name="State v. Doe",
                description="Demo workspace for evidence ingestion.",
                is_active=True,
            ))
            await persistence.record_audit(case.id, AuditEventType.CASE_CREATED, detail={"name": case.name})
        else:
            print("Demo Case already exists.")
    finally:
        await persistence.close()

if __name__ == "__main__":
    asyncio.run(seed_data())
