import asyncio

from src.storage.persistence import PersistenceLayer


async def init_models():
    persistence = PersistenceLayer()
    await persistence.init(create_schema=True)
    await persistence.close()
    print("Database tables created.")

if __name__ == "__main__":
    asyncio.run(init_models())
