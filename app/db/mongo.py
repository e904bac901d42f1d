# app/db/mongo.py
from motor.motor_asyncio import AsyncIOMotorClient
from dotenv import load_dotenv
import os

load_dotenv()

MONGO_URL = os.getenv("MONGODB_URL")
if not MONGO_URL:
    raise RuntimeError("MONGODB_URL env var is not set")

client = AsyncIOMotorClient(MONGO_URL)
db = client[os.getenv("MONGODB_DB", "giftgoals")]

# Collections
users_collection = db["users"]
goals_collection = db["goals"]                   # one document per recipient goal
notifications_collection = db["notifications"]   # giver/recipient inbox


# Call once at startup to ensure indexes exist.
async def init_db_indexes() -> None:
    # Goals: recipient's list, giver's pending approvals, gift back-reference
    await goals_collection.create_index([("user_id", 1), ("created_at", -1)])
    await goals_collection.create_index([("empowered_by", 1), ("approval_status", 1)])
    await goals_collection.create_index("experience_gift_id")

    # Notifications: inbox newest first
    await notifications_collection.create_index([("user_id", 1), ("created_at", -1)])
    await notifications_collection.create_index([("user_id", 1), ("clearable", 1)])
