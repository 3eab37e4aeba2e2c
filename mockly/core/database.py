from pymongo import MongoClient
from datetime import datetime
from bson.objectid import ObjectId
from bson.errors import InvalidId
from mockly.core.config import settings

import logging
import time
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError, PyMongoError

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
COMPLETED_INTERVIEWS_COLLECTION = "completed_interviews"

client = None
db = None
last_failure = None

# Seconds to wait after a failed connection before trying again
RECONNECT_COOLDOWN = 30

def create_database_connection():
    """Create MongoDB connection with error handling and retries"""
    max_retries = 3
    retry_delay = 2

    for attempt in range(max_retries):
        try:
            client = MongoClient(
                settings.MONGO_URI,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=10000,
                socketTimeoutMS=20000,
                maxPoolSize=10,
                retryWrites=True
            )

            client.admin.command('ping')
            logger.info("✅ [DB] MongoDB connection established successfully")
            return client

        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(f"❌ [DB] MongoDB connection attempt {attempt + 1} failed: {e}")
            if attempt < max_retries - 1:
                logger.info(f"Retrying in {retry_delay} seconds...")
                time.sleep(retry_delay)
                retry_delay *= 2  # Exponential backoff
            else:
                logger.critical("💥 [DB] All MongoDB connection attempts failed")
                return None
        except PyMongoError as e:
            logger.critical(f"💥 [DB] Unexpected database error: {e}")
            return None

def get_database():
    """Connect on first use so importing the app never blocks on MongoDB.

    A failed attempt is remembered for ``RECONNECT_COOLDOWN`` seconds so
    callers get ``None`` at once instead of repeating the retry loop.
    """
    global client, db, last_failure
    if client is None:
        if last_failure is not None and time.monotonic() - last_failure < RECONNECT_COOLDOWN:
            return None
        client = create_database_connection()
        if client is None:
            last_failure = time.monotonic()
            db = None
            return None
        last_failure = None
        db = client[settings.MONGO_DB_NAME]
    return db

def get_collection(name: str):
    database = get_database()
    if database is None:
        return None
    return database[name]

def check_database_health():
    """Check if database connection is healthy"""
    global client, db

    try:
        if get_database() is None:
            return False
        client.admin.command('ping')
        return True
    except PyMongoError as e:
        logger.error(f"[DB] Database health check failed: {e}")
        logger.info("[DB] Attempting database reconnection...")
        client = None
        db = None
        return get_database() is not None

def parse_object_id(value: str):
    """Malformed ids are indistinguishable from missing ones"""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None

class UserDB:
    """User database operations"""

    @staticmethod
    def get_user_by_email(email: str):
        users_collection = get_collection(USERS_COLLECTION)
        if users_collection is None:
            logger.error("[DB] Database unavailable for get_user_by_email")
            return None

        try:
            return users_collection.find_one({"email": email})
        except PyMongoError as e:
            logger.error(f"[DB] Database error in get_user_by_email: {e}")
            return None

    @staticmethod
    def create_user(name: str, email: str, hashed_password: str):
        users_collection = get_collection(USERS_COLLECTION)
        if users_collection is None:
            raise ConnectionFailure("Database unavailable")

        user = {
            "name": name,
            "email": email,
            "hashed_password": hashed_password,
            "created_at": datetime.now()
        }
        result = users_collection.insert_one(user)
        user["_id"] = result.inserted_id
        return user

    @staticmethod
    def get_user_by_id(user_id: str):
        users_collection = get_collection(USERS_COLLECTION)
        if users_collection is None:
            logger.error("[DB] Database unavailable for get_user_by_id")
            return None

        object_id = parse_object_id(user_id)
        if object_id is None:
            return None

        try:
            return users_collection.find_one({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"[DB] Database error in get_user_by_id: {e}")
            return None
