import logging

from bson import ObjectId
from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from database import create_document, get_db, get_documents, is_valid_id, serialize
from errors import (
    AdminAlreadyExists, DuplicateEmail, InvalidCredentials, MalformedId,
    MissingFields, NotFound, store_errors,
)
from schemas import Credentials, LoginRequest, User, UserUpdateRequest
from security import hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

PUBLIC_PROJECTION = {"password_hash": 0, "__v": 0}
SETUP_MARKER = {"_id": "admin"}


def user_object_id(user_id: str) -> ObjectId:
    if not is_valid_id(user_id):
        raise MalformedId("Invalid User ID format.")
    return ObjectId(user_id)


def _claim_admin_setup(db: Database) -> None:
    """Atomically take the one-time admin bootstrap slot."""
    if db["user"].find_one({"role": "admin"}, {"_id": 1}):
        raise AdminAlreadyExists()
    try:
        db["setup"].insert_one(dict(SETUP_MARKER))
    except DuplicateKeyError:
        raise AdminAlreadyExists()


@router.post("/admin/setup", status_code=201)
def setup_admin(payload: Credentials, db: Database = Depends(get_db)):
    if payload.missing():
        raise MissingFields()
    with store_errors("Failed to create admin"):
        _claim_admin_setup(db)
        user = User(name=payload.name, email=payload.email,
                    password_hash=hash_password(payload.password), role="admin")
        try:
            doc = create_document(db, "user", user)
        except DuplicateKeyError:
            db["setup"].delete_one(SETUP_MARKER)
            raise DuplicateEmail()
        except PyMongoError:
            # no admin was written, so setup must stay open for a retry
            db["setup"].delete_one(SETUP_MARKER)
            raise
    logger.info("Admin account created for %s", doc["email"])
    return {"message": "Admin user created successfully!", "user": serialize(doc)}


@router.post("/register", status_code=201)
def register(payload: Credentials, db: Database = Depends(get_db)):
    if payload.missing():
        raise MissingFields()
    user = User(name=payload.name, email=payload.email,
                password_hash=hash_password(payload.password), role="customer")
    with store_errors("Failed to create user account"):
        try:
            doc = create_document(db, "user", user)
        except DuplicateKeyError:
            raise DuplicateEmail()
    logger.info("Registered customer %s", doc["_id"])
    return {"id": str(doc["_id"]), "name": doc["name"], "email": doc["email"]}


@router.post("/admin/login")
def admin_login(payload: LoginRequest, db: Database = Depends(get_db)):
    with store_errors("Login failed"):
        user = db["user"].find_one({"email": payload.email, "role": "admin"})
    if not user or not verify_password(payload.password, user.get("password_hash", "")):
        logger.warning("Rejected admin login for %s", payload.email)
        raise InvalidCredentials()
    return {"message": "Admin login successful", "user": user["name"]}


@router.get("/users")
def list_users(db: Database = Depends(get_db)):
    with store_errors("Failed to fetch user data"):
        docs = get_documents(db, "user", projection=PUBLIC_PROJECTION)
    return [serialize(d) for d in docs]


@router.get("/users/{user_id}")
def get_user(oid: ObjectId = Depends(user_object_id), db: Database = Depends(get_db)):
    with store_errors("Failed to fetch user data"):
        doc = db["user"].find_one({"_id": oid}, PUBLIC_PROJECTION)
    if not doc:
        raise NotFound("User not found.")
    return serialize(doc)


@router.put("/users/{user_id}")
def update_user(payload: UserUpdateRequest, oid: ObjectId = Depends(user_object_id),
                db: Database = Depends(get_db)):
    changes = payload.model_dump(exclude_none=True)
    with store_errors("Failed to update user"):
        if not changes:
            doc = db["user"].find_one({"_id": oid}, PUBLIC_PROJECTION)
        else:
            try:
                doc = db["user"].find_one_and_update(
                    {"_id": oid},
                    {"$set": changes},
                    projection=PUBLIC_PROJECTION,
                    return_document=ReturnDocument.AFTER,
                )
            except DuplicateKeyError:
                raise DuplicateEmail("Email already exists.")
    if not doc:
        raise NotFound("User not found.")
    return serialize(doc)


@router.delete("/users/{user_id}")
def delete_user(oid: ObjectId = Depends(user_object_id), db: Database = Depends(get_db)):
    with store_errors("Failed to delete user"):
        result = db["user"].delete_one({"_id": oid})
    if result.deleted_count == 0:
        raise NotFound("User not found.")
    logger.info("Deleted user %s", oid)
    return {"message": "User deleted successfully", "id": str(oid)}
