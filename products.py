import logging

from bson import ObjectId
from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database

from database import create_document, get_db, get_documents, is_valid_id, now, serialize
from errors import MalformedId, NotFound, store_errors
from schemas import Product, ProductUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products")

PUBLIC_PROJECTION = {"__v": 0}
IN_STOCK = {"stock": {"$gt": 0}}


def product_object_id(product_id: str) -> ObjectId:
    if not is_valid_id(product_id):
        raise MalformedId("Invalid Product ID format.")
    return ObjectId(product_id)


@router.post("", status_code=201)
def create_product(payload: Product, db: Database = Depends(get_db)):
    with store_errors("Failed to create product"):
        doc = create_document(db, "product", payload, timestamps=True)
    logger.info("Created product %s (%s)", doc["_id"], doc["name"])
    return serialize(doc)


@router.get("")
def list_products(db: Database = Depends(get_db)):
    # out-of-stock products stay stored but are hidden from the catalogue
    with store_errors("Failed to fetch products"):
        docs = get_documents(db, "product", IN_STOCK, PUBLIC_PROJECTION)
    return [serialize(d) for d in docs]


@router.get("/{product_id}")
def get_product(oid: ObjectId = Depends(product_object_id), db: Database = Depends(get_db)):
    with store_errors("Failed to fetch product"):
        doc = db["product"].find_one({"_id": oid}, PUBLIC_PROJECTION)
    if not doc:
        raise NotFound("Product not found.")
    return serialize(doc)


@router.put("/{product_id}")
def update_product(payload: ProductUpdateRequest, oid: ObjectId = Depends(product_object_id),
                   db: Database = Depends(get_db)):
    changes = payload.changes()
    with store_errors("Failed to update product"):
        if not changes:
            doc = db["product"].find_one({"_id": oid}, PUBLIC_PROJECTION)
        else:
            changes["updatedAt"] = now()
            doc = db["product"].find_one_and_update(
                {"_id": oid},
                {"$set": changes},
                projection=PUBLIC_PROJECTION,
                return_document=ReturnDocument.AFTER,
            )
    if not doc:
        raise NotFound("Product not found.")
    return serialize(doc)


@router.delete("/{product_id}")
def delete_product(oid: ObjectId = Depends(product_object_id), db: Database = Depends(get_db)):
    with store_errors("Failed to delete product"):
        result = db["product"].delete_one({"_id": oid})
    if result.deleted_count == 0:
        raise NotFound("Product not found.")
    logger.info("Deleted product %s", oid)
    return {"message": "Product deleted successfully", "id": str(oid)}
