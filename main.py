import logging
import os
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from accounts import AccountManager
from categories import CategoryManager
from database import db, ensure_indexes, get_db
from errors import ApiError, NotFound, StorageFailure
from products import ProductManager
from schemas import (
    CategoryRequest,
    ForgotPasswordRequest,
    LoginRequest,
    OrderStatusRequest,
    PhotoUpload,
    ProductFields,
    ProductFilters,
    ProfileUpdateRequest,
    RegisterRequest,
)
from security import get_current_user, require_admin
from utils import serialize_doc
from validators import MAX_PHOTO_BYTES

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("store")

# App init
app = FastAPI(title="Virtual Vault API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

API = "/api/v1"


@app.exception_handler(ApiError)
async def handle_api_error(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"success": False, "message": message})


# Dependencies
def category_manager(database=Depends(get_db)) -> CategoryManager:
    return CategoryManager(database)


def product_manager(database=Depends(get_db)) -> ProductManager:
    return ProductManager(database)


def account_manager(database=Depends(get_db)) -> AccountManager:
    return AccountManager(database)


def storage_failure(message: str, error: Exception, status_code: int = 500) -> StorageFailure:
    logger.exception(message)
    return StorageFailure(message, error, status_code=status_code)


def product_fields(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    quantity: Optional[str] = Form(None),
    shipping: Optional[str] = Form(None),
) -> ProductFields:
    return ProductFields(
        name=name,
        description=description,
        price=price,
        category=category,
        quantity=quantity,
        shipping=shipping,
    )


def read_photo(photo: Optional[UploadFile]) -> Optional[PhotoUpload]:
    if photo is None or not photo.filename:
        return None
    # One byte past the limit is enough for the size check to reject it
    data = photo.file.read(MAX_PHOTO_BYTES + 1)
    return PhotoUpload(data=data, content_type=photo.content_type or "application/octet-stream")


@app.on_event("startup")
def create_indexes():
    if db is None:
        return
    try:
        ensure_indexes(db)
    except Exception:
        logger.exception("Could not create indexes")


# Routes
@app.get("/")
def root():
    return {"message": "Welcome to the Virtual Vault API"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        if db is not None:
            response["database"] = "✅ Available"
            response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
            response["database_name"] = db.name
            response["connection_status"] = "Connected"
            try:
                collections = db.list_collection_names()
                response["collections"] = collections[:10]
                response["database"] = "✅ Connected & Working"
            except Exception as e:
                response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
        else:
            response["database"] = "⚠️  Available but not initialized"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:50]}"
    return response


# Auth
@app.post(f"{API}/auth/register", status_code=201)
def register(req: RegisterRequest, accounts: AccountManager = Depends(account_manager)):
    try:
        user = accounts.register(req)
    except ApiError:
        raise
    except Exception as e:
        raise storage_failure("Error in registration", e)
    return {"success": True, "message": "User registered successfully", "user": serialize_doc(user)}


@app.post(f"{API}/auth/login")
def login(req: LoginRequest, accounts: AccountManager = Depends(account_manager)):
    try:
        user, token = accounts.login(req.email, req.password)
    except ApiError:
        raise
    except Exception as e:
        raise storage_failure("Error in login", e)
    return {"success": True, "message": "login successfully", "user": serialize_doc(user), "token": token}


@app.post(f"{API}/auth/forgot-password")
def forgot_password(req: ForgotPasswordRequest, accounts: AccountManager = Depends(account_manager)):
    try:
        accounts.forgot_password(req)
    except ApiError:
        raise
    except Exception as e:
        raise storage_failure("Something went wrong", e)
    return {"success": True, "message": "Password reset successfully"}


@app.get(f"{API}/auth/test")
def protected_test(admin=Depends(require_admin)):
    return "Protected Routes"


@app.get(f"{API}/auth/user-auth")
def user_auth(user=Depends(get_current_user)):
    return {"ok": True}


@app.get(f"{API}/auth/admin-auth")
def admin_auth(admin=Depends(require_admin)):
    return {"ok": True}


@app.put(f"{API}/auth/profile")
def update_profile(req: ProfileUpdateRequest, user=Depends(get_current_user), accounts: AccountManager = Depends(account_manager)):
    try:
        updated = accounts.update_profile(user["_id"], req)
    except ApiError:
        raise
    except Exception as e:
        raise storage_failure("Error while updating profile", e, status_code=400)
    return {"success": True, "message": "Profile updated successfully", "updatedUser": serialize_doc(updated)}


@app.get(f"{API}/auth/orders")
def get_orders(user=Depends(get_current_user), accounts: AccountManager = Depends(account_manager)):
    try:
        orders = accounts.list_orders(buyer_id=user["_id"])
    except ApiError:
        raise
    except Exception as e:
        raise storage_failure("Error while getting orders", e)
    return [serialize_doc(o) for o in orders]


@app.get(f"{API}/auth/all-orders")
def get_all_orders(admin=Depends(require_admin), accounts: AccountManager = Depends(account_manager)):
    try:
        orders = accounts.list_orders()
    except ApiError:
        raise
    except Exception as e:
        raise storage_failure("Error while getting orders", e)
    return [serialize_doc(o) for o in orders]


@app.put(f"{API}/auth/order-status/{{order_id}}")
def update_order_status(order_id: str, req: OrderStatusRequest, admin=Depends(require_admin), accounts: AccountManager = Depends(account_manager)):
    try:
        order = accounts.update_order_status(order_id, req.status)
    except ApiError:
        raise
    except Exception as e:
        raise storage_failure("Error while updating order", e)
    return serialize_doc(order)


# Categories
@app.post(f"{API}/category", status_code=201)
def create_category(req: CategoryRequest, admin=Depends(require_admin), categories: CategoryManager = Depends(category_manager)):
    try:
        category = categories.create(req.name)
    except ApiError:
        raise
    except Exception as e:
        raise storage_failure("Error in Category", e)
    return {"success": True, "message": "new category created", "category": serialize_doc(category)}


@app.put(f"{API}/category/{{category_id}}")
def update_category(category_id: str, req: CategoryRequest, admin=Depends(require_admin), categories: CategoryManager = Depends(category_manager)):
    try:
        category = categories.update(category_id, req.name)
    except ApiError:
        raise
    except Exception as e:
        raise storage_failure("Error while updating category", e)
    return {"success": True, "message": "Category Updated Successfully", "category": serialize_doc(category)}


@app.delete(f"{API}/category/{{category_id}}")
def delete_category(category_id: str, admin=Depends(require_admin), categories: CategoryManager = Depends(category_manager)):
    try:
        categories.delete(category_id)
    except ApiError:
        raise
    except Exception as e:
        raise storage_failure("error while deleting category", e)
    return {"success": True, "message": "Category Deleted Successfully"}


@app.get(f"{API}/category")
def list_categories(categories: CategoryManager = Depends(category_manager)):
    try:
        found = categories.list_all()
    except Exception as e:
        raise storage_failure("Error while getting all categories", e)
    return {"success": True, "message": "All Categories List", "category": [serialize_doc(c) for c in found]}


@app.get(f"{API}/category/{{slug}}")
def get_category(slug: str, categories: CategoryManager = Depends(category_manager)):
    try:
        category = categories.get_by_slug(slug)
    except Exception as e:
        raise storage_failure("Error While getting Single Category", e)
    return {"success": True, "message": "Get Single Category Successfully", "category": serialize_doc(category)}


# Products
@app.post(f"{API}/product", status_code=201)
def create_product(
    fields: ProductFields = Depends(product_fields),
    photo: Optional[UploadFile] = File(None),
    admin=Depends(require_admin),
    products: ProductManager = Depends(product_manager),
):
    upload = read_photo(photo)
    try:
        product = products.create(fields, upload)
    except ApiError:
        raise
    except Exception as e:
        raise storage_failure("Error in creating product", e)
    return {"success": True, "message": "Product Created Successfully", "product": serialize_doc(product)}


@app.put(f"{API}/product/{{product_id}}")
def update_product(
    product_id: str,
    fields: ProductFields = Depends(product_fields),
    photo: Optional[UploadFile] = File(None),
    admin=Depends(require_admin),
    products: ProductManager = Depends(product_manager),
):
    upload = read_photo(photo)
    try:
        product = products.update(product_id, fields, upload)
    except ApiError:
        raise
    except Exception as e:
        raise storage_failure("Error in Update product", e)
    return {"success": True, "message": "Product Updated Successfully", "product": serialize_doc(product)}


@app.delete(f"{API}/product/{{product_id}}")
def delete_product(product_id: str, admin=Depends(require_admin), products: ProductManager = Depends(product_manager)):
    try:
        products.delete(product_id)
    except ApiError:
        raise
    except Exception as e:
        raise storage_failure("Error while deleting product", e)
    return {"success": True, "message": "Product Deleted successfully"}


@app.get(f"{API}/product")
def list_products(products: ProductManager = Depends(product_manager)):
    try:
        found = products.list_recent()
    except Exception as e:
        raise storage_failure("Error in getting products", e)
    return {
        "success": True,
        "counTotal": len(found),
        "message": "All Products",
        "products": [serialize_doc(p) for p in found],
    }


@app.get(f"{API}/product/count")
def product_count(products: ProductManager = Depends(product_manager)):
    try:
        total = products.count()
    except Exception as e:
        raise storage_failure("Error in product count", e, status_code=400)
    return {"success": True, "total": total}


@app.get(f"{API}/product/list")
@app.get(f"{API}/product/list/{{page}}")
def product_list(page: Optional[str] = None, products: ProductManager = Depends(product_manager)):
    try:
        found = products.list_page(page)
    except Exception as e:
        raise storage_failure("error in per page ctrl", e, status_code=400)
    return {"success": True, "products": [serialize_doc(p) for p in found]}


@app.post(f"{API}/product/filters")
def filter_products(req: ProductFilters, products: ProductManager = Depends(product_manager)):
    try:
        found = products.filter(req.checked, req.radio)
    except Exception as e:
        raise storage_failure("Error While Filtering Products", e, status_code=400)
    return {"success": True, "products": [serialize_doc(p) for p in found]}


@app.get(f"{API}/product/search/{{keyword}}")
def search_products(keyword: str, products: ProductManager = Depends(product_manager)):
    try:
        found = products.search(keyword)
    except Exception as e:
        raise storage_failure("Error In Search Product API", e, status_code=400)
    return [serialize_doc(p) for p in found]


@app.get(f"{API}/product/related/{{product_id}}/{{category_id}}")
def related_products(product_id: str, category_id: str, products: ProductManager = Depends(product_manager)):
    try:
        found = products.related(product_id, category_id)
    except Exception as e:
        raise storage_failure("Error while getting related product", e, status_code=400)
    return {"success": True, "products": [serialize_doc(p) for p in found]}


@app.get(f"{API}/product/category/{{slug}}")
def products_by_category(slug: str, products: ProductManager = Depends(product_manager)):
    try:
        category, found = products.by_category_slug(slug)
    except Exception as e:
        raise storage_failure("Error While Getting products", e, status_code=400)
    if category is None:
        raise NotFound("Category not found", category=None, products=[])
    return {
        "success": True,
        "category": serialize_doc(category),
        "products": [serialize_doc(p) for p in found],
    }


@app.get(f"{API}/product/photo/{{product_id}}")
def product_photo(product_id: str, products: ProductManager = Depends(product_manager)):
    try:
        photo = products.get_photo(product_id)
    except ApiError:
        raise
    except Exception as e:
        raise storage_failure("Error while getting photo", e)
    return Response(content=bytes(photo["data"]), media_type=photo.get("content_type"))


@app.get(f"{API}/product/{{slug}}")
def get_product(slug: str, products: ProductManager = Depends(product_manager)):
    try:
        product = products.get_by_slug(slug)
    except ApiError:
        raise
    except Exception as e:
        raise storage_failure("Error while getting single product", e)
    return {"success": True, "message": "Single Product Fetched", "product": serialize_doc(product)}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
