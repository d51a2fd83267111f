# Overview: Flask routes for the web build; a thin JSON surface over the same services as IPC.

from flask import Blueprint, current_app, g, jsonify, request

from ibexpos import messages
from ibexpos.decorators import require_auth, require_customer, require_customer_match, require_staff
from ibexpos.extensions import db
from ibexpos.services import auth_service, customer_auth_service, customer_portal_service, store_service
from ibexpos.services.errors import AuthError, ServiceError


web_bp = Blueprint("web", __name__, url_prefix="/api")


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _service_error(e: ServiceError):
    db.session.rollback()
    return jsonify({"error": e.message}), e.status_code


def _unexpected(action: str):
    db.session.rollback()
    current_app.logger.exception("%s failed", action)
    return jsonify({"error": "Internal server error"}), 500


@web_bp.post("/auth/login")
def login():
    data = _json_body()
    email = data.get("email")
    password = data.get("password")
    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400

    try:
        result = auth_service.login(
            email,
            password,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        return jsonify(result), 200
    except ServiceError as e:
        return _service_error(e)
    except Exception:
        return _unexpected("Login")


@web_bp.post("/auth/logout")
@require_auth
def logout():
    auth_service.logout(g.session_token)
    return jsonify({"success": True}), 200


@web_bp.post("/auth/get-user")
@require_staff
def get_user():
    user_id = _json_body().get("userId")
    if not user_id:
        return jsonify({"error": "userId is required"}), 400

    try:
        user = auth_service.get_visible_user(int(user_id), g.current_user)
        return jsonify(user.to_dict()), 200
    except ServiceError as e:
        return _service_error(e)
    except (TypeError, ValueError):
        return jsonify({"error": "userId is required"}), 400


@web_bp.post("/customer-auth/login")
def customer_login():
    data = _json_body()
    phone = data.get("phone")
    password = data.get("password")
    if not phone or not password:
        return jsonify({"error": "Phone and password are required"}), 400

    try:
        result = customer_auth_service.login(
            phone,
            password,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        return jsonify(result), 200
    except AuthError:
        # Do not reveal which of the two was wrong
        return jsonify({"error": messages.PHONE_OR_PASSWORD_WRONG}), 401
    except ServiceError as e:
        return _service_error(e)
    except Exception:
        return _unexpected("Customer login")


@web_bp.post("/customer-portal/get-orders")
@require_customer
def get_orders():
    data = _json_body()
    if not data.get("customerId") or not data.get("storeId"):
        return jsonify({"error": "customerId and storeId are required"}), 400

    try:
        customer_id = require_customer_match(data["customerId"])
        orders = customer_portal_service.get_orders(customer_id, int(data["storeId"]))
        return jsonify(orders), 200
    except ServiceError as e:
        return _service_error(e)
    except (TypeError, ValueError):
        return jsonify({"error": "customerId and storeId are required"}), 400


@web_bp.get("/customer-portal/get-products")
def get_products():
    store_id = request.args.get("storeId", type=int)
    if not store_id:
        return jsonify({"error": "storeId is required"}), 400

    try:
        return jsonify(customer_portal_service.get_products(store_id)), 200
    except ServiceError as e:
        return _service_error(e)


@web_bp.post("/customer-portal/get-store-details")
@require_customer
def get_store_details():
    data = _json_body()
    if not data.get("customerId") or not data.get("storeId"):
        return jsonify({"error": "customerId and storeId are required"}), 400

    try:
        customer_id = require_customer_match(data["customerId"])
        details = customer_portal_service.get_store_details(customer_id, int(data["storeId"]))
        return jsonify(details), 200
    except ServiceError as e:
        return _service_error(e)
    except (TypeError, ValueError):
        return jsonify({"error": "customerId and storeId are required"}), 400


@web_bp.get("/stores/get-by-slug")
def get_store_by_slug():
    slug = (request.args.get("slug") or "").strip()
    if not slug:
        return jsonify({"error": "slug is required"}), 400

    store = store_service.get_store_by_slug(slug)
    if not store:
        return jsonify({"error": messages.STORE_NOT_FOUND}), 404
    return jsonify(store.to_public_dict()), 200
