######################################################################
# Copyright 2016, 2024 John J. Rofrano. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
######################################################################

"""
Coupon Directory Service

This service implements a REST API for the coupon directory:
public listing of Categories and Coupons, admin-only management of
both, admin login, and anonymous per-category ratings.
"""

# Third-party
from flask import abort, current_app as app, jsonify, request, url_for
from flask_jwt_extended import jwt_required

# First-party
from coupon_service import ratings
from coupon_service.common import status  # HTTP status codes
from coupon_service.common.identity import current_identity
from coupon_service.common.security import issue_admin_token
from coupon_service.models import Admin, Category, Coupon, DataValidationError, DuplicateSlug


######################################################################
# Root endpoint
######################################################################
@app.route("/", methods=["GET"])
def index():
    """Root URL response"""
    return (
        jsonify(
            name="Coupon Directory Service",
            version="1.0.0",
            description="RESTful service for coupons, categories and category ratings",
            paths={
                "categories": "/api/categories",
                "coupons": "/api/coupons",
                "rating": "/api/rating/<category_id>",
                "rate": "/api/rate/<category_id>",
            },
        ),
        status.HTTP_200_OK,
    )


######################################################################
# ADMIN LOGIN
######################################################################
@app.route("/api/auth/login", methods=["POST"])
def login():
    """
    Exchange admin credentials for a JWT
    Body: {"email": ..., "password": ...}
    """
    app.logger.info("Request to log in")
    check_content_type("application/json")

    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        abort(status.HTTP_400_BAD_REQUEST, "Invalid credentials")
    email = str(data.get("email") or "").strip()
    password = str(data.get("password") or "")

    admin = Admin.find_by_email(email) if email else None
    if not admin or not admin.check_password(password):
        app.logger.warning("Failed login for %s", email or "<blank>")
        abort(status.HTTP_400_BAD_REQUEST, "Invalid credentials")

    return (
        jsonify(message="Login successful", token=issue_admin_token(admin), email=admin.email),
        status.HTTP_200_OK,
    )


######################################################################
# LIST Categories
######################################################################
@app.route("/api/categories", methods=["GET"])
def list_categories():
    """List all Categories, newest first"""
    app.logger.info("Request to list Categories")
    results = [c.serialize() for c in Category.all()]
    return jsonify(results), status.HTTP_200_OK


######################################################################
# READ a Category
######################################################################
@app.route("/api/categories/<int:category_id>", methods=["GET"])
def get_categories(category_id: int):
    """
    Get a Category by id
    """
    app.logger.info("Request to get Category with id [%s]", category_id)
    category = _category_or_404(category_id)
    return jsonify(category.serialize()), status.HTTP_200_OK


@app.route("/api/categories/slug/<string:slug>", methods=["GET"])
def get_category_by_slug(slug: str):
    """
    Get a Category by slug (brand pages use /brand/<slug>)
    """
    app.logger.info("Request to get Category with slug [%s]", slug)
    category = Category.find_by_slug(slug)
    if not category:
        abort(status.HTTP_404_NOT_FOUND, f"Category with slug '{slug}' was not found.")
    return jsonify(category.serialize()), status.HTTP_200_OK


######################################################################
# CREATE a Category
######################################################################
@app.route("/api/categories", methods=["POST"])
@jwt_required()
def create_categories():
    """
    Create a Category
    The slug is generated from the title
    """
    app.logger.info("Request to Create a Category")
    check_content_type("application/json")

    category = Category()
    try:
        data = request.get_json()
        app.logger.info("Processing: %s", data)
        category.deserialize(data)
        category.create()
    except DuplicateSlug as error:
        abort(status.HTTP_409_CONFLICT, str(error))
    except DataValidationError as error:
        abort(status.HTTP_400_BAD_REQUEST, str(error))

    location_url = url_for("get_categories", category_id=category.id, _external=True)
    return (
        jsonify(category.serialize()),
        status.HTTP_201_CREATED,
        {"Location": location_url},
    )


######################################################################
# UPDATE a Category
######################################################################
@app.route("/api/categories/<int:category_id>", methods=["PUT"])
@jwt_required()
def update_categories(category_id: int):
    """
    Update a Category
    Only the fields present in the payload change; a new title also changes the slug
    """
    app.logger.info("Request to update Category with id [%s]", category_id)
    check_content_type("application/json")

    category = _category_or_404(category_id)
    try:
        data = request.get_json()
        app.logger.info("Processing: %s", data)
        category.deserialize(data, partial=True)
        category.update()
    except DuplicateSlug as error:
        abort(status.HTTP_409_CONFLICT, str(error))
    except DataValidationError as error:
        abort(status.HTTP_400_BAD_REQUEST, str(error))

    return jsonify(category.serialize()), status.HTTP_200_OK


######################################################################
# DELETE a Category
######################################################################
@app.route("/api/categories/<int:category_id>", methods=["DELETE"])
@jwt_required()
def delete_categories(category_id: int):
    """
    Delete a Category by id
    Coupons keep existing without a category; ratings are kept
    """
    app.logger.info("Request to delete Category with id [%s]", category_id)
    category = _category_or_404(category_id)
    category.delete()
    return "", status.HTTP_204_NO_CONTENT


######################################################################
# LIST Coupons
######################################################################
@app.route("/api/coupons", methods=["GET"])
def list_coupons():
    """
    List Coupons, newest first
    ?category=<id> limits the list to one Category
    """
    app.logger.info("Request to list Coupons")
    category_id = request.args.get("category")
    if category_id:
        app.logger.info("Filtering by category=%s", category_id)
        coupons = Coupon.find_by_category(category_id.strip())
    else:
        coupons = Coupon.all()

    results = [c.serialize() for c in coupons]
    return jsonify(results), status.HTTP_200_OK


######################################################################
# READ a Coupon
######################################################################
@app.route("/api/coupons/<int:coupon_id>", methods=["GET"])
def get_coupons(coupon_id: int):
    """
    Get a Coupon by id
    """
    app.logger.info("Request to get Coupon with id [%s]", coupon_id)
    coupon = _coupon_or_404(coupon_id)
    return jsonify(coupon.serialize()), status.HTTP_200_OK


######################################################################
# CREATE a Coupon
######################################################################
@app.route("/api/coupons", methods=["POST"])
@jwt_required()
def create_coupons():
    """
    Create a Coupon
    """
    app.logger.info("Request to Create a Coupon")
    check_content_type("application/json")

    coupon = Coupon()
    try:
        data = request.get_json()
        app.logger.info("Processing: %s", data)
        coupon.deserialize(data)
        coupon.create()
    except DataValidationError as error:
        abort(status.HTTP_400_BAD_REQUEST, str(error))

    location_url = url_for("get_coupons", coupon_id=coupon.id, _external=True)
    return (
        jsonify(coupon.serialize()),
        status.HTTP_201_CREATED,
        {"Location": location_url},
    )


######################################################################
# UPDATE a Coupon
######################################################################
@app.route("/api/coupons/<int:coupon_id>", methods=["PUT"])
@jwt_required()
def update_coupons(coupon_id: int):
    """
    Update a Coupon
    Only the fields present in the payload change
    """
    app.logger.info("Request to update Coupon with id [%s]", coupon_id)
    check_content_type("application/json")

    coupon = _coupon_or_404(coupon_id)
    try:
        data = request.get_json()
        app.logger.info("Processing: %s", data)
        coupon.deserialize(data, partial=True)
        coupon.update()
    except DataValidationError as error:
        abort(status.HTTP_400_BAD_REQUEST, str(error))

    return jsonify(coupon.serialize()), status.HTTP_200_OK


######################################################################
# DELETE a Coupon
######################################################################
@app.route("/api/coupons/<int:coupon_id>", methods=["DELETE"])
@jwt_required()
def delete_coupons(coupon_id: int):
    """
    Delete a Coupon by id
    """
    app.logger.info("Request to delete Coupon with id [%s]", coupon_id)
    coupon = _coupon_or_404(coupon_id)
    coupon.delete()
    return "", status.HTTP_204_NO_CONTENT


######################################################################
# RATING summary of a Category
######################################################################
@app.route("/api/rating/<category_id>", methods=["GET"])
def get_rating(category_id: str):
    """
    Get the rating summary of a Category
    Returns {"averageRating": float, "totalRatings": int}
    """
    app.logger.info("Request for rating of Category [%s]", category_id)
    summary = ratings.get_summary(category_id)
    return jsonify(summary.serialize()), status.HTTP_200_OK


######################################################################
# RATE a Category
######################################################################
@app.route("/api/rate/<category_id>", methods=["POST"])
def rate_category(category_id: str):
    """
    Rate a Category once per anonymous identity
    Body: {"rating": 1..5}; identity comes from the rating cookie
    """
    check_content_type("application/json")
    data = request.get_json(silent=True)
    raw_value = data.get("rating") if isinstance(data, dict) else None
    identity = current_identity()
    app.logger.info(
        "Request to rate Category [%s] with %r (identity %s)",
        category_id,
        raw_value,
        "present" if identity else "missing",
    )
    summary = ratings.submit_rating(category_id, raw_value, identity)
    return jsonify(summary.serialize()), status.HTTP_200_OK


######################################################################
# Utility: lookups
######################################################################
def _category_or_404(category_id: int) -> Category:
    category = Category.find(category_id)
    if not category:
        abort(
            status.HTTP_404_NOT_FOUND,
            f"Category with id '{category_id}' was not found.",
        )
    return category


def _coupon_or_404(coupon_id: int) -> Coupon:
    coupon = Coupon.find(coupon_id)
    if not coupon:
        abort(
            status.HTTP_404_NOT_FOUND,
            f"Coupon with id '{coupon_id}' was not found.",
        )
    return coupon


######################################################################
# Utility: Content-Type guard
######################################################################
def check_content_type(content_type: str):
    """Checks that the media type is correct (tolerates charset etc.)"""
    # Werkzeug exposes parsed mimetype; if header missing, this is None
    if request.mimetype != content_type:
        got = request.content_type or "none"
        abort(
            status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            f"Content-Type must be {content_type}; received {got}",
        )


######################################################################
# Endpoint: /health (K8s liveness/readiness)
######################################################################
@app.route("/health", methods=["GET"])
def health():
    """
    K8s health check endpoint
    Returns:
        JSON: {"status": "OK"} with HTTP 200
    """
    app.logger.info("Health check requested")
    return jsonify(status="OK"), status.HTTP_200_OK
