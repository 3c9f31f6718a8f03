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
Module: security

JWT bearer authentication for the admin endpoints
"""

from flask import jsonify
from flask_jwt_extended import JWTManager, create_access_token

from coupon_service.common import status
from coupon_service.models import Admin

jwt = JWTManager()


def issue_admin_token(admin: Admin) -> str:
    """Returns a signed access token for the Admin"""
    return create_access_token(identity=str(admin.id), additional_claims={"email": admin.email})


def _unauthorized(message: str):
    return (
        jsonify(status=status.HTTP_401_UNAUTHORIZED, error="Unauthorized", message=message),
        status.HTTP_401_UNAUTHORIZED,
    )


@jwt.user_lookup_loader
def load_admin(_jwt_header, jwt_data):
    """Resolves the token subject to an Admin (None if it was removed)"""
    return Admin.find(jwt_data["sub"])


@jwt.user_lookup_error_loader
def admin_not_found(_jwt_header, _jwt_data):
    """Token is valid but its Admin no longer exists"""
    return _unauthorized("Admin account no longer exists")


@jwt.unauthorized_loader
def missing_token(reason):
    """No Authorization header"""
    return _unauthorized(reason)


@jwt.invalid_token_loader
def invalid_token(reason):
    """Malformed or badly signed token"""
    return _unauthorized(reason)


@jwt.expired_token_loader
def expired_token(_jwt_header, _jwt_data):
    """Token past its expiry"""
    return _unauthorized("Token has expired")
