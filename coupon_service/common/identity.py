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
Module: identity

Issues the long-lived anonymous identity cookie that correlates a
browser's ratings. The token carries no meaning beyond being unique.
"""

import uuid
from typing import Optional

from flask import current_app as app
from flask import request


def issue_token() -> str:
    """Returns a fresh 128-bit random token rendered as hex"""
    return uuid.uuid4().hex


def current_identity() -> Optional[str]:
    """Returns the identity token presented with this request, if any"""
    token = request.cookies.get(app.config["RATING_COOKIE_NAME"], "").strip()
    return token or None


@app.after_request
def ensure_identity(response):
    """Attaches an identity cookie to clients that do not have one yet"""
    if current_identity():
        return response
    response.set_cookie(
        app.config["RATING_COOKIE_NAME"],
        issue_token(),
        max_age=app.config["RATING_COOKIE_MAX_AGE"],
        secure=app.config["RATING_COOKIE_SECURE"],
        httponly=True,
        samesite="Lax",
    )
    return response
