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
Image uploads for Categories

Admins upload an image first and then reference the returned path as
the Category's imagePath.
"""

import os
import uuid

from flask import abort, current_app as app, jsonify, request, send_from_directory
from flask_jwt_extended import jwt_required
from werkzeug.utils import secure_filename

from coupon_service.common import status

EXTENSIONS = {"image/png": ".png", "image/jpeg": ".jpg", "image/webp": ".webp"}


def unique_filename(original: str, mimetype: str) -> str:
    """Random file name that keeps the original extension when it is sensible"""
    ext = os.path.splitext(secure_filename(original or ""))[1].lower()
    if ext not in {".png", ".jpg", ".jpeg", ".webp"}:
        ext = EXTENSIONS.get(mimetype, ".bin")
    return f"{uuid.uuid4().hex}{ext}"


######################################################################
# UPLOAD an image
######################################################################
@app.route("/api/upload/image", methods=["POST"])
@jwt_required()
def upload_image():
    """
    Upload an image (multipart field "image")
    Only PNG, JPG and WEBP up to MAX_CONTENT_LENGTH are accepted
    """
    app.logger.info("Request to upload an image")
    image = request.files.get("image")
    if image is None or not image.filename:
        abort(status.HTTP_400_BAD_REQUEST, "No file uploaded")
    if image.mimetype not in app.config["ALLOWED_IMAGE_TYPES"]:
        abort(status.HTTP_400_BAD_REQUEST, "Only PNG, JPG, and WEBP images are allowed")

    folder = app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    filename = unique_filename(image.filename, image.mimetype)
    target = os.path.join(folder, filename)
    image.save(target)
    size = os.path.getsize(target)

    app.logger.info("Saved upload %s (%d bytes)", filename, size)
    return (
        jsonify(
            success=True,
            path=f"/uploads/{filename}",
            filename=filename,
            size=size,
            message="File uploaded successfully",
        ),
        status.HTTP_200_OK,
    )


######################################################################
# SERVE an uploaded image
######################################################################
@app.route("/uploads/<path:filename>", methods=["GET"])
def uploaded_file(filename: str):
    """Serves a previously uploaded file"""
    return send_from_directory(app.config["UPLOAD_FOLDER"], filename)
