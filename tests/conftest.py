"""
Test configuration

Points the app at a throw-away SQLite database and upload folder unless
DATABASE_URI is already set (CI runs against PostgreSQL). This must run
before coupon_service is imported because the app binds its engine at
import time.
"""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="coupon-service-tests-")

os.environ.setdefault("DATABASE_URI", f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}")
os.environ.setdefault("UPLOAD_FOLDER", os.path.join(_TMP_DIR, "uploads"))
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-that-is-long-enough-for-hs256")
