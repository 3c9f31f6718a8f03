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
Models for the Coupon Directory

Categories and Coupons are managed by an administrator; Ratings are
anonymous, append-only events guarded by a (category_id, identity)
unique constraint.
"""

import logging
import re
from typing import List, Optional, Tuple, Union

import bcrypt
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger("flask.app")

# SQLAlchemy handle; bound to the app in coupon_service/__init__.py
db = SQLAlchemy()


class DataValidationError(Exception):
    """Used for data validation errors when deserializing or updating."""


class DatabaseError(Exception):
    """Used for database operation failures (commit/connection/constraint errors)."""


class DuplicateSlug(DataValidationError):
    """Raised when a Category title maps onto a slug that is already taken."""


class DuplicateRating(Exception):
    """Raised when a Rating already exists for a (category_id, identity) pair."""


class StoreUnavailable(DatabaseError):
    """Raised when the rating store cannot complete a read or write."""


def slugify(title: str) -> str:
    """Turns a Category title into its URL slug ("Big Deals!" -> "big-deals")"""
    slug = re.sub(r"\s+", "-", title.strip().lower())
    return re.sub(r"[^a-z0-9\-]", "", slug)


class PersistentBase:
    """Create / update / delete shared by the admin managed models"""

    def create(self):
        """Creates this record in the database."""
        logger.info("Creating %s", self)
        self.id = None  # make sure id is None so SQLAlchemy will assign one
        key = self._natural_key()
        try:
            db.session.add(self)
            db.session.flush()
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            logger.warning("Constraint violation creating %s: %s", key, e.orig)
            raise self._conflict(key, e) from e
        except Exception as e:  # pragma: no cover - exercised via exception tests
            db.session.rollback()
            logger.error("Error creating record: %s", key)
            raise DatabaseError(e) from e

    def update(self):
        """Updates this record in the database."""
        logger.info("Saving %s", self)
        if not self.id:
            raise DataValidationError("Field 'id' is required for update")
        key = self._natural_key()
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            logger.warning("Constraint violation updating %s: %s", key, e.orig)
            raise self._conflict(key, e) from e
        except Exception as e:  # pragma: no cover - exercised via exception tests
            db.session.rollback()
            logger.error("Error updating record: %s", key)
            raise DatabaseError(e) from e

    def delete(self):
        """Removes this record from the data store."""
        logger.info("Deleting %s", self)
        try:
            db.session.delete(self)
            db.session.commit()
        except Exception as e:  # pragma: no cover - exercised via exception tests
            db.session.rollback()
            logger.error("Error deleting record: %s", self)
            raise DatabaseError(e) from e

    def _natural_key(self) -> str:
        return repr(self)

    def _conflict(self, key: str, error: IntegrityError) -> Exception:
        return DatabaseError(error)

    @classmethod
    def find(cls, by_id: Union[int, str]):
        """Finds a record by its ID (single object or None)."""
        logger.info("Processing lookup for %s id %s ...", cls.__name__, by_id)
        try:
            pk = int(by_id)
        except (TypeError, ValueError):
            return None
        return db.session.get(cls, pk)


######################################################################
#  C A T E G O R Y
######################################################################
class Category(PersistentBase, db.Model):
    """
    Class that represents a Category (a brand with an image)
    """

    __tablename__ = "categories"

    ##################################################
    # Table Schema
    ##################################################
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(127), nullable=False)
    slug = db.Column(db.String(127), nullable=False, unique=True)
    image_path = db.Column(db.String(255), nullable=False)
    # Auditing fields
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)
    updated_at = db.Column(
        db.DateTime, default=db.func.now(), onupdate=db.func.now(), nullable=False
    )

    # deleting a Category detaches its Coupons (category_id -> NULL)
    coupons = db.relationship("Coupon", back_populates="category")

    def __repr__(self):
        return f"<Category {self.title} id=[{self.id}]>"

    def _natural_key(self) -> str:
        return self.slug

    def _conflict(self, key: str, error: IntegrityError) -> Exception:
        return DuplicateSlug(f"A category with slug '{key}' already exists")

    def serialize(self) -> dict:
        """Serializes a Category into a dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "imagePath": self.image_path,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def deserialize(self, data: dict, partial: bool = False):
        """
        Deserializes a Category from a dictionary.

        Args:
            data (dict): a dictionary with "title" and "imagePath"
            partial (bool): only apply the fields that are present (PUT)
        """
        if not isinstance(data, dict):
            raise DataValidationError(
                "Invalid category: request body contained malformed or invalid data"
            )
        title = data.get("title")
        image_path = data.get("imagePath")
        if not partial and (not title or not image_path):
            raise DataValidationError("title and imagePath required")

        if title:
            if not isinstance(title, str):
                raise DataValidationError("Field 'title' must be a string")
            slug = slugify(title)
            if not slug:
                raise DataValidationError(f"Title '{title}' does not produce a usable slug")
            self.title = title
            self.slug = slug
        if image_path:
            if not isinstance(image_path, str):
                raise DataValidationError("Field 'imagePath' must be a string")
            self.image_path = image_path
        return self

    ##################################################
    # CLASS METHODS
    ##################################################

    @classmethod
    def all(cls) -> List["Category"]:
        """Returns all Categories, newest first."""
        logger.info("Processing all Categories")
        return list(cls.query.order_by(cls.created_at.desc(), cls.id.desc()).all())

    @classmethod
    def find_by_slug(cls, slug: str) -> Optional["Category"]:
        """Finds a Category by its slug (single object or None)."""
        logger.info("Processing slug query for %s ...", slug)
        return cls.query.filter(cls.slug == slug).first()

    @classmethod
    def exists(cls, category_id: int) -> bool:
        """Returns True if a Category currently exists with the given id."""
        return cls.find(category_id) is not None


######################################################################
#  C O U P O N
######################################################################
class Coupon(PersistentBase, db.Model):
    """
    Class that represents a Coupon
    """

    __tablename__ = "coupons"

    ##################################################
    # Table Schema
    ##################################################
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(127), nullable=False)
    description = db.Column(db.Text, nullable=True)
    code = db.Column(db.String(63), nullable=False)
    url = db.Column(db.String(255), nullable=True)
    category_id = db.Column(
        db.Integer, db.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    # Auditing fields
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)
    updated_at = db.Column(
        db.DateTime, default=db.func.now(), onupdate=db.func.now(), nullable=False
    )

    category = db.relationship("Category", back_populates="coupons")

    def __repr__(self):
        return f"<Coupon {self.title} id=[{self.id}]>"

    def serialize(self) -> dict:
        """Serializes a Coupon into a dictionary, embedding its Category."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "code": self.code,
            "url": self.url,
            "category": self.category.serialize() if self.category else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def deserialize(self, data: dict, partial: bool = False):
        """
        Deserializes a Coupon from a dictionary.

        Args:
            data (dict): "title" and "code" are required, "description",
                "url" and "category" (a category id) are optional
            partial (bool): only apply the fields that are present (PUT)
        """
        if not isinstance(data, dict):
            raise DataValidationError(
                "Invalid coupon: request body contained malformed or invalid data"
            )
        if not partial and (not data.get("title") or not data.get("code")):
            raise DataValidationError("title and code required")

        for field in ("title", "code", "description", "url"):
            if field not in data:
                continue
            value = data[field]
            if value is not None and not isinstance(value, str):
                raise DataValidationError(f"Field '{field}' must be a string")
            if field in ("title", "code") and not value:
                raise DataValidationError(f"Field '{field}' cannot be empty")
            setattr(self, field, value)

        if "category" in data:
            self.category_id = self._resolve_category(data["category"])
        return self

    @staticmethod
    def _resolve_category(value) -> Optional[int]:
        if value in (None, ""):
            return None
        category = Category.find(value)
        if category is None:
            raise DataValidationError(f"Category with id '{value}' was not found")
        return category.id

    ##################################################
    # CLASS METHODS
    ##################################################

    @classmethod
    def all(cls) -> List["Coupon"]:
        """Returns all Coupons, newest first."""
        logger.info("Processing all Coupons")
        return list(cls.query.order_by(cls.created_at.desc(), cls.id.desc()).all())

    @classmethod
    def find_by_category(cls, category_id: Union[int, str]) -> List["Coupon"]:
        """Returns all Coupons in the given Category, newest first."""
        logger.info("Processing category query for %s ...", category_id)
        try:
            cid = int(category_id)
        except (TypeError, ValueError):
            return []
        return list(
            cls.query.filter(cls.category_id == cid)
            .order_by(cls.created_at.desc(), cls.id.desc())
            .all()
        )


######################################################################
#  A D M I N
######################################################################
class Admin(PersistentBase, db.Model):
    """
    Class that represents a dashboard administrator
    """

    __tablename__ = "admins"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    def __repr__(self):
        return f"<Admin {self.email} id=[{self.id}]>"

    def set_password(self, password: str):
        """Stores a bcrypt hash of the password"""
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
        self.password_hash = hashed.decode("utf-8")

    def check_password(self, password: str) -> bool:
        """Returns True if the password matches the stored hash"""
        if not password or not self.password_hash:
            return False
        return bcrypt.checkpw(password.encode("utf-8"), self.password_hash.encode("utf-8"))

    @classmethod
    def find_by_email(cls, email: str) -> Optional["Admin"]:
        """Finds an Admin by email (single object or None)."""
        return cls.query.filter(cls.email == email).first()

    @classmethod
    def seed(cls, email: str, password: str) -> "Admin":
        """Creates the Admin account unless one already exists for the email"""
        existing = cls.find_by_email(email)
        if existing:
            return existing
        admin = cls(email=email)
        admin.set_password(password)
        admin.create()
        logger.info("Admin seeded: %s", email)
        return admin


######################################################################
#  R A T I N G
######################################################################
UNIQUE_RATING = "uq_rating_category_identity"


def _is_duplicate(error: IntegrityError) -> bool:
    """True when the violation is the (category_id, identity) unique constraint"""
    message = str(error.orig)
    # PostgreSQL names the constraint, SQLite lists its columns
    return UNIQUE_RATING in message or "ratings.category_id, ratings.identity" in message


class Rating(db.Model):
    """
    One anonymous rating of a Category

    Ratings are only ever inserted. category_id is deliberately not a
    foreign key so that rating history outlives its Category.
    """

    __tablename__ = "ratings"
    __table_args__ = (
        db.UniqueConstraint("category_id", "identity", name=UNIQUE_RATING),
        db.CheckConstraint("value >= 1 AND value <= 5", name="ck_rating_value_range"),
    )

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, nullable=False, index=True)
    value = db.Column(db.Integer, nullable=False)
    # opaque client token; its length is whatever the client presents
    identity = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    def __repr__(self):
        return f"<Rating category={self.category_id} value={self.value} id=[{self.id}]>"

    @classmethod
    def insert(cls, category_id: int, value: int, identity: str) -> "Rating":
        """
        Persists a new Rating.

        The unique constraint is the only duplicate check, so two concurrent
        inserts for the same pair cannot both succeed.

        Raises:
            DuplicateRating: the identity already rated this category
            StoreUnavailable: any other database failure
        """
        rating = cls(category_id=category_id, value=value, identity=identity)
        try:
            db.session.add(rating)
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            if not _is_duplicate(e):
                logger.error("Rating rejected by the database for category %s: %s", category_id, e.orig)
                raise StoreUnavailable(e) from e
            logger.info("Duplicate rating for category %s", category_id)
            raise DuplicateRating(category_id) from e
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Error inserting rating for category %s: %s", category_id, e)
            raise StoreUnavailable(e) from e
        return rating

    @classmethod
    def aggregate(cls, category_id: int) -> Tuple[int, Optional[float]]:
        """Returns (count, mean) over all Ratings of a category"""
        try:
            count, mean = db.session.query(
                func.count(cls.id), func.avg(cls.value)
            ).filter(cls.category_id == category_id).one()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Error aggregating ratings for category %s: %s", category_id, e)
            raise StoreUnavailable(e) from e
        return int(count), (float(mean) if mean is not None else None)
