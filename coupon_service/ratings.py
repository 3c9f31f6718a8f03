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
Category Ratings

Anonymous visitors rate a Category once per identity token. Summaries
are recomputed from the stored ratings on every call, so they always
reflect everything committed before the call.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple, Optional

from coupon_service.models import Category, DuplicateRating, Rating

logger = logging.getLogger("flask.app")

MIN_RATING = 1
MAX_RATING = 5


class RatingError(Exception):
    """Base class for rating request failures"""


class InvalidCategoryId(RatingError):
    """The category id is not a positive integer"""


class InvalidRatingValue(RatingError):
    """The rating is not an integer between 1 and 5"""


class MissingIdentity(RatingError):
    """No anonymous identity token was presented"""


class CategoryNotFound(RatingError):
    """No Category exists with the given id"""


class AlreadyRated(RatingError):
    """The identity has already rated this Category"""


class RatingSummary(NamedTuple):
    """Count and mean rating of a Category"""

    average_rating: float
    total_ratings: int

    def serialize(self) -> dict:
        """Serializes the summary with the public field names"""
        return {"averageRating": self.average_rating, "totalRatings": self.total_ratings}


def parse_category_id(raw) -> int:
    """Returns the category id as an int or raises InvalidCategoryId"""
    if isinstance(raw, bool):
        raise InvalidCategoryId("Invalid category id")
    if isinstance(raw, int):
        category_id = raw
    else:
        text = str(raw).strip() if raw is not None else ""
        if not text.isdecimal():
            raise InvalidCategoryId("Invalid category id")
        category_id = int(text)
    if category_id < 1:
        raise InvalidCategoryId("Invalid category id")
    return category_id


def parse_rating_value(raw) -> int:
    """
    Returns the rating as an int in [1, 5] or raises InvalidRatingValue

    Accepts ints, integer strings ("4") and integral floats (4.0).
    """
    value = None
    if isinstance(raw, bool):
        value = None
    elif isinstance(raw, int):
        value = raw
    elif isinstance(raw, float) and raw.is_integer():
        value = int(raw)
    elif isinstance(raw, str):
        try:
            value = int(raw.strip())
        except ValueError:
            value = None
    if value is None or not MIN_RATING <= value <= MAX_RATING:
        raise InvalidRatingValue("Invalid rating value")
    return value


def round_average(mean: float) -> float:
    """Rounds a mean to 2 decimals, halves away from zero (4.125 -> 4.13)"""
    return float(Decimal(str(mean)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def summarize(category_id: int) -> RatingSummary:
    """Computes the RatingSummary of a Category from the stored ratings"""
    count, mean = Rating.aggregate(category_id)
    if not count:
        return RatingSummary(average_rating=0, total_ratings=0)
    return RatingSummary(average_rating=round_average(mean), total_ratings=count)


def get_summary(raw_category_id) -> RatingSummary:
    """
    Returns the RatingSummary of a Category

    The Category does not have to exist anymore: ratings are kept after
    the Category is deleted and still summarize.
    """
    category_id = parse_category_id(raw_category_id)
    return summarize(category_id)


def submit_rating(raw_category_id, raw_value, identity: Optional[str]) -> RatingSummary:
    """
    Records one rating and returns the updated RatingSummary

    Validation happens before anything is written, in this order:
    category id, rating value, identity, category existence.

    Raises:
        InvalidCategoryId, InvalidRatingValue, MissingIdentity,
        CategoryNotFound, AlreadyRated
        StoreUnavailable: the database failed
    """
    category_id = parse_category_id(raw_category_id)
    value = parse_rating_value(raw_value)
    if not identity:
        raise MissingIdentity("User token required")
    if not Category.exists(category_id):
        logger.info("Category not found: %s", category_id)
        raise CategoryNotFound("Category not found")

    try:
        Rating.insert(category_id, value, identity)
    except DuplicateRating as error:
        raise AlreadyRated("You already rated this category.") from error

    summary = summarize(category_id)
    logger.info(
        "Rating %s recorded for category %s: %s", value, category_id, summary.serialize()
    )
    return summary
