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
Test cases for the Category, Coupon and Admin Models
"""

# pylint: disable=duplicate-code
import logging
from unittest import TestCase
from unittest.mock import patch
from wsgi import app
from coupon_service.models import (
    Admin,
    Category,
    Coupon,
    DatabaseError,
    DataValidationError,
    DuplicateSlug,
    Rating,
    db,
    slugify,
)
from tests.factories import CategoryFactory, CouponFactory


######################################################################
#  B A S E   T E S T   C A S E S
######################################################################
class TestCaseBase(TestCase):
    """Base Test Case for common setup"""

    # pylint: disable=duplicate-code
    @classmethod
    def setUpClass(cls):
        """This runs once before the entire test suite"""
        app.config["TESTING"] = True
        app.config["DEBUG"] = False
        app.logger.setLevel(logging.CRITICAL)
        app.app_context().push()

    @classmethod
    def tearDownClass(cls):
        """This runs once after the entire test suite"""
        db.session.close()

    def setUp(self):
        """This runs before each test"""
        db.session.query(Rating).delete()  # clean up the last tests
        db.session.query(Coupon).delete()
        db.session.query(Category).delete()
        db.session.query(Admin).delete()
        db.session.commit()

    def tearDown(self):
        """This runs after each test"""
        db.session.remove()


######################################################################
#  S L U G   T E S T   C A S E S
######################################################################
class TestSlugify(TestCase):
    """Slug generation from titles"""

    def test_slugify_spaces_and_case(self):
        """It should lowercase and hyphenate a title"""
        self.assertEqual(slugify("  Big Deals  "), "big-deals")
        self.assertEqual(slugify("Amazon   Prime Day"), "amazon-prime-day")

    def test_slugify_drops_symbols(self):
        """It should drop characters outside a-z, 0-9 and -"""
        self.assertEqual(slugify("Café & Bar!"), "caf--bar")
        self.assertEqual(slugify("50% Off"), "50-off")


######################################################################
#  C A T E G O R Y   M O D E L   T E S T   C A S E S
######################################################################
class TestCategoryModel(TestCaseBase):
    """Test Cases for Category Model"""

    def test_create_a_category(self):
        """It should Create a Category and assign it an id"""
        category = CategoryFactory()
        category.create()
        self.assertIsNotNone(category.id)
        found = Category.all()
        self.assertEqual(len(found), 1)
        self.assertEqual(found[0].title, category.title)
        self.assertIsNotNone(found[0].created_at)

    def test_create_duplicate_slug(self):
        """It should not Create two Categories with the same slug"""
        CategoryFactory(title="Nike").create()
        duplicate = CategoryFactory(title="  NIKE ")
        self.assertRaises(DuplicateSlug, duplicate.create)
        self.assertEqual(len(Category.all()), 1)

    def test_update_onto_taken_slug(self):
        """It should raise DuplicateSlug when renamed onto a taken slug"""
        CategoryFactory(title="Adidas").create()
        other = CategoryFactory(title="Puma")
        other.create()
        other.deserialize({"title": "ADIDAS"}, partial=True)
        with self.assertRaises(DuplicateSlug) as ctx:
            other.update()
        self.assertIn("'adidas'", str(ctx.exception))
        # the session was rolled back and is usable again
        self.assertEqual(Category.find(other.id).slug, "puma")
        self.assertEqual(len(Category.all()), 2)

    def test_update_a_category(self):
        """It should Update a Category"""
        category = CategoryFactory()
        category.create()
        original_id = category.id
        category.deserialize({"title": "Renamed Brand"}, partial=True)
        category.update()
        found = Category.find(original_id)
        self.assertEqual(found.title, "Renamed Brand")
        self.assertEqual(found.slug, "renamed-brand")

    def test_update_no_id(self):
        """It should not Update a Category with no id"""
        category = CategoryFactory()
        category.id = None
        self.assertRaises(DataValidationError, category.update)

    def test_delete_a_category(self):
        """It should Delete a Category"""
        category = CategoryFactory()
        category.create()
        self.assertEqual(len(Category.all()), 1)
        category.delete()
        self.assertEqual(len(Category.all()), 0)

    def test_delete_keeps_coupons(self):
        """It should detach Coupons when their Category is deleted"""
        category = CategoryFactory()
        category.create()
        coupon = CouponFactory(category_id=category.id)
        coupon.create()
        category.delete()
        found = Coupon.find(coupon.id)
        self.assertIsNotNone(found)
        self.assertIsNone(found.category_id)

    def test_serialize_a_category(self):
        """It should serialize a Category"""
        category = CategoryFactory()
        data = category.serialize()
        self.assertEqual(data["id"], category.id)
        self.assertEqual(data["title"], category.title)
        self.assertEqual(data["slug"], category.slug)
        self.assertEqual(data["imagePath"], category.image_path)

    def test_deserialize_a_category(self):
        """It should de-serialize a Category and derive its slug"""
        category = Category()
        category.deserialize({"title": "Summer Sale", "imagePath": "/uploads/a.png"})
        self.assertIsNone(category.id)
        self.assertEqual(category.title, "Summer Sale")
        self.assertEqual(category.slug, "summer-sale")
        self.assertEqual(category.image_path, "/uploads/a.png")

    def test_deserialize_missing_data(self):
        """It should not deserialize a Category without title and imagePath"""
        self.assertRaises(DataValidationError, Category().deserialize, {"title": "Only title"})
        self.assertRaises(DataValidationError, Category().deserialize, {"imagePath": "/x.png"})

    def test_deserialize_bad_data(self):
        """It should not deserialize bad data"""
        self.assertRaises(DataValidationError, Category().deserialize, "this is not a dictionary")
        self.assertRaises(
            DataValidationError, Category().deserialize, {"title": 42, "imagePath": "/x.png"}
        )

    def test_deserialize_unusable_slug(self):
        """It should not accept a title that yields an empty slug"""
        self.assertRaises(
            DataValidationError, Category().deserialize, {"title": "!!!", "imagePath": "/x.png"}
        )

    def test_find_by_slug(self):
        """It should Find a Category by slug"""
        for title in ("Adidas", "Puma", "Reebok"):
            CategoryFactory(title=title).create()
        found = Category.find_by_slug("puma")
        self.assertIsNotNone(found)
        self.assertEqual(found.title, "Puma")
        self.assertIsNone(Category.find_by_slug("nope"))

    def test_exists(self):
        """It should report whether a Category exists"""
        category = CategoryFactory()
        category.create()
        self.assertTrue(Category.exists(category.id))
        self.assertFalse(Category.exists(category.id + 1000))

    def test_find_invalid_id(self):
        """It should return None for an id that is not a number"""
        self.assertIsNone(Category.find("abc"))


######################################################################
#  C O U P O N   M O D E L   T E S T   C A S E S
######################################################################
class TestCouponModel(TestCaseBase):
    """Test Cases for Coupon Model"""

    def test_create_a_coupon(self):
        """It should Create a Coupon"""
        coupon = CouponFactory()
        coupon.create()
        self.assertIsNotNone(coupon.id)
        self.assertEqual(len(Coupon.all()), 1)

    def test_serialize_embeds_category(self):
        """It should embed the Category when serializing a Coupon"""
        category = CategoryFactory()
        category.create()
        coupon = CouponFactory(category_id=category.id)
        coupon.create()
        data = Coupon.find(coupon.id).serialize()
        self.assertEqual(data["code"], coupon.code)
        self.assertEqual(data["category"]["id"], category.id)
        self.assertEqual(data["category"]["slug"], category.slug)

    def test_serialize_without_category(self):
        """It should serialize a Coupon that has no Category"""
        coupon = CouponFactory()
        data = coupon.serialize()
        self.assertIsNone(data["category"])
        self.assertEqual(data["title"], coupon.title)

    def test_deserialize_a_coupon(self):
        """It should de-serialize a Coupon"""
        category = CategoryFactory()
        category.create()
        coupon = Coupon()
        coupon.deserialize(
            {
                "title": "10% off shoes",
                "code": "SHOES10",
                "description": "All shoes",
                "url": "https://example.com",
                "category": category.id,
            }
        )
        self.assertEqual(coupon.title, "10% off shoes")
        self.assertEqual(coupon.code, "SHOES10")
        self.assertEqual(coupon.category_id, category.id)

    def test_deserialize_missing_data(self):
        """It should not deserialize a Coupon without title and code"""
        self.assertRaises(DataValidationError, Coupon().deserialize, {"title": "No code"})
        self.assertRaises(DataValidationError, Coupon().deserialize, [])

    def test_deserialize_unknown_category(self):
        """It should not deserialize a Coupon pointing at a missing Category"""
        self.assertRaises(
            DataValidationError,
            Coupon().deserialize,
            {"title": "x", "code": "y", "category": 999999},
        )

    def test_deserialize_partial(self):
        """It should only change the given fields on a partial update"""
        coupon = CouponFactory()
        coupon.create()
        code = coupon.code
        coupon.deserialize({"title": "New title"}, partial=True)
        coupon.update()
        found = Coupon.find(coupon.id)
        self.assertEqual(found.title, "New title")
        self.assertEqual(found.code, code)

    def test_deserialize_rejects_empty_code(self):
        """It should not blank out a required field on a partial update"""
        coupon = CouponFactory()
        self.assertRaises(DataValidationError, coupon.deserialize, {"code": ""}, True)
        self.assertRaises(DataValidationError, coupon.deserialize, {"url": 12}, True)

    def test_find_by_category(self):
        """It should Find Coupons by Category"""
        category = CategoryFactory()
        category.create()
        for _ in range(3):
            CouponFactory(category_id=category.id).create()
        CouponFactory().create()
        found = Coupon.find_by_category(category.id)
        self.assertEqual(len(found), 3)
        for coupon in found:
            self.assertEqual(coupon.category_id, category.id)
        self.assertEqual(Coupon.find_by_category("invalid"), [])


######################################################################
#  A D M I N   M O D E L   T E S T   C A S E S
######################################################################
class TestAdminModel(TestCaseBase):
    """Test Cases for Admin Model"""

    def test_seed_and_check_password(self):
        """It should seed an Admin with a hashed password"""
        admin = Admin.seed("admin@example.com", "s3cret")
        self.assertIsNotNone(admin.id)
        self.assertNotEqual(admin.password_hash, "s3cret")
        self.assertTrue(admin.check_password("s3cret"))
        self.assertFalse(admin.check_password("wrong"))
        self.assertFalse(admin.check_password(""))

    def test_seed_is_idempotent(self):
        """It should not create a second Admin for the same email"""
        first = Admin.seed("admin@example.com", "s3cret")
        second = Admin.seed("admin@example.com", "other")
        self.assertEqual(first.id, second.id)
        self.assertEqual(db.session.query(Admin).count(), 1)

    def test_find_by_email(self):
        """It should Find an Admin by email"""
        Admin.seed("admin@example.com", "s3cret")
        self.assertIsNotNone(Admin.find_by_email("admin@example.com"))
        self.assertIsNone(Admin.find_by_email("nobody@example.com"))


######################################################################
#  T E S T   E X C E P T I O N   H A N D L E R S
######################################################################
class TestExceptionHandlers(TestCaseBase):
    """Model Exception Handlers"""

    @patch("coupon_service.models.db.session.commit")
    def test_create_exception(self, mock_commit):
        """It should catch a create exception"""
        mock_commit.side_effect = Exception("Database error")
        category = CategoryFactory()
        self.assertRaises(DatabaseError, category.create)

    @patch("coupon_service.models.db.session.commit")
    def test_update_exception(self, mock_commit):
        """It should catch a update exception"""
        category = CategoryFactory()
        category.create()
        category.title = "Updated Title"

        mock_commit.side_effect = Exception("Database error")
        self.assertRaises(DatabaseError, category.update)

    @patch("coupon_service.models.db.session.commit")
    def test_delete_exception(self, mock_commit):
        """It should catch a delete exception"""
        coupon = CouponFactory()
        coupon.create()

        mock_commit.side_effect = Exception("Database error")
        self.assertRaises(DatabaseError, coupon.delete)
