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
Test cases for Benefit Model
"""

# pylint: disable=duplicate-code
import logging
from unittest import TestCase
from unittest.mock import patch
from datetime import date
from wsgi import app
from backoffice.models import Benefit, DataValidationError, DatabaseError, db
from tests.factories import BenefitFactory

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
        db.session.query(Benefit).delete()  # clean up the last tests
        db.session.commit()

    def tearDown(self):
        """This runs after each test"""
        db.session.remove()


######################################################################
#  B E N E F I T   M O D E L   T E S T   C A S E S
######################################################################
# pylint: disable=too-many-public-methods


class TestBenefitModel(TestCaseBase):
    """Test Cases for Benefit Model"""

    def test_create_a_benefit(self):
        """It should Create a Benefit and assign an id and code"""
        benefit = BenefitFactory()
        benefit.create()
        self.assertIsNotNone(benefit.id)
        self.assertEqual(benefit.code, f"BEN{benefit.id:03d}")
        found = Benefit.all()
        self.assertEqual(len(found), 1)
        self.assertEqual(found[0].title, benefit.title)

    def test_create_appends_position(self):
        """It should place a Benefit without position after the last one"""
        first = BenefitFactory(position=7)
        first.create()
        second = BenefitFactory(position=None)
        second.create()
        self.assertEqual(second.position, 8)

    def test_create_first_position(self):
        """It should start an empty catalog at position 1"""
        self.assertEqual(Benefit.next_position(), 1)

    def test_create_duplicate_position(self):
        """It should not Create a Benefit on a taken position"""
        BenefitFactory(position=3).create()
        benefit = BenefitFactory(position=3)
        self.assertRaises(DataValidationError, benefit.create)

    def test_update_a_benefit(self):
        """It should Update a Benefit and bump its version"""
        benefit = BenefitFactory()
        benefit.create()
        original_id = benefit.id
        benefit.title = "Updated Title"
        benefit.update()
        self.assertEqual(benefit.id, original_id)
        self.assertEqual(benefit.version, 2)
        benefits = Benefit.all()
        self.assertEqual(len(benefits), 1)
        self.assertEqual(benefits[0].title, "Updated Title")

    def test_update_no_id(self):
        """It should not Update a Benefit with no id"""
        benefit = BenefitFactory()
        benefit.id = None
        self.assertRaises(DataValidationError, benefit.update)

    def test_delete_a_benefit(self):
        """It should Delete a Benefit"""
        benefit = BenefitFactory()
        benefit.create()
        self.assertEqual(len(Benefit.all()), 1)
        benefit.delete()
        self.assertEqual(len(Benefit.all()), 0)

    def test_serialize_a_benefit(self):
        """It should serialize a Benefit"""
        benefit = BenefitFactory()
        data = benefit.serialize()
        self.assertEqual(data["id"], benefit.id)
        self.assertEqual(data["title"], benefit.title)
        self.assertEqual(data["category"], benefit.category)
        self.assertEqual(data["position"], benefit.position)
        self.assertEqual(data["mcc_codes"], benefit.mcc_codes)
        self.assertEqual(data["status"], "active")
        self.assertEqual(date.fromisoformat(data["start_date"]), benefit.start_date)
        self.assertEqual(date.fromisoformat(data["end_date"]), benefit.end_date)

    def test_deserialize_a_benefit(self):
        """It should de-serialize a Benefit"""
        data = BenefitFactory().serialize()
        benefit = Benefit()
        benefit.deserialize(data)
        self.assertEqual(benefit.id, None)
        self.assertEqual(benefit.title, data["title"])
        self.assertEqual(benefit.position, data["position"])
        self.assertEqual(benefit.cashback_percentage, data["cashback_percentage"])
        self.assertEqual(benefit.start_date, date.fromisoformat(data["start_date"]))

    def test_deserialize_missing_data(self):
        """It should not deserialize a Benefit with missing data"""
        data = {"title": "Fuel", "category": "Fuel"}
        self.assertRaises(DataValidationError, Benefit().deserialize, data)

    def test_deserialize_bad_data(self):
        """It should not deserialize bad data"""
        self.assertRaises(DataValidationError, Benefit().deserialize, "this is not a dictionary")

    def test_deserialize_bad_percentage(self):
        """It should not deserialize a percentage outside 0..100"""
        data = BenefitFactory().serialize()
        data["cashback_percentage"] = 150
        self.assertRaises(DataValidationError, Benefit().deserialize, data)
        data["cashback_percentage"] = "ten"
        self.assertRaises(DataValidationError, Benefit().deserialize, data)

    def test_deserialize_bad_position(self):
        """It should not deserialize a non-integer position"""
        data = BenefitFactory().serialize()
        data["position"] = "first"
        self.assertRaises(DataValidationError, Benefit().deserialize, data)
        data["position"] = True
        self.assertRaises(DataValidationError, Benefit().deserialize, data)

    def test_deserialize_bad_status(self):
        """It should not deserialize an unknown status"""
        data = BenefitFactory().serialize()
        data["status"] = "scheduled"
        self.assertRaises(DataValidationError, Benefit().deserialize, data)

    def test_deserialize_bad_mcc_codes(self):
        """It should not deserialize mcc_codes that are not a list of strings"""
        data = BenefitFactory().serialize()
        data["mcc_codes"] = "5411"
        self.assertRaises(DataValidationError, Benefit().deserialize, data)

    def test_deserialize_invalid_dates(self):
        """It should not deserialize bad or inverted dates"""
        data = BenefitFactory().serialize()
        data["start_date"] = "invalid-date"
        self.assertRaises(DataValidationError, Benefit().deserialize, data)
        data = BenefitFactory().serialize()
        data["start_date"], data["end_date"] = data["end_date"], data["start_date"]
        self.assertRaises(DataValidationError, Benefit().deserialize, data)


######################################################################
#  T E S T   E X C E P T I O N   H A N D L E R S
######################################################################
class TestExceptionHandlers(TestCaseBase):
    """Benefit Model Exception Handlers"""

    @patch("backoffice.models.db.session.commit")
    def test_create_exception(self, mock_commit):
        """It should catch a create exception"""
        mock_commit.side_effect = Exception("Database error")
        benefit = BenefitFactory()
        self.assertRaises(DatabaseError, benefit.create)

    @patch("backoffice.models.db.session.commit")
    def test_update_exception(self, mock_commit):
        """It should catch a update exception"""
        benefit = BenefitFactory()
        benefit.id = 1
        mock_commit.side_effect = Exception("Database error")
        self.assertRaises(DatabaseError, benefit.update)

    @patch("backoffice.models.db.session.commit")
    def test_delete_exception(self, mock_commit):
        """It should catch a delete exception"""
        benefit = BenefitFactory()
        benefit.create()
        mock_commit.side_effect = Exception("Database error")
        self.assertRaises(DatabaseError, benefit.delete)


######################################################################
#  Q U E R Y   T E S T   C A S E S
######################################################################
class TestModelQueries(TestCaseBase):
    """Benefit Model Query Tests"""

    def test_find_benefit(self):
        """It should Find a Benefit by ID"""
        benefits = BenefitFactory.create_batch(5)
        for benefit in benefits:
            benefit.create()
        found = Benefit.find(benefits[1].id)
        self.assertIsNotNone(found)
        self.assertEqual(found.title, benefits[1].title)

    def test_find_invalid_id(self):
        """It should return None for an id that is not a number"""
        self.assertIsNone(Benefit.find("invalid"))

    def test_all_in_position_order(self):
        """It should list Benefits in position order"""
        for position in (30, 10, 20):
            BenefitFactory(position=position).create()
        self.assertEqual([b.position for b in Benefit.all()], [10, 20, 30])

    def test_find_by_status(self):
        """It should Find Benefits by status"""
        BenefitFactory(status="active").create()
        BenefitFactory(status="inactive").create()
        found = Benefit.find_by_status("inactive")
        self.assertEqual(len(found), 1)
        self.assertEqual(found[0].status, "inactive")

    def test_search_title_and_pages(self):
        """It should search by title substring and paginate"""
        for n in range(5):
            BenefitFactory(title=f"Coffee {n}", position=n + 1).create()
        BenefitFactory(title="Fuel", position=10).create()
        items, total = Benefit.search(title="coffee", page=2, size=2)
        self.assertEqual(total, 5)
        self.assertEqual([b.title for b in items], ["Coffee 2", "Coffee 3"])
        items, total = Benefit.search(status="inactive")
        self.assertEqual((items, total), ([], 0))

    def test_position_taken(self):
        """It should report whether a position is held by another benefit"""
        benefit = BenefitFactory(position=4)
        benefit.create()
        self.assertTrue(Benefit.position_taken(4))
        self.assertFalse(Benefit.position_taken(4, exclude_id=benefit.id))
        self.assertFalse(Benefit.position_taken(5))
