import json
import os
import sys
import tempfile
import unittest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from relgraph.entity_classifier import (
    EntityClassifier,
    EntityLists,
    is_known_company_name,
    is_organization,
)


class TestIsOrganization(unittest.TestCase):

    def test_reference_names(self):
        self.assertTrue(is_organization("Sequoia Capital"))
        self.assertFalse(is_organization("Sam Altman"))
        self.assertTrue(is_organization("Acme Ventures"))

    def test_known_capital_entities(self):
        self.assertTrue(is_organization("Andreessen Horowitz"))
        self.assertTrue(is_organization("KKR"))
        self.assertTrue(is_organization("SoftBank Vision Fund 2"))

    def test_capital_name_pattern(self):
        self.assertTrue(is_organization("Thrive Holdings"))
        self.assertTrue(is_organization("Lightspeed Investments"))

    def test_short_entries_match_whole_words_only(self):
        # 'nea' and 'gic' are firms, not syllables
        self.assertFalse(is_organization("Sinead Logical"))
        self.assertTrue(is_organization("NEA"))

    def test_empty_name(self):
        self.assertFalse(is_organization(""))


class TestLooksLikeCompany(unittest.TestCase):

    def setUp(self):
        self.classifier = EntityClassifier()

    def test_legal_suffixes_and_big_names(self):
        self.assertTrue(self.classifier.looks_like_company("Acme Inc"))
        self.assertTrue(self.classifier.looks_like_company("Microsoft"))
        self.assertTrue(self.classifier.looks_like_company("Sequoia Capital"))
        self.assertTrue(self.classifier.looks_like_company("Goldman Sachs"))

    def test_people_pass_through(self):
        self.assertFalse(self.classifier.looks_like_company("Sam Altman"))
        self.assertFalse(self.classifier.looks_like_company("Marco Polo"))
        self.assertFalse(self.classifier.looks_like_company("Vincent Price"))


class TestIsKnownCompanyName(unittest.TestCase):

    def setUp(self):
        self.classifier = EntityClassifier()
        self.company_name_set = self.classifier.build_company_name_set(
            ["OpenAI", "Johnson & Johnson", "X"]
        )

    def test_name_set_contents(self):
        self.assertIn("openai", self.company_name_set)
        self.assertIn("johnson & johnson", self.company_name_set)
        self.assertIn("johnson", self.company_name_set)
        self.assertIn("microsoft", self.company_name_set)  # static seed
        self.assertNotIn("&", self.company_name_set)

    def test_exact_and_token_matches(self):
        self.assertTrue(self.classifier.is_known_company_name("OpenAI", self.company_name_set))
        self.assertTrue(self.classifier.is_known_company_name("  openai ", self.company_name_set))
        self.assertTrue(self.classifier.is_known_company_name("Google DeepMind", self.company_name_set))

    def test_containment_respects_word_boundaries(self):
        """'John' must not be taken for 'Johnson'."""
        self.assertFalse(self.classifier.is_known_company_name("John", self.company_name_set))
        self.assertFalse(self.classifier.is_known_company_name("John Smith", self.company_name_set))

    def test_short_company_names_do_not_swallow_people(self):
        # "x" is in the set as a full company name but is too short for containment
        self.assertFalse(self.classifier.is_known_company_name("Max Levchin", self.company_name_set))

    def test_person_name_not_flagged(self):
        self.assertFalse(is_known_company_name("Sam Altman", self.company_name_set))


class TestCustomTables(unittest.TestCase):

    def test_lists_can_be_swapped(self):
        classifier = EntityClassifier(EntityLists(
            capital_indicators=["syndicate"],
            known_capital_entities=[],
        ))
        self.assertTrue(classifier.is_organization("Acme Syndicate"))
        self.assertFalse(classifier.is_organization("Jane Doe"))
        # the name pattern is not part of the tables
        self.assertTrue(classifier.is_organization("Sequoia Capital"))

    def test_from_file(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = os.path.join(tmp_dir, "entity_lists.json")
            with open(path, 'w', encoding='utf-8') as f:
                json.dump({"known_companies": ["initech"]}, f)

            classifier = EntityClassifier.from_file(path)

        self.assertTrue(classifier.looks_like_company("Initech"))
        self.assertFalse(classifier.looks_like_company("Microsoft"))
        # tables missing from the file keep their defaults
        self.assertTrue(classifier.looks_like_company("Acme LLC"))


if __name__ == '__main__':
    unittest.main()
