import unittest

# Adjust the path to import from the parent directory's 'relgraph' package
import sys
import os
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from relgraph.entity_classifier import EntityClassifier
from relgraph.models import Person
from relgraph.person_resolver import BuildContext, resolve_person


class TestResolvePerson(unittest.TestCase):

    def setUp(self):
        """Registry with one known person, as seeded from a board-seat record."""
        self.classifier = EntityClassifier()
        self.company_name_set = self.classifier.build_company_name_set(["OpenAI"])
        self.registry = {"p-sam": Person(id="p-sam", name="Sam Altman")}
        self.name_index = {"sam altman": "p-sam"}

    def resolve(self, name):
        return resolve_person(name, self.registry, self.name_index, self.company_name_set, classifier=self.classifier)

    def test_exact_match(self):
        self.assertEqual(self.resolve("Sam Altman"), "p-sam")

    def test_middle_initial_variant_resolves(self):
        self.assertEqual(self.resolve("Sam D. Altman"), "p-sam")

    def test_distinct_first_name_is_not_merged(self):
        """'Samuel Altman' shares only the family name; precision wins over recall."""
        self.assertIsNone(self.resolve("Samuel Altman"))

    def test_unknown_name_is_not_invented(self):
        self.assertIsNone(self.resolve("Elon Musk"))
        self.assertEqual(len(self.registry), 1)
        self.assertNotIn("elon musk", self.name_index)

    def test_company_name_is_rejected_even_if_indexed(self):
        # --- Arrange ---
        # A mis-tagged person record named after a company
        self.registry["p-openai"] = Person(id="p-openai", name="OpenAI")
        self.name_index["openai"] = "p-openai"

        # --- Act / Assert ---
        self.assertIsNone(self.resolve("OpenAI"))

    def test_fuzzy_index_pass_handles_reordering(self):
        self.registry["p-reid"] = Person(id="p-reid", name="Reid Hoffman")
        self.name_index["reid hoffman"] = "p-reid"

        self.assertEqual(self.resolve("Hoffman Reid"), "p-reid")

    def test_hyphenated_index_keys(self):
        self.registry["p-jl"] = Person(id="p-jl", name="Jean-Luc Picard")
        self.name_index["jean-luc picard"] = "p-jl"

        self.assertEqual(self.resolve("Jean Luc Picard"), "p-jl")

    def test_registry_fallback_backfills_index(self):
        """A registry entry without an index key is still found, and the alias is indexed."""
        self.registry["p-reid"] = Person(id="p-reid", name="Reid G. Hoffman")

        self.assertEqual(self.resolve("Reid Garrett Hoffman"), "p-reid")
        self.assertEqual(self.name_index["reid garrett hoffman"], "p-reid")

    def test_blank_name(self):
        self.assertIsNone(self.resolve(""))
        self.assertIsNone(self.resolve("   "))


class TestBuildContext(unittest.TestCase):

    def setUp(self):
        self.classifier = EntityClassifier()
        company_name_set = self.classifier.build_company_name_set(["Sequoia Capital", "OpenAI"])
        self.ctx = BuildContext(company_name_set, classifier=self.classifier)

    def test_register_person_seeds_registry_and_index(self):
        self.assertTrue(self.ctx.register_person(Person(id="p-reid", name="Reid G. Hoffman")))

        self.assertIn("p-reid", self.ctx.person_registry)
        self.assertEqual(self.ctx.name_index["reid hoffman"], "p-reid")
        self.assertEqual(self.ctx.resolve("Reid Hoffman"), "p-reid")

    def test_register_person_refuses_company_names(self):
        self.assertFalse(self.ctx.register_person(Person(id="p-seq", name="Sequoia Capital")))

        self.assertNotIn("p-seq", self.ctx.person_registry)
        self.assertEqual(self.ctx.name_index, {})

    def test_register_person_is_idempotent(self):
        person = Person(id="p-sam", name="Sam Altman")
        self.ctx.register_person(person)
        self.ctx.register_person(person)

        self.assertEqual(len(self.ctx.person_registry), 1)

    def test_contexts_do_not_share_state(self):
        other = BuildContext(set(), classifier=self.classifier)
        self.ctx.register_person(Person(id="p-sam", name="Sam Altman"))

        self.assertEqual(other.person_registry, {})
        self.assertEqual(other.name_index, {})


if __name__ == '__main__':
    unittest.main()
