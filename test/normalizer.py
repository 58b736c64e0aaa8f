"""
Normalizer and indexer tests.

Scope
- Validate implicit --help/--version injection (and its opt-outs).
- Validate index lookups, including subcommand aliases.
- Validate the tree arena: positions, parents, display names, paths and
  examples inheritance.

Conventions
- Test method names follow CamelCase per project convention.
"""
import unittest
from unittest import TestCase

from clispec import HELP_ID, VERSION_ID, Command, Option, build_index, normalize


def sample():
    return {
        "name": "mytool",
        "examples": ["mytool run all"],
        "options": [{"id": "verbose", "short": "v", "long": "verbose", "kind": "count"}],
        "subcommands": [
            {
                "name": "run",
                "aliases": ["r", "execute"],
                "subcommands": [{"name": "fast", "examples": [("mytool run fast", "Quick")]}],
            },
            {"name": "build"},
        ],
    }


class TestInjection(TestCase):
    """Behavioral tests for the implicit options."""

    def testHelpAndVersionAreAppended(self):
        tree = normalize(sample())
        ids = [option.id for option in tree.root.spec.options]
        self.assertEqual(ids, ["verbose", HELP_ID, VERSION_ID])
        self.assertTrue(tree.root.index.long_map["help"].internal)
        self.assertIs(tree.root.index.short_map["V"], tree.root.index.by_id[VERSION_ID])

    def testEveryCommandGetsImplicitOptions(self):
        for node in normalize(sample()):
            self.assertIn("help", node.index.long_map)
            self.assertIn("version", node.index.long_map)

    def testInjectionCanBeDisabled(self):
        tree = normalize(sample(), auto_help=False, auto_version=False)
        self.assertEqual([option.id for option in tree.root.spec.options], ["verbose"])

    def testClaimedShortSkipsInjection(self):
        tree = normalize(Command("mytool", options=[Option("host", "h", "host", kind="value")]))
        self.assertNotIn(HELP_ID, tree.root.index.by_id)
        self.assertIn(VERSION_ID, tree.root.index.by_id)

    def testClaimedLongSkipsInjection(self):
        tree = normalize(Command("mytool", options=[Option("show_version", long="version")]))
        self.assertNotIn(VERSION_ID, tree.root.index.by_id)
        self.assertIn(HELP_ID, tree.root.index.by_id)

    def testSourceIsNotMutated(self):
        command = Command("mytool", options=[Option("all", "a")])
        normalize(command)
        self.assertEqual(len(command.options), 1)

    def testRejectsOtherSources(self):
        with self.assertRaises(TypeError):
            normalize(["mytool"])

    def testMalformedMappingRaises(self):
        with self.assertRaises(ValueError):
            normalize({"name": "mytool", "options": [{"id": "a", "long": "a"}, {"id": "a", "long": "b"}]})


class TestIndex(TestCase):
    """Behavioral tests for the lookup tables."""

    def testAliasesResolveToCanonicalCommand(self):
        index = normalize(sample()).root.index
        self.assertIs(index.command_map["r"], index.command_map["run"])
        self.assertIs(index.command_map["execute"], index.command_map["run"])
        self.assertEqual(index.command_map["r"].name, "run")

    def testMapsAreReadOnly(self):
        index = build_index(Command("mytool", options=[Option("all", "a", "all")]))
        with self.assertRaises(TypeError):
            index.long_map["other"] = None  # NOQA
        self.assertEqual(index.by_id["all"].long, "all")

    def testOptionsWithoutTokensOnlyIndexedById(self):
        index = build_index(Command("mytool", options=[Option("quiet")]))
        self.assertIn("quiet", index.by_id)
        self.assertEqual(dict(index.long_map), {})
        self.assertEqual(dict(index.short_map), {})


class TestTree(TestCase):
    """Behavioral tests for the normalized tree arena."""

    def testPreOrderPositions(self):
        tree = normalize(sample())
        self.assertEqual(
            [node.name for node in tree],
            ["mytool", "mytool run", "mytool run fast", "mytool build"]
        )
        self.assertEqual(len(tree), 4)

    def testParentsAndPaths(self):
        tree = normalize(sample())
        self.assertIsNone(tree[0].parent)
        self.assertEqual(tree[2].parent, 1)
        self.assertEqual(tree[2].path, ("run", "fast"))
        self.assertEqual(tree[0].path, ())
        self.assertEqual(dict(tree[0].children), {"run": 1, "build": 3})

    def testNodeSpecsAreShared(self):
        tree = normalize(sample())
        self.assertIs(tree.root.spec.subcommands[0], tree[1].spec)
        self.assertIs(tree.root.index.command_map["run"], tree[1].spec)

    def testLineageWalksUp(self):
        tree = normalize(sample())
        self.assertEqual([node.name for node in tree.lineage(2)], ["mytool run fast", "mytool run", "mytool"])

    def testExamplesAreInherited(self):
        tree = normalize(sample())
        self.assertEqual(tree.examples(1), (("mytool run all", None),))
        self.assertEqual(tree.examples(3), (("mytool run all", None),))

    def testOwnExamplesOverrideInheritance(self):
        tree = normalize(sample())
        self.assertEqual(tree.examples(2), (("mytool run fast", "Quick"),))

    def testNoExamplesAnywhere(self):
        tree = normalize({"name": "mytool", "subcommands": [{"name": "run"}]})
        self.assertEqual(tree.examples(1), ())


if __name__ == "__main__":
    unittest.main()
